from __future__ import annotations

from collections import deque
from typing import Deque, List, Optional, Set


class Frontier:
    """
    FIFO queue of pending URLs plus the visited set.

    A URL is handed out at most once, and never after ``max_pages`` URLs have
    been handed out. The queue may hold duplicates; they are dropped on pop.
    """

    def __init__(self, max_pages: int) -> None:
        self.max_pages = max_pages
        self._queue: Deque[str] = deque()
        self._visited: Set[str] = set()
        self.order: List[str] = []
        self.capped = False

    def __len__(self) -> int:
        return len(self._queue)

    @property
    def visited_count(self) -> int:
        return len(self._visited)

    def is_visited(self, url: str) -> bool:
        return url in self._visited

    def push(self, url: str) -> bool:
        """Queue ``url`` unless it was already visited. Returns True if queued."""
        if url in self._visited:
            return False
        self._queue.append(url)
        return True

    def pop(self) -> Optional[str]:
        """
        Next unvisited URL, marked visited before it is returned.
        None once the queue is drained or the page cap is reached.
        """
        while self._queue:
            if self._queue[0] in self._visited:
                self._queue.popleft()
                continue
            # Only an unvisited URL left waiting counts as hitting the cap.
            if len(self._visited) >= self.max_pages:
                self.capped = True
                return None
            url = self._queue.popleft()
            self._visited.add(url)
            self.order.append(url)
            return url
        return None
