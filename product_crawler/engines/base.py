from __future__ import annotations

from dataclasses import dataclass, field
from typing import List
from abc import ABC, abstractmethod


@dataclass
class CrawlReport:
    visited: List[str] = field(default_factory=list)  # in visit order
    failed: List[str] = field(default_factory=list)  # visited, but the fetch failed
    product_count: int = 0
    capped: bool = False  # stopped by max_pages with URLs still queued

    @property
    def visited_count(self) -> int:
        return len(self.visited)


class CrawlEngine(ABC):
    """
    Abstract engine interface. Implementations own the crawl lifecycle.
    """
    @abstractmethod
    async def crawl(self) -> CrawlReport:  # pragma: no cover - interface
        ...
