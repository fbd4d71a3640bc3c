from __future__ import annotations

from typing import List

from ..adapters.base import Product


class MemorySink:
    """Keeps products in a list; used by the HTTP API and handy in tests."""

    def __init__(self) -> None:
        self.products: List[Product] = []
        self.header_written = False
        self.flush_count = 0

    def open(self, destination: str) -> None:
        # Nothing to open; destination is ignored.
        self.products.clear()

    def write_header(self) -> None:
        self.header_written = True

    def write_record(self, product: Product) -> None:
        self.products.append(product)

    def flush(self) -> None:
        self.flush_count += 1

    def close(self) -> None:
        pass
