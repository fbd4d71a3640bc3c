from __future__ import annotations

from typing import Protocol

from ..adapters.base import Product


class SinkError(Exception):
    """The output cannot be created or written; always fatal for a crawl."""


class ProductSink(Protocol):
    """
    Streaming destination for extracted products.
    The engine calls ``write_header`` once, ``write_record`` per product and
    ``flush`` exactly once at the end of the crawl.
    """

    def open(self, destination: str) -> None:
        ...

    def write_header(self) -> None:
        ...

    def write_record(self, product: Product) -> None:
        ...

    def flush(self) -> None:
        ...

    def close(self) -> None:
        ...
