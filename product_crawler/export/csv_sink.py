from __future__ import annotations

import csv
from pathlib import Path
from typing import Any, Optional, TextIO

from .base import SinkError
from ..adapters.base import Product


class CSVSink:
    """
    Writes one ``url,name,price`` row per product to a UTF-8 CSV file.
    The file is truncated on open; quoting follows the csv module so
    separators, quotes and newlines in values round-trip.
    """

    _headers = list(Product.FIELDS)

    def __init__(self) -> None:
        self._file: Optional[TextIO] = None
        self._writer: Any = None
        self.path: Optional[str] = None

    def open(self, destination: str) -> None:
        try:
            Path(destination).parent.mkdir(parents=True, exist_ok=True)
            self._file = open(destination, "w", encoding="utf-8", newline="")
        except OSError as exc:
            raise SinkError(f"Cannot create output file {destination}: {exc}") from exc
        self._writer = csv.writer(self._file)
        self.path = destination

    def write_header(self) -> None:
        self._write(self._headers)

    def write_record(self, product: Product) -> None:
        self._write(product.as_row())

    def flush(self) -> None:
        if self._file is None:
            raise SinkError("flush() called on a sink that is not open")
        try:
            self._file.flush()
        except OSError as exc:
            raise SinkError(f"Cannot flush {self.path}: {exc}") from exc

    def close(self) -> None:
        if self._file is not None:
            self._file.close()
            self._file = None

    def _write(self, row: list[str]) -> None:
        if self._writer is None:
            raise SinkError("write called on a sink that is not open")
        try:
            self._writer.writerow(row)
        except OSError as exc:
            raise SinkError(f"Cannot write to {self.path}: {exc}") from exc
