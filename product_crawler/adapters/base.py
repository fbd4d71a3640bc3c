from __future__ import annotations

from dataclasses import dataclass, asdict
from typing import Dict, List


@dataclass(frozen=True)
class Product:
    """One product listing pulled from a page tile."""

    url: str
    name: str
    price: str

    #: Column order used by tabular sinks.
    FIELDS = ("url", "name", "price")

    def to_dict(self) -> Dict[str, str]:
        return asdict(self)

    def as_row(self) -> List[str]:
        return [self.url, self.name, self.price]
