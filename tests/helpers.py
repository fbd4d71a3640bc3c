from __future__ import annotations

from html import escape
from typing import Dict, List

from product_crawler.utils.http import FetchError


class FakeSite:
    """In-memory Fetcher: known URLs return their body, anything else is unreachable."""

    def __init__(self, pages: Dict[str, str]) -> None:
        self.pages = pages
        self.calls: List[str] = []

    async def __call__(self, url: str) -> str:
        self.calls.append(url)
        if url not in self.pages:
            raise FetchError(url, "connection refused")
        return self.pages[url]


def tile(name: str, price: str, href: str | None = "/item/1") -> str:
    anchor = f'<a href="{href}" aria-label="{escape(name)}">{escape(name, quote=False)}</a>' if href is not None else ""
    return (
        f'<div data-item-id="x">{anchor}'
        f'<span data-automation-id="product-price">{price}</span></div>'
    )


def page(*parts: str) -> str:
    return "<html><body>" + "".join(parts) + "</body></html>"


def links(*hrefs: str) -> str:
    return "".join(f'<a href="{h}">link</a>' for h in hrefs)
