from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

import soupsieve
from bs4 import Tag

from .base import Product
from ..config import ConfigError, SelectorConfig
from ..utils.parsing import Document, parse_html, resolve_url

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CompiledSelectors:
    """Selector lists from SelectorConfig, compiled once at start-up."""

    tiles: soupsieve.SoupSieve
    name: Sequence[soupsieve.SoupSieve]
    price: Sequence[soupsieve.SoupSieve]


def _compile_chain(group: str, patterns: List[str]) -> List[soupsieve.SoupSieve]:
    if not patterns:
        raise ConfigError(f"At least one {group} selector is required")
    compiled = []
    for pattern in patterns:
        try:
            compiled.append(soupsieve.compile(pattern))
        except soupsieve.SelectorSyntaxError as exc:
            raise ConfigError(f"Invalid {group} selector {pattern!r}: {exc}") from exc
    return compiled


def compile_selectors(config: SelectorConfig) -> CompiledSelectors:
    """
    Compile every configured selector, raising ConfigError on the first bad pattern.
    """
    _compile_chain("tile", config.tiles)
    return CompiledSelectors(
        # A selector list matches any of its members, once per element, in document order.
        tiles=soupsieve.compile(", ".join(config.tiles)),
        name=_compile_chain("name", config.name),
        price=_compile_chain("price", config.price),
    )


def _first_text(tile: Tag, chain: Sequence[soupsieve.SoupSieve]) -> str:
    # First selector with a hit wins, even if that hit has no text.
    for selector in chain:
        node = selector.select_one(tile)
        if node is not None:
            return node.get_text().strip()
    return ""


def _product_url(tile: Tag, page_url: str) -> str:
    anchor: Optional[Tag] = tile.find("a")
    if anchor is None:
        return page_url
    href = anchor.get("href")
    if not isinstance(href, str):
        return page_url
    return resolve_url(page_url, href) or page_url


def extract_products(html: Document, page_url: str, selectors: CompiledSelectors) -> List[Product]:
    """
    Pull ``Product`` records out of every tile on the page.

    Tiles without both a name and a price are skipped. The product URL is the
    first link inside the tile, falling back to ``page_url``. Malformed markup
    never raises; it just yields fewer (possibly zero) products.
    """
    soup = parse_html(html)
    products: List[Product] = []
    for tile in selectors.tiles.select(soup):
        name = _first_text(tile, selectors.name)
        price = _first_text(tile, selectors.price)
        if not name or not price:
            logger.debug("Skipping tile without name/price on %s", page_url)
            continue
        products.append(Product(url=_product_url(tile, page_url), name=name, price=price))
    return products
