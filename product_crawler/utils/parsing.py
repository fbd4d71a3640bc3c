from __future__ import annotations

import logging
from typing import List, Optional, Union
from urllib.parse import urljoin, urlsplit, urlunsplit

from bs4 import BeautifulSoup
from bs4.builder import ParserRejectedMarkup

logger = logging.getLogger(__name__)

_DEFAULT_PORTS = {"http": 80, "https": 443}

Document = Union[str, BeautifulSoup]


def parse_html(html: Document) -> BeautifulSoup:
    """
    Parse markup best-effort. Never raises: rejected markup yields an empty document.
    """
    if isinstance(html, BeautifulSoup):
        return html
    try:
        return BeautifulSoup(html, "html.parser")
    except ParserRejectedMarkup as exc:
        logger.debug("Parser rejected markup, treating page as empty: %r", exc)
        return BeautifulSoup("", "html.parser")


def normalize_url(url: str) -> str:
    """
    Normalize URL: lowercase scheme and host, drop the scheme's default port,
    give an empty path a root, strip fragment.
    Raises ValueError on URLs urllib cannot split (e.g. a broken IPv6 host).
    """
    parts = urlsplit(url)
    scheme = parts.scheme.lower()
    netloc = parts.netloc
    if parts.hostname:
        host = parts.hostname
        if ":" in host:
            host = f"[{host}]"
        userinfo, _, _ = parts.netloc.rpartition("@")
        netloc = f"{userinfo}@{host}" if userinfo else host
        if parts.port is not None and parts.port != _DEFAULT_PORTS.get(scheme):
            netloc = f"{netloc}:{parts.port}"
    path = parts.path
    if netloc and not path:
        path = "/"
    return urlunsplit((scheme, netloc, path, parts.query, ""))


def resolve_url(base_url: str, href: str) -> Optional[str]:
    """Join ``href`` onto ``base_url``; None when the reference cannot be resolved."""
    try:
        return urljoin(base_url, href.strip())
    except ValueError:
        return None


def domain_of(url: str) -> Optional[str]:
    """Lowercased host of ``url``, or None when it has none (``mailto:``, relative refs)."""
    try:
        return urlsplit(url).hostname
    except ValueError:
        return None


def extract_links(html: Document, base_url: str) -> List[str]:
    """
    Extract absolute, normalized links from an HTML document, in document order.
    Anchors without an href and hrefs that fail to resolve are skipped.
    """
    soup = parse_html(html)
    out: List[str] = []
    for a in soup.find_all("a", href=True):
        href = a.get("href")
        if not isinstance(href, str):
            continue
        resolved = resolve_url(base_url, href)
        if resolved is None:
            logger.debug("Dropping unresolvable link %r on %s", href, base_url)
            continue
        try:
            out.append(normalize_url(resolved))
        except ValueError:
            logger.debug("Dropping unresolvable link %r on %s", href, base_url)
    return out


def discover_links(html: Document, page_url: str, domain_scope: str) -> List[str]:
    """
    Links on the page whose host equals ``domain_scope`` exactly.
    Subdomains and host-less URLs are out of scope. Visited filtering is the caller's job.
    """
    return [link for link in extract_links(html, page_url) if domain_of(link) == domain_scope]
