from __future__ import annotations

import asyncio
from typing import Optional, Protocol
from aiohttp import ClientSession, ClientTimeout
import aiohttp
import logging

logger = logging.getLogger(__name__)


class FetchError(Exception):
    """A single page could not be fetched as text. Never fatal for the crawl."""

    def __init__(self, url: str, reason: str) -> None:
        super().__init__(f"{url}: {reason}")
        self.url = url
        self.reason = reason


class Fetcher(Protocol):
    async def __call__(self, url: str) -> str:
        """Return the page body as text, or raise FetchError."""
        ...


def _is_textual(content_type: str) -> bool:
    return content_type.startswith("text/") or "html" in content_type or "xml" in content_type


async def fetch_text(
    session: ClientSession,
    url: str,
    *,
    timeout: float = 15.0,
    user_agent: Optional[str] = None,
) -> str:
    """
    Fetch a URL and return body text. One attempt, bounded by ``timeout`` seconds.
    Error statuses still return their body (error pages can carry links); the
    status is logged. Undecodable bytes become U+FFFD rather than failing.
    Raises FetchError on network errors, timeouts and non-text bodies.
    """
    headers = {}
    if user_agent:
        headers["User-Agent"] = user_agent

    try:
        async with session.get(url, headers=headers, timeout=ClientTimeout(total=timeout)) as resp:
            # aiohttp reports octet-stream when the header is missing; only trust an explicit one.
            if "Content-Type" in resp.headers and not _is_textual(resp.content_type):
                raise FetchError(url, f"non-text response ({resp.content_type})")
            if resp.status >= 400:
                logger.warning("HTTP %s for %s; using the error page body", resp.status, url)
            return await resp.text(errors="replace")
    except asyncio.TimeoutError as exc:
        raise FetchError(url, f"timed out after {timeout}s") from exc
    except (aiohttp.ClientError, ValueError) as exc:
        raise FetchError(url, repr(exc)) from exc


def create_session() -> ClientSession:
    """
    Create a shared aiohttp ClientSession.
    """
    # Note: caller is responsible for closing the session (await session.close()).
    # The crawl is serial, so one pooled connection per host is plenty.
    connector = aiohttp.TCPConnector(limit_per_host=1)
    return aiohttp.ClientSession(connector=connector)


class AiohttpFetcher:
    """Default Fetcher: one GET per call over a shared session."""

    def __init__(self, session: ClientSession, *, timeout: float = 15.0, user_agent: Optional[str] = None) -> None:
        self.session = session
        self.timeout = timeout
        self.user_agent = user_agent

    async def __call__(self, url: str) -> str:
        return await fetch_text(self.session, url, timeout=self.timeout, user_agent=self.user_agent)
