from __future__ import annotations

import logging
import os

_LEVELS = {
    "CRITICAL": logging.CRITICAL,
    "ERROR": logging.ERROR,
    "WARNING": logging.WARNING,
    "INFO": logging.INFO,
    "DEBUG": logging.DEBUG,
}


def resolve_level(level: str | int | None = None) -> int:
    """Map a level name (or None, meaning $CRAWLER_LOG_LEVEL) to a logging level. Unknown names mean INFO."""
    if level is None:
        level = os.getenv("CRAWLER_LOG_LEVEL", "INFO")
    if isinstance(level, str):
        return _LEVELS.get(level.strip().upper(), logging.INFO)
    return level


def setup_logging(level: str | int | None = None) -> int:
    """
    Configure application logging with a consistent, upgrade-friendly formatter.
    Returns the effective level.
    """
    resolved = resolve_level(level)
    logging.basicConfig(
        level=resolved,
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
    )
    # Per-request chatter from the HTTP client is only useful when debugging.
    logging.getLogger("aiohttp").setLevel(max(resolved, logging.WARNING))
    return resolved
