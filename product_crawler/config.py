from __future__ import annotations

from dataclasses import dataclass, field, asdict
from typing import List, Optional, Dict, Any
from urllib.parse import urlsplit
import logging
import os
import json

from .version import __version__, CONFIG_SCHEMA_VERSION

logger = logging.getLogger(__name__)

DEFAULT_MAX_PAGES = 20
DEFAULT_SINK = "product_crawler.export.csv_sink:CSVSink"

# Best-effort markup heuristics for search-result style listing pages.
# Operators are expected to override these when the target markup drifts.
DEFAULT_TILE_SELECTORS = [
    "div[data-item-id]",
    "div[data-automation-id='productTile']",
]
DEFAULT_NAME_SELECTORS = [
    "[data-automation-id='product-title']",
    "a[aria-label]",
    "div[data-automation-id='product-title-link']",
]
DEFAULT_PRICE_SELECTORS = [
    "[data-automation-id='product-price']",
    "span[aria-hidden='true']",
    "div.price-main span",
]


class ConfigError(ValueError):
    """Invalid start-up configuration; raised before any network or file I/O."""


@dataclass
class SelectorConfig:
    """
    Ordered CSS selector lists driving product extraction.

    ``tiles`` are OR-ed together; ``name`` and ``price`` are fallback chains
    where the first selector that matches inside a tile wins.
    """
    tiles: List[str] = field(default_factory=lambda: list(DEFAULT_TILE_SELECTORS))
    name: List[str] = field(default_factory=lambda: list(DEFAULT_NAME_SELECTORS))
    price: List[str] = field(default_factory=lambda: list(DEFAULT_PRICE_SELECTORS))

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "SelectorConfig":
        unknown = set(raw) - {"tiles", "name", "price"}
        if unknown:
            raise ConfigError(f"Unknown selector groups: {', '.join(sorted(unknown))}")
        cfg = cls()
        for key, value in raw.items():
            if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
                raise ConfigError(f"selectors.{key} must be a list of strings")
            setattr(cfg, key, list(value))
        return cfg


@dataclass
class CrawlConfig:
    """
    Canonical configuration object passed throughout the system.
    Keep it dataclass-only (no heavy deps) to stay upgrade-friendly.
    """
    schema_version: int = CONFIG_SCHEMA_VERSION
    start_url: str = ""
    max_pages: int = DEFAULT_MAX_PAGES
    request_timeout: float = 15.0
    user_agent: str = f"product_crawler/{__version__}"
    # Where to write results
    output_path: str = "products.csv"
    # Dotted path for the sink class, so the output format can be swapped without code changes.
    sink: str = DEFAULT_SINK
    selectors: SelectorConfig = field(default_factory=SelectorConfig)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    # ---------- Loaders ----------

    @classmethod
    def from_env(cls) -> "CrawlConfig":
        """
        Build config from environment variables (all optional).
        Selector lists are separated by ``;``, which never appears in a CSS selector.
        """
        def _get(name: str, default: str) -> str:
            return os.getenv(name, default)

        def _selectors(name: str, default: List[str]) -> List[str]:
            raw = os.getenv(name, "")
            return [s.strip() for s in raw.split(";") if s.strip()] or list(default)

        try:
            request_timeout = float(_get("CRAWLER_REQUEST_TIMEOUT", "15.0"))
        except ValueError as exc:
            raise ConfigError(f"CRAWLER_REQUEST_TIMEOUT must be a number: {exc}") from exc

        return cls(
            start_url=_get("CRAWLER_START_URL", "").strip(),
            max_pages=parse_max_pages(os.getenv("CRAWLER_MAX_PAGES")),
            request_timeout=request_timeout,
            user_agent=_get("CRAWLER_USER_AGENT", f"product_crawler/{__version__}"),
            output_path=_get("CRAWLER_OUTPUT_PATH", "products.csv"),
            sink=_get("CRAWLER_SINK", DEFAULT_SINK),
            selectors=SelectorConfig(
                tiles=_selectors("CRAWLER_TILE_SELECTORS", DEFAULT_TILE_SELECTORS),
                name=_selectors("CRAWLER_NAME_SELECTORS", DEFAULT_NAME_SELECTORS),
                price=_selectors("CRAWLER_PRICE_SELECTORS", DEFAULT_PRICE_SELECTORS),
            ),
        )

    @classmethod
    def from_file(cls, path: str | os.PathLike[str]) -> "CrawlConfig":
        """
        Load configuration from a JSON file. Older schema versions are migrated first.
        """
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as exc:
            raise ConfigError(f"Cannot read config file {path}: {exc}") from exc
        if not isinstance(data, dict):
            raise ConfigError(f"Config file {path} must contain a JSON object")
        data = migrate_config(data)
        selectors = SelectorConfig.from_dict(data.pop("selectors", None) or {})
        try:
            return cls(selectors=selectors, **data)
        except TypeError as exc:
            raise ConfigError(f"Invalid config file {path}: {exc}") from exc

    # ---------- Validation ----------

    def validate(self) -> None:
        # JSON config files can carry any type; catch that here rather than mid-crawl.
        for name in ("start_url", "user_agent", "output_path", "sink"):
            if not isinstance(getattr(self, name), str):
                raise ConfigError(f"{name} must be a string")
        if isinstance(self.max_pages, bool) or not isinstance(self.max_pages, int):
            raise ConfigError(f"max_pages must be an integer, got {self.max_pages!r}")
        if isinstance(self.request_timeout, bool) or not isinstance(self.request_timeout, (int, float)):
            raise ConfigError(f"request_timeout must be a number, got {self.request_timeout!r}")
        parse_start_url(self.start_url)
        if self.max_pages < 0:
            raise ConfigError("max_pages must be >= 0")
        if self.request_timeout <= 0:
            raise ConfigError("request_timeout must be > 0")
        # Compiling here surfaces a bad pattern before the crawl starts.
        from .adapters.tiles import compile_selectors

        compile_selectors(self.selectors)


def parse_start_url(url: str) -> str:
    """Return ``url`` if it is an absolute http(s) URL, else raise ConfigError."""
    if not url:
        raise ConfigError("A start URL is required.")
    try:
        parts = urlsplit(url)
        host = parts.hostname
        _ = parts.port  # raises ValueError on a malformed port
    except ValueError as exc:
        raise ConfigError(f"Invalid start URL {url!r}: {exc}") from exc
    if parts.scheme.lower() not in ("http", "https") or not host:
        raise ConfigError(f"Invalid start URL {url!r}: expected an absolute http(s) URL")
    return url


def parse_max_pages(value: Optional[str], default: int = DEFAULT_MAX_PAGES) -> int:
    """Parse a page cap, falling back to ``default`` when absent or unparsable."""
    if value is None or not str(value).strip():
        return default
    try:
        pages = int(str(value).strip())
    except ValueError:
        pages = -1
    if pages < 0:
        logger.warning("Ignoring invalid max pages %r; using %s", value, default)
        return default
    return pages


def migrate_config(raw: Dict[str, Any]) -> Dict[str, Any]:
    """
    Migrate config dict to the latest schema version.
    Keep this pure and additive. Add migrations here as you bump schema.
    """
    raw = dict(raw)
    schema = raw.get("schema_version", 1)

    if schema == 1:
        # v1 was a multi-site, depth-limited crawl.
        start_urls = raw.pop("start_urls", None) or []
        if start_urls and "start_url" not in raw:
            raw["start_url"] = start_urls[0]
        for obsolete in ("allowed_domains", "max_depth", "max_concurrency", "retries",
                         "engine", "exporter", "extra_adapters", "keywords"):
            raw.pop(obsolete, None)
        if raw.get("output_path", "").endswith(".json"):
            raw.pop("output_path")
        raw["schema_version"] = 2

    if raw["schema_version"] != CONFIG_SCHEMA_VERSION:
        raise ConfigError(f"Unsupported config schema_version {raw['schema_version']!r}")
    return raw
