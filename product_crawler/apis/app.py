from __future__ import annotations

from typing import Any, Dict, List, Optional
import logging

try:
    from fastapi import Depends, FastAPI, HTTPException
    from pydantic import BaseModel
except Exception as exc:  # pragma: no cover - optional dependency
    raise RuntimeError(
        "FastAPI not installed. Install with `pip install 'product-crawler[api]'` "
        "or avoid using the API server."
    ) from exc

from ..config import ConfigError, CrawlConfig, SelectorConfig
from ..engines.base import CrawlReport
from ..engines.simple_engine import SimpleCrawlEngine
from ..export.memory import MemorySink
from ..utils.http import Fetcher
from ..version import __version__

logger = logging.getLogger(__name__)

app = FastAPI(title="product_crawler API", version=__version__)


class SelectorOverrides(BaseModel):
    tiles: Optional[List[str]] = None
    name: Optional[List[str]] = None
    price: Optional[List[str]] = None


class CrawlRequest(BaseModel):
    start_url: str
    max_pages: Optional[int] = None
    selectors: Optional[SelectorOverrides] = None


@app.get("/health")
async def health() -> Dict[str, str]:
    return {"status": "ok"}


def get_fetcher() -> Optional[Fetcher]:
    """None means the engine opens its own aiohttp session per crawl."""
    return None


@app.post("/crawl")
async def crawl(req: CrawlRequest, fetcher: Optional[Fetcher] = Depends(get_fetcher)) -> Dict[str, Any]:
    cfg = CrawlConfig.from_env()
    cfg.start_url = req.start_url
    if req.max_pages is not None:
        cfg.max_pages = req.max_pages
    if req.selectors is not None:
        overrides = {k: v for k, v in req.selectors.model_dump().items() if v is not None}
        base = cfg.selectors
        cfg.selectors = SelectorConfig(
            tiles=overrides.get("tiles", base.tiles),
            name=overrides.get("name", base.name),
            price=overrides.get("price", base.price),
        )

    # Results go back in the response, never to disk.
    sink = MemorySink()
    try:
        engine = SimpleCrawlEngine(cfg, sink=sink, fetcher=fetcher)
    except ConfigError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc

    report: CrawlReport = await engine.crawl()
    logger.info("API crawl of %s visited %s pages", cfg.start_url, report.visited_count)
    return {
        "visited": report.visited_count,
        "failed": report.failed,
        "products": [p.to_dict() for p in sink.products],
    }
