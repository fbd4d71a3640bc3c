from __future__ import annotations

import argparse
import asyncio
import logging
from typing import List

from ..config import ConfigError, CrawlConfig, parse_max_pages
from ..engines.base import CrawlReport
from ..engines.simple_engine import SimpleCrawlEngine
from ..export.base import SinkError
from ..utils.logging import setup_logging

logger = logging.getLogger(__name__)


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="product-crawler",
        description="Crawl one site breadth-first and save product listings to CSV",
    )
    p.add_argument("start_url", nargs="?", default=None, help="Absolute http(s) URL to start from")
    p.add_argument("max_pages", nargs="?", default=None,
                   help="Maximum pages to fetch (default 20; unparsable values fall back to 20)")
    p.add_argument("--config", type=str, help="Path to config JSON", default=None)
    p.add_argument("--output", type=str, default=None, help="Output file path (default products.csv)")
    p.add_argument("--timeout", type=float, default=None, help="Per-request timeout in seconds")
    p.add_argument("--user-agent", type=str, default=None, help="User-Agent header to send")
    p.add_argument("--sink", type=str, default=None, help="Sink dotted path (module:ClassName)")
    p.add_argument("--tile-selector", action="append", default=None, metavar="CSS",
                   help="Product tile selector; repeat to OR several (replaces the defaults)")
    p.add_argument("--name-selector", action="append", default=None, metavar="CSS",
                   help="Name selector; repeat to build a fallback chain (replaces the defaults)")
    p.add_argument("--price-selector", action="append", default=None, metavar="CSS",
                   help="Price selector; repeat to build a fallback chain (replaces the defaults)")
    p.add_argument("--log-level", type=str, default=None, help="Log level (DEBUG, INFO, WARNING, ERROR)")
    p.add_argument("--serve", action="store_true", help="Run REST API server instead of CLI crawl")
    p.add_argument("--host", type=str, default="127.0.0.1", help="API host (when --serve)")
    p.add_argument("--port", type=int, default=8000, help="API port (when --serve)")
    return p


def _load_config(args: argparse.Namespace) -> CrawlConfig:
    if args.config:
        cfg = CrawlConfig.from_file(args.config)
    else:
        cfg = CrawlConfig.from_env()

    if args.start_url:
        cfg.start_url = args.start_url
    if args.max_pages is not None:
        cfg.max_pages = parse_max_pages(args.max_pages)
    if args.output:
        cfg.output_path = args.output
    if args.timeout is not None:
        cfg.request_timeout = args.timeout
    if args.user_agent:
        cfg.user_agent = args.user_agent
    if args.sink:
        cfg.sink = args.sink
    if args.tile_selector:
        cfg.selectors.tiles = list(args.tile_selector)
    if args.name_selector:
        cfg.selectors.name = list(args.name_selector)
    if args.price_selector:
        cfg.selectors.price = list(args.price_selector)

    cfg.validate()
    return cfg


def run_server(host: str, port: int) -> None:
    try:
        import uvicorn  # type: ignore
    except Exception as exc:  # pragma: no cover - optional dep
        raise SystemExit("To run the API, install dependencies: pip install 'product-crawler[api]'") from exc
    uvicorn.run("product_crawler.apis.app:app", host=host, port=port)


def run_cli(argv: List[str] | None = None) -> int:
    args = build_arg_parser().parse_args(argv)
    setup_logging(args.log_level)

    if args.serve:
        run_server(args.host, args.port)
        return 0

    try:
        cfg = _load_config(args)
        logger.debug("Effective config: %s", cfg.to_dict())
        # The sink class comes from cfg.sink, so the output format can change without code edits.
        engine = SimpleCrawlEngine(cfg)
    except ConfigError as exc:
        logger.error("%s", exc)
        return 2

    try:
        report: CrawlReport = asyncio.run(engine.crawl())
    except SinkError as exc:
        logger.error("Crawl failed: %s", exc)
        return 1

    logger.info("Visited: %s | Products: %s | Output: %s",
                report.visited_count,
                report.product_count,
                cfg.output_path)
    return 0
