from __future__ import annotations

import logging
from typing import Optional

from .base import CrawlEngine, CrawlReport
from .frontier import Frontier
from ..config import CrawlConfig
from ..adapters.tiles import compile_selectors, extract_products
from ..export.base import ProductSink
from ..utils.http import AiohttpFetcher, FetchError, Fetcher, create_session
from ..utils.loader import load_symbol
from ..utils.parsing import discover_links, domain_of, normalize_url, parse_html

logger = logging.getLogger(__name__)


class SimpleCrawlEngine(CrawlEngine):
    """
    Serial breadth-first crawler confined to the start URL's host.
    - Engine owns the frontier, the HTTP session and the sink lifecycle.
    - Extraction and link discovery are pure functions of the page body.
    - One page at a time: fetch, extract, discover, next.
    """
    def __init__(
        self,
        config: CrawlConfig,
        sink: Optional[ProductSink] = None,
        fetcher: Optional[Fetcher] = None,
        log: Optional[logging.Logger] = None,
    ) -> None:
        # Fail fast on bad start URLs or selectors, before any I/O.
        config.validate()
        self.config = config
        self.selectors = compile_selectors(config.selectors)
        self.sink = sink if sink is not None else load_symbol(config.sink)()
        self.fetcher = fetcher
        self.log = log or logger

    async def crawl(self) -> CrawlReport:
        cfg = self.config
        start_url = normalize_url(cfg.start_url)
        domain_scope = domain_of(start_url)

        frontier = Frontier(cfg.max_pages)
        frontier.push(start_url)
        report = CrawlReport()

        self.log.info("Starting crawl at: %s", start_url)
        self.log.info("Max pages: %s", cfg.max_pages)

        self.sink.open(cfg.output_path)
        try:
            self.sink.write_header()

            session = None
            fetcher = self.fetcher
            if fetcher is None:
                session = create_session()
                fetcher = AiohttpFetcher(session, timeout=cfg.request_timeout, user_agent=cfg.user_agent)
            try:
                while True:
                    url = frontier.pop()
                    if url is None:
                        break
                    self.log.info("Fetching (%s/%s) %s", frontier.visited_count, cfg.max_pages, url)
                    try:
                        body = await fetcher(url)
                    except FetchError as exc:
                        self.log.warning("Skipping %s: %s", url, exc.reason)
                        report.failed.append(url)
                        continue

                    soup = parse_html(body)
                    for product in extract_products(soup, url, self.selectors):
                        self.sink.write_record(product)
                        report.product_count += 1

                    for link in discover_links(soup, url, domain_scope):
                        frontier.push(link)
            finally:
                if session is not None:
                    await session.close()

            self.sink.flush()
        finally:
            self.sink.close()

        report.visited = list(frontier.order)
        report.capped = frontier.capped
        if report.capped:
            self.log.info("Reached max pages limit (%s), stopping crawl.", cfg.max_pages)
        self.log.info(
            "Crawl complete. Pages visited: %s | Failed: %s | Products: %s",
            report.visited_count, len(report.failed), report.product_count,
        )
        return report
