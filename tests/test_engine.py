import asyncio
import csv
import logging

import pytest

from product_crawler.config import ConfigError, CrawlConfig, SelectorConfig
from product_crawler.engines.simple_engine import SimpleCrawlEngine
from product_crawler.export.base import SinkError
from product_crawler.export.memory import MemorySink

from helpers import FakeSite, links, page, tile

START = "https://shop.example.com/"


def _crawl(pages, *, max_pages=20, tmp_path=None, sink=None, **kwargs):
    site = FakeSite(pages)
    output = str(tmp_path / "products.csv") if tmp_path is not None else "unused.csv"
    cfg = CrawlConfig(start_url=kwargs.pop("start_url", START), max_pages=max_pages, output_path=output, **kwargs)
    sink = sink if sink is not None else (None if tmp_path is not None else MemorySink())
    engine = SimpleCrawlEngine(cfg, sink=sink, fetcher=site)
    report = asyncio.run(engine.crawl())
    return site, report, engine.sink


def test_single_isolated_page_visits_once():
    site, report, _ = _crawl({START: page("<p>nothing here</p>")})
    assert site.calls == [START]
    assert report.visited_count == 1
    assert not report.capped


def test_start_url_is_normalized_before_fetch():
    site, _, _ = _crawl({START: page()}, start_url="https://Shop.Example.com#top")
    assert site.calls == [START]


def test_cap_of_one_fetches_only_the_start_page():
    hrefs = [f"/p/{i}" for i in range(10)]
    pages = {START: page(links(*hrefs))}
    pages.update({f"https://shop.example.com/p/{i}": page() for i in range(10)})
    site, report, _ = _crawl(pages, max_pages=1)
    assert site.calls == [START]
    assert report.visited_count == 1
    assert report.capped


def test_natural_drain_at_the_cap_is_not_reported_as_capped():
    pages = {
        START: page(links("/a", "/a")),
        "https://shop.example.com/a": page(),
    }
    site, report, _ = _crawl(pages, max_pages=2)
    assert site.calls == [START, "https://shop.example.com/a"]
    assert not report.capped


def test_breadth_first_order_and_cap():
    pages = {
        START: page(links("/a", "/b")),
        "https://shop.example.com/a": page(links("/c")),
        "https://shop.example.com/b": page(links("/d")),
        "https://shop.example.com/c": page(),
        "https://shop.example.com/d": page(),
    }
    site, report, _ = _crawl(pages, max_pages=3)
    assert site.calls == [START, "https://shop.example.com/a", "https://shop.example.com/b"]
    assert report.visited_count <= 3


def test_each_url_fetched_at_most_once():
    pages = {
        START: page(links("/a", "/a", "/b#x", "/b", START)),
        "https://shop.example.com/a": page(links("/", "/b", "/a")),
        "https://shop.example.com/b": page(links("/a", "https://shop.example.com")),
    }
    site, report, _ = _crawl(pages)
    assert sorted(site.calls) == sorted(set(site.calls))
    assert len(report.visited) == len(set(report.visited)) == 3


def test_explicit_default_port_is_the_same_page():
    pages = {
        START: page(links("https://shop.example.com:443/a", "/a", "https://shop.example.com:443/")),
        "https://shop.example.com/a": page(),
    }
    site, _, _ = _crawl(pages)
    assert site.calls == [START, "https://shop.example.com/a"]


def test_only_same_host_links_are_followed():
    pages = {
        START: page(links(
            "https://other.example.com/x",
            "https://m.shop.example.com/z",
            "mailto:help@shop.example.com",
            "https://shop.example.com/y",
        )),
        "https://shop.example.com/y": page(),
    }
    site, _, _ = _crawl(pages)
    assert site.calls == [START, "https://shop.example.com/y"]


def test_fetch_failure_skips_page_and_continues(caplog):
    pages = {
        START: page(links("/missing", "/ok")),
        "https://shop.example.com/ok": page(tile("Kettle", "$5")),
        # The tile links to its product page, which is crawled as well.
        "https://shop.example.com/item/1": page(),
    }
    log = logging.getLogger("test.crawl")
    site = FakeSite(pages)
    engine = SimpleCrawlEngine(CrawlConfig(start_url=START), sink=MemorySink(), fetcher=site, log=log)
    with caplog.at_level(logging.INFO, logger="test.crawl"):
        report = asyncio.run(engine.crawl())

    assert report.failed == ["https://shop.example.com/missing"]
    assert report.visited_count == 4
    assert [p.name for p in engine.sink.products] == ["Kettle"]
    assert any("Skipping https://shop.example.com/missing" in r.getMessage() for r in caplog.records)


def test_products_stream_to_sink_with_header_and_single_flush():
    pages = {
        START: page(tile("A", "$1", "/item/a"), links("/next")),
        "https://shop.example.com/next": page(tile("A", "$1", "/item/a"), tile("NoPrice", "")),
    }
    _, report, sink = _crawl(pages)
    assert sink.header_written
    assert sink.flush_count == 1
    assert report.product_count == 2
    assert all(p.name and p.price for p in sink.products)
    assert [p.url for p in sink.products] == ["https://shop.example.com/item/a"] * 2


def test_csv_output_end_to_end(tmp_path):
    pages = {START: page(tile('Mug, "large"', "$3,50", "../item/5"))}
    _crawl(pages, tmp_path=tmp_path)
    with open(tmp_path / "products.csv", encoding="utf-8", newline="") as f:
        rows = list(csv.reader(f))
    assert rows == [
        ["url", "name", "price"],
        ["https://shop.example.com/item/5", 'Mug, "large"', "$3,50"],
    ]


def test_custom_selectors_are_used():
    html = page('<article class="p"><h2>Tea</h2><em>2.00</em><a href="/tea">go</a></article>')
    selectors = SelectorConfig(tiles=["article.p"], name=["h2"], price=["em"])
    _, _, sink = _crawl({START: html}, selectors=selectors)
    assert [(p.name, p.price, p.url) for p in sink.products] == [("Tea", "2.00", "https://shop.example.com/tea")]


def test_invalid_start_url_fails_before_any_io(tmp_path):
    output = tmp_path / "products.csv"
    site = FakeSite({})
    with pytest.raises(ConfigError):
        SimpleCrawlEngine(CrawlConfig(start_url="not a url", output_path=str(output)), fetcher=site)
    assert site.calls == []
    assert not output.exists()


def test_bad_selector_fails_before_any_io(tmp_path):
    cfg = CrawlConfig(start_url=START, output_path=str(tmp_path / "p.csv"),
                      selectors=SelectorConfig(tiles=["div[[["]))
    with pytest.raises(ConfigError):
        SimpleCrawlEngine(cfg)
    assert not (tmp_path / "p.csv").exists()


def test_unwritable_output_is_fatal(tmp_path):
    site = FakeSite({START: page()})
    cfg = CrawlConfig(start_url=START, output_path=str(tmp_path))  # a directory
    engine = SimpleCrawlEngine(cfg, fetcher=site)
    with pytest.raises(SinkError):
        asyncio.run(engine.crawl())
    assert site.calls == []


def test_zero_cap_writes_header_only(tmp_path):
    site, report, _ = _crawl({START: page()}, max_pages=0, tmp_path=tmp_path)
    assert site.calls == []
    assert report.visited_count == 0
    assert (tmp_path / "products.csv").read_text(encoding="utf-8").splitlines() == ["url,name,price"]
