import pytest


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    # Keep a developer's CRAWLER_* settings out of the tests.
    for name in (
        "CRAWLER_START_URL", "CRAWLER_MAX_PAGES", "CRAWLER_REQUEST_TIMEOUT", "CRAWLER_USER_AGENT",
        "CRAWLER_OUTPUT_PATH", "CRAWLER_SINK", "CRAWLER_TILE_SELECTORS", "CRAWLER_NAME_SELECTORS",
        "CRAWLER_PRICE_SELECTORS", "CRAWLER_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)
