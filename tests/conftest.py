"""
Test configuration for rvp.

Fixtures for sample pages, configs and settings, plus a fake fetcher that
serves canned documents so engine tests never touch the network.
"""

# Standard library imports
import asyncio
import os
from pathlib import Path
from typing import Dict, List, Optional

# Third-party imports
import pytest
import pytest_asyncio
import structlog

# Local imports
from rvp.config import FetchConfig, Settings
from rvp.exceptions import FetchError
from rvp.schema import Config, Resource, Selector, SelectorType
from rvp.scraper import Document, HtmlFetcher, parse_document

# Settings must come from the test, never from the developer's shell
for _key in [k for k in os.environ if k.startswith("RVP_")]:
    del os.environ[_key]

# ============================================================================
# Pytest Configuration
# ============================================================================


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests for individual components")
    config.addinivalue_line("markers", "integration: Integration tests across modules")


@pytest.fixture(autouse=True)
def reset_structlog():
    """Keep structlog configuration from leaking between tests."""
    yield
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()


# ============================================================================
# Sample Pages
# ============================================================================


STOCK_PAGE = """
<!DOCTYPE html>
<html>
<head><title>ACME Corp quote</title></head>
<body>
    <div id="quote">
        <h1 class="ticker">ACME</h1>
        <span class="price">$1.234,56</span>
        <span class="cap">1.5b CAD$</span>
        <span class="note">  Closed <b>early</b>  today </span>
        <span class="dash">-</span>
    </div>
    <ul class="news">
        <li>First headline</li>
        <li>Second headline</li>
    </ul>
</body>
</html>
"""


@pytest.fixture
def stock_html() -> str:
    return STOCK_PAGE


@pytest.fixture
def stock_document() -> Document:
    return parse_document(STOCK_PAGE, url="https://quotes.test/ACME")


# ============================================================================
# Config Fixtures
# ============================================================================


@pytest.fixture
def quote_selectors() -> List[Selector]:
    return [
        Selector(path="#quote h1.ticker", name="ticker"),
        Selector(path="#quote .price", name="price", parsed_type=SelectorType.NUMBER),
        Selector(path="#quote .cap", name="market_cap", parsed_type=SelectorType.NUMBER),
    ]


@pytest.fixture
def sample_config(quote_selectors) -> Config:
    return Config(
        name="stocks",
        description="Quotes for a ticker",
        resources=[
            Resource(url="https://quotes.test/%%", selectors=quote_selectors),
            Resource(url="https://quotes.test/market", selectors=[Selector(path="h1", name="title")]),
        ],
    )


@pytest.fixture
def settings() -> Settings:
    """Settings with a short timeout."""
    return Settings(fetch=FetchConfig(timeout=2.0, max_concurrency=4))


# ============================================================================
# Fetcher Fixtures
# ============================================================================


class FakeFetcher(HtmlFetcher):
    """
    Serves pages from a dict instead of the network.

    ``delays`` lets a test control which fetch finishes first; ``errors``
    maps URLs to a FetchError reason.
    """

    def __init__(
        self,
        pages: Dict[str, str],
        delays: Optional[Dict[str, float]] = None,
        errors: Optional[Dict[str, str]] = None,
    ):
        super().__init__(FetchConfig())
        self.pages = pages
        self.delays = delays or {}
        self.errors = errors or {}
        self.calls: List[str] = []
        self.completed: List[str] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def fetch(self, url: str) -> Document:
        self.calls.append(url)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delays.get(url, 0))
            if url in self.errors:
                raise FetchError(url, self.errors[url])
            if url not in self.pages:
                raise FetchError(url, "connection refused")
            self.completed.append(url)
            return parse_document(self.pages[url], url=url)
        finally:
            self.in_flight -= 1


@pytest.fixture
def fake_fetcher_factory():
    return FakeFetcher


@pytest_asyncio.fixture
async def http_fetcher(settings):
    """A real HtmlFetcher with an open session, closed after the test."""
    fetcher = HtmlFetcher(settings.fetch)
    await fetcher.initialize()
    yield fetcher
    await fetcher.close()


@pytest.fixture
def tmp_config_dir(tmp_path) -> Path:
    path = tmp_path / "configs"
    path.mkdir()
    return path
