from __future__ import annotations

import threading

import pytest
import requests

from minddigest.crawler.adapter import SPIDER_ADAPTER
from minddigest.crawler.engine import SiteBehavior
from minddigest.crawler.strategy import XPathNewsStrategy

LISTING_URL = "https://www.example.com/news"
ARTICLE_URL = "https://www.example.com/news/x/1"

LISTING_HTML = """
<html>
    <body>
        <a href="/news/x/1">Story</a>
        <a href="/impressum">Imprint</a>
    </body>
</html>
"""

ARTICLE_HTML = """
<html>
    <body>
        <h1 class="title">T</h1>
        <div class="body"><p>a</p><p>b</p></div>
    </body>
</html>
"""


class DummyResponse:
    def __init__(self, text: str, status_code: int = 200) -> None:
        self.text = text
        self.status_code = status_code
        self.headers = {"Content-Type": "text/html; charset=utf-8"}
        self.encoding = "utf-8"

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")


class FakeSession:
    """Serves canned HTML by URL and records every request."""

    def __init__(self, pages: dict[str, str]) -> None:
        self.pages = pages
        self.requested: list[str] = []
        self._lock = threading.Lock()

    def get(self, url: str, timeout: float | None = None) -> DummyResponse:
        with self._lock:
            self.requested.append(url)
        if url not in self.pages:
            return DummyResponse("", status_code=404)
        return DummyResponse(self.pages[url])


class ExampleNewsStrategy(XPathNewsStrategy):
    domain = "example.com"
    adapter_kind = SPIDER_ADAPTER
    site_behavior = SiteBehavior(retry_times=0, sleep_time=0)

    premium_xpath = "//article[contains(@class, 'premium')]"
    title_xpath = "//h1[@class='title']/text()"
    paragraphs_xpath = "//div[@class='body']/p/text()"
    author_xpath = "//span[@class='author']/text()"
    author_fallback_xpath = "//span[@class='credit']/text()"


@pytest.fixture
def example_strategy_cls() -> type[ExampleNewsStrategy]:
    return ExampleNewsStrategy


@pytest.fixture
def example_pages() -> dict[str, str]:
    return {LISTING_URL: LISTING_HTML, ARTICLE_URL: ARTICLE_HTML}


@pytest.fixture
def fake_session(example_pages: dict[str, str]) -> FakeSession:
    return FakeSession(example_pages)


@pytest.fixture
def make_session():
    return FakeSession
