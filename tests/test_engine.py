from __future__ import annotations

import logging

import pytest

from minddigest.crawler import engine
from minddigest.crawler.engine import Page, SiteBehavior, Spider, build_session
from minddigest.crawler.strategy import ExtractionStrategy


class RecordingProcessor(ExtractionStrategy):
    """Follows a fixed link map and records the pages it sees."""

    site_behavior = SiteBehavior(retry_times=0, sleep_time=0)

    def __init__(self, links: dict[str, list[str]], fail_on: str | None = None) -> None:
        super().__init__()
        self.links = links
        self.fail_on = fail_on
        self.seen: list[str] = []
        self.spider: Spider | None = None
        self.stop_after_first = False

    def process(self, page: Page) -> None:
        self.seen.append(page.url)
        if page.url == self.fail_on:
            raise ValueError("broken page")
        page.add_target_requests(self.links.get(page.url, []))
        if self.stop_after_first and self.spider is not None:
            self.spider.stop()


def test_spider_visits_every_reachable_page_once(make_session) -> None:
    pages = {
        "https://site.test/": "<html></html>",
        "https://site.test/a": "<html></html>",
        "https://site.test/b": "<html></html>",
    }
    links = {
        "https://site.test/": ["https://site.test/a", "https://site.test/b", "https://site.test/a"],
        "https://site.test/a": ["https://site.test/", "https://site.test/b"],
    }
    session = make_session(pages)
    processor = RecordingProcessor(links)

    spider = Spider(processor, session=session).add_url("https://site.test/").thread(3)
    spider.run()

    assert sorted(processor.seen) == sorted(pages)
    assert sorted(session.requested) == sorted(pages)
    assert spider.pages_visited == 3


def test_spider_drops_failed_fetches_and_broken_pages(make_session, caplog) -> None:
    pages = {
        "https://site.test/": "<html></html>",
        "https://site.test/broken": "<html></html>",
        "https://site.test/ok": "<html></html>",
    }
    links = {
        "https://site.test/": [
            "https://site.test/missing",
            "https://site.test/broken",
            "https://site.test/ok",
        ],
        "https://site.test/broken": ["https://site.test/never"],
    }
    session = make_session(pages)
    processor = RecordingProcessor(links, fail_on="https://site.test/broken")

    with caplog.at_level(logging.WARNING):
        Spider(processor, session=session).add_url("https://site.test/").thread(2).run()

    assert "https://site.test/missing" in session.requested
    assert "https://site.test/never" not in session.requested
    assert "https://site.test/ok" in processor.seen
    assert "Failed to fetch https://site.test/missing" in caplog.text
    assert "Failed to process https://site.test/broken" in caplog.text


def test_spider_stop_ends_the_crawl(make_session) -> None:
    pages = {f"https://site.test/{index}": "<html></html>" for index in range(5)}
    links = {"https://site.test/0": [f"https://site.test/{index}" for index in range(1, 5)]}
    processor = RecordingProcessor(links)
    processor.stop_after_first = True

    spider = Spider(processor, session=make_session(pages)).add_url("https://site.test/0").thread(1)
    processor.spider = spider
    spider.run()

    assert processor.seen == ["https://site.test/0"]
    assert spider.stopped is True


def test_spider_rejects_non_positive_thread_count(make_session) -> None:
    spider = Spider(RecordingProcessor({}), session=make_session({}))

    with pytest.raises(ValueError):
        spider.thread(0)


def test_page_xpath_flattens_results() -> None:
    page = Page(
        "https://site.test/",
        "<html><body><p class='x'>one <b>two</b></p><a href='/a'>A</a><a href='/b'>B</a></body></html>",
    )

    assert page.xpath("//p[@class='x']") == ["one two"]
    assert page.xpath("//a/@href") == ["/a", "/b"]
    assert page.xpath("count(//a)") == ["2.0"]
    assert page.xpath_first("//h1/text()") is None
    assert page.matches("//b") is True
    assert page.matches("//article") is False


def test_page_links_are_absolute_and_unique() -> None:
    page = Page(
        "https://site.test/news/",
        """
        <a href="story">Relative</a>
        <a href="/news/story#top">Fragment</a>
        <a href="mailto:desk@site.test">Mail</a>
        <a href="https://other.test/x">External</a>
        """,
    )

    assert page.links() == ["https://site.test/news/story", "https://other.test/x"]


def test_page_handles_empty_documents() -> None:
    page = Page("https://site.test/", "")

    assert page.xpath("//p/text()") == []
    assert page.links() == []


def test_build_session_uses_site_behavior() -> None:
    behavior = SiteBehavior(retry_times=5, user_agent="TestBot/1.0")

    session = build_session(behavior)

    assert session.headers["User-Agent"] == "TestBot/1.0"
    assert session.get_adapter("https://site.test/").max_retries.total == 5


def _closing(session):
    session.closed = False

    def close() -> None:
        session.closed = True

    session.close = close
    return session


def test_spider_closes_the_session_it_built(make_session, monkeypatch) -> None:
    built = []

    def fake_build_session(behavior: SiteBehavior):
        session = _closing(make_session({"https://site.test/": "<html></html>"}))
        built.append(session)
        return session

    monkeypatch.setattr(engine, "build_session", fake_build_session)

    Spider(RecordingProcessor({})).add_url("https://site.test/").run()

    assert len(built) == 1
    assert built[0].requested == ["https://site.test/"]
    assert built[0].closed is True


def test_spider_leaves_an_injected_session_open(make_session) -> None:
    session = _closing(make_session({"https://site.test/": "<html></html>"}))

    Spider(RecordingProcessor({}), session=session).add_url("https://site.test/").run()

    assert session.requested == ["https://site.test/"]
    assert session.closed is False
