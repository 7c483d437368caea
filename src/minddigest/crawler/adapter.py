"""Crawler adapters bind an extraction strategy to the fetch engine."""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING, List

import requests

from minddigest.crawler.engine import Spider
from minddigest.models import DigestEntry

if TYPE_CHECKING:  # pragma: no cover
    from minddigest.crawler.strategy import ExtractionStrategy

__all__ = [
    "AdapterBuilder",
    "Crawler",
    "SPIDER_ADAPTER",
    "SpiderAdapterBuilder",
    "SpiderCrawlerAdapter",
]

logger = logging.getLogger(__name__)

#: Adapter kind served by :class:`SpiderAdapterBuilder`.
SPIDER_ADAPTER = "spider"


class Crawler:
    """Uniform contract the coordinator uses to run one site's crawl.

    ``lock`` is held by whoever drives an ``init``/``run`` pair so that two
    sites sharing a domain never interleave on the same adapter.
    """

    def __init__(self) -> None:
        self.lock = threading.Lock()

    def init(self, domain: str, start_url: str) -> None:
        raise NotImplementedError

    def run(self) -> List[DigestEntry]:
        raise NotImplementedError

    def stop(self) -> None:
        """Ask an in-progress :meth:`run` to wind down. No-op when idle."""


class SpiderCrawlerAdapter(Crawler):
    """Runs a :class:`Spider` seeded with the start URL and returns its results."""

    def __init__(
        self,
        strategy: "ExtractionStrategy",
        thread_count: int,
        *,
        session: requests.Session | None = None,
    ) -> None:
        super().__init__()
        self.strategy = strategy
        self.thread_count = thread_count
        self.start_url: str | None = None
        self._session = session
        self._spider: Spider | None = None
        self._spider_lock = threading.Lock()

    def init(self, domain: str, start_url: str) -> None:
        self.start_url = start_url
        self.strategy.init(domain, start_url)
        logger.info("Initialised crawler for domain '%s' with start URL '%s'", domain, start_url)

    def run(self) -> List[DigestEntry]:
        if self.start_url is None:
            raise RuntimeError("init() must be called before run()")

        logger.info("Starting crawl for URL: %s", self.start_url)
        try:
            spider = Spider(self.strategy, session=self._session)
            spider.add_url(self.start_url).thread(self.thread_count)
            with self._spider_lock:
                self._spider = spider
            spider.run()
        except Exception:  # noqa: BLE001 - keep whatever was collected before the failure
            logger.exception("Error during crawling of %s", self.start_url)
        finally:
            with self._spider_lock:
                self._spider = None

        results = self.strategy.results()
        logger.info("Crawl of %s finished, found %d results", self.start_url, len(results))
        return results

    def stop(self) -> None:
        with self._spider_lock:
            spider = self._spider
        if spider is not None:
            logger.warning("Stopping crawl of %s", self.start_url)
            spider.stop()


class AdapterBuilder:
    """Builds a ready :class:`Crawler` for a given strategy."""

    def build(self, strategy: "ExtractionStrategy") -> Crawler:
        raise NotImplementedError


class SpiderAdapterBuilder(AdapterBuilder):
    """Builder for :class:`SpiderCrawlerAdapter` with a fixed engine thread count."""

    def __init__(self, thread_count: int, *, session: requests.Session | None = None) -> None:
        self.thread_count = thread_count
        self._session = session

    def build(self, strategy: "ExtractionStrategy") -> SpiderCrawlerAdapter:
        if strategy is None:
            raise ValueError("Strategy must not be None")
        if self.thread_count <= 0:
            raise ValueError(f"Thread count must be positive, got {self.thread_count}")
        return SpiderCrawlerAdapter(strategy, self.thread_count, session=self._session)
