"""Threaded fetch engine that feeds downloaded pages to an extraction strategy.

The engine owns everything network related: the HTTP session, retries with
backoff, timeouts, charset fallback and the user agent. Strategies only see
:class:`Page` objects and hand new URLs back through
:meth:`Page.add_target_requests`.
"""

from __future__ import annotations

import logging
import threading
from collections import deque
from concurrent.futures import FIRST_COMPLETED, ThreadPoolExecutor, wait
from dataclasses import dataclass
from typing import TYPE_CHECKING, Deque, Dict, Iterable, List, Set
from urllib.parse import urljoin, urlparse

import lxml.html
import requests
from bs4 import BeautifulSoup
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

if TYPE_CHECKING:  # pragma: no cover
    from minddigest.crawler.strategy import ExtractionStrategy

__all__ = ["DEFAULT_USER_AGENT", "Page", "SiteBehavior", "Spider", "build_session"]

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = "Mozilla/5.0 (compatible; MindDigestBot/1.0)"

# How long the scheduling loop blocks before re-checking the stop flag.
_POLL_INTERVAL = 0.5


@dataclass(frozen=True)
class SiteBehavior:
    """Per-site politeness and transport settings used by the engine."""

    retry_times: int = 3
    sleep_time: float = 1.0
    timeout: float = 10.0
    charset: str = "utf-8"
    user_agent: str = DEFAULT_USER_AGENT

    def headers(self) -> Dict[str, str]:
        return {
            "User-Agent": self.user_agent,
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
            "Accept-Charset": self.charset,
        }


def build_session(behavior: SiteBehavior) -> requests.Session:
    """Return a :class:`requests.Session` configured for ``behavior``."""

    retry = Retry(
        total=behavior.retry_times,
        connect=behavior.retry_times,
        read=behavior.retry_times,
        backoff_factor=1,
        status_forcelist=[429, 500, 502, 503, 504],
        allowed_methods={"GET"},
    )
    session = requests.Session()
    session.headers.update(behavior.headers())
    session.mount("https://", HTTPAdapter(max_retries=retry))
    session.mount("http://", HTTPAdapter(max_retries=retry))
    return session


class Page:
    """A fetched page as seen by an extraction strategy."""

    def __init__(self, url: str, text: str) -> None:
        self.url = url
        self.text = text
        self.skip = False
        self._targets: List[str] = []
        self._tree: lxml.html.HtmlElement | None = None

    @property
    def tree(self) -> lxml.html.HtmlElement:
        if self._tree is None:
            markup = self.text if self.text.strip() else "<html></html>"
            parser = lxml.html.HTMLParser(encoding="utf-8")
            self._tree = lxml.html.fromstring(markup.encode("utf-8"), parser=parser)
        return self._tree

    def xpath(self, expression: str) -> List[str]:
        """Evaluate ``expression`` and return every match as a string.

        Text and attribute results are returned as-is, element results are
        flattened to their text content.
        """

        result = self.tree.xpath(expression)
        if not isinstance(result, list):
            return [str(result)]

        values: List[str] = []
        for item in result:
            if isinstance(item, str):
                values.append(str(item))
            elif hasattr(item, "text_content"):
                values.append(item.text_content())
            else:
                values.append(str(item))
        return values

    def xpath_first(self, expression: str) -> str | None:
        values = self.xpath(expression)
        return values[0] if values else None

    def matches(self, expression: str) -> bool:
        """Return ``True`` when ``expression`` selects anything on the page."""

        return bool(self.tree.xpath(expression))

    def links(self) -> List[str]:
        """Return absolute http(s) links found on the page, in document order."""

        soup = BeautifulSoup(self.text, "lxml")
        found: List[str] = []
        seen: Set[str] = set()
        for anchor in soup.find_all("a", href=True):
            absolute = urljoin(self.url, anchor["href"].strip()).split("#", 1)[0]
            if urlparse(absolute).scheme not in {"http", "https"}:
                continue
            if absolute in seen:
                continue
            seen.add(absolute)
            found.append(absolute)
        return found

    def add_target_requests(self, urls: Iterable[str]) -> None:
        self._targets.extend(urls)

    @property
    def target_requests(self) -> List[str]:
        return list(self._targets)


class Spider:
    """Breadth-first crawler driving a single extraction strategy.

    Usage mirrors a builder::

        Spider(strategy).add_url(start_url).thread(4).run()
    """

    def __init__(
        self,
        processor: "ExtractionStrategy",
        *,
        session: requests.Session | None = None,
    ) -> None:
        self._processor = processor
        self._behavior: SiteBehavior = processor.site
        self._owns_session = session is None
        self._session = session or build_session(self._behavior)
        self._start_urls: List[str] = []
        self._thread_count = 1
        self._stop_event = threading.Event()
        self._counter_lock = threading.Lock()
        self.pages_visited = 0

    def add_url(self, *urls: str) -> "Spider":
        self._start_urls.extend(urls)
        return self

    def thread(self, count: int) -> "Spider":
        if count <= 0:
            raise ValueError(f"Thread count must be positive, got {count}")
        self._thread_count = count
        return self

    def stop(self) -> None:
        """Ask a running :meth:`run` to return after the pages in flight."""

        self._stop_event.set()

    @property
    def stopped(self) -> bool:
        return self._stop_event.is_set()

    def run(self) -> None:
        """Crawl until the frontier is exhausted or :meth:`stop` is called."""

        frontier: Deque[str] = deque()
        seen: Set[str] = set()
        for url in self._start_urls:
            if url not in seen:
                seen.add(url)
                frontier.append(url)

        pending = set()
        try:
            with ThreadPoolExecutor(
                max_workers=self._thread_count, thread_name_prefix="spider"
            ) as pool:
                while (frontier or pending) and not self._stop_event.is_set():
                    while frontier and len(pending) < self._thread_count:
                        pending.add(pool.submit(self._visit, frontier.popleft()))

                    done, pending = wait(
                        pending, timeout=_POLL_INTERVAL, return_when=FIRST_COMPLETED
                    )
                    for future in done:
                        for url in future.result():
                            if url not in seen:
                                seen.add(url)
                                frontier.append(url)

                for future in pending:
                    future.cancel()
        finally:
            if self._owns_session:
                self._session.close()

        logger.info(
            "Spider finished after %d pages (%d left in frontier)",
            self.pages_visited,
            len(frontier),
        )

    def _visit(self, url: str) -> List[str]:
        try:
            response = self._session.get(url, timeout=self._behavior.timeout)
            response.raise_for_status()
        except requests.RequestException as exc:
            logger.warning("Failed to fetch %s: %s", url, exc)
            return []

        page = Page(url, self._decode(response))
        try:
            self._processor.process(page)
        except Exception:  # noqa: BLE001 - one broken page must not end the crawl
            logger.exception("Failed to process %s", url)
            return []
        finally:
            with self._counter_lock:
                self.pages_visited += 1

        if page.skip:
            logger.debug("Page skipped by processor: %s", url)

        if self._behavior.sleep_time > 0:
            self._stop_event.wait(self._behavior.sleep_time)
        return page.target_requests

    def _decode(self, response: requests.Response) -> str:
        headers = getattr(response, "headers", None) or {}
        content_type = str(headers.get("Content-Type", headers.get("content-type", ""))).lower()
        if "charset" not in content_type:
            response.encoding = self._behavior.charset
        return response.text
