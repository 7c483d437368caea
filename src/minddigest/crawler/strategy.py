"""Extraction strategies turn fetched pages into :class:`DigestEntry` objects."""

from __future__ import annotations

import logging
import re
import threading
from typing import ClassVar, List, Pattern

from minddigest.crawler.engine import Page, SiteBehavior
from minddigest.models import (
    AUTHOR_MAX_LENGTH,
    SUMMARY_MAX_LENGTH,
    TITLE_MAX_LENGTH,
    DigestEntry,
)

__all__ = ["ExtractionStrategy", "XPathNewsStrategy", "article_url_pattern"]

logger = logging.getLogger(__name__)


def article_url_pattern(domain: str) -> Pattern[str]:
    """Return the pattern news article URLs on ``domain`` are expected to match."""

    return re.compile(r"https://www\." + re.escape(domain.strip().lower()) + r"/news/.+?/\d+")


class ExtractionStrategy:
    """Site specific page processor driven by the fetch engine.

    Subclasses declare the website they handle through ``domain`` and the kind
    of crawler adapter that runs them through ``adapter_kind``. Both are read
    once at startup when the crawler registry is built.
    """

    domain: ClassVar[str | None] = None
    adapter_kind: ClassVar[str | None] = None
    site_behavior: ClassVar[SiteBehavior] = SiteBehavior()

    def __init__(self) -> None:
        self._results: List[DigestEntry] = []
        self._lock = threading.Lock()

    @property
    def site(self) -> SiteBehavior:
        return self.site_behavior

    def init(self, domain: str, start_url: str) -> None:
        """Prepare for a new crawl of ``domain``, dropping earlier results."""

        with self._lock:
            self._results.clear()

    def process(self, page: Page) -> None:
        raise NotImplementedError

    def results(self) -> List[DigestEntry]:
        """Return a copy of the entries collected since the last :meth:`init`."""

        with self._lock:
            return list(self._results)

    def _emit(self, entry: DigestEntry) -> None:
        with self._lock:
            self._results.append(entry)


class XPathNewsStrategy(ExtractionStrategy):
    """News site strategy configured entirely through XPath selectors.

    Non-article pages are only mined for article links. Article pages go
    through the premium gate, field extraction and the mandatory field check
    before an entry is emitted.
    """

    premium_xpath: ClassVar[str] = ""
    title_xpath: ClassVar[str] = ""
    paragraphs_xpath: ClassVar[str] = ""
    author_xpath: ClassVar[str] = ""
    author_fallback_xpath: ClassVar[str] = ""

    def __init__(self) -> None:
        super().__init__()
        self._article_pattern: Pattern[str] | None = None

    def init(self, domain: str, start_url: str) -> None:
        super().init(domain, start_url)
        self._article_pattern = article_url_pattern(domain)
        logger.info(
            "%s initialised for domain %s with start URL %s",
            type(self).__name__,
            domain,
            start_url,
        )

    def is_article(self, url: str) -> bool:
        if self._article_pattern is None:
            raise RuntimeError(f"{type(self).__name__} used before init()")
        return self._article_pattern.fullmatch(url) is not None

    def article_links(self, page: Page) -> List[str]:
        """Return the article URLs contained in the links of ``page``.

        Links carrying a query string or trailing path are reduced to the part
        matching the article pattern.
        """

        if self._article_pattern is None:
            raise RuntimeError(f"{type(self).__name__} used before init()")

        found: List[str] = []
        for link in page.links():
            match = self._article_pattern.search(link)
            if match is not None and match.group(0) not in found:
                found.append(match.group(0))
        return found

    def process(self, page: Page) -> None:
        url = page.url

        if not self.is_article(url):
            links = self.article_links(page)
            page.add_target_requests(links)
            logger.debug("Queued %d article links from %s", len(links), url)
            return

        if self.premium_xpath and page.matches(self.premium_xpath):
            logger.debug("Skipping premium article: %s", url)
            page.skip = True
            return

        title = (page.xpath_first(self.title_xpath) or "").strip() if self.title_xpath else ""
        paragraphs = page.xpath(self.paragraphs_xpath) if self.paragraphs_xpath else []
        content = "\n".join(paragraphs).strip()
        author = self._extract_author(page)

        if not title or not content:
            logger.warning("Skipping page due to missing title or content: %s", url)
            page.skip = True
            return

        entry = DigestEntry(
            title=title[:TITLE_MAX_LENGTH],
            summary=content[:SUMMARY_MAX_LENGTH],
            author=author[:AUTHOR_MAX_LENGTH],
            source_url=url,
        )
        self._emit(entry)
        logger.debug("Added article: %s", title)

    def _extract_author(self, page: Page) -> str:
        for expression in (self.author_xpath, self.author_fallback_xpath):
            if not expression:
                continue
            author = (page.xpath_first(expression) or "").strip()
            if author:
                return author
        return ""
