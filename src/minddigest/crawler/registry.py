"""Domain keyed registry of ready crawler adapters."""

from __future__ import annotations

import logging
import threading
from typing import Dict, List

from minddigest.crawler.adapter import Crawler

__all__ = ["CrawlerRegistry", "normalize_domain"]

logger = logging.getLogger(__name__)


def normalize_domain(domain: str) -> str:
    return domain.strip().lower()


class CrawlerRegistry:
    """Maps normalised domains to crawlers.

    Lookups read the dictionary without locking; registrations replace entries
    under a lock so concurrent writers never lose an update. Registering a
    domain twice keeps the latest crawler.
    """

    def __init__(self) -> None:
        self._crawlers: Dict[str, Crawler] = {}
        self._write_lock = threading.Lock()

    def register(self, domain: str, crawler: Crawler) -> None:
        if domain is None or crawler is None:
            raise ValueError("Domain and crawler must not be None")

        normalized = normalize_domain(domain)
        with self._write_lock:
            self._crawlers[normalized] = crawler
        logger.info("Registered crawler for domain: %s", normalized)

    def lookup(self, domain: str | None) -> Crawler | None:
        if domain is None:
            return None
        return self._crawlers.get(normalize_domain(domain))

    def domains(self) -> List[str]:
        return sorted(self._crawlers)

    def __contains__(self, domain: object) -> bool:
        return isinstance(domain, str) and normalize_domain(domain) in self._crawlers

    def __len__(self) -> int:
        return len(self._crawlers)
