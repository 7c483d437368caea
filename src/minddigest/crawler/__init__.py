"""Crawl orchestration: strategies, adapters, registry and coordinator."""

from __future__ import annotations

from .adapter import Crawler, SpiderAdapterBuilder, SpiderCrawlerAdapter  # noqa: F401
from .bootstrap import build_coordinator, build_registry  # noqa: F401
from .coordinator import CrawlerCoordinator  # noqa: F401
from .factory import CrawlerAdapterFactory  # noqa: F401
from .registry import CrawlerRegistry  # noqa: F401
from .strategy import ExtractionStrategy, XPathNewsStrategy  # noqa: F401

__all__ = [
    "Crawler",
    "CrawlerAdapterFactory",
    "CrawlerCoordinator",
    "CrawlerRegistry",
    "ExtractionStrategy",
    "SpiderAdapterBuilder",
    "SpiderCrawlerAdapter",
    "XPathNewsStrategy",
    "build_coordinator",
    "build_registry",
]
