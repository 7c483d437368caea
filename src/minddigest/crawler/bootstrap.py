"""Startup wiring: strategies -> adapters -> registry -> coordinator."""

from __future__ import annotations

import logging
from typing import Iterable, Mapping, Type

import requests

from minddigest.config import CrawlerSettings
from minddigest.crawler.adapter import SPIDER_ADAPTER, AdapterBuilder, SpiderAdapterBuilder
from minddigest.crawler.coordinator import CrawlerCoordinator
from minddigest.crawler.factory import CrawlerAdapterFactory
from minddigest.crawler.registry import CrawlerRegistry, normalize_domain
from minddigest.crawler.sites import KNOWN_STRATEGIES
from minddigest.crawler.strategy import ExtractionStrategy
from minddigest.errors import ConfigurationError

__all__ = ["build_coordinator", "build_registry", "default_builders"]

logger = logging.getLogger(__name__)


def default_builders(
    settings: CrawlerSettings, *, session: requests.Session | None = None
) -> dict[str, AdapterBuilder]:
    """Return the adapter builders available to every strategy."""

    return {SPIDER_ADAPTER: SpiderAdapterBuilder(settings.threads, session=session)}


def build_registry(
    settings: CrawlerSettings,
    strategies: Iterable[Type[ExtractionStrategy]] = KNOWN_STRATEGIES,
    builders: Mapping[str, AdapterBuilder] | None = None,
) -> CrawlerRegistry:
    """Instantiate every strategy and register an adapter for its domain.

    Raises :class:`ConfigurationError` when a strategy does not declare a
    domain or its adapter binding cannot be resolved.
    """

    instances = [strategy_type() for strategy_type in strategies]
    for instance in instances:
        if not (type(instance).domain or "").strip():
            raise ConfigurationError(
                f"Extraction strategy {type(instance).__name__} does not declare a domain"
            )

    factory = CrawlerAdapterFactory(
        instances, builders if builders is not None else default_builders(settings)
    )

    registry = CrawlerRegistry()
    for instance in instances:
        registry.register(type(instance).domain, factory.create_adapter(instance))

    configured = {normalize_domain(site.domain) for site in settings.sites}
    missing = sorted(domain for domain in configured if domain not in registry)
    if missing:
        logger.warning("No crawler registered for configured domains: %s", ", ".join(missing))

    return registry


def build_coordinator(
    settings: CrawlerSettings,
    strategies: Iterable[Type[ExtractionStrategy]] = KNOWN_STRATEGIES,
    builders: Mapping[str, AdapterBuilder] | None = None,
) -> CrawlerCoordinator:
    """Return a coordinator ready to crawl every site in ``settings``."""

    registry = build_registry(settings, strategies, builders)
    return CrawlerCoordinator(registry, settings)
