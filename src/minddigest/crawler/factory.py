"""Factory resolving extraction strategies to crawler adapters."""

from __future__ import annotations

import logging
from typing import Dict, Iterable, Mapping, Type

from minddigest.crawler.adapter import AdapterBuilder, Crawler
from minddigest.crawler.strategy import ExtractionStrategy
from minddigest.errors import ConfigurationError

__all__ = ["CrawlerAdapterFactory"]

logger = logging.getLogger(__name__)


class CrawlerAdapterFactory:
    """Creates adapters for strategies based on their declared ``adapter_kind``.

    The binding of every strategy is resolved when the factory is built, so a
    strategy without a binding, or with a binding to an unknown adapter kind,
    is reported at startup rather than on the first crawl.
    """

    def __init__(
        self,
        strategies: Iterable[ExtractionStrategy],
        builders: Mapping[str, AdapterBuilder],
    ) -> None:
        self._builders: Dict[Type[ExtractionStrategy], AdapterBuilder] = {}
        for strategy in strategies:
            strategy_type = type(strategy)
            kind = getattr(strategy_type, "adapter_kind", None)
            if not kind:
                raise ConfigurationError(
                    f"Extraction strategy {strategy_type.__name__} does not declare an adapter_kind"
                )
            builder = builders.get(kind)
            if builder is None:
                raise ConfigurationError(
                    f"Extraction strategy {strategy_type.__name__} uses unknown adapter kind '{kind}'"
                )
            self._builders[strategy_type] = builder
            logger.debug("Bound %s to adapter kind '%s'", strategy_type.__name__, kind)

    def create_adapter(self, strategy: ExtractionStrategy) -> Crawler:
        builder = self._builders.get(type(strategy))
        if builder is None:
            raise ConfigurationError(
                f"No adapter registered for strategy type: {type(strategy).__name__}"
            )
        return builder.build(strategy)

    def __contains__(self, strategy_type: object) -> bool:
        return strategy_type in self._builders
