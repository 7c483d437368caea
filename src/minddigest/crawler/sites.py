"""Extraction strategies for the supported news websites."""

from __future__ import annotations

from typing import Tuple, Type

from minddigest.crawler.adapter import SPIDER_ADAPTER
from minddigest.crawler.strategy import ExtractionStrategy, XPathNewsStrategy

__all__ = ["KNOWN_STRATEGIES", "ScinexxNewsStrategy", "SpektrumNewsStrategy"]


class SpektrumNewsStrategy(XPathNewsStrategy):
    """News articles from spektrum.de; premium articles are excluded."""

    domain = "spektrum.de"
    adapter_kind = SPIDER_ADAPTER

    premium_xpath = "//article[contains(@class, 'pw-premium')]"
    title_xpath = "//span[@class='content__title']/text()"
    paragraphs_xpath = (
        "//article[contains(@class, 'content') and contains(@class, 'pw-free')]//p//text()"
    )
    author_xpath = "//div[contains(@class, 'content__author__info__name')]//a[@class='line']/text()"
    author_fallback_xpath = "//div[contains(@class, 'content__copyright')]//span/text()"


class ScinexxNewsStrategy(XPathNewsStrategy):
    """News articles from scinexx.de; members-only articles are excluded."""

    domain = "scinexx.de"
    adapter_kind = SPIDER_ADAPTER

    premium_xpath = "//article[contains(@class, 'category-premium')]"
    title_xpath = "//h1[contains(@class, 'entry-title')]//text()"
    paragraphs_xpath = "//div[contains(@class, 'entry-content')]/p//text()"
    author_xpath = "//span[contains(@class, 'author')]//a/text()"
    author_fallback_xpath = "//div[contains(@class, 'post-author')]//text()"


KNOWN_STRATEGIES: Tuple[Type[ExtractionStrategy], ...] = (
    SpektrumNewsStrategy,
    ScinexxNewsStrategy,
)
