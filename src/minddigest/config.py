"""Configuration models and helpers for the MindDigest crawler."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Iterable, List

from pydantic import BaseModel, ConfigDict, Field, HttpUrl, ValidationError, field_validator

__all__ = [
    "CrawlerSettings",
    "SiteConfig",
    "DEFAULT_CONFIG_PATH",
    "resolve_config_path",
]

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parents[2] / "data" / "crawler.json"
CONFIG_PATH_ENV = "MINDDIGEST_CONFIG"


def resolve_config_path(path: Path | str | None = None) -> Path:
    """Return the configuration path, honouring ``MINDDIGEST_CONFIG`` when unset."""

    if path:
        return Path(path)
    env_path = os.environ.get(CONFIG_PATH_ENV)
    if env_path:
        return Path(env_path)
    return DEFAULT_CONFIG_PATH


class SiteConfig(BaseModel):
    """Configuration for a single site to crawl."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1, description="Human friendly site name")
    domain: str = Field(
        ...,
        min_length=1,
        description="Domain used to look up the crawler registered for this site",
    )
    start_url: HttpUrl = Field(..., description="URL the crawl is seeded with")

    @field_validator("name", "domain")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be blank")
        return value


class CrawlerSettings(BaseModel):
    """Collection of :class:`SiteConfig` entries plus global crawler settings."""

    sites: List[SiteConfig] = Field(..., min_length=1)
    threads: int = Field(default=4, ge=1, description="Worker threads per crawl and pool floor")
    shutdown_timeout: float = Field(
        default=30.0,
        gt=0,
        description="Seconds to wait in each stage of the coordinator shutdown",
    )
    schedule_interval: float = Field(
        default=60.0,
        gt=0,
        description="Seconds between scheduled crawler runs",
    )

    @classmethod
    def from_file(cls, path: Path | str | None = None) -> "CrawlerSettings":
        """Load configuration data from a JSON file."""

        config_path = resolve_config_path(path)
        try:
            data = json.loads(config_path.read_text(encoding="utf-8"))
        except FileNotFoundError as exc:
            raise FileNotFoundError(f"Configuration file not found: {config_path}") from exc
        except json.JSONDecodeError as exc:
            raise ValueError(f"Invalid JSON in configuration file: {config_path}") from exc

        try:
            return cls.model_validate(data)
        except ValidationError as exc:
            raise ValueError(f"Configuration file is invalid: {config_path}\n{exc}") from exc

    def dump(self, path: Path | str | None = None) -> None:
        """Persist the configuration back to disk as JSON."""

        config_path = resolve_config_path(path)
        config_path.parent.mkdir(parents=True, exist_ok=True)
        config_path.write_text(self.model_dump_json(indent=2), encoding="utf-8")

    def iter_sites(self) -> Iterable[SiteConfig]:
        """Iterate over configured sites."""

        return iter(self.sites)
