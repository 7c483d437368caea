from pathlib import Path

import pytest
from pydantic import ValidationError

from minddigest.config import DEFAULT_CONFIG_PATH, CrawlerSettings, SiteConfig, resolve_config_path


def _site(**overrides) -> SiteConfig:
    values = {"name": "Test", "domain": "example.com", "start_url": "https://www.example.com/news"}
    values.update(overrides)
    return SiteConfig(**values)


def test_round_trip(tmp_path: Path) -> None:
    config_path = tmp_path / "crawler.json"
    settings = CrawlerSettings(sites=[_site()], threads=2, shutdown_timeout=5.0)
    settings.dump(config_path)

    loaded = CrawlerSettings.from_file(config_path)
    assert loaded.sites[0].domain == "example.com"
    assert str(loaded.sites[0].start_url) == "https://www.example.com/news"
    assert loaded.threads == 2
    assert loaded.shutdown_timeout == 5.0


def test_defaults() -> None:
    settings = CrawlerSettings(sites=[_site()])

    assert settings.threads == 4
    assert settings.shutdown_timeout == 30.0
    assert list(settings.iter_sites()) == settings.sites


def test_sites_must_not_be_empty() -> None:
    with pytest.raises(ValidationError):
        CrawlerSettings(sites=[])


@pytest.mark.parametrize("threads", [0, -1])
def test_threads_must_be_positive(threads: int) -> None:
    with pytest.raises(ValidationError):
        CrawlerSettings(sites=[_site()], threads=threads)


@pytest.mark.parametrize(
    "overrides",
    [{"domain": ""}, {"domain": "   "}, {"name": ""}, {"start_url": "not a url"}],
)
def test_invalid_site_is_rejected(overrides: dict) -> None:
    with pytest.raises(ValidationError):
        _site(**overrides)


def test_site_config_is_immutable() -> None:
    site = _site()

    with pytest.raises(ValidationError):
        site.domain = "other.com"


def test_missing_file_raises(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        CrawlerSettings.from_file(tmp_path / "missing.json")


def test_invalid_json_raises_value_error(tmp_path: Path) -> None:
    config_path = tmp_path / "crawler.json"
    config_path.write_text("{not json", encoding="utf-8")

    with pytest.raises(ValueError, match="Invalid JSON"):
        CrawlerSettings.from_file(config_path)


def test_schema_violation_raises_value_error(tmp_path: Path) -> None:
    config_path = tmp_path / "crawler.json"
    config_path.write_text('{"sites": [], "threads": 2}', encoding="utf-8")

    with pytest.raises(ValueError, match="invalid"):
        CrawlerSettings.from_file(config_path)


def test_config_path_can_come_from_environment(tmp_path: Path, monkeypatch) -> None:
    config_path = tmp_path / "env.json"
    CrawlerSettings(sites=[_site(domain="env.example")]).dump(config_path)
    monkeypatch.setenv("MINDDIGEST_CONFIG", str(config_path))

    assert resolve_config_path() == config_path
    assert CrawlerSettings.from_file().sites[0].domain == "env.example"


def test_bundled_configuration_loads(monkeypatch) -> None:
    monkeypatch.delenv("MINDDIGEST_CONFIG", raising=False)

    settings = CrawlerSettings.from_file()

    assert resolve_config_path() == DEFAULT_CONFIG_PATH
    assert {site.domain for site in settings.sites} == {"spektrum.de", "scinexx.de"}
