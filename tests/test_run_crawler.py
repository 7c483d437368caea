from __future__ import annotations

import json
from pathlib import Path

import run_crawler
from minddigest.config import CrawlerSettings, SiteConfig
from minddigest.errors import ConfigurationError
from minddigest.models import DigestEntry


class DummyCoordinator:
    def __init__(self, results: list[DigestEntry]) -> None:
        self.results = results
        self.closed = False

    def __enter__(self) -> "DummyCoordinator":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.closed = True

    def start_all_crawlers(self, cancel_event=None) -> list[DigestEntry]:
        return self.results


def _write_config(tmp_path: Path) -> Path:
    config_path = tmp_path / "crawler.json"
    CrawlerSettings(
        sites=[SiteConfig(name="Example", domain="example.com", start_url="https://www.example.com/news")]
    ).dump(config_path)
    return config_path


def test_main_prints_results_and_persists(tmp_path: Path, monkeypatch, capsys) -> None:
    entry = DigestEntry(title="T", summary="a", source_url="https://www.example.com/news/x/1")
    coordinator = DummyCoordinator([entry])
    monkeypatch.setattr(run_crawler, "build_coordinator", lambda settings: coordinator)
    monkeypatch.setenv("MINDDIGEST_DATA_DIR", str(tmp_path / "blobs"))

    exit_code = run_crawler.main(["--config", str(_write_config(tmp_path)), "--persist"])

    assert exit_code == 0
    assert coordinator.closed is True
    assert json.loads(capsys.readouterr().out) == [entry.model_dump()]
    assert (tmp_path / "blobs" / "digest_entries.json").exists()


def test_main_fails_on_missing_configuration(tmp_path: Path) -> None:
    assert run_crawler.main(["--config", str(tmp_path / "missing.json")]) == 1


def test_main_fails_on_invalid_wiring(tmp_path: Path, monkeypatch) -> None:
    def broken(settings):
        raise ConfigurationError("Extraction strategy Broken does not declare an adapter_kind")

    monkeypatch.setattr(run_crawler, "build_coordinator", broken)

    assert run_crawler.main(["--config", str(_write_config(tmp_path))]) == 1
