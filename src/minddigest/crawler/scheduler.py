"""Periodic trigger that runs the coordinator and persists what it finds."""

from __future__ import annotations

import logging
import threading
from typing import Tuple

from minddigest.crawler.coordinator import CrawlerCoordinator
from minddigest.store import DigestEntryStore

__all__ = ["CrawlerScheduler"]

logger = logging.getLogger(__name__)


class CrawlerScheduler:
    """Runs :meth:`run_once` every ``interval`` seconds on a background thread.

    Runs never overlap: the next run is scheduled only after the previous one
    has returned.
    """

    def __init__(
        self,
        coordinator: CrawlerCoordinator,
        store: DigestEntryStore,
        interval: float,
    ) -> None:
        if interval <= 0:
            raise ValueError(f"Interval must be positive, got {interval}")
        self._coordinator = coordinator
        self._store = store
        self._interval = interval
        self._stop_event = threading.Event()
        self._run_lock = threading.Lock()
        self._thread: threading.Thread | None = None

    def run_once(self) -> Tuple[int, int]:
        """Crawl all sites, store new entries and return ``(saved, duplicates)``."""

        with self._run_lock:
            logger.info("Starting scheduled crawler job")
            results = self._coordinator.start_all_crawlers(self._stop_event)
            saved, duplicates = self._store.save_all(results)
            logger.info(
                "Scheduled crawling job finished: %d results, %d stored, %d duplicates",
                len(results),
                len(saved),
                len(duplicates),
            )
            return len(saved), len(duplicates)

    def start(self) -> None:
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._loop, name="crawler-scheduler", daemon=True)
        self._thread.start()

    def stop(self, timeout: float | None = None) -> None:
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

    def wait(self, timeout: float | None = None) -> None:
        """Block until the background thread exits or ``timeout`` elapses."""

        thread = self._thread
        if thread is not None:
            thread.join(timeout)

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def _loop(self) -> None:
        while not self._stop_event.is_set():
            try:
                self.run_once()
            except Exception:  # noqa: BLE001 - keep the schedule alive across failed runs
                logger.exception("Scheduled crawler job failed")
            if self._stop_event.wait(self._interval):
                break
