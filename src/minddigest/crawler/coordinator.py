"""Runs every configured site's crawler concurrently and aggregates the results."""

from __future__ import annotations

import logging
import threading
from concurrent.futures import (
    FIRST_COMPLETED,
    CancelledError,
    Future,
    ThreadPoolExecutor,
    wait,
)
from enum import Enum
from typing import Dict, List, Set

from minddigest.config import CrawlerSettings, SiteConfig
from minddigest.crawler.adapter import Crawler
from minddigest.crawler.registry import CrawlerRegistry
from minddigest.errors import ConfigurationError
from minddigest.models import DigestEntry

__all__ = ["CoordinatorState", "CrawlerCoordinator", "pool_size"]

logger = logging.getLogger(__name__)

# How often a cancellable wait re-checks its cancel event.
_POLL_INTERVAL = 0.1


class CoordinatorState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    AGGREGATING = "aggregating"
    SHUTTING_DOWN = "shutting_down"
    TERMINATED = "terminated"


def pool_size(threads: int, site_count: int) -> int:
    """Return the worker pool size: enough for every site, never below ``threads``."""

    return max(threads, max(2, site_count))


class CrawlerCoordinator:
    """Fans a crawl run out over all configured sites.

    Each site runs as one task on a fixed-size worker pool owned by the
    coordinator. A failing site contributes no entries but never prevents the
    other sites' entries from being returned. Call :meth:`shutdown` (or use the
    coordinator as a context manager) before the process exits.
    """

    def __init__(self, registry: CrawlerRegistry, settings: CrawlerSettings) -> None:
        self._registry = registry
        self._sites: List[SiteConfig] = list(settings.sites)
        self._shutdown_timeout = settings.shutdown_timeout
        self.pool_size = pool_size(settings.threads, len(self._sites))
        self._executor = ThreadPoolExecutor(
            max_workers=self.pool_size, thread_name_prefix="crawler"
        )

        self._state = CoordinatorState.IDLE
        self._state_lock = threading.Lock()
        self._tracking_lock = threading.Lock()
        self._in_flight: Set[Future] = set()
        self._active: Set[Crawler] = set()

        logger.info("Thread pool created with %d threads", self.pool_size)

    @property
    def state(self) -> CoordinatorState:
        return self._state

    @property
    def sites(self) -> List[SiteConfig]:
        return list(self._sites)

    def start_all_crawlers(
        self, cancel_event: threading.Event | None = None
    ) -> List[DigestEntry]:
        """Crawl every configured site and return the combined entries.

        Blocks until all site tasks finish. When ``cancel_event`` is set while
        waiting, the wait is abandoned, tasks that have not started yet are
        cancelled, and entries from the tasks that already finished are
        returned. The event is left set so the caller can see the run was cut
        short. A ``KeyboardInterrupt`` while waiting is handled the same way and
        sets ``cancel_event`` when one is given.
        """

        with self._state_lock:
            if self._state in (CoordinatorState.SHUTTING_DOWN, CoordinatorState.TERMINATED):
                raise RuntimeError("Crawler coordinator has been shut down")
            if self._state is not CoordinatorState.IDLE:
                raise RuntimeError("A crawler run is already in progress")
            self._state = CoordinatorState.RUNNING

        all_results: List[DigestEntry] = []
        try:
            futures: Dict[Future, SiteConfig] = {}
            for site in self._sites:
                try:
                    futures[self._submit(site)] = site
                except RuntimeError:
                    logger.error(
                        "Crawler pool shut down while submitting; %d of %d sites not started",
                        len(self._sites) - len(futures),
                        len(self._sites),
                    )
                    break
            self._await_all(futures, cancel_event)

            self._transition(CoordinatorState.RUNNING, CoordinatorState.AGGREGATING)
            for future, site in futures.items():
                if future.done():
                    all_results.extend(self._results_safely(future, site))
        finally:
            with self._state_lock:
                if self._state in (CoordinatorState.RUNNING, CoordinatorState.AGGREGATING):
                    self._state = CoordinatorState.IDLE

        logger.info("Finished all crawlers. Total results: %d", len(all_results))
        return all_results

    def shutdown(self) -> None:
        """Stop the worker pool, escalating from a graceful to a forced stop.

        Waits up to ``shutdown_timeout`` seconds for running crawls, then
        cancels queued tasks and asks running crawlers to stop and waits the
        same amount again. If the pool is still busy after that, the failure is
        logged and the method returns. Calling it again is a no-op.
        """

        with self._state_lock:
            if self._state in (CoordinatorState.SHUTTING_DOWN, CoordinatorState.TERMINATED):
                logger.debug("Shutdown already requested")
                return
            self._state = CoordinatorState.SHUTTING_DOWN

        logger.info("Shutting down crawler pool...")
        try:
            self._executor.shutdown(wait=False)
            if not self._await_termination(self._shutdown_timeout):
                logger.warning("Crawler pool did not terminate in time; forcing shutdown")
                self._force_stop()
                if not self._await_termination(self._shutdown_timeout):
                    logger.error("Crawler pool did not terminate after forced shutdown")
        except KeyboardInterrupt:
            logger.error("Shutdown interrupted; forcing shutdown now")
            self._force_stop()
            raise
        finally:
            with self._state_lock:
                self._state = CoordinatorState.TERMINATED

        logger.info("Crawler pool shut down.")

    def __enter__(self) -> "CrawlerCoordinator":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.shutdown()

    def _submit(self, site: SiteConfig) -> Future:
        future = self._executor.submit(self._crawl_site, site)
        with self._tracking_lock:
            self._in_flight.add(future)
        future.add_done_callback(self._forget)
        return future

    def _forget(self, future: Future) -> None:
        with self._tracking_lock:
            self._in_flight.discard(future)

    def _crawl_site(self, site: SiteConfig) -> List[DigestEntry]:
        crawler = self._registry.lookup(site.domain)
        if crawler is None:
            raise ConfigurationError(f"No crawler found for domain: {site.domain}")

        with crawler.lock:
            with self._tracking_lock:
                self._active.add(crawler)
            try:
                logger.info("Starting crawler for domain %s", site.domain)
                crawler.init(site.domain, str(site.start_url))
                return crawler.run()
            finally:
                with self._tracking_lock:
                    self._active.discard(crawler)

    def _await_all(
        self, futures: Dict[Future, SiteConfig], cancel_event: threading.Event | None
    ) -> None:
        pending = set(futures)
        timeout = _POLL_INTERVAL if cancel_event is not None else None
        try:
            while pending:
                if cancel_event is not None and cancel_event.is_set():
                    break
                _, pending = wait(pending, timeout=timeout, return_when=FIRST_COMPLETED)
        except KeyboardInterrupt:
            if cancel_event is not None:
                cancel_event.set()

        if pending:
            logger.error(
                "Crawling interrupted; abandoning %d unfinished crawlers", len(pending)
            )
            for future in pending:
                future.cancel()

    def _results_safely(self, future: Future, site: SiteConfig) -> List[DigestEntry]:
        try:
            return future.result()
        except CancelledError:
            logger.warning("Crawler for domain %s was cancelled", site.domain)
        except Exception:  # noqa: BLE001 - one site's failure must not drop the others
            logger.exception("Error during crawler execution for domain %s", site.domain)
        return []

    def _await_termination(self, timeout: float) -> bool:
        with self._tracking_lock:
            in_flight = list(self._in_flight)
        if not in_flight:
            return True
        _, not_done = wait(in_flight, timeout=timeout)
        return not not_done

    def _force_stop(self) -> None:
        self._executor.shutdown(wait=False, cancel_futures=True)
        with self._tracking_lock:
            in_flight = list(self._in_flight)
            active = list(self._active)
        for future in in_flight:
            future.cancel()
        for crawler in active:
            crawler.stop()

    def _transition(self, expected: CoordinatorState, target: CoordinatorState) -> None:
        with self._state_lock:
            if self._state is expected:
                self._state = target
