"""Convenience script for running the MindDigest crawler locally."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Optional

# Ensure the src directory is on the Python path so the minddigest package can be imported
SRC_PATH = Path(__file__).resolve().parent / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from minddigest.config import CrawlerSettings  # noqa: E402  (import after path setup)
from minddigest.crawler.bootstrap import build_coordinator  # noqa: E402
from minddigest.crawler.scheduler import CrawlerScheduler  # noqa: E402
from minddigest.errors import ConfigurationError  # noqa: E402
from minddigest.store import DigestEntryStore  # noqa: E402


def main(argv: Optional[list] = None) -> int:
    """Load the site configuration and crawl every configured site."""

    parser = argparse.ArgumentParser(description="Crawl the configured news sites")
    parser.add_argument("--config", help="Path to the crawler JSON configuration")
    parser.add_argument("--persist", action="store_true", help="Store new entries in the entry store")
    parser.add_argument(
        "--schedule",
        action="store_true",
        help="Keep running and crawl every schedule_interval seconds (implies --persist)",
    )
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")

    try:
        settings = CrawlerSettings.from_file(args.config)
    except (FileNotFoundError, ValueError) as exc:
        logging.error("Could not load crawler configuration: %s", exc)
        return 1

    try:
        coordinator = build_coordinator(settings)
    except ConfigurationError as exc:
        logging.error("Crawler wiring is invalid: %s", exc)
        return 1

    with coordinator:
        if args.schedule:
            scheduler = CrawlerScheduler(coordinator, DigestEntryStore(), settings.schedule_interval)
            scheduler.start()
            try:
                while scheduler.running:
                    scheduler.wait(1.0)
            except KeyboardInterrupt:
                logging.info("Stopping scheduler")
            finally:
                scheduler.stop(timeout=settings.shutdown_timeout)
            return 0

        results = coordinator.start_all_crawlers()

    if args.persist:
        saved, duplicates = DigestEntryStore().save_all(results)
        logging.info("Stored %d new entries, skipped %d duplicates", len(saved), len(duplicates))

    print(json.dumps([entry.model_dump() for entry in results], indent=2, ensure_ascii=False))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
