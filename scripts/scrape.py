#!/usr/bin/env python3
"""
Scrape the recent reviews of one app from the command line.

Usage:
    python -m scripts.scrape Vidify
    python -m scripts.scrape Vidify --max-pages 5 --delay 1 --db data/reviews.db
    python -m scripts.scrape --list
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from core.config import settings
from services.scraping.fallback import NoFallbackProvider
from services.scraping.pipeline import ReviewScrapeService
from services.storage import InMemoryReviewStore, SQLiteReviewStore

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Clear and re-scrape the last 30 days of reviews for an app.",
    )
    parser.add_argument("app", nargs="?", help="App display name (see --list)")
    parser.add_argument("--list", action="store_true", help="List available apps and exit")
    parser.add_argument("--max-pages", type=int, default=None, help="Page cap for this run")
    parser.add_argument("--delay", type=float, default=None, help="Seconds between page fetches")
    parser.add_argument(
        "--db",
        type=Path,
        default=settings.DATABASE_PATH,
        help=f"SQLite database path (default: {settings.DATABASE_PATH})",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Keep results in memory instead of writing the database",
    )
    parser.add_argument(
        "--no-fallback",
        action="store_true",
        help="Do not substitute sample reviews when no review markup is found",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    logging.basicConfig(level=settings.LOG_LEVEL, format="%(levelname)s: %(message)s")
    parser = build_parser()
    args = parser.parse_args(argv)

    store = InMemoryReviewStore() if args.dry_run else SQLiteReviewStore(args.db)
    service = ReviewScrapeService(
        store=store,
        fallback=NoFallbackProvider() if args.no_fallback else None,
        page_delay=args.delay,
    )

    if args.list:
        for name in service.list_available_apps():
            print(name)
        return 0

    if not args.app:
        parser.error("an app name is required unless --list is given")

    result = service.scrape_app(args.app, max_pages=args.max_pages)
    print(json.dumps(result.model_dump(mode="json"), indent=2))
    return 0 if result.success else 1


if __name__ == "__main__":
    sys.exit(main())
