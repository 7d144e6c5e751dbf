"""
Full scrape run for one app: clear -> paginate -> store -> summarize -> report.

ReviewScrapeService is the trigger surface used by the web app and the CLI.
It always returns a ScrapeResult; faults are logged and folded into the
result instead of being raised to the caller.
"""

import logging
import threading
import time
from datetime import date
from typing import Callable, Dict, List, Optional

from app.schemas.scrape import ScrapeReportSchema, ScrapeResult
from core.app_registry import AppConfig, AppRegistry, get_app_registry
from core.config import settings
from core.fetcher import PageFetcher
from services.scraping.dates import DateNormalizer
from services.scraping.extractor import RecordExtractor
from services.scraping.fallback import FallbackProvider
from services.scraping.metadata import MetadataSummarizer
from services.scraping.models import ScrapeAccumulator, StopReason
from services.scraping.pagination import PaginationController
from services.scraping.report import build_report
from services.storage.base import ReviewStore, StoreError

logger = logging.getLogger(__name__)

OUTCOME_OK = "ok"
OUTCOME_NO_RECENT = "no_recent_reviews"
OUTCOME_ERROR = "error"
OUTCOME_CANCELLED = "cancelled"

# One lock per app name, shared by every service instance in the process
_RUN_LOCKS: Dict[str, threading.Lock] = {}
_RUN_LOCKS_GUARD = threading.Lock()


def _run_lock(app_name: str) -> threading.Lock:
    """Lock serialising scrape runs of one app; a second trigger waits for the first."""
    with _RUN_LOCKS_GUARD:
        return _RUN_LOCKS.setdefault(app_name.lower(), threading.Lock())


class ReviewScrapeService:
    """
    Composes registry, fetcher, extractor, pagination, metadata and store.

    Args:
        store: Persistence collaborator
        registry: App registry (defaults to the global one)
        fetcher: Page fetcher shared by pagination and metadata
        fallback: Provider for pages with no recognizable containers
        summarizer: Metadata summarizer (defaults to the placeholder histogram)
        clock: Returns today's date
        sleep: Politeness delay implementation
        max_pages, page_delay, cutoff_days: Override the configured values
    """

    def __init__(
        self,
        store: ReviewStore,
        registry: Optional[AppRegistry] = None,
        fetcher: Optional[PageFetcher] = None,
        fallback: Optional[FallbackProvider] = None,
        summarizer: Optional[MetadataSummarizer] = None,
        clock: Callable[[], date] = date.today,
        sleep: Callable[[float], None] = time.sleep,
        max_pages: Optional[int] = None,
        page_delay: Optional[float] = None,
        cutoff_days: Optional[int] = None,
    ):
        self.store = store
        self.registry = registry or get_app_registry()
        self.fetcher = fetcher or PageFetcher()
        self.fallback = fallback
        self.summarizer = summarizer or MetadataSummarizer(self.fetcher)
        self.clock = clock
        self.sleep = sleep
        self.max_pages = max_pages
        self.page_delay = page_delay
        self.cutoff_days = settings.CUTOFF_DAYS if cutoff_days is None else cutoff_days

    def list_available_apps(self) -> List[str]:
        """Registered apps first, then any other app present in the store."""
        apps = self.registry.list_apps()
        try:
            stored = self.store.list_apps()
        except StoreError as exc:
            logger.error("Error listing stored apps: %s", exc)
            stored = []
        known = {name.lower() for name in apps}
        return apps + [name for name in stored if name.lower() not in known]

    def build_controller(self, app: AppConfig, max_pages: Optional[int] = None) -> PaginationController:
        extractor = RecordExtractor(
            app_name=app.name,
            normalizer=DateNormalizer(self.clock),
            fallback=self.fallback,
        )
        return PaginationController(
            fetcher=self.fetcher,
            extractor=extractor,
            page_url=app.listing_url,
            max_pages=max_pages or self.max_pages,
            page_delay=self.page_delay,
            cutoff_days=self.cutoff_days,
            clock=self.clock,
            sleep=self.sleep,
        )

    def scrape_app(
        self,
        app_name: str,
        cancel_event: Optional[threading.Event] = None,
        max_pages: Optional[int] = None,
    ) -> ScrapeResult:
        """
        Run a full reset-and-refetch for one app. Never raises.

        Runs of the same app are serialised, so overlapping triggers each
        replace the data instead of adding to it.

        Args:
            app_name: Registered app display name (case-insensitive)
            cancel_event: Stops pagination at the next page boundary once set
            max_pages: Page cap for this run only
        """
        app = self.registry.get(app_name)
        if app is None:
            logger.warning("Scrape requested for unknown app: %s", app_name)
            return ScrapeResult(
                success=False,
                scraped_count=0,
                outcome=OUTCOME_ERROR,
                message=f"Unknown app: {app_name}",
            )

        with _run_lock(app.name):
            try:
                return self._run(app, cancel_event, max_pages)
            except Exception as exc:
                logger.exception("Scrape of %s failed unexpectedly", app.name)
                return ScrapeResult(
                    success=False,
                    scraped_count=0,
                    outcome=OUTCOME_ERROR,
                    message=f"Scraping failed for {app.name}: {exc}",
                )

    def _run(
        self,
        app: AppConfig,
        cancel_event: Optional[threading.Event],
        max_pages: Optional[int],
    ) -> ScrapeResult:
        logger.info("=== Scraping %s ===", app.name)

        # Always a full replace: the previous run's data goes first
        try:
            self.store.clear_app_data(app.name)
        except StoreError as exc:
            logger.error("Error clearing existing data for %s: %s", app.name, exc)

        accumulator = self.build_controller(app, max_pages).run(cancel_event)

        # Storage, metadata and the report run whatever way pagination ended
        stored = self._store_reviews(app, accumulator)
        self._store_metadata(app, accumulator)
        report = build_report(
            app.name, accumulator.reviews, self.store, clock=self.clock, stored_count=stored
        )

        result_fields = dict(
            scraped_count=stored,
            stop_reason=accumulator.stop_reason.value,
            stopped_due_to_age=accumulator.stopped_due_to_age,
            pages_fetched=accumulator.pages_fetched,
            synthetic_count=accumulator.synthetic_count,
            report=ScrapeReportSchema.from_report(report),
        )
        if accumulator.stop_reason is StopReason.FETCH_ERROR:
            return ScrapeResult(
                success=False,
                outcome=OUTCOME_ERROR,
                message=f"Failed to fetch the review listing for {app.name}",
                **result_fields,
            )
        if accumulator.stop_reason is StopReason.CANCELLED:
            return ScrapeResult(
                success=False,
                outcome=OUTCOME_CANCELLED,
                message=f"Scrape of {app.name} cancelled after {accumulator.pages_fetched} pages",
                **result_fields,
            )
        if not accumulator.reviews:
            return ScrapeResult(
                success=True,
                outcome=OUTCOME_NO_RECENT,
                message=f"No live reviews found in the last {self.cutoff_days} days for {app.name}",
                **result_fields,
            )
        return ScrapeResult(
            success=True,
            outcome=OUTCOME_OK,
            message=f"Successfully scraped {stored} new reviews for {app.name}",
            **result_fields,
        )

    def _store_reviews(self, app: AppConfig, accumulator: ScrapeAccumulator) -> int:
        if not accumulator.reviews:
            logger.info("No reviews to store for %s", app.name)
            return 0
        try:
            return self.store.insert_reviews(app.name, accumulator.reviews)
        except StoreError as exc:
            logger.error("Error storing reviews for %s: %s", app.name, exc)
            return 0

    def _store_metadata(self, app: AppConfig, accumulator: ScrapeAccumulator) -> None:
        metadata = self.summarizer.summarize(app, accumulator.reviews)
        if metadata is None:
            return
        try:
            self.store.upsert_metadata(metadata)
        except StoreError as exc:
            logger.error("Error storing metadata for %s: %s", app.name, exc)
