"""
Page-by-page scraping loop with the rolling age cutoff.

Pages are requested strictly one after another: page N+1 is only fetched
once every record of page N has been checked against the cutoff.
"""

import logging
import threading
import time
from datetime import date, timedelta
from typing import Callable, Optional

from core.config import settings
from core.fetcher import ListingFetchError, PageFetcher
from services.scraping.extractor import RecordExtractor
from services.scraping.fallback import SampleRotation
from services.scraping.models import ScrapeAccumulator, StopReason

logger = logging.getLogger(__name__)


class PaginationController:
    """
    Drives the fetch -> extract -> cutoff loop for one app.

    Listings are assumed newest-first, so the first record older than the
    cutoff ends the whole run: it and everything after it on that page are
    discarded and no further page is requested.

    Args:
        fetcher: Page fetcher used for every listing page
        extractor: Record extractor bound to the app
        page_url: Maps a 1-based page number to its URL
        max_pages: Hard cap on pages requested in one run
        page_delay: Seconds to wait between successive page fetches
        cutoff_days: Size of the trailing window in days
        clock: Returns today's date
        sleep: Blocking pause used for the politeness delay
    """

    def __init__(
        self,
        fetcher: PageFetcher,
        extractor: RecordExtractor,
        page_url: Callable[[int], str],
        max_pages: Optional[int] = None,
        page_delay: Optional[float] = None,
        cutoff_days: Optional[int] = None,
        clock: Callable[[], date] = date.today,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.fetcher = fetcher
        self.extractor = extractor
        self.page_url = page_url
        self.max_pages = settings.MAX_PAGES if max_pages is None else max_pages
        self.page_delay = settings.PAGE_DELAY_SECONDS if page_delay is None else page_delay
        self.cutoff_days = settings.CUTOFF_DAYS if cutoff_days is None else cutoff_days
        self.clock = clock
        self.sleep = sleep

    def cutoff_date(self) -> date:
        """Oldest date still inside the window; anything strictly earlier stops the run."""
        return self.clock() - timedelta(days=self.cutoff_days)

    def run(self, cancel_event: Optional[threading.Event] = None) -> ScrapeAccumulator:
        """
        Scrape pages until a terminal state is reached.

        Args:
            cancel_event: Checked before each page request; once set, no
                further page is fetched and the run ends as CANCELLED

        Returns:
            The finalized accumulator
        """
        accumulator = ScrapeAccumulator()
        rotation = SampleRotation()
        cutoff = self.cutoff_date()
        logger.info(
            "Scraping up to %d pages, stopping at reviews older than %s",
            self.max_pages, cutoff.isoformat(),
        )

        for page in range(1, self.max_pages + 1):
            if cancel_event is not None and cancel_event.is_set():
                logger.info("Scrape cancelled before page %d", page)
                return accumulator.finalize(StopReason.CANCELLED)

            logger.info("--- Scraping page %d ---", page)
            url = self.page_url(page)
            try:
                html = self.fetcher.fetch_text(url)
            except ListingFetchError as exc:
                if page == 1:
                    logger.error("Failed to fetch first page %s: %s", url, exc)
                    return accumulator.finalize(StopReason.FETCH_ERROR)
                logger.info("Fetch failed on page %d, treating as last page: %s", page, exc)
                return accumulator.finalize(StopReason.EXHAUSTED)

            accumulator.pages_fetched += 1
            page_result = self.extractor.extract_page(html, rotation)
            if not page_result:
                logger.info("No reviews found on page %d. Stopping pagination.", page)
                return accumulator.finalize(StopReason.NO_MORE_REVIEWS)

            accepted = 0
            for review in page_result:
                if review.review_date < cutoff:
                    logger.info(
                        "Found review dated %s older than %d days. Stopping.",
                        review.review_date.isoformat(), self.cutoff_days,
                    )
                    accumulator.stopped_due_to_age = True
                    break
                accumulator.append(review)
                accepted += 1

            logger.info("Page %d: added %d valid reviews", page, accepted)
            if accumulator.stopped_due_to_age:
                return accumulator.finalize(StopReason.AGE_CUTOFF)

            if page < self.max_pages:
                self.sleep(self.page_delay)

        logger.warning("Reached page safety limit (%d)", self.max_pages)
        return accumulator.finalize(StopReason.SAFETY_LIMIT)
