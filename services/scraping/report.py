import logging
from datetime import date
from typing import Callable, Optional, Sequence

from services.scraping.models import Review, ScrapeReport
from services.storage.base import ReviewStore, StoreError

logger = logging.getLogger(__name__)


def count_this_month(reviews: Sequence[Review], today: date) -> int:
    """Reviews dated on or after the first day of today's calendar month."""
    first_of_month = today.replace(day=1)
    return sum(1 for review in reviews if review.review_date >= first_of_month)


def build_report(
    app_name: str,
    reviews: Sequence[Review],
    store: ReviewStore,
    clock: Callable[[], date] = date.today,
    stored_count: Optional[int] = None,
) -> ScrapeReport:
    """
    Summarize one run.

    last_30_days_count is simply the number of accepted reviews, since the
    cutoff already bounds them to the window. The date range is read back
    from the store rather than from the in-memory reviews. stored_count is
    what the store actually accepted; it defaults to len(reviews).
    """
    today = clock()
    try:
        date_range = store.query_date_range(app_name)
    except StoreError as exc:
        logger.error("Error reading stored date range for %s: %s", app_name, exc)
        date_range = None

    report = ScrapeReport(
        this_month_count=count_this_month(reviews, today),
        last_30_days_count=len(reviews),
        total_stored_count=len(reviews) if stored_count is None else stored_count,
        date_range=date_range,
    )
    logger.info(
        "Report for %s: this month=%d, last 30 days=%d, stored=%d, range=%s",
        app_name,
        report.this_month_count,
        report.last_30_days_count,
        report.total_stored_count,
        date_range,
    )
    return report
