"""
Aggregate app counters scraped from the listing landing page.

Total review count and average rating are read with two independent pattern
searches, each falling back to the app's configured default. The star
histogram is produced by a pluggable aggregation; the default is a
placeholder that puts every review on 5 stars.
"""

import logging
import re
from typing import Callable, Dict, Iterable, Optional

from core.app_registry import AppConfig
from core.fetcher import ListingFetchError, PageFetcher
from services.scraping.models import MAX_RATING, AppMetadata, Review

logger = logging.getLogger(__name__)

TOTAL_REVIEWS_PATTERN = re.compile(r"Reviews \((\d+)\)")
AVERAGE_RATING_PATTERN = re.compile(r"Overall rating\s*(\d+(?:\.\d+)?)")

# (total_reviews, scraped reviews) -> {rating: count}
HistogramAggregation = Callable[[int, Iterable[Review]], Dict[int, int]]


def _empty_histogram() -> Dict[int, int]:
    return {rating: 0 for rating in range(MAX_RATING, 0, -1)}


def placeholder_histogram(total_reviews: int, reviews: Iterable[Review] = ()) -> Dict[int, int]:
    """All weight on 5 stars. Not a real per-rating tally."""
    histogram = _empty_histogram()
    histogram[MAX_RATING] = total_reviews
    return histogram


def tally_histogram(total_reviews: int, reviews: Iterable[Review] = ()) -> Dict[int, int]:
    """Per-rating counts over the reviews accepted in this run."""
    histogram = _empty_histogram()
    for review in reviews:
        if review.rating in histogram:
            histogram[review.rating] += 1
    return histogram


def parse_total_reviews(html: str, default: int) -> int:
    match = TOTAL_REVIEWS_PATTERN.search(html)
    return int(match.group(1)) if match else default


def parse_average_rating(html: str, default: float) -> float:
    """Average rating from the page; values outside 0-5 are treated as absent."""
    match = AVERAGE_RATING_PATTERN.search(html)
    if not match:
        return default
    rating = float(match.group(1))
    if rating > MAX_RATING:
        logger.warning("Ignoring out-of-range average rating %s", match.group(1))
        return default
    return rating


class MetadataSummarizer:
    """Fetches one landing page and derives the AppMetadata row for an app."""

    def __init__(
        self,
        fetcher: PageFetcher,
        histogram: HistogramAggregation = placeholder_histogram,
    ):
        self.fetcher = fetcher
        self.histogram = histogram

    def summarize(self, app: AppConfig, reviews: Iterable[Review] = ()) -> Optional[AppMetadata]:
        """
        Build the metadata row for one app.

        Returns:
            AppMetadata, or None when the landing page could not be fetched
        """
        url = app.metadata_url()
        try:
            html = self.fetcher.fetch_text(url)
        except ListingFetchError as exc:
            logger.warning("Failed to fetch metadata page %s: %s", url, exc)
            return None

        total_reviews = parse_total_reviews(html, app.default_total_reviews)
        average_rating = parse_average_rating(html, app.default_average_rating)
        histogram = self.histogram(total_reviews, reviews)

        logger.info(
            "Metadata for %s: %d total reviews, %.1f rating, distribution %s",
            app.name, total_reviews, average_rating, histogram,
        )
        return AppMetadata(
            app_name=app.name,
            total_reviews=total_reviews,
            average_rating=average_rating,
            star_histogram=histogram,
        )
