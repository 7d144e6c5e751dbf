"""
Unit tests for metadata summarization and the run report.
"""

from datetime import date

import pytest

from services.scraping.metadata import (
    MetadataSummarizer,
    parse_average_rating,
    parse_total_reviews,
    placeholder_histogram,
    tally_histogram,
)
from services.scraping.models import Review
from services.scraping.report import build_report, count_this_month
from services.storage import StoreError

LANDING_PAGE = """
<html><body>
  <h2>Reviews (128)</h2>
  <div class="rating-summary">Overall rating <span>4.7</span></div>
  <div>Overall rating
    4.7</div>
</body></html>
"""


def make_review(review_date, rating=5):
    return Review("Vidify", "Video Hub", "DE", rating, "ok", review_date)


class TestPatterns:
    """Tests for the independent counter searches."""

    def test_total_reviews(self):
        """Should read the total from 'Reviews (N)'."""
        assert parse_total_reviews(LANDING_PAGE, default=8) == 128

    def test_total_reviews_default(self):
        """Should use the default when the pattern is absent."""
        assert parse_total_reviews("<h2>Reviews</h2>", default=8) == 8

    def test_average_rating(self):
        """Should read the rating following 'Overall rating'."""
        assert parse_average_rating(LANDING_PAGE, default=5.0) == 4.7

    def test_average_rating_integer(self):
        """Should accept whole-number ratings."""
        assert parse_average_rating("Overall rating 5", default=0.0) == 5.0

    def test_average_rating_default(self):
        """Should use the default when the pattern is absent."""
        assert parse_average_rating("<p>Rated 4.9 out of 5</p>", default=5.0) == 5.0

    def test_average_rating_above_scale_uses_default(self):
        """Should ignore ratings that cannot be on a five-star scale."""
        assert parse_average_rating("Overall rating 42", default=5.0) == 5.0

    def test_patterns_are_independent(self):
        """Should fall back per field, not for both at once."""
        html = "Reviews (3)"
        assert parse_total_reviews(html, default=8) == 3
        assert parse_average_rating(html, default=5.0) == 5.0


class TestHistograms:
    """Tests for star histogram aggregations."""

    def test_placeholder_puts_everything_on_five(self):
        """Should assign the full total to 5 stars."""
        assert placeholder_histogram(12) == {5: 12, 4: 0, 3: 0, 2: 0, 1: 0}

    def test_placeholder_ignores_reviews(self, today):
        """Should not derive counts from scraped ratings."""
        reviews = [make_review(today, rating=2)]
        assert placeholder_histogram(4, reviews)[5] == 4

    def test_tally_counts_ratings(self, today):
        """Should count accepted reviews per rating."""
        reviews = [make_review(today, r) for r in (5, 5, 3, 1)]
        assert tally_histogram(100, reviews) == {5: 2, 4: 0, 3: 1, 2: 0, 1: 1}


class TestMetadataSummarizer:
    """Tests for MetadataSummarizer."""

    def test_summarize(self, fake_fetcher_factory, app_config):
        """Should build metadata from the landing page."""
        fetcher = fake_fetcher_factory(metadata_html=LANDING_PAGE)
        metadata = MetadataSummarizer(fetcher).summarize(app_config)

        assert metadata.app_name == "Vidify"
        assert metadata.total_reviews == 128
        assert metadata.average_rating == 4.7
        assert metadata.star_histogram == {5: 128, 4: 0, 3: 0, 2: 0, 1: 0}
        assert fetcher.requested == ["https://apps.shopify.com/vidify/reviews"]

    def test_summarize_uses_app_defaults(self, fake_fetcher_factory, app_config):
        """Should fall back to the app's configured counters."""
        fetcher = fake_fetcher_factory(metadata_html="<html></html>")
        metadata = MetadataSummarizer(fetcher).summarize(app_config)

        assert metadata.total_reviews == 8
        assert metadata.average_rating == 5.0

    def test_fetch_failure_returns_none(self, fake_fetcher_factory, app_config):
        """Should skip metadata when the landing page cannot be fetched."""
        fetcher = fake_fetcher_factory(metadata_html=None)
        assert MetadataSummarizer(fetcher).summarize(app_config) is None

    def test_custom_histogram(self, fake_fetcher_factory, app_config, today):
        """Should delegate the histogram to the injected aggregation."""
        fetcher = fake_fetcher_factory(metadata_html=LANDING_PAGE)
        summarizer = MetadataSummarizer(fetcher, histogram=tally_histogram)
        metadata = summarizer.summarize(app_config, [make_review(today, 4)])

        assert metadata.star_histogram == {5: 0, 4: 1, 3: 0, 2: 0, 1: 0}

    def test_to_dict(self, fake_fetcher_factory, app_config):
        """Should serialize the histogram with string keys, 5 first."""
        fetcher = fake_fetcher_factory(metadata_html=LANDING_PAGE)
        data = MetadataSummarizer(fetcher).summarize(app_config).to_dict()

        assert list(data["star_histogram"]) == ["5", "4", "3", "2", "1"]


class TestReport:
    """Tests for the per-run report."""

    def test_count_this_month(self, today):
        """Should count reviews on or after the first of the current month."""
        reviews = [
            make_review(date(2024, 3, 15)),
            make_review(date(2024, 3, 1)),
            make_review(date(2024, 2, 29)),
            make_review(date(2024, 2, 20)),
        ]
        assert count_this_month(reviews, today) == 2

    def test_build_report(self, memory_store, clock):
        """Should derive counts from the run and the range from the store."""
        reviews = [make_review(date(2024, 3, 10)), make_review(date(2024, 2, 20))]
        memory_store.insert_reviews("Vidify", reviews)

        report = build_report("Vidify", reviews, memory_store, clock=clock)

        assert report.this_month_count == 1
        assert report.last_30_days_count == 2
        assert report.total_stored_count == 2
        assert report.date_range == (date(2024, 2, 20), date(2024, 3, 10))

    def test_stored_count_overrides_review_count(self, memory_store, clock, today):
        """Should report what the store accepted, not what was scraped."""
        report = build_report("Vidify", [make_review(today)], memory_store, clock=clock, stored_count=0)

        assert report.total_stored_count == 0
        assert report.last_30_days_count == 1

    def test_empty_run(self, memory_store, clock):
        """Should report zeros and no date range."""
        report = build_report("Vidify", [], memory_store, clock=clock)

        assert report.this_month_count == 0
        assert report.total_stored_count == 0
        assert report.date_range is None
        assert report.to_dict()["date_range"] == {"min_date": None, "max_date": None}

    def test_store_error_leaves_range_empty(self, memory_store, clock, today):
        """Should still report counts when the range query fails."""
        class BrokenStore(type(memory_store)):
            def query_date_range(self, app_name):
                raise StoreError("database is locked")

        report = build_report("Vidify", [make_review(today)], BrokenStore(), clock=clock)

        assert report.total_stored_count == 1
        assert report.date_range is None

    def test_out_of_range_rating_serializes(self, fake_fetcher_factory, app_config):
        """Should keep drifted markup from producing an invalid metadata row."""
        from app.schemas import AppMetadataSchema

        fetcher = fake_fetcher_factory(metadata_html="Reviews (8) Overall rating 42")
        metadata = MetadataSummarizer(fetcher).summarize(app_config)

        assert AppMetadataSchema.from_metadata(metadata).average_rating == 5.0
