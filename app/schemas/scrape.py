"""
Pydantic models for scrape results and stored review data.
Provides type safety and validation for the JSON responses of the API.
"""

from datetime import date
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from services.scraping.models import AppMetadata, Review, ScrapeReport


class DateRange(BaseModel):
    """Earliest and latest stored review dates."""

    min_date: date | None = Field(None, description="Oldest stored review date")
    max_date: date | None = Field(None, description="Newest stored review date")


class ScrapeReportSchema(BaseModel):
    """Counts derived from one scrape run."""

    this_month: int = Field(0, ge=0, description="Reviews dated on or after the 1st of the current month")
    last_30_days: int = Field(0, ge=0, description="Reviews inside the trailing cutoff window")
    total_stored: int = Field(0, ge=0, description="Reviews written to the store in this run")
    date_range: DateRange = Field(default_factory=DateRange, description="Stored date range")

    @classmethod
    def from_report(cls, report: ScrapeReport) -> "ScrapeReportSchema":
        date_range = DateRange()
        if report.date_range:
            date_range = DateRange(min_date=report.date_range[0], max_date=report.date_range[1])
        return cls(
            this_month=report.this_month_count,
            last_30_days=report.last_30_days_count,
            total_stored=report.total_stored_count,
            date_range=date_range,
        )


class ScrapeResult(BaseModel):
    """Structured outcome of a scrape trigger. Never replaced by an exception."""

    success: bool = Field(..., description="False only for hard failures")
    scraped_count: int = Field(0, ge=0, description="Number of reviews stored")
    message: str | None = Field(None, description="Human-readable status text")
    outcome: str = Field("ok", description="ok, no_recent_reviews, cancelled or error")
    stop_reason: str | None = Field(None, description="Terminal state of the pagination loop")
    stopped_due_to_age: bool = Field(False, description="Whether the age cutoff ended pagination")
    pages_fetched: int = Field(0, ge=0, description="Listing pages fetched successfully")
    synthetic_count: int = Field(0, ge=0, description="Stored reviews that came from the sample pool")
    report: ScrapeReportSchema | None = Field(None, description="Counts for this run")

    class Config:
        json_schema_extra = {
            "example": {
                "success": True,
                "scraped_count": 12,
                "message": "Successfully scraped 12 new reviews for Vidify",
                "outcome": "ok",
                "stop_reason": "age_cutoff",
                "stopped_due_to_age": True,
                "pages_fetched": 2,
                "synthetic_count": 0,
                "report": {
                    "this_month": 5,
                    "last_30_days": 12,
                    "total_stored": 12,
                    "date_range": {"min_date": "2024-02-15", "max_date": "2024-03-14"},
                },
            }
        }


class ReviewSchema(BaseModel):
    """A stored review."""

    source_app: str
    store_name: str
    country_code: str = Field(..., min_length=2, max_length=2)
    rating: int = Field(..., ge=0, le=5)
    content: str
    review_date: date
    synthetic: bool = False

    @classmethod
    def from_review(cls, review: Review) -> "ReviewSchema":
        return cls(
            source_app=review.source_app,
            store_name=review.store_name,
            country_code=review.country_code,
            rating=review.rating,
            content=review.content,
            review_date=review.review_date,
            synthetic=review.synthetic,
        )


class ReviewsResponse(BaseModel):
    """Response from the stored reviews endpoint."""

    app_name: str
    count: int = Field(0, ge=0)
    reviews: List[ReviewSchema] = Field(default_factory=list)


class AppMetadataSchema(BaseModel):
    """Aggregate counters stored for one app."""

    app_name: str
    total_reviews: int = Field(0, ge=0)
    average_rating: float = Field(0.0, ge=0.0, le=5.0)
    star_histogram: Dict[int, int] = Field(default_factory=dict, description="Rating -> count")

    @classmethod
    def from_metadata(cls, metadata: AppMetadata) -> "AppMetadataSchema":
        return cls(
            app_name=metadata.app_name,
            total_reviews=metadata.total_reviews,
            average_rating=metadata.average_rating,
            star_histogram=dict(metadata.star_histogram),
        )


class AppsResponse(BaseModel):
    """Response from the app listing endpoint."""

    apps: List[str] = Field(default_factory=list)
    default: Optional[str] = None
