"""
Pydantic schemas for type-safe data structures.
Replaces Dict[str, Any] with validated models for better IDE support and runtime safety.
"""

from app.schemas.scrape import (
    AppMetadataSchema,
    AppsResponse,
    DateRange,
    ReviewSchema,
    ReviewsResponse,
    ScrapeReportSchema,
    ScrapeResult,
)
from app.schemas.validation import AppNameParam

__all__ = [
    # Scrape schemas
    "ScrapeResult",
    "ScrapeReportSchema",
    "DateRange",
    "ReviewSchema",
    "ReviewsResponse",
    "AppMetadataSchema",
    "AppsResponse",
    # Validation schemas
    "AppNameParam",
]
