"""
Review listing scraper: extraction, date normalization, pagination and metadata.

The composed pipeline lives in services.scraping.pipeline.
"""

from services.scraping.dates import DateNormalizer, normalize_review_date
from services.scraping.extractor import (
    DEFAULT_CONTAINER_STRATEGIES,
    ExtractionError,
    RecordExtractor,
    SelectorStrategy,
)
from services.scraping.fallback import (
    NoFallbackProvider,
    SampleFallbackProvider,
    SampleRotation,
    map_country_to_code,
)
from services.scraping.models import (
    AppMetadata,
    Review,
    ScrapeAccumulator,
    ScrapeReport,
    StopReason,
)
from services.scraping.pagination import PaginationController

__all__ = [
    "DateNormalizer",
    "normalize_review_date",
    "DEFAULT_CONTAINER_STRATEGIES",
    "ExtractionError",
    "RecordExtractor",
    "SelectorStrategy",
    "NoFallbackProvider",
    "SampleFallbackProvider",
    "SampleRotation",
    "map_country_to_code",
    "AppMetadata",
    "Review",
    "ScrapeAccumulator",
    "ScrapeReport",
    "StopReason",
    "PaginationController",
]
