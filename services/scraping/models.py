"""
Domain records produced and consumed by one scrape run.

Reviews are immutable once extracted; the accumulator is owned by the
pagination loop and frozen when the loop exits.
"""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Dict, Optional, Sequence, Tuple

MAX_RATING = 5


@dataclass(frozen=True)
class Review:
    """
    A single review in the normalized format.

    review_date is always a calendar date, never a relative phrase.
    synthetic marks records substituted from the sample pool instead of
    being extracted from live markup.
    """

    source_app: str
    store_name: str
    country_code: str
    rating: int
    content: str
    review_date: date
    synthetic: bool = False

    def __post_init__(self):
        # Frozen dataclass: clamp through object.__setattr__
        object.__setattr__(self, "rating", max(0, min(int(self.rating), MAX_RATING)))

    def to_dict(self) -> dict:
        return {
            "source_app": self.source_app,
            "store_name": self.store_name,
            "country_code": self.country_code,
            "rating": self.rating,
            "content": self.content,
            "review_date": self.review_date.isoformat(),
            "synthetic": self.synthetic,
        }


@dataclass
class AppMetadata:
    """Aggregate counters for one app; one row per app, overwritten each run."""

    app_name: str
    total_reviews: int
    average_rating: float
    star_histogram: Dict[int, int] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "app_name": self.app_name,
            "total_reviews": self.total_reviews,
            "average_rating": self.average_rating,
            "star_histogram": {str(k): v for k, v in sorted(self.star_histogram.items(), reverse=True)},
        }


class StopReason(str, Enum):
    """Terminal states of the pagination loop."""

    FETCH_ERROR = "fetch_error"
    EXHAUSTED = "exhausted"
    NO_MORE_REVIEWS = "no_more_reviews"
    AGE_CUTOFF = "age_cutoff"
    SAFETY_LIMIT = "safety_limit"
    CANCELLED = "cancelled"


class AccumulatorFrozenError(RuntimeError):
    """Raised when appending to an accumulator after the loop has finished."""
    pass


@dataclass
class ScrapeAccumulator:
    """All accepted reviews of one run, in encounter order."""

    reviews: Sequence[Review] = field(default_factory=list)
    stopped_due_to_age: bool = False
    pages_fetched: int = 0
    stop_reason: Optional[StopReason] = None
    _finalized: bool = False

    def append(self, review: Review) -> None:
        if self._finalized:
            raise AccumulatorFrozenError("Cannot append to a finalized accumulator")
        self.reviews.append(review)

    def finalize(self, reason: StopReason) -> "ScrapeAccumulator":
        """Record the terminal state and freeze the review sequence."""
        self.stop_reason = reason
        self.reviews = tuple(self.reviews)
        self._finalized = True
        return self

    @property
    def finalized(self) -> bool:
        return self._finalized

    @property
    def synthetic_count(self) -> int:
        return sum(1 for review in self.reviews if review.synthetic)

    def __len__(self) -> int:
        return len(self.reviews)


@dataclass(frozen=True)
class ScrapeReport:
    """Counts derived from one run plus the stored date range."""

    this_month_count: int
    last_30_days_count: int
    total_stored_count: int
    date_range: Optional[Tuple[date, date]] = None

    def to_dict(self) -> dict:
        return {
            "this_month": self.this_month_count,
            "last_30_days": self.last_30_days_count,
            "total_stored": self.total_stored_count,
            "date_range": {
                "min_date": self.date_range[0].isoformat() if self.date_range else None,
                "max_date": self.date_range[1].isoformat() if self.date_range else None,
            },
        }
