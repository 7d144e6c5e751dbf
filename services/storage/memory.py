import threading
from datetime import date
from typing import Dict, List, Optional, Sequence, Tuple

from services.scraping.models import AppMetadata, Review
from services.storage.base import ReviewStore


class InMemoryReviewStore(ReviewStore):
    """Thread-safe dict-backed store, used for dry runs and tests."""

    def __init__(self):
        self._reviews: Dict[str, List[Review]] = {}
        self._metadata: Dict[str, AppMetadata] = {}
        self._lock = threading.RLock()

    def clear_app_data(self, app_name: str) -> Dict[str, int]:
        with self._lock:
            reviews = self._reviews.pop(app_name, [])
            metadata = self._metadata.pop(app_name, None)
            return {"reviews": len(reviews), "metadata": 1 if metadata else 0}

    def insert_reviews(self, app_name: str, reviews: Sequence[Review]) -> int:
        with self._lock:
            self._reviews.setdefault(app_name, []).extend(reviews)
            return len(reviews)

    def upsert_metadata(self, metadata: AppMetadata) -> None:
        with self._lock:
            self._metadata[metadata.app_name] = metadata

    def query_date_range(self, app_name: str) -> Optional[Tuple[date, date]]:
        with self._lock:
            dates = [review.review_date for review in self._reviews.get(app_name, [])]
        if not dates:
            return None
        return min(dates), max(dates)

    def count_reviews(self, app_name: str) -> int:
        with self._lock:
            return len(self._reviews.get(app_name, []))

    def get_reviews(self, app_name: str) -> List[Review]:
        with self._lock:
            reviews = list(self._reviews.get(app_name, []))
        return sorted(reviews, key=lambda r: r.review_date, reverse=True)

    def get_metadata(self, app_name: str) -> Optional[AppMetadata]:
        with self._lock:
            return self._metadata.get(app_name)

    def list_apps(self) -> List[str]:
        with self._lock:
            names = set(self._metadata) | {name for name, rows in self._reviews.items() if rows}
        return sorted(names)
