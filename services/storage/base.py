"""
Base store interface for scraped reviews and app metadata.

Every scrape run replaces an app's data wholesale: clear_app_data() once at
the start, insert_reviews() once at the end, upsert_metadata() for the
aggregate row. All operations accept zero records.
"""

from abc import ABC, abstractmethod
from datetime import date
from typing import Dict, List, Optional, Sequence, Tuple

from services.scraping.models import AppMetadata, Review


class StoreError(Exception):
    """Raised when a store operation fails."""
    pass


class ReviewStore(ABC):
    """Persistence collaborator for the scrape pipeline."""

    @abstractmethod
    def clear_app_data(self, app_name: str) -> Dict[str, int]:
        """
        Delete all reviews and metadata for an app.

        Returns:
            Deleted row counts, keyed "reviews" and "metadata"
        """
        pass

    @abstractmethod
    def insert_reviews(self, app_name: str, reviews: Sequence[Review]) -> int:
        """Store reviews for an app and return how many were stored."""
        pass

    @abstractmethod
    def upsert_metadata(self, metadata: AppMetadata) -> None:
        """Insert or overwrite the single metadata row for metadata.app_name."""
        pass

    @abstractmethod
    def query_date_range(self, app_name: str) -> Optional[Tuple[date, date]]:
        """Earliest and latest stored review date, or None when nothing is stored."""
        pass

    @abstractmethod
    def count_reviews(self, app_name: str) -> int:
        pass

    @abstractmethod
    def get_reviews(self, app_name: str) -> List[Review]:
        """Stored reviews, newest first."""
        pass

    @abstractmethod
    def get_metadata(self, app_name: str) -> Optional[AppMetadata]:
        pass

    @abstractmethod
    def list_apps(self) -> List[str]:
        """App names that have stored reviews or metadata."""
        pass
