"""
Persistence for scraped reviews and app metadata.
"""

from services.storage.base import ReviewStore, StoreError
from services.storage.memory import InMemoryReviewStore
from services.storage.sqlite import SQLiteReviewStore

__all__ = ["ReviewStore", "StoreError", "InMemoryReviewStore", "SQLiteReviewStore"]
