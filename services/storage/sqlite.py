"""
SQLite-backed review store.

One database file holds every app; rows are scoped by app_name. Dates are
stored as ISO strings so MIN/MAX and range comparisons work lexically.
"""

import logging
import sqlite3
from contextlib import contextmanager
from datetime import date
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Sequence, Tuple

from services.scraping.models import AppMetadata, Review
from services.storage.base import ReviewStore, StoreError

logger = logging.getLogger(__name__)

SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS reviews (
        id              INTEGER PRIMARY KEY AUTOINCREMENT,
        app_name        TEXT NOT NULL,
        store_name      TEXT NOT NULL,
        country         TEXT NOT NULL,
        rating          INTEGER NOT NULL,
        review_content  TEXT,
        review_date     TEXT NOT NULL,
        synthetic       INTEGER NOT NULL DEFAULT 0,
        created_at      TEXT DEFAULT CURRENT_TIMESTAMP
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_reviews_app_date ON reviews (app_name, review_date)",
    """
    CREATE TABLE IF NOT EXISTS app_metadata (
        app_name         TEXT PRIMARY KEY,
        total_reviews    INTEGER NOT NULL DEFAULT 0,
        overall_rating   REAL NOT NULL DEFAULT 0.0,
        five_star_total  INTEGER NOT NULL DEFAULT 0,
        four_star_total  INTEGER NOT NULL DEFAULT 0,
        three_star_total INTEGER NOT NULL DEFAULT 0,
        two_star_total   INTEGER NOT NULL DEFAULT 0,
        one_star_total   INTEGER NOT NULL DEFAULT 0,
        last_updated     TEXT DEFAULT CURRENT_TIMESTAMP
    )
    """,
)

# Histogram rating -> metadata column
STAR_COLUMNS = {
    5: "five_star_total",
    4: "four_star_total",
    3: "three_star_total",
    2: "two_star_total",
    1: "one_star_total",
}


class SQLiteReviewStore(ReviewStore):
    """
    Review store persisted in a single SQLite file.

    Each operation opens its own connection, so the store can be shared
    between the request threads of the web app.
    """

    def __init__(self, db_path: Path | str):
        if str(db_path) == ":memory:":
            raise ValueError("SQLiteReviewStore needs a database file; use InMemoryReviewStore instead")
        self.db_path = Path(db_path)
        self.initialize()

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        try:
            conn = sqlite3.connect(self.db_path)
        except sqlite3.Error as exc:
            raise StoreError(f"Cannot open database {self.db_path}: {exc}") from exc
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as exc:
            conn.rollback()
            raise StoreError(str(exc)) from exc
        finally:
            conn.close()

    def initialize(self) -> None:
        """Create tables if they do not exist yet. Safe to call repeatedly."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        with self._connect() as conn:
            for statement in SCHEMA:
                conn.execute(statement)
        logger.debug("Database initialized at %s", self.db_path)

    def clear_app_data(self, app_name: str) -> Dict[str, int]:
        with self._connect() as conn:
            reviews_deleted = conn.execute(
                "DELETE FROM reviews WHERE app_name = ?", (app_name,)
            ).rowcount
            metadata_deleted = conn.execute(
                "DELETE FROM app_metadata WHERE app_name = ?", (app_name,)
            ).rowcount
        logger.info(
            "Cleared %d existing reviews and %d metadata entries for %s",
            reviews_deleted, metadata_deleted, app_name,
        )
        return {"reviews": reviews_deleted, "metadata": metadata_deleted}

    def insert_reviews(self, app_name: str, reviews: Sequence[Review]) -> int:
        if not reviews:
            return 0
        rows = [
            (
                app_name,
                review.store_name,
                review.country_code,
                review.rating,
                review.content,
                review.review_date.isoformat(),
                int(review.synthetic),
            )
            for review in reviews
        ]
        with self._connect() as conn:
            conn.executemany(
                """
                INSERT INTO reviews
                (app_name, store_name, country, rating, review_content, review_date, synthetic)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                rows,
            )
        logger.info("Stored %d reviews for %s", len(rows), app_name)
        return len(rows)

    def upsert_metadata(self, metadata: AppMetadata) -> None:
        stars = [metadata.star_histogram.get(rating, 0) for rating in STAR_COLUMNS]
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO app_metadata
                (app_name, total_reviews, overall_rating, five_star_total, four_star_total,
                 three_star_total, two_star_total, one_star_total, last_updated)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, CURRENT_TIMESTAMP)
                ON CONFLICT(app_name) DO UPDATE SET
                    total_reviews = excluded.total_reviews,
                    overall_rating = excluded.overall_rating,
                    five_star_total = excluded.five_star_total,
                    four_star_total = excluded.four_star_total,
                    three_star_total = excluded.three_star_total,
                    two_star_total = excluded.two_star_total,
                    one_star_total = excluded.one_star_total,
                    last_updated = CURRENT_TIMESTAMP
                """,
                (metadata.app_name, metadata.total_reviews, metadata.average_rating, *stars),
            )
        logger.info(
            "Stored metadata for %s: %d total reviews, %.1f rating",
            metadata.app_name, metadata.total_reviews, metadata.average_rating,
        )

    def query_date_range(self, app_name: str) -> Optional[Tuple[date, date]]:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT MIN(review_date) AS min_date, MAX(review_date) AS max_date "
                "FROM reviews WHERE app_name = ?",
                (app_name,),
            ).fetchone()
        if row is None or row["min_date"] is None:
            return None
        return date.fromisoformat(row["min_date"]), date.fromisoformat(row["max_date"])

    def count_reviews(self, app_name: str) -> int:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT COUNT(*) FROM reviews WHERE app_name = ?", (app_name,)
            ).fetchone()
        return row[0]

    def get_reviews(self, app_name: str) -> List[Review]:
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT * FROM reviews WHERE app_name = ? ORDER BY review_date DESC, id ASC",
                (app_name,),
            ).fetchall()
        return [
            Review(
                source_app=row["app_name"],
                store_name=row["store_name"],
                country_code=row["country"],
                rating=row["rating"],
                content=row["review_content"] or "",
                review_date=date.fromisoformat(row["review_date"]),
                synthetic=bool(row["synthetic"]),
            )
            for row in rows
        ]

    def get_metadata(self, app_name: str) -> Optional[AppMetadata]:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM app_metadata WHERE app_name = ?", (app_name,)
            ).fetchone()
        if row is None:
            return None
        return AppMetadata(
            app_name=row["app_name"],
            total_reviews=row["total_reviews"],
            average_rating=row["overall_rating"],
            star_histogram={rating: row[column] for rating, column in STAR_COLUMNS.items()},
        )

    def list_apps(self) -> List[str]:
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT app_name FROM reviews UNION SELECT app_name FROM app_metadata ORDER BY app_name"
            ).fetchall()
        return [row[0] for row in rows]
