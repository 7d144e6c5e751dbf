"""
Tests for the HTTP endpoints.
"""

import pytest
from fastapi.testclient import TestClient

from app.main import app, get_scrape_service
from services.scraping.models import AppMetadata, Review
from services.scraping.pipeline import ReviewScrapeService
from services.storage import InMemoryReviewStore, StoreError


@pytest.fixture
def service(registry, memory_store, fake_fetcher_factory, make_dated_page, days_ago, clock, no_sleep):
    fetcher = fake_fetcher_factory(
        {1: make_dated_page([days_ago(1), days_ago(3), days_ago(40)])},
        metadata_html="<h1>Reviews (8)</h1> Overall rating 5.0",
    )
    return ReviewScrapeService(
        store=memory_store,
        registry=registry,
        fetcher=fetcher,
        clock=clock,
        sleep=no_sleep,
    )


@pytest.fixture
def client(service):
    app.dependency_overrides[get_scrape_service] = lambda: service
    yield TestClient(app)
    app.dependency_overrides.clear()


class TestListApps:
    """Tests for GET /api/apps."""

    def test_lists_registered_apps(self, client):
        """Should list apps and name the default."""
        response = client.get("/api/apps")

        assert response.status_code == 200
        assert response.json() == {"apps": ["Vidify"], "default": "Vidify"}


class TestScrapeEndpoint:
    """Tests for POST /api/apps/{app_name}/scrape."""

    def test_scrape(self, client, memory_store):
        """Should run the scrape and return the ScrapeResult."""
        response = client.post("/api/apps/Vidify/scrape")

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["scraped_count"] == 2
        assert data["outcome"] == "ok"
        assert data["report"]["date_range"] == {"min_date": "2024-03-12", "max_date": "2024-03-14"}
        assert memory_store.count_reviews("Vidify") == 2

    def test_unknown_app_is_structured_failure(self, client):
        """Should report unknown apps in the result body."""
        response = client.post("/api/apps/Nope/scrape")

        assert response.status_code == 200
        assert response.json()["success"] is False
        assert response.json()["outcome"] == "error"

    def test_invalid_app_name(self, client):
        """Should reject malformed names with 400."""
        response = client.post("/api/apps/<script>/scrape")

        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid app name"

    def test_max_pages_bounds(self, client):
        """Should validate the page cap query parameter."""
        assert client.post("/api/apps/Vidify/scrape?max_pages=0").status_code == 422
        assert client.post("/api/apps/Vidify/scrape?max_pages=1").status_code == 200


class TestMetadataEndpoint:
    """Tests for GET /api/apps/{app_name}/metadata."""

    def test_returns_stored_metadata(self, client, memory_store):
        """Should return the stored counters."""
        memory_store.upsert_metadata(AppMetadata("Vidify", 8, 5.0, {5: 8, 4: 0, 3: 0, 2: 0, 1: 0}))

        response = client.get("/api/apps/Vidify/metadata")

        assert response.status_code == 200
        data = response.json()
        assert data["total_reviews"] == 8
        assert data["star_histogram"]["5"] == 8

    def test_missing_metadata(self, client):
        """Should return 404 before the first scrape."""
        assert client.get("/api/apps/Vidify/metadata").status_code == 404

    def test_store_error(self, registry, clock):
        """Should return 503 when the store cannot be read."""
        class BrokenStore(InMemoryReviewStore):
            def get_metadata(self, app_name):
                raise StoreError("locked")

        broken = ReviewScrapeService(store=BrokenStore(), registry=registry, clock=clock)
        app.dependency_overrides[get_scrape_service] = lambda: broken
        try:
            response = TestClient(app).get("/api/apps/Vidify/metadata")
        finally:
            app.dependency_overrides.clear()

        assert response.status_code == 503


class TestReviewsEndpoint:
    """Tests for GET /api/apps/{app_name}/reviews."""

    def test_after_scrape(self, client):
        """Should return stored reviews newest first."""
        client.post("/api/apps/Vidify/scrape")

        response = client.get("/api/apps/Vidify/reviews")

        assert response.status_code == 200
        data = response.json()
        assert data["count"] == 2
        assert [r["review_date"] for r in data["reviews"]] == ["2024-03-14", "2024-03-12"]

    def test_pagination(self, client, memory_store, today):
        """Should apply limit and offset."""
        memory_store.insert_reviews("Vidify", [
            Review("Vidify", "S", "US", 5, f"r{i}", today) for i in range(5)
        ])

        data = client.get("/api/apps/Vidify/reviews?limit=2&offset=1").json()

        assert data["count"] == 5
        assert len(data["reviews"]) == 2

    def test_registered_app_without_reviews(self, client):
        """Should return an empty list for a known app."""
        response = client.get("/api/apps/Vidify/reviews")

        assert response.status_code == 200
        assert response.json()["reviews"] == []

    def test_unknown_app(self, client):
        """Should return 404 for apps with no data and no registration."""
        assert client.get("/api/apps/Nope/reviews").status_code == 404
