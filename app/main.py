import logging
from functools import lru_cache
from typing import Annotated

from fastapi import Depends, FastAPI, Path as PathParam, Query
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from app.schemas import (
    AppMetadataSchema,
    AppNameParam,
    AppsResponse,
    ReviewSchema,
    ReviewsResponse,
)
from core.config import settings
from services.scraping.pipeline import ReviewScrapeService
from services.storage import ReviewStore, SQLiteReviewStore, StoreError

app = FastAPI(title=settings.PROJECT_NAME)
logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_store() -> ReviewStore:
    """Process-wide store, opened lazily on first use."""
    return SQLiteReviewStore(settings.DATABASE_PATH)


def get_scrape_service(store: ReviewStore = Depends(get_store)) -> ReviewScrapeService:
    return ReviewScrapeService(store=store)


def _validate_app_name(app_name: str) -> str | JSONResponse:
    try:
        return AppNameParam(app_name=app_name).app_name
    except ValidationError as exc:
        return JSONResponse(
            {"detail": "Invalid app name", "errors": exc.errors(include_context=False)},
            status_code=400,
        )


@app.get("/api/apps")
def api_list_apps(service: ReviewScrapeService = Depends(get_scrape_service)):
    """List apps available for scraping."""
    response = AppsResponse(apps=service.list_available_apps(), default=service.registry.default_name)
    return JSONResponse(response.model_dump())


@app.post("/api/apps/{app_name}/scrape")
def api_scrape_app(
    app_name: Annotated[str, PathParam(min_length=1, max_length=80)],
    max_pages: Annotated[int | None, Query(ge=1, le=50, description="Page cap for this run")] = None,
    service: ReviewScrapeService = Depends(get_scrape_service),
):
    """
    Clear and re-scrape one app's reviews.

    Runs synchronously in the threadpool; the response is always a
    ScrapeResult, with success=False only for hard failures.
    """
    validated = _validate_app_name(app_name)
    if isinstance(validated, JSONResponse):
        return validated

    result = service.scrape_app(validated, max_pages=max_pages)
    return JSONResponse(result.model_dump(mode="json"))


@app.get("/api/apps/{app_name}/metadata")
def api_app_metadata(
    app_name: Annotated[str, PathParam(min_length=1, max_length=80)],
    service: ReviewScrapeService = Depends(get_scrape_service),
):
    """Stored aggregate counters for one app."""
    validated = _validate_app_name(app_name)
    if isinstance(validated, JSONResponse):
        return validated

    try:
        metadata = service.store.get_metadata(validated)
    except StoreError as exc:
        logger.error("Error reading metadata for %s: %s", validated, exc)
        return JSONResponse({"detail": "Storage error"}, status_code=503)
    if metadata is None:
        return JSONResponse({"detail": "No metadata for app"}, status_code=404)
    return JSONResponse(AppMetadataSchema.from_metadata(metadata).model_dump(mode="json"))


@app.get("/api/apps/{app_name}/reviews")
def api_app_reviews(
    app_name: Annotated[str, PathParam(min_length=1, max_length=80)],
    limit: Annotated[int, Query(ge=1, le=500, description="Max results")] = 50,
    offset: Annotated[int, Query(ge=0, description="Results to skip")] = 0,
    service: ReviewScrapeService = Depends(get_scrape_service),
):
    """Stored reviews for one app, newest first."""
    validated = _validate_app_name(app_name)
    if isinstance(validated, JSONResponse):
        return validated

    try:
        reviews = service.store.get_reviews(validated)
    except StoreError as exc:
        logger.error("Error reading reviews for %s: %s", validated, exc)
        return JSONResponse({"detail": "Storage error"}, status_code=503)

    known = service.registry.get(validated) is not None
    if not reviews and not known:
        return JSONResponse({"detail": "Unknown app"}, status_code=404)

    page = reviews[offset:offset + limit]
    response = ReviewsResponse(
        app_name=validated,
        count=len(reviews),
        reviews=[ReviewSchema.from_review(review) for review in page],
    )
    return JSONResponse(response.model_dump(mode="json"))


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("app.main:app", host="0.0.0.0", port=8000, reload=True)
