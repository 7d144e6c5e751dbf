"""
Pytest configuration and shared fixtures.
"""

import re
from datetime import date, timedelta
from pathlib import Path

import pytest

from core.app_registry import AppConfig, AppRegistry
from core.fetcher import ListingHTTPError
from services.storage import InMemoryReviewStore

# Project root for test data
PROJECT_ROOT = Path(__file__).resolve().parent.parent

TODAY = date(2024, 3, 15)

FILLED_STAR = '<svg class="tw-fill-fg-primary tw-w-md tw-h-md"></svg>'
EMPTY_STAR = '<svg class="tw-fill-fg-tertiary tw-w-md tw-h-md"></svg>'


class FakeFetcher:
    """
    Stand-in for PageFetcher serving canned listing pages by page number.

    Values in `pages` may be HTML strings or exceptions to raise. Missing
    pages answer with HTTP 404; the landing page (no page= parameter)
    returns `metadata_html`, or raises when it is None.
    """

    def __init__(self, pages=None, metadata_html=""):
        self.pages = pages or {}
        self.metadata_html = metadata_html
        self.requested = []

    def fetch_text(self, url):
        self.requested.append(url)
        match = re.search(r"[?&]page=(\d+)", url)
        if match is None:
            if self.metadata_html is None:
                raise ListingHTTPError(url, 500)
            return self.metadata_html
        body = self.pages.get(int(match.group(1)))
        if body is None:
            raise ListingHTTPError(url, 404)
        if isinstance(body, Exception):
            raise body
        return body

    @property
    def page_requests(self):
        return [int(re.search(r"page=(\d+)", url).group(1)) for url in self.requested if "page=" in url]


def review_block(
    date_text="2 days ago",
    stars=5,
    text="Great app",
    index=0,
    container="content-id",
    date_tag="time",
):
    """Markup for one review container in the listing template."""
    star_markup = FILLED_STAR * stars + EMPTY_STAR * max(0, 5 - stars)
    if date_tag == "time":
        date_markup = f"<time>{date_text}</time>"
    elif date_tag == "secondary":
        date_markup = f'<div class="tw-text-body-xs tw-text-fg-tertiary">{date_text}</div>'
    else:
        date_markup = ""
    text_markup = f'<p class="tw-break-words">{text}</p>' if text is not None else ""
    body = f'<div class="tw-flex">{star_markup}</div>{date_markup}{text_markup}'

    if container == "content-id":
        return f'<div data-review-content-id="{index}">{body}</div>'
    if container == "listing-item":
        return f'<div class="review-listing-item tw-py-lg">{body}</div>'
    return f'<div class="merchant-review">{body}</div>'


def listing_page(*blocks):
    return (
        "<html><body><main><h1>Reviews (42)</h1>"
        + "".join(blocks)
        + "</main></body></html>"
    )


def dated_page(dates, container="content-id"):
    """A listing page with one 5-star review per date."""
    return listing_page(*[
        review_block(date_text=d.isoformat(), text=f"Review {i}", index=i, container=container)
        for i, d in enumerate(dates)
    ])


@pytest.fixture
def project_root():
    return PROJECT_ROOT


@pytest.fixture
def today():
    return TODAY


@pytest.fixture
def clock():
    return lambda: TODAY


@pytest.fixture
def days_ago():
    """Date N days before the fixed test date."""
    return lambda n: TODAY - timedelta(days=n)


@pytest.fixture
def fake_fetcher_factory():
    return FakeFetcher


@pytest.fixture
def make_block():
    return review_block


@pytest.fixture
def make_page():
    return listing_page


@pytest.fixture
def make_dated_page():
    return dated_page


@pytest.fixture
def app_config():
    return AppConfig(
        name="Vidify",
        slug="vidify",
        default_total_reviews=8,
        default_average_rating=5.0,
        is_default=True,
    )


@pytest.fixture
def registry(app_config):
    registry = AppRegistry()
    registry.register(app_config)
    return registry


@pytest.fixture
def memory_store():
    return InMemoryReviewStore()


@pytest.fixture
def no_sleep():
    """Records politeness delays instead of sleeping."""
    calls = []

    def sleep(seconds):
        calls.append(seconds)

    sleep.calls = calls
    return sleep
