import logging
from dataclasses import dataclass
from typing import Dict, Optional

import requests

from core.config import settings

logger = logging.getLogger(__name__)


class ListingFetchError(Exception):
    """Raised when a listing page cannot be fetched (network failure or timeout)."""
    pass


class ListingHTTPError(ListingFetchError):
    """Raised when a listing page answers with a status other than 200."""

    def __init__(self, url: str, status_code: int):
        super().__init__(f"HTTP {status_code} for URL: {url}")
        self.url = url
        self.status_code = status_code


@dataclass
class FetchResult:
    """Status code and decoded body of one GET."""

    status_code: int
    body: str


def browser_headers(user_agent: Optional[str] = None) -> Dict[str, str]:
    """Headers that make the request look like an ordinary browser visit."""
    return {
        "User-Agent": user_agent or settings.USER_AGENT,
        "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
        "Accept-Language": "en-US,en;q=0.9",
    }


class PageFetcher:
    """
    Single-shot HTML fetcher for review listing pages.

    Each call performs exactly one GET. Timeouts and connection errors are
    reported as ListingFetchError; no retry is attempted.
    """

    def __init__(
        self,
        headers: Optional[Dict[str, str]] = None,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ):
        self.headers = headers or browser_headers()
        self.timeout = settings.REQUEST_TIMEOUT if timeout is None else timeout
        self.session = session

    def get(self, url: str) -> FetchResult:
        """
        Perform one GET and return the raw status and body.

        Raises:
            ListingFetchError: on transport failure (DNS, connection, timeout)
        """
        requester = self.session or requests
        try:
            response = requester.get(
                url,
                headers=self.headers,
                timeout=self.timeout,
                allow_redirects=True,
            )
        except requests.RequestException as exc:
            logger.warning("Transport error fetching %s: %s", url, exc)
            raise ListingFetchError(f"Transport error for URL {url}: {exc}") from exc

        return FetchResult(status_code=response.status_code, body=response.text)

    def fetch_text(self, url: str) -> str:
        """
        Fetch a page and return its body, treating any non-200 status as a failure.

        Raises:
            ListingFetchError: on transport failure
            ListingHTTPError: when the status code is not 200
        """
        result = self.get(url)
        if result.status_code != 200:
            logger.warning("HTTP error %d for URL: %s", result.status_code, url)
            raise ListingHTTPError(url, result.status_code)
        logger.debug("Fetched %s (%d bytes)", url, len(result.body))
        return result.body
