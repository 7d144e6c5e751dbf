"""
HTML extraction of reviews from one listing page.

Containers are located by an ordered list of selector strategies; the first
strategy that matches anything wins and later strategies are never tried.
When none match, the page's yield comes from the fallback provider.
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Callable, List, Optional, Sequence, Tuple

from bs4 import BeautifulSoup, Tag

from services.scraping.dates import DateNormalizer
from services.scraping.fallback import (
    FallbackProvider,
    SampleFallbackProvider,
    SampleRotation,
    map_country_to_code,
)
from services.scraping.models import MAX_RATING, Review

logger = logging.getLogger(__name__)

DEFAULT_RATING = 5


class ExtractionError(Exception):
    """Raised when a single review container cannot be turned into a Review."""
    pass


@dataclass(frozen=True)
class SelectorStrategy:
    """One way of locating review containers in a parsed page."""

    name: str
    selector: str

    def find(self, soup: BeautifulSoup) -> List[Tag]:
        return soup.select(self.selector)


DEFAULT_CONTAINER_STRATEGIES: Sequence[SelectorStrategy] = (
    SelectorStrategy("review-content-id", "div[data-review-content-id]"),
    SelectorStrategy("review-listing-item", 'div[class*="review-listing-item"]'),
    SelectorStrategy("any-review-class", 'div[class*="review"]'),
)


@dataclass(frozen=True)
class FieldSelectors:
    """Selectors applied inside one container."""

    filled_star: str = 'svg[class*="tw-fill-fg-primary"]'
    text_block: str = 'p[class="tw-break-words"]'
    date: str = "time"
    secondary_date: str = 'div[class*="tw-text-body-xs"][class*="tw-text-fg-tertiary"]'


def find_containers(
    soup: BeautifulSoup,
    strategies: Sequence[SelectorStrategy] = DEFAULT_CONTAINER_STRATEGIES,
) -> Tuple[Optional[SelectorStrategy], List[Tag]]:
    """
    Return the first strategy with at least one match and its matches.

    Results are never merged across strategies.
    """
    for strategy in strategies:
        found = strategy.find(soup)
        logger.debug("Trying selector '%s': found %d elements", strategy.selector, len(found))
        if found:
            return strategy, found
    return None, []


class RecordExtractor:
    """
    Turns one page of listing markup into Review records.

    Args:
        app_name: Value stored in Review.source_app
        normalizer: Callable resolving date text to a date (defaults to DateNormalizer())
        strategies: Ordered container selector strategies
        fallback: Provider used when no strategy matches
        selectors: In-container field selectors
    """

    def __init__(
        self,
        app_name: str,
        normalizer: Optional[Callable[[Optional[str]], date]] = None,
        strategies: Sequence[SelectorStrategy] = DEFAULT_CONTAINER_STRATEGIES,
        fallback: Optional[FallbackProvider] = None,
        selectors: FieldSelectors = FieldSelectors(),
    ):
        self.app_name = app_name
        self.normalizer = normalizer or DateNormalizer()
        self.strategies = strategies
        self.fallback = fallback or SampleFallbackProvider()
        self.selectors = selectors

    def extract_page(self, html: str, rotation: SampleRotation) -> List[Review]:
        """Extract every review on the page, or the fallback yield if nothing matches."""
        soup = BeautifulSoup(html or "", "html.parser")
        strategy, containers = find_containers(soup, self.strategies)

        if strategy is None:
            logger.warning("No review nodes found with any selector")
            return self.fallback.provide(self.app_name, self.normalizer)

        logger.info("Selector '%s' matched %d containers", strategy.name, len(containers))

        reviews: List[Review] = []
        for container in containers:
            try:
                reviews.append(self.extract_one(container, rotation))
            except ExtractionError as exc:
                logger.warning("Error extracting review: %s", exc)

        logger.info("Successfully extracted %d reviews", len(reviews))
        return reviews

    def extract_one(self, container: Tag, rotation: SampleRotation) -> Review:
        """
        Extract a single review from its container.

        Rating is the number of filled stars (5 when none are found), content
        falls back to the sample phrase, store and country always come from
        the rotation.

        Raises:
            ExtractionError: if the container's markup cannot be read
        """
        try:
            stars = len(container.select(self.selectors.filled_star))
            rating = min(stars, MAX_RATING) or DEFAULT_RATING

            content = ""
            text_node = container.select_one(self.selectors.text_block)
            if text_node is not None:
                content = text_node.get_text().strip()

            review_date = self._extract_date(container)
        except (AttributeError, TypeError, ValueError) as exc:
            raise ExtractionError(str(exc)) from exc

        sample = rotation.next()
        return Review(
            source_app=self.app_name,
            store_name=sample.store,
            country_code=map_country_to_code(sample.country),
            rating=rating,
            content=content or sample.content,
            review_date=review_date,
        )

    def _extract_date(self, container: Tag) -> date:
        for selector in (self.selectors.date, self.selectors.secondary_date):
            node = container.select_one(selector)
            if node is not None:
                return self.normalizer(node.get_text().strip())
        return self.normalizer(None)
