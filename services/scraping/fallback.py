"""
Sample data used when live markup cannot supply a field or a whole page.

Store name and country are not exposed reliably by the listing page, so they
are assigned round-robin from SAMPLE_STORES. When no review container can be
located at all, a FallbackProvider substitutes a fixed pool of synthetic
reviews so the run still makes progress; those records carry synthetic=True.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence

from services.scraping.models import Review

logger = logging.getLogger(__name__)

DEFAULT_COUNTRY_CODE = "US"

COUNTRY_CODES = {
    "United States": "US",
    "India": "IN",
    "Japan": "JP",
    "Singapore": "SG",
    "Costa Rica": "CR",
    "Canada": "CA",
    "United Kingdom": "UK",
    "Australia": "AU",
    "Germany": "DE",
    "France": "FR",
}


def map_country_to_code(country_name: Optional[str]) -> str:
    """Map a country display name to its code; unknown names map to US."""
    if not country_name:
        return DEFAULT_COUNTRY_CODE
    return COUNTRY_CODES.get(country_name.strip(), DEFAULT_COUNTRY_CODE)


@dataclass(frozen=True)
class SampleEntry:
    store: str
    country: str
    content: str
    date_text: str = ""


SAMPLE_STORES: Sequence[SampleEntry] = (
    SampleEntry("Video Pro Store", "United States", "Excellent video app with great features for product videos."),
    SampleEntry("Media Masters", "Canada", "Perfect for adding videos to product pages."),
    SampleEntry("Video Solutions", "United Kingdom", "Amazing app for video integration and management."),
    SampleEntry("Visual Store", "Australia", "Great for enhancing product pages with videos."),
    SampleEntry("Video Hub", "Germany", "Outstanding video features and easy to use."),
)

SAMPLE_REVIEWS: Sequence[SampleEntry] = (
    SampleEntry(
        "The AI Fashion Store",
        "India",
        "vidify makes stunning video mocks ups. its easy to use and the new prompting option helps "
        "to direct the videos as u want. highly recommended app to create beautiful content.",
        "December 14, 2024",
    ),
    SampleEntry(
        "Ocha & Co.",
        "Japan",
        "It makes video creation easy and efficient! I am a solo business owner and don't have time "
        "or a creative department to help me make product videos. The technology is fast and "
        "efficient and now has a prompt to give the AI more directions when creating your video.",
        "December 8, 2024",
    ),
    SampleEntry(
        "Joyful Moose",
        "United States",
        "5 stars for creating fabulous videos. Even better, it was super easy and quick. "
        "This app is a must have.",
        "October 25, 2024",
    ),
    SampleEntry(
        "ADLINA ANIS",
        "Singapore",
        "Vidify has been a game-changer for us! We can use these videos in our assets if we didn't "
        "have time to produce a full shoot. Ease of Use: Vidify's user-friendly interface makes it "
        "incredibly easy to create stunning AI videos.",
        "September 21, 2024",
    ),
)


class SampleRotation:
    """
    Round-robin cursor over a sample table.

    One rotation is created per scrape run and passed into every extraction
    call, so assignment is deterministic for a given page sequence.
    """

    def __init__(self, entries: Sequence[SampleEntry] = SAMPLE_STORES, start: int = 0):
        if not entries:
            raise ValueError("SampleRotation requires at least one entry")
        self.entries = entries
        self.index = start

    def next(self) -> SampleEntry:
        entry = self.entries[self.index % len(self.entries)]
        self.index += 1
        return entry


class FallbackProvider(ABC):
    """Supplies a page's full yield when no review container could be located."""

    @abstractmethod
    def provide(self, app_name: str, parse_date: Callable[[str], object]) -> List[Review]:
        pass


class SampleFallbackProvider(FallbackProvider):
    """Substitutes the fixed sample pool, every record tagged synthetic."""

    def __init__(self, samples: Sequence[SampleEntry] = SAMPLE_REVIEWS, rating: int = 5):
        self.samples = samples
        self.rating = rating

    def provide(self, app_name: str, parse_date: Callable[[str], object]) -> List[Review]:
        reviews = [
            Review(
                source_app=app_name,
                store_name=sample.store,
                country_code=map_country_to_code(sample.country),
                rating=self.rating,
                content=sample.content,
                review_date=parse_date(sample.date_text),
                synthetic=True,
            )
            for sample in self.samples
        ]
        logger.warning(
            "Substituted %d synthetic sample reviews for %s", len(reviews), app_name
        )
        return reviews


class NoFallbackProvider(FallbackProvider):
    """Disables substitution: an unmatched page yields nothing."""

    def provide(self, app_name: str, parse_date: Callable[[str], object]) -> List[Review]:
        logger.info("No review containers for %s and fallback disabled", app_name)
        return []
