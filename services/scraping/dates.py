"""
Review date normalization.

Listing pages show either relative phrases ("3 days ago", "a month ago") or
absolute dates ("December 14, 2024"). Everything is resolved to a calendar
date; text that cannot be understood resolves to today.
"""

import logging
import re
from datetime import date, datetime, timedelta
from typing import Callable, Optional

from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta

logger = logging.getLogger(__name__)

# Checked in this order: "day" wins over "month" when both appear
RELATIVE_UNITS = (
    ("day", lambda n: timedelta(days=n)),
    ("week", lambda n: timedelta(weeks=n)),
    ("month", lambda n: relativedelta(months=n)),
    ("year", lambda n: relativedelta(years=n)),
)


def _relative_count(text: str, unit: str) -> int:
    match = re.search(rf"(\d+)\s*{unit}s?", text)
    return int(match.group(1)) if match else 1


def normalize_review_date(text: Optional[str], today: Optional[date] = None) -> date:
    """
    Convert heterogeneous date text into a calendar date. Never raises.

    Args:
        text: Raw date token from the page
        today: Reference date for relative phrases (defaults to date.today())

    Returns:
        The resolved date, or today when the text is empty or unparseable

    Examples:
        >>> normalize_review_date("3 days ago", date(2024, 1, 10))
        datetime.date(2024, 1, 7)
        >>> normalize_review_date("2 weeks ago", date(2024, 1, 10))
        datetime.date(2023, 12, 27)
    """
    today = today or date.today()
    if not text:
        return today

    lowered = text.strip().lower()

    for unit, delta in RELATIVE_UNITS:
        if unit in lowered:
            return today - delta(_relative_count(lowered, unit))

    try:
        return date_parser.parse(text.strip(), default=datetime(today.year, today.month, today.day)).date()
    except (ValueError, OverflowError) as exc:
        logger.debug("Unparseable review date %r, using today: %s", text, exc)
        return today


class DateNormalizer:
    """Callable wrapper binding normalize_review_date to a clock."""

    def __init__(self, clock: Optional[Callable[[], date]] = None):
        self.clock = clock or date.today

    def __call__(self, text: Optional[str]) -> date:
        return normalize_review_date(text, today=self.clock())
