"""Broadcast date extraction from free-text video titles.

Formats, tried in order (first hit wins):
1. YY.M.D          "[25.06.01] 노래방송"   (YY < 50 → 20YY, else 19YY)
2. YYYY.M.D        "2024.03.15", "2024-03-15", "2024/3/15"
3. M.D.YYYY        "03.15.2024", "3/15/2024"
4. YYYY년 M월 D일   "2024년 3월 15일"

An impossible date (e.g. "24.02.30") is not fatal: that format is
treated as a miss and the next one is tried.
"""

import datetime
import logging
import re

from cliptimings.config import SHORT_YEAR_PIVOT
from cliptimings.models import NO_DATE, BroadcastDateInfo

logger = logging.getLogger(__name__)


def _short_year(match):
    year = int(match.group(1))
    full_year = 2000 + year if year < SHORT_YEAR_PIVOT else 1900 + year
    return full_year, int(match.group(2)), int(match.group(3))


def _year_first(match):
    return int(match.group(1)), int(match.group(2)), int(match.group(3))


def _year_last(match):
    return int(match.group(3)), int(match.group(1)), int(match.group(2))


# (pattern, extractor → (year, month, day))
DATE_PATTERNS = [
    (re.compile(r"(?<!\d)(\d{2})\.(\d{1,2})\.(\d{1,2})(?!\d)"), _short_year),
    (re.compile(r"(?<!\d)(\d{4})[.\-/](\d{1,2})[.\-/](\d{1,2})(?!\d)"), _year_first),
    (re.compile(r"(?<!\d)(\d{1,2})[.\-/](\d{1,2})[.\-/](\d{4})(?!\d)"), _year_last),
    (re.compile(r"(?<!\d)(\d{4})년\s*(\d{1,2})월\s*(\d{1,2})일"), _year_first),
]


def extract_broadcast_date(title):
    """Return a BroadcastDateInfo for the first recognizable date in *title*."""
    if not title:
        return NO_DATE
    for pattern, extract in DATE_PATTERNS:
        match = pattern.search(title)
        if not match:
            continue
        try:
            date = datetime.date(*extract(match))
        except ValueError as e:
            logger.debug("Ignoring impossible date %r in %r: %s",
                         match.group(0), title, e)
            continue
        return BroadcastDateInfo(date=date, matched_substring=match.group(0))
    return NO_DATE
