"""
Date normalization for timeline and Gantt parsing.

Accepted formats:
- ISO:            2024-01-10, 2024-1-5, 2024-01-10T09:30:00
- Slash-delimited: 2024/01/10, 01/10/2024 (month first)
- Long form:      January 5, 2025 / Jan 5 2025 / Sept. 5, 2025

Parsing is lenient: a string that cannot be read falls back to a default
(today unless the caller passes one) and a warning is logged. Callers rely on
this so one malformed date never aborts an otherwise valid diagram.
"""
from __future__ import annotations

import logging
import re
from datetime import date, datetime

logger = logging.getLogger(__name__)

MONTHS = {
    "january": 1, "february": 2, "march": 3, "april": 4, "may": 5, "june": 6,
    "july": 7, "august": 8, "september": 9, "october": 10, "november": 11, "december": 12,
    "jan": 1, "feb": 2, "mar": 3, "apr": 4, "jun": 6, "jul": 7, "aug": 8,
    "sep": 9, "sept": 9, "oct": 10, "nov": 11, "dec": 12,
}

_MONTH_NAMES = "|".join(sorted(MONTHS, key=len, reverse=True))

ISO_DATE = r"\d{4}[-/]\d{1,2}[-/]\d{1,2}"
US_DATE = r"\d{1,2}/\d{1,2}/\d{4}"
LONG_DATE = rf"(?:{_MONTH_NAMES})\.?\s+\d{{1,2}}(?:st|nd|rd|th)?,?\s*\d{{4}}"

# Order matters: ISO before US so "2024/01/10" is not read as "24/01/10..."
DATE_TOKEN = re.compile(rf"\b(?:{ISO_DATE}|{US_DATE}|{LONG_DATE})\b", re.IGNORECASE)

_ISO_PARTS = re.compile(r"^(\d{4})[-/](\d{1,2})[-/](\d{1,2})(?:[T ][\d:.]+(?:Z|[+-]\d{2}:?\d{2})?)?$")
_US_PARTS = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})$")
_LONG_PARTS = re.compile(
    rf"^({_MONTH_NAMES})\.?\s+(\d{{1,2}})(?:st|nd|rd|th)?,?\s*(\d{{4}})$", re.IGNORECASE
)


def find_date_token(text: str) -> re.Match | None:
    """Return the first date token in text, or None."""
    return DATE_TOKEN.search(text)


def _parse(raw: str) -> date:
    """Strict parse; raises ValueError for anything unreadable."""
    text = raw.strip()
    m = _ISO_PARTS.match(text)
    if m:
        return date(int(m.group(1)), int(m.group(2)), int(m.group(3)))
    m = _US_PARTS.match(text)
    if m:
        return date(int(m.group(3)), int(m.group(1)), int(m.group(2)))
    m = _LONG_PARTS.match(text)
    if m:
        return date(int(m.group(3)), MONTHS[m.group(1).lower()], int(m.group(2)))
    raise ValueError(f"Unrecognized date: {raw!r}")


def parse_date(raw: str | date) -> date:
    """Parse a date string strictly (no fallback)."""
    if isinstance(raw, datetime):
        return raw.date()
    if isinstance(raw, date):
        return raw
    return _parse(str(raw))


def normalize_date(raw: str | date | None, *, default: date | None = None) -> date:
    """
    Parse a date string, falling back instead of raising.

    Args:
        raw: Date string (or date/datetime, returned as a date)
        default: Value to use when raw cannot be parsed (today if None)

    Returns:
        The parsed date, or the fallback
    """
    if raw is not None:
        try:
            return parse_date(raw)
        except ValueError:
            pass
    fallback = default if default is not None else date.today()
    logger.warning("Could not parse date %r, using %s", raw, fallback.isoformat())
    return fallback
