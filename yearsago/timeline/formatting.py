"""
Caption text for display entries: ordinal dates and "years ago" labels.

Month names are fixed English so captions do not depend on the process locale.
"""

from __future__ import annotations

from datetime import datetime, tzinfo
from typing import Optional

MONTH_NAMES = (
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
)

THIS_YEAR_LABEL = "This Year"
FALLBACK_LABEL = "Some time ago"
FALLBACK_DATE = "Date Unknown"


def ordinal_suffix(day: int) -> str:
    if day in (11, 12, 13):
        return "th"
    return {1: "st", 2: "nd", 3: "rd"}.get(day % 10, "th")


def format_date_nicely(moment: datetime) -> str:
    """Return e.g. ``"April 5th, 2024"``."""
    month = MONTH_NAMES[moment.month - 1]
    return f"{month} {moment.day}{ordinal_suffix(moment.day)}, {moment.year}"


def years_ago_label(years_ago: int) -> str:
    # Negative differences (future-dated records) pass through unchanged.
    if years_ago == 0:
        return THIS_YEAR_LABEL
    if years_ago == 1:
        return "1 Year Ago"
    return f"{years_ago} Years Ago"


def timestamp_to_datetime(timestamp: float, tz: Optional[tzinfo] = None) -> datetime:
    """
    Convert epoch seconds to a datetime in ``tz``, or naive local time when ``tz`` is None.

    Raises OverflowError, OSError or ValueError when the platform cannot represent the value.
    """
    if tz is None:
        return datetime.fromtimestamp(timestamp)
    return datetime.fromtimestamp(timestamp, tz)


def calendar_year_difference(now: datetime, moment: datetime) -> int:
    return now.year - moment.year


def elapsed_years(start: datetime, end: datetime) -> int:
    # A Feb 29 start only completes its year on Mar 1 in non-leap years.
    years = end.year - start.year
    if (end.month, end.day, end.time()) < (start.month, start.day, start.time()):
        years -= 1
    return years
