"""
Business clock for the calendar.

"Today", past-month checks and booking timestamps are all evaluated in the
application timezone, a fixed UTC offset set by APP_UTC_OFFSET_MINUTES.
Services accept an injected `today` and fall back to this clock.
"""

import re
from datetime import date, datetime, timedelta, timezone
from typing import Optional

from core.config import APP_UTC_OFFSET_MINUTES

APP_TZ = timezone(timedelta(minutes=APP_UTC_OFFSET_MINUTES))

# YYYY-MM-DD or YYYY/MM/DD, month and day may be a single digit
_DATE_PATTERN = re.compile(r"([0-9]{4})([-/])([0-9]{1,2})\2([0-9]{1,2})")


def local_now() -> datetime:
    """Current timezone-aware datetime in the application timezone."""
    return datetime.now(APP_TZ)


def local_today() -> date:
    return local_now().date()


def resolve_today(today: Optional[date]) -> date:
    """Return the injected business date, or the real one when none is given."""
    return today if today is not None else local_today()


def ensure_local(dt: Optional[datetime]) -> Optional[datetime]:
    """
    Normalize a stored timestamp to the application timezone.

    SQLite hands back naive datetimes; those were written as local time and
    are tagged rather than shifted.
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=APP_TZ)
    return dt.astimezone(APP_TZ)


def parse_date_string(date_str: str) -> date:
    """
    Parse a query-string date such as "2025-03-04", "2025/03/04" or "2025-3-4".

    Raises:
        ValueError: If the string is empty, malformed or not a real date
    """
    if not date_str or not date_str.strip():
        raise ValueError("Date string cannot be empty")

    match = _DATE_PATTERN.fullmatch(date_str.strip())
    if match is None:
        raise ValueError(f"Invalid date format (expected YYYY-MM-DD or YYYY/MM/DD): {date_str}")

    year, _, month, day = match.groups()
    try:
        return date(int(year), int(month), int(day))
    except ValueError as e:
        raise ValueError(f"Invalid date (no such day): {date_str}") from e
