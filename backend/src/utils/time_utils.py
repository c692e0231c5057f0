"""
Clock-time and calendar arithmetic helpers.

Times of day are "HH:MM" strings (24-hour clock, same day). Intervals are
half-open: [start, end) overlaps [start2, end2) iff start < end2 and end > start2,
so back-to-back slots do not collide.
"""

import calendar
import re
from datetime import date, timedelta
from typing import Tuple, Union

from core.exceptions import InvalidTimeRangeError

TIME_PATTERN = re.compile(r"([01][0-9]|2[0-3]):([0-5][0-9])")

DAY_NAMES = ['Monday', 'Tuesday', 'Wednesday', 'Thursday', 'Friday', 'Saturday', 'Sunday']

TimeLike = Union[str, int]


def is_valid_time(value: object) -> bool:
    """Check that value is a well-formed HH:MM string (00:00-23:59)."""
    return isinstance(value, str) and TIME_PATTERN.fullmatch(value) is not None


def time_to_minutes(value: object) -> int:
    """
    Convert "HH:MM" to minutes since midnight.

    Malformed input yields 0; callers that must reject bad input validate
    with is_valid_time first.
    """
    if not is_valid_time(value):
        return 0
    hours, minutes = str(value).split(":")
    return int(hours) * 60 + int(minutes)


def minutes_to_time(minutes: int) -> str:
    """Convert minutes since midnight to "HH:MM"."""
    minutes = max(0, min(minutes, 24 * 60 - 1))
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def _as_minutes(value: TimeLike) -> int:
    if isinstance(value, int):
        return value
    return time_to_minutes(value)


def intervals_overlap(start_a: TimeLike, end_a: TimeLike, start_b: TimeLike, end_b: TimeLike) -> bool:
    """Half-open overlap test; touching intervals do not overlap."""
    return _as_minutes(start_a) < _as_minutes(end_b) and _as_minutes(end_a) > _as_minutes(start_b)


def interval_contains(outer_start: TimeLike, outer_end: TimeLike, inner_start: TimeLike, inner_end: TimeLike) -> bool:
    """True when [inner_start, inner_end) lies within [outer_start, outer_end)."""
    return (
        _as_minutes(outer_start) <= _as_minutes(inner_start)
        and _as_minutes(inner_end) <= _as_minutes(outer_end)
    )


def validate_time_range(start_time: object, end_time: object) -> None:
    """
    Validate a same-day time range.

    Raises:
        InvalidTimeRangeError: If either time is malformed or end <= start
    """
    if not is_valid_time(start_time) or not is_valid_time(end_time):
        raise InvalidTimeRangeError(start_time, end_time)
    if time_to_minutes(end_time) <= time_to_minutes(start_time):
        raise InvalidTimeRangeError(start_time, end_time)


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def month_bounds(year: int, month: int) -> Tuple[date, date]:
    """First and last date of a month (inclusive)."""
    return date(year, month, 1), date(year, month, days_in_month(year, month))


def shift_month(year: int, month: int, delta: int) -> Tuple[int, int]:
    """Move (year, month) by delta months, e.g. (2025, 1) - 1 -> (2024, 12)."""
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def is_past_month(year: int, month: int, today: date) -> bool:
    """A month is past only when it ends before the current month starts."""
    return (year, month) < (today.year, today.month)


def week_bounds(target_date: date) -> Tuple[date, date]:
    """Sunday-to-Saturday week containing target_date."""
    # date.weekday(): Monday=0 .. Sunday=6
    start = target_date - timedelta(days=(target_date.weekday() + 1) % 7)
    return start, start + timedelta(days=6)


def day_name(target_date: date) -> str:
    return DAY_NAMES[target_date.weekday()]
