"""
Calendar domain errors.

Every error carries a stable ``kind`` (returned to API clients as ``type``),
the HTTP status it maps to, a human-readable message and optional details
such as conflict counts. ``main.py`` registers a single handler that renders
them as JSON.
"""

from typing import Any, Dict, Optional


class CalendarError(Exception):
    """Base class for expected, client-visible calendar failures."""

    kind = "CalendarError"
    status_code = 400

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details: Dict[str, Any] = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Serialize for an API response body."""
        body: Dict[str, Any] = {"detail": self.message, "type": self.kind}
        body.update(self.details)
        return body


class InvalidMonthError(CalendarError):
    kind = "InvalidMonth"
    status_code = 400

    def __init__(self, month: int):
        super().__init__(f"Month must be between 1 and 12, got {month}", {"month": month})


class PastDateNotBookableError(CalendarError):
    kind = "PastDateNotBookable"
    status_code = 400

    def __init__(self, target_date: Any):
        super().__init__(f"Cannot book or query slots for past date {target_date}")


class PastDateNotEditableError(CalendarError):
    kind = "PastDateNotEditable"
    status_code = 400

    def __init__(self, target_date: Any):
        super().__init__(f"Cannot modify schedule for past date {target_date}")


class InvalidTimeRangeError(CalendarError):
    kind = "InvalidTimeRange"
    status_code = 400

    def __init__(self, start_time: Any, end_time: Any):
        super().__init__(
            f"Invalid time range {start_time}-{end_time}: times must be HH:MM and end must be after start"
        )


class SlotConflictError(CalendarError):
    """The requested interval overlaps an active appointment."""

    kind = "SlotConflict"
    status_code = 409

    def __init__(self, conflicting_count: int):
        super().__init__(
            "Time slot conflicts with existing appointment",
            {"conflicting_count": conflicting_count},
        )
        self.conflicting_count = conflicting_count


class BreakConflictsWithBookingError(CalendarError):
    kind = "BreakConflictsWithBooking"
    status_code = 409

    def __init__(self, conflicting_count: int):
        super().__init__(
            "Cannot add break: conflicts with existing appointments",
            {"conflicting_count": conflicting_count},
        )
        self.conflicting_count = conflicting_count


class BreakOverlapError(CalendarError):
    kind = "BreakOverlap"
    status_code = 409

    def __init__(self, start_time: str, end_time: str):
        super().__init__(f"Break {start_time}-{end_time} overlaps an existing break")


class HasExistingBookingsError(CalendarError):
    """Raised when marking a day unavailable while appointments are still active."""

    kind = "HasExistingBookings"
    status_code = 409

    def __init__(self, existing_count: int):
        super().__init__(
            "Cannot mark as unavailable: has existing appointments",
            {"existing_count": existing_count},
        )
        self.existing_count = existing_count


class NotFoundError(CalendarError):
    kind = "NotFound"
    status_code = 404


class ProfessionalUnavailableError(CalendarError):
    kind = "ProfessionalUnavailable"
    status_code = 400

    def __init__(self, professional_id: int, professional_type: str):
        super().__init__(
            f"{professional_type.capitalize()} {professional_id} is not verified and active"
        )


class AggregateWriteConflictError(CalendarError):
    """Concurrent writers kept invalidating the month calendar; the caller may retry."""

    kind = "AggregateWriteConflict"
    status_code = 503

    def __init__(self, year: int, month: int, attempts: int):
        super().__init__(
            f"Calendar {year}-{month:02d} was modified concurrently; gave up after {attempts} attempts",
            {"retryable": True},
        )
