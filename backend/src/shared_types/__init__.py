"""
Shared type definitions for the care calendar backend.

This module contains dataclasses and models that are used across multiple services.
"""

from shared_types.audit import AuditIssue, AuditReport, RepairResult
from shared_types.availability import AvailableSlot, OfferedSlot
from shared_types.calendar import (
    Break,
    BookedSlot,
    CalendarDay,
    CalendarView,
    MonthSchedule,
    ProfessionalDaySchedule,
    WorkingHours,
)

__all__ = [
    "AuditIssue",
    "AuditReport",
    "RepairResult",
    "AvailableSlot",
    "OfferedSlot",
    "Break",
    "BookedSlot",
    "CalendarDay",
    "CalendarView",
    "MonthSchedule",
    "ProfessionalDaySchedule",
    "WorkingHours",
]
