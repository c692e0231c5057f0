"""
Services package for shared business logic.

This package contains service classes that encapsulate the calendar's
business logic shared across API endpoints and the maintenance scheduler.
"""

from .professional_directory import ProfessionalDirectory
from .availability_source import AvailabilitySource
from .booking_ledger import BookingLedger
from .month_calendar_store import MonthCalendarStore
from .calendar_materializer import CalendarMaterializer
from .past_calendar_service import PastCalendarService
from .slot_availability_service import SlotAvailabilityService
from .booking_service import BookingService
from .schedule_service import ScheduleService
from .calendar_service import CalendarService
from .consistency_auditor import ConsistencyAuditor
from .calendar_admin_service import CalendarAdminService

__all__ = [
    "ProfessionalDirectory",
    "AvailabilitySource",
    "BookingLedger",
    "MonthCalendarStore",
    "CalendarMaterializer",
    "PastCalendarService",
    "SlotAvailabilityService",
    "BookingService",
    "ScheduleService",
    "CalendarService",
    "ConsistencyAuditor",
    "CalendarAdminService",
]
