# Package initialization
# Import all models to ensure relationships are properly established
from .professional import Professional
from .weekly_availability import WeeklyAvailabilitySlot
from .lab_test_slot import LabTestSlot
from .patient import Patient
from .appointment import Appointment
from .month_calendar import MonthCalendar
from .schedule_lock import ScheduleLock

__all__ = [
    "Professional",
    "WeeklyAvailabilitySlot",
    "LabTestSlot",
    "Patient",
    "Appointment",
    "MonthCalendar",
    "ScheduleLock",
]
