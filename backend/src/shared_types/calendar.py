"""
Typed month-calendar aggregate.

The ``days`` column of a MonthCalendar row is a JSON document; these models
are the only way services read or change it. They enforce the aggregate's
structural rules:

- one schedule per (professional_id, professional_type) per day
- breaks never overlap each other
- a break is never placed over a cached booked slot
- a booking is cached at most once per appointment
"""

import uuid
from datetime import date as date_type, datetime
from typing import List, Optional, Tuple

from pydantic import BaseModel, Field, model_validator

from core.constants import BOOKED_SLOT_STATUS, DEFAULT_BREAK_REASON
from core.exceptions import BreakConflictsWithBookingError, BreakOverlapError, NotFoundError
from utils.time_utils import intervals_overlap


def _new_break_id() -> str:
    return uuid.uuid4().hex


class WorkingHours(BaseModel):
    """A window the professional restricts bookings to on one day."""
    start_time: str
    end_time: str


class Break(BaseModel):
    """A blocked interval on one day."""
    id: str = Field(default_factory=_new_break_id)
    start_time: str
    end_time: str
    reason: str = Field(default=DEFAULT_BREAK_REASON)
    added_at: Optional[datetime] = None
    added_by: Optional[str] = None


class BookedSlot(BaseModel):
    """
    Cached snapshot of a ledger booking.

    ``status`` is 'booked' in the stored calendar; generated past views carry
    the ledger status instead, along with the patient's display name.
    """
    appointment_id: int
    patient_id: int
    start_time: str
    end_time: str
    status: str = Field(default=BOOKED_SLOT_STATUS)
    booked_at: Optional[datetime] = None
    booked_by: Optional[str] = None
    patient_name: Optional[str] = None


class ProfessionalDaySchedule(BaseModel):
    """One professional's state on one calendar day."""
    professional_id: int
    professional_type: str
    is_available: bool = True
    breaks: List[Break] = Field(default_factory=list)
    working_hours: List[WorkingHours] = Field(default_factory=list)
    booked_slots: List[BookedSlot] = Field(default_factory=list)

    @property
    def key(self) -> Tuple[int, str]:
        return (self.professional_id, self.professional_type)

    @property
    def is_untouched(self) -> bool:
        """True when nobody has booked, blocked or restricted this entry."""
        return (
            self.is_available
            and not self.breaks
            and not self.working_hours
            and not self.booked_slots
        )

    def overlapping_breaks(self, start_time: str, end_time: str) -> List[Break]:
        return [b for b in self.breaks if intervals_overlap(start_time, end_time, b.start_time, b.end_time)]

    def overlapping_booked_slots(self, start_time: str, end_time: str) -> List[BookedSlot]:
        return [s for s in self.booked_slots if intervals_overlap(start_time, end_time, s.start_time, s.end_time)]

    def add_break(self, new_break: Break) -> Break:
        """
        Append a break.

        Raises:
            BreakOverlapError: If it overlaps an existing break
            BreakConflictsWithBookingError: If it overlaps a cached booking
        """
        if self.overlapping_breaks(new_break.start_time, new_break.end_time):
            raise BreakOverlapError(new_break.start_time, new_break.end_time)
        booked = self.overlapping_booked_slots(new_break.start_time, new_break.end_time)
        if booked:
            raise BreakConflictsWithBookingError(len(booked))
        self.breaks.append(new_break)
        return new_break

    def remove_break(self, break_id: str) -> Break:
        for index, existing in enumerate(self.breaks):
            if existing.id == break_id:
                return self.breaks.pop(index)
        raise NotFoundError(f"Break {break_id} not found")

    def has_booking(self, appointment_id: int) -> bool:
        return any(s.appointment_id == appointment_id for s in self.booked_slots)

    def add_booked_slot(self, slot: BookedSlot) -> bool:
        """Cache a booking; returns False if this appointment was already cached."""
        if self.has_booking(slot.appointment_id):
            return False
        self.booked_slots.append(slot)
        return True


class CalendarDay(BaseModel):
    """One date of a month calendar and the professionals scheduled on it."""
    date: date_type
    day_name: str
    is_holiday: bool = False
    professionals: List[ProfessionalDaySchedule] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_unique_professionals(self) -> "CalendarDay":
        seen = set()
        for schedule in self.professionals:
            if schedule.key in seen:
                raise ValueError(
                    f"Duplicate schedule for {schedule.professional_type} {schedule.professional_id} on {self.date}"
                )
            seen.add(schedule.key)
        return self

    def find_professional(self, professional_id: int, professional_type: str) -> Optional[ProfessionalDaySchedule]:
        for schedule in self.professionals:
            if schedule.professional_id == professional_id and schedule.professional_type == professional_type:
                return schedule
        return None

    def add_professional(self, schedule: ProfessionalDaySchedule) -> ProfessionalDaySchedule:
        if self.find_professional(schedule.professional_id, schedule.professional_type) is not None:
            raise ValueError(
                f"{schedule.professional_type} {schedule.professional_id} is already scheduled on {self.date}"
            )
        self.professionals.append(schedule)
        return schedule

    def ensure_professional(self, professional_id: int, professional_type: str) -> ProfessionalDaySchedule:
        """Return the professional's schedule, creating an available one if missing."""
        schedule = self.find_professional(professional_id, professional_type)
        if schedule is None:
            schedule = self.add_professional(
                ProfessionalDaySchedule(professional_id=professional_id, professional_type=professional_type)
            )
        return schedule

    def remove_professional(self, professional_id: int, professional_type: str) -> None:
        self.professionals = [
            s for s in self.professionals
            if not (s.professional_id == professional_id and s.professional_type == professional_type)
        ]


class MonthSchedule(BaseModel):
    """The full ``days`` document of a stored month."""
    days: List[CalendarDay] = Field(default_factory=list)

    def get_day(self, target_date: date_type) -> Optional[CalendarDay]:
        for day in self.days:
            if day.date == target_date:
                return day
        return None


class CalendarView(BaseModel):
    """A month as returned to callers, stored or generated from the ledger."""
    year: int
    month: int
    days: List[CalendarDay]
    is_generated: bool = False
    total_appointments: Optional[int] = None
