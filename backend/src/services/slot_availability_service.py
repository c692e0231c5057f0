"""
Slot availability engine.

Answers "which windows can be booked for this professional on this date?"
by combining the offered windows, the day's stored schedule (availability
flag, working hours, breaks) and the busy intervals from both the cache and
a fresh ledger read.
"""

import logging
from datetime import date
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from core.constants import DEFAULT_SLOT_DURATION_MINUTES
from core.exceptions import PastDateNotBookableError
from services.availability_source import AvailabilitySource
from services.booking_ledger import BookingLedger
from services.calendar_materializer import CalendarMaterializer
from services.professional_directory import ProfessionalDirectory
from shared_types.availability import AvailableSlot
from shared_types.calendar import ProfessionalDaySchedule
from utils.datetime_utils import resolve_today
from utils.time_utils import interval_contains, intervals_overlap, time_to_minutes

logger = logging.getLogger(__name__)


class SlotAvailabilityService:
    """Service class for computing bookable windows."""

    @staticmethod
    def _load_day_schedule(
        db: Session,
        professional_id: int,
        professional_type: str,
        target_date: date,
        today: date,
    ) -> Optional[ProfessionalDaySchedule]:
        record = CalendarMaterializer.initialize_month(db, target_date.year, target_date.month, today)
        if record is None:
            return None
        day = record.get_schedule().get_day(target_date)
        if day is None:
            return None
        return day.find_professional(professional_id, professional_type)

    @staticmethod
    def get_available_slots(
        db: Session,
        professional_id: int,
        professional_type: str,
        target_date: date,
        duration_minutes: int = DEFAULT_SLOT_DURATION_MINUTES,
        today: Optional[date] = None,
    ) -> List[AvailableSlot]:
        """
        Get bookable windows for a professional on a date, sorted by start time.

        A professional with no entry in the day's schedule is treated as
        available with no breaks or restrictions; the offered windows decide.

        Raises:
            ValueError: Unknown professional type or non-positive duration
            PastDateNotBookableError: If target_date is before today
            NotFoundError: If the professional does not exist
            ProfessionalUnavailableError: If the professional is not verified and active
        """
        ProfessionalDirectory.validate_type(professional_type)
        if duration_minutes <= 0:
            raise ValueError("Duration must be a positive number of minutes")
        today = resolve_today(today)
        if target_date < today:
            raise PastDateNotBookableError(target_date)

        professional = ProfessionalDirectory.require_bookable(db, professional_id, professional_type)
        schedule = SlotAvailabilityService._load_day_schedule(
            db, professional_id, professional_type, target_date, today
        )
        if schedule is not None and not schedule.is_available:
            return []

        offered = AvailabilitySource.offered_slots(db, professional_id, professional_type, target_date)

        busy: List[Tuple[str, str]] = []
        if schedule is not None:
            busy.extend((slot.start_time, slot.end_time) for slot in schedule.booked_slots)
        busy.extend(
            (appointment.start_time, appointment.end_time)
            for appointment in BookingLedger.find_by_professional_and_date(
                db, professional_id, professional_type, target_date
            )
        )

        results: List[AvailableSlot] = []
        for slot in offered:
            if not slot.is_available:
                continue
            if slot.duration_minutes < duration_minutes:
                continue
            if schedule is not None:
                if schedule.working_hours and not any(
                    interval_contains(wh.start_time, wh.end_time, slot.start_time, slot.end_time)
                    for wh in schedule.working_hours
                ):
                    continue
                if schedule.overlapping_breaks(slot.start_time, slot.end_time):
                    continue
            if any(intervals_overlap(slot.start_time, slot.end_time, start, end) for start, end in busy):
                continue
            results.append(AvailableSlot(
                start_time=slot.start_time,
                end_time=slot.end_time,
                slot_type=slot.slot_type,
                fee=ProfessionalDirectory.fee(professional, slot.slot_type),
                duration=slot.duration_minutes,
            ))

        results.sort(key=lambda s: time_to_minutes(s.start_time))
        return results
