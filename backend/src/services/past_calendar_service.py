"""
Past calendar generation.

Months before the current one are never stored. Their views are rebuilt from
the booking ledger on every request, so they always reflect what actually
happened (completed, cancelled and confirmed appointments).
"""

import logging
from collections import OrderedDict
from datetime import date, timedelta
from typing import Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from core.constants import PAST_VIEW_STATUSES
from core.exceptions import InvalidMonthError
from models import Appointment
from services.booking_ledger import BookingLedger
from shared_types.calendar import BookedSlot, CalendarDay, CalendarView, ProfessionalDaySchedule
from utils.datetime_utils import ensure_local
from utils.time_utils import day_name, month_bounds

logger = logging.getLogger(__name__)


def _to_booked_slot(appointment: Appointment) -> BookedSlot:
    return BookedSlot(
        appointment_id=appointment.id,
        patient_id=appointment.patient_id,
        start_time=appointment.start_time,
        end_time=appointment.end_time,
        status=appointment.status,
        booked_at=ensure_local(appointment.created_at),
        patient_name=appointment.patient_name,
    )


def _group_by_professional(appointments: List[Appointment]) -> List[ProfessionalDaySchedule]:
    """Group one day's appointments per professional, in order of first appearance."""
    grouped: "OrderedDict[Tuple[int, str], ProfessionalDaySchedule]" = OrderedDict()
    for appointment in appointments:
        key = (appointment.professional_id, appointment.professional_type)
        if key not in grouped:
            grouped[key] = ProfessionalDaySchedule(
                professional_id=appointment.professional_id,
                professional_type=appointment.professional_type,
            )
        grouped[key].booked_slots.append(_to_booked_slot(appointment))
    return list(grouped.values())


class PastCalendarService:
    """Builds read-only calendar views from ledger history."""

    @staticmethod
    def generate_past_month(
        db: Session,
        year: int,
        month: int,
        professional_id: Optional[int] = None,
        professional_type: Optional[str] = None,
    ) -> CalendarView:
        """
        Generate a month view from the ledger. Nothing is persisted.

        Every day of the month is listed; days without appointments have an
        empty professional list.
        """
        if not 1 <= month <= 12:
            raise InvalidMonthError(month)

        start, end = month_bounds(year, month)
        appointments = BookingLedger.find_in_range(
            db,
            start,
            end,
            statuses=PAST_VIEW_STATUSES,
            professional_id=professional_id,
            professional_type=professional_type,
        )

        by_date: Dict[date, List[Appointment]] = {}
        for appointment in appointments:
            by_date.setdefault(appointment.appointment_date, []).append(appointment)

        days: List[CalendarDay] = []
        current = start
        while current <= end:
            days.append(CalendarDay(
                date=current,
                day_name=day_name(current),
                professionals=_group_by_professional(by_date.get(current, [])),
            ))
            current += timedelta(days=1)

        logger.debug(f"Generated past calendar {year}-{month:02d} from {len(appointments)} appointments")
        return CalendarView(
            year=year,
            month=month,
            days=days,
            is_generated=True,
            total_appointments=len(appointments),
        )

    @staticmethod
    def generate_past_day(
        db: Session,
        professional_id: int,
        professional_type: str,
        target_date: date,
    ) -> Optional[ProfessionalDaySchedule]:
        """
        One professional's historical day, appointments of every status.

        Returns None when the professional had no appointments that day.
        """
        appointments = BookingLedger.find_by_professional_and_date(
            db, professional_id, professional_type, target_date, statuses=None
        )
        if not appointments:
            return None
        return _group_by_professional(appointments)[0]
