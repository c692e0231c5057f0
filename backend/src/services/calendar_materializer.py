"""
Calendar materializer.

Builds the stored calendar for a current or future month from the
professional directory and the availability source. Past months are never
materialized; they are generated from the ledger on demand.
"""

import logging
from datetime import date, timedelta
from typing import Dict, List, Optional, Set, Tuple

from sqlalchemy.orm import Session

from core.constants import PROFESSIONAL_TYPE_PATHOLOGY
from core.exceptions import InvalidMonthError
from models import MonthCalendar, Professional
from services.availability_source import AvailabilitySource
from services.month_calendar_store import MonthCalendarStore
from services.professional_directory import ProfessionalDirectory
from shared_types.calendar import CalendarDay, MonthSchedule, ProfessionalDaySchedule
from utils.datetime_utils import resolve_today
from utils.time_utils import day_name, is_past_month, month_bounds

logger = logging.getLogger(__name__)


class _OfferIndex:
    """Which eligible professional offers which date, loaded once per month."""

    def __init__(self, db: Session, professionals: List[Professional], start: date, end: date):
        self.professionals = professionals
        template_ids = [p.id for p in professionals if p.professional_type != PROFESSIONAL_TYPE_PATHOLOGY]
        lab_ids = [p.id for p in professionals if p.professional_type == PROFESSIONAL_TYPE_PATHOLOGY]
        self._weekdays: Dict[int, Set[int]] = AvailabilitySource.working_weekdays(db, template_ids)
        self._lab_dates: Set[Tuple[int, date]] = AvailabilitySource.lab_dates_in_range(db, lab_ids, start, end)

    def offers(self, professional: Professional, target_date: date) -> bool:
        if professional.professional_type == PROFESSIONAL_TYPE_PATHOLOGY:
            return (professional.id, target_date) in self._lab_dates
        return target_date.weekday() in self._weekdays.get(professional.id, set())

    def offering(self, target_date: date) -> List[Professional]:
        return [p for p in self.professionals if self.offers(p, target_date)]


class CalendarMaterializer:
    """Creates and refreshes stored month calendars."""

    @staticmethod
    def build_month(db: Session, year: int, month: int) -> MonthSchedule:
        """Compute the initial days document for a month (nothing is persisted)."""
        start, end = month_bounds(year, month)
        index = _OfferIndex(db, ProfessionalDirectory.list_eligible(db), start, end)

        days: List[CalendarDay] = []
        current = start
        while current <= end:
            days.append(CalendarDay(
                date=current,
                day_name=day_name(current),
                professionals=[
                    ProfessionalDaySchedule(professional_id=p.id, professional_type=p.professional_type)
                    for p in index.offering(current)
                ],
            ))
            current += timedelta(days=1)
        return MonthSchedule(days=days)

    @staticmethod
    def initialize_month(
        db: Session,
        year: int,
        month: int,
        today: Optional[date] = None,
    ) -> Optional[MonthCalendar]:
        """
        Ensure the stored calendar for (year, month) exists.

        Idempotent: an existing record is returned unchanged. Commits when it
        creates a record, so callers must materialize before staging other writes.

        Returns:
            The stored MonthCalendar, or None for a past month

        Raises:
            InvalidMonthError: If month is outside 1-12
        """
        if not 1 <= month <= 12:
            raise InvalidMonthError(month)

        today = resolve_today(today)
        if is_past_month(year, month, today):
            logger.debug(f"Not materializing past month {year}-{month:02d}")
            return None

        existing = MonthCalendarStore.get(db, year, month)
        if existing is not None:
            return existing

        schedule = CalendarMaterializer.build_month(db, year, month)
        return MonthCalendarStore.create(db, year, month, schedule)

    @staticmethod
    def sync_with_professional_availability(
        db: Session,
        record: MonthCalendar,
        today: Optional[date] = None,
    ) -> Dict[str, int]:
        """
        Bring a stored month in line with current eligibility and availability.

        Only today and later days are touched. Newly eligible professionals are
        added on the days they offer; entries for professionals who no longer
        qualify or no longer offer that day are removed only while untouched
        (no bookings, breaks or working-hour restrictions). The caller commits.

        Returns:
            Counts of added and removed schedule entries
        """
        today = resolve_today(today)
        start, end = month_bounds(record.year, record.month)
        eligible = ProfessionalDirectory.list_eligible(db)
        index = _OfferIndex(db, eligible, start, end)
        eligible_by_key = {(p.id, p.professional_type): p for p in eligible}

        schedule = record.get_schedule()
        added = 0
        removed = 0
        for day in schedule.days:
            if day.date < today:
                continue
            for entry in list(day.professionals):
                professional = eligible_by_key.get(entry.key)
                still_offered = professional is not None and index.offers(professional, day.date)
                if not still_offered and entry.is_untouched:
                    day.remove_professional(entry.professional_id, entry.professional_type)
                    removed += 1
            for professional in index.offering(day.date):
                if day.find_professional(professional.id, professional.professional_type) is None:
                    day.add_professional(ProfessionalDaySchedule(
                        professional_id=professional.id,
                        professional_type=professional.professional_type,
                    ))
                    added += 1

        if added or removed:
            MonthCalendarStore.save(db, record, schedule)
            logger.info(
                f"Synced calendar {record.year}-{record.month:02d}: {added} added, {removed} removed"
            )
        return {"added": added, "removed": removed}
