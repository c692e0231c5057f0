"""
Calendar facade.

Routes month requests to the stored calendar (current and future months)
or to the ledger-generated view (past months), and owns the administrative
month lifecycle: explicit initialization and retention cleanup.
"""

import logging
from datetime import date
from typing import Any, Dict, Optional, Tuple

from sqlalchemy.orm import Session

from core.config import CALENDAR_RETENTION_MONTHS
from core.exceptions import InvalidMonthError
from models import MonthCalendar
from services.calendar_materializer import CalendarMaterializer
from services.month_calendar_store import MonthCalendarStore
from services.past_calendar_service import PastCalendarService
from services.schedule_lock_service import ScheduleLockService
from shared_types.calendar import CalendarView
from utils.datetime_utils import resolve_today
from utils.time_utils import is_past_month, shift_month

logger = logging.getLogger(__name__)


class CalendarService:
    """Service class for month-level calendar operations."""

    @staticmethod
    def get_calendar(
        db: Session,
        year: int,
        month: int,
        professional_id: Optional[int] = None,
        professional_type: Optional[str] = None,
        today: Optional[date] = None,
    ) -> CalendarView:
        """
        Get a month calendar, optionally narrowed to one professional or one type.

        Past months are generated from the ledger and never persisted;
        current and future months are materialized on first access.

        Raises:
            InvalidMonthError: If month is outside 1-12
        """
        if not 1 <= month <= 12:
            raise InvalidMonthError(month)
        today = resolve_today(today)

        if is_past_month(year, month, today):
            return PastCalendarService.generate_past_month(
                db, year, month, professional_id=professional_id, professional_type=professional_type
            )

        record = CalendarMaterializer.initialize_month(db, year, month, today)
        days = record.get_schedule().days if record is not None else []
        if professional_id is not None or professional_type is not None:
            for day in days:
                day.professionals = [
                    entry for entry in day.professionals
                    if (professional_id is None or entry.professional_id == professional_id)
                    and (professional_type is None or entry.professional_type == professional_type)
                ]
        return CalendarView(year=year, month=month, days=days, is_generated=False)

    @staticmethod
    def initialize_month(
        db: Session,
        year: int,
        month: int,
        today: Optional[date] = None,
    ) -> Tuple[Optional[MonthCalendar], bool]:
        """
        Administrative month initialization.

        Returns:
            (record, created): record is None for past months; created is True
            only when this call persisted a new month
        """
        if not 1 <= month <= 12:
            raise InvalidMonthError(month)
        existed = MonthCalendarStore.get(db, year, month) is not None
        record = CalendarMaterializer.initialize_month(db, year, month, today)
        return record, record is not None and not existed

    @staticmethod
    def clean_old_calendars(
        db: Session,
        months_to_keep: int = CALENDAR_RETENTION_MONTHS,
        today: Optional[date] = None,
    ) -> Dict[str, Any]:
        """
        Delete stored months older than the retention window.

        With months_to_keep=3 in July 2025 the cutoff is April 2025: March and
        earlier are deleted, April through July are kept.
        Booking lock rows for dates before today are dropped as well.
        """
        if months_to_keep < 0:
            raise ValueError("months_to_keep must not be negative")
        today = resolve_today(today)
        cutoff_year, cutoff_month = shift_month(today.year, today.month, -months_to_keep)

        deleted = MonthCalendarStore.delete_older_than(db, cutoff_year, cutoff_month)
        deleted_locks = ScheduleLockService.delete_before(db, today)
        db.commit()

        deleted_months = [f"{record.year}-{record.month:02d}" for record in deleted]
        if deleted_months:
            logger.info(f"🧹 Deleted {len(deleted_months)} old calendar(s): {', '.join(deleted_months)}")
        else:
            logger.info("No old calendars to delete")
        return {
            "deleted_count": len(deleted_months),
            "deleted_months": deleted_months,
            "cutoff": f"{cutoff_year}-{cutoff_month:02d}",
            "deleted_lock_count": deleted_locks,
        }
