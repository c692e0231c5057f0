"""
Calendar maintenance tasks.

Run daily by the maintenance scheduler and on demand through the manual
sync endpoint:
1. Materialize the current month and the configured number of months ahead
2. Delete stored months outside the retention window
3. Sync stored current/future months with professional availability
"""

import logging
from datetime import date
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from core.config import CALENDAR_FUTURE_MONTHS, CALENDAR_RETENTION_MONTHS
from services.calendar_materializer import CalendarMaterializer
from services.calendar_service import CalendarService
from services.month_calendar_store import MonthCalendarStore
from utils.datetime_utils import resolve_today
from utils.time_utils import shift_month

logger = logging.getLogger(__name__)


class CalendarMaintenanceService:
    """Service class for periodic calendar upkeep."""

    @staticmethod
    def materialize_upcoming_months(
        db: Session,
        months_ahead: int = CALENDAR_FUTURE_MONTHS,
        today: Optional[date] = None,
    ) -> List[str]:
        """Ensure the current month and the following ones exist; returns the months covered."""
        today = resolve_today(today)
        covered: List[str] = []
        for offset in range(months_ahead):
            year, month = shift_month(today.year, today.month, offset)
            CalendarMaterializer.initialize_month(db, year, month, today)
            covered.append(f"{year}-{month:02d}")
        return covered

    @staticmethod
    def sync_professional_availability(db: Session, today: Optional[date] = None) -> Dict[str, Dict[str, int]]:
        """Sync every stored current or future month with the directory and templates."""
        today = resolve_today(today)
        results: Dict[str, Dict[str, int]] = {}
        for stored in MonthCalendarStore.list_all(db):
            if (stored.year, stored.month) < (today.year, today.month):
                continue
            year, month = stored.year, stored.month

            def attempt() -> Dict[str, int]:
                record = MonthCalendarStore.get(db, year, month)
                if record is None:
                    return {"added": 0, "removed": 0}
                counts = CalendarMaterializer.sync_with_professional_availability(db, record, today)
                db.commit()
                return counts

            results[f"{year}-{month:02d}"] = MonthCalendarStore.run_with_write_retry(db, year, month, attempt)
        return results

    @staticmethod
    def run_daily_maintenance(db: Session, today: Optional[date] = None) -> Dict[str, Any]:
        """Materialize, clean up and sync, in that order."""
        today = resolve_today(today)
        logger.info(f"Running calendar maintenance for {today}")

        materialized = CalendarMaintenanceService.materialize_upcoming_months(db, today=today)
        cleanup = CalendarService.clean_old_calendars(db, months_to_keep=CALENDAR_RETENTION_MONTHS, today=today)
        synced = CalendarMaintenanceService.sync_professional_availability(db, today=today)

        logger.info(
            f"✅ Calendar maintenance done: {len(materialized)} month(s) materialized, "
            f"{cleanup['deleted_count']} deleted, {len(synced)} synced"
        )
        return {
            "materialized_months": materialized,
            "cleanup": cleanup,
            "availability_sync": synced,
        }
