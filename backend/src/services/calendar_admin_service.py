"""
Administrative reporting over stored calendars and the ledger: inventory,
per-month summaries and full month exports.
"""

import calendar as calendar_module
import logging
from collections import Counter
from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from core.config import CALENDAR_FUTURE_MONTHS, CALENDAR_RETENTION_MONTHS
from core.constants import (
    ACTIVE_APPOINTMENT_STATUSES,
    APPOINTMENT_STATUS_CANCELLED,
    CALENDAR_AUDIT_INTERVAL_HOURS,
    CALENDAR_DAILY_MAINTENANCE_HOUR,
    CALENDAR_WEEKLY_REPAIR_DAY,
    CALENDAR_WEEKLY_REPAIR_HOUR,
)
from core.exceptions import InvalidMonthError
from models import Appointment
from services.booking_ledger import BookingLedger
from services.month_calendar_store import MonthCalendarStore
from services.professional_directory import ProfessionalDirectory
from utils.datetime_utils import ensure_local, local_now, resolve_today
from utils.time_utils import day_name, is_past_month, month_bounds, shift_month

logger = logging.getLogger(__name__)


def _statistics(appointments: List[Appointment]) -> Dict[str, Any]:
    return {
        "total": len(appointments),
        "by_status": dict(Counter(a.status for a in appointments)),
        "by_professional_type": dict(Counter(a.professional_type for a in appointments)),
        "by_weekday": dict(Counter(day_name(a.appointment_date) for a in appointments)),
    }


class CalendarAdminService:
    """Service class for admin calendar reports."""

    @staticmethod
    def system_status(db: Session, today: Optional[date] = None) -> Dict[str, Any]:
        """Stored calendar inventory and current-month activity."""
        today = resolve_today(today)
        current = (today.year, today.month)
        cutoff = shift_month(today.year, today.month, -CALENDAR_RETENTION_MONTHS)

        records = MonthCalendarStore.list_all(db)
        awaiting_cleanup = [r for r in records if (r.year, r.month) < cutoff]
        recent = [r for r in records if cutoff <= (r.year, r.month) < current]
        current_and_future = [r for r in records if (r.year, r.month) >= current]

        start, end = month_bounds(today.year, today.month)
        current_month_appointments = BookingLedger.find_in_range(db, start, end)

        return {
            "today": today.isoformat(),
            "stored_calendars": {
                "total": len(records),
                "awaiting_cleanup": len(awaiting_cleanup),
                "recent": len(recent),
                "current_and_future": len(current_and_future),
            },
            "stored_months": [f"{r.year}-{r.month:02d}" for r in records],
            "current_month_appointments": len(current_month_appointments),
            "storage_strategy": {
                "past_months": "generated from appointments on demand, never stored",
                "current_and_future_months": "stored, materialized on first access",
                "retention_months": CALENDAR_RETENTION_MONTHS,
                "materialized_ahead_months": CALENDAR_FUTURE_MONTHS,
            },
            "maintenance_schedule": {
                "daily_maintenance": f"{CALENDAR_DAILY_MAINTENANCE_HOUR:02d}:00 daily",
                "health_audit": f"every {CALENDAR_AUDIT_INTERVAL_HOURS} hours",
                "repair": f"{CALENDAR_WEEKLY_REPAIR_DAY} {CALENDAR_WEEKLY_REPAIR_HOUR:02d}:00 weekly",
            },
        }

    @staticmethod
    def month_details(db: Session, year: int, month: int, today: Optional[date] = None) -> Dict[str, Any]:
        """
        Summary of one month.

        Past months report ledger statistics over every appointment; current
        and future months report the stored calendar (if any) plus statistics
        over active appointments. Nothing is materialized.
        """
        if not 1 <= month <= 12:
            raise InvalidMonthError(month)
        today = resolve_today(today)
        start, end = month_bounds(year, month)

        if is_past_month(year, month, today):
            appointments = BookingLedger.find_in_range(db, start, end)
            return {
                "year": year,
                "month": month,
                "month_type": "past",
                "is_generated": True,
                "statistics": _statistics(appointments),
            }

        appointments = BookingLedger.find_in_range(db, start, end, statuses=ACTIVE_APPOINTMENT_STATUSES)
        record = MonthCalendarStore.get(db, year, month)
        calendar_summary: Dict[str, Any] = {"stored": record is not None}
        if record is not None:
            schedule = record.get_schedule()
            entries = [entry for day in schedule.days for entry in day.professionals]
            calendar_summary.update({
                "days": len(schedule.days),
                "professional_entries": len(entries),
                "unavailable_entries": sum(1 for entry in entries if not entry.is_available),
                "booked_slots": sum(len(entry.booked_slots) for entry in entries),
                "breaks": sum(len(entry.breaks) for entry in entries),
                "version": record.version_id,
            })

        return {
            "year": year,
            "month": month,
            "month_type": "current" if (year, month) == (today.year, today.month) else "future",
            "is_generated": False,
            "calendar": calendar_summary,
            "statistics": _statistics(appointments),
        }

    @staticmethod
    def export_month(db: Session, year: int, month: int) -> Dict[str, Any]:
        """
        Full dump of one month for backup and analytics.

        Includes every appointment in the month regardless of status and a
        per-day summary of the stored calendar when one exists. Fees are the
        professional's current fee for the visit type; expected revenue
        leaves cancelled appointments out. Nothing is materialized.
        """
        if not 1 <= month <= 12:
            raise InvalidMonthError(month)
        start, end = month_bounds(year, month)

        appointments = BookingLedger.find_in_range(db, start, end)
        record = MonthCalendarStore.get(db, year, month)

        calendar_export: Optional[Dict[str, Any]] = None
        if record is not None:
            schedule = record.get_schedule()
            calendar_export = {
                "year": record.year,
                "month": record.month,
                "version": record.version_id,
                "total_days": len(schedule.days),
                "days": [
                    {
                        "date": day.date.isoformat(),
                        "day_name": day.day_name,
                        "professionals_count": len(day.professionals),
                        "booked_slots_count": sum(len(entry.booked_slots) for entry in day.professionals),
                    }
                    for day in schedule.days
                ],
            }

        rows = []
        expected_revenue = Decimal("0")
        for appointment in appointments:
            professional = appointment.professional
            fee = ProfessionalDirectory.fee(professional, appointment.visit_type) if professional is not None else None
            if fee is not None and appointment.status != APPOINTMENT_STATUS_CANCELLED:
                expected_revenue += fee
            created_at = ensure_local(appointment.created_at)
            rows.append({
                "id": appointment.id,
                "date": appointment.appointment_date.isoformat(),
                "start_time": appointment.start_time,
                "end_time": appointment.end_time,
                "status": appointment.status,
                "visit_type": appointment.visit_type,
                "professional_type": appointment.professional_type,
                "professional_id": appointment.professional_id,
                "professional_name": professional.name if professional is not None else "Unknown",
                "patient_id": appointment.patient_id,
                "patient_name": appointment.patient_name,
                "fee": float(fee) if fee is not None else None,
                "created_at": created_at.isoformat() if created_at is not None else None,
            })

        logger.info(f"Exported {year}-{month:02d}: {len(rows)} appointment(s), stored calendar: {record is not None}")
        return {
            "metadata": {
                "export_date": local_now().isoformat(),
                "year": year,
                "month": month,
                "month_name": calendar_module.month_name[month],
                "has_stored_calendar": record is not None,
                "total_appointments": len(rows),
            },
            "calendar": calendar_export,
            "appointments": rows,
            "summary": {
                "by_status": dict(Counter(a.status for a in appointments)),
                "by_professional_type": dict(Counter(a.professional_type for a in appointments)),
                "expected_revenue": float(expected_revenue),
            },
        }
