"""
Consistency auditor.

Compares the current month's active ledger appointments with the cached
booked slots in the stored calendar. Auditing only reports drift; repair is
a separate, explicit operation that adds missing structure and snapshots
but never deletes anything. Cached slots without an active ledger row are
reported as orphans and left in place, since a concurrent cancellation may
still be in flight.
"""

import logging
from datetime import date
from typing import List, Optional, Set, Tuple

from sqlalchemy.orm import Session

from core.constants import (
    ACTIVE_APPOINTMENT_STATUSES,
    AUDIT_MISSING_DAY,
    AUDIT_MISSING_PROFESSIONAL,
    AUDIT_MISSING_SLOT,
    AUDIT_ORPHAN_SLOT,
    AUDIT_STATUS_HEALTHY,
    AUDIT_STATUS_NEEDS_ATTENTION,
)
from models import Appointment
from services.booking_ledger import BookingLedger
from services.calendar_materializer import CalendarMaterializer
from services.month_calendar_store import MonthCalendarStore
from shared_types.audit import AuditIssue, AuditReport, RepairResult
from shared_types.calendar import BookedSlot, MonthSchedule
from utils.datetime_utils import ensure_local, local_now, resolve_today
from utils.time_utils import month_bounds

logger = logging.getLogger(__name__)

LedgerKey = Tuple[int, date, int, str]


def _issue(kind: str, appointment: Appointment) -> AuditIssue:
    return AuditIssue(
        kind=kind,
        appointment_id=appointment.id,
        professional_id=appointment.professional_id,
        professional_type=appointment.professional_type,
        date=appointment.appointment_date.isoformat(),
        start_time=appointment.start_time,
        end_time=appointment.end_time,
    )


def _find_orphans(schedule: MonthSchedule, active_keys: Set[LedgerKey]) -> List[AuditIssue]:
    orphans: List[AuditIssue] = []
    for day in schedule.days:
        for entry in day.professionals:
            for slot in entry.booked_slots:
                key = (slot.appointment_id, day.date, entry.professional_id, entry.professional_type)
                if key not in active_keys:
                    orphans.append(AuditIssue(
                        kind=AUDIT_ORPHAN_SLOT,
                        appointment_id=slot.appointment_id,
                        professional_id=entry.professional_id,
                        professional_type=entry.professional_type,
                        date=day.date.isoformat(),
                        start_time=slot.start_time,
                        end_time=slot.end_time,
                    ))
    return orphans


def _active_appointments(db: Session, year: int, month: int) -> List[Appointment]:
    start, end = month_bounds(year, month)
    return BookingLedger.find_in_range(db, start, end, statuses=ACTIVE_APPOINTMENT_STATUSES)


def _ledger_keys(appointments: List[Appointment]) -> Set[LedgerKey]:
    return {(a.id, a.appointment_date, a.professional_id, a.professional_type) for a in appointments}


class ConsistencyAuditor:
    """Service class for auditing and repairing cache drift."""

    @staticmethod
    def audit_health(db: Session, today: Optional[date] = None) -> AuditReport:
        """
        Audit the current month. Read-only.

        When the month has not been materialized, every active appointment is
        reported as MISSING_DAY.
        """
        today = resolve_today(today)
        year, month = today.year, today.month
        appointments = _active_appointments(db, year, month)
        record = MonthCalendarStore.get(db, year, month)
        schedule = record.get_schedule() if record is not None else None

        issues: List[AuditIssue] = []
        for appointment in appointments:
            day = schedule.get_day(appointment.appointment_date) if schedule is not None else None
            if day is None:
                issues.append(_issue(AUDIT_MISSING_DAY, appointment))
                continue
            entry = day.find_professional(appointment.professional_id, appointment.professional_type)
            if entry is None:
                issues.append(_issue(AUDIT_MISSING_PROFESSIONAL, appointment))
            elif not entry.has_booking(appointment.id):
                issues.append(_issue(AUDIT_MISSING_SLOT, appointment))

        orphans = _find_orphans(schedule, _ledger_keys(appointments)) if schedule is not None else []
        status = AUDIT_STATUS_HEALTHY if not issues and not orphans else AUDIT_STATUS_NEEDS_ATTENTION
        if status != AUDIT_STATUS_HEALTHY:
            logger.warning(
                f"⚠️ Calendar {year}-{month:02d} drift: {len(issues)} missing, {len(orphans)} orphaned"
            )
        return AuditReport(
            year=year,
            month=month,
            status=status,
            checked_appointments=len(appointments),
            issues=issues,
            orphans=orphans,
        )

    @staticmethod
    def repair_inconsistencies(db: Session, today: Optional[date] = None) -> RepairResult:
        """
        Repair the current month: materialize it if missing, create missing
        professional schedules, and insert missing booked-slot snapshots.
        """
        today = resolve_today(today)
        year, month = today.year, today.month

        def attempt() -> RepairResult:
            CalendarMaterializer.initialize_month(db, year, month, today)
            record = MonthCalendarStore.get(db, year, month)
            schedule = record.get_schedule()
            appointments = _active_appointments(db, year, month)

            result = RepairResult(year=year, month=month)
            for appointment in appointments:
                day = schedule.get_day(appointment.appointment_date)
                if day is None:
                    continue
                entry = day.find_professional(appointment.professional_id, appointment.professional_type)
                if entry is None:
                    entry = day.ensure_professional(appointment.professional_id, appointment.professional_type)
                    result.schedules_created += 1
                added = entry.add_booked_slot(BookedSlot(
                    appointment_id=appointment.id,
                    patient_id=appointment.patient_id,
                    start_time=appointment.start_time,
                    end_time=appointment.end_time,
                    booked_at=ensure_local(appointment.created_at) or local_now(),
                    booked_by="system",
                ))
                if added:
                    result.slots_inserted += 1

            if result.schedules_created or result.slots_inserted:
                MonthCalendarStore.save(db, record, schedule)
            db.commit()
            result.orphans = _find_orphans(schedule, _ledger_keys(appointments))
            return result

        result = MonthCalendarStore.run_with_write_retry(db, year, month, attempt)
        logger.info(
            f"🔧 Repaired calendar {year}-{month:02d}: {result.schedules_created} schedule(s) created, "
            f"{result.slots_inserted} slot(s) inserted, {len(result.orphans)} orphan(s) left in place"
        )
        return result
