"""
Professional self-service for daily schedules.

Professionals mark days (un)available, restrict working hours, and add or
remove breaks. Every change is checked against the ledger first: a
professional cannot block time they have already been booked for.
"""

import logging
from datetime import date, timedelta
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from core.exceptions import (
    BreakConflictsWithBookingError,
    BreakOverlapError,
    HasExistingBookingsError,
    NotFoundError,
    PastDateNotEditableError,
)
from models import Professional
from services.booking_ledger import BookingLedger
from services.calendar_materializer import CalendarMaterializer
from services.month_calendar_store import MonthCalendarStore
from services.past_calendar_service import PastCalendarService
from services.professional_directory import ProfessionalDirectory
from shared_types.calendar import Break, MonthSchedule, ProfessionalDaySchedule, WorkingHours
from utils.datetime_utils import local_now, resolve_today
from utils.time_utils import intervals_overlap, validate_time_range, week_bounds

logger = logging.getLogger(__name__)


def _check_editable(professional_type: str, target_date: date, today: date) -> None:
    ProfessionalDirectory.validate_type(professional_type)
    if target_date < today:
        raise PastDateNotEditableError(target_date)


def _load_schedule_for_write(db: Session, target_date: date, today: date):
    """Materialize if needed, then load a fresh copy of the month for modification."""
    CalendarMaterializer.initialize_month(db, target_date.year, target_date.month, today)
    record = MonthCalendarStore.get(db, target_date.year, target_date.month)
    if record is None:
        raise NotFoundError(f"Calendar {target_date.year}-{target_date.month:02d} not found")
    schedule = record.get_schedule()
    day = schedule.get_day(target_date)
    if day is None:
        raise NotFoundError(f"Calendar day {target_date} not found")
    return record, schedule, day


class ScheduleService:
    """Service class for professional schedule changes and schedule views."""

    @staticmethod
    def update_availability(
        db: Session,
        professional_id: int,
        professional_type: str,
        target_date: date,
        is_available: Optional[bool] = None,
        breaks: Optional[List[Break]] = None,
        working_hours: Optional[List[WorkingHours]] = None,
        updated_by: Optional[str] = None,
        today: Optional[date] = None,
    ) -> ProfessionalDaySchedule:
        """
        Update a professional's availability flag, breaks and/or working hours for a date.

        Fields left as None are unchanged. ``breaks`` replaces the existing
        list when given.

        Raises:
            PastDateNotEditableError: If target_date is before today
            InvalidTimeRangeError: If any break or working-hours range is invalid
            BreakOverlapError: If the replacement breaks overlap each other
            HasExistingBookingsError: If marking unavailable while appointments are active
            BreakConflictsWithBookingError: If a replacement break overlaps an active appointment or a cached booking
        """
        today = resolve_today(today)
        _check_editable(professional_type, target_date, today)

        for window in working_hours or []:
            validate_time_range(window.start_time, window.end_time)
        for new_break in breaks or []:
            validate_time_range(new_break.start_time, new_break.end_time)
        if breaks:
            for i, first in enumerate(breaks):
                for second in breaks[i + 1:]:
                    if intervals_overlap(first.start_time, first.end_time, second.start_time, second.end_time):
                        raise BreakOverlapError(second.start_time, second.end_time)

        def attempt() -> ProfessionalDaySchedule:
            record, schedule, day = _load_schedule_for_write(db, target_date, today)

            active = BookingLedger.find_by_professional_and_date(
                db, professional_id, professional_type, target_date
            )
            if is_available is False and active:
                raise HasExistingBookingsError(len(active))
            if breaks:
                conflicting = [
                    a for a in active
                    if any(intervals_overlap(b.start_time, b.end_time, a.start_time, a.end_time) for b in breaks)
                ]
                if conflicting:
                    raise BreakConflictsWithBookingError(len(conflicting))

            entry = day.ensure_professional(professional_id, professional_type)
            if is_available is not None:
                entry.is_available = is_available
            if breaks is not None:
                now = local_now()
                # add_break also rejects overlap with cached bookings
                entry.breaks = []
                for b in breaks:
                    entry.add_break(b.model_copy(update={
                        "added_at": b.added_at or now,
                        "added_by": b.added_by or updated_by,
                    }))
            if working_hours is not None:
                entry.working_hours = list(working_hours)

            MonthCalendarStore.save(db, record, schedule)
            db.commit()
            return entry

        entry = MonthCalendarStore.run_with_write_retry(db, target_date.year, target_date.month, attempt)
        logger.info(f"Updated availability for {professional_type} {professional_id} on {target_date}")
        return entry

    @staticmethod
    def add_break(
        db: Session,
        professional_id: int,
        professional_type: str,
        target_date: date,
        start_time: str,
        end_time: str,
        reason: Optional[str] = None,
        added_by: Optional[str] = None,
        today: Optional[date] = None,
    ) -> Break:
        """
        Add a break to a professional's day.

        Raises:
            PastDateNotEditableError: If target_date is before today
            InvalidTimeRangeError: If the times are malformed or end <= start
            BreakConflictsWithBookingError: If the break overlaps active appointments
            BreakOverlapError: If the break overlaps an existing break
        """
        today = resolve_today(today)
        _check_editable(professional_type, target_date, today)
        validate_time_range(start_time, end_time)

        def attempt() -> Break:
            record, schedule, day = _load_schedule_for_write(db, target_date, today)

            conflicts = BookingLedger.find_overlapping(
                db, professional_id, professional_type, target_date, start_time, end_time
            )
            if conflicts:
                raise BreakConflictsWithBookingError(len(conflicts))

            entry = day.ensure_professional(professional_id, professional_type)
            new_break = Break(start_time=start_time, end_time=end_time, added_at=local_now(), added_by=added_by)
            if reason:
                new_break.reason = reason
            entry.add_break(new_break)

            MonthCalendarStore.save(db, record, schedule)
            db.commit()
            return new_break

        new_break = MonthCalendarStore.run_with_write_retry(db, target_date.year, target_date.month, attempt)
        logger.info(
            f"Added break {new_break.id} ({start_time}-{end_time}) for {professional_type} "
            f"{professional_id} on {target_date}"
        )
        return new_break

    @staticmethod
    def remove_break(
        db: Session,
        professional_id: int,
        professional_type: str,
        break_id: str,
        target_date: date,
    ) -> Break:
        """
        Remove a break by id.

        Raises:
            NotFoundError: If the calendar, day, professional schedule or break does not exist
        """
        ProfessionalDirectory.validate_type(professional_type)

        def attempt() -> Break:
            record = MonthCalendarStore.get(db, target_date.year, target_date.month)
            if record is None:
                raise NotFoundError(f"Calendar not found for {target_date.year}-{target_date.month:02d}")
            schedule = record.get_schedule()
            day = schedule.get_day(target_date)
            if day is None:
                raise NotFoundError(f"Calendar day {target_date} not found")
            entry = day.find_professional(professional_id, professional_type)
            if entry is None:
                raise NotFoundError(f"No schedule for {professional_type} {professional_id} on {target_date}")
            removed = entry.remove_break(break_id)

            MonthCalendarStore.save(db, record, schedule)
            db.commit()
            return removed

        removed = MonthCalendarStore.run_with_write_retry(db, target_date.year, target_date.month, attempt)
        logger.info(f"Removed break {break_id} for {professional_type} {professional_id} on {target_date}")
        return removed

    @staticmethod
    def get_schedule(
        db: Session,
        professional_id: int,
        professional_type: str,
        target_date: date,
        week_view: bool = False,
        today: Optional[date] = None,
    ) -> Dict[str, Any]:
        """
        Get a professional's schedule for a day, or for the Sunday-Saturday week containing it.

        Past days come from the ledger; today and later come from the stored
        calendar (materialized on demand).

        Raises:
            NotFoundError: If the professional does not exist
        """
        ProfessionalDirectory.validate_type(professional_type)
        today = resolve_today(today)
        professional = ProfessionalDirectory.get_professional(db, professional_id, professional_type)
        if professional is None:
            raise NotFoundError(f"{professional_type.capitalize()} {professional_id} not found")

        months: Dict[tuple, Optional[MonthSchedule]] = {}

        def day_entry(current: date) -> Dict[str, Any]:
            if current < today:
                entry = PastCalendarService.generate_past_day(db, professional_id, professional_type, current)
                is_generated = True
            else:
                key = (current.year, current.month)
                if key not in months:
                    record = CalendarMaterializer.initialize_month(db, current.year, current.month, today)
                    months[key] = record.get_schedule() if record is not None else None
                month_schedule = months[key]
                day = month_schedule.get_day(current) if month_schedule is not None else None
                entry = day.find_professional(professional_id, professional_type) if day is not None else None
                is_generated = False
            return {
                "date": current.isoformat(),
                "is_generated": is_generated,
                "schedule": entry.model_dump(mode="json") if entry is not None else None,
            }

        result: Dict[str, Any] = {"professional": _professional_summary(professional)}
        if week_view:
            week_start, week_end = week_bounds(target_date)
            result["week_start"] = week_start.isoformat()
            result["week_end"] = week_end.isoformat()
            result["days"] = {
                (week_start + timedelta(days=offset)).isoformat(): day_entry(week_start + timedelta(days=offset))
                for offset in range(7)
            }
        else:
            result.update(day_entry(target_date))
        return result


def _professional_summary(professional: Professional) -> Dict[str, Any]:
    return {
        "id": professional.id,
        "professional_type": professional.professional_type,
        "name": professional.name,
        "consultation_fee": float(professional.consultation_fee) if professional.consultation_fee is not None else None,
        "home_visit_fee": float(professional.home_visit_fee) if professional.home_visit_fee is not None else None,
    }
