"""
Booking transaction.

Books an interval for a professional on a date. The ledger is the conflict
gate; the month calendar receives a cached snapshot of the booking. The
conflict check, the ledger reservation and the cache append run inside the
per-(professional, date) section held by ScheduleLockService and commit
together, so two overlapping bookings can never both succeed.
"""

import logging
from datetime import date
from typing import Optional

from sqlalchemy.orm import Session

from core.constants import SLOT_TYPE_CLINIC, SLOT_TYPES
from core.exceptions import NotFoundError, PastDateNotBookableError, SlotConflictError
from services.booking_ledger import BookingLedger
from services.calendar_materializer import CalendarMaterializer
from services.month_calendar_store import MonthCalendarStore
from services.professional_directory import ProfessionalDirectory
from services.schedule_lock_service import ScheduleLockService
from shared_types.calendar import BookedSlot
from utils.datetime_utils import local_now, resolve_today
from utils.time_utils import validate_time_range

logger = logging.getLogger(__name__)


class BookingService:
    """Service class for booking slots."""

    @staticmethod
    def book_slot(
        db: Session,
        professional_id: int,
        professional_type: str,
        target_date: date,
        start_time: str,
        end_time: str,
        appointment_id: int,
        patient_id: int,
        booked_by: Optional[str] = None,
        visit_type: str = SLOT_TYPE_CLINIC,
        today: Optional[date] = None,
    ) -> BookedSlot:
        """
        Book [start_time, end_time) on target_date for appointment_id.

        Booking does not require the interval to be an offered slot; only the
        ledger decides conflicts. Re-booking an appointment that is already
        cached leaves a single cached entry.

        Returns:
            The cached BookedSlot snapshot

        Raises:
            ValueError: Unknown professional type or visit type, or appointment owned by someone else
            NotFoundError: If the professional does not exist
            PastDateNotBookableError: If target_date is before today
            InvalidTimeRangeError: If the times are malformed or end <= start
            SlotConflictError: If an active appointment overlaps the interval
            AggregateWriteConflictError: If concurrent calendar writes kept winning
        """
        ProfessionalDirectory.validate_type(professional_type)
        today = resolve_today(today)
        if target_date < today:
            raise PastDateNotBookableError(target_date)
        validate_time_range(start_time, end_time)
        if visit_type not in SLOT_TYPES:
            raise ValueError(f"Invalid visit type '{visit_type}' (expected one of {', '.join(SLOT_TYPES)})")
        if ProfessionalDirectory.get_professional(db, professional_id, professional_type) is None:
            raise NotFoundError(f"{professional_type.capitalize()} {professional_id} not found")

        year, month = target_date.year, target_date.month

        def attempt() -> BookedSlot:
            CalendarMaterializer.initialize_month(db, year, month, today)

            with ScheduleLockService.hold(db, professional_id, professional_type, target_date):
                conflicts = BookingLedger.find_overlapping(
                    db,
                    professional_id,
                    professional_type,
                    target_date,
                    start_time,
                    end_time,
                    exclude_appointment_id=appointment_id,
                )
                if conflicts:
                    logger.warning(
                        f"Slot conflict for {professional_type} {professional_id} on {target_date} "
                        f"{start_time}-{end_time}: {len(conflicts)} existing appointment(s)"
                    )
                    raise SlotConflictError(len(conflicts))

                BookingLedger.reserve(
                    db,
                    appointment_id=appointment_id,
                    patient_id=patient_id,
                    professional_id=professional_id,
                    professional_type=professional_type,
                    target_date=target_date,
                    start_time=start_time,
                    end_time=end_time,
                    visit_type=visit_type,
                )

                record = MonthCalendarStore.get(db, year, month)
                if record is None:
                    raise NotFoundError(f"Calendar {year}-{month:02d} not found")
                schedule = record.get_schedule()
                day = schedule.get_day(target_date)
                if day is None:
                    raise NotFoundError(f"Calendar day {target_date} not found")

                professional_schedule = day.ensure_professional(professional_id, professional_type)
                slot = BookedSlot(
                    appointment_id=appointment_id,
                    patient_id=patient_id,
                    start_time=start_time,
                    end_time=end_time,
                    booked_at=local_now(),
                    booked_by=booked_by,
                )
                if not professional_schedule.add_booked_slot(slot):
                    # Already cached: align the snapshot with the ledger interval
                    for cached in professional_schedule.booked_slots:
                        if cached.appointment_id == appointment_id:
                            cached.start_time = start_time
                            cached.end_time = end_time
                            slot = cached

                MonthCalendarStore.save(db, record, schedule)
                db.commit()

            logger.info(
                f"Booked {professional_type} {professional_id} on {target_date} "
                f"{start_time}-{end_time} for appointment {appointment_id}"
            )
            return slot

        return MonthCalendarStore.run_with_write_retry(db, year, month, attempt)
