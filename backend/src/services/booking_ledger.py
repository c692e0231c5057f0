"""
Booking ledger queries.

The appointments table is authoritative for who is booked when. Every
availability or conflict decision reads it fresh rather than trusting the
month calendar cache.
"""

import logging
from datetime import date
from typing import Iterable, List, Optional

from sqlalchemy.orm import Session, joinedload

from core.constants import (
    ACTIVE_APPOINTMENT_STATUSES,
    APPOINTMENT_STATUS_PENDING,
    SLOT_TYPE_CLINIC,
)
from models import Appointment
from utils.time_utils import intervals_overlap

logger = logging.getLogger(__name__)


class BookingLedger:
    """Service class for reading and reserving ledger appointments."""

    @staticmethod
    def find_by_professional_and_date(
        db: Session,
        professional_id: int,
        professional_type: str,
        target_date: date,
        statuses: Optional[Iterable[str]] = ACTIVE_APPOINTMENT_STATUSES,
    ) -> List[Appointment]:
        """
        Appointments for one professional on one date, ordered by start time.

        Pass statuses=None to include every status.
        """
        query = db.query(Appointment).options(joinedload(Appointment.patient)).filter(
            Appointment.professional_id == professional_id,
            Appointment.professional_type == professional_type,
            Appointment.appointment_date == target_date,
        )
        if statuses is not None:
            query = query.filter(Appointment.status.in_(list(statuses)))
        return query.order_by(Appointment.start_time, Appointment.id).all()

    @staticmethod
    def find_overlapping(
        db: Session,
        professional_id: int,
        professional_type: str,
        target_date: date,
        start_time: str,
        end_time: str,
        statuses: Iterable[str] = ACTIVE_APPOINTMENT_STATUSES,
        exclude_appointment_id: Optional[int] = None,
    ) -> List[Appointment]:
        """
        Appointments overlapping [start_time, end_time) on target_date.

        Times are compared as clock minutes so that "9:00"-style legacy values
        and zero-padded values behave the same.
        """
        candidates = BookingLedger.find_by_professional_and_date(
            db, professional_id, professional_type, target_date, statuses
        )
        return [
            appointment for appointment in candidates
            if appointment.id != exclude_appointment_id
            and intervals_overlap(start_time, end_time, appointment.start_time, appointment.end_time)
        ]

    @staticmethod
    def find_in_range(
        db: Session,
        start_date: date,
        end_date: date,
        statuses: Optional[Iterable[str]] = None,
        professional_id: Optional[int] = None,
        professional_type: Optional[str] = None,
    ) -> List[Appointment]:
        """Appointments between start_date and end_date inclusive, ordered by date then start."""
        query = db.query(Appointment).options(joinedload(Appointment.patient)).filter(
            Appointment.appointment_date >= start_date,
            Appointment.appointment_date <= end_date,
        )
        if statuses is not None:
            query = query.filter(Appointment.status.in_(list(statuses)))
        if professional_id is not None:
            query = query.filter(Appointment.professional_id == professional_id)
        if professional_type is not None:
            query = query.filter(Appointment.professional_type == professional_type)
        return query.order_by(
            Appointment.appointment_date, Appointment.start_time, Appointment.id
        ).all()

    @staticmethod
    def reserve(
        db: Session,
        appointment_id: int,
        patient_id: int,
        professional_id: int,
        professional_type: str,
        target_date: date,
        start_time: str,
        end_time: str,
        visit_type: str = SLOT_TYPE_CLINIC,
    ) -> Appointment:
        """
        Record a reservation for appointment_id in the ledger (flushed, not committed).

        Inserts a pending appointment if none exists. An existing appointment
        must belong to the same professional and patient; its interval is
        aligned with the booking and an inactive status becomes pending.

        Raises:
            ValueError: If the appointment exists for a different professional or patient
        """
        appointment = db.query(Appointment).filter(Appointment.id == appointment_id).first()
        if appointment is None:
            appointment = Appointment(
                id=appointment_id,
                patient_id=patient_id,
                professional_id=professional_id,
                professional_type=professional_type,
                appointment_date=target_date,
                start_time=start_time,
                end_time=end_time,
                status=APPOINTMENT_STATUS_PENDING,
                visit_type=visit_type,
            )
            db.add(appointment)
        else:
            if (
                appointment.professional_id != professional_id
                or appointment.professional_type != professional_type
                or appointment.patient_id != patient_id
            ):
                raise ValueError(
                    f"Appointment {appointment_id} belongs to a different professional or patient"
                )
            appointment.appointment_date = target_date
            appointment.start_time = start_time
            appointment.end_time = end_time
            appointment.visit_type = visit_type
            if appointment.status not in ACTIVE_APPOINTMENT_STATUSES:
                appointment.status = APPOINTMENT_STATUS_PENDING
        db.flush()
        return appointment
