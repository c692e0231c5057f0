"""
Appointment model: the booking ledger.

The ledger is the authoritative record of who is booked when. Every booking
decision re-reads it; the month calendar only caches a projection of it.
"""

from datetime import date as date_type, datetime
from typing import Optional
from sqlalchemy import String, Date, ForeignKey, TIMESTAMP, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship

from core.constants import ACTIVE_APPOINTMENT_STATUSES
from core.database import Base


class Appointment(Base):
    """
    A booked interval between a patient and a professional.

    Status lifecycle: 'pending' -> 'confirmed'/'accepted' -> 'completed', or
    'cancelled' at any point. Only pending/confirmed/accepted appointments
    occupy the professional's time.
    """

    __tablename__ = "appointments"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    """Unique identifier for the appointment."""

    patient_id: Mapped[int] = mapped_column(ForeignKey("patients.id"))
    """Reference to the patient who booked this appointment."""

    professional_id: Mapped[int] = mapped_column(ForeignKey("professionals.id"))
    """Reference to the professional being booked."""

    professional_type: Mapped[str] = mapped_column(String(50))
    """Kind of professional: 'doctor', 'physiotherapist' or 'pathology'."""

    appointment_date: Mapped[date_type] = mapped_column(Date)
    start_time: Mapped[str] = mapped_column(String(5))
    """Start of the appointment, "HH:MM"."""

    end_time: Mapped[str] = mapped_column(String(5))
    """End of the appointment, "HH:MM" (exclusive)."""

    status: Mapped[str] = mapped_column(String(20), default="pending")
    """One of 'pending', 'confirmed', 'accepted', 'completed', 'cancelled'."""

    visit_type: Mapped[str] = mapped_column(String(20), default="clinic")
    """'clinic' or 'home'."""

    created_at: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    updated_at: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True), nullable=True)

    # Relationships
    patient = relationship("Patient", back_populates="appointments")
    professional = relationship("Professional")

    __table_args__ = (
        Index('idx_appointments_professional_date', 'professional_type', 'professional_id', 'appointment_date'),
        Index('idx_appointments_date_status', 'appointment_date', 'status'),
    )

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_APPOINTMENT_STATUSES

    @property
    def patient_name(self) -> Optional[str]:
        return self.patient.full_name if self.patient is not None else None
