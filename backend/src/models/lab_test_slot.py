"""
Dated test-collection slots published by pathology labs.

Unlike doctors and physiotherapists, labs publish capacity per calendar date
rather than a weekly template.
"""

from datetime import date, datetime
from typing import Optional
from sqlalchemy import String, Boolean, Integer, Date, ForeignKey, TIMESTAMP, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship

from core.database import Base


class LabTestSlot(Base):
    """A test-collection window on a specific date."""

    __tablename__ = "lab_test_slots"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)

    professional_id: Mapped[int] = mapped_column(ForeignKey("professionals.id"))
    """Reference to the pathology lab."""

    slot_date: Mapped[date] = mapped_column(Date)
    start_time: Mapped[str] = mapped_column(String(5))
    end_time: Mapped[str] = mapped_column(String(5))

    slot_type: Mapped[str] = mapped_column(String(20), default="clinic")
    """'clinic' for walk-in collection, 'home' for home sample collection."""

    capacity: Mapped[int] = mapped_column(Integer, default=1)
    is_available: Mapped[bool] = mapped_column(Boolean, default=True)

    created_at: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    updated_at: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True), nullable=True)

    professional = relationship("Professional", back_populates="lab_test_slots")

    __table_args__ = (
        Index('idx_lab_test_slots_professional_date', 'professional_id', 'slot_date'),
    )
