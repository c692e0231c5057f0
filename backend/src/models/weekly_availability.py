"""
Weekly availability template for doctors and physiotherapists.

Each record is one offered window on a weekday. Multiple records per day
are allowed (e.g. a morning clinic window and an afternoon home-visit window).
"""

from datetime import datetime
from typing import Optional
from sqlalchemy import String, Boolean, Integer, ForeignKey, TIMESTAMP, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship

from core.database import Base


class WeeklyAvailabilitySlot(Base):
    """One offered window in a professional's weekly template."""

    __tablename__ = "weekly_availability_slots"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)

    professional_id: Mapped[int] = mapped_column(ForeignKey("professionals.id"))
    """Reference to the professional offering this window."""

    day_of_week: Mapped[int] = mapped_column(Integer)
    """Day of the week (0=Monday, 1=Tuesday, ..., 6=Sunday)."""

    start_time: Mapped[str] = mapped_column(String(5))
    """Start of the window, "HH:MM"."""

    end_time: Mapped[str] = mapped_column(String(5))
    """End of the window, "HH:MM"."""

    slot_type: Mapped[str] = mapped_column(String(20), default="clinic")
    """'clinic' or 'home'."""

    is_available: Mapped[bool] = mapped_column(Boolean, default=True)
    """Disabled windows are kept but not offered."""

    max_patients: Mapped[int] = mapped_column(Integer, default=1)

    created_at: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    updated_at: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True), nullable=True)

    professional = relationship("Professional", back_populates="weekly_slots")

    __table_args__ = (
        Index('idx_weekly_availability_professional_day', 'professional_id', 'day_of_week'),
    )
