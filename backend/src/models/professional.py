"""
Professional model for doctors, physiotherapists and pathology labs.

The directory is the source of truth for whether a professional may appear
on the calendar (verified, active and approved) and for the fees quoted on
offered slots.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional
from sqlalchemy import String, Boolean, Numeric, TIMESTAMP, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship

from core.constants import VERIFICATION_APPROVED
from core.database import Base


class Professional(Base):
    """
    A bookable professional.

    ``professional_type`` is one of 'doctor', 'physiotherapist', 'pathology'.
    Calendar entries are keyed by (id, professional_type).
    """

    __tablename__ = "professionals"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    """Unique identifier for the professional."""

    professional_type: Mapped[str] = mapped_column(String(50))
    """Kind of professional: 'doctor', 'physiotherapist' or 'pathology'."""

    name: Mapped[str] = mapped_column(String(255))
    """Display name (person or lab)."""

    verification_status: Mapped[str] = mapped_column(String(20), default="pending")
    """Profile verification: 'pending', 'approved', 'rejected', 'suspended'."""

    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    """Whether the professional profile is active."""

    user_is_verified: Mapped[bool] = mapped_column(Boolean, default=False)
    """Whether the owning user account has been verified."""

    user_is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    """Whether the owning user account is active."""

    consultation_fee: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=0)
    """Fee quoted for clinic visits."""

    home_visit_fee: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2), nullable=True)
    """Fee quoted for home visits, if offered."""

    created_at: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    updated_at: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True), nullable=True)

    # Relationships
    weekly_slots = relationship("WeeklyAvailabilitySlot", back_populates="professional", cascade="all, delete-orphan")
    """Weekly template for doctors and physiotherapists."""

    lab_test_slots = relationship("LabTestSlot", back_populates="professional", cascade="all, delete-orphan")
    """Dated capacity slots for pathology labs."""

    __table_args__ = (
        Index('idx_professionals_type_active', 'professional_type', 'is_active'),
    )

    @property
    def is_bookable(self) -> bool:
        """Verified, active and approved professionals may appear on the calendar."""
        return bool(
            self.is_active
            and self.user_is_verified
            and self.user_is_active
            and self.verification_status == VERIFICATION_APPROVED
        )
