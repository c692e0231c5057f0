"""
Professional directory lookups.

Answers who may appear on the calendar and what they charge. Eligibility
means the professional profile is approved and active and the owning user
account is verified and active.
"""

import logging
from decimal import Decimal
from typing import List, Optional

from sqlalchemy.orm import Session

from core.constants import PROFESSIONAL_TYPES, SLOT_TYPE_HOME, VERIFICATION_APPROVED
from core.exceptions import NotFoundError, ProfessionalUnavailableError
from models import Professional

logger = logging.getLogger(__name__)


class ProfessionalDirectory:
    """Read-only access to the professional directory."""

    @staticmethod
    def validate_type(professional_type: str) -> None:
        """
        Raises:
            ValueError: If the professional type is unknown
        """
        if professional_type not in PROFESSIONAL_TYPES:
            raise ValueError(
                f"Invalid professional type '{professional_type}' (expected one of {', '.join(PROFESSIONAL_TYPES)})"
            )

    @staticmethod
    def get_professional(db: Session, professional_id: int, professional_type: str) -> Optional[Professional]:
        return db.query(Professional).filter(
            Professional.id == professional_id,
            Professional.professional_type == professional_type,
        ).first()

    @staticmethod
    def is_verified_and_active(db: Session, professional_id: int, professional_type: str) -> bool:
        professional = ProfessionalDirectory.get_professional(db, professional_id, professional_type)
        return professional is not None and professional.is_bookable

    @staticmethod
    def require_bookable(db: Session, professional_id: int, professional_type: str) -> Professional:
        """
        Get a professional that may take bookings.

        Raises:
            NotFoundError: If no such professional exists
            ProfessionalUnavailableError: If the professional is not verified and active
        """
        professional = ProfessionalDirectory.get_professional(db, professional_id, professional_type)
        if professional is None:
            raise NotFoundError(f"{professional_type.capitalize()} {professional_id} not found")
        if not professional.is_bookable:
            raise ProfessionalUnavailableError(professional_id, professional_type)
        return professional

    @staticmethod
    def fee(professional: Professional, slot_type: str) -> Optional[Decimal]:
        """Home-visit fee for home slots, consultation fee otherwise."""
        if slot_type == SLOT_TYPE_HOME:
            return professional.home_visit_fee
        return professional.consultation_fee

    @staticmethod
    def list_eligible(db: Session, professional_type: Optional[str] = None) -> List[Professional]:
        """All verified, active and approved professionals, in id order."""
        query = db.query(Professional).filter(
            Professional.is_active == True,  # noqa: E712
            Professional.user_is_verified == True,  # noqa: E712
            Professional.user_is_active == True,  # noqa: E712
            Professional.verification_status == VERIFICATION_APPROVED,
        )
        if professional_type is not None:
            query = query.filter(Professional.professional_type == professional_type)
        return query.order_by(Professional.professional_type, Professional.id).all()
