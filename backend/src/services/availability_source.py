"""
Availability source: what each professional offers, before calendar state.

Doctors and physiotherapists publish a weekly template keyed by weekday;
pathology labs publish slots per calendar date.
"""

import logging
from collections import defaultdict
from datetime import date
from typing import Dict, List, Set, Tuple

from sqlalchemy.orm import Session

from core.constants import PROFESSIONAL_TYPE_PATHOLOGY
from models import LabTestSlot, WeeklyAvailabilitySlot
from shared_types.availability import OfferedSlot

logger = logging.getLogger(__name__)


class AvailabilitySource:
    """Reads weekly templates and lab test slots."""

    @staticmethod
    def weekly_template(db: Session, professional_id: int, day_of_week: int) -> List[OfferedSlot]:
        """
        Offered windows for a weekday (0=Monday .. 6=Sunday), disabled ones included.
        """
        rows = db.query(WeeklyAvailabilitySlot).filter(
            WeeklyAvailabilitySlot.professional_id == professional_id,
            WeeklyAvailabilitySlot.day_of_week == day_of_week,
        ).order_by(WeeklyAvailabilitySlot.start_time).all()
        return [
            OfferedSlot(
                start_time=row.start_time,
                end_time=row.end_time,
                slot_type=row.slot_type,
                is_available=row.is_available,
                capacity=row.max_patients,
            )
            for row in rows
        ]

    @staticmethod
    def test_slots_for_date(db: Session, pathology_id: int, target_date: date) -> List[OfferedSlot]:
        rows = db.query(LabTestSlot).filter(
            LabTestSlot.professional_id == pathology_id,
            LabTestSlot.slot_date == target_date,
        ).order_by(LabTestSlot.start_time).all()
        return [
            OfferedSlot(
                start_time=row.start_time,
                end_time=row.end_time,
                slot_type=row.slot_type,
                is_available=row.is_available,
                capacity=row.capacity,
            )
            for row in rows
        ]

    @staticmethod
    def offered_slots(db: Session, professional_id: int, professional_type: str, target_date: date) -> List[OfferedSlot]:
        """Offered windows for one professional on one date."""
        if professional_type == PROFESSIONAL_TYPE_PATHOLOGY:
            return AvailabilitySource.test_slots_for_date(db, professional_id, target_date)
        return AvailabilitySource.weekly_template(db, professional_id, target_date.weekday())

    @staticmethod
    def working_weekdays(db: Session, professional_ids: List[int]) -> Dict[int, Set[int]]:
        """Weekdays with at least one template row, per professional."""
        result: Dict[int, Set[int]] = defaultdict(set)
        if not professional_ids:
            return result
        rows = db.query(WeeklyAvailabilitySlot.professional_id, WeeklyAvailabilitySlot.day_of_week).filter(
            WeeklyAvailabilitySlot.professional_id.in_(professional_ids),
        ).distinct().all()
        for professional_id, day_of_week in rows:
            result[professional_id].add(day_of_week)
        return result

    @staticmethod
    def lab_dates_in_range(db: Session, pathology_ids: List[int], start: date, end: date) -> Set[Tuple[int, date]]:
        """(lab id, date) pairs with at least one test slot between start and end inclusive."""
        if not pathology_ids:
            return set()
        rows = db.query(LabTestSlot.professional_id, LabTestSlot.slot_date).filter(
            LabTestSlot.professional_id.in_(pathology_ids),
            LabTestSlot.slot_date >= start,
            LabTestSlot.slot_date <= end,
        ).distinct().all()
        return {(professional_id, slot_date) for professional_id, slot_date in rows}
