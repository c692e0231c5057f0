"""
Shared types for availability-related functionality.

This module contains shared data classes used by the availability source
and the slot availability engine.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Union

from utils.time_utils import time_to_minutes


@dataclass
class OfferedSlot:
    """
    A window a professional offers on a date, before calendar constraints.

    Comes from the weekly template (doctors, physiotherapists) or from dated
    lab test slots (pathology).
    """
    start_time: str  # Format: "HH:MM"
    end_time: str  # Format: "HH:MM"
    slot_type: str  # 'clinic' or 'home'
    is_available: bool = True
    capacity: Optional[int] = None

    @property
    def duration_minutes(self) -> int:
        return time_to_minutes(self.end_time) - time_to_minutes(self.start_time)


@dataclass
class AvailableSlot:
    """A bookable window returned to callers."""
    start_time: str
    end_time: str
    slot_type: str
    fee: Optional[Decimal]
    duration: int  # minutes
    is_available: bool = True

    def to_dict(self) -> dict[str, Union[str, int, float, bool, None]]:
        """Convert to dictionary format."""
        return {
            "start_time": self.start_time,
            "end_time": self.end_time,
            "slot_type": self.slot_type,
            "fee": float(self.fee) if self.fee is not None else None,
            "duration": self.duration,
            "is_available": self.is_available,
        }
