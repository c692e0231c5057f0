"""
Shared response models for API endpoints.

This module contains Pydantic response models used by the calendar
endpoints to keep response shapes consistent.
"""

from typing import List, Optional

from pydantic import BaseModel, Field

from shared_types.calendar import Break, BookedSlot


class AvailableSlotResponse(BaseModel):
    """Response model for a single bookable window."""
    start_time: str  # Format: "HH:MM"
    end_time: str    # Format: "HH:MM"
    slot_type: str   # 'clinic' or 'home'
    fee: Optional[float] = None
    duration: int    # minutes
    is_available: bool = True


class AvailableSlotsResponse(BaseModel):
    """Response model for available slots."""
    date: str  # Format: "YYYY-MM-DD"
    professional_id: int
    professional_type: str
    duration: int
    slots: List[AvailableSlotResponse]


class BookSlotResponse(BaseModel):
    success: bool = True
    message: str
    booked_slot: BookedSlot


class BreakResponse(BaseModel):
    success: bool = True
    message: str
    break_: Break = Field(serialization_alias="break")


class InitializeMonthResponse(BaseModel):
    year: int
    month: int
    created: bool
    stored: bool
    message: str


class CleanupResponse(BaseModel):
    deleted_count: int
    deleted_months: List[str]
    cutoff: str  # Format: "YYYY-MM"
    deleted_lock_count: int = 0
