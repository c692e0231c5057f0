"""
Calendar API endpoints.

Provides:
- Month calendars (stored or generated from appointment history)
- Professional day/week schedules and bookable slots
- Slot booking
- Professional self-service (availability, working hours, breaks)
- Admin operations (initialize, retention cleanup, sync, audit, repair, reports)

Domain errors (CalendarError) propagate to the handler registered in main.py,
which renders them with their HTTP status and error kind.
"""

import logging
from datetime import date as date_type
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from api.responses import (
    AvailableSlotResponse,
    AvailableSlotsResponse,
    BookSlotResponse,
    BreakResponse,
    CleanupResponse,
    InitializeMonthResponse,
)
from core.config import CALENDAR_RETENTION_MONTHS
from core.constants import DEFAULT_BREAK_REASON, DEFAULT_SLOT_DURATION_MINUTES, SLOT_TYPE_CLINIC
from core.database import get_db
from core.exceptions import CalendarError
from services import (
    BookingService,
    CalendarAdminService,
    CalendarService,
    ConsistencyAuditor,
    ScheduleService,
    SlotAvailabilityService,
)
from services.calendar_maintenance_service import CalendarMaintenanceService
from shared_types.calendar import Break, CalendarView, WorkingHours
from utils.datetime_utils import local_today, parse_date_string

logger = logging.getLogger(__name__)

router = APIRouter()


def get_today() -> date_type:
    """Business date used for past/future decisions; overridden in tests."""
    return local_today()


def _parse_date(value: str) -> date_type:
    try:
        return parse_date_string(value)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


def _internal_error(action: str, e: Exception) -> HTTPException:
    logger.exception(f"Failed to {action}: {e}")
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=f"Failed to {action}",
    )


# Request Models

class TimeRange(BaseModel):
    """Time interval, "HH:MM" to "HH:MM"."""
    start_time: str
    end_time: str


class BreakInput(TimeRange):
    reason: Optional[str] = None


class BookSlotRequest(BaseModel):
    professional_id: int
    professional_type: str
    date: str  # Format: "YYYY-MM-DD"
    start_time: str
    end_time: str
    appointment_id: int
    patient_id: int
    booked_by: Optional[str] = None
    visit_type: str = SLOT_TYPE_CLINIC


class UpdateAvailabilityRequest(BaseModel):
    professional_id: int
    professional_type: str
    date: str  # Format: "YYYY-MM-DD"
    is_available: Optional[bool] = None
    breaks: Optional[List[BreakInput]] = None
    working_hours: Optional[List[TimeRange]] = None
    updated_by: Optional[str] = None


class AddBreakRequest(BaseModel):
    professional_id: int
    professional_type: str
    date: str  # Format: "YYYY-MM-DD"
    start_time: str
    end_time: str
    reason: Optional[str] = None
    added_by: Optional[str] = None


class InitializeMonthRequest(BaseModel):
    year: int
    month: int


class CleanOldRequest(BaseModel):
    months_to_keep: int = Field(default=CALENDAR_RETENTION_MONTHS, ge=0)


# Calendar views

@router.get("", summary="Get month calendar", response_model=CalendarView)
def get_calendar(
    year: int = Query(..., description="Calendar year"),
    month: int = Query(..., description="Month (1-12)"),
    professional_id: Optional[int] = Query(None),
    professional_type: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    today: date_type = Depends(get_today),
) -> CalendarView:
    """
    Get a month calendar.

    Past months are generated from appointment history on every request and
    never stored. Current and future months are created on first access.
    """
    try:
        return CalendarService.get_calendar(
            db, year, month,
            professional_id=professional_id,
            professional_type=professional_type,
            today=today,
        )
    except (HTTPException, CalendarError, ValueError):
        raise
    except Exception as e:
        raise _internal_error(f"fetch calendar {year}-{month}", e)


@router.get("/professional-schedule", summary="Get a professional's day or week schedule")
def get_professional_schedule(
    professional_id: int = Query(...),
    professional_type: str = Query(...),
    date: str = Query(..., description="Date in YYYY-MM-DD format"),
    week_view: bool = Query(False, description="Return the Sunday-Saturday week containing date"),
    db: Session = Depends(get_db),
    today: date_type = Depends(get_today),
) -> Dict[str, Any]:
    target_date = _parse_date(date)
    try:
        return ScheduleService.get_schedule(
            db, professional_id, professional_type, target_date, week_view=week_view, today=today
        )
    except (HTTPException, CalendarError, ValueError):
        raise
    except Exception as e:
        raise _internal_error(f"fetch schedule for {professional_type} {professional_id}", e)


@router.get("/available-slots", summary="Get bookable slots", response_model=AvailableSlotsResponse)
def get_available_slots(
    professional_id: int = Query(...),
    professional_type: str = Query(...),
    date: str = Query(..., description="Date in YYYY-MM-DD format"),
    duration: int = Query(DEFAULT_SLOT_DURATION_MINUTES, description="Requested duration in minutes"),
    db: Session = Depends(get_db),
    today: date_type = Depends(get_today),
) -> AvailableSlotsResponse:
    """
    Get bookable windows for a professional on a date.

    Excludes windows that are disabled, too short, outside working hours,
    overlapping a break, or overlapping an active appointment.
    """
    target_date = _parse_date(date)
    try:
        slots = SlotAvailabilityService.get_available_slots(
            db, professional_id, professional_type, target_date,
            duration_minutes=duration, today=today,
        )
        return AvailableSlotsResponse(
            date=target_date.isoformat(),
            professional_id=professional_id,
            professional_type=professional_type,
            duration=duration,
            slots=[AvailableSlotResponse(**slot.to_dict()) for slot in slots],
        )
    except (HTTPException, CalendarError, ValueError):
        raise
    except Exception as e:
        raise _internal_error(f"fetch available slots for {professional_type} {professional_id}", e)


# Booking and self-service

@router.post("/book-slot", summary="Book a slot", response_model=BookSlotResponse)
def book_slot(
    request: BookSlotRequest,
    db: Session = Depends(get_db),
    today: date_type = Depends(get_today),
) -> BookSlotResponse:
    """
    Book an interval for an appointment.

    Fails with 409 SlotConflict when an active appointment overlaps.
    """
    target_date = _parse_date(request.date)
    try:
        booked = BookingService.book_slot(
            db,
            professional_id=request.professional_id,
            professional_type=request.professional_type,
            target_date=target_date,
            start_time=request.start_time,
            end_time=request.end_time,
            appointment_id=request.appointment_id,
            patient_id=request.patient_id,
            booked_by=request.booked_by,
            visit_type=request.visit_type,
            today=today,
        )
        return BookSlotResponse(message="Slot booked successfully", booked_slot=booked)
    except (HTTPException, CalendarError, ValueError):
        raise
    except Exception as e:
        raise _internal_error(f"book slot for appointment {request.appointment_id}", e)


@router.put("/availability", summary="Update a professional's availability for a date")
def update_availability(
    request: UpdateAvailabilityRequest,
    db: Session = Depends(get_db),
    today: date_type = Depends(get_today),
) -> Dict[str, Any]:
    target_date = _parse_date(request.date)
    breaks = None
    if request.breaks is not None:
        breaks = [
            Break(start_time=b.start_time, end_time=b.end_time, reason=b.reason or DEFAULT_BREAK_REASON)
            for b in request.breaks
        ]
    working_hours = None
    if request.working_hours is not None:
        working_hours = [WorkingHours(start_time=w.start_time, end_time=w.end_time) for w in request.working_hours]
    try:
        entry = ScheduleService.update_availability(
            db,
            request.professional_id,
            request.professional_type,
            target_date,
            is_available=request.is_available,
            breaks=breaks,
            working_hours=working_hours,
            updated_by=request.updated_by,
            today=today,
        )
        return {
            "success": True,
            "message": "Availability updated successfully",
            "schedule": entry.model_dump(mode="json"),
        }
    except (HTTPException, CalendarError, ValueError):
        raise
    except Exception as e:
        raise _internal_error(f"update availability for {request.professional_type} {request.professional_id}", e)


@router.post("/break", summary="Add a break", response_model=BreakResponse)
def add_break(
    request: AddBreakRequest,
    db: Session = Depends(get_db),
    today: date_type = Depends(get_today),
) -> BreakResponse:
    target_date = _parse_date(request.date)
    try:
        new_break = ScheduleService.add_break(
            db,
            request.professional_id,
            request.professional_type,
            target_date,
            request.start_time,
            request.end_time,
            reason=request.reason,
            added_by=request.added_by,
            today=today,
        )
        return BreakResponse(message="Break added successfully", break_=new_break)
    except (HTTPException, CalendarError, ValueError):
        raise
    except Exception as e:
        raise _internal_error(f"add break for {request.professional_type} {request.professional_id}", e)


@router.delete("/break/{break_id}", summary="Remove a break", response_model=BreakResponse)
def remove_break(
    break_id: str,
    professional_id: int = Query(...),
    professional_type: str = Query(...),
    date: str = Query(..., description="Date in YYYY-MM-DD format"),
    db: Session = Depends(get_db),
) -> BreakResponse:
    target_date = _parse_date(date)
    try:
        removed = ScheduleService.remove_break(db, professional_id, professional_type, break_id, target_date)
        return BreakResponse(message="Break removed successfully", break_=removed)
    except (HTTPException, CalendarError, ValueError):
        raise
    except Exception as e:
        raise _internal_error(f"remove break {break_id}", e)


# Admin

@router.post("/initialize", summary="Initialize a month calendar", response_model=InitializeMonthResponse)
def initialize_month(
    request: InitializeMonthRequest,
    db: Session = Depends(get_db),
    today: date_type = Depends(get_today),
) -> InitializeMonthResponse:
    try:
        record, created = CalendarService.initialize_month(db, request.year, request.month, today=today)
        if record is None:
            message = "Past months are generated from appointment history and are not stored"
        elif created:
            message = "Calendar initialized"
        else:
            message = "Calendar already exists"
        return InitializeMonthResponse(
            year=request.year,
            month=request.month,
            created=created,
            stored=record is not None,
            message=message,
        )
    except (HTTPException, CalendarError, ValueError):
        raise
    except Exception as e:
        raise _internal_error(f"initialize calendar {request.year}-{request.month}", e)


@router.post("/clean-old", summary="Delete calendars outside the retention window", response_model=CleanupResponse)
def clean_old_calendars(
    request: Optional[CleanOldRequest] = None,
    db: Session = Depends(get_db),
    today: date_type = Depends(get_today),
) -> CleanupResponse:
    months_to_keep = request.months_to_keep if request is not None else CALENDAR_RETENTION_MONTHS
    try:
        result = CalendarService.clean_old_calendars(db, months_to_keep=months_to_keep, today=today)
        return CleanupResponse(**result)
    except (HTTPException, CalendarError, ValueError):
        raise
    except Exception as e:
        raise _internal_error("clean old calendars", e)


@router.post("/manual-sync", summary="Run calendar maintenance now")
def manual_sync(
    db: Session = Depends(get_db),
    today: date_type = Depends(get_today),
) -> Dict[str, Any]:
    try:
        return CalendarMaintenanceService.run_daily_maintenance(db, today=today)
    except (HTTPException, CalendarError, ValueError):
        raise
    except Exception as e:
        raise _internal_error("run calendar maintenance", e)


@router.post("/fix-inconsistencies", summary="Repair drift between appointments and the current month")
def fix_inconsistencies(
    db: Session = Depends(get_db),
    today: date_type = Depends(get_today),
) -> Dict[str, Any]:
    try:
        return ConsistencyAuditor.repair_inconsistencies(db, today=today).to_dict()
    except (HTTPException, CalendarError, ValueError):
        raise
    except Exception as e:
        raise _internal_error("repair calendar", e)


@router.get("/system-status", summary="Stored calendar inventory")
def system_status(
    db: Session = Depends(get_db),
    today: date_type = Depends(get_today),
) -> Dict[str, Any]:
    try:
        return CalendarAdminService.system_status(db, today=today)
    except (HTTPException, CalendarError, ValueError):
        raise
    except Exception as e:
        raise _internal_error("fetch calendar system status", e)


@router.get("/month-details/{year}/{month}", summary="Summary of one month")
def month_details(
    year: int,
    month: int,
    db: Session = Depends(get_db),
    today: date_type = Depends(get_today),
) -> Dict[str, Any]:
    try:
        return CalendarAdminService.month_details(db, year, month, today=today)
    except (HTTPException, CalendarError, ValueError):
        raise
    except Exception as e:
        raise _internal_error(f"fetch month details {year}-{month}", e)


@router.get("/export/{year}/{month}", summary="Export one month for backup and analytics")
def export_month(
    year: int,
    month: int,
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    try:
        return CalendarAdminService.export_month(db, year, month)
    except (HTTPException, CalendarError, ValueError):
        raise
    except Exception as e:
        raise _internal_error(f"export calendar {year}-{month}", e)


@router.get("/health", summary="Audit the current month against appointments")
def calendar_health(
    db: Session = Depends(get_db),
    today: date_type = Depends(get_today),
) -> Dict[str, Any]:
    """Read-only drift report; use /fix-inconsistencies to repair."""
    try:
        return ConsistencyAuditor.audit_health(db, today=today).to_dict()
    except (HTTPException, CalendarError, ValueError):
        raise
    except Exception as e:
        raise _internal_error("audit calendar health", e)
