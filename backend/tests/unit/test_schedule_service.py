"""
Unit tests for ScheduleService.
"""

import pytest
from datetime import date

from core.exceptions import (
    BreakConflictsWithBookingError,
    BreakOverlapError,
    HasExistingBookingsError,
    InvalidTimeRangeError,
    NotFoundError,
    PastDateNotEditableError,
)
from models import Appointment, MonthCalendar
from services.booking_service import BookingService
from services.month_calendar_store import MonthCalendarStore
from services.schedule_service import ScheduleService
from shared_types.calendar import Break, WorkingHours
from tests.conftest import add_weekly_slots, create_appointment, create_patient, create_professional

TODAY = date(2025, 3, 1)
TUESDAY = date(2025, 3, 4)


@pytest.fixture
def doctor(db_session):
    doctor = create_professional(db_session)
    add_weekly_slots(db_session, doctor, 1, [("09:00", "12:00", "clinic")])
    return doctor


def _stored_entry(db_session, doctor, target_date=TUESDAY):
    record = MonthCalendarStore.get(db_session, target_date.year, target_date.month)
    return record.get_schedule().get_day(target_date).find_professional(doctor.id, "doctor")


class TestUpdateAvailability:
    """Test day-level availability changes."""

    def test_mark_unavailable(self, db_session, doctor):
        entry = ScheduleService.update_availability(
            db_session, doctor.id, "doctor", TUESDAY, is_available=False, today=TODAY
        )

        assert entry.is_available is False
        assert _stored_entry(db_session, doctor).is_available is False

    def test_refused_while_appointments_active(self, db_session, doctor):
        """Test that a day with active appointments cannot be marked unavailable."""
        patient = create_patient(db_session)
        create_appointment(db_session, doctor, patient, TUESDAY, "09:00", "09:30", status="confirmed")

        with pytest.raises(HasExistingBookingsError) as exc_info:
            ScheduleService.update_availability(
                db_session, doctor.id, "doctor", TUESDAY, is_available=False, today=TODAY
            )

        assert exc_info.value.existing_count == 1
        assert _stored_entry(db_session, doctor).is_available is True

    def test_cancelled_appointments_do_not_block(self, db_session, doctor):
        patient = create_patient(db_session)
        create_appointment(db_session, doctor, patient, TUESDAY, "09:00", "09:30", status="cancelled")

        entry = ScheduleService.update_availability(
            db_session, doctor.id, "doctor", TUESDAY, is_available=False, today=TODAY
        )

        assert entry.is_available is False

    def test_replace_breaks_and_working_hours(self, db_session, doctor):
        """Test that breaks and working hours are replaced and stamped."""
        ScheduleService.update_availability(
            db_session,
            doctor.id,
            "doctor",
            TUESDAY,
            breaks=[Break(start_time="10:00", end_time="10:30", reason="Rounds")],
            working_hours=[WorkingHours(start_time="09:00", end_time="11:00")],
            updated_by="doctor",
            today=TODAY,
        )

        entry = _stored_entry(db_session, doctor)
        assert [(b.start_time, b.reason, b.added_by) for b in entry.breaks] == [("10:00", "Rounds", "doctor")]
        assert entry.breaks[0].added_at is not None
        assert entry.working_hours[0].end_time == "11:00"
        assert entry.is_available is True

    def test_replacement_breaks_must_not_overlap(self, db_session, doctor):
        with pytest.raises(BreakOverlapError):
            ScheduleService.update_availability(
                db_session,
                doctor.id,
                "doctor",
                TUESDAY,
                breaks=[Break(start_time="10:00", end_time="10:30"), Break(start_time="10:15", end_time="11:00")],
                today=TODAY,
            )

    def test_replacement_break_over_booking(self, db_session, doctor):
        patient = create_patient(db_session)
        create_appointment(db_session, doctor, patient, TUESDAY, "10:00", "10:30", status="pending")

        with pytest.raises(BreakConflictsWithBookingError):
            ScheduleService.update_availability(
                db_session, doctor.id, "doctor", TUESDAY,
                breaks=[Break(start_time="10:15", end_time="10:45")], today=TODAY,
            )

    def test_replacement_break_over_cached_booking(self, db_session, doctor):
        """Test that a cached booking blocks a replacement break even after the ledger row is cancelled."""
        patient = create_patient(db_session)
        BookingService.book_slot(
            db_session, doctor.id, "doctor", TUESDAY, "09:00", "09:30", 101, patient.id, today=TODAY
        )
        appointment = db_session.get(Appointment, 101)
        appointment.status = "cancelled"
        db_session.commit()

        with pytest.raises(BreakConflictsWithBookingError) as exc_info:
            ScheduleService.update_availability(
                db_session, doctor.id, "doctor", TUESDAY,
                breaks=[Break(start_time="09:00", end_time="09:30")], today=TODAY,
            )

        assert exc_info.value.conflicting_count == 1
        assert _stored_entry(db_session, doctor).breaks == []

    def test_invalid_working_hours(self, db_session, doctor):
        with pytest.raises(InvalidTimeRangeError):
            ScheduleService.update_availability(
                db_session, doctor.id, "doctor", TUESDAY,
                working_hours=[WorkingHours(start_time="12:00", end_time="09:00")], today=TODAY,
            )

    def test_past_date_not_editable(self, db_session, doctor):
        with pytest.raises(PastDateNotEditableError):
            ScheduleService.update_availability(
                db_session, doctor.id, "doctor", date(2025, 2, 25), is_available=False, today=TODAY
            )


class TestBreaks:
    """Test adding and removing single breaks."""

    def test_add_and_remove_break(self, db_session, doctor):
        added = ScheduleService.add_break(
            db_session, doctor.id, "doctor", TUESDAY, "12:00", "13:00", reason="Lunch", today=TODAY
        )

        assert added.reason == "Lunch"
        assert [b.id for b in _stored_entry(db_session, doctor).breaks] == [added.id]

        removed = ScheduleService.remove_break(db_session, doctor.id, "doctor", added.id, TUESDAY)

        assert removed.id == added.id
        assert _stored_entry(db_session, doctor).breaks == []

    def test_default_reason(self, db_session, doctor):
        added = ScheduleService.add_break(db_session, doctor.id, "doctor", TUESDAY, "12:00", "13:00", today=TODAY)

        assert added.reason == "Break"

    def test_break_over_appointment_rejected(self, db_session, doctor):
        """Test that a break over an active appointment is refused."""
        patient = create_patient(db_session)
        create_appointment(db_session, doctor, patient, TUESDAY, "09:00", "09:30", status="accepted")

        with pytest.raises(BreakConflictsWithBookingError) as exc_info:
            ScheduleService.add_break(db_session, doctor.id, "doctor", TUESDAY, "09:15", "10:00", today=TODAY)

        assert exc_info.value.conflicting_count == 1
        assert _stored_entry(db_session, doctor).breaks == []

    def test_overlapping_break_rejected(self, db_session, doctor):
        ScheduleService.add_break(db_session, doctor.id, "doctor", TUESDAY, "12:00", "13:00", today=TODAY)

        with pytest.raises(BreakOverlapError):
            ScheduleService.add_break(db_session, doctor.id, "doctor", TUESDAY, "12:30", "13:30", today=TODAY)

    def test_break_on_unlisted_day_creates_entry(self, db_session, doctor):
        ScheduleService.add_break(db_session, doctor.id, "doctor", date(2025, 3, 5), "12:00", "13:00", today=TODAY)

        assert len(_stored_entry(db_session, doctor, date(2025, 3, 5)).breaks) == 1

    def test_remove_break_without_calendar(self, db_session, doctor):
        """Test that removing a break never materializes a month."""
        with pytest.raises(NotFoundError):
            ScheduleService.remove_break(db_session, doctor.id, "doctor", "abc", TUESDAY)

        assert db_session.query(MonthCalendar).count() == 0

    def test_remove_unknown_break(self, db_session, doctor):
        ScheduleService.add_break(db_session, doctor.id, "doctor", TUESDAY, "12:00", "13:00", today=TODAY)

        with pytest.raises(NotFoundError):
            ScheduleService.remove_break(db_session, doctor.id, "doctor", "missing", TUESDAY)

    def test_remove_break_for_unscheduled_professional(self, db_session, doctor):
        ScheduleService.add_break(db_session, doctor.id, "doctor", TUESDAY, "12:00", "13:00", today=TODAY)

        with pytest.raises(NotFoundError):
            ScheduleService.remove_break(db_session, doctor.id, "doctor", "missing", date(2025, 3, 5))


class TestGetSchedule:
    """Test day and week schedule views."""

    def test_day_view(self, db_session, doctor):
        ScheduleService.add_break(db_session, doctor.id, "doctor", TUESDAY, "12:00", "13:00", today=TODAY)

        result = ScheduleService.get_schedule(db_session, doctor.id, "doctor", TUESDAY, today=TODAY)

        assert result["professional"]["id"] == doctor.id
        assert result["professional"]["consultation_fee"] == 500.0
        assert result["date"] == "2025-03-04"
        assert result["is_generated"] is False
        assert result["schedule"]["breaks"][0]["start_time"] == "12:00"

    def test_day_without_entry(self, db_session, doctor):
        result = ScheduleService.get_schedule(db_session, doctor.id, "doctor", date(2025, 3, 5), today=TODAY)

        assert result["schedule"] is None

    def test_week_view_mixes_history_and_stored(self, db_session, doctor):
        """Test that past days come from history and later days from the stored calendar."""
        patient = create_patient(db_session, full_name="Asha Rao")
        create_appointment(db_session, doctor, patient, date(2025, 3, 3), "09:00", "09:30", status="completed")

        result = ScheduleService.get_schedule(
            db_session, doctor.id, "doctor", TUESDAY, week_view=True, today=date(2025, 3, 4)
        )

        assert result["week_start"] == "2025-03-02"
        assert result["week_end"] == "2025-03-08"
        assert list(result["days"]) == [f"2025-03-0{d}" for d in range(2, 9)]
        monday = result["days"]["2025-03-03"]
        assert monday["is_generated"] is True
        assert monday["schedule"]["booked_slots"][0]["patient_name"] == "Asha Rao"
        assert result["days"]["2025-03-02"]["schedule"] is None
        tuesday = result["days"]["2025-03-04"]
        assert tuesday["is_generated"] is False
        assert tuesday["schedule"]["professional_id"] == doctor.id

    def test_week_spanning_months(self, db_session, doctor):
        """Test that a week crossing a month boundary reads both months."""
        result = ScheduleService.get_schedule(
            db_session, doctor.id, "doctor", date(2025, 3, 31), week_view=True, today=TODAY
        )

        assert result["week_start"] == "2025-03-30"
        assert result["days"]["2025-04-01"]["schedule"]["professional_id"] == doctor.id
        assert db_session.query(MonthCalendar).count() == 2

    def test_unknown_professional(self, db_session):
        with pytest.raises(NotFoundError):
            ScheduleService.get_schedule(db_session, 404, "doctor", TUESDAY, today=TODAY)
