"""
Unit tests for CalendarAdminService reports.
"""

from datetime import date

from models import MonthCalendar
from services.booking_service import BookingService
from services.calendar_admin_service import CalendarAdminService
from services.month_calendar_store import MonthCalendarStore
from services.schedule_service import ScheduleService
from shared_types.calendar import MonthSchedule
from tests.conftest import add_weekly_slots, create_appointment, create_patient, create_professional

TODAY = date(2025, 3, 1)
TUESDAY = date(2025, 3, 4)


class TestSystemStatus:
    """Test the stored-calendar inventory."""

    def test_buckets_stored_months(self, db_session):
        for year, month in [(2024, 11), (2025, 1), (2025, 3), (2025, 5)]:
            MonthCalendarStore.create(db_session, year, month, MonthSchedule())
        doctor = create_professional(db_session)
        patient = create_patient(db_session)
        create_appointment(db_session, doctor, patient, TUESDAY, "09:00", "09:30")

        status = CalendarAdminService.system_status(db_session, today=TODAY)

        assert status["today"] == "2025-03-01"
        assert status["stored_calendars"] == {
            "total": 4,
            "awaiting_cleanup": 1,
            "recent": 1,
            "current_and_future": 2,
        }
        assert status["stored_months"] == ["2024-11", "2025-01", "2025-03", "2025-05"]
        assert status["current_month_appointments"] == 1
        assert status["storage_strategy"]["retention_months"] == 3
        assert "health_audit" in status["maintenance_schedule"]


class TestMonthDetails:
    """Test per-month summaries."""

    def test_past_month_statistics(self, db_session):
        doctor = create_professional(db_session)
        patient = create_patient(db_session)
        create_appointment(db_session, doctor, patient, date(2025, 2, 4), "09:00", "09:30", status="completed")
        create_appointment(db_session, doctor, patient, date(2025, 2, 4), "10:00", "10:30", status="cancelled")

        details = CalendarAdminService.month_details(db_session, 2025, 2, today=TODAY)

        assert details["month_type"] == "past"
        assert details["is_generated"] is True
        assert details["statistics"]["total"] == 2
        assert details["statistics"]["by_status"] == {"completed": 1, "cancelled": 1}
        assert details["statistics"]["by_weekday"] == {"Tuesday": 2}
        assert db_session.query(MonthCalendar).count() == 0

    def test_current_month_with_calendar(self, db_session):
        doctor = create_professional(db_session)
        add_weekly_slots(db_session, doctor, 1, [("09:00", "12:00", "clinic")])
        patient = create_patient(db_session)
        BookingService.book_slot(db_session, doctor.id, "doctor", TUESDAY, "09:00", "09:30", 1, patient.id, today=TODAY)
        ScheduleService.add_break(db_session, doctor.id, "doctor", TUESDAY, "12:00", "13:00", today=TODAY)
        ScheduleService.update_availability(
            db_session, doctor.id, "doctor", date(2025, 3, 11), is_available=False, today=TODAY
        )

        details = CalendarAdminService.month_details(db_session, 2025, 3, today=TODAY)

        assert details["month_type"] == "current"
        assert details["is_generated"] is False
        assert details["calendar"]["stored"] is True
        assert details["calendar"]["days"] == 31
        assert details["calendar"]["professional_entries"] == 4
        assert details["calendar"]["unavailable_entries"] == 1
        assert details["calendar"]["booked_slots"] == 1
        assert details["calendar"]["breaks"] == 1
        assert details["calendar"]["version"] == 4
        assert details["statistics"]["by_status"] == {"pending": 1}

    def test_future_month_not_materialized(self, db_session):
        details = CalendarAdminService.month_details(db_session, 2025, 6, today=TODAY)

        assert details["month_type"] == "future"
        assert details["calendar"] == {"stored": False}
        assert db_session.query(MonthCalendar).count() == 0


class TestExportMonth:
    """Test the month export."""

    def test_stored_month_with_appointments(self, db_session):
        """Test that the export carries metadata, day summaries, every appointment and a summary."""
        doctor = create_professional(db_session, name="Dr. Rao")
        physio = create_professional(db_session, professional_type="physiotherapist", name="Physio", consultation_fee="300.00")
        add_weekly_slots(db_session, doctor, 1, [("09:00", "12:00", "clinic")])
        patient = create_patient(db_session, full_name="Asha Rao")
        BookingService.book_slot(db_session, doctor.id, "doctor", TUESDAY, "09:00", "09:30", 1, patient.id, today=TODAY)
        BookingService.book_slot(
            db_session, doctor.id, "doctor", TUESDAY, "10:00", "10:30", 2, patient.id, visit_type="home", today=TODAY
        )
        create_appointment(db_session, physio, patient, date(2025, 3, 5), "11:00", "11:30", status="cancelled")

        export = CalendarAdminService.export_month(db_session, 2025, 3)

        metadata = export["metadata"]
        assert (metadata["year"], metadata["month"], metadata["month_name"]) == (2025, 3, "March")
        assert metadata["has_stored_calendar"] is True
        assert metadata["total_appointments"] == 3
        assert export["calendar"]["total_days"] == 31
        tuesday = next(d for d in export["calendar"]["days"] if d["date"] == "2025-03-04")
        assert tuesday["day_name"] == "Tuesday"
        assert tuesday["booked_slots_count"] == 2
        assert [a["id"] for a in export["appointments"]] == [1, 2, 3]
        assert export["appointments"][0]["professional_name"] == "Dr. Rao"
        assert export["appointments"][0]["patient_name"] == "Asha Rao"
        assert [a["fee"] for a in export["appointments"]] == [500.0, 800.0, 300.0]
        assert export["summary"]["by_status"] == {"pending": 2, "cancelled": 1}
        assert export["summary"]["by_professional_type"] == {"doctor": 2, "physiotherapist": 1}
        assert export["summary"]["expected_revenue"] == 1300.0

    def test_unstored_month_not_materialized(self, db_session):
        doctor = create_professional(db_session)
        patient = create_patient(db_session)
        create_appointment(db_session, doctor, patient, date(2025, 1, 7), "09:00", "09:30", status="completed")

        export = CalendarAdminService.export_month(db_session, 2025, 1)

        assert export["calendar"] is None
        assert export["metadata"]["has_stored_calendar"] is False
        assert export["summary"]["by_status"] == {"completed": 1}
        assert db_session.query(MonthCalendar).count() == 0
