"""
Unit tests for CalendarService.
"""

import pytest
from datetime import date

from core.exceptions import InvalidMonthError
from models import MonthCalendar, ScheduleLock
from services.calendar_service import CalendarService
from services.month_calendar_store import MonthCalendarStore
from shared_types.calendar import MonthSchedule
from tests.conftest import add_weekly_slots, create_appointment, create_patient, create_professional

TODAY = date(2025, 3, 1)


class TestGetCalendar:
    """Test routing between stored and generated months."""

    def test_current_month_materialized(self, db_session):
        view = CalendarService.get_calendar(db_session, 2025, 3, today=TODAY)

        assert view.is_generated is False
        assert len(view.days) == 31
        assert db_session.query(MonthCalendar).count() == 1

    def test_past_month_generated_and_not_stored(self, db_session):
        """Test that past months are generated from the ledger and not persisted."""
        doctor = create_professional(db_session)
        patient = create_patient(db_session)
        create_appointment(db_session, doctor, patient, date(2025, 2, 10), "09:00", "09:30", status="completed")

        view = CalendarService.get_calendar(db_session, 2025, 2, today=TODAY)

        assert view.is_generated is True
        assert view.total_appointments == 1
        assert db_session.query(MonthCalendar).count() == 0

    def test_filters_by_professional_and_type(self, db_session):
        doctor = create_professional(db_session)
        physio = create_professional(db_session, professional_type="physiotherapist", name="Physio")
        add_weekly_slots(db_session, doctor, 1, [("09:00", "10:00", "clinic")])
        add_weekly_slots(db_session, physio, 1, [("09:00", "10:00", "clinic")])

        by_type = CalendarService.get_calendar(db_session, 2025, 3, professional_type="physiotherapist", today=TODAY)
        by_id = CalendarService.get_calendar(
            db_session, 2025, 3, professional_id=doctor.id, professional_type="doctor", today=TODAY
        )
        unfiltered = CalendarService.get_calendar(db_session, 2025, 3, today=TODAY)

        assert [e.key for e in by_type.days[3].professionals] == [(physio.id, "physiotherapist")]
        assert [e.key for e in by_id.days[3].professionals] == [(doctor.id, "doctor")]
        assert len(unfiltered.days[3].professionals) == 2

    def test_invalid_month(self, db_session):
        with pytest.raises(InvalidMonthError):
            CalendarService.get_calendar(db_session, 2025, 13, today=TODAY)


class TestInitializeMonth:
    """Test admin month initialization."""

    def test_created_flag(self, db_session):
        record, created = CalendarService.initialize_month(db_session, 2025, 4, today=TODAY)
        again, created_again = CalendarService.initialize_month(db_session, 2025, 4, today=TODAY)

        assert created is True
        assert created_again is False
        assert again.id == record.id

    def test_past_month(self, db_session):
        record, created = CalendarService.initialize_month(db_session, 2025, 1, today=TODAY)

        assert record is None
        assert created is False


class TestCleanOldCalendars:
    """Test the retention window."""

    def test_keeps_three_months_back(self, db_session):
        """Test that in July 2025 with three months kept, March and earlier are deleted."""
        for month in range(1, 9):
            MonthCalendarStore.create(db_session, 2025, month, MonthSchedule())

        result = CalendarService.clean_old_calendars(db_session, months_to_keep=3, today=date(2025, 7, 15))

        assert result["cutoff"] == "2025-04"
        assert result["deleted_months"] == ["2025-01", "2025-02", "2025-03"]
        assert result["deleted_count"] == 3
        remaining = [(r.year, r.month) for r in MonthCalendarStore.list_all(db_session)]
        assert remaining == [(2025, m) for m in range(4, 9)]

    def test_across_year_boundary(self, db_session):
        MonthCalendarStore.create(db_session, 2024, 10, MonthSchedule())
        MonthCalendarStore.create(db_session, 2024, 11, MonthSchedule())

        result = CalendarService.clean_old_calendars(db_session, months_to_keep=2, today=date(2025, 1, 5))

        assert result["cutoff"] == "2024-11"
        assert result["deleted_months"] == ["2024-10"]

    def test_nothing_to_delete(self, db_session):
        result = CalendarService.clean_old_calendars(db_session, today=TODAY)

        assert result["deleted_count"] == 0

    def test_negative_rejected(self, db_session):
        with pytest.raises(ValueError):
            CalendarService.clean_old_calendars(db_session, months_to_keep=-1, today=TODAY)

    def test_prunes_lock_rows_before_today(self, db_session):
        """Test that booking lock rows for past dates are deleted with old calendars."""
        for lock_date in (date(2025, 2, 27), date(2025, 2, 28), TODAY, date(2025, 3, 4)):
            db_session.add(ScheduleLock(professional_id=1, professional_type="doctor", lock_date=lock_date))
        db_session.commit()

        result = CalendarService.clean_old_calendars(db_session, today=TODAY)

        assert result["deleted_lock_count"] == 2
        remaining = sorted(row.lock_date for row in db_session.query(ScheduleLock).all())
        assert remaining == [TODAY, date(2025, 3, 4)]
