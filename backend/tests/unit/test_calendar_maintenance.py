"""
Unit tests for calendar maintenance tasks and their scheduler.
"""

import pytest
from contextlib import contextmanager
from datetime import date

from models import MonthCalendar
from services import calendar_maintenance_scheduler as scheduler_module
from services.calendar_maintenance_scheduler import CalendarMaintenanceScheduler
from services.calendar_maintenance_service import CalendarMaintenanceService
from services.month_calendar_store import MonthCalendarStore
from shared_types.calendar import MonthSchedule
from tests.conftest import add_weekly_slots, create_appointment, create_patient, create_professional

TODAY = date(2025, 3, 1)


class TestCalendarMaintenanceService:
    """Test the maintenance steps."""

    def test_materialize_upcoming_months(self, db_session):
        covered = CalendarMaintenanceService.materialize_upcoming_months(db_session, months_ahead=3, today=date(2024, 11, 20))

        assert covered == ["2024-11", "2024-12", "2025-01"]
        assert db_session.query(MonthCalendar).count() == 3

    def test_sync_skips_past_months(self, db_session):
        MonthCalendarStore.create(db_session, 2025, 1, MonthSchedule())
        CalendarMaintenanceService.materialize_upcoming_months(db_session, months_ahead=2, today=TODAY)
        doctor = create_professional(db_session)
        add_weekly_slots(db_session, doctor, 1, [("09:00", "10:00", "clinic")])

        results = CalendarMaintenanceService.sync_professional_availability(db_session, today=TODAY)

        assert list(results) == ["2025-03", "2025-04"]
        assert results["2025-03"] == {"added": 4, "removed": 0}
        assert results["2025-04"] == {"added": 5, "removed": 0}

    def test_run_daily_maintenance(self, db_session):
        MonthCalendarStore.create(db_session, 2024, 10, MonthSchedule())

        result = CalendarMaintenanceService.run_daily_maintenance(db_session, today=TODAY)

        assert result["materialized_months"] == ["2025-03", "2025-04", "2025-05"]
        assert result["cleanup"]["deleted_months"] == ["2024-10"]
        assert set(result["availability_sync"]) == {"2025-03", "2025-04", "2025-05"}
        stored = [(r.year, r.month) for r in MonthCalendarStore.list_all(db_session)]
        assert stored == [(2025, 3), (2025, 4), (2025, 5)]


@pytest.fixture
def patched_db_context(monkeypatch, db_session):
    """Route scheduler jobs to the test session."""
    @contextmanager
    def fake_db_context():
        yield db_session
        db_session.commit()

    monkeypatch.setattr(scheduler_module, "get_db_context", fake_db_context)
    return db_session


class TestCalendarMaintenanceScheduler:
    """Test scheduler wiring and job bodies."""

    @pytest.mark.asyncio
    async def test_start_registers_jobs_and_stop(self):
        """Test that starting registers the three maintenance jobs."""
        scheduler = CalendarMaintenanceScheduler()

        await scheduler.start_scheduler()
        try:
            job_ids = {job.id for job in scheduler.scheduler.get_jobs()}
            assert job_ids == {"calendar_daily_maintenance", "calendar_health_audit", "calendar_weekly_repair"}
            # Second start is a no-op
            await scheduler.start_scheduler()
            assert len(scheduler.scheduler.get_jobs()) == 3
        finally:
            await scheduler.stop_scheduler()

        assert scheduler._is_started is False

    def test_daily_job_materializes(self, patched_db_context):
        CalendarMaintenanceScheduler()._execute_daily_maintenance()

        assert patched_db_context.query(MonthCalendar).count() == 3

    def test_weekly_repair_job_inserts_missing_slots(self, patched_db_context):
        from utils.datetime_utils import local_today

        db_session = patched_db_context
        doctor = create_professional(db_session)
        patient = create_patient(db_session)
        create_appointment(db_session, doctor, patient, local_today(), "23:00", "23:30")

        CalendarMaintenanceScheduler()._execute_weekly_repair()

        today = local_today()
        record = MonthCalendarStore.get(db_session, today.year, today.month)
        entry = record.get_schedule().get_day(today).find_professional(doctor.id, "doctor")
        assert len(entry.booked_slots) == 1

    def test_job_errors_are_logged_not_raised(self, monkeypatch, patched_db_context):
        """Test that a failing job does not propagate out of the scheduler."""
        def broken(db, today=None):
            raise RuntimeError("boom")

        monkeypatch.setattr(
            scheduler_module.ConsistencyAuditor, "audit_health", staticmethod(broken)
        )

        CalendarMaintenanceScheduler()._execute_health_audit()
