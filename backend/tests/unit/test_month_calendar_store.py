"""
Unit tests for MonthCalendarStore persistence and optimistic-concurrency retry.
"""

import pytest
from datetime import date

from sqlalchemy.orm.exc import StaleDataError

from core.exceptions import AggregateWriteConflictError, NotFoundError
from models import MonthCalendar
from services.month_calendar_store import MonthCalendarStore
from shared_types.calendar import CalendarDay, MonthSchedule


def _schedule(*days: date) -> MonthSchedule:
    return MonthSchedule(days=[CalendarDay(date=d, day_name=d.strftime("%A")) for d in days])


class TestCreate:
    """Test month creation."""

    def test_create_commits(self, db_session, session_factory):
        MonthCalendarStore.create(db_session, 2025, 3, _schedule(date(2025, 3, 1)))

        other = session_factory()
        try:
            assert MonthCalendarStore.get(other, 2025, 3) is not None
        finally:
            other.close()

    def test_concurrent_create_returns_existing(self, db_session, session_factory):
        """Test that losing a create race returns the winner's record."""
        other = session_factory()
        try:
            winner = MonthCalendarStore.create(other, 2025, 3, _schedule(date(2025, 3, 1)))
            winner_id = winner.id
        finally:
            other.close()

        record = MonthCalendarStore.create(db_session, 2025, 3, _schedule(date(2025, 3, 2)))

        assert record.id == winner_id
        assert record.get_schedule().days[0].date == date(2025, 3, 1)
        assert db_session.query(MonthCalendar).count() == 1


class TestOptimisticConcurrency:
    """Test version checks on rewrites of the days document."""

    def test_stale_write_detected(self, db_session, session_factory):
        """Test that a write based on an old version is rejected."""
        MonthCalendarStore.create(db_session, 2025, 3, _schedule(date(2025, 3, 1)))
        mine = MonthCalendarStore.get(db_session, 2025, 3)

        other = session_factory()
        try:
            theirs = MonthCalendarStore.get(other, 2025, 3)
            MonthCalendarStore.save(other, theirs, _schedule(date(2025, 3, 1), date(2025, 3, 2)))
            other.commit()
        finally:
            other.close()

        with pytest.raises(StaleDataError):
            MonthCalendarStore.save(db_session, mine, _schedule(date(2025, 3, 3)))
        db_session.rollback()

    def test_retry_reruns_operation_after_stale_write(self, db_session):
        attempts = []

        def operation():
            attempts.append(1)
            if len(attempts) == 1:
                raise StaleDataError("version mismatch")
            return "done"

        assert MonthCalendarStore.run_with_write_retry(db_session, 2025, 3, operation) == "done"
        assert len(attempts) == 2

    def test_retry_gives_up(self, db_session):
        attempts = []

        def operation():
            attempts.append(1)
            raise StaleDataError("version mismatch")

        with pytest.raises(AggregateWriteConflictError) as exc_info:
            MonthCalendarStore.run_with_write_retry(db_session, 2025, 3, operation, max_attempts=3)

        assert len(attempts) == 3
        assert exc_info.value.status_code == 503
        assert exc_info.value.to_dict()["retryable"] is True

    def test_other_errors_propagate_without_retry(self, db_session):
        attempts = []

        def operation():
            attempts.append(1)
            raise NotFoundError("missing")

        with pytest.raises(NotFoundError):
            MonthCalendarStore.run_with_write_retry(db_session, 2025, 3, operation)
        assert len(attempts) == 1


class TestDeleteOlderThan:
    """Test retention deletes."""

    def test_deletes_strictly_older_months(self, db_session):
        for year, month in [(2024, 12), (2025, 3), (2025, 4), (2025, 7)]:
            MonthCalendarStore.create(db_session, year, month, MonthSchedule())

        deleted = MonthCalendarStore.delete_older_than(db_session, 2025, 4)
        db_session.commit()

        assert [(r.year, r.month) for r in deleted] == [(2024, 12), (2025, 3)]
        assert [(r.year, r.month) for r in MonthCalendarStore.list_all(db_session)] == [(2025, 4), (2025, 7)]
