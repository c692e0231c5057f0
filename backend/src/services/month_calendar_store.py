"""
Persistence for stored month calendars.

Reads always refresh from the database so that a write is based on the
latest version. Writes that lose an optimistic-concurrency race raise
StaleDataError; run_with_write_retry re-runs the whole operation a bounded
number of times before surfacing AggregateWriteConflictError.
"""

import logging
from typing import Callable, List, Optional, TypeVar

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from core.config import AGGREGATE_WRITE_MAX_RETRIES
from core.exceptions import AggregateWriteConflictError
from models import MonthCalendar
from shared_types.calendar import MonthSchedule

logger = logging.getLogger(__name__)

T = TypeVar("T")


class MonthCalendarStore:
    """Service class for MonthCalendar rows."""

    @staticmethod
    def get(db: Session, year: int, month: int) -> Optional[MonthCalendar]:
        return db.query(MonthCalendar).filter(
            MonthCalendar.year == year,
            MonthCalendar.month == month,
        ).populate_existing().first()

    @staticmethod
    def list_all(db: Session) -> List[MonthCalendar]:
        return db.query(MonthCalendar).order_by(MonthCalendar.year, MonthCalendar.month).all()

    @staticmethod
    def create(db: Session, year: int, month: int, schedule: MonthSchedule) -> MonthCalendar:
        """
        Insert and commit a new month.

        If another writer created the same month first, the unique (year, month)
        constraint fails; the transaction is rolled back and the winner's row
        is returned instead.
        """
        record = MonthCalendar(year=year, month=month)
        record.set_schedule(schedule)
        db.add(record)
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            existing = MonthCalendarStore.get(db, year, month)
            if existing is None:
                raise
            logger.info(f"Calendar {year}-{month:02d} was created concurrently; using existing record")
            return existing
        logger.info(f"📅 Created calendar {year}-{month:02d} with {len(schedule.days)} days")
        return record

    @staticmethod
    def save(db: Session, record: MonthCalendar, schedule: MonthSchedule) -> None:
        """Stage a full rewrite of the days document; the caller commits."""
        record.set_schedule(schedule)
        db.flush()

    @staticmethod
    def delete_older_than(db: Session, cutoff_year: int, cutoff_month: int) -> List[MonthCalendar]:
        """Delete months strictly before (cutoff_year, cutoff_month); the caller commits."""
        stale = [
            record for record in MonthCalendarStore.list_all(db)
            if (record.year, record.month) < (cutoff_year, cutoff_month)
        ]
        for record in stale:
            db.delete(record)
        db.flush()
        return stale

    @staticmethod
    def run_with_write_retry(
        db: Session,
        year: int,
        month: int,
        operation: Callable[[], T],
        max_attempts: int = AGGREGATE_WRITE_MAX_RETRIES,
    ) -> T:
        """
        Run a read-modify-write operation, retrying on a stale calendar version.

        The operation commits its own work. Any other failure rolls the
        session back and propagates, so nothing is partially committed.

        Raises:
            AggregateWriteConflictError: If every attempt lost the race
        """
        for attempt in range(1, max_attempts + 1):
            try:
                return operation()
            except StaleDataError:
                db.rollback()
                logger.warning(
                    f"Stale write on calendar {year}-{month:02d} (attempt {attempt}/{max_attempts}); retrying"
                )
            except Exception:
                db.rollback()
                raise
        raise AggregateWriteConflictError(year, month, max_attempts)
