"""
Per-(professional, date) mutual exclusion for bookings.

Two layers are held for the duration of a booking transaction:

1. an in-process lock keyed by (professional_id, professional_type, date),
   which serializes request threads of this worker;
2. the matching schedule_locks row selected FOR UPDATE, which serializes
   workers sharing the same PostgreSQL database.

The ledger conflict check, the ledger reservation and the cache append all
run inside the section, and the section is released only after commit.
"""

import logging
import threading
from contextlib import contextmanager
from datetime import date
from typing import Dict, Generator, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from models import ScheduleLock

logger = logging.getLogger(__name__)

LockKey = Tuple[int, str, date]

# key -> (lock, number of threads holding or waiting on it)
_registry_guard = threading.Lock()
_local_locks: Dict[LockKey, Tuple[threading.Lock, int]] = {}


def _checkout_local_lock(key: LockKey) -> threading.Lock:
    with _registry_guard:
        lock, users = _local_locks.get(key, (None, 0))
        if lock is None:
            lock = threading.Lock()
        _local_locks[key] = (lock, users + 1)
        return lock


def _return_local_lock(key: LockKey) -> None:
    """Drop the registry entry once no thread holds or waits on it."""
    with _registry_guard:
        lock, users = _local_locks[key]
        if users <= 1:
            del _local_locks[key]
        else:
            _local_locks[key] = (lock, users - 1)


class ScheduleLockService:
    """Acquires the booking critical section."""

    @staticmethod
    def _ensure_row(db: Session, professional_id: int, professional_type: str, lock_date: date) -> None:
        """Create the lock row if missing, committing immediately."""
        exists = db.query(ScheduleLock.id).filter(
            ScheduleLock.professional_id == professional_id,
            ScheduleLock.professional_type == professional_type,
            ScheduleLock.lock_date == lock_date,
        ).first()
        if exists is not None:
            return
        db.add(ScheduleLock(
            professional_id=professional_id,
            professional_type=professional_type,
            lock_date=lock_date,
        ))
        try:
            db.commit()
        except IntegrityError:
            # Another worker inserted it first
            db.rollback()

    @staticmethod
    @contextmanager
    def hold(
        db: Session,
        professional_id: int,
        professional_type: str,
        lock_date: date,
    ) -> Generator[None, None, None]:
        """
        Hold the booking section for one professional and date.

        Must be entered with no pending changes in the session: creating the
        lock row may commit. The body is expected to commit its own work; any
        exception rolls the session back before the section is released.
        """
        key = (professional_id, professional_type, lock_date)
        local_lock = _checkout_local_lock(key)
        try:
            with local_lock:
                ScheduleLockService._ensure_row(db, professional_id, professional_type, lock_date)
                db.query(ScheduleLock).filter(
                    ScheduleLock.professional_id == professional_id,
                    ScheduleLock.professional_type == professional_type,
                    ScheduleLock.lock_date == lock_date,
                ).with_for_update().one()
                try:
                    yield
                except Exception:
                    db.rollback()
                    raise
        finally:
            _return_local_lock(key)

    @staticmethod
    def delete_before(db: Session, cutoff: date) -> int:
        """
        Delete lock rows for dates before cutoff.

        The caller commits.
        """
        deleted = db.query(ScheduleLock).filter(
            ScheduleLock.lock_date < cutoff,
        ).delete(synchronize_session=False)
        if deleted:
            logger.info(f"Deleted {deleted} schedule lock row(s) before {cutoff}")
        return deleted
