# pyright: reportMissingTypeStubs=false
"""
Engine, declarative base and session helpers for the calendar store.

Request handlers get a session from `get_db`; maintenance jobs and scripts
open one with `get_db_context`, which commits when the block finishes.
"""

import logging
from contextlib import contextmanager
from typing import Any, Dict, Generator

from sqlalchemy import create_engine, event
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from core.config import DATABASE_URL
from core.constants import DB_POOL_RECYCLE_SECONDS
from core.exceptions import CalendarError

logger = logging.getLogger(__name__)


def _engine_options(url: str) -> Dict[str, Any]:
    """Connection options for the configured backend."""
    if url.startswith("sqlite"):
        # Sessions are shared with the FastAPI threadpool and the scheduler thread
        return {"connect_args": {"check_same_thread": False}}
    return {"pool_pre_ping": True, "pool_recycle": DB_POOL_RECYCLE_SECONDS}


engine = create_engine(DATABASE_URL, future=True, **_engine_options(DATABASE_URL))

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    """Base class for all calendar models."""
    pass


def _stamp(mapper: Any, target: Any, column_names: tuple, overwrite: bool) -> None:
    # Imported lazily: utils.datetime_utils imports core.config
    from utils.datetime_utils import local_now
    now = local_now()
    for column_name in column_names:
        if column_name not in mapper.columns:
            continue
        if overwrite or getattr(target, column_name, None) is None:
            setattr(target, column_name, now)


@event.listens_for(Base, "before_insert", propagate=True)  # type: ignore
def receive_before_insert(mapper, connection, target):  # type: ignore
    _stamp(mapper, target, ("created_at", "updated_at"), overwrite=False)


@event.listens_for(Base, "before_update", propagate=True)  # type: ignore
def receive_before_update(mapper, connection, target):  # type: ignore
    _stamp(mapper, target, ("updated_at",), overwrite=True)


def get_db() -> Generator[Session, None, None]:
    """
    FastAPI dependency yielding a calendar session.

    Services commit their own work; anything left open when the request
    fails is rolled back here. Calendar errors are expected outcomes and are
    not logged.
    """
    db = SessionLocal()
    try:
        yield db
    except CalendarError:
        db.rollback()
        raise
    except Exception:
        logger.exception("Request failed with an open calendar session")
        db.rollback()
        raise
    finally:
        db.close()


@contextmanager
def get_db_context() -> Generator[Session, None, None]:
    """
    Session for maintenance jobs and scripts, committed on success.

    Example:
        ```python
        with get_db_context() as db:
            CalendarMaintenanceService.run_daily_maintenance(db)
        ```
    """
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
