"""
Month calendar model: the materialized schedule cache.

One row per (year, month), holding every day of the month and, for each day,
the schedules of the professionals working it. The ``days`` document is read
and written as a whole through the typed models in shared_types.calendar.
``version_id`` guards against lost updates: a write based on a stale read
raises StaleDataError instead of silently overwriting a concurrent change.
"""

from datetime import datetime
from typing import Any, List, Optional
from sqlalchemy import Integer, JSON, TIMESTAMP, UniqueConstraint
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.orm.attributes import flag_modified

from core.database import Base
from shared_types.calendar import MonthSchedule


class MonthCalendar(Base):
    """Stored calendar for a current or future month."""

    __tablename__ = "month_calendars"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)

    year: Mapped[int] = mapped_column(Integer)
    month: Mapped[int] = mapped_column(Integer)
    """Month number, 1-12."""

    days: Mapped[List[Any]] = mapped_column(JSON().with_variant(JSONB, "postgresql"), default=list)
    """
    Serialized list of CalendarDay documents, one per day of the month in order.
    Use get_schedule()/set_schedule() rather than touching it directly.
    """

    version_id: Mapped[int] = mapped_column(Integer, nullable=False)
    """Optimistic concurrency counter, incremented by SQLAlchemy on every update."""

    created_at: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    updated_at: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True), nullable=True)

    __table_args__ = (
        UniqueConstraint('year', 'month', name='uq_month_calendars_year_month'),
    )

    __mapper_args__ = {"version_id_col": version_id}

    def get_schedule(self) -> MonthSchedule:
        """Get the days document with schema validation."""
        return MonthSchedule.model_validate({"days": self.days or []})

    def set_schedule(self, schedule: MonthSchedule) -> None:
        """Replace the days document with schema validation."""
        self.days = schedule.model_dump(mode="json")["days"]
        flag_modified(self, "days")

    def __repr__(self) -> str:
        return f"<MonthCalendar {self.year}-{self.month:02d} v{self.version_id}>"
