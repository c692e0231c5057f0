"""
Row-level locks serializing bookings per professional and day.

A booking selects its row FOR UPDATE before checking the ledger, so two
concurrent requests for the same professional and date cannot both pass the
conflict check.
"""

from datetime import date
from sqlalchemy import String, Date, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from core.database import Base


class ScheduleLock(Base):
    __tablename__ = "schedule_locks"

    id: Mapped[int] = mapped_column(primary_key=True)
    professional_id: Mapped[int] = mapped_column()
    professional_type: Mapped[str] = mapped_column(String(50))
    lock_date: Mapped[date] = mapped_column(Date)

    __table_args__ = (
        UniqueConstraint('professional_id', 'professional_type', 'lock_date', name='uq_schedule_locks_key'),
    )
