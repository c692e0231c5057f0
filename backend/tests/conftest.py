"""
Test configuration and shared fixtures for the Care Calendar test suite.

The schema is built once per session by running the Alembic migrations
against a template SQLite database; every test then works on its own copy
of that file, so tests can commit freely (and use several sessions from
different threads) without affecting each other.
"""

import os
import shutil
from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Generator, Iterable, Optional, Tuple

os.environ.setdefault("CALENDAR_MAINTENANCE_ENABLED", "false")

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from alembic.config import Config
from alembic import command

# Import all models to ensure they're registered with SQLAlchemy before any relationships are resolved
from models import (
    Appointment,
    LabTestSlot,
    Patient,
    Professional,
    WeeklyAvailabilitySlot,
)

BACKEND_DIR = Path(__file__).resolve().parent.parent


@pytest.fixture(scope="session")
def migrated_template(tmp_path_factory) -> Path:
    """
    Run all migrations from scratch (base -> head) into a template database.

    This runs once per session and also checks that the migrations apply cleanly.
    """
    template_path = tmp_path_factory.mktemp("schema") / "template.db"
    alembic_cfg = Config(str(BACKEND_DIR / "alembic.ini"))
    alembic_cfg.set_main_option("sqlalchemy.url", f"sqlite:///{template_path}")
    alembic_cfg.attributes["url_overridden"] = True
    alembic_cfg.attributes["configure_logger"] = False
    command.upgrade(alembic_cfg, "head")
    return template_path


@pytest.fixture(scope="function")
def db_engine(tmp_path, migrated_template):
    """Engine bound to a fresh copy of the migrated template."""
    db_path = tmp_path / "test.db"
    shutil.copyfile(migrated_template, db_path)
    engine = create_engine(
        f"sqlite:///{db_path}",
        connect_args={"check_same_thread": False, "timeout": 30},
        future=True,
    )
    yield engine
    engine.dispose()


@pytest.fixture(scope="function")
def session_factory(db_engine):
    """Session factory configured like core.database.SessionLocal."""
    return sessionmaker(autocommit=False, autoflush=False, bind=db_engine, expire_on_commit=False)


@pytest.fixture(scope="function")
def db_session(session_factory) -> Generator[Session, None, None]:
    """Provide a database session for a test."""
    session = session_factory()
    yield session
    session.rollback()
    session.close()


# Helper functions for building directory, template and ledger data

def create_professional(
    db_session: Session,
    professional_type: str = "doctor",
    name: str = "Dr. Test",
    consultation_fee: str = "500.00",
    home_visit_fee: Optional[str] = "800.00",
    verified: bool = True,
    active: bool = True,
    verification_status: str = "approved",
) -> Professional:
    """Create an eligible (by default) professional."""
    professional = Professional(
        professional_type=professional_type,
        name=name,
        verification_status=verification_status,
        is_active=active,
        user_is_verified=verified,
        user_is_active=True,
        consultation_fee=Decimal(consultation_fee),
        home_visit_fee=Decimal(home_visit_fee) if home_visit_fee is not None else None,
    )
    db_session.add(professional)
    db_session.commit()
    return professional


def add_weekly_slots(
    db_session: Session,
    professional: Professional,
    day_of_week: int,
    windows: Iterable[Tuple[str, str, str]],
    is_available: bool = True,
) -> None:
    """Add (start, end, slot_type) windows to a professional's weekly template."""
    for start_time, end_time, slot_type in windows:
        db_session.add(WeeklyAvailabilitySlot(
            professional_id=professional.id,
            day_of_week=day_of_week,
            start_time=start_time,
            end_time=end_time,
            slot_type=slot_type,
            is_available=is_available,
            max_patients=1,
        ))
    db_session.commit()


def add_lab_slot(
    db_session: Session,
    lab: Professional,
    slot_date: date,
    start_time: str,
    end_time: str,
    slot_type: str = "clinic",
) -> LabTestSlot:
    slot = LabTestSlot(
        professional_id=lab.id,
        slot_date=slot_date,
        start_time=start_time,
        end_time=end_time,
        slot_type=slot_type,
        capacity=5,
        is_available=True,
    )
    db_session.add(slot)
    db_session.commit()
    return slot


def create_patient(db_session: Session, full_name: str = "Test Patient") -> Patient:
    patient = Patient(full_name=full_name)
    db_session.add(patient)
    db_session.commit()
    return patient


def create_appointment(
    db_session: Session,
    professional: Professional,
    patient: Patient,
    appointment_date: date,
    start_time: str,
    end_time: str,
    status: str = "confirmed",
    appointment_id: Optional[int] = None,
) -> Appointment:
    """Insert a ledger appointment directly, bypassing the booking flow."""
    appointment = Appointment(
        patient_id=patient.id,
        professional_id=professional.id,
        professional_type=professional.professional_type,
        appointment_date=appointment_date,
        start_time=start_time,
        end_time=end_time,
        status=status,
        visit_type="clinic",
    )
    if appointment_id is not None:
        appointment.id = appointment_id
    db_session.add(appointment)
    db_session.commit()
    return appointment
