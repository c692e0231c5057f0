"""
Runtime settings for the calendar service, read from the environment.

A .env file (backend/.env, the repository root, or the working directory)
is loaded with python-dotenv first, except under pytest so tests always see
the defaults below.
"""

import os
import pathlib
import sys
from dotenv import load_dotenv


def _running_under_pytest() -> bool:
    return os.getenv("PYTEST_VERSION") is not None or "pytest" in os.path.basename(sys.argv[0])


def _load_env_file() -> None:
    here = pathlib.Path(__file__).resolve()
    for env_path in (
        here.parents[2] / ".env",  # backend/.env
        here.parents[3] / ".env",  # repository root
        pathlib.Path.cwd() / ".env",
    ):
        if env_path.exists():
            load_dotenv(env_path)
            return


def _get_int(name: str, default: int) -> int:
    return int(os.getenv(name, str(default)))


def _get_bool(name: str, default: bool) -> bool:
    """Read a boolean flag from the environment."""
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


if not _running_under_pytest():
    _load_env_file()


DATABASE_URL = os.getenv("DATABASE_URL", "postgresql://localhost/care_calendar_dev")
# Comma-separated browser origins of the booking client
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:5173")

# Business timezone, as a fixed UTC offset in minutes (India Standard Time by default)
APP_UTC_OFFSET_MINUTES = _get_int("APP_UTC_OFFSET_MINUTES", 330)

# Calendar store
CALENDAR_RETENTION_MONTHS = _get_int("CALENDAR_RETENTION_MONTHS", 3)
CALENDAR_FUTURE_MONTHS = _get_int("CALENDAR_FUTURE_MONTHS", 3)  # current month + next two
AGGREGATE_WRITE_MAX_RETRIES = _get_int("AGGREGATE_WRITE_MAX_RETRIES", 3)

# Background maintenance (materialize, retention, availability sync, audits)
CALENDAR_MAINTENANCE_ENABLED = _get_bool("CALENDAR_MAINTENANCE_ENABLED", True)
