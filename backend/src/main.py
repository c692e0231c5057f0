# pyright: reportMissingTypeStubs=false
"""
Care Calendar Backend API

Serves month calendars, bookable slots and bookings for doctors,
physiotherapists and pathology labs, and runs calendar maintenance in the
background while the app is up.
"""

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api import calendar
from core.config import CALENDAR_MAINTENANCE_ENABLED
from core.constants import CORS_ORIGINS
from core.exceptions import CalendarError
from services.calendar_maintenance_scheduler import (
    start_calendar_maintenance_scheduler,
    stop_calendar_maintenance_scheduler,
)

API_VERSION = "1.0.0"

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler()],
)

logger = logging.getLogger(__name__)

# Documented on every calendar route; CalendarError subclasses produce these
CALENDAR_ERROR_RESPONSES = {
    400: {"description": "Invalid month, date or time range"},
    404: {"description": "Calendar, professional or break not found"},
    409: {"description": "Booking or break conflict"},
    500: {"description": "Internal server error"},
    503: {"description": "Calendar changed concurrently, retry"},
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Start calendar maintenance with the app and stop it on shutdown."""
    logger.info("🚀 Starting Care Calendar Backend API")

    if not CALENDAR_MAINTENANCE_ENABLED:
        logger.info("Calendar maintenance scheduler disabled")
    else:
        try:
            await start_calendar_maintenance_scheduler()
        except Exception as e:
            # Serving calendars does not depend on the scheduler
            logger.exception(f"❌ Failed to start calendar maintenance scheduler: {e}")

    yield

    try:
        await stop_calendar_maintenance_scheduler()
    except Exception as e:
        logger.exception(f"❌ Error stopping calendar maintenance scheduler: {e}")
    logger.info("🛑 Care Calendar Backend API stopped")


app = FastAPI(
    title="Care Calendar Backend",
    description="Calendar materialization and slot-booking engine",
    version=API_VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)

app.include_router(
    calendar.router,
    prefix="/api/calendar",
    tags=["calendar"],
    responses=CALENDAR_ERROR_RESPONSES,
)


@app.get("/", summary="API information")
async def root() -> dict[str, str]:
    return {
        "message": "Care Calendar Backend API",
        "version": API_VERSION,
        "status": "running",
    }


@app.get("/health", summary="Liveness check")
async def health_check() -> dict[str, str]:
    """Liveness only; calendar consistency is under /api/calendar/health."""
    return {"status": "healthy"}


@app.exception_handler(CalendarError)
async def calendar_error_handler(request: Request, exc: CalendarError):
    """Render a calendar error as {"detail", "type", ...details}."""
    if exc.status_code >= 500:
        logger.warning(f"{request.method} {request.url.path}: {exc.kind}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(ValueError)
async def value_error_handler(request: Request, exc: ValueError):
    logger.warning(f"Rejected {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=400,
        content={"detail": str(exc), "type": "validation_error"},
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled exception on {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error", "type": "internal_error"},
    )
