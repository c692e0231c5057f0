"""
Calendar maintenance scheduler.

Runs in the application timezone:
1. Daily at 2 AM: materialize upcoming months, apply retention, sync availability
2. Every 6 hours: audit the current month and log drift (nothing is changed)
3. Weekly on Sunday at 3 AM: repair drift in the current month
"""

import asyncio
import logging
from typing import Optional
from apscheduler.schedulers.asyncio import AsyncIOScheduler  # type: ignore
from apscheduler.triggers.cron import CronTrigger  # type: ignore
from apscheduler.triggers.interval import IntervalTrigger  # type: ignore

from core.constants import (
    AUDIT_STATUS_HEALTHY,
    CALENDAR_AUDIT_INTERVAL_HOURS,
    CALENDAR_DAILY_MAINTENANCE_HOUR,
    CALENDAR_SCHEDULER_MISFIRE_GRACE_SECONDS,
    CALENDAR_WEEKLY_REPAIR_DAY,
    CALENDAR_WEEKLY_REPAIR_HOUR,
)
from core.database import get_db_context
from services.calendar_maintenance_service import CalendarMaintenanceService
from services.consistency_auditor import ConsistencyAuditor
from utils.datetime_utils import APP_TZ

logger = logging.getLogger(__name__)

# Global singleton instance
_calendar_maintenance_scheduler: Optional['CalendarMaintenanceScheduler'] = None


class CalendarMaintenanceScheduler:
    """
    Scheduler for calendar maintenance jobs.

    Database sessions are created fresh for each run to avoid stale session issues.
    Blocking work is offloaded to a thread so the event loop stays responsive.
    """

    def __init__(self):
        self.scheduler = AsyncIOScheduler(timezone=APP_TZ)
        self._is_started = False

    async def start_scheduler(self) -> None:
        """
        Start the background scheduler.

        This should be called during application startup.
        """
        if self._is_started:
            logger.warning("Calendar maintenance scheduler is already started")
            return

        self.scheduler.add_job(  # type: ignore
            self._run_daily_maintenance,
            CronTrigger(hour=CALENDAR_DAILY_MAINTENANCE_HOUR, minute=0, timezone=APP_TZ),
            id="calendar_daily_maintenance",
            name="Calendar materialization, retention and availability sync",
            replace_existing=True,
            misfire_grace_time=CALENDAR_SCHEDULER_MISFIRE_GRACE_SECONDS,
        )
        self.scheduler.add_job(  # type: ignore
            self._run_health_audit,
            IntervalTrigger(hours=CALENDAR_AUDIT_INTERVAL_HOURS, timezone=APP_TZ),
            id="calendar_health_audit",
            name="Calendar consistency audit",
            replace_existing=True,
            misfire_grace_time=CALENDAR_SCHEDULER_MISFIRE_GRACE_SECONDS,
        )
        self.scheduler.add_job(  # type: ignore
            self._run_weekly_repair,
            CronTrigger(
                day_of_week=CALENDAR_WEEKLY_REPAIR_DAY, hour=CALENDAR_WEEKLY_REPAIR_HOUR, minute=0, timezone=APP_TZ
            ),
            id="calendar_weekly_repair",
            name="Calendar consistency repair",
            replace_existing=True,
            misfire_grace_time=CALENDAR_SCHEDULER_MISFIRE_GRACE_SECONDS,
        )

        self.scheduler.start()
        self._is_started = True
        logger.info("Calendar maintenance scheduler started")

    async def stop_scheduler(self) -> None:
        """
        Stop the background scheduler.

        This should be called during application shutdown.
        """
        if self._is_started:
            self.scheduler.shutdown(wait=True)
            self._is_started = False
            logger.info("Calendar maintenance scheduler stopped")

    async def _run_daily_maintenance(self) -> None:
        logger.info("Starting scheduled calendar maintenance...")
        await asyncio.to_thread(self._execute_daily_maintenance)

    async def _run_health_audit(self) -> None:
        await asyncio.to_thread(self._execute_health_audit)

    async def _run_weekly_repair(self) -> None:
        logger.info("Starting scheduled calendar repair...")
        await asyncio.to_thread(self._execute_weekly_repair)

    def _execute_daily_maintenance(self) -> None:
        try:
            with get_db_context() as db:
                CalendarMaintenanceService.run_daily_maintenance(db)
        except Exception as e:
            logger.exception(f"❌ Error during scheduled calendar maintenance: {e}")
            # Don't re-raise - allow scheduler to continue

    def _execute_health_audit(self) -> None:
        try:
            with get_db_context() as db:
                report = ConsistencyAuditor.audit_health(db)
            if report.status == AUDIT_STATUS_HEALTHY:
                logger.info(
                    f"Calendar {report.year}-{report.month:02d} healthy "
                    f"({report.checked_appointments} appointments checked)"
                )
        except Exception as e:
            logger.exception(f"❌ Error during scheduled calendar audit: {e}")

    def _execute_weekly_repair(self) -> None:
        try:
            with get_db_context() as db:
                ConsistencyAuditor.repair_inconsistencies(db)
        except Exception as e:
            logger.exception(f"❌ Error during scheduled calendar repair: {e}")


def get_calendar_maintenance_scheduler() -> CalendarMaintenanceScheduler:
    """
    Get the global calendar maintenance scheduler instance.

    Returns:
        CalendarMaintenanceScheduler: The global scheduler instance
    """
    global _calendar_maintenance_scheduler
    if _calendar_maintenance_scheduler is None:
        _calendar_maintenance_scheduler = CalendarMaintenanceScheduler()
    return _calendar_maintenance_scheduler


async def start_calendar_maintenance_scheduler() -> None:
    """Start the global calendar maintenance scheduler."""
    scheduler = get_calendar_maintenance_scheduler()
    await scheduler.start_scheduler()


async def stop_calendar_maintenance_scheduler() -> None:
    """Stop the global calendar maintenance scheduler."""
    global _calendar_maintenance_scheduler
    if _calendar_maintenance_scheduler:
        await _calendar_maintenance_scheduler.stop_scheduler()
