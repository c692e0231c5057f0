"""
Manual calendar maintenance script.

NOTE: Automatic maintenance is handled by CalendarMaintenanceScheduler
(daily at 2 AM, audits every 6 hours, repair weekly on Sunday at 3 AM).
This script is provided for:
- Manual/emergency maintenance after a scheduler outage
- Repairing drift between appointments and the current month
- Testing maintenance logic in development

Usage:
    python scripts/run_calendar_maintenance.py            # materialize, clean up, sync
    python scripts/run_calendar_maintenance.py --audit    # report drift only
    python scripts/run_calendar_maintenance.py --repair   # repair the current month
"""
import argparse
import sys
import os

# Add the parent directory to sys.path to allow imports from src
sys.path.append(os.path.join(os.path.dirname(__file__), '../src'))

from core.database import SessionLocal
from services.calendar_maintenance_service import CalendarMaintenanceService
from services.consistency_auditor import ConsistencyAuditor


def main():
    parser = argparse.ArgumentParser(description="Run calendar maintenance tasks")
    group = parser.add_mutually_exclusive_group()
    group.add_argument("--audit", action="store_true", help="Audit the current month without changing it")
    group.add_argument("--repair", action="store_true", help="Insert missing cached bookings for the current month")
    args = parser.parse_args()

    db = SessionLocal()
    try:
        if args.audit:
            print("Auditing current month...")
            report = ConsistencyAuditor.audit_health(db)
            print(f"Status: {report.status}")
            for issue in report.issues + report.orphans:
                print(f"  {issue.kind}: appointment {issue.appointment_id} on {issue.date} "
                      f"({issue.professional_type} {issue.professional_id})")
        elif args.repair:
            print("Repairing current month...")
            result = ConsistencyAuditor.repair_inconsistencies(db)
            print(f"Created {result.schedules_created} schedule(s), inserted {result.slots_inserted} slot(s).")
            print(f"{len(result.orphans)} orphaned slot(s) left in place.")
        else:
            print("Running calendar maintenance...")
            result = CalendarMaintenanceService.run_daily_maintenance(db)
            print(f"Materialized: {', '.join(result['materialized_months'])}")
            print(f"Deleted {result['cleanup']['deleted_count']} old calendar(s).")
            print(f"Synced {len(result['availability_sync'])} month(s).")
        print("Calendar maintenance completed successfully.")
    except Exception as e:
        print(f"Error during calendar maintenance: {e}")
        sys.exit(1)
    finally:
        db.close()


if __name__ == "__main__":
    main()
