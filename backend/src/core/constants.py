"""Application constants and configuration values."""

from core.config import FRONTEND_URL

# Database connection settings
DB_POOL_RECYCLE_SECONDS = 300  # 5 minutes

# Browser origins allowed to call the API; set FRONTEND_URL for the booking client
CORS_ORIGINS = [origin.strip() for origin in FRONTEND_URL.split(",") if origin.strip()]

# Professional kinds served by the platform
PROFESSIONAL_TYPE_DOCTOR = "doctor"
PROFESSIONAL_TYPE_PHYSIOTHERAPIST = "physiotherapist"
PROFESSIONAL_TYPE_PATHOLOGY = "pathology"
PROFESSIONAL_TYPES = (
    PROFESSIONAL_TYPE_DOCTOR,
    PROFESSIONAL_TYPE_PHYSIOTHERAPIST,
    PROFESSIONAL_TYPE_PATHOLOGY,
)

# Professional verification lifecycle
VERIFICATION_APPROVED = "approved"

# Appointment (ledger) statuses
APPOINTMENT_STATUS_PENDING = "pending"
APPOINTMENT_STATUS_CONFIRMED = "confirmed"
APPOINTMENT_STATUS_ACCEPTED = "accepted"
APPOINTMENT_STATUS_COMPLETED = "completed"
APPOINTMENT_STATUS_CANCELLED = "cancelled"

# Statuses that occupy a professional's time
ACTIVE_APPOINTMENT_STATUSES = (
    APPOINTMENT_STATUS_PENDING,
    APPOINTMENT_STATUS_CONFIRMED,
    APPOINTMENT_STATUS_ACCEPTED,
)

# Statuses shown in generated views of past months
PAST_VIEW_STATUSES = (
    APPOINTMENT_STATUS_COMPLETED,
    APPOINTMENT_STATUS_CANCELLED,
    APPOINTMENT_STATUS_CONFIRMED,
)

# Offered slot kinds
SLOT_TYPE_CLINIC = "clinic"
SLOT_TYPE_HOME = "home"
SLOT_TYPES = (SLOT_TYPE_CLINIC, SLOT_TYPE_HOME)

# Status stored on cached booked slots
BOOKED_SLOT_STATUS = "booked"

DEFAULT_BREAK_REASON = "Break"
DEFAULT_SLOT_DURATION_MINUTES = 30

# Calendar maintenance schedule (application timezone)
CALENDAR_DAILY_MAINTENANCE_HOUR = 2
CALENDAR_AUDIT_INTERVAL_HOURS = 6
CALENDAR_WEEKLY_REPAIR_DAY = "sun"
CALENDAR_WEEKLY_REPAIR_HOUR = 3
CALENDAR_SCHEDULER_MISFIRE_GRACE_SECONDS = 3600  # Allow 1 hour grace time if server was down

# Audit issue kinds
AUDIT_MISSING_DAY = "MISSING_DAY"
AUDIT_MISSING_PROFESSIONAL = "MISSING_PROFESSIONAL"
AUDIT_MISSING_SLOT = "MISSING_SLOT"
AUDIT_ORPHAN_SLOT = "ORPHAN_SLOT"
AUDIT_STATUS_HEALTHY = "HEALTHY"
AUDIT_STATUS_NEEDS_ATTENTION = "NEEDS_ATTENTION"
