"""
Shared types for calendar consistency audits.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class AuditIssue:
    """One discrepancy between the ledger and the stored calendar."""
    kind: str  # MISSING_DAY, MISSING_PROFESSIONAL, MISSING_SLOT or ORPHAN_SLOT
    appointment_id: int
    professional_id: int
    professional_type: str
    date: str  # YYYY-MM-DD
    start_time: Optional[str] = None
    end_time: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind,
            "appointment_id": self.appointment_id,
            "professional_id": self.professional_id,
            "professional_type": self.professional_type,
            "date": self.date,
            "start_time": self.start_time,
            "end_time": self.end_time,
        }


@dataclass
class AuditReport:
    year: int
    month: int
    status: str
    checked_appointments: int
    issues: List[AuditIssue] = field(default_factory=list)
    orphans: List[AuditIssue] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "year": self.year,
            "month": self.month,
            "status": self.status,
            "checked_appointments": self.checked_appointments,
            "issue_count": len(self.issues),
            "issues": [issue.to_dict() for issue in self.issues],
            "orphan_count": len(self.orphans),
            "orphans": [orphan.to_dict() for orphan in self.orphans],
        }


@dataclass
class RepairResult:
    year: int
    month: int
    schedules_created: int = 0
    slots_inserted: int = 0
    orphans: List[AuditIssue] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "year": self.year,
            "month": self.month,
            "schedules_created": self.schedules_created,
            "slots_inserted": self.slots_inserted,
            "orphan_count": len(self.orphans),
            "orphans": [orphan.to_dict() for orphan in self.orphans],
        }
