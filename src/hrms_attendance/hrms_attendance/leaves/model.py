from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import LeaveStatus, LeaveType

# Declined and Cancelled are terminal.
ALLOWED_TRANSITIONS: dict[LeaveStatus, frozenset[LeaveStatus]] = {
    LeaveStatus.NEW: frozenset({LeaveStatus.APPROVED, LeaveStatus.DECLINED, LeaveStatus.CANCELLED}),
    LeaveStatus.APPROVED: frozenset({LeaveStatus.DECLINED, LeaveStatus.CANCELLED}),
}


@dataclass(frozen=True)
class LeaveRequest:
    leave_id: int
    employee_id: int
    leave_type: LeaveType
    from_date: date
    to_date: date
    no_of_days: float
    status: LeaveStatus
    reason: str = ""
    approved_by: Optional[int] = None
    approved_at: Optional[datetime] = None
    cancelled_by: Optional[int] = None
    cancelled_at: Optional[datetime] = None
    created_by: Optional[int] = None
    updated_by: Optional[int] = None
    is_deleted: bool = False
    deleted_at: Optional[datetime] = None
    deleted_by: Optional[int] = None
    created_at: Optional[datetime] = None

    def can_transition_to(self, target: LeaveStatus) -> bool:
        return target in ALLOWED_TRANSITIONS.get(self.status, frozenset())

    def covers(self, day: date) -> bool:
        return self.from_date <= day <= self.to_date

    @property
    def marker(self) -> str:
        """Tag written into attendance notes for the days this leave stamps."""
        return f"[leave:{self.leave_id}]"

    def to_dict(self) -> dict:
        def iso(value: Optional[datetime]) -> Optional[str]:
            return value.isoformat() if value else None

        return {
            "id": self.leave_id,
            "employeeId": self.employee_id,
            "leaveType": self.leave_type.value,
            "from": self.from_date.isoformat(),
            "to": self.to_date.isoformat(),
            "noOfDays": self.no_of_days,
            "status": self.status.value,
            "reason": self.reason,
            "approvedBy": self.approved_by,
            "approvedAt": iso(self.approved_at),
            "cancelledBy": self.cancelled_by,
            "cancelledAt": iso(self.cancelled_at),
            "createdBy": self.created_by,
            "updatedBy": self.updated_by,
            "createdAt": iso(self.created_at),
        }


@dataclass(frozen=True)
class NewLeave:
    employee_id: int
    leave_type: LeaveType
    from_date: date
    to_date: date
    no_of_days: float
    reason: str = ""
    created_by: Optional[int] = None


@dataclass(frozen=True)
class LeaveBalance:
    employee_id: int
    year: int
    quota: float
    approved_days: float
    by_type: dict

    @property
    def remaining(self) -> float:
        return max(0.0, self.quota - self.approved_days)

    def to_dict(self) -> dict:
        return {
            "employeeId": self.employee_id,
            "year": self.year,
            "quota": self.quota,
            "approvedDays": self.approved_days,
            "remaining": self.remaining,
            "byType": dict(self.by_type),
        }
