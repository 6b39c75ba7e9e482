from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Caller/employee role used for permission checks."""

    ADMIN = "admin"
    HR = "hr"
    EMPLOYEE = "employee"


class AttendanceStatus(str, Enum):
    """Normalized attendance status stored in the database."""

    PRESENT = "Present"
    ABSENT = "Absent"
    LATE = "Late"
    HALF_DAY = "Half Day"
    ON_LEAVE = "On Leave"


class LeaveStatus(str, Enum):
    """Leave approval workflow states."""

    NEW = "New"
    APPROVED = "Approved"
    DECLINED = "Declined"
    CANCELLED = "Cancelled"


class LeaveType(str, Enum):
    FULL_DAY = "Full Day"
    HALF_DAY = "Half Day"
    MEDICAL = "Medical Leave"
    CASUAL = "Casual Leave"
    ANNUAL = "Annual Leave"
    OTHER = "Other"


MANAGER_ROLES = frozenset({Role.ADMIN, Role.HR})
