from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import AttendanceStatus

# Statuses that only exist after a real check-in.
PUNCHED_STATUSES = frozenset({AttendanceStatus.PRESENT, AttendanceStatus.LATE, AttendanceStatus.HALF_DAY})


@dataclass(frozen=True)
class Geolocation:
    latitude: Optional[float] = None
    longitude: Optional[float] = None


@dataclass(frozen=True)
class Punch:
    """A check-in or check-out event."""

    time: datetime
    location: str = ""
    geolocation: Optional[Geolocation] = None


@dataclass(frozen=True)
class Break:
    start: datetime
    end: Optional[datetime] = None
    duration_minutes: int = 0

    @property
    def is_open(self) -> bool:
        return self.end is None


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: one employee's attendance for one calendar day."""

    attendance_id: int
    employee_id: int
    work_date: date
    status: AttendanceStatus
    check_in: Optional[Punch] = None
    check_out: Optional[Punch] = None
    breaks: tuple[Break, ...] = ()
    total_break_minutes: int = 0
    late_minutes: int = 0
    overtime_minutes: int = 0
    production_hours: float = 0.0
    total_working_hours: float = 0.0
    notes: str = ""
    is_active: bool = True
    created_at: Optional[datetime] = None

    @property
    def open_break(self) -> Optional[Break]:
        for b in self.breaks:
            if b.is_open:
                return b
        return None

    def to_dict(self) -> dict:
        def punch(p: Optional[Punch]) -> Optional[dict]:
            if p is None:
                return None
            geo = p.geolocation
            return {
                "time": p.time.isoformat(),
                "location": p.location,
                "geolocation": {"latitude": geo.latitude, "longitude": geo.longitude} if geo else None,
            }

        return {
            "id": self.attendance_id,
            "employeeId": self.employee_id,
            "date": self.work_date.isoformat(),
            "status": self.status.value,
            "checkIn": punch(self.check_in),
            "checkOut": punch(self.check_out),
            "breaks": [
                {
                    "startTime": b.start.isoformat(),
                    "endTime": b.end.isoformat() if b.end else None,
                    "duration": b.duration_minutes,
                }
                for b in self.breaks
            ],
            "totalBreakTime": self.total_break_minutes,
            "lateMinutes": self.late_minutes,
            "overtimeMinutes": self.overtime_minutes,
            "productionHours": round(self.production_hours, 2),
            "totalWorkingHours": round(self.total_working_hours, 2),
            "notes": self.notes,
            "isActive": self.is_active,
        }


@dataclass(frozen=True)
class NewAttendance:
    """Values for a record that does not exist yet (id assigned by the store)."""

    employee_id: int
    work_date: date
    status: AttendanceStatus
    check_in: Optional[Punch] = None
    late_minutes: int = 0
    notes: str = ""
