from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional, Sequence

from ..attendance.model import PUNCHED_STATUSES, AttendanceRecord
from ..attendance.repository import AttendanceRepository
from ..common.datetime_utils import Clock
from ..common.validators import require_manager
from ..core.constants import AUTO_ABSENT_NOTE_PREFIX, DEFAULT_HISTORY_LIMIT
from ..core.enums import AttendanceStatus, Role
from ..core.exceptions import ValidationError
from ..employees.repository import EmployeeRepository


@dataclass(frozen=True)
class DailyStatusCounts:
    work_date: date
    total_employees: int
    present: int
    late: int
    absent: int
    half_day: int
    on_leave: int

    @property
    def not_marked(self) -> int:
        counted = self.present + self.late + self.absent + self.half_day + self.on_leave
        return max(0, self.total_employees - counted)

    def to_dict(self) -> dict:
        return {
            "date": self.work_date.isoformat(),
            "totalEmployees": self.total_employees,
            "present": self.present,
            "late": self.late,
            "absent": self.absent,
            "halfDay": self.half_day,
            "onLeave": self.on_leave,
            "notMarked": self.not_marked,
        }


@dataclass(frozen=True)
class EmployeeStatistics:
    employee_id: int
    total_days: int
    present_days: int
    absent_days: int
    late_days: int
    half_days: int
    leave_days: int
    total_working_hours: float
    total_overtime_hours: float
    average_production_hours: float

    def to_dict(self) -> dict:
        return {
            "employeeId": self.employee_id,
            "totalDays": self.total_days,
            "presentDays": self.present_days,
            "absentDays": self.absent_days,
            "lateDays": self.late_days,
            "halfDays": self.half_days,
            "leaveDays": self.leave_days,
            "totalWorkingHours": round(self.total_working_hours, 2),
            "totalOvertimeHours": round(self.total_overtime_hours, 2),
            "averageProductionHours": round(self.average_production_hours, 2),
        }


class ReportService:
    """Read models over attendance (no writes)."""

    def __init__(self, attendance: AttendanceRepository, employees: EmployeeRepository, *, clock: Clock):
        self._attendance = attendance
        self._employees = employees
        self._clock = clock

    def daily_status_counts(self, *, current_role: Role, work_date: Optional[date] = None) -> DailyStatusCounts:
        require_manager(current_role)
        work_date = work_date or self._clock.today()

        # Admins and inactive employees are excluded from every count.
        employee_ids = {e.employee_id for e in self._employees.list_active_non_admin()}
        counts = {status: 0 for status in AttendanceStatus}
        for record in self._attendance.list_for_date(work_date):
            if record.employee_id in employee_ids:
                counts[record.status] += 1

        return DailyStatusCounts(
            work_date=work_date,
            total_employees=len(employee_ids),
            present=counts[AttendanceStatus.PRESENT],
            late=counts[AttendanceStatus.LATE],
            absent=counts[AttendanceStatus.ABSENT],
            half_day=counts[AttendanceStatus.HALF_DAY],
            on_leave=counts[AttendanceStatus.ON_LEAVE],
        )

    def employee_statistics(
        self,
        employee_id: int,
        *,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> EmployeeStatistics:
        end = end or self._clock.today()
        start = start or end.replace(day=1)
        if start > end:
            raise ValidationError("Start date must not be after end date")

        records = self._attendance.list_for_employee(employee_id, start=start, end=end)

        def count(status: AttendanceStatus) -> int:
            return sum(1 for r in records if r.status == status)

        completed: list[AttendanceRecord] = [
            r for r in records if r.status in PUNCHED_STATUSES and r.check_out is not None
        ]
        total_hours = sum(r.total_working_hours for r in completed)
        overtime_hours = sum(r.overtime_minutes for r in completed) / 60
        average_production = sum(r.production_hours for r in completed) / len(completed) if completed else 0.0

        return EmployeeStatistics(
            employee_id=int(employee_id),
            total_days=len(records),
            present_days=count(AttendanceStatus.PRESENT),
            absent_days=count(AttendanceStatus.ABSENT),
            late_days=count(AttendanceStatus.LATE),
            half_days=count(AttendanceStatus.HALF_DAY),
            leave_days=count(AttendanceStatus.ON_LEAVE),
            total_working_hours=total_hours,
            total_overtime_hours=overtime_hours,
            average_production_hours=average_production,
        )

    def recent_auto_absences(self, *, current_role: Role, limit: int = DEFAULT_HISTORY_LIMIT) -> Sequence[AttendanceRecord]:
        require_manager(current_role)
        return self._attendance.list_auto_marked_absences(note_prefix=AUTO_ABSENT_NOTE_PREFIX, limit=max(1, int(limit)))
