from __future__ import annotations

import logging
from dataclasses import replace

from ..attendance.model import NewAttendance
from ..attendance.repository import AttendanceRepository
from ..common.datetime_utils import WorkCalendar, daterange
from ..core.enums import AttendanceStatus
from .model import LeaveRequest

logger = logging.getLogger(__name__)


def leave_note(leave: LeaveRequest) -> str:
    return f"On approved leave: {leave.leave_type.value} {leave.marker}"


class LeaveReconciler:
    """Keeps attendance in step with approved leave.

    Approval stamps every working day of the range ``On Leave``; decline
    or cancellation removes only the rows carrying this leave's marker.
    Callers hold the employee lock.
    """

    def __init__(self, attendance: AttendanceRepository, *, calendar: WorkCalendar):
        self._attendance = attendance
        self._calendar = calendar

    def apply_leave_to_attendance(self, leave: LeaveRequest) -> int:
        note = leave_note(leave)
        stamped = 0
        for day in self._calendar.working_days(leave.from_date, leave.to_date):
            existing = self._attendance.get_active_for_employee_and_date(leave.employee_id, day)
            if existing is None:
                self._attendance.create(
                    NewAttendance(
                        employee_id=leave.employee_id,
                        work_date=day,
                        status=AttendanceStatus.ON_LEAVE,
                        notes=note,
                    )
                )
            elif existing.status == AttendanceStatus.ON_LEAVE and leave.marker in existing.notes:
                continue
            else:
                self._attendance.update(replace(existing, status=AttendanceStatus.ON_LEAVE, notes=note))
            stamped += 1

        logger.info("Leave %s stamped %s day(s) for employee %s", leave.leave_id, stamped, leave.employee_id)
        return stamped

    def revert_leave_from_attendance(self, leave: LeaveRequest) -> int:
        removed = 0
        for day in daterange(leave.from_date, leave.to_date):
            existing = self._attendance.get_active_for_employee_and_date(leave.employee_id, day)
            if existing is None or existing.status != AttendanceStatus.ON_LEAVE:
                continue
            if leave.marker not in existing.notes:
                continue
            if self._attendance.delete(existing.attendance_id):
                removed += 1

        logger.info("Leave %s removed %s day(s) for employee %s", leave.leave_id, removed, leave.employee_id)
        return removed
