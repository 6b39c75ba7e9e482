from __future__ import annotations

import logging
import threading
import time as _time
from dataclasses import dataclass
from datetime import date, datetime
from typing import Callable, Optional

from ..attendance.model import NewAttendance
from ..attendance.repository import AttendanceRepository
from ..common.datetime_utils import Clock, format_hhmm
from ..common.locks import EmployeeLocks
from ..core.constants import AUTO_ABSENT_NOTE_PREFIX, DEFAULT_ABSENCE_RUN_DEADLINE_SECONDS
from ..core.enums import AttendanceStatus
from ..core.exceptions import ConflictError, JobRunError
from ..employees.model import Employee
from ..employees.repository import EmployeeRepository
from ..holidays.repository import HolidayRepository
from ..leaves.repository import LeaveRepository
from ..settings.service import SettingsService

logger = logging.getLogger(__name__)

REASON_DISABLED = "disabled"
REASON_WEEKEND = "weekend"
REASON_HOLIDAY = "holiday"
REASON_BEFORE_TIME = "before marking time"
REASON_ALREADY_RUNNING = "already running"
REASON_DEADLINE = "deadline exceeded"


@dataclass(frozen=True)
class AbsenceRunResult:
    run_at: datetime
    work_date: date
    marked: int = 0
    skipped: int = 0
    total_employees: int = 0
    reason: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "marked": self.marked,
            "skipped": self.skipped,
            "totalEmployees": self.total_employees,
            "reason": self.reason,
            "date": self.work_date.isoformat(),
            "runAt": self.run_at.isoformat(),
        }


class AbsenceMarkingJob:
    """Marks employees without attendance as Absent for the current day.

    Runs are serialized with a non-blocking lock; a second caller gets an
    "already running" result instead of waiting. Re-running on a day that
    was already processed marks nobody, since every employee then has a
    record.
    """

    def __init__(
        self,
        attendance: AttendanceRepository,
        employees: EmployeeRepository,
        holidays: HolidayRepository,
        leaves: LeaveRepository,
        settings: SettingsService,
        *,
        clock: Clock,
        locks: EmployeeLocks,
        deadline_seconds: float = DEFAULT_ABSENCE_RUN_DEADLINE_SECONDS,
        monotonic: Callable[[], float] = _time.monotonic,
    ):
        self._attendance = attendance
        self._employees = employees
        self._holidays = holidays
        self._leaves = leaves
        self._settings = settings
        self._clock = clock
        self._locks = locks
        self._deadline_seconds = float(deadline_seconds)
        self._monotonic = monotonic
        self._run_lock = threading.Lock()
        self._last_result: Optional[AbsenceRunResult] = None

    @property
    def last_result(self) -> Optional[AbsenceRunResult]:
        return self._last_result

    def run(self) -> AbsenceRunResult:
        now = self._clock.now()
        if not self._run_lock.acquire(blocking=False):
            logger.info("Absence marking skipped: a run is already in progress")
            return AbsenceRunResult(run_at=now, work_date=now.date(), reason=REASON_ALREADY_RUNNING)
        try:
            result = self._run(now)
            self._last_result = result
            return result
        finally:
            self._run_lock.release()

    def _run(self, now: datetime) -> AbsenceRunResult:
        today = now.date()
        calendar = self._clock.calendar
        settings = self._settings.get()

        def skip(reason: str) -> AbsenceRunResult:
            logger.info("Absence marking for %s skipped: %s", today, reason)
            return AbsenceRunResult(run_at=now, work_date=today, reason=reason)

        if not settings.auto_absence_enabled:
            return skip(REASON_DISABLED)
        if calendar.is_weekend(today):
            return skip(REASON_WEEKEND)
        holiday = self._holidays.get_for_date(today)
        if holiday:
            logger.info("Today is a holiday: %s", holiday.name)
            return skip(REASON_HOLIDAY)
        if now < calendar.at(today, settings.absence_marking_time):
            return skip(REASON_BEFORE_TIME)

        note = f"{AUTO_ABSENT_NOTE_PREFIX}: no check-in by {format_hhmm(settings.absence_marking_time)}"
        employees = list(self._employees.list_active_non_admin())
        deadline = self._monotonic() + self._deadline_seconds

        marked = 0
        skipped = 0
        reason = None
        for index, employee in enumerate(employees):
            if self._monotonic() > deadline:
                skipped += len(employees) - index
                reason = REASON_DEADLINE
                logger.warning(
                    "Absence marking deadline of %ss exceeded, %s employee(s) not processed",
                    self._deadline_seconds,
                    len(employees) - index,
                )
                break
            try:
                if self._mark_employee(employee, today, note):
                    marked += 1
                else:
                    skipped += 1
            except JobRunError as exc:
                logger.exception("Failed to process employee %s: %s", exc.employee_id, exc)
                skipped += 1

        logger.info(
            "Absence marking for %s done: %s marked, %s skipped of %s employees",
            today,
            marked,
            skipped,
            len(employees),
        )
        return AbsenceRunResult(
            run_at=now,
            work_date=today,
            marked=marked,
            skipped=skipped,
            total_employees=len(employees),
            reason=reason,
        )

    def _mark_employee(self, employee: Employee, today: date, note: str) -> bool:
        try:
            with self._locks.hold(employee.employee_id):
                if self._attendance.get_active_for_employee_and_date(employee.employee_id, today):
                    return False
                if self._leaves.find_approved_covering(employee.employee_id, today):
                    return False
                self._attendance.create(
                    NewAttendance(
                        employee_id=employee.employee_id,
                        work_date=today,
                        status=AttendanceStatus.ABSENT,
                        notes=note,
                    )
                )
                logger.debug("Marked employee %s absent for %s", employee.employee_id, today)
                return True
        except ConflictError:
            # Another process wrote the day first.
            return False
        except Exception as exc:
            raise JobRunError(employee.employee_id, str(exc)) from exc
