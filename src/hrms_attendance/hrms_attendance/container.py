from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional

from .absence.job import AbsenceMarkingJob
from .absence.scheduler import AbsenceScheduler, SchedulerFactory
from .attendance.factory import AttendanceStrategyFactory
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.repository import AttendanceRepository
from .attendance.service import AttendanceService
from .common.datetime_utils import Clock, WorkCalendar
from .common.locks import EmployeeLocks
from .core.constants import (
    DEFAULT_ABSENCE_RUN_DEADLINE_SECONDS,
    DEFAULT_TIMEZONE,
    DEFAULT_WEEKEND_DAYS,
    LEAVE_QUOTA_DAYS,
)
from .database.connection import DBConfig, DatabaseConnection
from .employees.mysql_employee_repository import MySQLEmployeeRepository
from .employees.repository import EmployeeRepository
from .holidays.mysql_holiday_repository import MySQLHolidayRepository
from .holidays.repository import HolidayRepository
from .leaves.mysql_leave_repository import MySQLLeaveRepository
from .leaves.reconciliation import LeaveReconciler
from .leaves.repository import LeaveRepository
from .leaves.service import LeaveService
from .reports.service import ReportService
from .settings.mysql_settings_repository import MySQLSettingsRepository
from .settings.repository import SettingsRepository
from .settings.service import SettingsService


@dataclass(frozen=True)
class Container:
    clock: Clock
    locks: EmployeeLocks

    employees_repo: EmployeeRepository
    holidays_repo: HolidayRepository
    settings_repo: SettingsRepository
    attendance_repo: AttendanceRepository
    leaves_repo: LeaveRepository

    settings_service: SettingsService
    attendance_service: AttendanceService
    leave_service: LeaveService
    report_service: ReportService
    absence_job: AbsenceMarkingJob
    absence_scheduler: AbsenceScheduler


def assemble_container(
    *,
    clock: Clock,
    employees_repo: EmployeeRepository,
    holidays_repo: HolidayRepository,
    settings_repo: SettingsRepository,
    attendance_repo: AttendanceRepository,
    leaves_repo: LeaveRepository,
    leave_quota_days: float = LEAVE_QUOTA_DAYS,
    absence_deadline_seconds: float = DEFAULT_ABSENCE_RUN_DEADLINE_SECONDS,
    scheduler_factory: Optional[SchedulerFactory] = None,
) -> Container:
    """Wire services over the given repositories (MySQL in production, fakes in tests)."""
    locks = EmployeeLocks()

    settings_service = SettingsService(settings_repo, clock=clock)
    attendance_service = AttendanceService(
        attendance_repo,
        employees_repo,
        settings_service,
        clock=clock,
        locks=locks,
        strategy_factory=AttendanceStrategyFactory(),
    )
    leave_service = LeaveService(
        leaves_repo,
        employees_repo,
        LeaveReconciler(attendance_repo, calendar=clock.calendar),
        clock=clock,
        locks=locks,
        quota_days=leave_quota_days,
    )
    report_service = ReportService(attendance_repo, employees_repo, clock=clock)
    absence_job = AbsenceMarkingJob(
        attendance_repo,
        employees_repo,
        holidays_repo,
        leaves_repo,
        settings_service,
        clock=clock,
        locks=locks,
        deadline_seconds=absence_deadline_seconds,
    )
    absence_scheduler = AbsenceScheduler(settings_service, absence_job, clock=clock, scheduler_factory=scheduler_factory)
    settings_service.subscribe(absence_scheduler.update_schedule)

    return Container(
        clock=clock,
        locks=locks,
        employees_repo=employees_repo,
        holidays_repo=holidays_repo,
        settings_repo=settings_repo,
        attendance_repo=attendance_repo,
        leaves_repo=leaves_repo,
        settings_service=settings_service,
        attendance_service=attendance_service,
        leave_service=leave_service,
        report_service=report_service,
        absence_job=absence_job,
        absence_scheduler=absence_scheduler,
    )


def build_container(
    *,
    db_config: dict,
    timezone: str = DEFAULT_TIMEZONE,
    weekend_days: Iterable[int] = DEFAULT_WEEKEND_DAYS,
    leave_quota_days: float = LEAVE_QUOTA_DAYS,
    absence_deadline_seconds: float = DEFAULT_ABSENCE_RUN_DEADLINE_SECONDS,
) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))
    calendar = WorkCalendar.from_settings(timezone, weekend_days)

    return assemble_container(
        clock=Clock(calendar),
        employees_repo=MySQLEmployeeRepository(conn),
        holidays_repo=MySQLHolidayRepository(conn),
        settings_repo=MySQLSettingsRepository(conn, tz=calendar.tz),
        attendance_repo=MySQLAttendanceRepository(conn, tz=calendar.tz),
        leaves_repo=MySQLLeaveRepository(conn, tz=calendar.tz),
        leave_quota_days=leave_quota_days,
        absence_deadline_seconds=absence_deadline_seconds,
    )
