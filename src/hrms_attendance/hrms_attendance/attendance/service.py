from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import date, datetime, timedelta
from typing import Optional, Sequence

from ..common.datetime_utils import Clock, WorkCalendar, hours_between, whole_minutes
from ..common.locks import EmployeeLocks
from ..common.validators import require_geolocation, require_manager
from ..core.constants import AUTO_CHECKOUT_NOTE, DEFAULT_PAGE_SIZE, STANDARD_WORK_HOURS
from ..core.enums import AttendanceStatus, Role
from ..core.exceptions import ConflictError, NotFoundError, ValidationError
from ..employees.repository import EmployeeRepository
from ..settings.model import AttendanceSettings
from ..settings.service import SettingsService
from .factory import AttendanceStrategyFactory
from .model import PUNCHED_STATUSES, AttendanceRecord, Break, Geolocation, NewAttendance, Punch
from .repository import AttendanceRepository
from .strategies.late_strategy import LateStrategy

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WorkMetrics:
    total_working_hours: float
    overtime_minutes: int
    production_hours: float


def compute_metrics(check_in: datetime, check_out: datetime, total_break_minutes: int) -> WorkMetrics:
    hours = hours_between(check_in, check_out)
    overtime = int(max(0.0, hours - STANDARD_WORK_HOURS) * 60)
    production = max(0.0, hours - total_break_minutes / 60)
    return WorkMetrics(total_working_hours=hours, overtime_minutes=overtime, production_hours=production)


def close_breaks(breaks: Sequence[Break], at: datetime) -> tuple[Break, ...]:
    """End every open break at ``at``."""
    return tuple(
        replace(b, end=at, duration_minutes=max(0, whole_minutes(at - b.start))) if b.is_open else b for b in breaks
    )


def _append_note(notes: str, note: str) -> str:
    return f"{notes}; {note}" if notes else note


@dataclass(frozen=True)
class AttendancePage:
    records: Sequence[AttendanceRecord]
    total: int
    page: int
    limit: int

    def to_dict(self) -> dict:
        return {
            "records": [r.to_dict() for r in self.records],
            "pagination": {
                "total": self.total,
                "page": self.page,
                "limit": self.limit,
                "pages": (self.total + self.limit - 1) // self.limit if self.limit else 1,
            },
        }


class AttendanceService:
    """Use case: punches, breaks and admin maintenance of attendance records."""

    def __init__(
        self,
        attendance: AttendanceRepository,
        employees: EmployeeRepository,
        settings: SettingsService,
        *,
        clock: Clock,
        locks: EmployeeLocks,
        strategy_factory: AttendanceStrategyFactory | None = None,
    ):
        self._attendance = attendance
        self._employees = employees
        self._settings = settings
        self._clock = clock
        self._locks = locks
        self._factory = strategy_factory or AttendanceStrategyFactory()

    def _require_employee(self, employee_id: int) -> None:
        if not self._employees.get_by_id(employee_id):
            raise NotFoundError("Employee not found")

    def _require_today(self, employee_id: int) -> AttendanceRecord:
        record = self._attendance.get_active_for_employee_and_date(employee_id, self._clock.today())
        if not record:
            raise NotFoundError("No attendance record found for today")
        return record

    def _finish(self, record: AttendanceRecord, punch: Punch, settings: AttendanceSettings) -> AttendanceRecord:
        """Apply a check-out punch: close breaks, compute metrics, pick the final status."""
        breaks = close_breaks(record.breaks, punch.time)
        total_break = sum(b.duration_minutes for b in breaks)
        metrics = compute_metrics(record.check_in.time, punch.time, total_break)

        strategy = self._factory.for_checkout(worked_hours=metrics.total_working_hours, settings=settings)
        decision = strategy.decide_checkout(worked_hours=metrics.total_working_hours, current=record.status)

        return replace(
            record,
            status=decision.status,
            check_out=punch,
            breaks=breaks,
            total_break_minutes=total_break,
            total_working_hours=metrics.total_working_hours,
            overtime_minutes=metrics.overtime_minutes,
            production_hours=metrics.production_hours,
        )

    def _auto_checkout_stale(self, employee_id: int, now: datetime, settings: AttendanceSettings) -> None:
        stale = self._attendance.get_latest_open_for_employee(employee_id)
        if not stale or stale.work_date >= self._clock.calendar.local_date(now):
            return

        closed_at = stale.check_in.time + timedelta(hours=settings.auto_checkout_hours)
        if closed_at > now:
            return

        closed = self._finish(stale, Punch(time=closed_at), settings)
        self._attendance.update(replace(closed, notes=_append_note(stale.notes, AUTO_CHECKOUT_NOTE)))
        logger.info("Auto checkout of attendance %s for employee %s at %s", stale.attendance_id, employee_id, closed_at)

    def check_in(
        self,
        employee_id: int,
        *,
        location: str = "",
        latitude: Optional[float] = None,
        longitude: Optional[float] = None,
    ) -> AttendanceRecord:
        require_geolocation(latitude, longitude)
        self._require_employee(employee_id)

        with self._locks.hold(employee_id):
            now = self._clock.now()
            today = now.date()
            settings = self._settings.get()

            self._auto_checkout_stale(employee_id, now, settings)

            if self._attendance.get_active_for_employee_and_date(employee_id, today):
                raise ConflictError("Already checked in today")

            calendar = self._clock.calendar
            strategy = self._factory.for_checkin(now=now, settings=settings, calendar=calendar)
            decision = strategy.decide_checkin(now=now, settings=settings, calendar=calendar)

            record = self._attendance.create(
                NewAttendance(
                    employee_id=employee_id,
                    work_date=today,
                    status=decision.status,
                    check_in=Punch(time=now, location=location or "", geolocation=_geo(latitude, longitude)),
                    late_minutes=decision.late_minutes,
                )
            )
            logger.info("Employee %s checked in (%s)", employee_id, record.status.value)
            return record

    def check_out(
        self,
        employee_id: int,
        *,
        location: str = "",
        latitude: Optional[float] = None,
        longitude: Optional[float] = None,
    ) -> AttendanceRecord:
        require_geolocation(latitude, longitude)

        with self._locks.hold(employee_id):
            record = self._require_today(employee_id)
            if record.check_in is None:
                raise ConflictError("You have not checked in today")
            if record.check_out is not None:
                raise ConflictError("Already checked out today")

            punch = Punch(time=self._clock.now(), location=location or "", geolocation=_geo(latitude, longitude))
            updated = self._attendance.update(self._finish(record, punch, self._settings.get()))
            logger.info(
                "Employee %s checked out after %.2f hours (%s)",
                employee_id,
                updated.total_working_hours,
                updated.status.value,
            )
            return updated

    def start_break(self, employee_id: int) -> AttendanceRecord:
        with self._locks.hold(employee_id):
            record = self._require_today(employee_id)
            if record.check_in is None:
                raise ConflictError("You must check in before starting a break")
            if record.check_out is not None:
                raise ConflictError("Cannot start a break after checking out")
            if record.open_break is not None:
                raise ConflictError("A break is already in progress")

            updated = replace(record, breaks=record.breaks + (Break(start=self._clock.now()),))
            return self._attendance.update(updated)

    def end_break(self, employee_id: int) -> AttendanceRecord:
        with self._locks.hold(employee_id):
            record = self._require_today(employee_id)
            if record.open_break is None:
                raise NotFoundError("No active break found")

            breaks = close_breaks(record.breaks, self._clock.now())
            updated = replace(record, breaks=breaks, total_break_minutes=sum(b.duration_minutes for b in breaks))
            return self._attendance.update(updated)

    def get_today(self, employee_id: int) -> Optional[AttendanceRecord]:
        return self._attendance.get_active_for_employee_and_date(employee_id, self._clock.today())

    def list_for_employee(
        self,
        employee_id: int,
        *,
        start: Optional[date] = None,
        end: Optional[date] = None,
        status: Optional[AttendanceStatus] = None,
    ) -> Sequence[AttendanceRecord]:
        if start and end and start > end:
            raise ValidationError("Start date must not be after end date")
        return self._attendance.list_for_employee(employee_id, start=start, end=end, status=status)

    def list_range(
        self,
        *,
        current_role: Role,
        start: Optional[date] = None,
        end: Optional[date] = None,
        employee_id: Optional[int] = None,
        status: Optional[AttendanceStatus] = None,
        page: int = 1,
        limit: int = DEFAULT_PAGE_SIZE,
    ) -> AttendancePage:
        require_manager(current_role)
        if start and end and start > end:
            raise ValidationError("Start date must not be after end date")
        page = max(1, int(page))
        limit = max(1, int(limit))
        records, total = self._attendance.list_range(
            start=start,
            end=end,
            employee_id=employee_id,
            status=status,
            limit=limit,
            offset=(page - 1) * limit,
        )
        return AttendancePage(records=records, total=total, page=page, limit=limit)

    def admin_update(self, attendance_id: int, *, current_role: Role, changes: dict) -> AttendanceRecord:
        """Edit punches, status or notes of a record.

        Invariants are checked on the edited record and the derived
        metrics are recomputed from its punches and breaks.
        """
        require_manager(current_role)
        record = self._attendance.get_by_id(attendance_id)
        if not record or not record.is_active:
            raise NotFoundError("Attendance record not found")

        changes = changes or {}
        calendar = self._clock.calendar

        status = record.status
        if changes.get("status"):
            try:
                status = AttendanceStatus(changes["status"])
            except ValueError:
                raise ValidationError(f"Invalid status: {changes['status']!r}")

        check_in = record.check_in
        if changes.get("checkIn"):
            check_in = _with_time(check_in, _parse_instant(changes["checkIn"], calendar))
        check_out = record.check_out
        if changes.get("checkOut"):
            check_out = _with_time(check_out, _parse_instant(changes["checkOut"], calendar))

        if status in PUNCHED_STATUSES and check_in is None:
            raise ValidationError(f"Check-in time is required for status {status.value}")
        if check_in and check_out and check_out.time <= check_in.time:
            raise ValidationError("Check-out time must be after check-in time")
        if check_out and not check_in:
            raise ValidationError("Check-out requires a check-in time")

        settings = self._settings.get()
        late_minutes = 0
        if status == AttendanceStatus.LATE and check_in:
            late_minutes = LateStrategy().decide_checkin(now=check_in.time, settings=settings, calendar=calendar).late_minutes

        total_break = sum(b.duration_minutes for b in record.breaks)
        if check_in and check_out:
            metrics = compute_metrics(check_in.time, check_out.time, total_break)
        else:
            metrics = WorkMetrics(total_working_hours=0.0, overtime_minutes=0, production_hours=0.0)

        with self._locks.hold(record.employee_id):
            updated = replace(
                record,
                status=status,
                check_in=check_in,
                check_out=check_out,
                late_minutes=late_minutes,
                total_break_minutes=total_break,
                total_working_hours=metrics.total_working_hours,
                overtime_minutes=metrics.overtime_minutes,
                production_hours=metrics.production_hours,
                notes=str(changes["notes"]).strip() if changes.get("notes") is not None else record.notes,
            )
            return self._attendance.update(updated)

    def deactivate(self, attendance_id: int, *, current_role: Role) -> None:
        require_manager(current_role)
        record = self._attendance.get_by_id(attendance_id)
        if not record:
            raise NotFoundError("Attendance record not found")
        with self._locks.hold(record.employee_id):
            if not self._attendance.deactivate(attendance_id):
                raise ConflictError("Attendance record is already inactive")


def _geo(latitude: Optional[float], longitude: Optional[float]) -> Optional[Geolocation]:
    if latitude is None or longitude is None:
        return None
    return Geolocation(latitude=float(latitude), longitude=float(longitude))


def _with_time(punch: Optional[Punch], value: datetime) -> Punch:
    return replace(punch, time=value) if punch else Punch(time=value)


def _parse_instant(value: str, calendar: WorkCalendar) -> datetime:
    try:
        parsed = datetime.fromisoformat(str(value).strip())
    except ValueError:
        raise ValidationError(f"Invalid date-time (ISO 8601): {value!r}")
    return calendar.localize(parsed)
