from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime, timedelta
from typing import Optional
from zoneinfo import ZoneInfo

import pytest
from apscheduler.schedulers.background import BackgroundScheduler

from hrms_attendance.attendance.model import AttendanceRecord, NewAttendance
from hrms_attendance.common.datetime_utils import Clock, WorkCalendar
from hrms_attendance.container import assemble_container
from hrms_attendance.core.enums import AttendanceStatus, LeaveStatus, Role
from hrms_attendance.core.exceptions import ConflictError
from hrms_attendance.employees.model import Employee
from hrms_attendance.holidays.model import Holiday
from hrms_attendance.leaves.model import LeaveRequest, NewLeave
from hrms_attendance.settings.model import AttendanceSettings

IST = ZoneInfo("Asia/Kolkata")

ADMIN_ID = 1
HR_ID = 2
ALICE_ID = 10
BOB_ID = 11
CAROL_ID = 12
INACTIVE_ID = 13


def ist(y, mo, d, h=0, mi=0, s=0) -> datetime:
    return datetime(y, mo, d, h, mi, s, tzinfo=IST)


class FakeTime:
    """Mutable current instant used as the Clock source."""

    def __init__(self, current: datetime):
        self.current = current

    def __call__(self) -> datetime:
        return self.current

    def set(self, value: datetime) -> None:
        self.current = value

    def advance(self, **kwargs) -> None:
        self.current = self.current + timedelta(**kwargs)


class PausedScheduler(BackgroundScheduler):
    """Computes next run times without ever firing; tests call job functions directly."""

    def __init__(self, tz):
        super().__init__(timezone=tz)

    def start(self, *args, **kwargs):
        kwargs["paused"] = True
        super().start(*args, **kwargs)


class FakeEmployeeRepo:
    def __init__(self, employees):
        self._by_id = {e.employee_id: e for e in employees}

    def get_by_id(self, employee_id):
        return self._by_id.get(int(employee_id))

    def list_active_non_admin(self):
        return [e for e in self._by_id.values() if e.is_active and not e.is_admin]


class FakeHolidayRepo:
    def __init__(self):
        self.holidays: dict[date, Holiday] = {}

    def add(self, day: date, name: str = "Holiday") -> None:
        self.holidays[day] = Holiday(holiday_id=len(self.holidays) + 1, holiday_date=day, name=name)

    def get_for_date(self, day):
        return self.holidays.get(day)


class FakeSettingsRepo:
    def __init__(self):
        self.current: Optional[AttendanceSettings] = None

    def get(self):
        return self.current

    def create_default(self, *, created_by):
        if self.current is None:
            self.current = AttendanceSettings(settings_id=1, created_by=created_by)
        return self.current

    def save(self, settings):
        self.current = settings
        return settings


class FakeAttendanceRepo:
    def __init__(self):
        self._next_id = 1
        self.rows: dict[int, AttendanceRecord] = {}
        self.fail_for: set[int] = set()

    def get_by_id(self, attendance_id):
        return self.rows.get(int(attendance_id))

    def get_active_for_employee_and_date(self, employee_id, work_date):
        for r in self.rows.values():
            if r.employee_id == employee_id and r.work_date == work_date and r.is_active:
                return r
        return None

    def get_latest_open_for_employee(self, employee_id):
        open_rows = [
            r
            for r in self.rows.values()
            if r.employee_id == employee_id and r.is_active and r.check_in and r.check_out is None
        ]
        return max(open_rows, key=lambda r: r.work_date) if open_rows else None

    def create(self, new: NewAttendance):
        if new.employee_id in self.fail_for:
            raise RuntimeError("storage unavailable")
        if self.get_active_for_employee_and_date(new.employee_id, new.work_date):
            raise ConflictError("An attendance record already exists for this day")
        record = AttendanceRecord(
            attendance_id=self._next_id,
            employee_id=new.employee_id,
            work_date=new.work_date,
            status=new.status,
            check_in=new.check_in,
            late_minutes=new.late_minutes,
            notes=new.notes,
        )
        self.rows[record.attendance_id] = record
        self._next_id += 1
        return record

    def update(self, record):
        self.rows[record.attendance_id] = record
        return record

    def deactivate(self, attendance_id):
        r = self.rows.get(int(attendance_id))
        if not r or not r.is_active:
            return False
        self.rows[r.attendance_id] = replace(r, is_active=False)
        return True

    def delete(self, attendance_id):
        return self.rows.pop(int(attendance_id), None) is not None

    def _filter(self, *, start=None, end=None, employee_id=None, status=None):
        out = [
            r
            for r in self.rows.values()
            if r.is_active
            and (start is None or r.work_date >= start)
            and (end is None or r.work_date <= end)
            and (employee_id is None or r.employee_id == employee_id)
            and (status is None or r.status == status)
        ]
        return sorted(out, key=lambda r: (r.work_date, -r.employee_id), reverse=True)

    def list_for_employee(self, employee_id, *, start=None, end=None, status=None):
        return self._filter(start=start, end=end, employee_id=employee_id, status=status)

    def list_range(self, *, start=None, end=None, employee_id=None, status=None, limit=20, offset=0):
        rows = self._filter(start=start, end=end, employee_id=employee_id, status=status)
        return rows[offset : offset + limit], len(rows)

    def list_for_date(self, work_date):
        return self._filter(start=work_date, end=work_date)

    def list_auto_marked_absences(self, *, note_prefix, limit):
        rows = [
            r
            for r in self.rows.values()
            if r.is_active and r.status == AttendanceStatus.ABSENT and r.notes.startswith(note_prefix)
        ]
        return sorted(rows, key=lambda r: r.attendance_id, reverse=True)[:limit]

    def active_for(self, employee_id):
        return sorted(
            (r for r in self.rows.values() if r.employee_id == employee_id and r.is_active),
            key=lambda r: r.work_date,
        )


class FakeLeaveRepo:
    def __init__(self):
        self._next_id = 1
        self.rows: dict[int, LeaveRequest] = {}

    def get_by_id(self, leave_id):
        leave = self.rows.get(int(leave_id))
        return leave if leave and not leave.is_deleted else None

    def create(self, new: NewLeave):
        leave = LeaveRequest(
            leave_id=self._next_id,
            employee_id=new.employee_id,
            leave_type=new.leave_type,
            from_date=new.from_date,
            to_date=new.to_date,
            no_of_days=new.no_of_days,
            status=LeaveStatus.NEW,
            reason=new.reason,
            created_by=new.created_by,
        )
        self.rows[leave.leave_id] = leave
        self._next_id += 1
        return leave

    def save(self, leave):
        self.rows[leave.leave_id] = leave
        return leave

    def _visible(self):
        return [leave for leave in self.rows.values() if not leave.is_deleted]

    def list_requests(self, *, status=None, employee_id=None, leave_type=None, limit=20, offset=0):
        rows = [
            leave
            for leave in self._visible()
            if (status is None or leave.status == status)
            and (employee_id is None or leave.employee_id == employee_id)
            and (leave_type is None or leave.leave_type == leave_type)
        ]
        rows.sort(key=lambda leave: leave.leave_id, reverse=True)
        return rows[offset : offset + limit], len(rows)

    def list_for_employee(self, employee_id, *, year=None):
        rows = [
            leave
            for leave in self._visible()
            if leave.employee_id == employee_id and (year is None or leave.from_date.year == year)
        ]
        return sorted(rows, key=lambda leave: (leave.from_date, leave.leave_id), reverse=True)

    def sum_approved_days(self, employee_id, *, year):
        return sum(
            leave.no_of_days
            for leave in self._visible()
            if leave.employee_id == employee_id
            and leave.status == LeaveStatus.APPROVED
            and leave.from_date.year == year
        )

    def find_approved_covering(self, employee_id, day):
        for leave in self._visible():
            if leave.employee_id == employee_id and leave.status == LeaveStatus.APPROVED and leave.covers(day):
                return leave
        return None


@pytest.fixture
def fake_time():
    # Monday
    return FakeTime(ist(2025, 3, 10, 9, 0))


@pytest.fixture
def calendar():
    return WorkCalendar(tz=IST, weekend_days=frozenset({5, 6}))


@pytest.fixture
def clock(calendar, fake_time):
    return Clock(calendar, source=fake_time)


@pytest.fixture
def employees_repo():
    return FakeEmployeeRepo(
        [
            Employee(ADMIN_ID, "Admin", Role.ADMIN),
            Employee(HR_ID, "Harper", Role.HR),
            Employee(ALICE_ID, "Alice", Role.EMPLOYEE),
            Employee(BOB_ID, "Bob", Role.EMPLOYEE),
            Employee(CAROL_ID, "Carol", Role.EMPLOYEE),
            Employee(INACTIVE_ID, "Dan", Role.EMPLOYEE, is_active=False),
        ]
    )


@pytest.fixture
def holidays_repo():
    return FakeHolidayRepo()


@pytest.fixture
def settings_repo():
    return FakeSettingsRepo()


@pytest.fixture
def attendance_repo():
    return FakeAttendanceRepo()


@pytest.fixture
def leaves_repo():
    return FakeLeaveRepo()


@pytest.fixture
def container(clock, employees_repo, holidays_repo, settings_repo, attendance_repo, leaves_repo):
    container = assemble_container(
        clock=clock,
        employees_repo=employees_repo,
        holidays_repo=holidays_repo,
        settings_repo=settings_repo,
        attendance_repo=attendance_repo,
        leaves_repo=leaves_repo,
        scheduler_factory=PausedScheduler,
    )
    yield container
    container.absence_scheduler.stop()
