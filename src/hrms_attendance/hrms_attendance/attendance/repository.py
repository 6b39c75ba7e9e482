from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from ..core.enums import AttendanceStatus
from .model import AttendanceRecord, NewAttendance


class AttendanceRepository(Protocol):
    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def get_active_for_employee_and_date(self, employee_id: int, work_date: date) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def get_latest_open_for_employee(self, employee_id: int) -> Optional[AttendanceRecord]:
        """Most recent active record that is checked in but not checked out."""

        raise NotImplementedError

    def create(self, new: NewAttendance) -> AttendanceRecord:
        """Insert a record.

        Raises ConflictError if an active record already exists for
        (employee, date); the store enforces this with a unique index.
        """

        raise NotImplementedError

    def update(self, record: AttendanceRecord) -> AttendanceRecord:
        """Persist every mutable field of ``record`` (breaks included)."""

        raise NotImplementedError

    def deactivate(self, attendance_id: int) -> bool:
        raise NotImplementedError

    def delete(self, attendance_id: int) -> bool:
        raise NotImplementedError

    def list_for_employee(
        self,
        employee_id: int,
        *,
        start: Optional[date] = None,
        end: Optional[date] = None,
        status: Optional[AttendanceStatus] = None,
    ) -> Sequence[AttendanceRecord]:
        """Active records, newest first."""

        raise NotImplementedError

    def list_range(
        self,
        *,
        start: Optional[date] = None,
        end: Optional[date] = None,
        employee_id: Optional[int] = None,
        status: Optional[AttendanceStatus] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> tuple[Sequence[AttendanceRecord], int]:
        """A page of active records plus the total count."""

        raise NotImplementedError

    def list_for_date(self, work_date: date) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def list_auto_marked_absences(self, *, note_prefix: str, limit: int) -> Sequence[AttendanceRecord]:
        raise NotImplementedError
