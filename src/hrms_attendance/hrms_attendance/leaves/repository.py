from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from ..core.enums import LeaveStatus, LeaveType
from .model import LeaveRequest, NewLeave


class LeaveRepository(Protocol):
    """Leave requests; soft-deleted rows are invisible to every query."""

    def get_by_id(self, leave_id: int) -> Optional[LeaveRequest]:
        raise NotImplementedError

    def create(self, new: NewLeave) -> LeaveRequest:
        raise NotImplementedError

    def save(self, leave: LeaveRequest) -> LeaveRequest:
        """Persist status, audit and soft-delete fields."""

        raise NotImplementedError

    def list_requests(
        self,
        *,
        status: Optional[LeaveStatus] = None,
        employee_id: Optional[int] = None,
        leave_type: Optional[LeaveType] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> tuple[Sequence[LeaveRequest], int]:
        raise NotImplementedError

    def list_for_employee(self, employee_id: int, *, year: Optional[int] = None) -> Sequence[LeaveRequest]:
        """Newest first; ``year`` filters on the year of the start date."""

        raise NotImplementedError

    def sum_approved_days(self, employee_id: int, *, year: int) -> float:
        raise NotImplementedError

    def find_approved_covering(self, employee_id: int, day: date) -> Optional[LeaveRequest]:
        raise NotImplementedError
