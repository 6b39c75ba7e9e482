from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import date
from typing import Optional, Sequence

from ..common.datetime_utils import Clock
from ..common.locks import EmployeeLocks
from ..common.validators import require_manager
from ..core.constants import DEFAULT_PAGE_SIZE, LEAVE_QUOTA_DAYS
from ..core.enums import MANAGER_ROLES, LeaveStatus, LeaveType, Role
from ..core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from ..employees.repository import EmployeeRepository
from .model import LeaveBalance, LeaveRequest, NewLeave
from .reconciliation import LeaveReconciler
from .repository import LeaveRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ApprovalResult:
    leave: LeaveRequest
    auto_declined: tuple[int, ...] = ()

    def to_dict(self) -> dict:
        return {"leave": self.leave.to_dict(), "autoDeclined": list(self.auto_declined)}


@dataclass(frozen=True)
class LeavePage:
    leaves: Sequence[LeaveRequest]
    total: int
    page: int
    limit: int

    def to_dict(self) -> dict:
        return {
            "leaves": [leave.to_dict() for leave in self.leaves],
            "pagination": {
                "total": self.total,
                "page": self.page,
                "limit": self.limit,
                "pages": (self.total + self.limit - 1) // self.limit,
            },
        }


def _parse_leave_type(value) -> LeaveType:
    try:
        return LeaveType(value)
    except ValueError:
        raise ValidationError(f"Invalid leave type: {value!r}")


class LeaveService:
    """Use case: the leave approval workflow.

    Approval checks the annual quota and stamps attendance; decline and
    cancellation undo that stamping. Every state change for an employee
    runs under that employee's lock so the attendance cascade cannot
    interleave with punches or the absence job.
    """

    def __init__(
        self,
        leaves: LeaveRepository,
        employees: EmployeeRepository,
        reconciler: LeaveReconciler,
        *,
        clock: Clock,
        locks: EmployeeLocks,
        quota_days: float = LEAVE_QUOTA_DAYS,
    ):
        self._leaves = leaves
        self._employees = employees
        self._reconciler = reconciler
        self._clock = clock
        self._locks = locks
        self._quota = float(quota_days)

    @staticmethod
    def _require_owner_or_manager(current_role: Role, actor_id: int, employee_id: int) -> None:
        if current_role not in MANAGER_ROLES and int(actor_id) != int(employee_id):
            raise AuthorizationError("You can only access your own leave requests")

    def _require_leave(self, leave_id: int) -> LeaveRequest:
        leave = self._leaves.get_by_id(leave_id)
        if not leave:
            raise NotFoundError("Leave request not found")
        return leave

    @staticmethod
    def _require_transition(leave: LeaveRequest, target: LeaveStatus) -> None:
        if not leave.can_transition_to(target):
            raise ConflictError(f"Cannot change a {leave.status.value} leave request to {target.value}")

    def create(
        self,
        *,
        current_role: Role,
        actor_id: int,
        employee_id: int,
        leave_type,
        from_date: date,
        to_date: date,
        reason: str = "",
        no_of_days: Optional[float] = None,
    ) -> LeaveRequest:
        self._require_owner_or_manager(current_role, actor_id, employee_id)
        if not self._employees.get_by_id(employee_id):
            raise NotFoundError("Employee not found")

        kind = _parse_leave_type(leave_type)
        if from_date > to_date:
            raise ValidationError("Leave start date must not be after the end date")

        if no_of_days is None:
            days = float(len(self._clock.calendar.working_days(from_date, to_date)))
            if days <= 0:
                raise ValidationError("The selected range contains no working days")
        else:
            try:
                days = float(no_of_days)
            except (TypeError, ValueError):
                raise ValidationError("noOfDays must be a number")
            if days <= 0:
                raise ValidationError("noOfDays must be greater than zero")

        leave = self._leaves.create(
            NewLeave(
                employee_id=int(employee_id),
                leave_type=kind,
                from_date=from_date,
                to_date=to_date,
                no_of_days=days,
                reason=(reason or "").strip(),
                created_by=int(actor_id),
            )
        )
        logger.info("Leave %s created for employee %s (%s days)", leave.leave_id, employee_id, days)
        return leave

    def approve(self, leave_id: int, *, current_role: Role, actor_id: int) -> ApprovalResult:
        require_manager(current_role)
        leave = self._require_leave(leave_id)

        with self._locks.hold(leave.employee_id):
            leave = self._require_leave(leave_id)
            self._require_transition(leave, LeaveStatus.APPROVED)

            already = self._leaves.sum_approved_days(leave.employee_id, year=leave.from_date.year)
            total = already + leave.no_of_days
            if total > self._quota:
                raise ValidationError(
                    f"Leave quota exceeded: {already:g} of {self._quota:g} days already approved, "
                    f"{leave.no_of_days:g} requested"
                )

            now = self._clock.now()
            approved = self._leaves.save(
                replace(
                    leave,
                    status=LeaveStatus.APPROVED,
                    approved_by=int(actor_id),
                    approved_at=now,
                    updated_by=int(actor_id),
                )
            )
            self._reconciler.apply_leave_to_attendance(approved)
            logger.info("Leave %s approved by %s", leave_id, actor_id)

            declined: list[int] = []
            if total == self._quota:
                for other in self._leaves.list_for_employee(leave.employee_id, year=leave.from_date.year):
                    if other.leave_id == approved.leave_id or other.status != LeaveStatus.NEW:
                        continue
                    self._leaves.save(
                        replace(
                            other,
                            status=LeaveStatus.DECLINED,
                            approved_by=int(actor_id),
                            approved_at=now,
                            updated_by=int(actor_id),
                        )
                    )
                    declined.append(other.leave_id)
                if declined:
                    logger.info("Quota reached for employee %s, auto-declined leaves %s", leave.employee_id, declined)

            return ApprovalResult(leave=approved, auto_declined=tuple(declined))

    def decline(self, leave_id: int, *, current_role: Role, actor_id: int) -> LeaveRequest:
        require_manager(current_role)
        leave = self._require_leave(leave_id)

        with self._locks.hold(leave.employee_id):
            leave = self._require_leave(leave_id)
            self._require_transition(leave, LeaveStatus.DECLINED)

            declined = self._leaves.save(
                replace(
                    leave,
                    status=LeaveStatus.DECLINED,
                    approved_by=int(actor_id),
                    approved_at=self._clock.now(),
                    updated_by=int(actor_id),
                )
            )
            self._reconciler.revert_leave_from_attendance(declined)
            logger.info("Leave %s declined by %s", leave_id, actor_id)
            return declined

    def cancel(self, leave_id: int, *, current_role: Role, actor_id: int) -> LeaveRequest:
        leave = self._require_leave(leave_id)
        self._require_owner_or_manager(current_role, actor_id, leave.employee_id)

        with self._locks.hold(leave.employee_id):
            leave = self._require_leave(leave_id)
            self._require_transition(leave, LeaveStatus.CANCELLED)

            cancelled = self._leaves.save(
                replace(
                    leave,
                    status=LeaveStatus.CANCELLED,
                    cancelled_by=int(actor_id),
                    cancelled_at=self._clock.now(),
                    updated_by=int(actor_id),
                )
            )
            self._reconciler.revert_leave_from_attendance(cancelled)
            logger.info("Leave %s cancelled by %s", leave_id, actor_id)
            return cancelled

    def delete(self, leave_id: int, *, current_role: Role, actor_id: int) -> None:
        require_manager(current_role)
        leave = self._require_leave(leave_id)

        with self._locks.hold(leave.employee_id):
            leave = self._require_leave(leave_id)
            if leave.status == LeaveStatus.APPROVED:
                self._reconciler.revert_leave_from_attendance(leave)

            self._leaves.save(
                replace(
                    leave,
                    is_deleted=True,
                    deleted_at=self._clock.now(),
                    deleted_by=int(actor_id),
                    updated_by=int(actor_id),
                )
            )
            logger.info("Leave %s deleted by %s", leave_id, actor_id)

    def get(self, leave_id: int, *, current_role: Role, actor_id: int) -> LeaveRequest:
        leave = self._require_leave(leave_id)
        self._require_owner_or_manager(current_role, actor_id, leave.employee_id)
        return leave

    def list_for_employee(self, employee_id: int, *, current_role: Role, actor_id: int) -> Sequence[LeaveRequest]:
        self._require_owner_or_manager(current_role, actor_id, employee_id)
        return self._leaves.list_for_employee(employee_id)

    def list_leaves(
        self,
        *,
        current_role: Role,
        status: Optional[str] = None,
        employee_id: Optional[int] = None,
        leave_type: Optional[str] = None,
        page: int = 1,
        limit: int = DEFAULT_PAGE_SIZE,
    ) -> LeavePage:
        require_manager(current_role)

        status_filter = None
        if status:
            try:
                status_filter = LeaveStatus(status)
            except ValueError:
                raise ValidationError(f"Invalid leave status: {status!r}")
        type_filter = _parse_leave_type(leave_type) if leave_type else None

        page = max(1, int(page))
        limit = max(1, int(limit))
        leaves, total = self._leaves.list_requests(
            status=status_filter,
            employee_id=employee_id,
            leave_type=type_filter,
            limit=limit,
            offset=(page - 1) * limit,
        )
        return LeavePage(leaves=leaves, total=total, page=page, limit=limit)

    def balance(
        self,
        employee_id: int,
        *,
        current_role: Role,
        actor_id: int,
        year: Optional[int] = None,
    ) -> LeaveBalance:
        self._require_owner_or_manager(current_role, actor_id, employee_id)
        if not self._employees.get_by_id(employee_id):
            raise NotFoundError("Employee not found")

        year = int(year or self._clock.today().year)
        by_type: dict[str, float] = {}
        for leave in self._leaves.list_for_employee(employee_id, year=year):
            if leave.status in (LeaveStatus.DECLINED, LeaveStatus.CANCELLED):
                continue
            by_type[leave.leave_type.value] = by_type.get(leave.leave_type.value, 0.0) + leave.no_of_days

        return LeaveBalance(
            employee_id=int(employee_id),
            year=year,
            quota=self._quota,
            approved_days=self._leaves.sum_approved_days(employee_id, year=year),
            by_type=by_type,
        )
