from __future__ import annotations

from datetime import date
from typing import Optional, Sequence
from zoneinfo import ZoneInfo

from ..common.datetime_utils import from_storage, to_storage
from ..core.enums import LeaveStatus, LeaveType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import LeaveRequest, NewLeave
from .repository import LeaveRepository

_COLUMNS = """
    leave_id, employee_id, leave_type, from_date, to_date, no_of_days, status, reason,
    approved_by, approved_at, cancelled_by, cancelled_at, created_by, updated_by,
    is_deleted, deleted_at, deleted_by, created_at
"""


class MySQLLeaveRepository(LeaveRepository):
    def __init__(self, conn_factory: DatabaseConnection, *, tz: ZoneInfo):
        self._conn_factory = conn_factory
        self._tz = tz

    def _to_leave(self, r: dict) -> LeaveRequest:
        return LeaveRequest(
            leave_id=int(r["leave_id"]),
            employee_id=int(r["employee_id"]),
            leave_type=LeaveType(r["leave_type"]),
            from_date=r["from_date"],
            to_date=r["to_date"],
            no_of_days=float(r["no_of_days"]),
            status=LeaveStatus(r["status"]),
            reason=r.get("reason") or "",
            approved_by=r.get("approved_by"),
            approved_at=from_storage(r.get("approved_at"), self._tz),
            cancelled_by=r.get("cancelled_by"),
            cancelled_at=from_storage(r.get("cancelled_at"), self._tz),
            created_by=r.get("created_by"),
            updated_by=r.get("updated_by"),
            is_deleted=bool(r["is_deleted"]),
            deleted_at=from_storage(r.get("deleted_at"), self._tz),
            deleted_by=r.get("deleted_by"),
            created_at=from_storage(r.get("created_at"), self._tz),
        )

    def _get(self, cur, leave_id: int) -> Optional[LeaveRequest]:
        cur.execute(f"SELECT {_COLUMNS} FROM leave_requests WHERE leave_id=%s AND is_deleted=0", (int(leave_id),))
        r = fetchone(cur)
        return self._to_leave(r) if r else None

    def get_by_id(self, leave_id: int) -> Optional[LeaveRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            return self._get(cur, leave_id)

    def create(self, new: NewLeave) -> LeaveRequest:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO leave_requests(
                    employee_id, leave_type, from_date, to_date, no_of_days, status, reason, created_by
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(new.employee_id),
                    new.leave_type.value,
                    new.from_date,
                    new.to_date,
                    float(new.no_of_days),
                    LeaveStatus.NEW.value,
                    new.reason,
                    new.created_by,
                ),
            )
            return self._get(cur, int(cur.lastrowid))

    def save(self, leave: LeaveRequest) -> LeaveRequest:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE leave_requests
                SET status=%s, approved_by=%s, approved_at=%s, cancelled_by=%s, cancelled_at=%s,
                    updated_by=%s, is_deleted=%s, deleted_at=%s, deleted_by=%s
                WHERE leave_id=%s
                """,
                (
                    leave.status.value,
                    leave.approved_by,
                    to_storage(leave.approved_at),
                    leave.cancelled_by,
                    to_storage(leave.cancelled_at),
                    leave.updated_by,
                    1 if leave.is_deleted else 0,
                    to_storage(leave.deleted_at),
                    leave.deleted_by,
                    int(leave.leave_id),
                ),
            )
        return leave

    def list_requests(
        self,
        *,
        status: Optional[LeaveStatus] = None,
        employee_id: Optional[int] = None,
        leave_type: Optional[LeaveType] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> tuple[Sequence[LeaveRequest], int]:
        clauses = ["is_deleted=0"]
        params: list[object] = []

        if status is not None:
            clauses.append("status=%s")
            params.append(status.value)
        if employee_id is not None:
            clauses.append("employee_id=%s")
            params.append(int(employee_id))
        if leave_type is not None:
            clauses.append("leave_type=%s")
            params.append(leave_type.value)

        where = " AND ".join(clauses)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS total FROM leave_requests WHERE {where}", tuple(params))
            total = int(fetchone(cur)["total"])
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM leave_requests
                WHERE {where}
                ORDER BY created_at DESC, leave_id DESC
                LIMIT %s OFFSET %s
                """,
                tuple(params + [int(limit), int(offset)]),
            )
            return [self._to_leave(r) for r in fetchall(cur)], total

    def list_for_employee(self, employee_id: int, *, year: Optional[int] = None) -> Sequence[LeaveRequest]:
        where = "employee_id=%s AND is_deleted=0"
        params: list[object] = [int(employee_id)]
        if year is not None:
            where += " AND YEAR(from_date)=%s"
            params.append(int(year))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM leave_requests WHERE {where} ORDER BY from_date DESC, leave_id DESC",
                tuple(params),
            )
            return [self._to_leave(r) for r in fetchall(cur)]

    def sum_approved_days(self, employee_id: int, *, year: int) -> float:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT COALESCE(SUM(no_of_days), 0) AS total
                FROM leave_requests
                WHERE employee_id=%s AND status=%s AND is_deleted=0 AND YEAR(from_date)=%s
                """,
                (int(employee_id), LeaveStatus.APPROVED.value, int(year)),
            )
            return float(fetchone(cur)["total"])

    def find_approved_covering(self, employee_id: int, day: date) -> Optional[LeaveRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM leave_requests
                WHERE employee_id=%s AND status=%s AND is_deleted=0
                  AND from_date<=%s AND to_date>=%s
                LIMIT 1
                """,
                (int(employee_id), LeaveStatus.APPROVED.value, day, day),
            )
            r = fetchone(cur)
            return self._to_leave(r) if r else None
