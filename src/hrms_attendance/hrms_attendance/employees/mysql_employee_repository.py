from __future__ import annotations

from typing import Optional, Sequence

from ..core.enums import Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import Employee
from .repository import EmployeeRepository


def _row_to_employee(r: dict) -> Employee:
    return Employee(
        employee_id=int(r["employee_id"]),
        full_name=r["full_name"],
        role=Role(r["role"]),
        is_active=bool(r["is_active"]),
    )


class MySQLEmployeeRepository(EmployeeRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, employee_id: int) -> Optional[Employee]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT employee_id, full_name, role, is_active FROM employees WHERE employee_id=%s",
                (int(employee_id),),
            )
            r = fetchone(cur)
            return _row_to_employee(r) if r else None

    def list_active_non_admin(self) -> Sequence[Employee]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT employee_id, full_name, role, is_active
                FROM employees
                WHERE is_active=1 AND role<>%s
                ORDER BY employee_id ASC
                """,
                (Role.ADMIN.value,),
            )
            return [_row_to_employee(r) for r in fetchall(cur)]
