from __future__ import annotations

from dataclasses import dataclass

from ..core.enums import Role


@dataclass(frozen=True)
class Employee:
    """Domain entity: Employee (read-only view of the external directory).

    Note: Plain data object, no DB access code here.
    """

    employee_id: int
    full_name: str
    role: Role
    is_active: bool = True

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN
