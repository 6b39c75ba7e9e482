from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import Employee


class EmployeeRepository(Protocol):
    """Repository interface for the employee directory.

    Note (DIP): services depend on this interface, not on a concrete database.
    """

    def get_by_id(self, employee_id: int) -> Optional[Employee]:
        raise NotImplementedError

    def list_active_non_admin(self) -> Sequence[Employee]:
        raise NotImplementedError
