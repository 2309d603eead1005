from __future__ import annotations

from typing import Optional, Protocol, Sequence, Tuple

from .model import Employee, EmployeeFilters


class EmployeeRepository(Protocol):
    """Repository interface for Employee.

    Services depend on this interface, not on a concrete database.
    """

    def get_by_id(self, employee_id: int) -> Optional[Employee]:
        raise NotImplementedError

    def get_by_email(self, email: str) -> Optional[Employee]:
        raise NotImplementedError

    def get_by_national_id(self, national_id: str) -> Optional[Employee]:
        raise NotImplementedError

    def get_by_system_username(self, username: str) -> Optional[Employee]:
        raise NotImplementedError

    def search(self, *, filters: EmployeeFilters, offset: int, limit: int) -> Tuple[Sequence[Employee], int]:
        """Return one page of matches and the total match count."""
        raise NotImplementedError

    def count_active(self, *, department_id: Optional[int] = None) -> int:
        raise NotImplementedError

    def list_employee_numbers(self, *, prefix: str) -> Sequence[str]:
        raise NotImplementedError

    def create(self, employee: Employee) -> int:
        raise NotImplementedError

    def update(self, employee: Employee) -> bool:
        raise NotImplementedError
