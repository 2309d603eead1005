from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import Department


class DepartmentRepository(Protocol):
    def get_by_id(self, department_id: int) -> Optional[Department]:
        raise NotImplementedError

    def get_by_name(self, name: str) -> Optional[Department]:
        raise NotImplementedError

    def get_by_code(self, code: str) -> Optional[Department]:
        raise NotImplementedError

    def list_departments(self, *, search: Optional[str] = None, active_only: bool = False) -> Sequence[Department]:
        raise NotImplementedError

    def count_active_children(self, department_id: int) -> int:
        raise NotImplementedError

    def create(self, department: Department) -> int:
        raise NotImplementedError

    def update(self, department: Department) -> bool:
        raise NotImplementedError

    def set_active(self, department_id: int, *, is_active: bool) -> bool:
        raise NotImplementedError
