from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import List, Optional

from ..common.pagination import Page, PageRequest, paginate
from ..common.validators import require_non_empty
from ..core.exceptions import ConflictError, NotFoundError, ValidationError
from ..employees.repository import EmployeeRepository
from .model import Department
from .repository import DepartmentRepository

logger = logging.getLogger(__name__)


@dataclass
class DepartmentNode:
    department: Department
    children: List["DepartmentNode"] = field(default_factory=list)


class DepartmentService:
    """Use case: maintain the department tree."""

    def __init__(self, departments: DepartmentRepository, employees: EmployeeRepository):
        self._departments = departments
        self._employees = employees

    def get_department(self, department_id: int) -> Department:
        department = self._departments.get_by_id(int(department_id))
        if not department:
            raise NotFoundError(f"Department {department_id} not found")
        return department

    def list_departments(
        self,
        *,
        page: PageRequest,
        search: Optional[str] = None,
        active_only: bool = False,
    ) -> Page[Department]:
        rows = self._departments.list_departments(search=(search or "").strip() or None, active_only=active_only)
        return paginate(rows, page)

    def _ensure_no_cycle(self, department_id: int, parent_id: Optional[int]) -> None:
        seen = set()
        current = parent_id
        while current is not None and current not in seen:
            if current == department_id:
                raise ValidationError("Department cannot be its own ancestor")
            seen.add(current)
            parent = self._departments.get_by_id(current)
            current = parent.parent_id if parent else None

    def _validate(self, department: Department) -> Department:
        name = require_non_empty(department.name, "Department name")
        code = require_non_empty(department.code, "Department code").upper()

        by_name = self._departments.get_by_name(name)
        if by_name and by_name.department_id != department.department_id:
            raise ConflictError(f"Department name '{name}' already exists")
        by_code = self._departments.get_by_code(code)
        if by_code and by_code.department_id != department.department_id:
            raise ConflictError(f"Department code '{code}' already exists")

        if department.parent_id is not None:
            if not self._departments.get_by_id(department.parent_id):
                raise NotFoundError("Parent department not found")
            if department.department_id:
                self._ensure_no_cycle(department.department_id, department.parent_id)

        description = (department.description or "").strip() or None
        return replace(department, name=name, code=code, description=description)

    def create_department(self, department: Department) -> Department:
        department = self._validate(replace(department, department_id=0))
        department_id = self._departments.create(department)
        logger.info("Created department %s (id=%s)", department.code, department_id)
        return replace(department, department_id=department_id)

    def update_department(self, department: Department) -> Department:
        self.get_department(department.department_id)
        department = self._validate(department)
        self._departments.update(department)
        return department

    def delete_department(self, department_id: int) -> None:
        """Soft delete: the department is deactivated, never removed."""

        department = self.get_department(department_id)
        if self._departments.count_active_children(department.department_id) > 0:
            raise ConflictError("Cannot delete a department that has active sub-departments")
        if self._employees.count_active(department_id=department.department_id) > 0:
            raise ConflictError("Cannot delete a department that has active employees")

        self._departments.set_active(department.department_id, is_active=False)
        logger.info("Deactivated department %s", department.code)

    def restore_department(self, department_id: int) -> Department:
        department = self.get_department(department_id)
        if department.is_active:
            raise ConflictError("Department is already active")
        if department.parent_id is not None:
            parent = self._departments.get_by_id(department.parent_id)
            if parent and not parent.is_active:
                raise ConflictError("Restore the parent department first")

        self._departments.set_active(department.department_id, is_active=True)
        return replace(department, is_active=True)

    def hierarchy(self) -> List[DepartmentNode]:
        departments = self._departments.list_departments(active_only=True)
        nodes = {d.department_id: DepartmentNode(d) for d in departments}
        roots: List[DepartmentNode] = []
        for d in departments:
            node = nodes[d.department_id]
            parent = nodes.get(d.parent_id) if d.parent_id is not None else None
            if parent:
                parent.children.append(node)
            else:
                roots.append(node)
        return roots

    def path(self, department_id: int) -> List[Department]:
        """Departments from the root down to ``department_id``."""

        chain: List[Department] = []
        seen = set()
        current: Optional[Department] = self.get_department(department_id)
        while current is not None and current.department_id not in seen:
            chain.append(current)
            seen.add(current.department_id)
            current = self._departments.get_by_id(current.parent_id) if current.parent_id is not None else None
        chain.reverse()
        return chain
