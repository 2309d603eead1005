from __future__ import annotations

import logging
import re
from dataclasses import dataclass, replace
from datetime import date, datetime
from typing import Callable, Optional, Tuple

from ..common.datetime_utils import now_local
from ..common.pagination import Page, PageRequest
from ..common.validators import require_email, require_non_empty, require_non_negative
from ..core.constants import DEPARTMENT_MANAGER_GRADE_LEVEL, SUPERVISOR_GRADE_LEVEL
from ..core.enums import ContractType, EmploymentStatus, RegistrationStatus, Role
from ..core.exceptions import ConflictError, NotFoundError, ValidationError
from ..departments.repository import DepartmentRepository
from ..grades.model import Grade
from ..grades.repository import GradeRepository
from ..grades.service import default_salary, validate_salary_in_range
from ..positions.model import Position
from ..positions.repository import PositionRepository
from .model import Employee, EmployeeFilters
from .numbering import employee_number_prefix, next_employee_number
from .repository import EmployeeRepository

logger = logging.getLogger(__name__)

_MANAGER_WORDS = re.compile(r"\b(manager|head|director|chief)\b")
_SUPERVISOR_WORDS = re.compile(r"\b(supervisor|team lead|senior)\b")


@dataclass(frozen=True)
class NewEmployee:
    first_name: str
    last_name: str
    email: str
    national_id: str
    department_id: int
    position_id: int
    grade_id: int
    employment_date: Optional[date] = None
    middle_name: Optional[str] = None
    date_of_birth: Optional[date] = None
    gender: Optional[str] = None
    phone: Optional[str] = None
    reports_to_id: Optional[int] = None
    contract_type: ContractType = ContractType.PERMANENT
    basic_salary: Optional[float] = None
    bank_name: Optional[str] = None
    bank_account_number: Optional[str] = None


@dataclass(frozen=True)
class RoleFlags:
    is_supervisor: bool
    is_department_manager: bool
    suggested_role: Role


def derive_role_flags(position: Position, grade: Grade) -> RoleFlags:
    """Supervisor/manager flags and the suggested system role for a new hire.

    Title keywords decide first; a high enough grade level can only add flags.
    """

    title = position.title.lower()
    is_supervisor = False
    is_manager = False
    role = Role.EMPLOYEE

    if _MANAGER_WORDS.search(title) or position.is_manager or position.is_head_of_department:
        is_supervisor = True
        is_manager = True
        words = set(re.findall(r"[a-z]+", title))
        if "department" in words or position.is_head_of_department:
            role = Role.DEPARTMENT_HEAD
        elif "hr" in words:
            role = Role.HR_MANAGER
        elif "finance" in words:
            role = Role.FINANCE_MANAGER
        else:
            role = Role.MANAGER
    elif _SUPERVISOR_WORDS.search(title) or position.is_supervisor:
        is_supervisor = True
        role = Role.SUPERVISOR

    if grade.level >= SUPERVISOR_GRADE_LEVEL:
        is_supervisor = True
    if grade.level >= DEPARTMENT_MANAGER_GRADE_LEVEL:
        is_manager = True

    return RoleFlags(is_supervisor=is_supervisor, is_department_manager=is_manager, suggested_role=role)


class EmployeeService:
    """Use case: employee records (phase 1 of onboarding lives here)."""

    def __init__(
        self,
        employees: EmployeeRepository,
        departments: DepartmentRepository,
        positions: PositionRepository,
        grades: GradeRepository,
        *,
        clock: Callable[[], datetime] = now_local,
    ):
        self._employees = employees
        self._departments = departments
        self._positions = positions
        self._grades = grades
        self._clock = clock

    def get_employee(self, employee_id: int) -> Employee:
        employee = self._employees.get_by_id(int(employee_id))
        if not employee:
            raise NotFoundError(f"Employee {employee_id} not found")
        return employee

    def list_employees(self, *, filters: EmployeeFilters, page: PageRequest) -> Page[Employee]:
        search = (filters.search or "").strip() or None
        rows, total = self._employees.search(
            filters=replace(filters, search=search),
            offset=page.offset,
            limit=page.limit,
        )
        return Page(data=list(rows), total=total, page=page.page, limit=page.limit)

    def _load_references(self, *, department_id: int, position_id: int, grade_id: int):
        department = self._departments.get_by_id(int(department_id))
        if not department:
            raise NotFoundError("Department not found")
        position = self._positions.get_by_id(int(position_id))
        if not position:
            raise NotFoundError("Position not found")
        grade = self._grades.get_by_id(int(grade_id))
        if not grade:
            raise NotFoundError("Grade not found")
        return department, position, grade

    def _ensure_unique(self, *, email: str, national_id: str, employee_id: int = 0) -> None:
        by_email = self._employees.get_by_email(email)
        if by_email and by_email.employee_id != employee_id:
            raise ConflictError(f"An employee with email {email} already exists")
        by_national_id = self._employees.get_by_national_id(national_id)
        if by_national_id and by_national_id.employee_id != employee_id:
            raise ConflictError(f"An employee with national ID {national_id} already exists")

    def _resolve_salary(self, grade: Grade, salary: Optional[float]) -> float:
        if salary is None:
            return default_salary(grade)
        return validate_salary_in_range(grade, require_non_negative(salary, "Basic salary"))

    def register_employee(self, data: NewEmployee) -> Employee:
        first_name = require_non_empty(data.first_name, "First name")
        last_name = require_non_empty(data.last_name, "Last name")
        email = require_email(data.email)
        national_id = require_non_empty(data.national_id, "National ID").upper()

        department, position, grade = self._load_references(
            department_id=data.department_id,
            position_id=data.position_id,
            grade_id=data.grade_id,
        )
        if not position.is_active:
            raise ValidationError("Position is not active")
        if position.is_full:
            raise ConflictError(f"Position {position.title} is full")
        if data.reports_to_id is not None and not self._employees.get_by_id(int(data.reports_to_id)):
            raise NotFoundError("Reports-to employee not found")
        self._ensure_unique(email=email, national_id=national_id)

        salary = self._resolve_salary(grade, data.basic_salary)
        flags = derive_role_flags(position, grade)

        today = self._clock().date()
        employment_date = data.employment_date or today
        number = next_employee_number(
            self._employees.list_employee_numbers(prefix=employee_number_prefix(department.code, today.year)),
            department_code=department.code,
            year=today.year,
        )

        # Take the seat first; the conditional update refuses when full.
        if not self._positions.increment_filled(position.position_id):
            raise ConflictError(f"Position {position.title} is full")

        employee = Employee(
            employee_id=0,
            employee_number=number,
            first_name=first_name,
            middle_name=(data.middle_name or "").strip() or None,
            last_name=last_name,
            date_of_birth=data.date_of_birth,
            gender=data.gender,
            national_id=national_id,
            email=email,
            phone=data.phone,
            department_id=department.department_id,
            position_id=position.position_id,
            grade_id=grade.grade_id,
            reports_to_id=data.reports_to_id,
            is_supervisor=flags.is_supervisor,
            is_department_manager=flags.is_department_manager,
            employment_date=employment_date,
            contract_type=data.contract_type,
            employment_status=EmploymentStatus.ACTIVE,
            basic_salary=salary,
            house_allowance=grade.compensation.house_allowance,
            car_allowance=grade.compensation.car_allowance,
            travel_allowance=grade.compensation.travel_allowance,
            bank_name=data.bank_name,
            bank_account_number=data.bank_account_number,
            has_system_access=False,
            system_role=flags.suggested_role,
            registration_status=RegistrationStatus.REGISTERED,
        )
        try:
            employee_id = self._employees.create(employee)
        except Exception:
            self._positions.decrement_filled(position.position_id)
            raise

        logger.info("Registered employee %s in position %s", number, position.code)
        return replace(employee, employee_id=employee_id)

    def update_employee(self, employee: Employee) -> Employee:
        existing = self.get_employee(employee.employee_id)
        email = require_email(employee.email)
        national_id = require_non_empty(employee.national_id, "National ID").upper()
        self._ensure_unique(email=email, national_id=national_id, employee_id=existing.employee_id)

        _, position, grade = self._load_references(
            department_id=employee.department_id,
            position_id=employee.position_id,
            grade_id=employee.grade_id,
        )
        validate_salary_in_range(grade, employee.basic_salary)
        if employee.reports_to_id is not None:
            if employee.reports_to_id == existing.employee_id:
                raise ValidationError("An employee cannot report to themselves")
            if not self._employees.get_by_id(employee.reports_to_id):
                raise NotFoundError("Reports-to employee not found")

        # Onboarding fields only move through the onboarding flow.
        employee = replace(
            employee,
            email=email,
            national_id=national_id,
            employee_number=existing.employee_number,
            has_system_access=existing.has_system_access,
            system_username=existing.system_username,
            system_role=existing.system_role,
            system_access_activated_at=existing.system_access_activated_at,
            system_access_activated_by=existing.system_access_activated_by,
            profile_verified=existing.profile_verified,
            profile_verified_at=existing.profile_verified_at,
            profile_verified_by=existing.profile_verified_by,
            registration_status=existing.registration_status,
        )

        self._save_with_seat(existing, employee, position)
        return employee

    def _save_with_seat(self, existing: Employee, employee: Employee, position: Position) -> None:
        """Persist the employee and keep position seat counts in step.

        Every non-terminated employee holds one seat in its position. A new
        seat is taken before the write and given back if the write fails; the
        old seat is released only after the write succeeds.
        """

        held_before = existing.employment_status != EmploymentStatus.TERMINATED
        held_after = employee.employment_status != EmploymentStatus.TERMINATED
        moved = employee.position_id != existing.position_id

        take_new = held_after and (moved or not held_before)
        release_old = held_before and (moved or not held_after)

        if take_new:
            if not position.is_active:
                raise ValidationError("Position is not active")
            if not self._positions.increment_filled(position.position_id):
                raise ConflictError(f"Position {position.title} is full")
        try:
            self._employees.update(employee)
        except Exception:
            if take_new:
                self._positions.decrement_filled(position.position_id)
            raise
        if release_old:
            self._positions.decrement_filled(existing.position_id)

        if held_before and not held_after:
            logger.info("Terminated employee %s", existing.employee_number)
        elif held_after and not held_before:
            logger.info("Reinstated employee %s in position %s", existing.employee_number, position.code)

    def terminate_employee(self, employee_id: int) -> Employee:
        """Soft delete: status TERMINATED and the position seat is released."""

        employee = self.get_employee(employee_id)
        if employee.employment_status == EmploymentStatus.TERMINATED:
            raise ConflictError("Employee is already terminated")

        terminated = replace(employee, employment_status=EmploymentStatus.TERMINATED)
        position = self._positions.get_by_id(employee.position_id)
        if position is None:
            self._employees.update(terminated)
            logger.info("Terminated employee %s", employee.employee_number)
            return terminated
        self._save_with_seat(employee, terminated, position)
        return terminated

    def references(self, employee: Employee) -> Tuple[Optional[str], Optional[str], Optional[str]]:
        """Department name, position title and grade code for display."""

        department = self._departments.get_by_id(employee.department_id)
        position = self._positions.get_by_id(employee.position_id)
        grade = self._grades.get_by_id(employee.grade_id)
        return (
            department.name if department else None,
            position.title if position else None,
            grade.code if grade else None,
        )
