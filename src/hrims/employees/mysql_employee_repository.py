from __future__ import annotations

from typing import Optional, Sequence, Tuple

from ..core.enums import ContractType, EmploymentStatus, RegistrationStatus, Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_float, build_where, db_cursor, fetchall, fetchone
from .model import Employee, EmployeeFilters
from .repository import EmployeeRepository

_FIELDS = (
    "employee_number",
    "first_name",
    "middle_name",
    "last_name",
    "date_of_birth",
    "gender",
    "national_id",
    "email",
    "phone",
    "department_id",
    "position_id",
    "grade_id",
    "reports_to_id",
    "is_supervisor",
    "is_department_manager",
    "employment_date",
    "contract_type",
    "employment_status",
    "basic_salary",
    "house_allowance",
    "car_allowance",
    "travel_allowance",
    "bank_name",
    "bank_account_number",
    "has_system_access",
    "system_username",
    "system_role",
    "system_access_activated_at",
    "system_access_activated_by",
    "profile_verified",
    "profile_verified_at",
    "profile_verified_by",
    "registration_status",
)
_COLUMNS = "employee_id, " + ", ".join(_FIELDS)


def _row_to_employee(row: dict) -> Employee:
    return Employee(
        employee_id=int(row["employee_id"]),
        employee_number=row["employee_number"],
        first_name=row["first_name"],
        middle_name=row.get("middle_name"),
        last_name=row["last_name"],
        date_of_birth=row.get("date_of_birth"),
        gender=row.get("gender"),
        national_id=row["national_id"],
        email=row["email"],
        phone=row.get("phone"),
        department_id=int(row["department_id"]),
        position_id=int(row["position_id"]),
        grade_id=int(row["grade_id"]),
        reports_to_id=row.get("reports_to_id"),
        is_supervisor=bool(row.get("is_supervisor")),
        is_department_manager=bool(row.get("is_department_manager")),
        employment_date=row["employment_date"],
        contract_type=ContractType(row["contract_type"]),
        employment_status=EmploymentStatus(row["employment_status"]),
        basic_salary=as_float(row.get("basic_salary")),
        house_allowance=as_float(row.get("house_allowance")),
        car_allowance=as_float(row.get("car_allowance")),
        travel_allowance=as_float(row.get("travel_allowance")),
        bank_name=row.get("bank_name"),
        bank_account_number=row.get("bank_account_number"),
        has_system_access=bool(row.get("has_system_access")),
        system_username=row.get("system_username"),
        system_role=Role(row["system_role"]) if row.get("system_role") else None,
        system_access_activated_at=row.get("system_access_activated_at"),
        system_access_activated_by=row.get("system_access_activated_by"),
        profile_verified=bool(row.get("profile_verified")),
        profile_verified_at=row.get("profile_verified_at"),
        profile_verified_by=row.get("profile_verified_by"),
        registration_status=RegistrationStatus(row["registration_status"]),
    )


def _employee_params(e: Employee) -> tuple:
    return (
        e.employee_number,
        e.first_name,
        e.middle_name,
        e.last_name,
        e.date_of_birth,
        e.gender,
        e.national_id,
        e.email,
        e.phone,
        e.department_id,
        e.position_id,
        e.grade_id,
        e.reports_to_id,
        int(e.is_supervisor),
        int(e.is_department_manager),
        e.employment_date,
        e.contract_type.value,
        e.employment_status.value,
        e.basic_salary,
        e.house_allowance,
        e.car_allowance,
        e.travel_allowance,
        e.bank_name,
        e.bank_account_number,
        int(e.has_system_access),
        e.system_username,
        e.system_role.value if e.system_role else None,
        e.system_access_activated_at,
        e.system_access_activated_by,
        int(e.profile_verified),
        e.profile_verified_at,
        e.profile_verified_by,
        e.registration_status.value,
    )


def _filter_clauses(filters: EmployeeFilters) -> list:
    clauses = []
    if filters.search:
        like = f"%{filters.search}%"
        clauses.append(
            (
                "(employee_number LIKE %s OR first_name LIKE %s OR last_name LIKE %s "
                "OR email LIKE %s OR national_id LIKE %s)",
                (like, like, like, like, like),
            )
        )
    if filters.department_id is not None:
        clauses.append(("department_id=%s", (filters.department_id,)))
    if filters.position_id is not None:
        clauses.append(("position_id=%s", (filters.position_id,)))
    if filters.grade_id is not None:
        clauses.append(("grade_id=%s", (filters.grade_id,)))
    if filters.employment_status is not None:
        clauses.append(("employment_status=%s", (filters.employment_status.value,)))
    if filters.registration_status is not None:
        clauses.append(("registration_status=%s", (filters.registration_status.value,)))
    return clauses


class MySQLEmployeeRepository(EmployeeRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _get_one(self, column: str, value) -> Optional[Employee]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM employees WHERE {column}=%s", (value,))
            row = fetchone(cur)
            return _row_to_employee(row) if row else None

    def get_by_id(self, employee_id: int) -> Optional[Employee]:
        return self._get_one("employee_id", employee_id)

    def get_by_email(self, email: str) -> Optional[Employee]:
        return self._get_one("email", email)

    def get_by_national_id(self, national_id: str) -> Optional[Employee]:
        return self._get_one("national_id", national_id)

    def get_by_system_username(self, username: str) -> Optional[Employee]:
        return self._get_one("system_username", username)

    def search(self, *, filters: EmployeeFilters, offset: int, limit: int) -> Tuple[Sequence[Employee], int]:
        where, params = build_where(_filter_clauses(filters))
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS c FROM employees {where}", tuple(params))
            total_row = fetchone(cur)
            total = int(total_row["c"]) if total_row else 0

            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM employees
                {where}
                ORDER BY created_at DESC, employee_id DESC
                LIMIT %s OFFSET %s
                """,
                tuple(params) + (int(limit), int(offset)),
            )
            return [_row_to_employee(r) for r in fetchall(cur)], total

    def count_active(self, *, department_id: Optional[int] = None) -> int:
        clauses = [("employment_status=%s", (EmploymentStatus.ACTIVE.value,))]
        if department_id is not None:
            clauses.append(("department_id=%s", (department_id,)))
        where, params = build_where(clauses)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS c FROM employees {where}", tuple(params))
            row = fetchone(cur)
            return int(row["c"]) if row else 0

    def list_employee_numbers(self, *, prefix: str) -> Sequence[str]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT employee_number FROM employees WHERE employee_number LIKE %s", (f"{prefix}%",))
            return [r["employee_number"] for r in fetchall(cur)]

    def create(self, employee: Employee) -> int:
        placeholders = ",".join(["%s"] * len(_FIELDS))
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"INSERT INTO employees({', '.join(_FIELDS)}) VALUES({placeholders})",
                _employee_params(employee),
            )
            return int(cur.lastrowid)

    def update(self, employee: Employee) -> bool:
        assignments = ", ".join(f"{name}=%s" for name in _FIELDS)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"UPDATE employees SET {assignments} WHERE employee_id=%s",
                _employee_params(employee) + (employee.employee_id,),
            )
            return cur.rowcount > 0
