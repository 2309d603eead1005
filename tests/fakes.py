"""In-memory repositories used by the service and HTTP tests."""

from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime
from typing import Dict, Optional

from werkzeug.security import generate_password_hash

from hrims.auth.model import UserAccount
from hrims.core.enums import (
    EmploymentStatus,
    GradeBand,
    LoanStatus,
    OvertimeStatus,
    RegistrationStatus,
    Role,
    TravelStatus,
    TravelType,
)
from hrims.departments.model import Department
from hrims.employees.model import Employee, EmployeeFilters
from hrims.grades.model import Grade, GradeCompensation, GradeLimits, SalaryRange
from hrims.loans.model import LoanType
from hrims.positions.model import Position
from hrims.travel.model import TravelRate


class _Store:
    id_field = ""

    def __init__(self, *items):
        self._next_id = 1
        self.rows: Dict[int, object] = {}
        for item in items:
            self.add(item)

    def add(self, item):
        item_id = getattr(item, self.id_field)
        if not item_id:
            item_id = self._next_id
            item = replace(item, **{self.id_field: item_id})
        self._next_id = max(self._next_id, item_id + 1)
        self.rows[item_id] = item
        return item

    def get_by_id(self, item_id):
        return self.rows.get(int(item_id)) if item_id is not None else None

    def create(self, item) -> int:
        return getattr(self.add(replace(item, **{self.id_field: 0})), self.id_field)

    def update(self, item) -> bool:
        item_id = getattr(item, self.id_field)
        if item_id not in self.rows:
            return False
        self.rows[item_id] = item
        return True


class FakeGradeRepo(_Store):
    id_field = "grade_id"

    def get_by_code(self, code: str) -> Optional[Grade]:
        return next((g for g in self.rows.values() if g.code == code), None)

    def list_grades(self, *, active_only=False, band=None):
        rows = sorted(self.rows.values(), key=lambda g: g.level)
        return [g for g in rows if (not active_only or g.is_active) and (band is None or g.band == band)]

    def set_active(self, grade_id, *, is_active):
        grade = self.rows.get(grade_id)
        if not grade:
            return False
        self.rows[grade_id] = replace(grade, is_active=is_active)
        return True


class FakeDepartmentRepo(_Store):
    id_field = "department_id"

    def get_by_name(self, name: str) -> Optional[Department]:
        return next((d for d in self.rows.values() if d.name.lower() == name.lower()), None)

    def get_by_code(self, code: str) -> Optional[Department]:
        return next((d for d in self.rows.values() if d.code == code), None)

    def list_departments(self, *, search=None, active_only=False):
        rows = sorted(self.rows.values(), key=lambda d: d.name)
        if search:
            rows = [d for d in rows if search.lower() in d.name.lower() or search.lower() in d.code.lower()]
        return [d for d in rows if not active_only or d.is_active]

    def count_active_children(self, department_id):
        return len([d for d in self.rows.values() if d.parent_id == department_id and d.is_active])

    def set_active(self, department_id, *, is_active):
        department = self.rows.get(department_id)
        if not department:
            return False
        self.rows[department_id] = replace(department, is_active=is_active)
        return True


class FakePositionRepo(_Store):
    id_field = "position_id"

    def get_by_code(self, code: str) -> Optional[Position]:
        return next((p for p in self.rows.values() if p.code == code), None)

    def list_positions(self, *, department_id=None, grade_id=None, search=None, active_only=False):
        rows = sorted(self.rows.values(), key=lambda p: p.title)
        if department_id is not None:
            rows = [p for p in rows if p.department_id == department_id]
        if grade_id is not None:
            rows = [p for p in rows if p.grade_id == grade_id]
        if search:
            rows = [p for p in rows if search.lower() in p.title.lower()]
        return [p for p in rows if not active_only or p.is_active]

    def update(self, item) -> bool:
        stored = self.rows.get(item.position_id)
        if not stored or stored.currently_filled > item.number_of_positions:
            return False
        self.rows[item.position_id] = replace(item, currently_filled=stored.currently_filled)
        return True

    def count_active_reports(self, position_id):
        return len([p for p in self.rows.values() if p.reports_to_id == position_id and p.is_active])

    def set_active(self, position_id, *, is_active):
        position = self.rows.get(position_id)
        if not position:
            return False
        self.rows[position_id] = replace(position, is_active=is_active)
        return True

    def increment_filled(self, position_id):
        position = self.rows.get(position_id)
        if not position or position.is_full:
            return False
        self.rows[position_id] = replace(position, currently_filled=position.currently_filled + 1)
        return True

    def decrement_filled(self, position_id):
        position = self.rows.get(position_id)
        if not position:
            return False
        self.rows[position_id] = replace(position, currently_filled=max(position.currently_filled - 1, 0))
        return True


class FakeEmployeeRepo(_Store):
    id_field = "employee_id"

    def get_by_email(self, email: str) -> Optional[Employee]:
        return next((e for e in self.rows.values() if e.email == email), None)

    def get_by_national_id(self, national_id: str) -> Optional[Employee]:
        return next((e for e in self.rows.values() if e.national_id == national_id), None)

    def get_by_system_username(self, username: str) -> Optional[Employee]:
        return next((e for e in self.rows.values() if e.system_username == username), None)

    def search(self, *, filters: EmployeeFilters, offset, limit):
        rows = sorted(self.rows.values(), key=lambda e: e.employee_id)
        if filters.search:
            needle = filters.search.lower()
            rows = [e for e in rows if needle in e.full_name.lower() or needle in e.email.lower()]
        for attr in ("department_id", "position_id", "grade_id", "employment_status", "registration_status"):
            wanted = getattr(filters, attr)
            if wanted is not None:
                rows = [e for e in rows if getattr(e, attr) == wanted]
        return rows[offset : offset + limit], len(rows)

    def count_active(self, *, department_id=None):
        return len(
            [
                e
                for e in self.rows.values()
                if e.employment_status == EmploymentStatus.ACTIVE
                and (department_id is None or e.department_id == department_id)
            ]
        )

    def list_employee_numbers(self, *, prefix):
        return [e.employee_number for e in self.rows.values() if e.employee_number.startswith(prefix)]


class FakeUserRepo(_Store):
    id_field = "user_id"

    def get_by_username(self, username: str) -> Optional[UserAccount]:
        return next((u for u in self.rows.values() if u.username == username), None)

    def get_by_email(self, email: str) -> Optional[UserAccount]:
        return next((u for u in self.rows.values() if u.email == email), None)

    def get_by_employee_id(self, employee_id: int) -> Optional[UserAccount]:
        return next((u for u in self.rows.values() if u.employee_id == employee_id), None)

    def delete(self, user_id: int) -> bool:
        return self.rows.pop(user_id, None) is not None


class FakeLoanTypeRepo(_Store):
    id_field = "loan_type_id"

    def get_by_code(self, code: str) -> Optional[LoanType]:
        return next((t for t in self.rows.values() if t.code == code), None)

    def list_types(self, *, active_only=False):
        return [t for t in sorted(self.rows.values(), key=lambda t: t.name) if not active_only or t.is_active]


class FakeLoanApplicationRepo(_Store):
    id_field = "application_id"

    def list_applications(self, *, employee_id=None, status: Optional[LoanStatus] = None):
        rows = sorted(self.rows.values(), key=lambda a: a.application_id)
        return [
            a
            for a in rows
            if (employee_id is None or a.employee_id == employee_id) and (status is None or a.status == status)
        ]

    def count_for_employee(self, *, employee_id, statuses):
        statuses = set(statuses)
        return len([a for a in self.rows.values() if a.employee_id == employee_id and a.status in statuses])

    def list_application_numbers(self, *, prefix):
        return [a.application_number for a in self.rows.values() if a.application_number.startswith(prefix)]


class FakeOvertimeRepo(_Store):
    id_field = "claim_id"

    def list_claims(self, *, employee_id=None, status: Optional[OvertimeStatus] = None):
        rows = sorted(self.rows.values(), key=lambda c: c.claim_id)
        return [
            c
            for c in rows
            if (employee_id is None or c.employee_id == employee_id) and (status is None or c.status == status)
        ]

    def hours_on(self, *, employee_id, work_date):
        ignored = (OvertimeStatus.REJECTED, OvertimeStatus.CANCELLED)
        return sum(
            c.hours
            for c in self.rows.values()
            if c.employee_id == employee_id and c.work_date == work_date and c.status not in ignored
        )

    def list_claim_numbers(self, *, prefix):
        return [c.claim_number for c in self.rows.values() if c.claim_number.startswith(prefix)]



class FakeOvertimeRateRepo:
    def __init__(self):
        self.rates = {}

    def list_rates(self):
        return dict(self.rates)

    def save_rate(self, overtime_type, rule, *, updated_by=None):
        self.rates[overtime_type] = rule

    def delete_rate(self, overtime_type):
        return self.rates.pop(overtime_type, None) is not None


class FakeTravelRateRepo(_Store):
    id_field = "rate_id"

    def get_active(self, *, grade_code, travel_type):
        active = [r for r in self.list_rates() if r.grade_code == grade_code and r.travel_type == travel_type]
        return active[-1] if active else None

    def list_rates(self, *, travel_type=None, active_only=True):
        rows = sorted(self.rows.values(), key=lambda r: r.rate_id)
        return [
            r
            for r in rows
            if (travel_type is None or r.travel_type == travel_type) and (not active_only or r.is_active)
        ]

    def deactivate(self, *, grade_code, travel_type):
        retired = 0
        for rate in list(self.rows.values()):
            if rate.grade_code == grade_code and rate.travel_type == travel_type and rate.is_active:
                self.rows[rate.rate_id] = replace(rate, is_active=False)
                retired += 1
        return retired


class FakeTravelRequestRepo(_Store):
    id_field = "request_id"

    def list_requests(
        self,
        *,
        employee_id=None,
        status: Optional[TravelStatus] = None,
        departure_from=None,
        return_to=None,
    ):
        rows = sorted(self.rows.values(), key=lambda t: t.request_id)
        return [
            t
            for t in rows
            if (employee_id is None or t.employee_id == employee_id)
            and (status is None or t.status == status)
            and (departure_from is None or t.departure_date >= departure_from)
            and (return_to is None or t.return_date <= return_to)
        ]

    def list_references(self, *, prefix):
        return [t.travel_reference for t in self.rows.values() if t.travel_reference.startswith(prefix)]

NOW = datetime(2026, 3, 10, 9, 0, 0)
PASSWORD = "Secret#123"


def make_grade(grade_id=1, code="M5", level=3, band=GradeBand.OPERATIONAL, salary=(300000, 400000, 500000), **kw):
    return Grade(
        grade_id=grade_id,
        name=f"Grade {code}",
        code=code,
        level=level,
        band=band,
        compensation=GradeCompensation(
            basic_salary=SalaryRange(*salary),
            house_allowance=kw.pop("house_allowance", 50000.0),
            car_allowance=kw.pop("car_allowance", 0.0),
            travel_allowance=kw.pop("travel_allowance", 20000.0),
        ),
        limits=GradeLimits(max_loan_amount=kw.pop("max_loan_amount", 1000000.0)),
        **kw,
    )


def make_employee(employee_id=1, **kw):
    data = dict(
        employee_id=employee_id,
        employee_number=f"EMP/FIN/2026/{employee_id:03d}",
        first_name="Chikondi",
        last_name="Banda",
        email=f"employee{employee_id}@hrims.test",
        national_id=f"NID{employee_id:05d}",
        department_id=2,
        position_id=1,
        grade_id=1,
        employment_date=date(2025, 1, 6),
        basic_salary=400000.0,
        house_allowance=50000.0,
        travel_allowance=20000.0,
        registration_status=RegistrationStatus.REGISTERED,
    )
    data.update(kw)
    return Employee(**data)


def make_user(user_id=1, username="hradmin", role=Role.HR_ADMIN, employee_id=None, **kw):
    return UserAccount(
        user_id=user_id,
        username=username,
        email=kw.pop("email", f"{username}@hrims.test"),
        password_hash=kw.pop("password_hash", None) or generate_password_hash(PASSWORD),
        role=role,
        employee_id=employee_id,
        **kw,
    )


def make_travel_rate(rate_id=1, grade_code="M5", travel_type=TravelType.LOCAL, **kw):
    data = dict(
        rate_id=rate_id,
        grade_code=grade_code,
        travel_type=travel_type,
        per_diem_rate=12000.0,
        accommodation_rate=35000.0,
        transport_rate=20000.0,
        communication_rate=7000.0,
        incidentals_rate=5000.0,
    )
    data.update(kw)
    return TravelRate(**data)
