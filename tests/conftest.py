from __future__ import annotations

import pytest

from fakes import (
    NOW,
    FakeDepartmentRepo,
    FakeEmployeeRepo,
    FakeGradeRepo,
    FakeLoanApplicationRepo,
    FakeLoanTypeRepo,
    FakeOvertimeRateRepo,
    FakeOvertimeRepo,
    FakePositionRepo,
    FakeTravelRateRepo,
    FakeTravelRequestRepo,
    FakeUserRepo,
    make_grade,
    make_travel_rate,
    make_user,
)
from hrims.auth.tokens import TokenService
from hrims.container import wire_container
from hrims.core.enums import GradeBand, Role, TravelType
from hrims.departments.model import Department
from hrims.loans.model import LoanType
from hrims.positions.model import Position


@pytest.fixture
def clock():
    return lambda: NOW


@pytest.fixture
def grades_repo():
    return FakeGradeRepo(
        make_grade(),
        make_grade(2, "M11", 9, GradeBand.MANAGERIAL, (800000, 1000000, 1200000), max_loan_amount=5000000.0),
    )


@pytest.fixture
def departments_repo():
    return FakeDepartmentRepo(
        Department(department_id=1, name="Executive", code="EXE"),
        Department(department_id=2, name="Finance", code="FIN", parent_id=1),
    )


@pytest.fixture
def positions_repo():
    return FakePositionRepo(
        Position(position_id=1, title="Accountant", code="FIN-ACC", department_id=2, grade_id=1, number_of_positions=2),
        Position(position_id=2, title="Finance Manager", code="FIN-MGR", department_id=2, grade_id=2),
    )


@pytest.fixture
def employees_repo():
    return FakeEmployeeRepo()


@pytest.fixture
def users_repo():
    return FakeUserRepo()


@pytest.fixture
def loan_types_repo():
    return FakeLoanTypeRepo(
        LoanType(
            loan_type_id=1,
            code="PERSONAL",
            name="Personal Loan",
            min_amount=10000.0,
            max_amount=2000000.0,
            min_repayment_period=1,
            max_repayment_period=36,
            interest_rate=12.0,
        ),
        LoanType(
            loan_type_id=2,
            code="VEHICLE",
            name="Vehicle Loan",
            min_amount=100000.0,
            max_amount=10000000.0,
            min_repayment_period=12,
            max_repayment_period=60,
            interest_rate=10.0,
            eligible_grades=("M11",),
        ),
    )


@pytest.fixture
def loan_applications_repo():
    return FakeLoanApplicationRepo()


@pytest.fixture
def overtime_repo():
    return FakeOvertimeRepo()


@pytest.fixture
def overtime_rates_repo():
    return FakeOvertimeRateRepo()


@pytest.fixture
def travel_rates_repo():
    return FakeTravelRateRepo(
        make_travel_rate(),
        make_travel_rate(2, "M11", per_diem_rate=35000.0, accommodation_rate=80000.0),
        make_travel_rate(
            3,
            "M5",
            TravelType.INTERNATIONAL,
            currency="USD",
            per_diem_rate=70.0,
            accommodation_rate=200.0,
            transport_rate=700.0,
            communication_rate=40.0,
            incidentals_rate=30.0,
        ),
    )


@pytest.fixture
def travel_requests_repo():
    return FakeTravelRequestRepo()


@pytest.fixture
def token_service():
    return TokenService(secret="test-secret", access_expires_seconds=900, refresh_expires_days=1)


@pytest.fixture
def container(
    users_repo,
    grades_repo,
    departments_repo,
    positions_repo,
    employees_repo,
    loan_types_repo,
    loan_applications_repo,
    overtime_repo,
    overtime_rates_repo,
    travel_rates_repo,
    travel_requests_repo,
    token_service,
    clock,
    tmp_path,
):
    return wire_container(
        users_repo=users_repo,
        grades_repo=grades_repo,
        departments_repo=departments_repo,
        positions_repo=positions_repo,
        employees_repo=employees_repo,
        loan_types_repo=loan_types_repo,
        loan_applications_repo=loan_applications_repo,
        overtime_repo=overtime_repo,
        overtime_rates_repo=overtime_rates_repo,
        travel_rates_repo=travel_rates_repo,
        travel_requests_repo=travel_requests_repo,
        token_service=token_service,
        avatar_dir=tmp_path / "avatars",
        clock=clock,
    )


@pytest.fixture
def app(container, monkeypatch):
    from hrims.main import create_app

    monkeypatch.setenv("APP_ENV", "testing")
    return create_app(container=container)


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def auth_header(users_repo, token_service, container):
    """Bearer header for a freshly created user of the given role."""

    def make(role=Role.HR_ADMIN, employee_id=None):
        username = f"{role.value}-{len(users_repo.rows) + 1}"
        user = users_repo.add(make_user(0, username=username, role=role, employee_id=employee_id, password_hash="x"))
        token = token_service.issue_access_token(user, container.auth_service.permissions_of(user))
        return {"Authorization": f"Bearer {token}"}

    return make
