from dataclasses import replace

import pytest

from fakes import make_employee, make_grade
from hrims.core.enums import EmploymentStatus, RegistrationStatus, Role
from hrims.core.exceptions import ConflictError, NotFoundError, ValidationError
from hrims.employees.service import NewEmployee, derive_role_flags
from hrims.positions.model import Position


def _new(**kw):
    data = dict(
        first_name="Thoko",
        last_name="Phiri",
        email="Thoko.Phiri@HRIMS.test",
        national_id="mw123",
        department_id=2,
        position_id=1,
        grade_id=1,
    )
    data.update(kw)
    return NewEmployee(**data)


def test_register_employee(container, positions_repo):
    e = container.employee_service.register_employee(_new())

    assert e.employee_id == 1
    assert e.employee_number == "EMP/FIN/2026/001"
    assert e.email == "thoko.phiri@hrims.test"
    assert e.national_id == "MW123"
    assert e.basic_salary == 400000
    assert e.house_allowance == 50000
    assert e.registration_status == RegistrationStatus.REGISTERED
    assert e.has_system_access is False
    assert e.system_role == Role.EMPLOYEE
    assert positions_repo.get_by_id(1).currently_filled == 1


def test_register_numbers_follow_sequence(container):
    container.employee_service.register_employee(_new())
    second = container.employee_service.register_employee(_new(email="b@hrims.test", national_id="MW456"))

    assert second.employee_number == "EMP/FIN/2026/002"


def test_register_refuses_full_position(container):
    container.employee_service.register_employee(_new(position_id=2, grade_id=2))

    with pytest.raises(ConflictError):
        container.employee_service.register_employee(
            _new(position_id=2, grade_id=2, email="b@hrims.test", national_id="MW456")
        )


def test_register_rejects_duplicate_email(container, employees_repo):
    employees_repo.add(make_employee(email="thoko.phiri@hrims.test"))

    with pytest.raises(ConflictError):
        container.employee_service.register_employee(_new())


def test_register_rejects_salary_outside_band(container, positions_repo):
    with pytest.raises(ValidationError):
        container.employee_service.register_employee(_new(basic_salary=1000))
    assert positions_repo.get_by_id(1).currently_filled == 0


def test_register_requires_known_position(container):
    with pytest.raises(NotFoundError):
        container.employee_service.register_employee(_new(position_id=77))


def test_terminate_releases_the_seat(container, positions_repo):
    e = container.employee_service.register_employee(_new())

    terminated = container.employee_service.terminate_employee(e.employee_id)

    assert terminated.employment_status == EmploymentStatus.TERMINATED
    assert positions_repo.get_by_id(1).currently_filled == 0
    with pytest.raises(ConflictError):
        container.employee_service.terminate_employee(e.employee_id)


def test_update_keeps_onboarding_fields(container, employees_repo):
    employees_repo.add(make_employee(has_system_access=True, system_username="cbanda"))

    updated = container.employee_service.update_employee(
        replace(employees_repo.get_by_id(1), phone="0999", has_system_access=False, system_username=None)
    )

    assert updated.phone == "0999"
    assert updated.has_system_access is True
    assert updated.system_username == "cbanda"


def test_role_flags_from_title():
    grade = make_grade()
    manager = Position(position_id=1, title="Finance Manager", code="X", department_id=1, grade_id=1)
    supervisor = Position(position_id=2, title="Senior Accountant", code="Y", department_id=1, grade_id=1)
    clerk = Position(position_id=3, title="Clerk", code="Z", department_id=1, grade_id=1)

    assert derive_role_flags(manager, grade).suggested_role == Role.FINANCE_MANAGER
    assert derive_role_flags(manager, grade).is_department_manager is True

    flags = derive_role_flags(supervisor, grade)
    assert flags.suggested_role == Role.SUPERVISOR
    assert flags.is_supervisor is True
    assert flags.is_department_manager is False

    assert derive_role_flags(clerk, grade).suggested_role == Role.EMPLOYEE


def test_high_grade_adds_flags():
    grade = make_grade(code="M15", level=11)
    clerk = Position(position_id=3, title="Clerk", code="Z", department_id=1, grade_id=1)

    flags = derive_role_flags(clerk, grade)
    assert flags.is_supervisor is True
    assert flags.is_department_manager is True
    assert flags.suggested_role == Role.EMPLOYEE
