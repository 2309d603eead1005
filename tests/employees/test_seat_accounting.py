from dataclasses import replace

import pytest

from hrims.core.enums import EmploymentStatus, Role
from hrims.core.exceptions import ConflictError
from hrims.employees.service import NewEmployee


def _new(n=1, **kw):
    data = dict(
        first_name="Thoko",
        last_name="Phiri",
        email=f"staff{n}@hrims.test",
        national_id=f"MW{n:03d}",
        department_id=2,
        position_id=1,
        grade_id=1,
    )
    data.update(kw)
    return NewEmployee(**data)


def _filled(positions_repo, position_id):
    return positions_repo.get_by_id(position_id).currently_filled


def test_status_update_to_terminated_frees_the_seat(client, container, positions_repo, auth_header):
    employee = container.employee_service.register_employee(_new())
    headers = auth_header(Role.ADMIN_EMPLOYEE)

    resp = client.put(
        f"/api/v1/employees/{employee.employee_id}",
        json={"employmentStatus": "TERMINATED"},
        headers=headers,
    )

    assert resp.status_code == 200
    assert _filled(positions_repo, 1) == 0
    assert client.delete(f"/api/v1/employees/{employee.employee_id}", headers=headers).status_code == 409
    assert _filled(positions_repo, 1) == 0


def test_reinstating_takes_a_seat_again(container, positions_repo):
    service = container.employee_service
    employee = service.terminate_employee(service.register_employee(_new()).employee_id)

    service.update_employee(replace(employee, employment_status=EmploymentStatus.ACTIVE))

    assert _filled(positions_repo, 1) == 1


def test_reinstating_into_full_position_is_refused(container, employees_repo, positions_repo):
    service = container.employee_service
    first = service.terminate_employee(service.register_employee(_new(position_id=2, grade_id=2)).employee_id)
    service.register_employee(_new(2, position_id=2, grade_id=2))

    with pytest.raises(ConflictError):
        service.update_employee(replace(first, employment_status=EmploymentStatus.ACTIVE))

    assert _filled(positions_repo, 2) == 1
    assert employees_repo.get_by_id(first.employee_id).employment_status == EmploymentStatus.TERMINATED


def test_move_to_other_position_moves_the_seat(container, positions_repo):
    service = container.employee_service
    employee = service.register_employee(_new())

    service.update_employee(replace(employee, position_id=2, grade_id=2, basic_salary=1000000.0))

    assert _filled(positions_repo, 1) == 0
    assert _filled(positions_repo, 2) == 1


def test_move_to_full_position_keeps_counts(container, employees_repo, positions_repo):
    service = container.employee_service
    employee = service.register_employee(_new())
    service.register_employee(_new(2, position_id=2, grade_id=2))

    with pytest.raises(ConflictError):
        service.update_employee(replace(employee, position_id=2, grade_id=2, basic_salary=1000000.0))

    assert _filled(positions_repo, 1) == 1
    assert _filled(positions_repo, 2) == 1
    assert employees_repo.get_by_id(employee.employee_id).position_id == 1


def test_failed_write_during_move_gives_the_new_seat_back(container, employees_repo, positions_repo, monkeypatch):
    service = container.employee_service
    employee = service.register_employee(_new())

    def broken_update(_employee):
        raise RuntimeError("database unavailable")

    monkeypatch.setattr(employees_repo, "update", broken_update)

    with pytest.raises(RuntimeError):
        service.update_employee(replace(employee, position_id=2, grade_id=2, basic_salary=1000000.0))

    assert _filled(positions_repo, 1) == 1
    assert _filled(positions_repo, 2) == 0
