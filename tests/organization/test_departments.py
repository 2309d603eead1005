from dataclasses import replace

import pytest

from fakes import make_employee
from hrims.core.exceptions import ConflictError, NotFoundError, ValidationError
from hrims.departments.model import Department
from hrims.departments.service import DepartmentService


@pytest.fixture
def service(departments_repo, employees_repo):
    return DepartmentService(departments_repo, employees_repo)


def test_create_department_under_parent(service):
    d = service.create_department(Department(department_id=0, name=" Payroll ", code="pay", parent_id=2))

    assert d.department_id == 3
    assert d.name == "Payroll"
    assert d.code == "PAY"


def test_duplicate_name_is_rejected(service):
    with pytest.raises(ConflictError):
        service.create_department(Department(department_id=0, name="finance", code="FN2"))


def test_unknown_parent_is_rejected(service):
    with pytest.raises(NotFoundError):
        service.create_department(Department(department_id=0, name="Audit", code="AUD", parent_id=42))


def test_parent_cycle_is_rejected(service, departments_repo):
    executive = departments_repo.get_by_id(1)

    with pytest.raises(ValidationError):
        service.update_department(replace(executive, parent_id=2))


def test_delete_refused_while_children_are_active(service):
    with pytest.raises(ConflictError):
        service.delete_department(1)


def test_delete_refused_while_employees_are_active(service, employees_repo):
    employees_repo.add(make_employee())

    with pytest.raises(ConflictError):
        service.delete_department(2)


def test_delete_and_restore(service, departments_repo):
    service.delete_department(2)
    assert departments_repo.get_by_id(2).is_active is False

    restored = service.restore_department(2)
    assert restored.is_active is True


def test_restore_requires_active_parent(service, departments_repo):
    departments_repo.set_active(2, is_active=False)
    departments_repo.set_active(1, is_active=False)

    with pytest.raises(ConflictError):
        service.restore_department(2)


def test_hierarchy_and_path(service):
    roots = service.hierarchy()

    assert [n.department.code for n in roots] == ["EXE"]
    assert [c.department.code for c in roots[0].children] == ["FIN"]
    assert [d.code for d in service.path(2)] == ["EXE", "FIN"]
