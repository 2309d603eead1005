import pytest
from werkzeug.security import check_password_hash

from fakes import make_employee, make_user
from hrims.core.enums import RegistrationStatus, Role
from hrims.core.exceptions import AuthorizationError, ConflictError
from hrims.employees.onboarding import OnboardingService

TEMP_PASSWORD = "Temp#Pass1234"


@pytest.fixture
def service(employees_repo, users_repo, clock):
    employees_repo.add(make_employee(email="chikondi.banda@hrims.test"))
    return OnboardingService(employees_repo, users_repo, clock=clock, password_factory=lambda: TEMP_PASSWORD)


def test_activate_system_access(service, employees_repo, users_repo, clock):
    result = service.activate_system_access(employee_id=1, username="CBanda", role=Role.EMPLOYEE, activated_by=9)

    employee = employees_repo.get_by_id(1)
    assert employee.has_system_access is True
    assert employee.system_username == "cbanda"
    assert employee.registration_status == RegistrationStatus.SYSTEM_ACCESS_ACTIVE
    assert employee.system_access_activated_at == clock()
    assert employee.system_access_activated_by == 9

    user = users_repo.get_by_username("cbanda")
    assert user.employee_id == 1
    assert user.must_change_password is True
    assert check_password_hash(user.password_hash, TEMP_PASSWORD)
    assert result.temporary_password == TEMP_PASSWORD


def test_email_can_be_used_as_username(service, employees_repo):
    service.activate_system_access(employee_id=1, use_email_as_username=True)

    assert employees_repo.get_by_id(1).system_username == "chikondi.banda@hrims.test"


def test_system_access_always_has_username(service, employees_repo):
    service.activate_system_access(employee_id=1, username="cbanda")

    employee = employees_repo.get_by_id(1)
    assert employee.has_system_access and employee.system_username


def test_activation_is_one_shot(service):
    service.activate_system_access(employee_id=1, username="cbanda")

    with pytest.raises(ConflictError):
        service.activate_system_access(employee_id=1, username="cbanda2")


def test_activation_requires_registered_employee(service, employees_repo):
    employees_repo.add(make_employee(2, registration_status=RegistrationStatus.PENDING))

    with pytest.raises(ConflictError):
        service.activate_system_access(employee_id=2, username="someone")


def test_taken_username_leaves_record_unchanged(service, employees_repo, users_repo):
    users_repo.add(make_user(username="cbanda", password_hash="x"))

    with pytest.raises(ConflictError):
        service.activate_system_access(employee_id=1, username="cbanda")
    assert employees_repo.get_by_id(1).has_system_access is False


def test_actor_cannot_assign_role_above_their_reach(service):
    with pytest.raises(AuthorizationError):
        service.activate_system_access(employee_id=1, username="cbanda", role=Role.SUPER_ADMIN, actor_role=Role.HR_ADMIN)


def test_verify_requires_system_access(service):
    with pytest.raises(AuthorizationError):
        service.verify_profile(employee_id=1)


def test_verify_completes_registration(service, clock):
    service.activate_system_access(employee_id=1, username="cbanda")

    verified = service.verify_profile(employee_id=1, verified_by=3)

    assert verified.profile_verified is True
    assert verified.registration_status == RegistrationStatus.COMPLETED
    assert verified.profile_verified_at == clock()
    assert service.registration_status(1).registration_complete is True

    with pytest.raises(ConflictError):
        service.verify_profile(employee_id=1)


def test_activation_context_lists_assignable_roles(service):
    context = service.activation_context(1, actor_role=Role.HR_ADMIN)

    assert context["suggestedUsername"] == "chikondi.banda@hrims.test"
    assert "employee" in context["assignableRoles"]
    assert "super_admin" not in context["assignableRoles"]


def test_failed_activation_leaves_no_user_behind(service, employees_repo, users_repo, monkeypatch):
    real_update = employees_repo.update
    attempts = []

    def flaky_update(employee):
        attempts.append(employee)
        if len(attempts) == 1:
            raise RuntimeError("database unavailable")
        return real_update(employee)

    monkeypatch.setattr(employees_repo, "update", flaky_update)

    with pytest.raises(RuntimeError):
        service.activate_system_access(employee_id=1, username="cbanda", role=Role.EMPLOYEE)

    assert users_repo.get_by_username("cbanda") is None
    assert users_repo.get_by_employee_id(1) is None
    assert employees_repo.get_by_id(1).has_system_access is False

    service.activate_system_access(employee_id=1, username="cbanda", role=Role.EMPLOYEE)

    assert users_repo.get_by_username("cbanda").employee_id == 1
    assert employees_repo.get_by_id(1).has_system_access is True
