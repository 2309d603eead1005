import pytest

from hrims.auth.navigation import visible_nav_items
from hrims.auth.permissions import (
    can_access_route,
    can_manage_role,
    effective_permissions,
    has_all_permissions,
    has_any_permission,
    has_permission,
    permissions_for_role,
)
from hrims.core.enums import Role


def _keys(items):
    return [i.key for i in items]


def test_employee_role_permissions():
    perms = permissions_for_role(Role.EMPLOYEE)

    assert "requests:create" in perms
    assert "profile:manage" in perms
    assert "employees:manage_all" not in perms
    assert "system:full_access" not in perms


def test_only_super_super_admin_has_full_access():
    holders = [r for r in Role if "system:full_access" in permissions_for_role(r)]

    assert holders == [Role.SUPER_SUPER_ADMIN]


def test_effective_permissions_add_custom_and_drop_denied():
    perms = effective_permissions(Role.EMPLOYEE, custom=("grade:view",), denied=("requests:create",))

    assert "grade:view" in perms
    assert "requests:create" not in perms
    assert list(perms) == sorted(perms)


def test_any_and_all_checks():
    held = ("a:x", "b:y")

    assert has_permission(held, "a:x")
    assert not has_permission(held, "c:z")
    assert has_any_permission(held, ("c:z", "b:y"))
    assert not has_any_permission(held, ("c:z",))
    assert has_all_permissions(held, ("a:x", "b:y"))
    assert not has_all_permissions(held, ("a:x", "c:z"))


def test_full_access_passes_every_route():
    assert can_access_route(("system:full_access",), ("payroll:manage",))
    assert can_access_route((), ())
    assert not can_access_route(("profile:manage",), ("payroll:manage",))


@pytest.mark.parametrize(
    "actor, target, expected",
    [
        (Role.SUPER_SUPER_ADMIN, Role.SUPER_ADMIN, True),
        (Role.SUPER_ADMIN, Role.SUPER_SUPER_ADMIN, False),
        (Role.SUPER_ADMIN, Role.SUPER_ADMIN, False),
        (Role.HR_ADMIN, Role.EMPLOYEE, True),
        (Role.HR_ADMIN, Role.SYSTEM_ADMIN, False),
        (Role.EMPLOYEE, Role.EMPLOYEE, False),
    ],
)
def test_can_manage_role(actor, target, expected):
    assert can_manage_role(actor, target) is expected


def test_employee_navigation_hides_gated_items():
    keys = _keys(visible_nav_items(permissions_for_role(Role.EMPLOYEE)))

    assert keys == ["dashboard", "profile", "loans", "travel", "overtime", "help"]


def test_nav_item_appears_once_permission_is_held():
    perms = effective_permissions(Role.EMPLOYEE, custom=("payroll:manage",))

    assert "payroll" in _keys(visible_nav_items(perms))


def test_nav_children_are_filtered_too():
    items = visible_nav_items(("grade:view",))
    organization = next(i for i in items if i.key == "organization")

    assert _keys(organization.children) == ["grades"]


def test_super_super_admin_sees_admin_menu():
    items = visible_nav_items(permissions_for_role(Role.SUPER_SUPER_ADMIN))
    admin = next(i for i in items if i.key == "admin")

    assert _keys(admin.children) == ["admin-users", "admin-roles"]


def test_route_gating_over_http(client, auth_header):
    assert client.get("/api/v1/grades", headers=auth_header(Role.EMPLOYEE)).status_code == 403
    assert client.get("/api/v1/grades", headers=auth_header(Role.HR_ADMIN)).status_code == 200
    assert client.get("/api/v1/grades", headers=auth_header(Role.SUPER_SUPER_ADMIN)).status_code == 200
