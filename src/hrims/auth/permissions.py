"""Static role -> permission table and the checks built on it.

A permission id has the form ``<module>:<action>``. A user's effective
permissions are the permissions of their role, plus any custom grants, minus
any explicit denials.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, FrozenSet, Iterable, Optional, Sequence, Tuple

from ..core.enums import Role


@dataclass(frozen=True)
class Permission:
    id: str
    description: str
    allowed_roles: FrozenSet[Role]


@dataclass(frozen=True)
class RoleLevel:
    role: Role
    level: int
    description: str
    parent: Optional[Role] = None
    can_manage: FrozenSet[Role] = frozenset()


R = Role

_SUPER = (R.SUPER_SUPER_ADMIN, R.SUPER_ADMIN)
_ADMINS = _SUPER + (R.ADMIN_EMPLOYEE,)
_DEPARTMENT = _ADMINS + (R.DEPARTMENT_HEAD,)
_TEAM = _DEPARTMENT + (R.MANAGER,)
_DIRECT_REPORTS = _TEAM + (R.SUPERVISOR,)
_EVERYONE = tuple(Role)
_ORG_VIEWERS = _ADMINS + (R.SYSTEM_ADMIN, R.HR_ADMIN, R.HR_MANAGER, R.FINANCE_MANAGER, R.DEPARTMENT_HEAD, R.MANAGER)
_ORG_EDITORS = _ADMINS + (R.HR_ADMIN,)
_ONBOARDING = _ADMINS + (R.SYSTEM_ADMIN, R.HR_ADMIN, R.HR_MANAGER)


def _perm(pid: str, description: str, roles: Iterable[Role]) -> Permission:
    return Permission(id=pid, description=description, allowed_roles=frozenset(roles))


SYSTEM_PERMISSIONS: Tuple[Permission, ...] = (
    _perm("system:full_access", "Full system access including managing super admins", (R.SUPER_SUPER_ADMIN,)),
    _perm("users:manage_super_admins", "Manage super administrator accounts", (R.SUPER_SUPER_ADMIN,)),
    _perm("users:manage_all", "Manage all users except super super admins", _SUPER),
    _perm("roles:manage_all", "Manage all roles and permissions", _SUPER),
    _perm("users:manage_permissions", "Manage user permissions for roles below admin_employee", _ADMINS),
    _perm("employees:manage_all", "Manage all employee records", _ADMINS),
    _perm("employees:onboard", "Register employees and grant system access", _ONBOARDING),
    _perm("department:manage", "Manage own department employees and operations", _DEPARTMENT),
    _perm("approvals:department", "Approve department-level requests", _DEPARTMENT),
    _perm("team:manage", "Manage team members and their requests", _TEAM),
    _perm("approvals:team", "Approve team-level requests", _TEAM),
    _perm("direct_reports:manage", "Manage direct reports", _DIRECT_REPORTS),
    _perm("approvals:direct_reports", "Approve direct report requests", _DIRECT_REPORTS),
    _perm("profile:manage", "Manage own profile", _EVERYONE),
    _perm("requests:create", "Create requests (leave, travel, loans, overtime)", _EVERYONE),
    # Organization structure
    _perm("department:view", "View departments", _ORG_VIEWERS),
    _perm("position:view", "View positions", _ORG_VIEWERS),
    _perm("grade:view", "View grades", _ORG_VIEWERS),
    _perm("position:manage", "Create and edit positions", _ORG_EDITORS),
    _perm("grade:manage", "Create and edit grades", _ORG_EDITORS),
    # Loans
    _perm("loans:manage", "Manage loan applications", _ADMINS + (R.HR_ADMIN, R.FINANCE_MANAGER)),
    _perm(
        "loans:approve",
        "Approve or reject loan applications",
        _ADMINS + (R.FINANCE_MANAGER, R.HR_MANAGER, R.DEPARTMENT_HEAD, R.MANAGER),
    ),
    _perm("loans:configure", "Configure loan types", _SUPER + (R.FINANCE_MANAGER,)),
    _perm("loans:view_reports", "View loan reports", _ADMINS + (R.FINANCE_MANAGER, R.HR_MANAGER)),
    # Travel
    _perm("travel:manage", "Manage travel requests", _ADMINS + (R.TRAVEL_ADMIN,)),
    _perm("travel:approve", "Approve travel requests", _SUPER + (R.TRAVEL_ADMIN, R.DEPARTMENT_HEAD, R.MANAGER)),
    _perm("travel:configure", "Configure travel rules", _SUPER + (R.TRAVEL_ADMIN,)),
    # Overtime
    _perm("overtime:manage", "Manage overtime claims", _ADMINS + (R.HR_ADMIN,)),
    _perm(
        "overtime:approve",
        "Approve overtime claims",
        _SUPER + (R.HR_MANAGER, R.DEPARTMENT_HEAD, R.MANAGER, R.SUPERVISOR),
    ),
    _perm("overtime:configure", "Configure overtime rates", _SUPER + (R.HR_ADMIN,)),
    # Workflows and payroll
    _perm("workflows:manage", "Manage approval workflows", _SUPER + (R.SYSTEM_ADMIN,)),
    _perm("workflows:configure", "Configure approval workflows", _SUPER + (R.SYSTEM_ADMIN,)),
    _perm("payroll:manage", "Run and review payroll", _SUPER + (R.FINANCE_MANAGER,)),
)


def _level(role, level, description, parent=None, can_manage=()):
    return RoleLevel(role=role, level=level, description=description, parent=parent, can_manage=frozenset(can_manage))


ROLE_HIERARCHY: Dict[Role, RoleLevel] = {
    lvl.role: lvl
    for lvl in (
        _level(
            R.SUPER_SUPER_ADMIN,
            1,
            "Full system access, can manage all users including super admins",
            None,
            [r for r in Role if r != R.SUPER_SUPER_ADMIN],
        ),
        _level(
            R.SUPER_ADMIN,
            2,
            "Full system access, can manage all users except super super admins",
            R.SUPER_SUPER_ADMIN,
            [r for r in Role if r not in _SUPER],
        ),
        _level(
            R.ADMIN_EMPLOYEE,
            3,
            "Admin who is also employee, can manage permissions and users",
            R.SUPER_ADMIN,
            [r for r in Role if r not in _ADMINS],
        ),
        _level(
            R.SYSTEM_ADMIN,
            4,
            "System administration access",
            R.ADMIN_EMPLOYEE,
            [r for r in Role if r not in _ADMINS + (R.SYSTEM_ADMIN,)],
        ),
        _level(
            R.HR_ADMIN,
            5,
            "HR administration access",
            R.SYSTEM_ADMIN,
            [R.HR_MANAGER, R.DEPARTMENT_HEAD, R.MANAGER, R.SUPERVISOR, R.EMPLOYEE],
        ),
        _level(R.FINANCE_MANAGER, 6, "Finance management access", R.SYSTEM_ADMIN, [R.MANAGER, R.SUPERVISOR, R.EMPLOYEE]),
        _level(
            R.HR_MANAGER,
            7,
            "HR management access",
            R.HR_ADMIN,
            [R.DEPARTMENT_HEAD, R.MANAGER, R.SUPERVISOR, R.EMPLOYEE],
        ),
        _level(R.DEPARTMENT_HEAD, 8, "Department head access", R.HR_MANAGER, [R.MANAGER, R.SUPERVISOR, R.EMPLOYEE]),
        _level(R.MANAGER, 9, "Manager access", R.DEPARTMENT_HEAD, [R.SUPERVISOR, R.EMPLOYEE]),
        _level(R.SUPERVISOR, 10, "Supervisor access", R.MANAGER, [R.EMPLOYEE]),
        _level(R.EMPLOYEE, 11, "Employee access", R.SUPERVISOR),
        _level(R.TRAVEL_ADMIN, 12, "Travel administration access", R.SYSTEM_ADMIN),
    )
}

FULL_ACCESS = "system:full_access"

# Gates of the read routes of each area; navigation shows an area with the same gate.
EMPLOYEES_VIEW = ("employees:manage_all", "employees:onboard", "department:manage")
DEPARTMENTS_VIEW = ("department:view",)
POSITIONS_VIEW = ("position:view",)
GRADES_VIEW = ("grade:view",)
TRAVEL_VIEW = ("travel:manage", "travel:approve", "requests:create")


def permissions_for_role(role: Role) -> FrozenSet[str]:
    return frozenset(p.id for p in SYSTEM_PERMISSIONS if role in p.allowed_roles)


def effective_permissions(
    role: Role,
    *,
    custom: Sequence[str] = (),
    denied: Sequence[str] = (),
) -> Tuple[str, ...]:
    granted = set(permissions_for_role(role)) | set(custom)
    return tuple(sorted(granted - set(denied)))


def has_permission(held: Iterable[str], permission: str) -> bool:
    return permission in set(held)


def has_any_permission(held: Iterable[str], required: Iterable[str]) -> bool:
    held_set = set(held)
    return any(p in held_set for p in required)


def has_all_permissions(held: Iterable[str], required: Iterable[str]) -> bool:
    held_set = set(held)
    return all(p in held_set for p in required)


def can_access_route(held: Iterable[str], required: Sequence[str]) -> bool:
    """Full-access holders pass everything; otherwise any one required permission suffices."""

    held_set = set(held)
    if FULL_ACCESS in held_set:
        return True
    if not required:
        return True
    return has_any_permission(held_set, required)


def can_manage_role(actor: Role, target: Role) -> bool:
    level = ROLE_HIERARCHY.get(actor)
    return bool(level and target in level.can_manage)


def assignable_roles(actor: Role) -> Tuple[Role, ...]:
    level = ROLE_HIERARCHY.get(actor)
    if not level:
        return ()
    return tuple(sorted(level.can_manage, key=lambda r: ROLE_HIERARCHY[r].level))
