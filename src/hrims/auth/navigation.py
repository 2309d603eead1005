from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Iterable, List, Optional, Tuple

from .permissions import (
    DEPARTMENTS_VIEW,
    EMPLOYEES_VIEW,
    GRADES_VIEW,
    POSITIONS_VIEW,
    TRAVEL_VIEW,
    can_access_route,
)


@dataclass(frozen=True)
class NavItem:
    """Sidebar entry, gated like the route behind it. Empty ``required`` means always visible."""

    key: str
    title: str
    path: str
    required: Tuple[str, ...] = ()
    children: Tuple["NavItem", ...] = ()

    def is_visible_to(self, permissions: Iterable[str]) -> bool:
        return can_access_route(permissions, self.required)

    def to_dict(self) -> dict:
        return {
            "key": self.key,
            "title": self.title,
            "path": self.path,
            "children": [c.to_dict() for c in self.children],
        }


_ADMIN = (
    "users:manage_all",
    "users:manage_super_admins",
    "roles:manage_all",
    "users:manage_permissions",
)

NAV_ITEMS: Tuple[NavItem, ...] = (
    NavItem("dashboard", "Dashboard", "/dashboard"),
    NavItem("profile", "My Profile", "/profile"),
    NavItem("employees", "Employees", "/employees", EMPLOYEES_VIEW),
    NavItem("loans", "Loans", "/loans", ("loans:manage", "loans:approve", "requests:create")),
    NavItem("travel", "Travel", "/travel", TRAVEL_VIEW),
    NavItem("overtime", "Overtime", "/overtime", ("overtime:manage", "overtime:approve", "requests:create")),
    NavItem("payroll", "Payroll", "/payroll", ("payroll:manage",)),
    NavItem(
        "organization",
        "Organization",
        "/organization",
        DEPARTMENTS_VIEW + POSITIONS_VIEW + GRADES_VIEW,
        children=(
            NavItem("departments", "Departments", "/organization/departments", DEPARTMENTS_VIEW),
            NavItem("positions", "Positions", "/organization/positions", POSITIONS_VIEW),
            NavItem("grades", "Grades", "/organization/grades", GRADES_VIEW),
        ),
    ),
    NavItem(
        "admin",
        "Admin",
        "/admin",
        _ADMIN,
        children=(
            NavItem("admin-users", "Users", "/admin/users", ("users:manage_all",)),
            NavItem("admin-roles", "Roles", "/admin/roles", ("roles:manage_all",)),
        ),
    ),
    NavItem("help", "Help & Support", "/help"),
)


def visible_nav_items(permissions: Iterable[str], items: Optional[Iterable[NavItem]] = None) -> List[NavItem]:
    """Items (and children) the holder of ``permissions`` may see."""

    held = set(permissions)
    out: List[NavItem] = []
    for item in NAV_ITEMS if items is None else items:
        if not item.is_visible_to(held):
            continue
        if item.children:
            item = replace(item, children=tuple(visible_nav_items(held, item.children)))
        out.append(item)
    return out
