"""Employee onboarding after registration.

Phases run strictly in order: REGISTERED -> SYSTEM_ACCESS_ACTIVE -> COMPLETED.
Each transition is a single call; a failed call leaves the record unchanged.
"""

from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Callable, Optional, Tuple

from werkzeug.security import generate_password_hash

from ..auth.model import UserAccount
from ..auth.permissions import ROLE_HIERARCHY, assignable_roles, can_manage_role
from ..auth.repository import UserRepository
from ..common.datetime_utils import now_local
from ..common.validators import require_non_empty
from ..core.constants import TEMP_PASSWORD_LENGTH
from ..core.enums import RegistrationStatus, Role, UserStatus
from ..core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from .model import Employee
from .repository import EmployeeRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RegistrationState:
    employee_id: int
    employee_number: str
    has_system_access: bool
    system_username: Optional[str]
    profile_verified: bool
    registration_status: RegistrationStatus

    @property
    def registration_complete(self) -> bool:
        return self.registration_status == RegistrationStatus.COMPLETED

    def to_dict(self) -> dict:
        return {
            "employeeId": self.employee_id,
            "employeeNumber": self.employee_number,
            "hasSystemAccess": self.has_system_access,
            "systemUsername": self.system_username,
            "profileVerified": self.profile_verified,
            "registrationStatus": self.registration_status.value,
            "registrationComplete": self.registration_complete,
        }


@dataclass(frozen=True)
class ActivationResult:
    employee: Employee
    user: UserAccount
    temporary_password: str


def generate_temporary_password(length: int = TEMP_PASSWORD_LENGTH) -> str:
    return secrets.token_urlsafe(length)[:length]


class OnboardingService:
    def __init__(
        self,
        employees: EmployeeRepository,
        users: UserRepository,
        *,
        clock: Callable[[], datetime] = now_local,
        password_factory: Callable[[], str] = generate_temporary_password,
    ):
        self._employees = employees
        self._users = users
        self._clock = clock
        self._password_factory = password_factory

    def _get(self, employee_id: int) -> Employee:
        employee = self._employees.get_by_id(int(employee_id))
        if not employee:
            raise NotFoundError(f"Employee {employee_id} not found")
        return employee

    def registration_status(self, employee_id: int) -> RegistrationState:
        e = self._get(employee_id)
        return RegistrationState(
            employee_id=e.employee_id,
            employee_number=e.employee_number,
            has_system_access=e.has_system_access,
            system_username=e.system_username,
            profile_verified=e.profile_verified,
            registration_status=e.registration_status,
        )

    def activation_context(self, employee_id: int, *, actor_role: Optional[Role] = None) -> dict:
        """What the activation form needs: who, a suggested username and the roles on offer."""

        e = self._get(employee_id)
        roles: Tuple[Role, ...] = assignable_roles(actor_role) if actor_role else tuple(ROLE_HIERARCHY)
        return {
            "employeeId": e.employee_id,
            "employeeNumber": e.employee_number,
            "fullName": e.full_name,
            "email": e.email,
            "suggestedUsername": e.email,
            "suggestedRole": (e.system_role or Role.EMPLOYEE).value,
            "assignableRoles": [r.value for r in roles],
        }

    def activate_system_access(
        self,
        *,
        employee_id: int,
        role: Optional[Role] = None,
        username: Optional[str] = None,
        use_email_as_username: bool = False,
        activated_by: Optional[int] = None,
        actor_role: Optional[Role] = None,
    ) -> ActivationResult:
        employee = self._get(employee_id)
        if employee.has_system_access:
            raise ConflictError("Employee already has system access")
        if employee.registration_status != RegistrationStatus.REGISTERED:
            raise ConflictError(
                f"Cannot activate access while registration is {employee.registration_status.value}"
            )

        if use_email_as_username:
            username = employee.email
        username = require_non_empty(username, "Username").lower()

        role = role or employee.system_role or Role.EMPLOYEE
        if actor_role is not None and not can_manage_role(actor_role, role):
            raise AuthorizationError(f"You cannot assign the {role.value} role")

        if self._employees.get_by_system_username(username) or self._users.get_by_username(username):
            raise ConflictError(f"Username {username} is already taken")
        if self._users.get_by_employee_id(employee.employee_id):
            raise ConflictError("A user account already exists for this employee")
        if self._users.get_by_email(employee.email):
            raise ConflictError(f"A user account with email {employee.email} already exists")

        temporary_password = self._password_factory()
        if not temporary_password:
            raise ValidationError("Could not generate a temporary password")

        user = UserAccount(
            user_id=0,
            username=username,
            email=employee.email,
            password_hash=generate_password_hash(temporary_password),
            role=role,
            employee_id=employee.employee_id,
            status=UserStatus.ACTIVE,
            must_change_password=True,
        )
        user = replace(user, user_id=self._users.create(user))

        activated = replace(
            employee,
            has_system_access=True,
            system_username=username,
            system_role=role,
            registration_status=RegistrationStatus.SYSTEM_ACCESS_ACTIVE,
            system_access_activated_at=self._clock(),
            system_access_activated_by=activated_by,
        )
        try:
            self._employees.update(activated)
        except Exception:
            self._users.delete(user.user_id)
            raise
        logger.info("System access activated for %s as %s (%s)", employee.employee_number, username, role.value)
        return ActivationResult(employee=activated, user=user, temporary_password=temporary_password)

    def verify_profile(self, *, employee_id: int, verified_by: Optional[int] = None) -> Employee:
        employee = self._get(employee_id)
        if employee.profile_verified:
            raise ConflictError("Profile is already verified")
        if not employee.has_system_access:
            raise AuthorizationError("System access must be activated before the profile can be verified")

        verified = replace(
            employee,
            profile_verified=True,
            profile_verified_at=self._clock(),
            profile_verified_by=verified_by,
            registration_status=RegistrationStatus.COMPLETED,
        )
        self._employees.update(verified)
        logger.info("Profile verified for %s", employee.employee_number)
        return verified
