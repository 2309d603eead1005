from __future__ import annotations

import logging
import math
from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from typing import Callable, Optional, Tuple

from werkzeug.security import check_password_hash, generate_password_hash

from ..common.datetime_utils import now_local
from ..common.validators import require_min_length, require_non_empty
from ..core.constants import LOCKOUT_MINUTES, MAX_LOGIN_ATTEMPTS, MIN_PASSWORD_LENGTH
from ..core.exceptions import AuthenticationError, AuthorizationError, NotFoundError, ValidationError
from ..employees.model import Employee
from ..employees.repository import EmployeeRepository
from .model import UserAccount
from .permissions import effective_permissions
from .repository import UserRepository
from .tokens import REFRESH, TokenService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuthTokens:
    access_token: str
    refresh_token: str
    expires_in: int
    user: UserAccount
    permissions: Tuple[str, ...]


def _password_matches(password_hash: str, password: str) -> bool:
    try:
        return check_password_hash(password_hash, password)
    except ValueError:
        # e.g. placeholder hashes like 'CHANGE_ME'
        return False


class AuthService:
    """Use case: login, token refresh, logout and own-profile management."""

    def __init__(
        self,
        users: UserRepository,
        employees: EmployeeRepository,
        tokens: TokenService,
        *,
        clock: Callable[[], datetime] = now_local,
    ):
        self._users = users
        self._employees = employees
        self._tokens = tokens
        self._clock = clock

    def permissions_of(self, user: UserAccount) -> Tuple[str, ...]:
        return effective_permissions(user.role, custom=user.custom_permissions, denied=user.denied_permissions)

    def _find(self, identifier: str) -> Optional[UserAccount]:
        if "@" in identifier:
            return self._users.get_by_email(identifier.lower())
        return self._users.get_by_username(identifier.lower())

    def login(self, identifier: str, password: str) -> AuthTokens:
        identifier = require_non_empty(identifier, "Username or email")
        if not password:
            raise ValidationError("Password is required")

        user = self._find(identifier)
        if not user:
            logger.warning("Login failed for %s: unknown account", identifier)
            raise AuthenticationError("Invalid credentials")
        if not user.is_active:
            raise AuthorizationError("Account is not active")

        now = self._clock()
        if user.locked_until and user.locked_until > now:
            minutes_left = math.ceil((user.locked_until - now).total_seconds() / 60)
            raise AuthorizationError(f"Account is locked. Try again in {minutes_left} minutes.")

        if not _password_matches(user.password_hash, password):
            attempts = user.failed_login_attempts + 1
            if attempts >= MAX_LOGIN_ATTEMPTS:
                self._users.update(
                    replace(user, failed_login_attempts=0, locked_until=now + timedelta(minutes=LOCKOUT_MINUTES))
                )
                logger.warning("Account %s locked after %s failed attempts", user.username, attempts)
                raise AuthorizationError(
                    f"Account locked due to too many failed attempts. Try again in {LOCKOUT_MINUTES} minutes."
                )
            self._users.update(replace(user, failed_login_attempts=attempts))
            logger.warning("Login failed for %s (%s/%s)", user.username, attempts, MAX_LOGIN_ATTEMPTS)
            raise AuthenticationError("Invalid credentials")

        permissions = self.permissions_of(user)
        access_token = self._tokens.issue_access_token(user, permissions)
        refresh_token = self._tokens.issue_refresh_token(user, permissions)

        user = replace(
            user,
            failed_login_attempts=0,
            locked_until=None,
            last_login_at=now,
            refresh_token_hash=generate_password_hash(refresh_token),
            refresh_token_expires=now + timedelta(seconds=self._tokens.refresh_expires_seconds),
        )
        self._users.update(user)
        logger.info("User %s logged in", user.username)

        return AuthTokens(
            access_token=access_token,
            refresh_token=refresh_token,
            expires_in=self._tokens.access_expires_seconds,
            user=user,
            permissions=permissions,
        )

    def refresh(self, refresh_token: str) -> AuthTokens:
        """New access token for a stored, unexpired refresh token. The refresh token is kept."""

        refresh_token = require_non_empty(refresh_token, "Refresh token")
        claims = self._tokens.decode(refresh_token, expected_type=REFRESH)

        user = self._users.get_by_id(claims.user_id)
        if not user or not user.refresh_token_hash:
            raise AuthenticationError("Invalid refresh token")
        if not user.is_active:
            raise AuthorizationError("Account is not active")
        if not user.refresh_token_expires or user.refresh_token_expires < self._clock():
            raise AuthenticationError("Refresh token expired")
        if not _password_matches(user.refresh_token_hash, refresh_token):
            raise AuthenticationError("Invalid refresh token")

        permissions = self.permissions_of(user)
        logger.info("Access token refreshed for %s", user.username)
        return AuthTokens(
            access_token=self._tokens.issue_access_token(user, permissions),
            refresh_token=refresh_token,
            expires_in=self._tokens.access_expires_seconds,
            user=user,
            permissions=permissions,
        )

    def logout(self, user_id: int) -> None:
        user = self.get_user(user_id)
        self._users.update(replace(user, refresh_token_hash=None, refresh_token_expires=None))
        logger.info("User %s logged out", user.username)

    def get_user(self, user_id: int) -> UserAccount:
        user = self._users.get_by_id(int(user_id))
        if not user:
            raise NotFoundError("User not found")
        return user

    def profile(self, user_id: int) -> Tuple[UserAccount, Optional[Employee]]:
        user = self.get_user(user_id)
        employee = self._employees.get_by_id(user.employee_id) if user.employee_id else None
        return user, employee

    def update_profile(
        self,
        user_id: int,
        *,
        phone: Optional[str] = None,
        bank_name: Optional[str] = None,
        bank_account_number: Optional[str] = None,
    ) -> Employee:
        """Self-service edits are limited to contact and bank details."""

        user = self.get_user(user_id)
        if not user.employee_id:
            raise NotFoundError("No employee record is linked to this account")
        employee = self._employees.get_by_id(user.employee_id)
        if not employee:
            raise NotFoundError("Employee not found")

        updated = replace(
            employee,
            phone=phone if phone is not None else employee.phone,
            bank_name=bank_name if bank_name is not None else employee.bank_name,
            bank_account_number=(
                bank_account_number if bank_account_number is not None else employee.bank_account_number
            ),
        )
        self._employees.update(updated)
        return updated

    def change_password(self, user_id: int, *, current_password: str, new_password: str) -> None:
        user = self.get_user(user_id)
        if not _password_matches(user.password_hash, current_password or ""):
            raise AuthenticationError("Current password is incorrect")
        require_min_length(new_password, "New password", MIN_PASSWORD_LENGTH)
        if new_password == current_password:
            raise ValidationError("New password must differ from the current password")

        self._users.update(
            replace(user, password_hash=generate_password_hash(new_password), must_change_password=False)
        )
        logger.info("Password changed for %s", user.username)
