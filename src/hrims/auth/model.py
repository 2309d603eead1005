from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Tuple

from ..core.enums import Role, UserStatus


@dataclass(frozen=True)
class UserAccount:
    """Login account linked to an employee.

    Note: Plain data object (no DB access code).
    """

    user_id: int
    username: str
    email: str
    password_hash: str
    role: Role
    employee_id: Optional[int] = None
    status: UserStatus = UserStatus.ACTIVE
    must_change_password: bool = False
    failed_login_attempts: int = 0
    locked_until: Optional[datetime] = None
    custom_permissions: Tuple[str, ...] = ()
    denied_permissions: Tuple[str, ...] = ()
    refresh_token_hash: Optional[str] = None
    refresh_token_expires: Optional[datetime] = None
    last_login_at: Optional[datetime] = None
    avatar_url: Optional[str] = None

    @property
    def is_active(self) -> bool:
        return self.status == UserStatus.ACTIVE
