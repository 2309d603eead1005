from __future__ import annotations

import secrets
import time
from dataclasses import dataclass
from typing import Callable, Optional, Tuple

from jose import JWTError, jwt

from ..core.constants import DEFAULT_ACCESS_TOKEN_EXPIRES_SECONDS, DEFAULT_REFRESH_TOKEN_EXPIRES_DAYS
from ..core.enums import Role
from ..core.exceptions import AuthenticationError
from .model import UserAccount

ACCESS = "access"
REFRESH = "refresh"


@dataclass(frozen=True)
class TokenClaims:
    user_id: int
    username: str
    role: Role
    employee_id: Optional[int]
    permissions: Tuple[str, ...]
    token_type: str
    expires_at: int


class TokenService:
    """Issues and verifies signed JWT access/refresh tokens."""

    def __init__(
        self,
        *,
        secret: str,
        algorithm: str = "HS256",
        access_expires_seconds: int = DEFAULT_ACCESS_TOKEN_EXPIRES_SECONDS,
        refresh_expires_days: int = DEFAULT_REFRESH_TOKEN_EXPIRES_DAYS,
        now: Callable[[], float] = time.time,
    ):
        if not secret:
            raise ValueError("JWT secret must not be empty")
        self._secret = secret
        self._algorithm = algorithm
        self._access_expires = int(access_expires_seconds)
        self._refresh_expires = int(refresh_expires_days) * 24 * 60 * 60
        self._now = now

    @property
    def access_expires_seconds(self) -> int:
        return self._access_expires

    @property
    def refresh_expires_seconds(self) -> int:
        return self._refresh_expires

    def _encode(self, user: UserAccount, permissions: Tuple[str, ...], token_type: str, ttl: int) -> str:
        now = int(self._now())
        payload = {
            "sub": str(user.user_id),
            "username": user.username,
            "role": user.role.value,
            "employeeId": user.employee_id,
            "permissions": list(permissions),
            "type": token_type,
            "iat": now,
            "exp": now + ttl,
            # Two tokens issued in the same second still differ.
            "jti": secrets.token_hex(8),
        }
        return jwt.encode(payload, self._secret, algorithm=self._algorithm)

    def issue_access_token(self, user: UserAccount, permissions: Tuple[str, ...]) -> str:
        return self._encode(user, permissions, ACCESS, self._access_expires)

    def issue_refresh_token(self, user: UserAccount, permissions: Tuple[str, ...]) -> str:
        return self._encode(user, permissions, REFRESH, self._refresh_expires)

    def decode(self, token: str, *, expected_type: str = ACCESS) -> TokenClaims:
        try:
            # Expiry is checked against the injected clock below.
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                options={"verify_exp": False},
            )
        except JWTError:
            raise AuthenticationError("Invalid or expired token")

        if payload.get("type") != expected_type:
            raise AuthenticationError("Invalid token type")
        expires_at = int(payload.get("exp") or 0)
        if expires_at <= int(self._now()):
            raise AuthenticationError("Invalid or expired token")

        try:
            return TokenClaims(
                user_id=int(payload["sub"]),
                username=str(payload.get("username") or ""),
                role=Role(payload["role"]),
                employee_id=payload.get("employeeId"),
                permissions=tuple(payload.get("permissions") or ()),
                token_type=expected_type,
                expires_at=expires_at,
            )
        except (KeyError, ValueError, TypeError):
            raise AuthenticationError("Malformed token")
