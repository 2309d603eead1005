from __future__ import annotations

from typing import Optional

from ..core.enums import Role, UserStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, dump_json_list, fetchone, load_json_list
from .model import UserAccount
from .repository import UserRepository

_FIELDS = (
    "username",
    "email",
    "password_hash",
    "role",
    "employee_id",
    "status",
    "must_change_password",
    "failed_login_attempts",
    "locked_until",
    "custom_permissions",
    "denied_permissions",
    "refresh_token_hash",
    "refresh_token_expires",
    "last_login_at",
    "avatar_url",
)
_COLUMNS = "user_id, " + ", ".join(_FIELDS)


def _row_to_user(row: dict) -> UserAccount:
    return UserAccount(
        user_id=int(row["user_id"]),
        username=row["username"],
        email=row["email"],
        password_hash=row["password_hash"],
        role=Role(row["role"]),
        employee_id=row.get("employee_id"),
        status=UserStatus(row.get("status") or UserStatus.ACTIVE.value),
        must_change_password=bool(row.get("must_change_password")),
        failed_login_attempts=int(row.get("failed_login_attempts") or 0),
        locked_until=row.get("locked_until"),
        custom_permissions=load_json_list(row.get("custom_permissions")),
        denied_permissions=load_json_list(row.get("denied_permissions")),
        refresh_token_hash=row.get("refresh_token_hash"),
        refresh_token_expires=row.get("refresh_token_expires"),
        last_login_at=row.get("last_login_at"),
        avatar_url=row.get("avatar_url"),
    )


def _user_params(u: UserAccount) -> tuple:
    return (
        u.username,
        u.email,
        u.password_hash,
        u.role.value,
        u.employee_id,
        u.status.value,
        int(u.must_change_password),
        u.failed_login_attempts,
        u.locked_until,
        dump_json_list(u.custom_permissions),
        dump_json_list(u.denied_permissions),
        u.refresh_token_hash,
        u.refresh_token_expires,
        u.last_login_at,
        u.avatar_url,
    )


class MySQLUserRepository(UserRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _get_one(self, column: str, value) -> Optional[UserAccount]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM users WHERE {column}=%s", (value,))
            row = fetchone(cur)
            return _row_to_user(row) if row else None

    def get_by_id(self, user_id: int) -> Optional[UserAccount]:
        return self._get_one("user_id", user_id)

    def get_by_username(self, username: str) -> Optional[UserAccount]:
        return self._get_one("username", username)

    def get_by_email(self, email: str) -> Optional[UserAccount]:
        return self._get_one("email", email)

    def get_by_employee_id(self, employee_id: int) -> Optional[UserAccount]:
        return self._get_one("employee_id", employee_id)

    def create(self, user: UserAccount) -> int:
        placeholders = ",".join(["%s"] * len(_FIELDS))
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"INSERT INTO users({', '.join(_FIELDS)}) VALUES({placeholders})",
                _user_params(user),
            )
            return int(cur.lastrowid)

    def update(self, user: UserAccount) -> bool:
        assignments = ", ".join(f"{name}=%s" for name in _FIELDS)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"UPDATE users SET {assignments} WHERE user_id=%s",
                _user_params(user) + (user.user_id,),
            )
            return cur.rowcount > 0

    def delete(self, user_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM users WHERE user_id=%s", (user_id,))
            return cur.rowcount > 0
