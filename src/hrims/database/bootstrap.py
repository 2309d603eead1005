from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Iterable, List, Union

import mysql.connector
from werkzeug.security import generate_password_hash

from ..core.enums import Role, UserStatus
from .connection import DBConfig

logger = logging.getLogger(__name__)

# (username, email, password, role); accounts must change the password on first login.
DEMO_USERS = (
    ("superadmin", "superadmin@hrims.local", "ChangeMe!2024", Role.SUPER_SUPER_ADMIN),
    ("hradmin", "hradmin@hrims.local", "ChangeMe!2024", Role.HR_ADMIN),
)


def _connect(db_config: dict, *, with_database: bool = True):
    target = DBConfig.from_dict(db_config)
    kwargs = dict(
        host=target.host,
        port=target.port,
        user=target.user,
        password=target.password,
        use_pure=True,
    )
    if with_database:
        kwargs["database"] = target.database
    return mysql.connector.connect(**kwargs)


def _strip_create_db_and_use(sql: str) -> str:
    # Keep schema.sql compatible regardless of DB name.
    sql = re.sub(r"(?im)^\s*CREATE\s+DATABASE\b.*?;\s*$", "", sql)
    sql = re.sub(r"(?im)^\s*USE\b.*?;\s*$", "", sql)
    return sql


def _strip_comments(sql: str) -> str:
    return re.sub(r"(?m)^\s*--.*$", "", sql)


def _iter_sql_statements(sql: str) -> Iterable[str]:
    # Minimal SQL splitter for schema/seed files (handles ';' inside quotes).
    buf: List[str] = []
    in_single = False
    in_double = False
    escape = False

    for ch in sql:
        if escape:
            buf.append(ch)
            escape = False
            continue

        if ch == "\\":
            buf.append(ch)
            escape = True
            continue

        if ch == "'" and not in_double:
            in_single = not in_single
            buf.append(ch)
            continue

        if ch == '"' and not in_single:
            in_double = not in_double
            buf.append(ch)
            continue

        if ch == ";" and not in_single and not in_double:
            stmt = "".join(buf).strip()
            buf.clear()
            if stmt:
                yield stmt
            continue

        buf.append(ch)

    tail = "".join(buf).strip()
    if tail:
        yield tail


def _exec_sql(cur, sql: str) -> None:
    for stmt in _iter_sql_statements(_strip_comments(sql)):
        cur.execute(stmt)


def _run_file(db_config: dict, path: Union[str, Path]) -> None:
    sql = _strip_create_db_and_use(Path(path).read_text(encoding="utf-8"))
    conn = _connect(db_config)
    try:
        cur = conn.cursor()
        _exec_sql(cur, sql)
        conn.commit()
    finally:
        conn.close()


def ensure_database_exists(db_config: dict) -> None:
    database = DBConfig.from_dict(db_config).database
    conn = _connect(db_config, with_database=False)
    try:
        cur = conn.cursor()
        cur.execute(
            f"CREATE DATABASE IF NOT EXISTS `{database}` CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci;"
        )
        conn.commit()
    finally:
        conn.close()


def apply_schema(db_config: dict, *, schema_path: Union[str, Path]) -> None:
    ensure_database_exists(db_config)
    _run_file(db_config, schema_path)
    logger.info("Applied schema %s", schema_path)


def apply_seed_sql(db_config: dict, *, seed_path: Union[str, Path]) -> None:
    _run_file(db_config, seed_path)
    logger.info("Applied seed %s", seed_path)


def ensure_demo_users(db_config: dict) -> None:
    """Create the bootstrap accounts if they are missing. Existing accounts are left alone."""

    conn = _connect(db_config)
    try:
        cur = conn.cursor(dictionary=True)
        for username, email, password, role in DEMO_USERS:
            cur.execute("SELECT user_id FROM users WHERE username=%s", (username,))
            if cur.fetchone():
                continue
            cur.execute(
                """
                INSERT INTO users (username, email, password_hash, role, status, must_change_password,
                                   custom_permissions, denied_permissions)
                VALUES (%s, %s, %s, %s, %s, 1, '[]', '[]')
                """,
                (username, email, generate_password_hash(password), role.value, UserStatus.ACTIVE.value),
            )
            logger.info("Created bootstrap user %s (%s)", username, role.value)
        conn.commit()
    finally:
        conn.close()


def list_tables(db_config: dict) -> List[str]:
    conn = _connect(db_config)
    try:
        cur = conn.cursor()
        cur.execute("SHOW TABLES")
        return [row[0] for row in cur.fetchall()]
    finally:
        conn.close()
