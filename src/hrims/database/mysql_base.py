from __future__ import annotations

import json
from contextlib import contextmanager
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .connection import DatabaseConnection


@contextmanager
def db_cursor(conn_factory: DatabaseConnection, *, dictionary: bool = True):
    conn = conn_factory.connect()
    try:
        cur = conn.cursor(dictionary=dictionary)
        try:
            yield conn, cur
            conn.commit()
        finally:
            cur.close()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def fetchone(cur) -> Optional[Dict[str, Any]]:
    row = cur.fetchone()
    return row if row else None


def fetchall(cur) -> List[Dict[str, Any]]:
    rows = cur.fetchall()
    return list(rows or [])


def load_json_list(value: Any) -> Tuple[str, ...]:
    """Decode a JSON array column (stored as TEXT) into a tuple of strings."""

    if value is None or value == "":
        return ()
    if isinstance(value, (list, tuple)):
        return tuple(str(v) for v in value)
    if isinstance(value, (bytes, bytearray)):
        value = value.decode("utf-8")
    decoded = json.loads(value)
    if not isinstance(decoded, list):
        raise ValueError(f"Expected JSON array, got {type(decoded)!r}")
    return tuple(str(v) for v in decoded)


def dump_json_list(values: Sequence[str]) -> str:
    return json.dumps(list(values))


def build_where(clauses: Sequence[Tuple[str, Sequence[Any]]]) -> Tuple[str, List[Any]]:
    """Join (sql, params) fragments into a WHERE clause."""

    parts = [sql for sql, _ in clauses]
    params: List[Any] = []
    for _, p in clauses:
        params.extend(p)
    if not parts:
        return "", params
    return "WHERE " + " AND ".join(parts), params


def as_float(value: Any, default: float = 0.0) -> float:
    return float(value) if value is not None else default
