from __future__ import annotations

from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import build_where, db_cursor, fetchall, fetchone
from .model import Department
from .repository import DepartmentRepository

_COLUMNS = "department_id, name, code, description, parent_id, head_position_id, is_active"


def _row_to_department(row: dict) -> Department:
    return Department(
        department_id=int(row["department_id"]),
        name=row["name"],
        code=row["code"],
        description=row.get("description"),
        parent_id=row.get("parent_id"),
        head_position_id=row.get("head_position_id"),
        is_active=bool(row.get("is_active", True)),
    )


class MySQLDepartmentRepository(DepartmentRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _get_one(self, column: str, value) -> Optional[Department]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM departments WHERE {column}=%s", (value,))
            row = fetchone(cur)
            return _row_to_department(row) if row else None

    def get_by_id(self, department_id: int) -> Optional[Department]:
        return self._get_one("department_id", department_id)

    def get_by_name(self, name: str) -> Optional[Department]:
        return self._get_one("name", name)

    def get_by_code(self, code: str) -> Optional[Department]:
        return self._get_one("code", code)

    def list_departments(self, *, search: Optional[str] = None, active_only: bool = False) -> Sequence[Department]:
        clauses = []
        if active_only:
            clauses.append(("is_active=1", ()))
        if search:
            like = f"%{search}%"
            clauses.append(("(name LIKE %s OR code LIKE %s OR description LIKE %s)", (like, like, like)))
        where, params = build_where(clauses)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM departments {where} ORDER BY name ASC", tuple(params))
            return [_row_to_department(r) for r in fetchall(cur)]

    def count_active_children(self, department_id: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT COUNT(*) AS c FROM departments WHERE parent_id=%s AND is_active=1",
                (department_id,),
            )
            row = fetchone(cur)
            return int(row["c"]) if row else 0

    def create(self, department: Department) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO departments(name, code, description, parent_id, head_position_id, is_active)
                VALUES(%s,%s,%s,%s,%s,%s)
                """,
                (
                    department.name,
                    department.code,
                    department.description,
                    department.parent_id,
                    department.head_position_id,
                    int(department.is_active),
                ),
            )
            return int(cur.lastrowid)

    def update(self, department: Department) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE departments
                SET name=%s, code=%s, description=%s, parent_id=%s, head_position_id=%s, is_active=%s
                WHERE department_id=%s
                """,
                (
                    department.name,
                    department.code,
                    department.description,
                    department.parent_id,
                    department.head_position_id,
                    int(department.is_active),
                    department.department_id,
                ),
            )
            return cur.rowcount > 0

    def set_active(self, department_id: int, *, is_active: bool) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE departments SET is_active=%s WHERE department_id=%s",
                (int(is_active), department_id),
            )
            return cur.rowcount > 0
