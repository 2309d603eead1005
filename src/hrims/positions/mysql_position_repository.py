from __future__ import annotations

from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import build_where, db_cursor, fetchall, fetchone
from .model import Position
from .repository import PositionRepository

_COLUMNS = """
    position_id, title, code, description, department_id, grade_id, reports_to_id,
    is_head_of_department, is_supervisor, is_manager, is_director,
    number_of_positions, currently_filled, is_active
"""


def _row_to_position(row: dict) -> Position:
    return Position(
        position_id=int(row["position_id"]),
        title=row["title"],
        code=row["code"],
        description=row.get("description"),
        department_id=int(row["department_id"]),
        grade_id=int(row["grade_id"]),
        reports_to_id=row.get("reports_to_id"),
        is_head_of_department=bool(row.get("is_head_of_department")),
        is_supervisor=bool(row.get("is_supervisor")),
        is_manager=bool(row.get("is_manager")),
        is_director=bool(row.get("is_director")),
        number_of_positions=int(row.get("number_of_positions") or 1),
        currently_filled=int(row.get("currently_filled") or 0),
        is_active=bool(row.get("is_active", True)),
    )


def _position_params(p: Position) -> tuple:
    return (
        p.title,
        p.code,
        p.description,
        p.department_id,
        p.grade_id,
        p.reports_to_id,
        int(p.is_head_of_department),
        int(p.is_supervisor),
        int(p.is_manager),
        int(p.is_director),
        p.number_of_positions,
        p.currently_filled,
        int(p.is_active),
    )


class MySQLPositionRepository(PositionRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, position_id: int) -> Optional[Position]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM positions WHERE position_id=%s", (position_id,))
            row = fetchone(cur)
            return _row_to_position(row) if row else None

    def get_by_code(self, code: str) -> Optional[Position]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM positions WHERE code=%s", (code,))
            row = fetchone(cur)
            return _row_to_position(row) if row else None

    def list_positions(
        self,
        *,
        department_id: Optional[int] = None,
        grade_id: Optional[int] = None,
        search: Optional[str] = None,
        active_only: bool = False,
    ) -> Sequence[Position]:
        clauses = []
        if department_id is not None:
            clauses.append(("department_id=%s", (department_id,)))
        if grade_id is not None:
            clauses.append(("grade_id=%s", (grade_id,)))
        if active_only:
            clauses.append(("is_active=1", ()))
        if search:
            like = f"%{search}%"
            clauses.append(("(title LIKE %s OR code LIKE %s)", (like, like)))
        where, params = build_where(clauses)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM positions {where} ORDER BY title ASC", tuple(params))
            return [_row_to_position(r) for r in fetchall(cur)]

    def count_active_reports(self, position_id: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT COUNT(*) AS c FROM positions WHERE reports_to_id=%s AND is_active=1",
                (position_id,),
            )
            row = fetchone(cur)
            return int(row["c"]) if row else 0

    def create(self, position: Position) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO positions(
                    title, code, description, department_id, grade_id, reports_to_id,
                    is_head_of_department, is_supervisor, is_manager, is_director,
                    number_of_positions, currently_filled, is_active
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                _position_params(position),
            )
            return int(cur.lastrowid)

    def update(self, position: Position) -> bool:
        # currently_filled is left to increment/decrement; the capacity guard runs against the live count.
        params = _position_params(position)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE positions
                SET title=%s, code=%s, description=%s, department_id=%s, grade_id=%s, reports_to_id=%s,
                    is_head_of_department=%s, is_supervisor=%s, is_manager=%s, is_director=%s,
                    number_of_positions=%s, is_active=%s
                WHERE position_id=%s AND currently_filled <= %s
                """,
                params[:11] + params[12:] + (position.position_id, position.number_of_positions),
            )
            return cur.rowcount > 0

    def set_active(self, position_id: int, *, is_active: bool) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE positions SET is_active=%s WHERE position_id=%s", (int(is_active), position_id))
            return cur.rowcount > 0

    def increment_filled(self, position_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE positions
                SET currently_filled = currently_filled + 1
                WHERE position_id=%s AND currently_filled < number_of_positions
                """,
                (position_id,),
            )
            return cur.rowcount > 0

    def decrement_filled(self, position_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE positions SET currently_filled = GREATEST(currently_filled - 1, 0) WHERE position_id=%s",
                (position_id,),
            )
            return cur.rowcount > 0
