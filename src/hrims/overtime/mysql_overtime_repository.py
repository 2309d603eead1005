from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

from ..core.enums import OvertimeStatus, OvertimeType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_float, build_where, db_cursor, fetchall, fetchone
from .model import OvertimeClaim
from .repository import OvertimeRepository

_FIELDS = (
    "claim_number",
    "employee_id",
    "overtime_type",
    "work_date",
    "hours",
    "multiplier",
    "hourly_rate",
    "amount",
    "status",
    "reason",
    "approved_by",
    "approved_at",
    "rejection_reason",
)
_COLUMNS = "claim_id, " + ", ".join(_FIELDS) + ", created_at"


def _row_to_claim(row: dict) -> OvertimeClaim:
    return OvertimeClaim(
        claim_id=int(row["claim_id"]),
        claim_number=row["claim_number"],
        employee_id=int(row["employee_id"]),
        overtime_type=OvertimeType(row["overtime_type"]),
        work_date=row["work_date"],
        hours=as_float(row["hours"]),
        multiplier=as_float(row["multiplier"]),
        hourly_rate=as_float(row["hourly_rate"]),
        amount=as_float(row["amount"]),
        status=OvertimeStatus(row["status"]),
        reason=row.get("reason"),
        approved_by=row.get("approved_by"),
        approved_at=row.get("approved_at"),
        rejection_reason=row.get("rejection_reason"),
        created_at=row.get("created_at"),
    )


def _params(c: OvertimeClaim) -> tuple:
    return (
        c.claim_number,
        c.employee_id,
        c.overtime_type.value,
        c.work_date,
        c.hours,
        c.multiplier,
        c.hourly_rate,
        c.amount,
        c.status.value,
        c.reason,
        c.approved_by,
        c.approved_at,
        c.rejection_reason,
    )


class MySQLOvertimeRepository(OvertimeRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, claim_id: int) -> Optional[OvertimeClaim]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM overtime_claims WHERE claim_id=%s", (claim_id,))
            row = fetchone(cur)
            return _row_to_claim(row) if row else None

    def list_claims(
        self,
        *,
        employee_id: Optional[int] = None,
        status: Optional[OvertimeStatus] = None,
    ) -> Sequence[OvertimeClaim]:
        clauses = []
        if employee_id is not None:
            clauses.append(("employee_id=%s", (employee_id,)))
        if status is not None:
            clauses.append(("status=%s", (status.value,)))
        where, params = build_where(clauses)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM overtime_claims {where} ORDER BY work_date DESC, claim_id DESC",
                tuple(params),
            )
            return [_row_to_claim(r) for r in fetchall(cur)]

    def hours_on(self, *, employee_id: int, work_date: date) -> float:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT COALESCE(SUM(hours), 0) AS total
                FROM overtime_claims
                WHERE employee_id=%s AND work_date=%s AND status NOT IN ('REJECTED', 'CANCELLED')
                """,
                (employee_id, work_date),
            )
            row = fetchone(cur)
            return as_float(row["total"]) if row else 0.0

    def list_claim_numbers(self, *, prefix: str) -> Sequence[str]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT claim_number FROM overtime_claims WHERE claim_number LIKE %s", (f"{prefix}%",))
            return [r["claim_number"] for r in fetchall(cur)]

    def create(self, claim: OvertimeClaim) -> int:
        placeholders = ",".join(["%s"] * len(_FIELDS))
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"INSERT INTO overtime_claims({', '.join(_FIELDS)}) VALUES({placeholders})", _params(claim))
            return int(cur.lastrowid)

    def update(self, claim: OvertimeClaim) -> bool:
        assignments = ", ".join(f"{name}=%s" for name in _FIELDS)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"UPDATE overtime_claims SET {assignments} WHERE claim_id=%s",
                _params(claim) + (claim.claim_id,),
            )
            return cur.rowcount > 0
