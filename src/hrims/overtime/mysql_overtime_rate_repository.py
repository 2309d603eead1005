from __future__ import annotations

from typing import Dict, Optional

from ..core.enums import OvertimeType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_float, db_cursor, fetchall
from .repository import OvertimeRateRepository
from .rules import OvertimeRule


class MySQLOvertimeRateRepository(OvertimeRateRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_rates(self) -> Dict[OvertimeType, OvertimeRule]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT overtime_type, multiplier, minimum_hours, max_hours_per_day, auto_approve_hours
                FROM overtime_rates
                """
            )
            return {
                OvertimeType(r["overtime_type"]): OvertimeRule(
                    multiplier=as_float(r["multiplier"]),
                    minimum_hours=as_float(r["minimum_hours"]),
                    max_hours_per_day=as_float(r["max_hours_per_day"]),
                    auto_approve_hours=as_float(r["auto_approve_hours"]),
                )
                for r in fetchall(cur)
            }

    def save_rate(self, overtime_type: OvertimeType, rule: OvertimeRule, *, updated_by: Optional[int] = None) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO overtime_rates
                    (overtime_type, multiplier, minimum_hours, max_hours_per_day, auto_approve_hours, updated_by)
                VALUES (%s, %s, %s, %s, %s, %s)
                ON DUPLICATE KEY UPDATE
                    multiplier=VALUES(multiplier),
                    minimum_hours=VALUES(minimum_hours),
                    max_hours_per_day=VALUES(max_hours_per_day),
                    auto_approve_hours=VALUES(auto_approve_hours),
                    updated_by=VALUES(updated_by)
                """,
                (
                    overtime_type.value,
                    rule.multiplier,
                    rule.minimum_hours,
                    rule.max_hours_per_day,
                    rule.auto_approve_hours,
                    updated_by,
                ),
            )

    def delete_rate(self, overtime_type: OvertimeType) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM overtime_rates WHERE overtime_type=%s", (overtime_type.value,))
            return cur.rowcount > 0
