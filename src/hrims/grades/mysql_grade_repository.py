from __future__ import annotations

from typing import Optional, Sequence

from ..core.enums import GradeBand
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_float, build_where, db_cursor, fetchall, fetchone
from .model import Grade, GradeCompensation, GradeLimits, SalaryRange
from .repository import GradeRepository

_COLUMNS = """
    grade_id, name, code, level, band, description, next_grade_id, is_active,
    salary_min, salary_mid, salary_max, house_allowance, car_allowance, travel_allowance, overtime_rate,
    max_loan_amount, requires_manager_approval, requires_director_approval, max_approval_level
"""


def _row_to_grade(row: dict) -> Grade:
    return Grade(
        grade_id=int(row["grade_id"]),
        name=row["name"],
        code=row["code"],
        level=int(row["level"]),
        band=GradeBand(row["band"]),
        description=row.get("description"),
        next_grade_id=row.get("next_grade_id"),
        is_active=bool(row.get("is_active", True)),
        compensation=GradeCompensation(
            basic_salary=SalaryRange(
                minimum=as_float(row["salary_min"]),
                midpoint=as_float(row["salary_mid"]),
                maximum=as_float(row["salary_max"]),
            ),
            house_allowance=as_float(row.get("house_allowance")),
            car_allowance=as_float(row.get("car_allowance")),
            travel_allowance=as_float(row.get("travel_allowance")),
            overtime_rate=as_float(row.get("overtime_rate"), 1.0),
        ),
        limits=GradeLimits(
            max_loan_amount=as_float(row.get("max_loan_amount")),
            requires_manager_approval=bool(row.get("requires_manager_approval", True)),
            requires_director_approval=bool(row.get("requires_director_approval", False)),
            max_approval_level=row.get("max_approval_level") or "M11",
        ),
    )


def _grade_params(grade: Grade) -> tuple:
    comp = grade.compensation
    return (
        grade.name,
        grade.code,
        grade.level,
        grade.band.value,
        grade.description,
        grade.next_grade_id,
        int(grade.is_active),
        comp.basic_salary.minimum,
        comp.basic_salary.midpoint,
        comp.basic_salary.maximum,
        comp.house_allowance,
        comp.car_allowance,
        comp.travel_allowance,
        comp.overtime_rate,
        grade.limits.max_loan_amount,
        int(grade.limits.requires_manager_approval),
        int(grade.limits.requires_director_approval),
        grade.limits.max_approval_level,
    )


class MySQLGradeRepository(GradeRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, grade_id: int) -> Optional[Grade]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM grades WHERE grade_id=%s", (grade_id,))
            row = fetchone(cur)
            return _row_to_grade(row) if row else None

    def get_by_code(self, code: str) -> Optional[Grade]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM grades WHERE code=%s", (code,))
            row = fetchone(cur)
            return _row_to_grade(row) if row else None

    def list_grades(self, *, active_only: bool = False, band: Optional[GradeBand] = None) -> Sequence[Grade]:
        clauses = []
        if active_only:
            clauses.append(("is_active=1", ()))
        if band is not None:
            clauses.append(("band=%s", (band.value,)))
        where, params = build_where(clauses)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM grades {where} ORDER BY level ASC", tuple(params))
            return [_row_to_grade(r) for r in fetchall(cur)]

    def create(self, grade: Grade) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO grades(
                    name, code, level, band, description, next_grade_id, is_active,
                    salary_min, salary_mid, salary_max, house_allowance, car_allowance, travel_allowance,
                    overtime_rate, max_loan_amount, requires_manager_approval, requires_director_approval,
                    max_approval_level
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                _grade_params(grade),
            )
            return int(cur.lastrowid)

    def update(self, grade: Grade) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE grades
                SET name=%s, code=%s, level=%s, band=%s, description=%s, next_grade_id=%s, is_active=%s,
                    salary_min=%s, salary_mid=%s, salary_max=%s, house_allowance=%s, car_allowance=%s,
                    travel_allowance=%s, overtime_rate=%s, max_loan_amount=%s, requires_manager_approval=%s,
                    requires_director_approval=%s, max_approval_level=%s
                WHERE grade_id=%s
                """,
                _grade_params(grade) + (grade.grade_id,),
            )
            return cur.rowcount > 0

    def set_active(self, grade_id: int, *, is_active: bool) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE grades SET is_active=%s WHERE grade_id=%s", (int(is_active), grade_id))
            return cur.rowcount > 0
