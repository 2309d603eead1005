from __future__ import annotations

from typing import Iterable, Optional

from ..common.sequences import next_in_sequence


def employee_number_prefix(department_code: Optional[str], year: int) -> str:
    code = (department_code or "").strip().upper()
    return f"EMP/{code}/{year}/" if code else f"EMP/{year}/"


def next_employee_number(existing: Iterable[str], *, department_code: Optional[str], year: int) -> str:
    """Next number in the per-department, per-year sequence, e.g. ``EMP/FIN/2026/004``."""

    return next_in_sequence(existing, prefix=employee_number_prefix(department_code, year), width=3)
