from __future__ import annotations

import logging
from dataclasses import replace
from typing import Optional, Sequence

from ..common.validators import require_non_empty, require_non_negative
from ..core.enums import GradeBand
from ..core.exceptions import ConflictError, NotFoundError, ValidationError
from .model import Grade
from .repository import GradeRepository

logger = logging.getLogger(__name__)

# Position of each grade on the ladder, used to compare approval authority.
GRADE_LEVELS = {
    "M3": 1,
    "M4": 2,
    "M5": 3,
    "M6": 4,
    "M7": 5,
    "M8": 6,
    "M9": 7,
    "M10": 8,
    "M11": 9,
    "M13": 10,
    "M15": 11,
    "M17": 12,
    "CEO": 13,
}

# Highest grade whose requests an approver of the given grade may sign off.
APPROVAL_LIMITS = {
    "M3": "M11",
    "M4": "M11",
    "M5": "M11",
    "M6": "M13",
    "M7": "M15",
    "M8": "M15",
    "M9": "M15",
    "M10": "M17",
    "M11": "M17",
    "M13": "M17",
    "M15": "M17",
    "M17": "CEO",
}
DEFAULT_APPROVAL_LIMIT = "M17"


def validate_salary_in_range(grade: Grade, salary: float) -> float:
    band = grade.compensation.basic_salary
    if salary < band.minimum or salary > band.maximum:
        raise ValidationError(
            f"Basic salary {salary:,.2f} is outside grade {grade.code} range "
            f"({band.minimum:,.2f} - {band.maximum:,.2f})"
        )
    return salary


def default_salary(grade: Grade) -> float:
    """Salary assigned when none is given: the grade midpoint."""
    return grade.compensation.basic_salary.midpoint


def can_approve_up_to(approver_code: str, target_code: str) -> bool:
    limit = APPROVAL_LIMITS.get(approver_code, DEFAULT_APPROVAL_LIMIT)
    limit_level = GRADE_LEVELS.get(limit, 0)
    target_level = GRADE_LEVELS.get(target_code)
    if target_level is None:
        return False
    return target_level <= limit_level


class GradeService:
    """Use case: maintain grades and answer grade-derived questions."""

    def __init__(self, grades: GradeRepository):
        self._grades = grades

    def get_grade(self, grade_id: int) -> Grade:
        grade = self._grades.get_by_id(int(grade_id))
        if not grade:
            raise NotFoundError(f"Grade {grade_id} not found")
        return grade

    def list_grades(self, *, active_only: bool = False, band: Optional[GradeBand] = None) -> Sequence[Grade]:
        return self._grades.list_grades(active_only=active_only, band=band)

    def _validate(self, grade: Grade) -> Grade:
        name = require_non_empty(grade.name, "Grade name")
        code = require_non_empty(grade.code, "Grade code").upper()
        if grade.level <= 0:
            raise ValidationError("Grade level must be greater than zero")

        comp = grade.compensation
        band = comp.basic_salary
        for value, label in (
            (band.minimum, "Minimum salary"),
            (band.midpoint, "Midpoint salary"),
            (band.maximum, "Maximum salary"),
            (comp.house_allowance, "House allowance"),
            (comp.car_allowance, "Car allowance"),
            (comp.travel_allowance, "Travel allowance"),
            (grade.limits.max_loan_amount, "Maximum loan amount"),
        ):
            require_non_negative(value, label)
        if not band.minimum <= band.midpoint <= band.maximum:
            raise ValidationError("Salary range must satisfy minimum <= midpoint <= maximum")
        if comp.overtime_rate <= 0:
            raise ValidationError("Overtime rate must be greater than zero")

        if grade.next_grade_id is not None:
            if grade.next_grade_id == grade.grade_id:
                raise ValidationError("A grade cannot progress to itself")
            if not self._grades.get_by_id(grade.next_grade_id):
                raise NotFoundError("Next grade not found")

        return replace(grade, name=name, code=code)

    def create_grade(self, grade: Grade) -> Grade:
        grade = self._validate(grade)
        if self._grades.get_by_code(grade.code):
            raise ConflictError(f"Grade code {grade.code} already exists")

        grade_id = self._grades.create(grade)
        logger.info("Created grade %s (id=%s)", grade.code, grade_id)
        return replace(grade, grade_id=grade_id)

    def update_grade(self, grade: Grade) -> Grade:
        existing = self.get_grade(grade.grade_id)
        grade = self._validate(grade)
        if grade.code != existing.code:
            other = self._grades.get_by_code(grade.code)
            if other and other.grade_id != grade.grade_id:
                raise ConflictError(f"Grade code {grade.code} already exists")

        self._grades.update(grade)
        return grade

    def deactivate_grade(self, grade_id: int) -> None:
        self.get_grade(grade_id)
        self._grades.set_active(int(grade_id), is_active=False)
        logger.info("Deactivated grade id=%s", grade_id)

    def next_grade(self, grade_id: int) -> Optional[Grade]:
        grade = self.get_grade(grade_id)
        if grade.next_grade_id is None:
            return None
        return self._grades.get_by_id(grade.next_grade_id)

    def can_approve(self, *, approver_grade_id: int, target_grade_id: int) -> bool:
        approver = self.get_grade(approver_grade_id)
        target = self.get_grade(target_grade_id)
        return can_approve_up_to(approver.code, target.code)
