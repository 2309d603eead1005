from dataclasses import replace

import pytest

from fakes import make_grade
from hrims.core.exceptions import ConflictError, ValidationError
from hrims.grades.model import SalaryRange
from hrims.grades.service import GradeService, can_approve_up_to, validate_salary_in_range


@pytest.mark.parametrize(
    "approver, target, expected",
    [
        ("M5", "M11", True),
        ("M5", "M13", False),
        ("M9", "M15", True),
        ("M17", "CEO", True),
        ("M11", "CEO", False),
        ("M5", "X1", False),
    ],
)
def test_can_approve_up_to(approver, target, expected):
    assert can_approve_up_to(approver, target) is expected


def test_salary_must_sit_inside_grade_band():
    grade = make_grade()

    assert validate_salary_in_range(grade, 300000) == 300000
    with pytest.raises(ValidationError):
        validate_salary_in_range(grade, 299999.99)


def test_create_grade_uppercases_code(grades_repo):
    grade = GradeService(grades_repo).create_grade(make_grade(0, "m7", 5))

    assert grade.code == "M7"
    assert grades_repo.get_by_code("M7") is not None


def test_duplicate_grade_code_conflicts(grades_repo):
    with pytest.raises(ConflictError):
        GradeService(grades_repo).create_grade(make_grade(0, "M5"))


def test_salary_range_must_be_ordered(grades_repo):
    bad = make_grade(0, "M9", 7)
    bad = replace(bad, compensation=replace(bad.compensation, basic_salary=SalaryRange(500, 400, 600)))

    with pytest.raises(ValidationError):
        GradeService(grades_repo).create_grade(bad)


def test_next_grade_and_approval_between_grades(grades_repo):
    grades_repo.update(replace(grades_repo.get_by_id(1), next_grade_id=2))
    service = GradeService(grades_repo)

    assert service.next_grade(1).code == "M11"
    assert service.next_grade(2) is None
    assert service.can_approve(approver_grade_id=2, target_grade_id=1) is True
