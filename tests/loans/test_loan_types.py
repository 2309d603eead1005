import pytest

from hrims.core.exceptions import ConflictError, NotFoundError, ValidationError
from hrims.loans.model import LoanType
from hrims.loans.service import LoanTypeService


def _type(**kw):
    data = dict(
        loan_type_id=0,
        code="emergency",
        name="Emergency Loan",
        min_amount=5000,
        max_amount=200000,
        min_repayment_period=1,
        max_repayment_period=6,
        interest_rate=0,
        eligible_grades=(" m5", "m7 ", ""),
    )
    data.update(kw)
    return LoanType(**data)


def test_create_normalizes_codes(loan_types_repo):
    created = LoanTypeService(loan_types_repo).create_type(_type())

    assert created.code == "EMERGENCY"
    assert created.eligible_grades == ("M5", "M7")
    assert created.is_grade_eligible("M5")
    assert not created.is_grade_eligible("M11")


def test_duplicate_code_conflicts(loan_types_repo):
    with pytest.raises(ConflictError):
        LoanTypeService(loan_types_repo).create_type(_type(code="personal"))


@pytest.mark.parametrize(
    "changes",
    [
        {"min_amount": 300000},
        {"max_amount": 0},
        {"min_repayment_period": 0},
        {"min_repayment_period": 12},
        {"interest_rate": -1},
    ],
)
def test_invalid_limits(loan_types_repo, changes):
    with pytest.raises(ValidationError):
        LoanTypeService(loan_types_repo).create_type(_type(**changes))


def test_lookup_by_code_and_deactivate(loan_types_repo):
    service = LoanTypeService(loan_types_repo)

    assert service.get_type_by_code("personal").loan_type_id == 1
    service.deactivate_type(1)
    assert [t.code for t in service.list_types(active_only=True)] == ["VEHICLE"]
    with pytest.raises(NotFoundError):
        service.get_type_by_code("HOUSING")
