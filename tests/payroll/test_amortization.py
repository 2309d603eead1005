import pytest

from hrims.core.exceptions import ValidationError
from hrims.payroll.calculator.amortization import amortize, installments


def test_amortize_standard_loan():
    s = amortize(100000, 12, 12)

    assert s.monthly_payment == 8884.88
    assert s.total_payment == pytest.approx(s.monthly_payment * 12, abs=0.01)
    assert s.total_interest == pytest.approx(s.total_payment - 100000, abs=0.01)
    assert s.total_interest == 6618.56


def test_amortize_zero_rate_spreads_principal_evenly():
    s = amortize(12000, 0, 12)

    assert s.monthly_payment == 1000.0
    assert s.total_payment == 12000.0
    assert s.total_interest == 0.0


@pytest.mark.parametrize(
    "principal, rate, months",
    [
        (0, 12, 12),
        (-5, 12, 12),
        (1000, 12, 0),
        (1000, -1, 12),
    ],
)
def test_amortize_rejects_bad_input(principal, rate, months):
    with pytest.raises(ValidationError):
        amortize(principal, rate, months)


def test_installments_split_interest_and_principal():
    plan = installments(amortize(100000, 12, 12))

    assert len(plan) == 12
    first = plan[0]
    assert first.interest == 1000.0
    assert first.principal == 7884.88
    assert first.balance == 92115.12

    assert plan[-1].balance == 0.0
    assert sum(i.principal for i in plan) == pytest.approx(100000, abs=0.01)
