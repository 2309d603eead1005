from datetime import date

import pytest

from fakes import make_employee
from hrims.core.enums import OvertimeStatus, OvertimeType
from hrims.core.exceptions import ValidationError
from hrims.overtime.rules import DEFAULT_OVERTIME_RULES
from hrims.overtime.service import overtime_amount

WORK_DATE = date(2026, 3, 7)


@pytest.fixture
def overtime(container, employees_repo):
    # 416000 a month -> 2400.00 an hour
    employees_repo.add(make_employee(basic_salary=416000.0))
    return container.overtime_service


def _submit(overtime, **kw):
    data = dict(employee_id=1, overtime_type=OvertimeType.REGULAR, work_date=WORK_DATE, hours=3, reason="Month end")
    data.update(kw)
    return overtime.submit(**data)


def test_amount_uses_rule_multiplier_and_minimum_hours():
    rules = DEFAULT_OVERTIME_RULES
    assert overtime_amount(rules[OvertimeType.REGULAR], 3, 2400) == 10800
    assert overtime_amount(rules[OvertimeType.WEEKEND], 5, 2400) == 14400
    assert overtime_amount(rules[OvertimeType.HOLIDAY], 3, 2400) == 0


def test_submit_pending_claim(overtime):
    claim = _submit(overtime)

    assert claim.claim_number == "OVT-2026-03-0001"
    assert claim.status == OvertimeStatus.PENDING_APPROVAL
    assert claim.hourly_rate == 2400.0
    assert claim.multiplier == 1.5
    assert claim.amount == 10800


def test_short_regular_claim_is_auto_approved(overtime):
    claim = _submit(overtime, hours=2)

    assert claim.status == OvertimeStatus.AUTO_APPROVED
    assert claim.approved_at is not None


def test_daily_cap_counts_earlier_claims(overtime):
    _submit(overtime, hours=3)

    with pytest.raises(ValidationError, match="maximum 4 hours"):
        _submit(overtime, hours=2)


def test_rejected_claims_do_not_count_toward_cap(overtime):
    claim = _submit(overtime, hours=3)
    overtime.reject(claim.claim_id, reason="Not pre-approved")

    assert _submit(overtime, hours=3).claim_number == "OVT-2026-03-0002"


@pytest.mark.parametrize("hours", [0, -1])
def test_hours_must_be_positive(overtime, hours):
    with pytest.raises(ValidationError):
        _submit(overtime, hours=hours)


def test_future_date_is_refused(overtime):
    with pytest.raises(ValidationError):
        _submit(overtime, work_date=date(2026, 3, 11))


def test_approve_and_reject_only_pending(overtime):
    pending = _submit(overtime, hours=3, work_date=date(2026, 3, 6))
    auto = _submit(overtime, hours=1)

    approved = overtime.approve(pending.claim_id, approved_by=5)
    assert approved.status == OvertimeStatus.APPROVED
    assert approved.approved_by == 5

    with pytest.raises(ValidationError):
        overtime.approve(auto.claim_id)
    with pytest.raises(ValidationError):
        overtime.reject(approved.claim_id, reason="late")


def test_reject_needs_reason(overtime):
    claim = _submit(overtime)

    with pytest.raises(ValidationError):
        overtime.reject(claim.claim_id, reason=" ")


def test_cancel_pending_but_not_approved(overtime):
    claim = _submit(overtime)
    assert overtime.cancel(claim.claim_id).status == OvertimeStatus.CANCELLED

    approved = overtime.approve(_submit(overtime, work_date=date(2026, 3, 5)).claim_id)
    with pytest.raises(ValidationError):
        overtime.cancel(approved.claim_id)
