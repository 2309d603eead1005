from datetime import date

import pytest

from fakes import make_employee, make_grade
from hrims.core.enums import OvertimeStatus, OvertimeType, Role
from hrims.core.exceptions import ValidationError
from hrims.overtime.rules import DEFAULT_OVERTIME_RULES

RATES = "/api/v1/overtime-claims/rates"


def _configure(container, overtime_type=OvertimeType.REGULAR, **kw):
    data = dict(multiplier=2.0, minimum_hours=0, max_hours_per_day=6, auto_approve_hours=0)
    data.update(kw)
    return container.overtime_rate_service.configure(overtime_type, **data)


def test_defaults_apply_until_configured(container):
    assert container.overtime_rate_service.rules() == DEFAULT_OVERTIME_RULES


def test_configured_rate_overrides_only_its_type(container):
    _configure(container)

    rules = container.overtime_rate_service.rules()
    assert rules[OvertimeType.REGULAR].multiplier == 2.0
    assert rules[OvertimeType.WEEKEND] == DEFAULT_OVERTIME_RULES[OvertimeType.WEEKEND]


def test_reset_restores_default(container):
    _configure(container)

    assert container.overtime_rate_service.reset(OvertimeType.REGULAR) == DEFAULT_OVERTIME_RULES[OvertimeType.REGULAR]
    assert container.overtime_rate_service.rules() == DEFAULT_OVERTIME_RULES


@pytest.mark.parametrize(
    "kw",
    [
        dict(multiplier=0.5),
        dict(minimum_hours=-1),
        dict(max_hours_per_day=0),
        dict(minimum_hours=8, max_hours_per_day=6),
        dict(auto_approve_hours=7),
    ],
)
def test_invalid_rates_are_refused(container, overtime_rates_repo, kw):
    with pytest.raises(ValidationError):
        _configure(container, **kw)
    assert overtime_rates_repo.rates == {}


def test_claims_use_configured_rate(container, employees_repo):
    employees_repo.add(make_employee(basic_salary=416000.0))
    _configure(container, multiplier=2.0, max_hours_per_day=6)

    claim = container.overtime_service.submit(
        employee_id=1,
        overtime_type=OvertimeType.REGULAR,
        work_date=date(2026, 3, 7),
        hours=5,
    )

    assert claim.multiplier == 2.0
    assert claim.amount == 24000
    assert claim.status == OvertimeStatus.PENDING_APPROVAL


def test_compensation_breakdown_follows_configured_rate(container):
    _configure(container, multiplier=2.0)

    breakdown = container.compensation_service.breakdown(make_grade(), basic_salary=416000.0)

    assert breakdown.overtime_rates["REGULAR"] == 4800.0


def test_configure_route_needs_configure_permission(client, auth_header):
    body = {"multiplier": 1.75}

    assert client.put(f"{RATES}/REGULAR", json=body, headers=auth_header(Role.MANAGER)).status_code == 403

    resp = client.put(f"{RATES}/REGULAR", json=body, headers=auth_header(Role.HR_ADMIN))
    assert resp.status_code == 200
    data = resp.get_json()["data"]
    assert data["multiplier"] == 1.75
    assert data["maxHoursPerDay"] == DEFAULT_OVERTIME_RULES[OvertimeType.REGULAR].max_hours_per_day


def test_rates_route_lists_configured_values(client, auth_header):
    hr = auth_header(Role.HR_ADMIN)
    client.put(f"{RATES}/WEEKEND", json={"multiplier": 2.25}, headers=hr)

    rates = {r["overtimeType"]: r for r in client.get(RATES, headers=auth_header(Role.EMPLOYEE)).get_json()["data"]}
    assert rates["WEEKEND"]["multiplier"] == 2.25

    client.delete(f"{RATES}/WEEKEND", headers=hr)
    rates = {r["overtimeType"]: r for r in client.get(RATES, headers=hr).get_json()["data"]}
    assert rates["WEEKEND"]["multiplier"] == 2.0


def test_unknown_overtime_type_is_a_validation_error(client, auth_header):
    resp = client.put(f"{RATES}/NIGHT", json={"multiplier": 2}, headers=auth_header(Role.HR_ADMIN))

    assert resp.status_code == 400
