import pytest

from fakes import make_grade
from hrims.core.exceptions import ValidationError
from hrims.payroll.calculator.base import SalaryComponents
from hrims.payroll.calculator.standard_calculator import StandardCompensationCalculator
from hrims.payroll.service import CompensationService


def test_gross_salary_is_sum_of_components():
    calc = StandardCompensationCalculator()
    components = SalaryComponents(
        basic_salary=400000,
        house_allowance=50000,
        car_allowance=30000,
        travel_allowance=20000,
    )

    assert calc.gross_salary(components) == 500000
    assert calc.total_allowances(components) == 100000


def test_negative_component_is_rejected():
    with pytest.raises(ValidationError):
        StandardCompensationCalculator().gross_salary(SalaryComponents(basic_salary=1000, house_allowance=-1))


def test_hourly_rate_uses_260_working_days_of_8_hours():
    assert StandardCompensationCalculator().hourly_rate(520000) == pytest.approx(3000.0)


def test_breakdown_defaults_to_grade_midpoint():
    b = CompensationService().breakdown(make_grade())

    assert b.basic_salary == 400000
    assert b.total_allowances == 70000
    assert b.gross_salary == 470000
    assert b.annual_gross_salary == 5640000
    assert b.hourly_rate == 2307.69
    assert b.overtime_rates["REGULAR"] == 3461.54
    assert b.maximum_loan_eligibility == 1000000


def test_breakdown_rejects_salary_outside_grade_band():
    with pytest.raises(ValidationError):
        CompensationService().breakdown(make_grade(), basic_salary=900000)
