from __future__ import annotations

from ...core.constants import WORKING_DAYS_PER_YEAR, WORKING_HOURS_PER_DAY
from ...core.exceptions import ValidationError
from .base import CompensationCalculator, SalaryComponents


class StandardCompensationCalculator(CompensationCalculator):
    """Standard rule: gross = basic + house + car + travel; hourly from 260 x 8h a year."""

    def gross_salary(self, components: SalaryComponents) -> float:
        parts = (
            components.basic_salary,
            components.house_allowance,
            components.car_allowance,
            components.travel_allowance,
        )
        if any(p < 0 for p in parts):
            raise ValidationError("Salary components cannot be negative")
        return round(sum(parts), 2)

    def total_allowances(self, components: SalaryComponents) -> float:
        return round(components.house_allowance + components.car_allowance + components.travel_allowance, 2)

    def hourly_rate(self, monthly_basic_salary: float) -> float:
        annual = monthly_basic_salary * 12
        return annual / (WORKING_DAYS_PER_YEAR * WORKING_HOURS_PER_DAY)
