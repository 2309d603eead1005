from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Optional

from ..core.enums import OvertimeType
from ..grades.model import Grade
from ..grades.service import default_salary, validate_salary_in_range
from ..overtime.rules import DEFAULT_OVERTIME_RULES, OvertimeRule
from .calculator.amortization import RepaymentSchedule, amortize
from .calculator.base import CompensationCalculator, SalaryComponents
from .calculator.standard_calculator import StandardCompensationCalculator


@dataclass(frozen=True)
class CompensationBreakdown:
    grade_code: str
    basic_salary: float
    house_allowance: float
    car_allowance: float
    travel_allowance: float
    total_allowances: float
    gross_salary: float
    annual_gross_salary: float
    hourly_rate: float
    overtime_rates: dict
    maximum_loan_eligibility: float

    def to_dict(self) -> dict:
        return {
            "gradeCode": self.grade_code,
            "basicSalary": self.basic_salary,
            "houseAllowance": self.house_allowance,
            "carAllowance": self.car_allowance,
            "travelAllowance": self.travel_allowance,
            "totalAllowances": self.total_allowances,
            "grossSalary": self.gross_salary,
            "annualGrossSalary": self.annual_gross_salary,
            "hourlyRate": self.hourly_rate,
            "overtimeRates": dict(self.overtime_rates),
            "maximumLoanEligibility": self.maximum_loan_eligibility,
        }


class CompensationService:
    def __init__(
        self,
        *,
        calculator: Optional[CompensationCalculator] = None,
        overtime_rules: Optional[Callable[[], Dict[OvertimeType, OvertimeRule]]] = None,
    ):
        self._calculator = calculator or StandardCompensationCalculator()
        self._overtime_rules = overtime_rules or (lambda: DEFAULT_OVERTIME_RULES)

    @property
    def calculator(self) -> CompensationCalculator:
        return self._calculator

    def gross_salary(self, components: SalaryComponents) -> float:
        return self._calculator.gross_salary(components)

    def hourly_rate(self, monthly_basic_salary: float) -> float:
        return self._calculator.hourly_rate(monthly_basic_salary)

    def breakdown(self, grade: Grade, basic_salary: Optional[float] = None) -> CompensationBreakdown:
        """Monthly pay of someone on ``grade``; the grade midpoint when no salary is given."""

        if basic_salary is None:
            basic_salary = default_salary(grade)
        else:
            validate_salary_in_range(grade, basic_salary)

        comp = grade.compensation
        components = SalaryComponents(
            basic_salary=basic_salary,
            house_allowance=comp.house_allowance,
            car_allowance=comp.car_allowance,
            travel_allowance=comp.travel_allowance,
        )
        gross = self._calculator.gross_salary(components)
        hourly = self._calculator.hourly_rate(basic_salary)
        allowances = round(comp.house_allowance + comp.car_allowance + comp.travel_allowance, 2)

        return CompensationBreakdown(
            grade_code=grade.code,
            basic_salary=round(basic_salary, 2),
            house_allowance=comp.house_allowance,
            car_allowance=comp.car_allowance,
            travel_allowance=comp.travel_allowance,
            total_allowances=allowances,
            gross_salary=gross,
            annual_gross_salary=round(gross * 12, 2),
            hourly_rate=round(hourly, 2),
            overtime_rates={
                t.value: round(hourly * rule.multiplier, 2) for t, rule in self._overtime_rules().items()
            },
            maximum_loan_eligibility=grade.limits.max_loan_amount,
        )

    def repayment_schedule(self, *, principal: float, annual_rate: float, months: int) -> RepaymentSchedule:
        return amortize(principal, annual_rate, months)
