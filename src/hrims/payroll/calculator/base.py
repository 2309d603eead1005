from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class SalaryComponents:
    """Monthly pay components of one employee."""

    basic_salary: float
    house_allowance: float = 0.0
    car_allowance: float = 0.0
    travel_allowance: float = 0.0


class CompensationCalculator(ABC):
    """Calculator interface (Strategy Pattern for compensation)."""

    @abstractmethod
    def gross_salary(self, components: SalaryComponents) -> float:
        raise NotImplementedError

    @abstractmethod
    def hourly_rate(self, monthly_basic_salary: float) -> float:
        raise NotImplementedError
