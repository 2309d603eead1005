from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from ..core.constants import DEFAULT_MAX_APPROVAL_LEVEL, DEFAULT_OVERTIME_RATE
from ..core.enums import GradeBand


@dataclass(frozen=True)
class SalaryRange:
    minimum: float
    midpoint: float
    maximum: float


@dataclass(frozen=True)
class GradeCompensation:
    basic_salary: SalaryRange
    house_allowance: float = 0.0
    car_allowance: float = 0.0
    travel_allowance: float = 0.0
    overtime_rate: float = DEFAULT_OVERTIME_RATE


@dataclass(frozen=True)
class GradeLimits:
    max_loan_amount: float = 0.0
    requires_manager_approval: bool = True
    requires_director_approval: bool = False
    max_approval_level: str = DEFAULT_MAX_APPROVAL_LEVEL


@dataclass(frozen=True)
class Grade:
    """Pay-level classification (M3..M17, CEO) with its salary band and limits."""

    grade_id: int
    name: str
    code: str
    level: int
    band: GradeBand
    compensation: GradeCompensation
    limits: GradeLimits = field(default_factory=GradeLimits)
    description: Optional[str] = None
    next_grade_id: Optional[int] = None
    is_active: bool = True
