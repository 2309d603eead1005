from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional, Tuple

from ..core.enums import LoanStatus


@dataclass(frozen=True)
class LoanType:
    loan_type_id: int
    code: str
    name: str
    min_amount: float
    max_amount: float
    min_repayment_period: int
    max_repayment_period: int
    interest_rate: float
    processing_fee: float = 0.0
    description: Optional[str] = None
    # Grade codes allowed to apply; empty means every grade.
    eligible_grades: Tuple[str, ...] = ()
    required_documents: Tuple[str, ...] = ()
    is_active: bool = True

    def is_grade_eligible(self, grade_code: Optional[str]) -> bool:
        return not self.eligible_grades or (grade_code or "") in self.eligible_grades


@dataclass(frozen=True)
class LoanApplication:
    application_id: int
    application_number: str
    employee_id: int
    loan_type_code: str
    amount: float
    repayment_period: int
    interest_rate: float
    monthly_repayment: float
    total_repayment: float
    total_interest: float
    status: LoanStatus
    purpose: Optional[str] = None
    currency: str = "MWK"
    approved_amount: Optional[float] = None
    approved_interest_rate: Optional[float] = None
    approved_repayment_period: Optional[int] = None
    approval_date: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    disbursement_date: Optional[date] = None
    disbursed_by: Optional[int] = None
    created_by: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def principal(self) -> float:
        return self.approved_amount if self.approved_amount is not None else self.amount
