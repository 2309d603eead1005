from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import date, datetime
from typing import Callable, Dict, FrozenSet, List, Optional, Sequence

from ..common.datetime_utils import now_local
from ..common.sequences import next_in_sequence
from ..common.validators import require_non_empty, require_non_negative
from ..core.constants import MAX_REPAYMENT_TO_SALARY_RATIO
from ..core.enums import EmploymentStatus, LoanStatus
from ..core.exceptions import ConflictError, NotFoundError, ValidationError
from ..employees.repository import EmployeeRepository
from ..grades.model import Grade
from ..grades.repository import GradeRepository
from ..payroll.calculator.amortization import Installment, amortize, installments
from .model import LoanApplication, LoanType
from .repository import LoanApplicationRepository, LoanTypeRepository

logger = logging.getLogger(__name__)

S = LoanStatus

# An employee may only have one application in flight.
OPEN_STATUSES: FrozenSet[LoanStatus] = frozenset({S.SUBMITTED, S.UNDER_REVIEW, S.PENDING_APPROVAL})
CANCELLABLE_STATUSES: FrozenSet[LoanStatus] = frozenset({S.DRAFT, S.SUBMITTED, S.PENDING_APPROVAL})

# Moves allowed through update_status. DISBURSED goes through disburse(), CANCELLED through cancel().
STATUS_TRANSITIONS: Dict[LoanStatus, FrozenSet[LoanStatus]] = {
    S.DRAFT: frozenset({S.SUBMITTED}),
    S.SUBMITTED: frozenset({S.UNDER_REVIEW, S.PENDING_APPROVAL, S.APPROVED, S.REJECTED}),
    S.UNDER_REVIEW: frozenset({S.PENDING_APPROVAL, S.APPROVED, S.REJECTED}),
    S.PENDING_APPROVAL: frozenset({S.UNDER_REVIEW, S.APPROVED, S.REJECTED}),
    S.APPROVED: frozenset(),
    S.DISBURSED: frozenset({S.ACTIVE}),
    S.ACTIVE: frozenset({S.COMPLETED, S.DEFAULTED}),
    S.REJECTED: frozenset(),
    S.COMPLETED: frozenset(),
    S.DEFAULTED: frozenset(),
    S.CANCELLED: frozenset(),
}


def application_number_prefix(year: int) -> str:
    return f"LN/{year}/"


class LoanTypeService:
    """Use case: configure the loan products employees can apply for."""

    def __init__(self, types: LoanTypeRepository):
        self._types = types

    def get_type(self, loan_type_id: int) -> LoanType:
        loan_type = self._types.get_by_id(int(loan_type_id))
        if not loan_type:
            raise NotFoundError(f"Loan type {loan_type_id} not found")
        return loan_type

    def get_type_by_code(self, code: str) -> LoanType:
        code = require_non_empty(code, "Loan type code").upper()
        loan_type = self._types.get_by_code(code)
        if not loan_type:
            raise NotFoundError(f"Loan type {code} not found")
        return loan_type

    def list_types(self, *, active_only: bool = False) -> Sequence[LoanType]:
        return self._types.list_types(active_only=active_only)

    def _validate(self, loan_type: LoanType) -> LoanType:
        code = require_non_empty(loan_type.code, "Loan type code").upper()
        name = require_non_empty(loan_type.name, "Loan type name")
        require_non_negative(loan_type.min_amount, "Minimum amount")
        require_non_negative(loan_type.interest_rate, "Interest rate")
        require_non_negative(loan_type.processing_fee, "Processing fee")
        if loan_type.max_amount <= 0 or loan_type.min_amount > loan_type.max_amount:
            raise ValidationError("Amount limits must satisfy 0 <= minimum <= maximum and maximum > 0")
        if loan_type.min_repayment_period < 1 or loan_type.min_repayment_period > loan_type.max_repayment_period:
            raise ValidationError("Repayment period limits must satisfy 1 <= minimum <= maximum")

        other = self._types.get_by_code(code)
        if other and other.loan_type_id != loan_type.loan_type_id:
            raise ConflictError(f"Loan type {code} already exists")
        grades = tuple(g.strip().upper() for g in loan_type.eligible_grades if g and g.strip())
        return replace(loan_type, code=code, name=name, eligible_grades=grades)

    def create_type(self, loan_type: LoanType) -> LoanType:
        loan_type = self._validate(replace(loan_type, loan_type_id=0))
        loan_type_id = self._types.create(loan_type)
        logger.info("Created loan type %s", loan_type.code)
        return replace(loan_type, loan_type_id=loan_type_id)

    def update_type(self, loan_type: LoanType) -> LoanType:
        self.get_type(loan_type.loan_type_id)
        loan_type = self._validate(loan_type)
        self._types.update(loan_type)
        return loan_type

    def deactivate_type(self, loan_type_id: int) -> LoanType:
        loan_type = replace(self.get_type(loan_type_id), is_active=False)
        self._types.update(loan_type)
        return loan_type


@dataclass(frozen=True)
class LoanStatistics:
    total_applications: int
    total_approved_amount: float
    total_disbursed_amount: float
    approved_not_disbursed: int
    monthly_commitment: float
    status_breakdown: Dict[str, Dict[str, float]]

    def to_dict(self) -> dict:
        return {
            "totalApplications": self.total_applications,
            "totalApprovedAmount": self.total_approved_amount,
            "totalDisbursedAmount": self.total_disbursed_amount,
            "activeLoans": self.approved_not_disbursed,
            "monthlyCommitment": self.monthly_commitment,
            "statusBreakdown": self.status_breakdown,
        }


class LoanApplicationService:
    """Use case: loan applications from submission to disbursement."""

    def __init__(
        self,
        applications: LoanApplicationRepository,
        types: LoanTypeRepository,
        employees: EmployeeRepository,
        grades: GradeRepository,
        *,
        clock: Callable[[], datetime] = now_local,
    ):
        self._applications = applications
        self._types = types
        self._employees = employees
        self._grades = grades
        self._clock = clock

    def get_application(self, application_id: int) -> LoanApplication:
        application = self._applications.get_by_id(int(application_id))
        if not application:
            raise NotFoundError(f"Loan application {application_id} not found")
        return application

    def list_applications(
        self,
        *,
        employee_id: Optional[int] = None,
        status: Optional[LoanStatus] = None,
    ) -> Sequence[LoanApplication]:
        return self._applications.list_applications(employee_id=employee_id, status=status)

    def _check_limits(self, loan_type: LoanType, grade: Optional[Grade], amount: float, repayment_period: int) -> None:
        """Amount and period must fit the loan type, and the amount the grade's loan ceiling."""

        if amount <= 0:
            raise ValidationError("Loan amount must be greater than zero")
        if amount < loan_type.min_amount or amount > loan_type.max_amount:
            raise ValidationError(
                f"Loan amount must be between {loan_type.min_amount:,.2f} and {loan_type.max_amount:,.2f}"
            )
        if not loan_type.min_repayment_period <= repayment_period <= loan_type.max_repayment_period:
            raise ValidationError(
                f"Repayment period must be between {loan_type.min_repayment_period} "
                f"and {loan_type.max_repayment_period} months"
            )
        if grade and grade.limits.max_loan_amount > 0 and amount > grade.limits.max_loan_amount:
            raise ValidationError(
                f"Loan amount exceeds the grade {grade.code} limit of {grade.limits.max_loan_amount:,.2f}"
            )

    def apply(
        self,
        *,
        employee_id: int,
        loan_type_code: str,
        amount: float,
        repayment_period: int,
        purpose: Optional[str] = None,
        currency: str = "MWK",
        created_by: Optional[int] = None,
    ) -> LoanApplication:
        employee = self._employees.get_by_id(int(employee_id))
        if not employee:
            raise NotFoundError(f"Employee {employee_id} not found")
        if employee.employment_status != EmploymentStatus.ACTIVE:
            raise ValidationError("Only active employees can apply for loans")

        code = require_non_empty(loan_type_code, "Loan type").upper()
        loan_type = self._types.get_by_code(code)
        if not loan_type or not loan_type.is_active:
            raise NotFoundError(f"Loan type {code} not found or inactive")

        amount = require_non_negative(amount, "Loan amount")
        repayment_period = int(repayment_period)

        grade = self._grades.get_by_id(employee.grade_id)
        grade_code = grade.code if grade else None
        if not loan_type.is_grade_eligible(grade_code):
            raise ValidationError(f"Employee grade {grade_code} is not eligible for {loan_type.name}")
        self._check_limits(loan_type, grade, amount, repayment_period)

        if self._applications.count_for_employee(employee_id=employee.employee_id, statuses=OPEN_STATUSES) > 0:
            raise ConflictError("Employee has existing active loan applications")

        schedule = amortize(amount, loan_type.interest_rate, repayment_period)
        if employee.basic_salary <= 0:
            raise ValidationError("Employee has no basic salary on record")
        if schedule.monthly_payment / employee.basic_salary > MAX_REPAYMENT_TO_SALARY_RATIO:
            raise ValidationError(
                f"Monthly repayment ({schedule.monthly_payment:,.2f}) exceeds "
                f"{int(MAX_REPAYMENT_TO_SALARY_RATIO * 100)}% of basic salary. Loan not affordable."
            )

        now = self._clock()
        prefix = application_number_prefix(now.year)
        number = next_in_sequence(self._applications.list_application_numbers(prefix=prefix), prefix=prefix, width=4)

        draft = LoanApplication(
            application_id=0,
            application_number=number,
            employee_id=employee.employee_id,
            loan_type_code=loan_type.code,
            amount=amount,
            repayment_period=repayment_period,
            interest_rate=loan_type.interest_rate,
            monthly_repayment=schedule.monthly_payment,
            total_repayment=schedule.total_payment,
            total_interest=schedule.total_interest,
            status=S.DRAFT,
            purpose=(purpose or "").strip() or None,
            currency=(currency or "MWK").upper(),
            created_by=created_by,
            created_at=now,
            updated_at=now,
        )
        draft = replace(draft, application_id=self._applications.create(draft))

        submitted = replace(draft, status=S.SUBMITTED)
        self._applications.update(submitted)
        logger.info("Loan application %s submitted for employee %s", number, employee.employee_number)
        return submitted

    def _check_approved_terms(self, application: LoanApplication, amount: float, rate: float, period: int) -> None:
        if amount <= 0:
            raise ValidationError("Approved amount must be greater than zero")
        if rate < 0:
            raise ValidationError("Approved interest rate cannot be negative")
        loan_type = self._types.get_by_code(application.loan_type_code)
        if not loan_type:
            raise NotFoundError(f"Loan type {application.loan_type_code} not found")
        employee = self._employees.get_by_id(application.employee_id)
        grade = self._grades.get_by_id(employee.grade_id) if employee else None
        self._check_limits(loan_type, grade, amount, period)

    def update_status(
        self,
        application_id: int,
        status: LoanStatus,
        *,
        approved_amount: Optional[float] = None,
        approved_interest_rate: Optional[float] = None,
        approved_repayment_period: Optional[int] = None,
        rejection_reason: Optional[str] = None,
    ) -> LoanApplication:
        application = self.get_application(application_id)
        if status == S.DISBURSED:
            raise ValidationError("Use the disburse action to disburse a loan")
        if status == S.CANCELLED:
            raise ValidationError("Use the cancel action to cancel a loan application")
        if status not in STATUS_TRANSITIONS[application.status]:
            raise ConflictError(f"Cannot move a loan application from {application.status.value} to {status.value}")

        now = self._clock()
        updated = replace(application, status=status, updated_at=now)

        if status == S.APPROVED:
            adjusted = (approved_amount, approved_interest_rate, approved_repayment_period) != (None, None, None)
            amount = float(approved_amount) if approved_amount is not None else application.amount
            rate = float(approved_interest_rate) if approved_interest_rate is not None else application.interest_rate
            period = (
                int(approved_repayment_period)
                if approved_repayment_period is not None
                else application.repayment_period
            )
            if adjusted:
                self._check_approved_terms(application, amount, rate, period)

            updated = replace(
                updated,
                approval_date=now,
                approved_amount=approved_amount,
                approved_interest_rate=approved_interest_rate,
                approved_repayment_period=approved_repayment_period,
            )
            if adjusted:
                schedule = amortize(amount, rate, period)
                updated = replace(
                    updated,
                    monthly_repayment=schedule.monthly_payment,
                    total_repayment=schedule.total_payment,
                    total_interest=schedule.total_interest,
                )
        elif status == S.REJECTED:
            updated = replace(updated, rejection_reason=require_non_empty(rejection_reason, "Rejection reason"))

        self._applications.update(updated)
        logger.info(
            "Loan application %s moved %s -> %s",
            application.application_number,
            application.status.value,
            status.value,
        )
        return updated

    def disburse(
        self,
        application_id: int,
        *,
        disbursed_by: Optional[int] = None,
        disbursement_date: Optional[date] = None,
    ) -> LoanApplication:
        application = self.get_application(application_id)
        if application.status != S.APPROVED:
            raise ValidationError("Only approved loans can be disbursed")
        if application.disbursement_date:
            raise ConflictError("Loan has already been disbursed")

        now = self._clock()
        disbursed = replace(
            application,
            status=S.DISBURSED,
            disbursement_date=disbursement_date or now.date(),
            disbursed_by=disbursed_by,
            updated_at=now,
        )
        self._applications.update(disbursed)
        logger.info("Loan application %s disbursed (%.2f)", application.application_number, application.principal)
        return disbursed

    def cancel(self, application_id: int, *, reason: Optional[str] = None) -> LoanApplication:
        application = self.get_application(application_id)
        if application.status not in CANCELLABLE_STATUSES:
            raise ValidationError("Cannot cancel loan application in current status")

        cancelled = replace(
            application,
            status=S.CANCELLED,
            rejection_reason=(reason or "").strip() or None,
            updated_at=self._clock(),
        )
        self._applications.update(cancelled)
        logger.info("Loan application %s cancelled", application.application_number)
        return cancelled

    def repayment_plan(self, application_id: int) -> List[Installment]:
        application = self.get_application(application_id)
        schedule = amortize(
            application.principal,
            application.approved_interest_rate
            if application.approved_interest_rate is not None
            else application.interest_rate,
            application.approved_repayment_period or application.repayment_period,
        )
        return installments(schedule)

    def employee_statistics(self, employee_id: int) -> LoanStatistics:
        rows = self._applications.list_applications(employee_id=int(employee_id))

        breakdown: Dict[str, Dict[str, float]] = {}
        for a in rows:
            entry = breakdown.setdefault(a.status.value, {"count": 0, "totalAmount": 0.0})
            entry["count"] += 1
            entry["totalAmount"] = round(entry["totalAmount"] + a.amount, 2)

        approved = [a for a in rows if a.status == S.APPROVED]
        disbursed = [a for a in rows if a.status in (S.DISBURSED, S.ACTIVE, S.COMPLETED)]
        running = [a for a in rows if a.status in (S.DISBURSED, S.ACTIVE)]

        return LoanStatistics(
            total_applications=len(rows),
            total_approved_amount=round(sum(a.principal for a in approved), 2),
            total_disbursed_amount=round(sum(a.principal for a in disbursed), 2),
            approved_not_disbursed=len([a for a in approved if not a.disbursement_date]),
            monthly_commitment=round(sum(a.monthly_repayment for a in running), 2),
            status_breakdown=breakdown,
        )
