from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date, datetime
from typing import Callable, Dict, FrozenSet, Optional, Sequence

from ..common.datetime_utils import now_local
from ..common.sequences import next_in_sequence
from ..common.validators import require_non_empty
from ..core.enums import EmploymentStatus, OvertimeStatus, OvertimeType
from ..core.exceptions import NotFoundError, ValidationError
from ..employees.repository import EmployeeRepository
from ..payroll.service import CompensationService
from .model import OvertimeClaim
from .repository import OvertimeRateRepository, OvertimeRepository
from .rules import DEFAULT_OVERTIME_RULES, OvertimeRule

logger = logging.getLogger(__name__)

CANCELLABLE_STATUSES: FrozenSet[OvertimeStatus] = frozenset(
    {OvertimeStatus.DRAFT, OvertimeStatus.SUBMITTED, OvertimeStatus.PENDING_APPROVAL}
)


def claim_number_prefix(on: date) -> str:
    return f"OVT-{on.year}-{on.month:02d}-"


def overtime_amount(rule: OvertimeRule, hours: float, hourly_rate: float) -> float:
    return round(rule.effective_hours(hours) * hourly_rate * rule.multiplier, 2)


class OvertimeRateService:
    """Overtime rules in force: the defaults with any configured overrides on top."""

    def __init__(self, rates: OvertimeRateRepository):
        self._rates = rates

    def rules(self) -> Dict[OvertimeType, OvertimeRule]:
        rules = dict(DEFAULT_OVERTIME_RULES)
        rules.update(self._rates.list_rates())
        return rules

    def rule_for(self, overtime_type: OvertimeType) -> OvertimeRule:
        return self.rules()[overtime_type]

    def configure(
        self,
        overtime_type: OvertimeType,
        *,
        multiplier: float,
        minimum_hours: float,
        max_hours_per_day: float,
        auto_approve_hours: float = 0.0,
        updated_by: Optional[int] = None,
    ) -> OvertimeRule:
        rule = OvertimeRule(
            multiplier=float(multiplier),
            minimum_hours=float(minimum_hours),
            max_hours_per_day=float(max_hours_per_day),
            auto_approve_hours=float(auto_approve_hours),
        ).validate()
        self._rates.save_rate(overtime_type, rule, updated_by=updated_by)
        logger.info("Overtime rate for %s set to x%g", overtime_type.value, rule.multiplier)
        return rule

    def reset(self, overtime_type: OvertimeType) -> OvertimeRule:
        if self._rates.delete_rate(overtime_type):
            logger.info("Overtime rate for %s reset to default", overtime_type.value)
        return DEFAULT_OVERTIME_RULES[overtime_type]


class OvertimeService:
    """Use case: overtime claims (submit, approve/reject, cancel)."""

    def __init__(
        self,
        claims: OvertimeRepository,
        employees: EmployeeRepository,
        compensation: CompensationService,
        rates: OvertimeRateService,
        *,
        clock: Callable[[], datetime] = now_local,
    ):
        self._claims = claims
        self._employees = employees
        self._compensation = compensation
        self._rates = rates
        self._clock = clock

    def get_claim(self, claim_id: int) -> OvertimeClaim:
        claim = self._claims.get_by_id(int(claim_id))
        if not claim:
            raise NotFoundError(f"Overtime claim {claim_id} not found")
        return claim

    def list_claims(
        self,
        *,
        employee_id: Optional[int] = None,
        status: Optional[OvertimeStatus] = None,
    ) -> Sequence[OvertimeClaim]:
        return self._claims.list_claims(employee_id=employee_id, status=status)

    def submit(
        self,
        *,
        employee_id: int,
        overtime_type: OvertimeType,
        work_date: date,
        hours: float,
        reason: Optional[str] = None,
    ) -> OvertimeClaim:
        employee = self._employees.get_by_id(int(employee_id))
        if not employee:
            raise NotFoundError(f"Employee {employee_id} not found")
        if employee.employment_status != EmploymentStatus.ACTIVE:
            raise ValidationError("Only active employees can claim overtime")

        try:
            hours = float(hours)
        except (TypeError, ValueError):
            raise ValidationError("Hours must be a number")
        if hours <= 0:
            raise ValidationError("Hours must be greater than zero")

        now = self._clock()
        if work_date > now.date():
            raise ValidationError("Overtime cannot be claimed for a future date")

        rule = self._rates.rule_for(overtime_type)
        already = self._claims.hours_on(employee_id=employee.employee_id, work_date=work_date)
        if already + hours > rule.max_hours_per_day:
            raise ValidationError(
                f"Exceeds maximum {rule.max_hours_per_day:g} hours per day for {overtime_type.value}"
            )

        hourly_rate = round(self._compensation.hourly_rate(employee.basic_salary), 2)
        amount = overtime_amount(rule, hours, hourly_rate)
        status = OvertimeStatus.AUTO_APPROVED if rule.is_auto_approved(hours) else OvertimeStatus.PENDING_APPROVAL

        prefix = claim_number_prefix(now.date())
        claim = OvertimeClaim(
            claim_id=0,
            claim_number=next_in_sequence(self._claims.list_claim_numbers(prefix=prefix), prefix=prefix, width=4),
            employee_id=employee.employee_id,
            overtime_type=overtime_type,
            work_date=work_date,
            hours=hours,
            multiplier=rule.multiplier,
            hourly_rate=hourly_rate,
            amount=amount,
            status=status,
            reason=(reason or "").strip() or None,
            approved_at=now if status == OvertimeStatus.AUTO_APPROVED else None,
            created_at=now,
        )
        claim = replace(claim, claim_id=self._claims.create(claim))
        logger.info("Overtime claim %s submitted (%s, %.2f)", claim.claim_number, status.value, amount)
        return claim

    def approve(self, claim_id: int, *, approved_by: Optional[int] = None) -> OvertimeClaim:
        claim = self.get_claim(claim_id)
        if claim.status != OvertimeStatus.PENDING_APPROVAL:
            raise ValidationError("Only claims pending approval can be approved")

        approved = replace(claim, status=OvertimeStatus.APPROVED, approved_by=approved_by, approved_at=self._clock())
        self._claims.update(approved)
        logger.info("Overtime claim %s approved", claim.claim_number)
        return approved

    def reject(self, claim_id: int, *, reason: str, rejected_by: Optional[int] = None) -> OvertimeClaim:
        claim = self.get_claim(claim_id)
        if claim.status != OvertimeStatus.PENDING_APPROVAL:
            raise ValidationError("Only claims pending approval can be rejected")

        rejected = replace(
            claim,
            status=OvertimeStatus.REJECTED,
            rejection_reason=require_non_empty(reason, "Rejection reason"),
            approved_by=rejected_by,
        )
        self._claims.update(rejected)
        logger.info("Overtime claim %s rejected", claim.claim_number)
        return rejected

    def cancel(self, claim_id: int) -> OvertimeClaim:
        claim = self.get_claim(claim_id)
        if claim.status not in CANCELLABLE_STATUSES:
            raise ValidationError("Cannot cancel overtime claim in current status")

        cancelled = replace(claim, status=OvertimeStatus.CANCELLED)
        self._claims.update(cancelled)
        return cancelled
