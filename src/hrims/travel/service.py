from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import date, datetime
from typing import Callable, Dict, FrozenSet, Optional, Sequence

from ..common.datetime_utils import now_local
from ..common.sequences import next_in_sequence
from ..common.validators import require_non_empty, require_non_negative
from ..core.constants import PER_DIEM_ACCOMMODATION_SHARE
from ..core.enums import AccommodationType, EmploymentStatus, TransportMode, TravelStatus, TravelType
from ..core.exceptions import NotFoundError, ValidationError
from ..employees.repository import EmployeeRepository
from ..grades.repository import GradeRepository
from .model import TravelCosts, TravelRate, TravelRequest
from .repository import TravelRateRepository, TravelRequestRepository

logger = logging.getLogger(__name__)

T = TravelStatus

CANCELLABLE_STATUSES: FrozenSet[TravelStatus] = frozenset({T.DRAFT, T.PENDING_APPROVAL})


def travel_reference_prefix(year: int) -> str:
    return f"TRV-{year}-"


def number_of_days(departure: date, return_date: date) -> int:
    """Calendar days away, counting both the departure and the return day."""

    return (return_date - departure).days + 1


def calculate_costs(
    rate: TravelRate,
    days: int,
    accommodation_type: AccommodationType,
    transport_mode: TransportMode,
) -> TravelCosts:
    per_diem = rate.per_diem_rate * days

    if accommodation_type == AccommodationType.FULLY_PAID:
        accommodation = rate.accommodation_rate * days
    elif accommodation_type == AccommodationType.PER_DIEM_ONLY:
        accommodation = rate.per_diem_rate * days * PER_DIEM_ACCOMMODATION_SHARE
    else:
        accommodation = 0.0

    # Flights are priced as one round trip; other modes per day.
    transport = rate.transport_rate * 2 if transport_mode == TransportMode.FLIGHT else rate.transport_rate * days
    communication = rate.communication_rate * days
    incidentals = rate.incidentals_rate * days

    return TravelCosts(
        per_diem_amount=round(per_diem, 2),
        accommodation_cost=round(accommodation, 2),
        transport_cost=round(transport, 2),
        communication_cost=round(communication, 2),
        incidentals_cost=round(incidentals, 2),
        total_estimated_cost=round(per_diem + accommodation + transport + communication + incidentals, 2),
        currency=rate.currency,
    )


class TravelRateService:
    """Use case: per-grade travel allowances."""

    def __init__(self, rates: TravelRateRepository):
        self._rates = rates

    def list_rates(self, *, travel_type: Optional[TravelType] = None) -> Sequence[TravelRate]:
        return self._rates.list_rates(travel_type=travel_type, active_only=True)

    def rate_for(self, grade_code: str, travel_type: TravelType) -> TravelRate:
        rate = self._rates.get_active(grade_code=grade_code, travel_type=travel_type)
        if not rate:
            raise NotFoundError(f"No travel rates found for grade {grade_code} and travel type {travel_type.value}")
        return rate

    def create_rate(self, rate: TravelRate) -> TravelRate:
        """Store ``rate`` as the one in force; the previous rate of the grade and type is retired."""

        grade_code = require_non_empty(rate.grade_code, "Grade code").upper()
        for attr, label in (
            ("per_diem_rate", "Per diem rate"),
            ("accommodation_rate", "Accommodation rate"),
            ("transport_rate", "Transport rate"),
            ("communication_rate", "Communication rate"),
            ("incidentals_rate", "Incidentals rate"),
        ):
            require_non_negative(getattr(rate, attr), label)
        if rate.max_days < 1:
            raise ValidationError("Maximum days must be at least 1")
        if not 0 <= rate.advance_percentage <= 100:
            raise ValidationError("Advance percentage must be between 0 and 100")

        rate = replace(
            rate,
            rate_id=0,
            grade_code=grade_code,
            currency=(rate.currency or "MWK").upper(),
            is_active=True,
        )
        retired = self._rates.deactivate(grade_code=grade_code, travel_type=rate.travel_type)
        rate = replace(rate, rate_id=self._rates.create(rate))
        logger.info(
            "Travel rate for %s/%s set (replaced %s)",
            grade_code,
            rate.travel_type.value,
            retired,
        )
        return rate

    def estimate(
        self,
        *,
        grade_code: str,
        travel_type: TravelType,
        days: int,
        accommodation_type: AccommodationType,
        transport_mode: TransportMode,
    ) -> TravelCosts:
        if days < 1:
            raise ValidationError("Number of days must be at least 1")
        return calculate_costs(self.rate_for(grade_code, travel_type), days, accommodation_type, transport_mode)


@dataclass(frozen=True)
class TravelStatistics:
    total_requests: int
    total_approved_cost: float
    pending_approvals: int
    approved_requests: int
    status_breakdown: Dict[str, Dict[str, float]]
    by_travel_type: Dict[str, Dict[str, float]]

    def to_dict(self) -> dict:
        return {
            "totalRequests": self.total_requests,
            "totalApprovedCost": self.total_approved_cost,
            "pendingApprovals": self.pending_approvals,
            "approvedRequests": self.approved_requests,
            "statusBreakdown": self.status_breakdown,
            "byTravelType": self.by_travel_type,
        }


class TravelRequestService:
    """Use case: travel requests from submission to completion."""

    def __init__(
        self,
        requests: TravelRequestRepository,
        rates: TravelRateService,
        employees: EmployeeRepository,
        grades: GradeRepository,
        *,
        clock: Callable[[], datetime] = now_local,
    ):
        self._requests = requests
        self._rates = rates
        self._employees = employees
        self._grades = grades
        self._clock = clock

    def get_request(self, request_id: int) -> TravelRequest:
        travel_request = self._requests.get_by_id(int(request_id))
        if not travel_request:
            raise NotFoundError(f"Travel request {request_id} not found")
        return travel_request

    def list_requests(
        self,
        *,
        employee_id: Optional[int] = None,
        status: Optional[TravelStatus] = None,
    ) -> Sequence[TravelRequest]:
        return self._requests.list_requests(employee_id=employee_id, status=status)

    def create(
        self,
        *,
        employee_id: int,
        purpose: str,
        travel_type: TravelType,
        destination_city: str,
        destination_country: str,
        departure_date: date,
        return_date: date,
        accommodation_type: AccommodationType,
        transport_mode: TransportMode,
        advance_amount: float = 0.0,
        comments: Optional[str] = None,
        created_by: Optional[int] = None,
    ) -> TravelRequest:
        employee = self._employees.get_by_id(int(employee_id))
        if not employee:
            raise NotFoundError(f"Employee {employee_id} not found")
        if employee.employment_status != EmploymentStatus.ACTIVE:
            raise ValidationError("Only active employees can submit travel requests")

        purpose = require_non_empty(purpose, "Travel purpose")
        city = require_non_empty(destination_city, "Destination city")
        country = require_non_empty(destination_country, "Destination country")
        if return_date < departure_date:
            raise ValidationError("Return date cannot be before the departure date")

        grade = self._grades.get_by_id(employee.grade_id)
        if not grade:
            raise ValidationError("Employee grade information is missing")
        rate = self._rates.rate_for(grade.code, travel_type)

        days = number_of_days(departure_date, return_date)
        if days > rate.max_days:
            raise ValidationError(f"Travel cannot exceed {rate.max_days} days for grade {grade.code}")

        costs = calculate_costs(rate, days, accommodation_type, transport_mode)
        advance_amount = require_non_negative(advance_amount or 0.0, "Advance amount")
        advance_limit = round(costs.total_estimated_cost * rate.advance_percentage / 100, 2)
        if advance_amount > advance_limit:
            raise ValidationError(
                f"Advance cannot exceed {rate.advance_percentage:g}% of the estimated cost ({advance_limit:,.2f})"
            )

        now = self._clock()
        prefix = travel_reference_prefix(now.year)
        travel_request = TravelRequest(
            request_id=0,
            travel_reference=next_in_sequence(self._requests.list_references(prefix=prefix), prefix=prefix, width=4),
            employee_id=employee.employee_id,
            purpose=purpose,
            travel_type=travel_type,
            destination_city=city,
            destination_country=country,
            departure_date=departure_date,
            return_date=return_date,
            number_of_days=days,
            accommodation_type=accommodation_type,
            transport_mode=transport_mode,
            costs=costs,
            status=T.PENDING_APPROVAL,
            advance_amount=advance_amount,
            comments=(comments or "").strip() or None,
            created_by=created_by,
            created_at=now,
        )
        travel_request = replace(travel_request, request_id=self._requests.create(travel_request))
        logger.info(
            "Travel request %s submitted for employee %s (%.2f %s)",
            travel_request.travel_reference,
            employee.employee_number,
            costs.total_estimated_cost,
            costs.currency,
        )
        return travel_request

    def update_status(
        self,
        request_id: int,
        status: TravelStatus,
        *,
        decided_by: Optional[int] = None,
        rejection_reason: Optional[str] = None,
    ) -> TravelRequest:
        """Approve or reject a request that is waiting for a decision."""

        travel_request = self.get_request(request_id)
        if status not in (T.APPROVED, T.REJECTED):
            raise ValidationError("Status can only be set to APPROVED or REJECTED")
        if travel_request.status != T.PENDING_APPROVAL:
            raise ValidationError(f"Cannot change travel request in status {travel_request.status.value}")

        if status == T.APPROVED:
            updated = replace(travel_request, status=status, approved_by=decided_by, approved_at=self._clock())
        else:
            updated = replace(
                travel_request,
                status=status,
                approved_by=decided_by,
                rejection_reason=require_non_empty(rejection_reason, "Rejection reason"),
            )
        self._requests.update(updated)
        logger.info("Travel request %s %s", travel_request.travel_reference, status.value)
        return updated

    def cancel(self, request_id: int, *, reason: Optional[str] = None) -> TravelRequest:
        travel_request = self.get_request(request_id)
        if travel_request.status not in CANCELLABLE_STATUSES:
            raise ValidationError("Cannot cancel travel request in current status")

        cancelled = replace(
            travel_request,
            status=T.CANCELLED,
            comments=(reason or "").strip() or travel_request.comments,
        )
        self._requests.update(cancelled)
        logger.info("Travel request %s cancelled", travel_request.travel_reference)
        return cancelled

    def complete(self, request_id: int) -> TravelRequest:
        travel_request = self.get_request(request_id)
        if travel_request.completed_at is not None:
            raise ValidationError("Travel request is already completed")
        if travel_request.status != T.APPROVED:
            raise ValidationError("Only approved travel requests can be marked as completed")

        completed = replace(travel_request, status=T.COMPLETED, completed_at=self._clock())
        self._requests.update(completed)
        logger.info("Travel request %s completed", travel_request.travel_reference)
        return completed

    def statistics(
        self,
        *,
        employee_id: Optional[int] = None,
        departure_from: Optional[date] = None,
        return_to: Optional[date] = None,
    ) -> TravelStatistics:
        rows = self._requests.list_requests(
            employee_id=employee_id,
            departure_from=departure_from,
            return_to=return_to,
        )

        by_status: Dict[str, Dict[str, float]] = {}
        by_type: Dict[str, Dict[str, float]] = {}
        for r in rows:
            for key, bucket in ((r.status.value, by_status), (r.travel_type.value, by_type)):
                entry = bucket.setdefault(key, {"count": 0, "totalCost": 0.0})
                entry["count"] += 1
                entry["totalCost"] = round(entry["totalCost"] + r.costs.total_estimated_cost, 2)

        approved = [r for r in rows if r.status == T.APPROVED]
        return TravelStatistics(
            total_requests=len(rows),
            total_approved_cost=round(sum(r.costs.total_estimated_cost for r in approved), 2),
            pending_approvals=len([r for r in rows if r.status == T.PENDING_APPROVAL]),
            approved_requests=len(approved),
            status_breakdown=by_status,
            by_travel_type=by_type,
        )
