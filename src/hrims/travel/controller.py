from __future__ import annotations

from flask import Flask, request

from ..auth.guards import current_claims, login_required, permission_required
from ..auth.permissions import TRAVEL_VIEW, can_access_route
from ..common.datetime_utils import isoformat_or_none
from ..common.http import json_body, ok, optional_date, optional_float, optional_int
from ..common.validators import parse_enum
from ..container import Container
from ..core.constants import API_PREFIX, DEFAULT_TRAVEL_MAX_DAYS
from ..core.enums import AccommodationType, TransportMode, TravelStatus, TravelType
from ..core.exceptions import AuthorizationError, ValidationError
from .model import TravelRate, TravelRequest

APPLY = ("requests:create",)
APPROVE = ("travel:approve",)
MANAGE = ("travel:manage",)
CONFIGURE = ("travel:configure",)
# Holders may read every request, not only their own.
OVERSEE = ("travel:manage", "travel:approve")


def serialize_rate(r: TravelRate) -> dict:
    return {
        "id": r.rate_id,
        "gradeCode": r.grade_code,
        "travelType": r.travel_type.value,
        "currency": r.currency,
        "perDiemRate": r.per_diem_rate,
        "accommodationRate": r.accommodation_rate,
        "transportRate": r.transport_rate,
        "communicationRate": r.communication_rate,
        "incidentalsRate": r.incidentals_rate,
        "maxDays": r.max_days,
        "advancePercentage": r.advance_percentage,
        "isActive": r.is_active,
        "createdAt": isoformat_or_none(r.created_at),
    }


def serialize_request(t: TravelRequest) -> dict:
    return {
        "id": t.request_id,
        "travelReference": t.travel_reference,
        "employeeId": t.employee_id,
        "purpose": t.purpose,
        "travelType": t.travel_type.value,
        "destination": {"city": t.destination_city, "country": t.destination_country},
        "departureDate": isoformat_or_none(t.departure_date),
        "returnDate": isoformat_or_none(t.return_date),
        "numberOfDays": t.number_of_days,
        "accommodationType": t.accommodation_type.value,
        "transportMode": t.transport_mode.value,
        "calculatedCosts": dict(t.costs.to_dict(), advanceAmount=t.advance_amount),
        "status": t.status.value,
        "comments": t.comments,
        "rejectionReason": t.rejection_reason,
        "approvedBy": t.approved_by,
        "approvedAt": isoformat_or_none(t.approved_at),
        "completedAt": isoformat_or_none(t.completed_at),
        "createdAt": isoformat_or_none(t.created_at),
    }


def _required_date(body: dict, key: str, label: str):
    value = optional_date(body.get(key), label)
    if value is None:
        raise ValidationError(f"{label} is required")
    return value


def register(app: Flask, container: Container) -> None:
    rates_prefix = f"{API_PREFIX}/travel-rates"
    prefix = f"{API_PREFIX}/travel-requests"

    def _oversees() -> bool:
        return can_access_route(current_claims().permissions, OVERSEE)

    def _own_employee_id() -> int:
        employee_id = current_claims().employee_id
        if employee_id is None:
            raise AuthorizationError("No employee record is linked to this account")
        return employee_id

    def _owned_or_managed(request_id: int) -> TravelRequest:
        travel_request = container.travel_request_service.get_request(request_id)
        claims = current_claims()
        if travel_request.employee_id != claims.employee_id and not can_access_route(claims.permissions, MANAGE):
            raise AuthorizationError("You can only change your own travel requests")
        return travel_request

    # Rates

    @app.route(rates_prefix, methods=["GET"], endpoint="travel_rates_list")
    @login_required
    def list_rates():
        travel_type = request.args.get("travelType")
        rates = container.travel_rate_service.list_rates(
            travel_type=parse_enum(TravelType, travel_type, "Travel type") if travel_type else None
        )
        return ok([serialize_rate(r) for r in rates])

    @app.route(rates_prefix, methods=["POST"], endpoint="travel_rates_create")
    @permission_required(*CONFIGURE)
    def create_rate():
        body = json_body()

        def _amount(key: str, label: str) -> float:
            return optional_float(body.get(key), label) or 0.0

        rate = container.travel_rate_service.create_rate(
            TravelRate(
                rate_id=0,
                grade_code=body.get("gradeCode") or "",
                travel_type=parse_enum(TravelType, body.get("travelType"), "Travel type"),
                currency=body.get("currency") or "MWK",
                per_diem_rate=_amount("perDiemRate", "Per diem rate"),
                accommodation_rate=_amount("accommodationRate", "Accommodation rate"),
                transport_rate=_amount("transportRate", "Transport rate"),
                communication_rate=_amount("communicationRate", "Communication rate"),
                incidentals_rate=_amount("incidentalsRate", "Incidentals rate"),
                max_days=optional_int(body.get("maxDays"), "Maximum days") or DEFAULT_TRAVEL_MAX_DAYS,
                advance_percentage=optional_float(body.get("advancePercentage"), "Advance percentage") or 80.0,
                created_by=current_claims().user_id,
            )
        )
        return ok(serialize_rate(rate), message="Travel rate created", status=201)

    # Requests

    @app.route(prefix, methods=["GET"], endpoint="travel_requests_list")
    @permission_required(*TRAVEL_VIEW)
    def list_requests():
        status = request.args.get("status")
        if _oversees():
            employee_id = optional_int(request.args.get("employeeId"), "Employee")
        else:
            employee_id = _own_employee_id()
        rows = container.travel_request_service.list_requests(
            employee_id=employee_id,
            status=parse_enum(TravelStatus, status, "Status") if status else None,
        )
        return ok([serialize_request(t) for t in rows])

    @app.route(prefix, methods=["POST"], endpoint="travel_requests_create")
    @permission_required(*APPLY)
    def create_request():
        body = json_body()
        claims = current_claims()
        employee_id = optional_int(body.get("employeeId"), "Employee")
        if employee_id is None or not can_access_route(claims.permissions, MANAGE):
            employee_id = _own_employee_id()
        destination = body.get("destination") or {}
        travel_request = container.travel_request_service.create(
            employee_id=employee_id,
            purpose=body.get("purpose") or "",
            travel_type=parse_enum(TravelType, body.get("travelType"), "Travel type"),
            destination_city=destination.get("city") or "",
            destination_country=destination.get("country") or "",
            departure_date=_required_date(body, "departureDate", "Departure date"),
            return_date=_required_date(body, "returnDate", "Return date"),
            accommodation_type=parse_enum(AccommodationType, body.get("accommodationType"), "Accommodation type"),
            transport_mode=parse_enum(TransportMode, body.get("transportMode"), "Transport mode"),
            advance_amount=optional_float(body.get("advanceAmount"), "Advance amount") or 0.0,
            comments=body.get("comments"),
            created_by=claims.user_id,
        )
        return ok(serialize_request(travel_request), message="Travel request submitted", status=201)

    @app.route(f"{prefix}/statistics", methods=["GET"], endpoint="travel_requests_statistics")
    @permission_required(*TRAVEL_VIEW)
    def statistics():
        employee_id = optional_int(request.args.get("employeeId"), "Employee")
        if not _oversees():
            employee_id = _own_employee_id()
        stats = container.travel_request_service.statistics(
            employee_id=employee_id,
            departure_from=optional_date(request.args.get("fromDate"), "From date"),
            return_to=optional_date(request.args.get("toDate"), "To date"),
        )
        return ok(stats.to_dict())

    @app.route(f"{prefix}/<int:request_id>", methods=["GET"], endpoint="travel_requests_get")
    @login_required
    def get_request(request_id: int):
        travel_request = container.travel_request_service.get_request(request_id)
        if not _oversees() and travel_request.employee_id != current_claims().employee_id:
            raise AuthorizationError("You can only view your own travel requests")
        return ok(serialize_request(travel_request))

    @app.route(f"{prefix}/<int:request_id>/status", methods=["PUT"], endpoint="travel_requests_status")
    @permission_required(*APPROVE)
    def update_status(request_id: int):
        body = json_body()
        travel_request = container.travel_request_service.update_status(
            request_id,
            parse_enum(TravelStatus, body.get("status"), "Status"),
            decided_by=current_claims().user_id,
            rejection_reason=body.get("rejectionReason"),
        )
        return ok(serialize_request(travel_request), message=f"Travel request {travel_request.status.value}")

    @app.route(f"{prefix}/<int:request_id>/cancel", methods=["POST"], endpoint="travel_requests_cancel")
    @login_required
    def cancel(request_id: int):
        _owned_or_managed(request_id)
        travel_request = container.travel_request_service.cancel(request_id, reason=json_body().get("reason"))
        return ok(serialize_request(travel_request), message="Travel request cancelled")

    @app.route(f"{prefix}/<int:request_id>/complete", methods=["POST"], endpoint="travel_requests_complete")
    @login_required
    def complete(request_id: int):
        _owned_or_managed(request_id)
        travel_request = container.travel_request_service.complete(request_id)
        return ok(serialize_request(travel_request), message="Travel request completed")
