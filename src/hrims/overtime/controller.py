from __future__ import annotations

from flask import Flask, request

from ..auth.guards import current_claims, login_required, permission_required
from ..auth.permissions import can_access_route
from ..common.datetime_utils import isoformat_or_none
from ..common.http import json_body, ok, optional_date, optional_float, optional_int
from ..common.validators import parse_enum
from ..container import Container
from ..core.constants import API_PREFIX
from ..core.enums import OvertimeStatus, OvertimeType
from ..core.exceptions import AuthorizationError, ValidationError
from .model import OvertimeClaim
from .rules import OvertimeRule

APPROVE = ("overtime:approve",)
OVERSEE = ("overtime:manage", "overtime:approve")
CONFIGURE = ("overtime:configure",)


def serialize_rule(overtime_type: OvertimeType, r: OvertimeRule) -> dict:
    return {
        "overtimeType": overtime_type.value,
        "multiplier": r.multiplier,
        "minimumHours": r.minimum_hours,
        "maxHoursPerDay": r.max_hours_per_day,
        "autoApproveHours": r.auto_approve_hours,
    }


def serialize_claim(c: OvertimeClaim) -> dict:
    return {
        "id": c.claim_id,
        "claimNumber": c.claim_number,
        "employeeId": c.employee_id,
        "overtimeType": c.overtime_type.value,
        "workDate": isoformat_or_none(c.work_date),
        "hours": c.hours,
        "multiplier": c.multiplier,
        "hourlyRate": c.hourly_rate,
        "amount": c.amount,
        "status": c.status.value,
        "reason": c.reason,
        "approvedBy": c.approved_by,
        "approvedAt": isoformat_or_none(c.approved_at),
        "rejectionReason": c.rejection_reason,
        "createdAt": isoformat_or_none(c.created_at),
    }


def register(app: Flask, container: Container) -> None:
    prefix = f"{API_PREFIX}/overtime-claims"

    def _own_employee_id() -> int:
        employee_id = current_claims().employee_id
        if employee_id is None:
            raise AuthorizationError("No employee record is linked to this account")
        return employee_id

    @app.route(f"{prefix}/rates", methods=["GET"], endpoint="overtime_rates")
    @login_required
    def overtime_rates():
        return ok([serialize_rule(t, r) for t, r in container.overtime_rate_service.rules().items()])

    @app.route(f"{prefix}/rates/<overtime_type>", methods=["PUT"], endpoint="overtime_rates_update")
    @permission_required(*CONFIGURE)
    def configure_overtime_rate(overtime_type: str):
        kind = parse_enum(OvertimeType, overtime_type, "Overtime type")
        body = json_body()
        current = container.overtime_rate_service.rule_for(kind)

        def _value(key: str, label: str, default: float) -> float:
            value = optional_float(body.get(key), label)
            return default if value is None else value

        rule = container.overtime_rate_service.configure(
            kind,
            multiplier=_value("multiplier", "Multiplier", current.multiplier),
            minimum_hours=_value("minimumHours", "Minimum hours", current.minimum_hours),
            max_hours_per_day=_value("maxHoursPerDay", "Maximum hours per day", current.max_hours_per_day),
            auto_approve_hours=_value("autoApproveHours", "Auto-approve hours", current.auto_approve_hours),
            updated_by=current_claims().user_id,
        )
        return ok(serialize_rule(kind, rule), message="Overtime rate updated")

    @app.route(f"{prefix}/rates/<overtime_type>", methods=["DELETE"], endpoint="overtime_rates_reset")
    @permission_required(*CONFIGURE)
    def reset_overtime_rate(overtime_type: str):
        kind = parse_enum(OvertimeType, overtime_type, "Overtime type")
        rule = container.overtime_rate_service.reset(kind)
        return ok(serialize_rule(kind, rule), message="Overtime rate reset to default")

    @app.route(prefix, methods=["GET"], endpoint="overtime_claims_list")
    @login_required
    def list_claims():
        status = request.args.get("status")
        if can_access_route(current_claims().permissions, OVERSEE):
            employee_id = optional_int(request.args.get("employeeId"), "Employee")
        else:
            employee_id = _own_employee_id()
        claims = container.overtime_service.list_claims(
            employee_id=employee_id,
            status=parse_enum(OvertimeStatus, status, "Status") if status else None,
        )
        return ok([serialize_claim(c) for c in claims])

    @app.route(prefix, methods=["POST"], endpoint="overtime_claims_create")
    @permission_required("requests:create")
    def submit_claim():
        body = json_body()
        work_date = optional_date(body.get("workDate"), "Work date")
        if work_date is None:
            raise ValidationError("Work date is required")
        claim = container.overtime_service.submit(
            employee_id=_own_employee_id(),
            overtime_type=parse_enum(OvertimeType, body.get("overtimeType"), "Overtime type"),
            work_date=work_date,
            hours=optional_float(body.get("hours"), "Hours") or 0.0,
            reason=body.get("reason"),
        )
        return ok(serialize_claim(claim), message=f"Overtime claim {claim.status.value}", status=201)

    @app.route(f"{prefix}/<int:claim_id>", methods=["GET"], endpoint="overtime_claims_get")
    @login_required
    def get_claim(claim_id: int):
        claim = container.overtime_service.get_claim(claim_id)
        claims = current_claims()
        if claim.employee_id != claims.employee_id and not can_access_route(claims.permissions, OVERSEE):
            raise AuthorizationError("You can only view your own overtime claims")
        return ok(serialize_claim(claim))

    @app.route(f"{prefix}/<int:claim_id>/approve", methods=["POST"], endpoint="overtime_claims_approve")
    @permission_required(*APPROVE)
    def approve_claim(claim_id: int):
        claim = container.overtime_service.approve(claim_id, approved_by=current_claims().user_id)
        return ok(serialize_claim(claim), message="Overtime claim approved")

    @app.route(f"{prefix}/<int:claim_id>/reject", methods=["POST"], endpoint="overtime_claims_reject")
    @permission_required(*APPROVE)
    def reject_claim(claim_id: int):
        claim = container.overtime_service.reject(
            claim_id,
            reason=json_body().get("reason") or "",
            rejected_by=current_claims().user_id,
        )
        return ok(serialize_claim(claim), message="Overtime claim rejected")

    @app.route(f"{prefix}/<int:claim_id>/cancel", methods=["POST"], endpoint="overtime_claims_cancel")
    @login_required
    def cancel_claim(claim_id: int):
        claim = container.overtime_service.get_claim(claim_id)
        if claim.employee_id != current_claims().employee_id:
            raise AuthorizationError("You can only cancel your own overtime claims")
        claim = container.overtime_service.cancel(claim_id)
        return ok(serialize_claim(claim), message="Overtime claim cancelled")
