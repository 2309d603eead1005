from __future__ import annotations

from dataclasses import replace
from typing import Optional

from flask import Flask, request

from ..auth.guards import current_claims, login_required, permission_required
from ..auth.permissions import can_access_route
from ..common.datetime_utils import isoformat_or_none
from ..common.http import flag, json_body, ok, optional_date, optional_float, optional_int, required_int
from ..common.validators import parse_enum
from ..container import Container
from ..core.constants import API_PREFIX
from ..core.enums import LoanStatus
from ..core.exceptions import AuthorizationError, ValidationError
from .model import LoanApplication, LoanType

CONFIGURE = ("loans:configure",)
APPLY = ("requests:create",)
APPROVE = ("loans:approve",)
MANAGE = ("loans:manage",)
# Holders may read every application, not only their own.
OVERSEE = ("loans:manage", "loans:approve", "loans:view_reports")


def serialize_loan_type(t: LoanType) -> dict:
    return {
        "id": t.loan_type_id,
        "code": t.code,
        "name": t.name,
        "description": t.description,
        "minAmount": t.min_amount,
        "maxAmount": t.max_amount,
        "minRepaymentPeriod": t.min_repayment_period,
        "maxRepaymentPeriod": t.max_repayment_period,
        "interestRate": t.interest_rate,
        "processingFee": t.processing_fee,
        "eligibleGrades": list(t.eligible_grades),
        "requiredDocuments": list(t.required_documents),
        "isActive": t.is_active,
    }


def serialize_application(a: LoanApplication) -> dict:
    return {
        "id": a.application_id,
        "applicationNumber": a.application_number,
        "employeeId": a.employee_id,
        "loanTypeCode": a.loan_type_code,
        "amount": a.amount,
        "currency": a.currency,
        "repaymentPeriod": a.repayment_period,
        "interestRate": a.interest_rate,
        "monthlyRepayment": a.monthly_repayment,
        "totalRepayment": a.total_repayment,
        "totalInterest": a.total_interest,
        "purpose": a.purpose,
        "status": a.status.value,
        "approvedAmount": a.approved_amount,
        "approvedInterestRate": a.approved_interest_rate,
        "approvedRepaymentPeriod": a.approved_repayment_period,
        "approvalDate": isoformat_or_none(a.approval_date),
        "rejectionReason": a.rejection_reason,
        "disbursementDate": isoformat_or_none(a.disbursement_date),
        "disbursedBy": a.disbursed_by,
        "createdAt": isoformat_or_none(a.created_at),
        "updatedAt": isoformat_or_none(a.updated_at),
    }


def _strings(value) -> tuple:
    if value in (None, ""):
        return ()
    if isinstance(value, str):
        value = value.split(",")
    return tuple(str(v).strip() for v in value if str(v).strip())


def _loan_type_from(body: dict, existing: Optional[LoanType] = None) -> LoanType:
    base = existing or LoanType(
        loan_type_id=0,
        code="",
        name="",
        min_amount=0.0,
        max_amount=0.0,
        min_repayment_period=1,
        max_repayment_period=1,
        interest_rate=0.0,
    )
    changes = {}
    for key in ("code", "name", "description"):
        if key in body:
            changes[key] = body[key]
    for key, attr, label in (
        ("minAmount", "min_amount", "Minimum amount"),
        ("maxAmount", "max_amount", "Maximum amount"),
        ("interestRate", "interest_rate", "Interest rate"),
        ("processingFee", "processing_fee", "Processing fee"),
    ):
        value = optional_float(body.get(key), label)
        if value is not None:
            changes[attr] = value
    for key, attr, label in (
        ("minRepaymentPeriod", "min_repayment_period", "Minimum repayment period"),
        ("maxRepaymentPeriod", "max_repayment_period", "Maximum repayment period"),
    ):
        value = optional_int(body.get(key), label)
        if value is not None:
            changes[attr] = value
    if "eligibleGrades" in body:
        changes["eligible_grades"] = _strings(body["eligibleGrades"])
    if "requiredDocuments" in body:
        changes["required_documents"] = _strings(body["requiredDocuments"])
    if "isActive" in body:
        changes["is_active"] = flag(body["isActive"], base.is_active)
    return replace(base, **changes)


def register(app: Flask, container: Container) -> None:
    types_prefix = f"{API_PREFIX}/loan-types"
    prefix = f"{API_PREFIX}/loan-applications"

    def _oversees() -> bool:
        return can_access_route(current_claims().permissions, OVERSEE)

    def _own_employee_id() -> int:
        employee_id = current_claims().employee_id
        if employee_id is None:
            raise AuthorizationError("No employee record is linked to this account")
        return employee_id

    def _visible_application(application_id: int) -> LoanApplication:
        application = container.loan_application_service.get_application(application_id)
        if not _oversees() and application.employee_id != current_claims().employee_id:
            raise AuthorizationError("You can only view your own loan applications")
        return application

    # Loan types

    @app.route(types_prefix, methods=["GET"], endpoint="loan_types_list")
    @login_required
    def list_loan_types():
        types = container.loan_type_service.list_types(active_only=flag(request.args.get("activeOnly")))
        return ok([serialize_loan_type(t) for t in types])

    @app.route(f"{types_prefix}/<int:loan_type_id>", methods=["GET"], endpoint="loan_types_get")
    @login_required
    def get_loan_type(loan_type_id: int):
        return ok(serialize_loan_type(container.loan_type_service.get_type(loan_type_id)))

    @app.route(types_prefix, methods=["POST"], endpoint="loan_types_create")
    @permission_required(*CONFIGURE)
    def create_loan_type():
        loan_type = container.loan_type_service.create_type(_loan_type_from(json_body()))
        return ok(serialize_loan_type(loan_type), message="Loan type created", status=201)

    @app.route(f"{types_prefix}/<int:loan_type_id>", methods=["PUT"], endpoint="loan_types_update")
    @permission_required(*CONFIGURE)
    def update_loan_type(loan_type_id: int):
        existing = container.loan_type_service.get_type(loan_type_id)
        loan_type = container.loan_type_service.update_type(_loan_type_from(json_body(), existing))
        return ok(serialize_loan_type(loan_type), message="Loan type updated")

    @app.route(f"{types_prefix}/<int:loan_type_id>", methods=["DELETE"], endpoint="loan_types_delete")
    @permission_required(*CONFIGURE)
    def delete_loan_type(loan_type_id: int):
        container.loan_type_service.deactivate_type(loan_type_id)
        return ok(message="Loan type deactivated")

    # Applications

    @app.route(prefix, methods=["GET"], endpoint="loan_applications_list")
    @login_required
    def list_applications():
        status = request.args.get("status")
        if _oversees():
            employee_id = optional_int(request.args.get("employeeId"), "Employee")
        else:
            employee_id = _own_employee_id()
        rows = container.loan_application_service.list_applications(
            employee_id=employee_id,
            status=parse_enum(LoanStatus, status, "Status") if status else None,
        )
        return ok([serialize_application(a) for a in rows])

    @app.route(prefix, methods=["POST"], endpoint="loan_applications_create")
    @permission_required(*APPLY)
    def apply_for_loan():
        body = json_body()
        claims = current_claims()
        employee_id = optional_int(body.get("employeeId"), "Employee")
        if employee_id is None or not can_access_route(claims.permissions, MANAGE):
            employee_id = _own_employee_id()
        application = container.loan_application_service.apply(
            employee_id=employee_id,
            loan_type_code=body.get("loanTypeCode") or body.get("loanType") or "",
            amount=optional_float(body.get("amount"), "Loan amount") or 0.0,
            repayment_period=required_int(body, "repaymentPeriod", "Repayment period"),
            purpose=body.get("purpose"),
            currency=body.get("currency") or "MWK",
            created_by=claims.user_id,
        )
        return ok(serialize_application(application), message="Loan application submitted", status=201)

    @app.route(f"{prefix}/calculate", methods=["POST"], endpoint="loan_applications_calculate")
    @login_required
    def calculate_repayment():
        body = json_body()
        rate = optional_float(body.get("interestRate"), "Interest rate")
        if rate is None:
            if not body.get("loanTypeCode"):
                raise ValidationError("Provide an interest rate or a loan type code")
            rate = container.loan_type_service.get_type_by_code(body["loanTypeCode"]).interest_rate
        schedule = container.compensation_service.repayment_schedule(
            principal=optional_float(body.get("amount"), "Loan amount") or 0.0,
            annual_rate=rate,
            months=required_int(body, "repaymentPeriod", "Repayment period"),
        )
        return ok(schedule.to_dict())

    @app.route(f"{prefix}/statistics", methods=["GET"], endpoint="loan_applications_statistics")
    @login_required
    def statistics():
        employee_id = optional_int(request.args.get("employeeId"), "Employee")
        if employee_id is None or not _oversees():
            employee_id = _own_employee_id()
        return ok(container.loan_application_service.employee_statistics(employee_id).to_dict())

    @app.route(f"{prefix}/<int:application_id>", methods=["GET"], endpoint="loan_applications_get")
    @login_required
    def get_application(application_id: int):
        return ok(serialize_application(_visible_application(application_id)))

    @app.route(f"{prefix}/<int:application_id>/schedule", methods=["GET"], endpoint="loan_applications_schedule")
    @login_required
    def repayment_schedule(application_id: int):
        _visible_application(application_id)
        plan = container.loan_application_service.repayment_plan(application_id)
        return ok([i.to_dict() for i in plan])

    @app.route(f"{prefix}/<int:application_id>/status", methods=["PUT"], endpoint="loan_applications_status")
    @permission_required(*APPROVE)
    def update_status(application_id: int):
        body = json_body()
        application = container.loan_application_service.update_status(
            application_id,
            parse_enum(LoanStatus, body.get("status"), "Status"),
            approved_amount=optional_float(body.get("approvedAmount"), "Approved amount"),
            approved_interest_rate=optional_float(body.get("approvedInterestRate"), "Approved interest rate"),
            approved_repayment_period=optional_int(body.get("approvedRepaymentPeriod"), "Approved repayment period"),
            rejection_reason=body.get("rejectionReason"),
        )
        return ok(serialize_application(application), message=f"Loan application {application.status.value}")

    @app.route(f"{prefix}/<int:application_id>/disburse", methods=["POST"], endpoint="loan_applications_disburse")
    @permission_required(*MANAGE)
    def disburse(application_id: int):
        body = json_body()
        application = container.loan_application_service.disburse(
            application_id,
            disbursed_by=current_claims().user_id,
            disbursement_date=optional_date(body.get("disbursementDate"), "Disbursement date"),
        )
        return ok(serialize_application(application), message="Loan disbursed")

    @app.route(f"{prefix}/<int:application_id>/cancel", methods=["POST"], endpoint="loan_applications_cancel")
    @login_required
    def cancel(application_id: int):
        application = container.loan_application_service.get_application(application_id)
        claims = current_claims()
        if application.employee_id != claims.employee_id and not can_access_route(claims.permissions, MANAGE):
            raise AuthorizationError("You can only cancel your own loan applications")
        application = container.loan_application_service.cancel(application_id, reason=json_body().get("reason"))
        return ok(serialize_application(application), message="Loan application cancelled")
