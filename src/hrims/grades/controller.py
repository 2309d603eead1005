from __future__ import annotations

from dataclasses import replace
from typing import Optional

from flask import Flask, request

from ..auth.guards import permission_required
from ..auth.permissions import GRADES_VIEW
from ..common.http import flag, json_body, ok, optional_float, optional_int, required_int
from ..common.validators import parse_enum
from ..container import Container
from ..core.constants import API_PREFIX
from ..core.enums import GradeBand
from ..core.exceptions import ValidationError
from .model import Grade, GradeCompensation, GradeLimits, SalaryRange

VIEW = GRADES_VIEW
MANAGE = ("grade:manage",)


def serialize_grade(g: Grade) -> dict:
    comp = g.compensation
    return {
        "id": g.grade_id,
        "name": g.name,
        "code": g.code,
        "level": g.level,
        "band": g.band.value,
        "description": g.description,
        "compensation": {
            "basicSalary": {
                "minimum": comp.basic_salary.minimum,
                "midpoint": comp.basic_salary.midpoint,
                "maximum": comp.basic_salary.maximum,
            },
            "houseAllowance": comp.house_allowance,
            "carAllowance": comp.car_allowance,
            "travelAllowance": comp.travel_allowance,
            "overtimeRate": comp.overtime_rate,
        },
        "limits": {
            "maxLoanAmount": g.limits.max_loan_amount,
            "requiresManagerApproval": g.limits.requires_manager_approval,
            "requiresDirectorApproval": g.limits.requires_director_approval,
            "maxApprovalLevel": g.limits.max_approval_level,
        },
        "nextGradeId": g.next_grade_id,
        "isActive": g.is_active,
    }


def _number(data: dict, key: str, label: str, default: float) -> float:
    value = optional_float(data.get(key), label)
    return default if value is None else value


def _salary_range(data: Optional[dict], current: Optional[SalaryRange]) -> SalaryRange:
    if data is None:
        if current is None:
            raise ValidationError("Basic salary range is required")
        return current
    base = current or SalaryRange(minimum=0.0, midpoint=0.0, maximum=0.0)
    minimum = _number(data, "minimum", "Minimum salary", base.minimum)
    maximum = _number(data, "maximum", "Maximum salary", base.maximum)
    midpoint = optional_float(data.get("midpoint"), "Midpoint salary")
    if midpoint is None:
        midpoint = base.midpoint if current is not None else round((minimum + maximum) / 2, 2)
    return SalaryRange(minimum=minimum, midpoint=midpoint, maximum=maximum)


def _grade_from(body: dict, existing: Optional[Grade] = None) -> Grade:
    comp_in = body.get("compensation") or {}
    limits_in = body.get("limits") or {}
    comp = existing.compensation if existing else None
    limits = existing.limits if existing else GradeLimits()

    compensation = GradeCompensation(
        basic_salary=_salary_range(comp_in.get("basicSalary"), comp.basic_salary if comp else None),
        house_allowance=_number(comp_in, "houseAllowance", "House allowance", comp.house_allowance if comp else 0.0),
        car_allowance=_number(comp_in, "carAllowance", "Car allowance", comp.car_allowance if comp else 0.0),
        travel_allowance=_number(
            comp_in, "travelAllowance", "Travel allowance", comp.travel_allowance if comp else 0.0
        ),
        overtime_rate=_number(comp_in, "overtimeRate", "Overtime rate", comp.overtime_rate if comp else 1.0),
    )
    grade_limits = GradeLimits(
        max_loan_amount=_number(limits_in, "maxLoanAmount", "Maximum loan amount", limits.max_loan_amount),
        requires_manager_approval=flag(
            limits_in.get("requiresManagerApproval"), limits.requires_manager_approval
        ),
        requires_director_approval=flag(
            limits_in.get("requiresDirectorApproval"), limits.requires_director_approval
        ),
        max_approval_level=limits_in.get("maxApprovalLevel") or limits.max_approval_level,
    )

    if existing is None:
        band = body.get("band")
        return Grade(
            grade_id=0,
            name=body.get("name") or "",
            code=body.get("code") or "",
            level=required_int(body, "level", "Grade level"),
            band=parse_enum(GradeBand, band, "Grade band") if band else GradeBand.OPERATIONAL,
            compensation=compensation,
            limits=grade_limits,
            description=body.get("description"),
            next_grade_id=optional_int(body.get("nextGradeId"), "Next grade"),
        )

    changes = {"compensation": compensation, "limits": grade_limits}
    for key in ("name", "code", "description"):
        if key in body:
            changes[key] = body[key]
    if body.get("level") not in (None, ""):
        changes["level"] = required_int(body, "level", "Grade level")
    if body.get("band"):
        changes["band"] = parse_enum(GradeBand, body["band"], "Grade band")
    if "nextGradeId" in body:
        changes["next_grade_id"] = optional_int(body["nextGradeId"], "Next grade")
    if "isActive" in body:
        changes["is_active"] = flag(body["isActive"], existing.is_active)
    return replace(existing, **changes)


def register(app: Flask, container: Container) -> None:
    prefix = f"{API_PREFIX}/grades"

    @app.route(prefix, methods=["GET"], endpoint="grades_list")
    @permission_required(*VIEW)
    def list_grades():
        band = request.args.get("band")
        grades = container.grade_service.list_grades(
            active_only=flag(request.args.get("activeOnly")),
            band=parse_enum(GradeBand, band, "Grade band") if band else None,
        )
        return ok([serialize_grade(g) for g in grades])

    @app.route(f"{prefix}/<int:grade_id>", methods=["GET"], endpoint="grades_get")
    @permission_required(*VIEW)
    def get_grade(grade_id: int):
        return ok(serialize_grade(container.grade_service.get_grade(grade_id)))

    @app.route(prefix, methods=["POST"], endpoint="grades_create")
    @permission_required(*MANAGE)
    def create_grade():
        grade = container.grade_service.create_grade(_grade_from(json_body()))
        return ok(serialize_grade(grade), message="Grade created", status=201)

    @app.route(f"{prefix}/<int:grade_id>", methods=["PUT"], endpoint="grades_update")
    @permission_required(*MANAGE)
    def update_grade(grade_id: int):
        existing = container.grade_service.get_grade(grade_id)
        grade = container.grade_service.update_grade(_grade_from(json_body(), existing))
        return ok(serialize_grade(grade), message="Grade updated")

    @app.route(f"{prefix}/<int:grade_id>", methods=["DELETE"], endpoint="grades_delete")
    @permission_required(*MANAGE)
    def delete_grade(grade_id: int):
        container.grade_service.deactivate_grade(grade_id)
        return ok(message="Grade deactivated")

    @app.route(f"{prefix}/<int:grade_id>/compensation", methods=["GET"], endpoint="grades_compensation")
    @permission_required(*VIEW)
    def compensation(grade_id: int):
        grade = container.grade_service.get_grade(grade_id)
        salary = optional_float(request.args.get("basicSalary"), "Basic salary")
        return ok(container.compensation_service.breakdown(grade, salary).to_dict())

    @app.route(f"{prefix}/<int:grade_id>/next", methods=["GET"], endpoint="grades_next")
    @permission_required(*VIEW)
    def next_grade(grade_id: int):
        grade = container.grade_service.next_grade(grade_id)
        return ok(serialize_grade(grade) if grade else None)

    @app.route(f"{prefix}/can-approve", methods=["GET"], endpoint="grades_can_approve")
    @permission_required(*VIEW)
    def can_approve():
        args = request.args
        allowed = container.grade_service.can_approve(
            approver_grade_id=required_int(args, "approverGradeId", "Approver grade"),
            target_grade_id=required_int(args, "targetGradeId", "Target grade"),
        )
        return ok({"canApprove": allowed})
