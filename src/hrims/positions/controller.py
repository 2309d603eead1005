from __future__ import annotations

from dataclasses import replace
from typing import Optional

from flask import Flask, request

from ..auth.guards import permission_required
from ..auth.permissions import POSITIONS_VIEW
from ..common.http import flag, json_body, ok, optional_int, required_int
from ..common.pagination import PageRequest
from ..container import Container
from ..core.constants import API_PREFIX
from .model import Position

VIEW = POSITIONS_VIEW
MANAGE = ("position:manage",)

_FLAGS = (
    ("isHeadOfDepartment", "is_head_of_department"),
    ("isSupervisor", "is_supervisor"),
    ("isManager", "is_manager"),
    ("isDirector", "is_director"),
)


def serialize_position(p: Position) -> dict:
    return {
        "id": p.position_id,
        "title": p.title,
        "code": p.code,
        "description": p.description,
        "departmentId": p.department_id,
        "gradeId": p.grade_id,
        "reportsToId": p.reports_to_id,
        "isHeadOfDepartment": p.is_head_of_department,
        "isSupervisor": p.is_supervisor,
        "isManager": p.is_manager,
        "isDirector": p.is_director,
        "numberOfPositions": p.number_of_positions,
        "currentlyFilled": p.currently_filled,
        "availablePositions": p.available_positions,
        "isActive": p.is_active,
    }


def _position_from(body: dict, existing: Optional[Position] = None) -> Position:
    if existing is None:
        count = optional_int(body.get("numberOfPositions"), "Number of positions")
        return Position(
            position_id=0,
            title=body.get("title") or "",
            code=body.get("code") or "",
            description=body.get("description"),
            department_id=required_int(body, "departmentId", "Department"),
            grade_id=required_int(body, "gradeId", "Grade"),
            reports_to_id=optional_int(body.get("reportsToId"), "Reports to"),
            number_of_positions=1 if count is None else count,
            **{attr: flag(body.get(key)) for key, attr in _FLAGS},
        )

    changes = {}
    for key in ("title", "code", "description"):
        if key in body:
            changes[key] = body[key]
    for key, attr, label in (("departmentId", "department_id", "Department"), ("gradeId", "grade_id", "Grade")):
        if body.get(key) not in (None, ""):
            changes[attr] = required_int(body, key, label)
    if "reportsToId" in body:
        changes["reports_to_id"] = optional_int(body["reportsToId"], "Reports to")
    if body.get("numberOfPositions") not in (None, ""):
        changes["number_of_positions"] = required_int(body, "numberOfPositions", "Number of positions")
    for key, attr in _FLAGS:
        if key in body:
            changes[attr] = flag(body[key], getattr(existing, attr))
    return replace(existing, **changes)


def register(app: Flask, container: Container) -> None:
    prefix = f"{API_PREFIX}/positions"

    @app.route(prefix, methods=["GET"], endpoint="positions_list")
    @permission_required(*VIEW)
    def list_positions():
        args = request.args
        page = container.position_service.list_positions(
            page=PageRequest.from_args(args.get("page"), args.get("limit")),
            department_id=optional_int(args.get("departmentId"), "Department"),
            grade_id=optional_int(args.get("gradeId"), "Grade"),
            search=args.get("search"),
            active_only=flag(args.get("activeOnly")),
        )
        return ok(page.to_dict(serialize_position))

    @app.route(f"{prefix}/<int:position_id>", methods=["GET"], endpoint="positions_get")
    @permission_required(*VIEW)
    def get_position(position_id: int):
        return ok(serialize_position(container.position_service.get_position(position_id)))

    @app.route(prefix, methods=["POST"], endpoint="positions_create")
    @permission_required(*MANAGE)
    def create_position():
        position = container.position_service.create_position(_position_from(json_body()))
        return ok(serialize_position(position), message="Position created", status=201)

    @app.route(f"{prefix}/<int:position_id>", methods=["PUT"], endpoint="positions_update")
    @permission_required(*MANAGE)
    def update_position(position_id: int):
        existing = container.position_service.get_position(position_id)
        position = container.position_service.update_position(_position_from(json_body(), existing))
        return ok(serialize_position(position), message="Position updated")

    @app.route(f"{prefix}/<int:position_id>", methods=["DELETE"], endpoint="positions_delete")
    @permission_required(*MANAGE)
    def delete_position(position_id: int):
        container.position_service.delete_position(position_id)
        return ok(message="Position deleted")
