from __future__ import annotations

from dataclasses import replace
from typing import Optional

from flask import Flask, request

from ..auth.guards import permission_required
from ..auth.permissions import DEPARTMENTS_VIEW
from ..common.http import flag, json_body, ok, optional_int
from ..common.pagination import PageRequest
from ..container import Container
from ..core.constants import API_PREFIX
from .model import Department
from .service import DepartmentNode

VIEW = DEPARTMENTS_VIEW
MANAGE = ("department:manage", "employees:manage_all")


def serialize_department(d: Department) -> dict:
    return {
        "id": d.department_id,
        "name": d.name,
        "code": d.code,
        "description": d.description,
        "parentId": d.parent_id,
        "headPositionId": d.head_position_id,
        "isActive": d.is_active,
    }


def _serialize_node(node: DepartmentNode) -> dict:
    data = serialize_department(node.department)
    data["children"] = [_serialize_node(c) for c in node.children]
    return data


def _department_from(body: dict, existing: Optional[Department] = None) -> Department:
    if existing is None:
        return Department(
            department_id=0,
            name=body.get("name") or "",
            code=body.get("code") or "",
            description=body.get("description"),
            parent_id=optional_int(body.get("parentId"), "Parent department"),
            head_position_id=optional_int(body.get("headPositionId"), "Head position"),
        )
    changes = {}
    for key in ("name", "code", "description"):
        if key in body:
            changes[key] = body[key]
    if "parentId" in body:
        changes["parent_id"] = optional_int(body["parentId"], "Parent department")
    if "headPositionId" in body:
        changes["head_position_id"] = optional_int(body["headPositionId"], "Head position")
    return replace(existing, **changes)


def register(app: Flask, container: Container) -> None:
    prefix = f"{API_PREFIX}/departments"

    @app.route(prefix, methods=["GET"], endpoint="departments_list")
    @permission_required(*VIEW)
    def list_departments():
        args = request.args
        page = container.department_service.list_departments(
            page=PageRequest.from_args(args.get("page"), args.get("limit")),
            search=args.get("search"),
            active_only=flag(args.get("activeOnly")),
        )
        return ok(page.to_dict(serialize_department))

    @app.route(f"{prefix}/hierarchy", methods=["GET"], endpoint="departments_hierarchy")
    @permission_required(*VIEW)
    def hierarchy():
        return ok([_serialize_node(n) for n in container.department_service.hierarchy()])

    @app.route(f"{prefix}/<int:department_id>", methods=["GET"], endpoint="departments_get")
    @permission_required(*VIEW)
    def get_department(department_id: int):
        return ok(serialize_department(container.department_service.get_department(department_id)))

    @app.route(f"{prefix}/<int:department_id>/path", methods=["GET"], endpoint="departments_path")
    @permission_required(*VIEW)
    def department_path(department_id: int):
        return ok([serialize_department(d) for d in container.department_service.path(department_id)])

    @app.route(prefix, methods=["POST"], endpoint="departments_create")
    @permission_required(*MANAGE)
    def create_department():
        department = container.department_service.create_department(_department_from(json_body()))
        return ok(serialize_department(department), message="Department created", status=201)

    @app.route(f"{prefix}/<int:department_id>", methods=["PUT"], endpoint="departments_update")
    @permission_required(*MANAGE)
    def update_department(department_id: int):
        existing = container.department_service.get_department(department_id)
        department = container.department_service.update_department(_department_from(json_body(), existing))
        return ok(serialize_department(department), message="Department updated")

    @app.route(f"{prefix}/<int:department_id>", methods=["DELETE"], endpoint="departments_delete")
    @permission_required(*MANAGE)
    def delete_department(department_id: int):
        container.department_service.delete_department(department_id)
        return ok(message="Department deleted")

    @app.route(f"{prefix}/<int:department_id>/restore", methods=["POST"], endpoint="departments_restore")
    @permission_required(*MANAGE)
    def restore_department(department_id: int):
        department = container.department_service.restore_department(department_id)
        return ok(serialize_department(department), message="Department restored")
