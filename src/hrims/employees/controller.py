from __future__ import annotations

from dataclasses import replace

from flask import Flask, redirect, request, url_for

from ..auth.guards import current_claims, permission_required
from ..auth.permissions import EMPLOYEES_VIEW
from ..common.datetime_utils import isoformat_or_none
from ..common.http import flag, json_body, ok, optional_date, optional_float, optional_int, required_int
from ..common.pagination import PageRequest
from ..common.validators import parse_enum
from ..container import Container
from ..core.constants import API_PREFIX
from ..core.enums import ContractType, EmploymentStatus, RegistrationStatus, Role
from .model import Employee, EmployeeFilters
from .service import NewEmployee

VIEW = EMPLOYEES_VIEW
ONBOARD = ("employees:manage_all", "employees:onboard")
MANAGE = ("employees:manage_all",)


def serialize_employee(e: Employee, references=None) -> dict:
    data = {
        "id": e.employee_id,
        "employeeNumber": e.employee_number,
        "firstName": e.first_name,
        "middleName": e.middle_name,
        "lastName": e.last_name,
        "fullName": e.full_name,
        "email": e.email,
        "phone": e.phone,
        "nationalId": e.national_id,
        "dateOfBirth": isoformat_or_none(e.date_of_birth),
        "gender": e.gender,
        "departmentId": e.department_id,
        "positionId": e.position_id,
        "gradeId": e.grade_id,
        "reportsToId": e.reports_to_id,
        "isSupervisor": e.is_supervisor,
        "isDepartmentManager": e.is_department_manager,
        "employmentDate": isoformat_or_none(e.employment_date),
        "contractType": e.contract_type.value,
        "employmentStatus": e.employment_status.value,
        "basicSalary": e.basic_salary,
        "houseAllowance": e.house_allowance,
        "carAllowance": e.car_allowance,
        "travelAllowance": e.travel_allowance,
        "bankName": e.bank_name,
        "bankAccountNumber": e.bank_account_number,
        "hasSystemAccess": e.has_system_access,
        "systemUsername": e.system_username,
        "systemRole": e.system_role.value if e.system_role else None,
        "systemAccessActivatedAt": isoformat_or_none(e.system_access_activated_at),
        "profileVerified": e.profile_verified,
        "profileVerifiedAt": isoformat_or_none(e.profile_verified_at),
        "registrationStatus": e.registration_status.value,
        "registrationComplete": e.registration_complete,
    }
    if references is not None:
        department, position, grade = references
        data.update({"departmentName": department, "positionTitle": position, "gradeCode": grade})
    return data


def _new_employee_from(body: dict) -> NewEmployee:
    contract = body.get("contractType")
    return NewEmployee(
        first_name=body.get("firstName") or "",
        last_name=body.get("lastName") or "",
        middle_name=body.get("middleName"),
        email=body.get("email") or "",
        national_id=body.get("nationalId") or "",
        department_id=required_int(body, "departmentId", "Department"),
        position_id=required_int(body, "positionId", "Position"),
        grade_id=required_int(body, "gradeId", "Grade"),
        employment_date=optional_date(body.get("employmentDate"), "Employment date"),
        date_of_birth=optional_date(body.get("dateOfBirth"), "Date of birth"),
        gender=body.get("gender"),
        phone=body.get("phone"),
        reports_to_id=optional_int(body.get("reportsToId"), "Reports to"),
        contract_type=parse_enum(ContractType, contract, "Contract type") if contract else ContractType.PERMANENT,
        basic_salary=optional_float(body.get("basicSalary"), "Basic salary"),
        bank_name=body.get("bankName"),
        bank_account_number=body.get("bankAccountNumber"),
    )


def _merge(existing: Employee, body: dict) -> Employee:
    changes = {}
    for key, attr in (
        ("firstName", "first_name"),
        ("middleName", "middle_name"),
        ("lastName", "last_name"),
        ("email", "email"),
        ("nationalId", "national_id"),
        ("gender", "gender"),
        ("phone", "phone"),
        ("bankName", "bank_name"),
        ("bankAccountNumber", "bank_account_number"),
    ):
        if key in body:
            changes[attr] = body[key]
    for key, attr, label in (
        ("departmentId", "department_id", "Department"),
        ("positionId", "position_id", "Position"),
        ("gradeId", "grade_id", "Grade"),
    ):
        if body.get(key) not in (None, ""):
            changes[attr] = optional_int(body[key], label)
    if "reportsToId" in body:
        changes["reports_to_id"] = optional_int(body["reportsToId"], "Reports to")
    if "dateOfBirth" in body:
        changes["date_of_birth"] = optional_date(body["dateOfBirth"], "Date of birth")
    if body.get("employmentDate"):
        changes["employment_date"] = optional_date(body["employmentDate"], "Employment date")
    if body.get("contractType"):
        changes["contract_type"] = parse_enum(ContractType, body["contractType"], "Contract type")
    if body.get("employmentStatus"):
        changes["employment_status"] = parse_enum(EmploymentStatus, body["employmentStatus"], "Employment status")
    if body.get("basicSalary") not in (None, ""):
        changes["basic_salary"] = optional_float(body["basicSalary"], "Basic salary")
    return replace(existing, **changes)


def register(app: Flask, container: Container) -> None:
    prefix = f"{API_PREFIX}/employees"

    @app.route(prefix, methods=["GET"], endpoint="employees_list")
    @permission_required(*VIEW)
    def list_employees():
        args = request.args
        status = args.get("employmentStatus") or args.get("status")
        registration = args.get("registrationStatus")
        filters = EmployeeFilters(
            search=args.get("search"),
            department_id=optional_int(args.get("departmentId"), "Department"),
            position_id=optional_int(args.get("positionId"), "Position"),
            grade_id=optional_int(args.get("gradeId"), "Grade"),
            employment_status=parse_enum(EmploymentStatus, status, "Employment status") if status else None,
            registration_status=(
                parse_enum(RegistrationStatus, registration, "Registration status") if registration else None
            ),
        )
        page = container.employee_service.list_employees(
            filters=filters,
            page=PageRequest.from_args(args.get("page"), args.get("limit")),
        )
        return ok(page.to_dict(serialize_employee))

    @app.route(f"{prefix}/<int:employee_id>", methods=["GET"], endpoint="employees_get")
    @permission_required(*VIEW)
    def get_employee(employee_id: int):
        employee = container.employee_service.get_employee(employee_id)
        return ok(serialize_employee(employee, container.employee_service.references(employee)))

    @app.route(prefix, methods=["POST"], endpoint="employees_create")
    @permission_required(*ONBOARD)
    def create_employee():
        employee = container.employee_service.register_employee(_new_employee_from(json_body()))
        return ok(serialize_employee(employee), message="Employee registered", status=201)

    @app.route(f"{prefix}/<int:employee_id>", methods=["PUT"], endpoint="employees_update")
    @permission_required(*ONBOARD)
    def update_employee(employee_id: int):
        existing = container.employee_service.get_employee(employee_id)
        employee = container.employee_service.update_employee(_merge(existing, json_body()))
        return ok(serialize_employee(employee), message="Employee updated")

    @app.route(f"{prefix}/<int:employee_id>", methods=["DELETE"], endpoint="employees_delete")
    @permission_required(*MANAGE)
    def delete_employee(employee_id: int):
        container.employee_service.terminate_employee(employee_id)
        return ok(message="Employee terminated")

    @app.route(f"{prefix}/<int:employee_id>/registration-status", methods=["GET"], endpoint="employees_registration")
    @permission_required(*VIEW)
    def registration_status(employee_id: int):
        return ok(container.onboarding_service.registration_status(employee_id).to_dict())

    @app.route(f"{prefix}/<int:employee_id>/activate-access", methods=["GET"], endpoint="employees_activation_form")
    @permission_required(*ONBOARD)
    def activation_form(employee_id: int):
        state = container.onboarding_service.registration_status(employee_id)
        if state.has_system_access:
            return redirect(url_for("employees_verification_form", employee_id=employee_id), code=302)
        context = container.onboarding_service.activation_context(employee_id, actor_role=current_claims().role)
        return ok(context)

    @app.route(f"{prefix}/<int:employee_id>/activate-access", methods=["POST"], endpoint="employees_activate")
    @permission_required(*ONBOARD)
    def activate_access(employee_id: int):
        body = json_body()
        claims = current_claims()
        role = parse_enum(Role, body["role"], "Role") if body.get("role") else None
        result = container.onboarding_service.activate_system_access(
            employee_id=employee_id,
            role=role,
            username=body.get("username"),
            use_email_as_username=flag(body.get("useEmailAsUsername")),
            activated_by=claims.user_id,
            actor_role=claims.role,
        )
        return ok(
            {
                "employee": serialize_employee(result.employee),
                "username": result.user.username,
                "role": result.user.role.value,
                "temporaryPassword": result.temporary_password,
            },
            message="System access activated",
        )

    @app.route(f"{prefix}/<int:employee_id>/verify-profile", methods=["GET"], endpoint="employees_verification_form")
    @permission_required(*ONBOARD)
    def verification_form(employee_id: int):
        employee = container.employee_service.get_employee(employee_id)
        return ok(
            {
                "employee": serialize_employee(employee, container.employee_service.references(employee)),
                "registration": container.onboarding_service.registration_status(employee_id).to_dict(),
            }
        )

    @app.route(f"{prefix}/<int:employee_id>/verify-profile", methods=["POST"], endpoint="employees_verify")
    @permission_required(*ONBOARD)
    def verify_profile(employee_id: int):
        employee = container.onboarding_service.verify_profile(
            employee_id=employee_id,
            verified_by=current_claims().user_id,
        )
        return ok(serialize_employee(employee), message="Profile verified. Registration complete.")
