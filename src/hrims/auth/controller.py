from __future__ import annotations

from typing import Optional

from flask import Flask, request, send_from_directory

from ..common.datetime_utils import isoformat_or_none
from ..common.http import json_body, ok
from ..container import Container
from ..core.constants import API_PREFIX
from ..core.exceptions import ValidationError
from ..employees.model import Employee
from .guards import current_claims, login_required
from .model import UserAccount
from .navigation import visible_nav_items


def serialize_user(user: UserAccount) -> dict:
    return {
        "id": user.user_id,
        "username": user.username,
        "email": user.email,
        "role": user.role.value,
        "employeeId": user.employee_id,
        "status": user.status.value,
        "mustChangePassword": user.must_change_password,
        "lastLoginAt": isoformat_or_none(user.last_login_at),
        "avatarUrl": user.avatar_url,
    }


def _serialize_profile(user: UserAccount, employee: Optional[Employee]) -> dict:
    data = serialize_user(user)
    if employee is not None:
        data["employee"] = {
            "id": employee.employee_id,
            "employeeNumber": employee.employee_number,
            "fullName": employee.full_name,
            "email": employee.email,
            "phone": employee.phone,
            "bankName": employee.bank_name,
            "bankAccountNumber": employee.bank_account_number,
            "registrationStatus": employee.registration_status.value,
        }
    return data


def register(app: Flask, container: Container) -> None:
    prefix = f"{API_PREFIX}/auth"

    def _tokens_payload(tokens) -> dict:
        return {
            "accessToken": tokens.access_token,
            "refreshToken": tokens.refresh_token,
            "expiresIn": tokens.expires_in,
            "user": serialize_user(tokens.user),
            "permissions": list(tokens.permissions),
        }

    @app.route(f"{prefix}/login", methods=["POST"], endpoint="auth_login")
    def login():
        body = json_body()
        identifier = body.get("username") or body.get("email") or body.get("identifier") or ""
        tokens = container.auth_service.login(identifier, body.get("password") or "")
        return ok(_tokens_payload(tokens), message="Login successful")

    @app.route(f"{prefix}/refresh-token", methods=["POST"], endpoint="auth_refresh_token")
    def refresh_token():
        body = json_body()
        tokens = container.auth_service.refresh(body.get("refreshToken") or "")
        return ok(_tokens_payload(tokens))

    @app.route(f"{prefix}/logout", methods=["POST"], endpoint="auth_logout")
    @login_required
    def logout():
        container.auth_service.logout(current_claims().user_id)
        return ok(message="Logged out")

    @app.route(f"{prefix}/profile", methods=["GET"], endpoint="auth_profile")
    @login_required
    def profile():
        user, employee = container.auth_service.profile(current_claims().user_id)
        return ok(_serialize_profile(user, employee))

    @app.route(f"{prefix}/profile", methods=["PUT"], endpoint="auth_update_profile")
    @login_required
    def update_profile():
        body = json_body()
        container.auth_service.update_profile(
            current_claims().user_id,
            phone=body.get("phone"),
            bank_name=body.get("bankName"),
            bank_account_number=body.get("bankAccountNumber"),
        )
        user, employee = container.auth_service.profile(current_claims().user_id)
        return ok(_serialize_profile(user, employee), message="Profile updated")

    @app.route(f"{prefix}/change-password", methods=["POST"], endpoint="auth_change_password")
    @login_required
    def change_password():
        body = json_body()
        container.auth_service.change_password(
            current_claims().user_id,
            current_password=body.get("currentPassword") or "",
            new_password=body.get("newPassword") or "",
        )
        return ok(message="Password changed")

    @app.route(f"{prefix}/permissions", methods=["GET"], endpoint="auth_permissions")
    @login_required
    def permissions():
        claims = current_claims()
        return ok({"role": claims.role.value, "permissions": list(claims.permissions)})

    @app.route(f"{prefix}/navigation", methods=["GET"], endpoint="auth_navigation")
    @login_required
    def navigation():
        items = visible_nav_items(current_claims().permissions)
        return ok([item.to_dict() for item in items])

    @app.route(f"{prefix}/avatar", methods=["POST"], endpoint="auth_upload_avatar")
    @login_required
    def upload_avatar():
        upload = request.files.get("avatar")
        if upload is None or not upload.filename:
            raise ValidationError("Avatar file is required")
        user = container.avatar_service.save(current_claims().user_id, upload.stream)
        return ok({"avatarUrl": user.avatar_url}, message="Avatar updated")

    # Public so the URL works in <img> tags; file names are unguessable.
    @app.route(f"{prefix}/avatar/<path:filename>", methods=["GET"], endpoint="auth_avatar_file")
    def avatar_file(filename: str):
        return send_from_directory(container.avatar_service.directory.resolve(), filename, mimetype="image/png")
