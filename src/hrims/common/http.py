from __future__ import annotations

import logging
from datetime import date
from typing import Any, Optional

from flask import Flask, jsonify, request
from werkzeug.exceptions import HTTPException

from ..core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    DomainError,
    NotFoundError,
    ValidationError,
)
from .datetime_utils import parse_optional_date

logger = logging.getLogger(__name__)

STATUS_BY_ERROR = (
    (ValidationError, 400),
    (AuthenticationError, 401),
    (AuthorizationError, 403),
    (NotFoundError, 404),
    (ConflictError, 409),
)


def status_for(error: DomainError) -> int:
    for error_cls, status in STATUS_BY_ERROR:
        if isinstance(error, error_cls):
            return status
    return 400


def error_response(message: str, status: int):
    return jsonify({"success": False, "message": message}), status


def ok(data: Any = None, *, message: Optional[str] = None, status: int = 200):
    body: dict = {"success": True}
    if message:
        body["message"] = message
    if data is not None:
        body["data"] = data
    return jsonify(body), status


def json_body() -> dict:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def optional_int(value, field_name: str) -> Optional[int]:
    if value in (None, ""):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be a whole number")


def required_int(body: dict, key: str, field_name: str) -> int:
    value = optional_int(body.get(key), field_name)
    if value is None:
        raise ValidationError(f"{field_name} is required")
    return value


def optional_float(value, field_name: str) -> Optional[float]:
    if value in (None, ""):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be a number")


def optional_date(value, field_name: str) -> Optional[date]:
    try:
        return parse_optional_date(value)
    except ValueError:
        raise ValidationError(f"{field_name} must be a date in YYYY-MM-DD format")


def flag(value, default: bool = False) -> bool:
    """Truthiness of a JSON or query-string flag ("true", "1", "yes")."""
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("1", "true", "yes", "on")


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(DomainError)
    def handle_domain_error(e: DomainError):
        return error_response(str(e), status_for(e))

    @app.errorhandler(404)
    def handle_not_found(_e):
        return error_response("Resource not found", 404)

    @app.errorhandler(405)
    def handle_method_not_allowed(_e):
        return error_response("Method not allowed", 405)

    @app.errorhandler(Exception)
    def handle_unexpected(e: Exception):
        if isinstance(e, HTTPException):
            return error_response(e.description or e.name, e.code or 500)
        logger.exception("Unhandled error on %s %s", request.method, request.path)
        if bool(app.config.get("DEBUG", False)):
            return error_response(f"Internal server error: {e}", 500)
        return error_response("Internal server error", 500)
