from __future__ import annotations

from functools import wraps

from flask import current_app, g, request

from ..common.http import error_response
from ..core.exceptions import AuthenticationError
from .permissions import can_access_route
from .tokens import ACCESS, TokenClaims

CONTAINER_KEY = "hrims.container"


def _bearer_token() -> str:
    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return ""
    return token.strip()


def current_claims() -> TokenClaims:
    return g.current_user


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        token = _bearer_token()
        if not token:
            return error_response("Authentication required", 401)
        container = current_app.extensions[CONTAINER_KEY]
        try:
            g.current_user = container.token_service.decode(token, expected_type=ACCESS)
        except AuthenticationError as e:
            return error_response(str(e), 401)
        return view(*args, **kwargs)

    return wrapper


def permission_required(*permissions: str):
    """Allow the call when the token holds any of ``permissions`` (or full access)."""

    def decorator(view):
        @wraps(view)
        def checked(*args, **kwargs):
            if not can_access_route(g.current_user.permissions, permissions):
                return error_response("You do not have permission to perform this action", 403)
            return view(*args, **kwargs)

        return login_required(checked)

    return decorator
