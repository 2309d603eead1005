import pytest

from fakes import make_user
from hrims.auth.tokens import ACCESS, REFRESH, TokenService
from hrims.core.enums import Role
from hrims.core.exceptions import AuthenticationError


def _service(now=1000.0):
    return TokenService(secret="s3cret", access_expires_seconds=900, refresh_expires_days=7, now=lambda: now)


def test_access_token_round_trip():
    user = make_user(7, username="cbanda", role=Role.EMPLOYEE, employee_id=3, password_hash="x")
    token = _service().issue_access_token(user, ("profile:manage", "requests:create"))

    claims = _service().decode(token)

    assert claims.user_id == 7
    assert claims.username == "cbanda"
    assert claims.role == Role.EMPLOYEE
    assert claims.employee_id == 3
    assert claims.permissions == ("profile:manage", "requests:create")
    assert claims.token_type == ACCESS
    assert claims.expires_at == 1900


def test_token_type_is_enforced():
    user = make_user(password_hash="x")
    refresh = _service().issue_refresh_token(user, ())

    assert _service().decode(refresh, expected_type=REFRESH).user_id == user.user_id
    with pytest.raises(AuthenticationError):
        _service().decode(refresh)


def test_expired_token_is_rejected():
    token = _service(1000.0).issue_access_token(make_user(password_hash="x"), ())

    with pytest.raises(AuthenticationError):
        _service(1900.0).decode(token)


def test_foreign_signature_is_rejected():
    other = TokenService(secret="another", now=lambda: 1000.0)
    token = other.issue_access_token(make_user(password_hash="x"), ())

    with pytest.raises(AuthenticationError):
        _service().decode(token)


def test_empty_secret_is_refused():
    with pytest.raises(ValueError):
        TokenService(secret="")
