import pytest

from fakes import PASSWORD, make_user

PREFIX = "/api/v1/auth"


@pytest.fixture
def account(users_repo):
    return users_repo.add(make_user())


def _login(client, password=PASSWORD):
    return client.post(f"{PREFIX}/login", json={"username": "hradmin", "password": password})


def test_login_returns_tokens(client, account):
    resp = _login(client)

    assert resp.status_code == 200
    body = resp.get_json()
    assert body["success"] is True
    assert body["data"]["accessToken"]
    assert body["data"]["refreshToken"]
    assert body["data"]["user"]["username"] == "hradmin"


def test_bad_credentials_answer_401(client, account):
    resp = _login(client, "wrong-password")

    assert resp.status_code == 401
    assert resp.get_json() == {"success": False, "message": "Invalid credentials"}


def test_navigation_and_permissions_for_logged_in_user(client, account):
    token = _login(client).get_json()["data"]["accessToken"]
    headers = {"Authorization": f"Bearer {token}"}

    nav = client.get(f"{PREFIX}/navigation", headers=headers).get_json()["data"]
    assert "employees" in [i["key"] for i in nav]
    assert "admin" not in [i["key"] for i in nav]

    perms = client.get(f"{PREFIX}/permissions", headers=headers).get_json()["data"]
    assert perms["role"] == "hr_admin"


def test_refresh_token_endpoint(client, account):
    refresh = _login(client).get_json()["data"]["refreshToken"]

    resp = client.post(f"{PREFIX}/refresh-token", json={"refreshToken": refresh})

    assert resp.status_code == 200
    assert resp.get_json()["data"]["accessToken"]


def test_garbage_bearer_token_is_rejected(client):
    resp = client.get(f"{PREFIX}/profile", headers={"Authorization": "Bearer not-a-jwt"})

    assert resp.status_code == 401
