from hrims.core.enums import Role


def test_unknown_route_answers_json_404(client):
    resp = client.get("/api/v1/nowhere")

    assert resp.status_code == 404
    assert resp.get_json() == {"success": False, "message": "Resource not found"}


def test_missing_record_answers_404(client, auth_header):
    resp = client.get("/api/v1/departments/99", headers=auth_header(Role.HR_ADMIN))

    assert resp.status_code == 404
    assert resp.get_json()["success"] is False


def test_bad_enum_value_answers_400(client, auth_header):
    resp = client.get("/api/v1/loan-applications?status=BOGUS", headers=auth_header(Role.FINANCE_MANAGER))

    assert resp.status_code == 400
    assert resp.get_json()["message"].startswith("Status must be one of")
