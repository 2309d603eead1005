import pytest

from fakes import make_employee
from hrims.core.enums import Role

PREFIX = "/api/v1/loan-applications"


@pytest.fixture
def staff(employees_repo):
    employees_repo.add(make_employee(1))
    employees_repo.add(make_employee(2))


def test_employee_applies_for_own_loan(client, staff, auth_header):
    headers = auth_header(Role.EMPLOYEE, employee_id=1)

    resp = client.post(
        PREFIX,
        json={"employeeId": 2, "loanTypeCode": "PERSONAL", "amount": 100000, "repaymentPeriod": 12},
        headers=headers,
    )

    assert resp.status_code == 201
    data = resp.get_json()["data"]
    assert data["employeeId"] == 1
    assert data["status"] == "SUBMITTED"
    assert data["monthlyRepayment"] == 8884.88


def test_other_employees_cannot_read_the_application(client, staff, auth_header):
    created = client.post(
        PREFIX,
        json={"loanTypeCode": "PERSONAL", "amount": 100000, "repaymentPeriod": 12},
        headers=auth_header(Role.EMPLOYEE, employee_id=1),
    ).get_json()["data"]

    other = auth_header(Role.EMPLOYEE, employee_id=2)
    assert client.get(f"{PREFIX}/{created['id']}", headers=other).status_code == 403
    assert client.get(f"{PREFIX}/{created['id']}", headers=auth_header(Role.FINANCE_MANAGER)).status_code == 200


def test_approval_requires_permission(client, staff, auth_header):
    created = client.post(
        PREFIX,
        json={"loanTypeCode": "PERSONAL", "amount": 100000, "repaymentPeriod": 12},
        headers=auth_header(Role.EMPLOYEE, employee_id=1),
    ).get_json()["data"]
    url = f"{PREFIX}/{created['id']}/status"

    resp = client.put(url, json={"status": "APPROVED"}, headers=auth_header(Role.EMPLOYEE, employee_id=2))
    assert resp.status_code == 403

    resp = client.put(url, json={"status": "APPROVED"}, headers=auth_header(Role.FINANCE_MANAGER))
    assert resp.status_code == 200
    assert resp.get_json()["data"]["status"] == "APPROVED"


def test_calculate_by_loan_type(client, auth_header):
    resp = client.post(
        f"{PREFIX}/calculate",
        json={"loanTypeCode": "personal", "amount": 100000, "repaymentPeriod": 12},
        headers=auth_header(Role.EMPLOYEE),
    )

    assert resp.status_code == 200
    assert resp.get_json()["data"]["monthlyPayment"] == 8884.88


def test_validation_errors_answer_400(client, staff, auth_header):
    resp = client.post(
        PREFIX,
        json={"loanTypeCode": "PERSONAL", "amount": 100000},
        headers=auth_header(Role.EMPLOYEE, employee_id=1),
    )

    assert resp.status_code == 400
    assert resp.get_json()["message"] == "Repayment period is required"
