from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Any, BinaryIO, Optional, Union

import requests

from ..core.constants import API_PREFIX

logger = logging.getLogger(__name__)

# Never retried through a token refresh.
AUTH_PATHS = ("/auth/login", "/auth/refresh-token")


class ApiError(Exception):
    def __init__(self, status_code: int, message: str):
        super().__init__(message)
        self.status_code = status_code
        self.message = message


class SessionExpiredError(ApiError):
    def __init__(self, message: str = "Session expired. Please log in again."):
        super().__init__(401, message)


@dataclass
class TokenStore:
    access_token: Optional[str] = None
    refresh_token: Optional[str] = None
    user: Optional[dict] = None

    def clear(self) -> None:
        self.access_token = None
        self.refresh_token = None
        self.user = None


class HrimsApiClient:
    """Bearer-token client for the HRIMS REST API.

    A 401 on any non-auth endpoint triggers one refresh through
    ``POST /auth/refresh-token`` and one retry of the original request.
    Refreshes are single-flight: threads that hit 401 while another thread is
    refreshing wait for it and then retry with the rotated token.
    """

    def __init__(self, base_url: str, session: Optional[requests.Session] = None, *, timeout: float = 10):
        self.base_url = base_url.rstrip("/")
        self.session = session if session is not None else requests.Session()
        self.timeout = timeout
        self.tokens = TokenStore()
        self._refresh_lock = threading.Lock()

    # Transport

    def _url(self, path: str) -> str:
        return f"{self.base_url}{API_PREFIX}{path}"

    def _send(self, method: str, path: str, token: Optional[str], **kwargs):
        headers = {"Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return self.session.request(method, self._url(path), headers=headers, timeout=self.timeout, **kwargs)

    @staticmethod
    def _payload(response) -> dict:
        try:
            payload = response.json()
        except ValueError:
            return {}
        return payload if isinstance(payload, dict) else {}

    def _unwrap(self, response) -> Any:
        payload = self._payload(response)
        if response.status_code >= 400:
            message = payload.get("message") or getattr(response, "reason", None) or f"HTTP {response.status_code}"
            raise ApiError(response.status_code, message)
        return payload.get("data")

    def request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[dict] = None,
        json: Optional[dict] = None,
        files: Optional[dict] = None,
    ) -> Any:
        kwargs: dict = {"params": params, "json": json}
        if files:
            kwargs["files"] = files
        token = self.tokens.access_token
        response = self._send(method, path, token, **kwargs)

        if response.status_code == 401 and path not in AUTH_PATHS and self.tokens.refresh_token:
            self._refresh(stale_token=token)
            response = self._send(method, path, self.tokens.access_token, **kwargs)

        return self._unwrap(response)

    def _refresh(self, *, stale_token: Optional[str]) -> None:
        with self._refresh_lock:
            if self.tokens.access_token and self.tokens.access_token != stale_token:
                # Another request already rotated the token.
                return

            refresh_token = self.tokens.refresh_token
            if not refresh_token:
                self.tokens.clear()
                raise SessionExpiredError()

            try:
                response = self._send("POST", "/auth/refresh-token", None, json={"refreshToken": refresh_token})
                data = self._unwrap(response) or {}
            except (ApiError, requests.RequestException) as e:
                logger.warning("Token refresh failed: %s", e)
                self.tokens.clear()
                raise SessionExpiredError() from e

            if not data.get("accessToken"):
                self.tokens.clear()
                raise SessionExpiredError()

            self.tokens.access_token = data["accessToken"]
            if data.get("refreshToken"):
                self.tokens.refresh_token = data["refreshToken"]
            if data.get("user"):
                self.tokens.user = data["user"]
            logger.info("Access token refreshed")

    # Auth

    def login(self, username: str, password: str) -> dict:
        data = self.request("POST", "/auth/login", json={"username": username, "password": password})
        self.tokens.access_token = data["accessToken"]
        self.tokens.refresh_token = data["refreshToken"]
        self.tokens.user = data.get("user")
        return data

    def refresh_token(self) -> None:
        self._refresh(stale_token=self.tokens.access_token)

    def logout(self) -> None:
        try:
            self.request("POST", "/auth/logout")
        finally:
            self.tokens.clear()

    def get_profile(self) -> dict:
        return self.request("GET", "/auth/profile")

    def update_profile(self, **fields) -> dict:
        return self.request("PUT", "/auth/profile", json=fields)

    def change_password(self, current_password: str, new_password: str) -> None:
        self.request(
            "POST",
            "/auth/change-password",
            json={"currentPassword": current_password, "newPassword": new_password},
        )

    def get_permissions(self) -> dict:
        return self.request("GET", "/auth/permissions")

    def get_navigation(self) -> list:
        return self.request("GET", "/auth/navigation")

    def upload_avatar(self, image: Union[bytes, BinaryIO], filename: str = "avatar.png") -> str:
        """Upload a profile picture; returns the URL it is served from."""

        # Bytes so the upload can be resent after a token refresh.
        data = image if isinstance(image, bytes) else image.read()
        result = self.request("POST", "/auth/avatar", files={"avatar": (filename, data)})
        return result["avatarUrl"]

    # Employees

    def list_employees(self, **filters) -> Any:
        return self.request("GET", "/employees", params=filters or None)

    def get_employee(self, employee_id: int) -> dict:
        return self.request("GET", f"/employees/{employee_id}")

    def create_employee(self, data: dict) -> dict:
        return self.request("POST", "/employees", json=data)

    def update_employee(self, employee_id: int, data: dict) -> dict:
        return self.request("PUT", f"/employees/{employee_id}", json=data)

    def delete_employee(self, employee_id: int) -> None:
        self.request("DELETE", f"/employees/{employee_id}")

    def registration_status(self, employee_id: int) -> dict:
        return self.request("GET", f"/employees/{employee_id}/registration-status")

    def activate_access(
        self,
        employee_id: int,
        *,
        role: str,
        username: Optional[str] = None,
        use_email_as_username: bool = False,
    ) -> dict:
        body: dict = {"role": role, "useEmailAsUsername": use_email_as_username}
        if username:
            body["username"] = username
        return self.request("POST", f"/employees/{employee_id}/activate-access", json=body)

    def verify_profile(self, employee_id: int, data: Optional[dict] = None) -> dict:
        return self.request("POST", f"/employees/{employee_id}/verify-profile", json=data or {})

    # Organization

    def list_departments(self, **filters) -> Any:
        return self.request("GET", "/departments", params=filters or None)

    def department_hierarchy(self) -> list:
        return self.request("GET", "/departments/hierarchy")

    def get_department(self, department_id: int) -> dict:
        return self.request("GET", f"/departments/{department_id}")

    def create_department(self, data: dict) -> dict:
        return self.request("POST", "/departments", json=data)

    def update_department(self, department_id: int, data: dict) -> dict:
        return self.request("PUT", f"/departments/{department_id}", json=data)

    def delete_department(self, department_id: int) -> None:
        self.request("DELETE", f"/departments/{department_id}")

    def list_positions(self, **filters) -> Any:
        return self.request("GET", "/positions", params=filters or None)

    def get_position(self, position_id: int) -> dict:
        return self.request("GET", f"/positions/{position_id}")

    def create_position(self, data: dict) -> dict:
        return self.request("POST", "/positions", json=data)

    def update_position(self, position_id: int, data: dict) -> dict:
        return self.request("PUT", f"/positions/{position_id}", json=data)

    def delete_position(self, position_id: int) -> None:
        self.request("DELETE", f"/positions/{position_id}")

    def list_grades(self, **filters) -> list:
        return self.request("GET", "/grades", params=filters or None)

    def get_grade(self, grade_id: int) -> dict:
        return self.request("GET", f"/grades/{grade_id}")

    def grade_compensation(self, grade_id: int, basic_salary: Optional[float] = None) -> dict:
        params = {"basicSalary": basic_salary} if basic_salary is not None else None
        return self.request("GET", f"/grades/{grade_id}/compensation", params=params)

    # Loans

    def list_loan_types(self, *, active_only: bool = False) -> list:
        return self.request("GET", "/loan-types", params={"activeOnly": "true"} if active_only else None)

    def get_loan_type(self, loan_type_id: int) -> dict:
        return self.request("GET", f"/loan-types/{loan_type_id}")

    def list_loan_applications(self, **filters) -> list:
        return self.request("GET", "/loan-applications", params=filters or None)

    def get_loan_application(self, application_id: int) -> dict:
        return self.request("GET", f"/loan-applications/{application_id}")

    def apply_for_loan(self, data: dict) -> dict:
        return self.request("POST", "/loan-applications", json=data)

    def calculate_loan(self, *, amount: float, repayment_period: int, interest_rate: Optional[float] = None,
                       loan_type_code: Optional[str] = None) -> dict:
        body: dict = {"amount": amount, "repaymentPeriod": repayment_period}
        if interest_rate is not None:
            body["interestRate"] = interest_rate
        if loan_type_code:
            body["loanTypeCode"] = loan_type_code
        return self.request("POST", "/loan-applications/calculate", json=body)

    def update_loan_status(self, application_id: int, status: str, **fields) -> dict:
        return self.request("PUT", f"/loan-applications/{application_id}/status", json={"status": status, **fields})

    def disburse_loan(self, application_id: int, disbursement_date: Optional[str] = None) -> dict:
        body = {"disbursementDate": disbursement_date} if disbursement_date else {}
        return self.request("POST", f"/loan-applications/{application_id}/disburse", json=body)

    def cancel_loan(self, application_id: int, reason: Optional[str] = None) -> dict:
        return self.request("POST", f"/loan-applications/{application_id}/cancel", json={"reason": reason})

    def loan_statistics(self, employee_id: Optional[int] = None) -> dict:
        params = {"employeeId": employee_id} if employee_id is not None else None
        return self.request("GET", "/loan-applications/statistics", params=params)

    # Travel

    def list_travel_rates(self, travel_type: Optional[str] = None) -> list:
        return self.request("GET", "/travel-rates", params={"travelType": travel_type} if travel_type else None)

    def create_travel_rate(self, data: dict) -> dict:
        return self.request("POST", "/travel-rates", json=data)

    def list_travel_requests(self, **filters) -> list:
        return self.request("GET", "/travel-requests", params=filters or None)

    def get_travel_request(self, request_id: int) -> dict:
        return self.request("GET", f"/travel-requests/{request_id}")

    def create_travel_request(self, data: dict) -> dict:
        return self.request("POST", "/travel-requests", json=data)

    def update_travel_status(self, request_id: int, status: str, rejection_reason: Optional[str] = None) -> dict:
        body = {"status": status}
        if rejection_reason:
            body["rejectionReason"] = rejection_reason
        return self.request("PUT", f"/travel-requests/{request_id}/status", json=body)

    def cancel_travel_request(self, request_id: int, reason: Optional[str] = None) -> dict:
        return self.request("POST", f"/travel-requests/{request_id}/cancel", json={"reason": reason})

    def complete_travel_request(self, request_id: int) -> dict:
        return self.request("POST", f"/travel-requests/{request_id}/complete")

    def travel_statistics(self, **filters) -> dict:
        return self.request("GET", "/travel-requests/statistics", params=filters or None)

    # Overtime

    def overtime_rates(self) -> list:
        return self.request("GET", "/overtime-claims/rates")

    def configure_overtime_rate(self, overtime_type: str, **fields) -> dict:
        return self.request("PUT", f"/overtime-claims/rates/{overtime_type}", json=fields)

    def reset_overtime_rate(self, overtime_type: str) -> dict:
        return self.request("DELETE", f"/overtime-claims/rates/{overtime_type}")
