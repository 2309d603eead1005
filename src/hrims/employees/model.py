from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import ContractType, EmploymentStatus, RegistrationStatus, Role


@dataclass(frozen=True)
class Employee:
    """Employee record, including the onboarding flags.

    Invariant: ``has_system_access`` implies a non-empty ``system_username``.
    """

    employee_id: int
    employee_number: str
    first_name: str
    last_name: str
    email: str
    national_id: str
    department_id: int
    position_id: int
    grade_id: int
    employment_date: date
    middle_name: Optional[str] = None
    date_of_birth: Optional[date] = None
    gender: Optional[str] = None
    phone: Optional[str] = None
    reports_to_id: Optional[int] = None
    is_supervisor: bool = False
    is_department_manager: bool = False
    contract_type: ContractType = ContractType.PERMANENT
    employment_status: EmploymentStatus = EmploymentStatus.ACTIVE

    basic_salary: float = 0.0
    house_allowance: float = 0.0
    car_allowance: float = 0.0
    travel_allowance: float = 0.0
    bank_name: Optional[str] = None
    bank_account_number: Optional[str] = None

    has_system_access: bool = False
    system_username: Optional[str] = None
    system_role: Optional[Role] = None
    system_access_activated_at: Optional[datetime] = None
    system_access_activated_by: Optional[int] = None
    profile_verified: bool = False
    profile_verified_at: Optional[datetime] = None
    profile_verified_by: Optional[int] = None
    registration_status: RegistrationStatus = RegistrationStatus.PENDING

    @property
    def full_name(self) -> str:
        parts = [self.first_name, self.middle_name, self.last_name]
        return " ".join(p for p in parts if p)

    @property
    def registration_complete(self) -> bool:
        return self.registration_status == RegistrationStatus.COMPLETED


@dataclass(frozen=True)
class EmployeeFilters:
    search: Optional[str] = None
    department_id: Optional[int] = None
    position_id: Optional[int] = None
    grade_id: Optional[int] = None
    employment_status: Optional[EmploymentStatus] = None
    registration_status: Optional[RegistrationStatus] = None
