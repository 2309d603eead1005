from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """System roles used for permission checks."""

    SUPER_SUPER_ADMIN = "super_super_admin"
    SUPER_ADMIN = "super_admin"
    ADMIN_EMPLOYEE = "admin_employee"
    SYSTEM_ADMIN = "system_admin"
    HR_ADMIN = "hr_admin"
    FINANCE_MANAGER = "finance_manager"
    HR_MANAGER = "hr_manager"
    DEPARTMENT_HEAD = "department_head"
    MANAGER = "manager"
    SUPERVISOR = "supervisor"
    EMPLOYEE = "employee"
    TRAVEL_ADMIN = "travel_admin"


class UserStatus(str, Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    SUSPENDED = "SUSPENDED"


class GradeBand(str, Enum):
    JUNIOR = "JUNIOR"
    OPERATIONAL = "OPERATIONAL"
    SUPERVISORY = "SUPERVISORY"
    MANAGERIAL = "MANAGERIAL"
    EXECUTIVE = "EXECUTIVE"


class ContractType(str, Enum):
    PERMANENT = "PERMANENT"
    CONTRACT = "CONTRACT"
    TEMPORARY = "TEMPORARY"
    PROBATION = "PROBATION"


class EmploymentStatus(str, Enum):
    ACTIVE = "ACTIVE"
    SUSPENDED = "SUSPENDED"
    TERMINATED = "TERMINATED"
    ON_LEAVE = "ON_LEAVE"


class RegistrationStatus(str, Enum):
    """Onboarding progression: REGISTERED -> SYSTEM_ACCESS_ACTIVE -> COMPLETED."""

    PENDING = "PENDING"
    REGISTERED = "REGISTERED"
    SYSTEM_ACCESS_ACTIVE = "SYSTEM_ACCESS_ACTIVE"
    COMPLETED = "COMPLETED"


class LoanStatus(str, Enum):
    DRAFT = "DRAFT"
    SUBMITTED = "SUBMITTED"
    UNDER_REVIEW = "UNDER_REVIEW"
    PENDING_APPROVAL = "PENDING_APPROVAL"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    DISBURSED = "DISBURSED"
    ACTIVE = "ACTIVE"
    COMPLETED = "COMPLETED"
    DEFAULTED = "DEFAULTED"
    CANCELLED = "CANCELLED"


class OvertimeType(str, Enum):
    REGULAR = "REGULAR"
    WEEKEND = "WEEKEND"
    HOLIDAY = "HOLIDAY"
    PUBLIC_HOLIDAY = "PUBLIC_HOLIDAY"


class OvertimeStatus(str, Enum):
    DRAFT = "DRAFT"
    SUBMITTED = "SUBMITTED"
    PENDING_APPROVAL = "PENDING_APPROVAL"
    AUTO_APPROVED = "AUTO_APPROVED"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    PROCESSED = "PROCESSED"
    CANCELLED = "CANCELLED"


class TravelType(str, Enum):
    LOCAL = "LOCAL"
    DOMESTIC = "DOMESTIC"
    INTERNATIONAL = "INTERNATIONAL"


class AccommodationType(str, Enum):
    FULLY_PAID = "FULLY_PAID"
    OUT_OF_POCKET = "OUT_OF_POCKET"
    PER_DIEM_ONLY = "PER_DIEM_ONLY"


class TransportMode(str, Enum):
    FLIGHT = "FLIGHT"
    COMPANY_VEHICLE = "COMPANY_VEHICLE"
    PERSONAL_VEHICLE = "PERSONAL_VEHICLE"
    PUBLIC_TRANSPORT = "PUBLIC_TRANSPORT"
    TAXI = "TAXI"


class TravelStatus(str, Enum):
    DRAFT = "DRAFT"
    PENDING_APPROVAL = "PENDING_APPROVAL"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    CANCELLED = "CANCELLED"
    COMPLETED = "COMPLETED"
