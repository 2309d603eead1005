from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional, Union

from .auth.avatar import AvatarService
from .auth.mysql_user_repository import MySQLUserRepository
from .auth.repository import UserRepository
from .auth.service import AuthService
from .auth.tokens import TokenService
from .common.datetime_utils import now_local
from .database.connection import DBConfig, DatabaseConnection
from .departments.mysql_department_repository import MySQLDepartmentRepository
from .departments.repository import DepartmentRepository
from .departments.service import DepartmentService
from .employees.mysql_employee_repository import MySQLEmployeeRepository
from .employees.onboarding import OnboardingService
from .employees.repository import EmployeeRepository
from .employees.service import EmployeeService
from .grades.mysql_grade_repository import MySQLGradeRepository
from .grades.repository import GradeRepository
from .grades.service import GradeService
from .loans.mysql_loan_repository import MySQLLoanApplicationRepository, MySQLLoanTypeRepository
from .loans.repository import LoanApplicationRepository, LoanTypeRepository
from .loans.service import LoanApplicationService, LoanTypeService
from .overtime.mysql_overtime_rate_repository import MySQLOvertimeRateRepository
from .overtime.mysql_overtime_repository import MySQLOvertimeRepository
from .overtime.repository import OvertimeRateRepository, OvertimeRepository
from .overtime.service import OvertimeRateService, OvertimeService
from .payroll.service import CompensationService
from .positions.mysql_position_repository import MySQLPositionRepository
from .positions.repository import PositionRepository
from .positions.service import PositionService
from .travel.mysql_travel_repository import MySQLTravelRateRepository, MySQLTravelRequestRepository
from .travel.repository import TravelRateRepository, TravelRequestRepository
from .travel.service import TravelRateService, TravelRequestService


@dataclass(frozen=True)
class Container:
    users_repo: UserRepository
    grades_repo: GradeRepository
    departments_repo: DepartmentRepository
    positions_repo: PositionRepository
    employees_repo: EmployeeRepository
    loan_types_repo: LoanTypeRepository
    loan_applications_repo: LoanApplicationRepository
    overtime_repo: OvertimeRepository
    overtime_rates_repo: OvertimeRateRepository
    travel_rates_repo: TravelRateRepository
    travel_requests_repo: TravelRequestRepository

    token_service: TokenService
    auth_service: AuthService
    avatar_service: AvatarService
    grade_service: GradeService
    department_service: DepartmentService
    position_service: PositionService
    employee_service: EmployeeService
    onboarding_service: OnboardingService
    compensation_service: CompensationService
    loan_type_service: LoanTypeService
    loan_application_service: LoanApplicationService
    overtime_service: OvertimeService
    overtime_rate_service: OvertimeRateService
    travel_rate_service: TravelRateService
    travel_request_service: TravelRequestService

    conn: Optional[DatabaseConnection] = None


def wire_container(
    *,
    users_repo: UserRepository,
    grades_repo: GradeRepository,
    departments_repo: DepartmentRepository,
    positions_repo: PositionRepository,
    employees_repo: EmployeeRepository,
    loan_types_repo: LoanTypeRepository,
    loan_applications_repo: LoanApplicationRepository,
    overtime_repo: OvertimeRepository,
    overtime_rates_repo: OvertimeRateRepository,
    travel_rates_repo: TravelRateRepository,
    travel_requests_repo: TravelRequestRepository,
    token_service: TokenService,
    conn: Optional[DatabaseConnection] = None,
    avatar_dir: Union[str, Path] = "uploads/avatars",
    clock: Callable[[], datetime] = now_local,
) -> Container:
    """Build every service on top of the given repositories."""

    overtime_rate_service = OvertimeRateService(overtime_rates_repo)
    compensation_service = CompensationService(overtime_rules=overtime_rate_service.rules)
    travel_rate_service = TravelRateService(travel_rates_repo)

    return Container(
        conn=conn,
        users_repo=users_repo,
        grades_repo=grades_repo,
        departments_repo=departments_repo,
        positions_repo=positions_repo,
        employees_repo=employees_repo,
        loan_types_repo=loan_types_repo,
        loan_applications_repo=loan_applications_repo,
        overtime_repo=overtime_repo,
        overtime_rates_repo=overtime_rates_repo,
        travel_rates_repo=travel_rates_repo,
        travel_requests_repo=travel_requests_repo,
        token_service=token_service,
        auth_service=AuthService(users_repo, employees_repo, token_service, clock=clock),
        avatar_service=AvatarService(users_repo, avatar_dir),
        grade_service=GradeService(grades_repo),
        department_service=DepartmentService(departments_repo, employees_repo),
        position_service=PositionService(positions_repo, departments_repo, grades_repo),
        employee_service=EmployeeService(employees_repo, departments_repo, positions_repo, grades_repo, clock=clock),
        onboarding_service=OnboardingService(employees_repo, users_repo, clock=clock),
        compensation_service=compensation_service,
        loan_type_service=LoanTypeService(loan_types_repo),
        loan_application_service=LoanApplicationService(
            loan_applications_repo,
            loan_types_repo,
            employees_repo,
            grades_repo,
            clock=clock,
        ),
        overtime_service=OvertimeService(
            overtime_repo,
            employees_repo,
            compensation_service,
            overtime_rate_service,
            clock=clock,
        ),
        overtime_rate_service=overtime_rate_service,
        travel_rate_service=travel_rate_service,
        travel_request_service=TravelRequestService(
            travel_requests_repo,
            travel_rate_service,
            employees_repo,
            grades_repo,
            clock=clock,
        ),
    )


def build_container(
    *,
    db_config: dict,
    auth_config: dict,
    avatar_dir: Union[str, Path] = "uploads/avatars",
) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))

    token_service = TokenService(
        secret=str(auth_config["secret"]),
        algorithm=str(auth_config.get("algorithm", "HS256")),
        access_expires_seconds=int(auth_config["access_expires_seconds"]),
        refresh_expires_days=int(auth_config["refresh_expires_days"]),
    )

    return wire_container(
        conn=conn,
        users_repo=MySQLUserRepository(conn),
        grades_repo=MySQLGradeRepository(conn),
        departments_repo=MySQLDepartmentRepository(conn),
        positions_repo=MySQLPositionRepository(conn),
        employees_repo=MySQLEmployeeRepository(conn),
        loan_types_repo=MySQLLoanTypeRepository(conn),
        loan_applications_repo=MySQLLoanApplicationRepository(conn),
        overtime_repo=MySQLOvertimeRepository(conn),
        overtime_rates_repo=MySQLOvertimeRateRepository(conn),
        travel_rates_repo=MySQLTravelRateRepository(conn),
        travel_requests_repo=MySQLTravelRequestRepository(conn),
        token_service=token_service,
        avatar_dir=avatar_dir,
    )
