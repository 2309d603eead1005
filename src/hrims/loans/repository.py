from __future__ import annotations

from typing import Iterable, Optional, Protocol, Sequence

from ..core.enums import LoanStatus
from .model import LoanApplication, LoanType


class LoanTypeRepository(Protocol):
    def get_by_id(self, loan_type_id: int) -> Optional[LoanType]:
        raise NotImplementedError

    def get_by_code(self, code: str) -> Optional[LoanType]:
        raise NotImplementedError

    def list_types(self, *, active_only: bool = False) -> Sequence[LoanType]:
        raise NotImplementedError

    def create(self, loan_type: LoanType) -> int:
        raise NotImplementedError

    def update(self, loan_type: LoanType) -> bool:
        raise NotImplementedError


class LoanApplicationRepository(Protocol):
    def get_by_id(self, application_id: int) -> Optional[LoanApplication]:
        raise NotImplementedError

    def list_applications(
        self,
        *,
        employee_id: Optional[int] = None,
        status: Optional[LoanStatus] = None,
    ) -> Sequence[LoanApplication]:
        raise NotImplementedError

    def count_for_employee(self, *, employee_id: int, statuses: Iterable[LoanStatus]) -> int:
        raise NotImplementedError

    def list_application_numbers(self, *, prefix: str) -> Sequence[str]:
        raise NotImplementedError

    def create(self, application: LoanApplication) -> int:
        raise NotImplementedError

    def update(self, application: LoanApplication) -> bool:
        raise NotImplementedError
