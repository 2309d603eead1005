from __future__ import annotations

from datetime import date
from typing import Dict, Optional, Protocol, Sequence

from ..core.enums import OvertimeStatus, OvertimeType
from .model import OvertimeClaim
from .rules import OvertimeRule


class OvertimeRepository(Protocol):
    def get_by_id(self, claim_id: int) -> Optional[OvertimeClaim]:
        raise NotImplementedError

    def list_claims(
        self,
        *,
        employee_id: Optional[int] = None,
        status: Optional[OvertimeStatus] = None,
    ) -> Sequence[OvertimeClaim]:
        raise NotImplementedError

    def hours_on(self, *, employee_id: int, work_date: date) -> float:
        """Hours already claimed for the day, ignoring rejected and cancelled claims."""
        raise NotImplementedError

    def list_claim_numbers(self, *, prefix: str) -> Sequence[str]:
        raise NotImplementedError

    def create(self, claim: OvertimeClaim) -> int:
        raise NotImplementedError

    def update(self, claim: OvertimeClaim) -> bool:
        raise NotImplementedError


class OvertimeRateRepository(Protocol):
    """Configured overrides of the default overtime rules, one per overtime type."""

    def list_rates(self) -> Dict[OvertimeType, OvertimeRule]:
        raise NotImplementedError

    def save_rate(self, overtime_type: OvertimeType, rule: OvertimeRule, *, updated_by: Optional[int] = None) -> None:
        raise NotImplementedError

    def delete_rate(self, overtime_type: OvertimeType) -> bool:
        raise NotImplementedError
