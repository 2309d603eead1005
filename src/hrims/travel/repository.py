from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from ..core.enums import TravelStatus, TravelType
from .model import TravelRate, TravelRequest


class TravelRateRepository(Protocol):
    def get_by_id(self, rate_id: int) -> Optional[TravelRate]:
        raise NotImplementedError

    def get_active(self, *, grade_code: str, travel_type: TravelType) -> Optional[TravelRate]:
        raise NotImplementedError

    def list_rates(self, *, travel_type: Optional[TravelType] = None, active_only: bool = True) -> Sequence[TravelRate]:
        raise NotImplementedError

    def deactivate(self, *, grade_code: str, travel_type: TravelType) -> int:
        """Retire the active rates of a grade and travel type; returns how many."""
        raise NotImplementedError

    def create(self, rate: TravelRate) -> int:
        raise NotImplementedError


class TravelRequestRepository(Protocol):
    def get_by_id(self, request_id: int) -> Optional[TravelRequest]:
        raise NotImplementedError

    def list_requests(
        self,
        *,
        employee_id: Optional[int] = None,
        status: Optional[TravelStatus] = None,
        departure_from: Optional[date] = None,
        return_to: Optional[date] = None,
    ) -> Sequence[TravelRequest]:
        raise NotImplementedError

    def list_references(self, *, prefix: str) -> Sequence[str]:
        raise NotImplementedError

    def create(self, travel_request: TravelRequest) -> int:
        raise NotImplementedError

    def update(self, travel_request: TravelRequest) -> bool:
        raise NotImplementedError
