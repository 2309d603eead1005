from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.constants import DEFAULT_TRAVEL_MAX_DAYS
from ..core.enums import AccommodationType, TransportMode, TravelStatus, TravelType


@dataclass(frozen=True)
class TravelRate:
    """Daily allowances for one grade and travel type."""

    rate_id: int
    grade_code: str
    travel_type: TravelType
    currency: str = "MWK"
    per_diem_rate: float = 0.0
    accommodation_rate: float = 0.0
    transport_rate: float = 0.0
    communication_rate: float = 0.0
    incidentals_rate: float = 0.0
    max_days: int = DEFAULT_TRAVEL_MAX_DAYS
    # Share of the estimate that may be paid out before the trip.
    advance_percentage: float = 80.0
    is_active: bool = True
    created_by: Optional[int] = None
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class TravelCosts:
    per_diem_amount: float
    accommodation_cost: float
    transport_cost: float
    communication_cost: float
    incidentals_cost: float
    total_estimated_cost: float
    currency: str

    def to_dict(self) -> dict:
        return {
            "perDiemAmount": self.per_diem_amount,
            "accommodationCost": self.accommodation_cost,
            "transportCost": self.transport_cost,
            "communicationCost": self.communication_cost,
            "incidentalsCost": self.incidentals_cost,
            "totalEstimatedCost": self.total_estimated_cost,
            "currency": self.currency,
        }


@dataclass(frozen=True)
class TravelRequest:
    request_id: int
    travel_reference: str
    employee_id: int
    purpose: str
    travel_type: TravelType
    destination_city: str
    destination_country: str
    departure_date: date
    return_date: date
    number_of_days: int
    accommodation_type: AccommodationType
    transport_mode: TransportMode
    costs: TravelCosts
    status: TravelStatus
    advance_amount: float = 0.0
    comments: Optional[str] = None
    rejection_reason: Optional[str] = None
    approved_by: Optional[int] = None
    approved_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    created_by: Optional[int] = None
    created_at: Optional[datetime] = None
