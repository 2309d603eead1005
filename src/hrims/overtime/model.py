from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import OvertimeStatus, OvertimeType


@dataclass(frozen=True)
class OvertimeClaim:
    claim_id: int
    claim_number: str
    employee_id: int
    overtime_type: OvertimeType
    work_date: date
    hours: float
    multiplier: float
    hourly_rate: float
    amount: float
    status: OvertimeStatus
    reason: Optional[str] = None
    approved_by: Optional[int] = None
    approved_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    created_at: Optional[datetime] = None
