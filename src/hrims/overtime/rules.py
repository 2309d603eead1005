from __future__ import annotations

from dataclasses import dataclass
from typing import Dict

from ..core.enums import OvertimeType
from ..core.exceptions import ValidationError


@dataclass(frozen=True)
class OvertimeRule:
    multiplier: float
    minimum_hours: float
    max_hours_per_day: float
    # Claims at or below this many hours skip manual approval; 0 disables it.
    auto_approve_hours: float = 0.0

    def effective_hours(self, hours: float) -> float:
        return max(hours - self.minimum_hours, 0.0)

    def is_auto_approved(self, hours: float) -> bool:
        return self.auto_approve_hours > 0 and hours <= self.auto_approve_hours

    def validate(self) -> "OvertimeRule":
        if self.multiplier < 1:
            raise ValidationError("Overtime multiplier must be at least 1")
        if self.minimum_hours < 0:
            raise ValidationError("Minimum hours cannot be negative")
        if self.max_hours_per_day <= 0 or self.max_hours_per_day > 24:
            raise ValidationError("Maximum hours per day must be between 0 and 24")
        if self.minimum_hours > self.max_hours_per_day:
            raise ValidationError("Minimum hours cannot exceed the daily maximum")
        if self.auto_approve_hours < 0 or self.auto_approve_hours > self.max_hours_per_day:
            raise ValidationError("Auto-approve hours must be between 0 and the daily maximum")
        return self


DEFAULT_OVERTIME_RULES: Dict[OvertimeType, OvertimeRule] = {
    OvertimeType.REGULAR: OvertimeRule(multiplier=1.5, minimum_hours=0, max_hours_per_day=4, auto_approve_hours=2),
    OvertimeType.WEEKEND: OvertimeRule(multiplier=2.0, minimum_hours=2, max_hours_per_day=8),
    OvertimeType.HOLIDAY: OvertimeRule(multiplier=2.5, minimum_hours=4, max_hours_per_day=10),
    OvertimeType.PUBLIC_HOLIDAY: OvertimeRule(multiplier=3.0, minimum_hours=6, max_hours_per_day=12),
}
