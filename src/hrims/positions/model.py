from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Position:
    """A job slot within a department, with a capacity and a reporting line."""

    position_id: int
    title: str
    code: str
    department_id: int
    grade_id: int
    description: Optional[str] = None
    reports_to_id: Optional[int] = None
    is_head_of_department: bool = False
    is_supervisor: bool = False
    is_manager: bool = False
    is_director: bool = False
    number_of_positions: int = 1
    currently_filled: int = 0
    is_active: bool = True

    @property
    def available_positions(self) -> int:
        return max(self.number_of_positions - self.currently_filled, 0)

    @property
    def is_full(self) -> bool:
        return self.currently_filled >= self.number_of_positions
