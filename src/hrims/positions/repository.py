from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import Position


class PositionRepository(Protocol):
    def get_by_id(self, position_id: int) -> Optional[Position]:
        raise NotImplementedError

    def get_by_code(self, code: str) -> Optional[Position]:
        raise NotImplementedError

    def list_positions(
        self,
        *,
        department_id: Optional[int] = None,
        grade_id: Optional[int] = None,
        search: Optional[str] = None,
        active_only: bool = False,
    ) -> Sequence[Position]:
        raise NotImplementedError

    def count_active_reports(self, position_id: int) -> int:
        raise NotImplementedError

    def create(self, position: Position) -> int:
        raise NotImplementedError

    def update(self, position: Position) -> bool:
        """Write everything except ``currently_filled``.

        False when the row is missing or more seats are already filled than
        ``position.number_of_positions``.
        """
        raise NotImplementedError

    def set_active(self, position_id: int, *, is_active: bool) -> bool:
        raise NotImplementedError

    def increment_filled(self, position_id: int) -> bool:
        """Take one seat; False when the position is already full."""
        raise NotImplementedError

    def decrement_filled(self, position_id: int) -> bool:
        """Free one seat; never goes below zero."""
        raise NotImplementedError
