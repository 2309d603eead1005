from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..core.enums import GradeBand
from .model import Grade


class GradeRepository(Protocol):
    """Repository interface for Grade.

    Services depend on this interface, not on a concrete database.
    """

    def get_by_id(self, grade_id: int) -> Optional[Grade]:
        raise NotImplementedError

    def get_by_code(self, code: str) -> Optional[Grade]:
        raise NotImplementedError

    def list_grades(self, *, active_only: bool = False, band: Optional[GradeBand] = None) -> Sequence[Grade]:
        raise NotImplementedError

    def create(self, grade: Grade) -> int:
        raise NotImplementedError

    def update(self, grade: Grade) -> bool:
        raise NotImplementedError

    def set_active(self, grade_id: int, *, is_active: bool) -> bool:
        raise NotImplementedError
