from __future__ import annotations

import logging
from dataclasses import replace
from typing import Optional

from ..common.pagination import Page, PageRequest, paginate
from ..common.validators import require_non_empty
from ..core.exceptions import ConflictError, NotFoundError, ValidationError
from ..departments.repository import DepartmentRepository
from ..grades.repository import GradeRepository
from .model import Position
from .repository import PositionRepository

logger = logging.getLogger(__name__)


class PositionService:
    """Use case: maintain positions and their seat counters."""

    def __init__(
        self,
        positions: PositionRepository,
        departments: DepartmentRepository,
        grades: GradeRepository,
    ):
        self._positions = positions
        self._departments = departments
        self._grades = grades

    def get_position(self, position_id: int) -> Position:
        position = self._positions.get_by_id(int(position_id))
        if not position:
            raise NotFoundError(f"Position {position_id} not found")
        return position

    def list_positions(
        self,
        *,
        page: PageRequest,
        department_id: Optional[int] = None,
        grade_id: Optional[int] = None,
        search: Optional[str] = None,
        active_only: bool = False,
    ) -> Page[Position]:
        rows = self._positions.list_positions(
            department_id=department_id,
            grade_id=grade_id,
            search=(search or "").strip() or None,
            active_only=active_only,
        )
        return paginate(rows, page)

    def _ensure_no_cycle(self, position_id: int, reports_to_id: Optional[int]) -> None:
        seen = set()
        current = reports_to_id
        while current is not None and current not in seen:
            if current == position_id:
                raise ValidationError("Reporting line would create a cycle")
            seen.add(current)
            parent = self._positions.get_by_id(current)
            current = parent.reports_to_id if parent else None

    def _validate(self, position: Position) -> Position:
        title = require_non_empty(position.title, "Position title")
        code = require_non_empty(position.code, "Position code").upper()

        other = self._positions.get_by_code(code)
        if other and other.position_id != position.position_id:
            raise ConflictError(f"Position code '{code}' already exists")

        if not self._departments.get_by_id(position.department_id):
            raise NotFoundError("Department not found")
        if not self._grades.get_by_id(position.grade_id):
            raise NotFoundError("Grade not found")

        if position.number_of_positions < 1:
            raise ValidationError("Number of positions must be at least 1")
        if position.currently_filled < 0:
            raise ValidationError("Filled count cannot be negative")
        if position.number_of_positions < position.currently_filled:
            raise ValidationError(
                f"Number of positions cannot be lower than the {position.currently_filled} already filled"
            )

        if position.reports_to_id is not None:
            if not self._positions.get_by_id(position.reports_to_id):
                raise NotFoundError("Reports-to position not found")
            if position.position_id:
                self._ensure_no_cycle(position.position_id, position.reports_to_id)

        return replace(position, title=title, code=code)

    def create_position(self, position: Position) -> Position:
        position = self._validate(replace(position, position_id=0, currently_filled=0))
        position_id = self._positions.create(position)
        logger.info("Created position %s (id=%s)", position.code, position_id)
        return replace(position, position_id=position_id)

    def update_position(self, position: Position) -> Position:
        existing = self.get_position(position.position_id)
        # Seat counters only move through increment/decrement.
        position = self._validate(replace(position, currently_filled=existing.currently_filled))
        if not self._positions.update(position):
            # A seat was taken after the read above.
            current = self.get_position(position.position_id)
            raise ValidationError(
                f"Number of positions cannot be lower than the {current.currently_filled} already filled"
            )
        return self.get_position(position.position_id)

    def delete_position(self, position_id: int) -> None:
        """Soft delete: refused while anyone holds or reports to the position."""

        position = self.get_position(position_id)
        if position.currently_filled > 0:
            raise ConflictError("Cannot delete a position that is currently filled")
        if self._positions.count_active_reports(position.position_id) > 0:
            raise ConflictError("Cannot delete a position that has active direct reports")
        self._positions.set_active(position.position_id, is_active=False)
        logger.info("Deactivated position %s", position.code)

    def increment_filled(self, position_id: int) -> Position:
        position = self.get_position(position_id)
        if position.is_full or not self._positions.increment_filled(position.position_id):
            raise ConflictError(f"Position {position.title} is full")
        return self.get_position(position_id)

    def decrement_filled(self, position_id: int) -> Position:
        position = self.get_position(position_id)
        if position.currently_filled > 0:
            self._positions.decrement_filled(position.position_id)
        return self.get_position(position_id)
