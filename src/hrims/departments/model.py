from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Department:
    department_id: int
    name: str
    code: str
    description: Optional[str] = None
    parent_id: Optional[int] = None
    head_position_id: Optional[int] = None
    is_active: bool = True
