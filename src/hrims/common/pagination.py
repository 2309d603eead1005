from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Callable, Generic, List, Optional, Sequence, TypeVar

from ..core.constants import DEFAULT_PAGE, DEFAULT_PAGE_LIMIT, MAX_PAGE_LIMIT

T = TypeVar("T")


@dataclass(frozen=True)
class PageRequest:
    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_PAGE_LIMIT

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    @classmethod
    def from_args(cls, page: Optional[Any], limit: Optional[Any]) -> "PageRequest":
        """Build a request from raw query args, clamping bad values to defaults."""
        try:
            p = int(page) if page not in (None, "") else DEFAULT_PAGE
        except (TypeError, ValueError):
            p = DEFAULT_PAGE
        try:
            lim = int(limit) if limit not in (None, "") else DEFAULT_PAGE_LIMIT
        except (TypeError, ValueError):
            lim = DEFAULT_PAGE_LIMIT
        return cls(page=max(p, 1), limit=min(max(lim, 1), MAX_PAGE_LIMIT))


@dataclass(frozen=True)
class Page(Generic[T]):
    data: List[T]
    total: int
    page: int
    limit: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0

    @property
    def has_next_page(self) -> bool:
        return self.page < self.total_pages

    @property
    def has_prev_page(self) -> bool:
        return self.page > 1

    def to_dict(self, serialize: Callable[[T], dict]) -> dict:
        return {
            "data": [serialize(item) for item in self.data],
            "total": self.total,
            "page": self.page,
            "limit": self.limit,
            "totalPages": self.total_pages,
            "hasNextPage": self.has_next_page,
            "hasPrevPage": self.has_prev_page,
        }


def paginate(items: Sequence[T], request: PageRequest) -> Page[T]:
    """Slice an in-memory sequence into a page."""
    chunk = list(items[request.offset : request.offset + request.limit])
    return Page(data=chunk, total=len(items), page=request.page, limit=request.limit)
