from __future__ import annotations

from datetime import date, datetime
from typing import Optional


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def parse_optional_date(value: Optional[str]) -> Optional[date]:
    if value is None or value == "":
        return None
    if isinstance(value, date):
        return value
    return parse_iso_date(str(value)[:10])


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch it.
    """
    return datetime.now()


def isoformat_or_none(value) -> Optional[str]:
    return value.isoformat() if value is not None else None
