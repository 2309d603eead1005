from __future__ import annotations

from typing import Iterable


def next_in_sequence(existing: Iterable[str], *, prefix: str, width: int) -> str:
    """Next ``prefix`` + zero-padded counter after the highest one already used."""

    highest = 0
    for number in existing:
        if not number.startswith(prefix):
            continue
        tail = number[len(prefix):]
        if tail.isdigit():
            highest = max(highest, int(tail))
    return f"{prefix}{highest + 1:0{width}d}"
