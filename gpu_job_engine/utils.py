"""Utility helpers shared across the engine."""

from __future__ import annotations

import math
from typing import Any, Hashable, Iterable, List, Optional, TypeVar

T = TypeVar("T", bound=Hashable)


def parse_number(value: Any) -> Optional[float]:
    """Parse a form value as a float; blank, unparseable or NaN gives None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        text = str(value).strip()
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    if math.isnan(number):
        return None
    return number


def parse_int_part(value: Any) -> int:
    """Parse one h/m/s sub-field, truncating toward zero. Anything unusable is 0."""
    number = parse_number(value)
    if number is None or math.isinf(number):
        return 0
    return int(number)


def round_half_up(value: float, digits: int = 0) -> float:
    """Round like JavaScript's Math.round (halves go up), not banker's rounding."""
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def uniq_preserve_order(items: Iterable[T]) -> List[T]:
    """Deduplicate while preserving first-seen order."""
    seen = set()
    out: List[T] = []
    for it in items:
        if it in seen:
            continue
        seen.add(it)
        out.append(it)
    return out
