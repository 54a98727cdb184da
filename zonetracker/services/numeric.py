"""Null-aware numeric helpers shared by the aggregation stages."""
from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero (2.5 -> 3, -2.5 -> -3)."""
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def present(values: Iterable[float | None]) -> list[float]:
    return [v for v in values if v is not None]


def mean_or_none(values: Iterable[float | None]) -> int | None:
    """Rounded mean of the non-null values; None when there are none."""
    numbers = present(values)
    if not numbers:
        return None
    return round_half_up(sum(numbers) / len(numbers))


def sum_or_none(values: Iterable[float | None]) -> float | None:
    numbers = present(values)
    if not numbers:
        return None
    return sum(numbers)
