"""Week-over-week recovery trend."""
from __future__ import annotations

from dataclasses import replace
from typing import Sequence

from zonetracker.models.records import HealthRow, Trend


TREND_THRESHOLD = 5


def determine_trend(
    current: float | None,
    previous: float | None,
    threshold: float = TREND_THRESHOLD,
) -> Trend:
    """Up or down only when recovery moved by more than ``threshold`` points."""
    if current is None or previous is None:
        return Trend.FLAT
    diff = current - previous
    if diff > threshold:
        return Trend.UP
    if diff < -threshold:
        return Trend.DOWN
    return Trend.FLAT


def apply_trends(
    rows: Sequence[HealthRow],
    threshold: float = TREND_THRESHOLD,
    previous_recovery: float | None = None,
) -> list[HealthRow]:
    """
    Annotate week-level rows (newest first) against the next older week-level row.

    Day rows are left flat. The oldest week is compared with
    ``previous_recovery`` (the week before the table starts) when it is known,
    otherwise it stays flat. Returns new rows; the input is not modified.
    """
    week_positions = [index for index, row in enumerate(rows) if row.is_week_level]
    result = [replace(row, trend=Trend.FLAT) for row in rows]

    for current, older in zip(week_positions, week_positions[1:]):
        trend = determine_trend(rows[current].avg_recovery, rows[older].avg_recovery, threshold)
        result[current] = replace(result[current], trend=trend)

    if week_positions and previous_recovery is not None:
        oldest = week_positions[-1]
        trend = determine_trend(rows[oldest].avg_recovery, previous_recovery, threshold)
        result[oldest] = replace(result[oldest], trend=trend)

    return result
