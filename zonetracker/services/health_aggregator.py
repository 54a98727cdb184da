"""Entry point of the aggregation pipeline.

raw provider datasets -> date-keyed lookups -> daily records -> weeks ->
display rows -> trends. Nothing in here performs I/O.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterable, Iterator, Sequence

from zonetracker.models.records import (
    BandDataset,
    DailyRecord,
    HealthRow,
    RingDataset,
    RowType,
)
from zonetracker.services.daily_aggregator import aggregate_day, build_lookups
from zonetracker.services.numeric import mean_or_none
from zonetracker.services.trend import apply_trends
from zonetracker.services.weekly_aggregator import SUNDAY, expand_rows, summarize_weeks
from zonetracker.services.zones import DEFAULT_THRESHOLDS, ZoneThresholds


logger = logging.getLogger(__name__)

DateLike = date | str


@dataclass(frozen=True)
class HealthSummary:
    """Headline numbers shown above the weekly table."""

    avg_weekly_met_minutes: int | None = None
    avg_readiness: int | None = None
    avg_recovery: int | None = None
    avg_sleep: int | None = None
    avg_hrv: int | None = None
    avg_steps: int | None = None

    def to_dict(self) -> dict[str, int | None]:
        return {
            "avg_weekly_met_minutes": self.avg_weekly_met_minutes,
            "avg_readiness": self.avg_readiness,
            "avg_recovery": self.avg_recovery,
            "avg_sleep": self.avg_sleep,
            "avg_hrv": self.avg_hrv,
            "avg_steps": self.avg_steps,
        }


def _is_missing(dataset: RingDataset | BandDataset | None) -> bool:
    return dataset is None or dataset.is_empty()


def _as_date(value: DateLike) -> date:
    if isinstance(value, date):
        return value
    return date.fromisoformat(value[:10])


def date_range(start_date: DateLike, end_date: DateLike) -> Iterator[date]:
    """Every calendar day from start to end, inclusive."""
    current = _as_date(start_date)
    end = _as_date(end_date)
    while current <= end:
        yield current
        current += timedelta(days=1)


def aggregate_daily(
    ring: RingDataset | None,
    band: BandDataset | None,
    start_date: DateLike,
    end_date: DateLike,
    thresholds: ZoneThresholds | None = None,
) -> list[DailyRecord]:
    """One classified DailyRecord per date in the inclusive range, oldest first."""
    thresholds = thresholds or DEFAULT_THRESHOLDS
    lookups = build_lookups(ring, band)
    return [aggregate_day(day, lookups, thresholds) for day in date_range(start_date, end_date)]


def aggregate(
    ring: RingDataset | None,
    band: BandDataset | None,
    start_date: DateLike,
    end_date: DateLike,
    thresholds: ZoneThresholds | None = None,
    first_weekday: int = SUNDAY,
) -> list[HealthRow]:
    """
    Build the trend-annotated weekly table for a date range.

    Args:
        ring: Ring records, or None when the ring is not connected
        band: Band records, or None when the band is not connected
        start_date: First day (inclusive), date or ISO string
        end_date: Last day (inclusive), date or ISO string
        thresholds: Threshold table; defaults to the built-in table
        first_weekday: Weekday index weeks start on (Sunday by default)

    Returns:
        Rows newest week first; empty when start_date is after end_date
        or when neither provider has any data
    """
    thresholds = thresholds or DEFAULT_THRESHOLDS
    if _as_date(start_date) > _as_date(end_date):
        return []
    if _is_missing(ring) and _is_missing(band):
        logger.debug("No ring or band data for %s..%s", start_date, end_date)
        return []

    days = aggregate_daily(ring, band, start_date, end_date, thresholds)
    return rollup(days, thresholds, first_weekday)


def rollup(
    days: Iterable[DailyRecord],
    thresholds: ZoneThresholds | None = None,
    first_weekday: int = SUNDAY,
    previous_recovery: float | None = None,
) -> list[HealthRow]:
    """Weeks -> display rows -> trends for days that are already merged."""
    days = list(days)
    weeks = summarize_weeks(days, thresholds or DEFAULT_THRESHOLDS, first_weekday)
    rows = apply_trends(expand_rows(weeks), previous_recovery=previous_recovery)

    logger.debug(
        "Aggregated %d day(s) into %d week(s), %d row(s)",
        len(days),
        len(weeks),
        len(rows),
    )
    return rows


def summarize(rows: Sequence[HealthRow]) -> HealthSummary:
    """
    Summary statistics for a table.

    The weekly MET-minute average only counts complete weeks; the other
    averages take every row that has a value.
    """
    complete_rows = [row for row in rows if row.row_type is RowType.WEEK and row.days_count == 7]

    return HealthSummary(
        avg_weekly_met_minutes=mean_or_none(row.total_met_minutes for row in complete_rows),
        avg_readiness=mean_or_none(row.avg_readiness for row in rows),
        avg_recovery=mean_or_none(row.avg_recovery for row in rows),
        avg_sleep=mean_or_none(row.avg_sleep for row in rows),
        avg_hrv=mean_or_none(row.avg_hrv for row in rows),
        avg_steps=mean_or_none(row.avg_steps for row in rows),
    )
