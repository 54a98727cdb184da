"""Bucket daily records into calendar weeks and expand them into table rows."""
from __future__ import annotations

from collections import defaultdict
from datetime import date, timedelta
from typing import Iterable, Sequence

from zonetracker.models.records import DailyRecord, HealthRow, RowType, WeeklyRecord
from zonetracker.services.numeric import mean_or_none, round_half_up, sum_or_none
from zonetracker.services.zones import DEFAULT_THRESHOLDS, ZoneThresholds, classify


SUNDAY = 6
MONDAY = 0
WEEKDAY_ABBREVIATIONS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")

_WEEK_STARTS = {"sunday": SUNDAY, "monday": MONDAY}

WeekKey = tuple[int, int]


def first_weekday_for(name: str) -> int:
    """Translate a ``week_start`` setting (``sunday``/``monday``) to a weekday index."""
    try:
        return _WEEK_STARTS[name.lower()]
    except KeyError:
        raise ValueError(f"Unsupported week start: {name!r}") from None


def week_start(day: date, first_weekday: int = SUNDAY) -> date:
    return day - timedelta(days=(day.weekday() - first_weekday) % 7)


def week_of_year(day: date, first_weekday: int = SUNDAY) -> int:
    """
    Week number where week 1 is the (possibly partial) week holding January 1st.

    Partial weeks at both ends are counted, so a leap year that starts on the
    last day of a week runs to week 54 (2000-12-31 with Sunday starts).
    """
    jan_first = date(day.year, 1, 1)
    offset = (jan_first.weekday() - first_weekday) % 7
    return ((day - jan_first).days + offset) // 7 + 1


def week_key(day: date, first_weekday: int = SUNDAY) -> WeekKey:
    """
    Identify the calendar week that contains ``day``.

    The key is taken from the week's first day, so every day of a week that
    straddles New Year lands in the same bucket, keyed by the old year's last
    week (e.g. Sunday 2024-12-29 through Saturday 2025-01-04 -> (2024, 53)).
    """
    start = week_start(day, first_weekday)
    return start.year, week_of_year(start, first_weekday)


def bucket_by_week(
    days: Iterable[DailyRecord],
    first_weekday: int = SUNDAY,
) -> dict[WeekKey, list[DailyRecord]]:
    """Group days by week; each bucket is sorted oldest first."""
    buckets: dict[WeekKey, list[DailyRecord]] = defaultdict(list)
    for day in days:
        buckets[week_key(day.date, first_weekday)].append(day)
    return {key: sorted(bucket, key=lambda d: d.date) for key, bucket in buckets.items()}


def summarize_week(
    key: WeekKey,
    days: Sequence[DailyRecord],
    thresholds: ZoneThresholds = DEFAULT_THRESHOLDS,
) -> WeeklyRecord:
    """Average and total one week's days, then classify by per-day load."""
    if not days:
        raise ValueError("Cannot summarize an empty week")

    ordered = tuple(sorted(days, key=lambda d: d.date))
    day_count = len(ordered)

    avg_recovery = mean_or_none(d.recovery_score for d in ordered)
    total_strain = sum_or_none(d.strain for d in ordered)
    met_sum = sum_or_none(d.met_minutes for d in ordered)
    total_met_minutes = round_half_up(met_sum) if met_sum is not None else None

    zone = classify(
        total_met_minutes / day_count if total_met_minutes is not None else None,
        avg_recovery,
        total_strain / day_count if total_strain is not None else None,
        thresholds,
    )

    year, week_number = key
    return WeeklyRecord(
        year=year,
        week_number=week_number,
        start_date=ordered[0].date,
        end_date=ordered[-1].date,
        days=ordered,
        zone=zone,
        avg_readiness=mean_or_none(d.readiness_score for d in ordered),
        avg_recovery=avg_recovery,
        avg_sleep=mean_or_none(d.sleep_score for d in ordered),
        avg_hrv=mean_or_none(d.hrv for d in ordered),
        avg_rhr=mean_or_none(d.rhr for d in ordered),
        avg_steps=mean_or_none(d.steps for d in ordered),
        total_strain=round(total_strain, 1) if total_strain is not None else None,
        total_met_minutes=total_met_minutes,
    )


def summarize_weeks(
    days: Iterable[DailyRecord],
    thresholds: ZoneThresholds = DEFAULT_THRESHOLDS,
    first_weekday: int = SUNDAY,
) -> list[WeeklyRecord]:
    """Bucket and summarize, newest week first."""
    buckets = bucket_by_week(days, first_weekday)
    weeks = [summarize_week(key, bucket, thresholds) for key, bucket in buckets.items()]
    weeks.sort(key=lambda w: w.start_date, reverse=True)
    return weeks


def _date_range_label(start: date, end: date) -> str:
    return f"{start:%m/%d} - {end:%m/%d}"


def _week_row(week: WeeklyRecord, row_type: RowType) -> HealthRow:
    return HealthRow(
        week=week.label,
        date_range=_date_range_label(week.start_date, week.end_date),
        start_date=week.start_date,
        end_date=week.end_date,
        days_count=week.day_count,
        row_type=row_type,
        zone=week.zone.value,
        avg_readiness=week.avg_readiness,
        avg_recovery=week.avg_recovery,
        avg_sleep=week.avg_sleep,
        avg_hrv=week.avg_hrv,
        avg_steps=week.avg_steps,
        total_strain=week.total_strain,
        total_met_minutes=week.total_met_minutes,
        trend=week.trend,
    )


def _day_row(day: DailyRecord, cumulative_met_minutes: int) -> HealthRow:
    return HealthRow(
        week=f"{day.date.month}/{day.date.day}",
        date_range=WEEKDAY_ABBREVIATIONS[day.date.weekday()],
        start_date=day.date,
        end_date=day.date,
        days_count=1,
        row_type=RowType.DAY,
        zone="-",
        avg_readiness=day.readiness_score,
        avg_recovery=day.recovery_score,
        avg_sleep=day.sleep_score,
        avg_hrv=day.hrv,
        avg_steps=day.steps,
        total_strain=day.strain,
        total_met_minutes=day.met_minutes,
        cumulative_met_minutes=cumulative_met_minutes,
    )


def expand_rows(weeks: Iterable[WeeklyRecord]) -> list[HealthRow]:
    """
    Flatten weeks into display rows, newest week first.

    A complete week becomes a single ``week`` row. An incomplete week becomes
    a ``week_cumulative`` summary followed by one ``day`` row per day, newest
    day first, each carrying the running MET-minute total from the start of
    the week through that day.
    """
    rows: list[HealthRow] = []
    for week in sorted(weeks, key=lambda w: w.start_date, reverse=True):
        if week.is_complete:
            rows.append(_week_row(week, RowType.WEEK))
            continue

        rows.append(_week_row(week, RowType.WEEK_CUMULATIVE))

        running = 0
        cumulative: list[tuple[DailyRecord, int]] = []
        for day in week.days:
            running += day.met_minutes or 0
            cumulative.append((day, running))
        rows.extend(_day_row(day, total) for day, total in reversed(cumulative))

    return rows
