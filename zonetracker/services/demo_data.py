"""Placeholder table shown when no provider is connected."""
from __future__ import annotations

import random
from datetime import date, timedelta

from zonetracker.models.records import HealthRow, RowType
from zonetracker.services.trend import apply_trends
from zonetracker.services.weekly_aggregator import SUNDAY, week_key, week_start
from zonetracker.services.zones import DEFAULT_THRESHOLDS, ZoneThresholds, classify


DEMO_SEED = 20240101


def demo_rows(
    weeks: int = 12,
    today: date | None = None,
    seed: int = DEMO_SEED,
    thresholds: ZoneThresholds = DEFAULT_THRESHOLDS,
) -> list[HealthRow]:
    """Complete-week rows with plausible values, newest first; same seed -> same rows."""

    rng = random.Random(seed)
    current_week = week_start(today or date.today(), SUNDAY)

    rows: list[HealthRow] = []
    for offset in range(weeks):
        start = current_week - timedelta(weeks=offset)
        end = start + timedelta(days=6)
        _, week_number = week_key(start)

        recovery = rng.randint(40, 79)
        daily_met = rng.randint(100, 200)
        strain = round(rng.uniform(8, 18) * 7, 1)

        rows.append(
            HealthRow(
                week=f"Week {week_number}",
                date_range=f"{start:%m/%d} - {end:%m/%d}",
                start_date=start,
                end_date=end,
                days_count=7,
                row_type=RowType.WEEK,
                zone=classify(daily_met, recovery, strain / 7, thresholds).value,
                avg_readiness=rng.randint(60, 89),
                avg_recovery=recovery,
                avg_sleep=rng.randint(65, 89),
                avg_hrv=rng.randint(30, 69),
                avg_steps=rng.randint(6000, 10999),
                total_strain=strain,
                total_met_minutes=daily_met * 7,
            )
        )

    return apply_trends(rows)
