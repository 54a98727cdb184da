"""Per-day merge of ring and band records into a DailyRecord."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, timedelta

from zonetracker.models.records import (
    BandCycle,
    BandDataset,
    BandRecovery,
    BandSleep,
    DailyRecord,
    RingActivity,
    RingDataset,
    RingReadiness,
    RingSleep,
    RingSleepPeriod,
)
from zonetracker.services import normalizer
from zonetracker.services.zones import DEFAULT_THRESHOLDS, ZoneThresholds, classify


@dataclass
class DailyLookups:
    """Date-keyed (``YYYY-MM-DD``) maps, one per record family."""

    ring_readiness: dict[str, RingReadiness] = field(default_factory=dict)
    ring_sleep: dict[str, RingSleep] = field(default_factory=dict)
    ring_sleep_periods: dict[str, RingSleepPeriod] = field(default_factory=dict)
    ring_activity: dict[str, RingActivity] = field(default_factory=dict)
    band_recovery: dict[str, BandRecovery] = field(default_factory=dict)
    band_cycles: dict[str, BandCycle] = field(default_factory=dict)
    band_sleep: dict[str, BandSleep] = field(default_factory=dict)


def date_part(timestamp: str | None) -> str | None:
    """``2025-01-06T22:15:00.000Z`` -> ``2025-01-06``."""
    if not timestamp:
        return None
    return timestamp[:10]


def _next_day(day: str) -> str:
    return (date.fromisoformat(day) + timedelta(days=1)).isoformat()


def build_lookups(ring: RingDataset | None, band: BandDataset | None) -> DailyLookups:
    """
    Index every provider record by calendar day.

    A band recovery is measured on waking, after the cycle that started the
    previous day, so it is joined to its cycle and keyed one day after the
    cycle's start. Recoveries with no known cycle fall back to their own
    creation date.
    """
    lookups = DailyLookups()

    if ring is not None:
        lookups.ring_readiness = {r.day: r for r in ring.readiness}
        lookups.ring_sleep = {s.day: s for s in ring.sleep}
        lookups.ring_activity = {a.day: a for a in ring.activity}
        for period in ring.sleep_periods:
            # First main sleep period per day wins.
            lookups.ring_sleep_periods.setdefault(period.day, period)

    if band is None:
        return lookups

    cycle_start_by_id: dict[int, str] = {}
    for cycle in band.cycles:
        day = date_part(cycle.start)
        if day is None:
            continue
        lookups.band_cycles[day] = cycle
        if cycle.id is not None:
            cycle_start_by_id[cycle.id] = day

    for recovery in band.recovery:
        cycle_day = cycle_start_by_id.get(recovery.cycle_id) if recovery.cycle_id is not None else None
        if cycle_day is not None:
            day = _next_day(cycle_day)
        else:
            day = date_part(recovery.created_at)
        if day is not None:
            lookups.band_recovery[day] = recovery

    for sleep in band.sleep:
        if sleep.nap:
            continue
        day = date_part(sleep.start)
        if day is not None:
            lookups.band_sleep[day] = sleep

    return lookups


def aggregate_day(
    day: date | str,
    lookups: DailyLookups,
    thresholds: ZoneThresholds = DEFAULT_THRESHOLDS,
) -> DailyRecord:
    """Merge everything known about ``day`` into one classified record."""

    key = day if isinstance(day, str) else day.isoformat()

    readiness = lookups.ring_readiness.get(key)
    ring_sleep = lookups.ring_sleep.get(key)
    sleep_period = lookups.ring_sleep_periods.get(key)
    activity = lookups.ring_activity.get(key)
    recovery = lookups.band_recovery.get(key)
    cycle = lookups.band_cycles.get(key)
    band_sleep = lookups.band_sleep.get(key)

    recovery_score = normalizer.resolve_recovery(recovery, readiness)
    strain = cycle.strain if cycle else None
    met_minutes = normalizer.resolve_met_minutes(cycle, activity, thresholds)

    return DailyRecord(
        date=date.fromisoformat(key),
        zone=classify(met_minutes, recovery_score, strain, thresholds),
        readiness_score=normalizer.resolve_readiness(readiness),
        recovery_score=recovery_score,
        sleep_score=normalizer.resolve_sleep_score(ring_sleep, band_sleep),
        hrv=normalizer.resolve_hrv(recovery, readiness, sleep_period),
        rhr=normalizer.resolve_rhr(recovery, readiness),
        strain=strain,
        steps=activity.steps if activity else None,
        kilojoule=cycle.kilojoule if cycle else None,
        met_minutes=met_minutes,
    )
