"""Map ring and band fields onto one canonical vocabulary.

The band's HRV/RHR readings win over the ring's because the band reports
millisecond RMSSD directly. Every resolver returns None when no source has
the metric; missing inputs are never an error here.
"""
from __future__ import annotations

from zonetracker.models.records import (
    BandCycle,
    BandRecovery,
    BandSleep,
    RingActivity,
    RingReadiness,
    RingSleep,
    RingSleepPeriod,
)
from zonetracker.services.numeric import round_half_up
from zonetracker.services.zones import DEFAULT_THRESHOLDS, ZoneThresholds


def _first_present(*values: float | None) -> float | None:
    for value in values:
        if value is not None:
            return value
    return None


def resolve_hrv(
    band_recovery: BandRecovery | None,
    ring_readiness: RingReadiness | None,
    ring_sleep_period: RingSleepPeriod | None = None,
) -> int | None:
    """Band RMSSD, then the ring's measured sleep HRV, then its HRV balance index."""
    value = _first_present(
        band_recovery.hrv_rmssd_milli if band_recovery else None,
        ring_sleep_period.average_hrv if ring_sleep_period else None,
        ring_readiness.hrv_balance if ring_readiness else None,
    )
    return round_half_up(value) if value is not None else None


def resolve_rhr(
    band_recovery: BandRecovery | None,
    ring_readiness: RingReadiness | None,
) -> int | None:
    value = _first_present(
        band_recovery.resting_heart_rate if band_recovery else None,
        ring_readiness.resting_heart_rate if ring_readiness else None,
    )
    return round_half_up(value) if value is not None else None


def resolve_readiness(ring_readiness: RingReadiness | None) -> int | None:
    if ring_readiness is None or ring_readiness.score is None:
        return None
    return round_half_up(ring_readiness.score)


def resolve_recovery(
    band_recovery: BandRecovery | None,
    ring_readiness: RingReadiness | None,
) -> int | None:
    """Band recovery score, falling back to ring readiness (both 0-100 composites)."""
    value = _first_present(
        band_recovery.recovery_score if band_recovery else None,
        ring_readiness.score if ring_readiness else None,
    )
    return round_half_up(value) if value is not None else None


def resolve_sleep_score(
    ring_sleep: RingSleep | None,
    band_sleep: BandSleep | None,
) -> int | None:
    ring_score = ring_sleep.score if ring_sleep else None
    band_score = band_sleep.sleep_performance_percentage if band_sleep else None

    if ring_score is not None and band_score is not None:
        return round_half_up((ring_score + band_score) / 2)
    value = _first_present(ring_score, band_score)
    return round_half_up(value) if value is not None else None


def kilojoules_to_met_minutes(
    kilojoule: float | None,
    thresholds: ZoneThresholds = DEFAULT_THRESHOLDS,
) -> int | None:
    """Energy above the basal budget, expressed in MET-minutes."""
    if kilojoule is None:
        return None
    active_kj = max(0.0, kilojoule - thresholds.basal_kj)
    return round_half_up(active_kj / thresholds.conversion_factor)


def ring_met_minutes(
    activity: RingActivity | None,
    thresholds: ZoneThresholds = DEFAULT_THRESHOLDS,
) -> int | None:
    """Moderate + vigorous MET-minute buckets (plus light when configured)."""
    if activity is None:
        return None

    buckets = [activity.high_met_minutes, activity.medium_met_minutes]
    if thresholds.include_light_activity:
        buckets.append(activity.low_met_minutes)

    if all(bucket is None for bucket in buckets):
        return None
    return round_half_up(sum(bucket or 0 for bucket in buckets))


def resolve_met_minutes(
    band_cycle: BandCycle | None,
    ring_activity: RingActivity | None,
    thresholds: ZoneThresholds = DEFAULT_THRESHOLDS,
) -> int | None:
    """Kilojoule-derived MET-minutes first, ring activity buckets as fallback."""
    from_energy = kilojoules_to_met_minutes(
        band_cycle.kilojoule if band_cycle else None,
        thresholds,
    )
    if from_energy is not None:
        return from_energy
    return ring_met_minutes(ring_activity, thresholds)
