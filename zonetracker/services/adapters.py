"""Translate raw provider JSON into typed records.

Each adapter reads only the fields the pipeline needs and tolerates missing
keys and ``null`` score blocks (unscored WHOOP records come back with
``"score": null``).
"""
from __future__ import annotations

from typing import Any, Iterable, Mapping

from zonetracker.models.records import (
    BandCycle,
    BandDataset,
    BandRecovery,
    BandSleep,
    RingActivity,
    RingDataset,
    RingReadiness,
    RingSleep,
    RingSleepPeriod,
)


Payload = Mapping[str, Any]


def _score(item: Payload) -> Mapping[str, Any]:
    return item.get("score") or {}


def _contributors(item: Payload) -> Mapping[str, Any]:
    return item.get("contributors") or {}


def ring_readiness(item: Payload) -> RingReadiness:
    contributors = _contributors(item)
    return RingReadiness(
        day=item["day"],
        score=item.get("score"),
        hrv_balance=contributors.get("hrv_balance"),
        resting_heart_rate=contributors.get("resting_heart_rate"),
    )


def ring_sleep(item: Payload) -> RingSleep:
    return RingSleep(day=item["day"], score=item.get("score"))


def ring_sleep_period(item: Payload) -> RingSleepPeriod:
    return RingSleepPeriod(
        day=item["day"],
        average_hrv=item.get("average_hrv"),
        lowest_heart_rate=item.get("lowest_heart_rate"),
    )


def ring_activity(item: Payload) -> RingActivity:
    return RingActivity(
        day=item["day"],
        steps=item.get("steps"),
        high_met_minutes=item.get("high_activity_met_minutes"),
        medium_met_minutes=item.get("medium_activity_met_minutes"),
        low_met_minutes=item.get("low_activity_met_minutes"),
        active_calories=item.get("active_calories"),
    )


def band_recovery(item: Payload) -> BandRecovery:
    score = _score(item)
    return BandRecovery(
        cycle_id=item.get("cycle_id"),
        created_at=item.get("created_at"),
        recovery_score=score.get("recovery_score"),
        hrv_rmssd_milli=score.get("hrv_rmssd_milli"),
        resting_heart_rate=score.get("resting_heart_rate"),
        score_state=item.get("score_state"),
    )


def band_cycle(item: Payload) -> BandCycle:
    score = _score(item)
    return BandCycle(
        id=item.get("id"),
        start=item["start"],
        strain=score.get("strain"),
        kilojoule=score.get("kilojoule"),
        score_state=item.get("score_state"),
    )


def band_sleep(item: Payload) -> BandSleep:
    return BandSleep(
        id=item.get("id"),
        start=item["start"],
        sleep_performance_percentage=_score(item).get("sleep_performance_percentage"),
        nap=bool(item.get("nap", False)),
    )


def _is_main_sleep(item: Payload) -> bool:
    # Oura tags each period; older payloads carry no type at all.
    return item.get("type") in (None, "long_sleep")


def _items(payload: Payload | None, key: str) -> Iterable[Payload]:
    if not payload:
        return []
    return payload.get(key) or []


def adapt_oura_payload(payload: Payload | None) -> RingDataset | None:
    """``{"readiness": [...], "sleep": [...], "activity": [...], "sleep_periods": [...]}`` -> RingDataset."""
    if payload is None:
        return None
    return RingDataset(
        readiness=[ring_readiness(i) for i in _items(payload, "readiness")],
        sleep=[ring_sleep(i) for i in _items(payload, "sleep")],
        activity=[ring_activity(i) for i in _items(payload, "activity")],
        sleep_periods=[
            ring_sleep_period(i) for i in _items(payload, "sleep_periods") if _is_main_sleep(i)
        ],
    )


def adapt_whoop_payload(payload: Payload | None) -> BandDataset | None:
    """``{"recovery": [...], "cycles": [...], "sleep": [...]}`` -> BandDataset."""
    if payload is None:
        return None
    return BandDataset(
        recovery=[band_recovery(i) for i in _items(payload, "recovery")],
        cycles=[band_cycle(i) for i in _items(payload, "cycles")],
        sleep=[band_sleep(i) for i in _items(payload, "sleep")],
    )
