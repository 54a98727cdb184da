"""Tests for per-day lookups and the daily merge."""
from __future__ import annotations

from datetime import date

from zonetracker.models.records import (
    BandCycle,
    BandDataset,
    BandRecovery,
    BandSleep,
    RingDataset,
    RingSleepPeriod,
    Zone,
)
from zonetracker.services.adapters import adapt_oura_payload, adapt_whoop_payload
from zonetracker.services.health_aggregator import aggregate_daily
from zonetracker.services.daily_aggregator import (
    DailyLookups,
    aggregate_day,
    build_lookups,
    date_part,
)


def test_date_part():
    assert date_part("2025-01-06T22:15:00.000Z") == "2025-01-06"
    assert date_part("2025-01-06") == "2025-01-06"
    assert date_part(None) is None
    assert date_part("") is None


def test_recovery_is_keyed_the_day_after_its_cycle_started():
    band = BandDataset(
        cycles=[BandCycle(id=10, start="2025-01-05T08:00:00.000Z", kilojoule=8000)],
        recovery=[BandRecovery(cycle_id=10, created_at="2025-01-05T08:05:00.000Z", recovery_score=81)],
    )

    lookups = build_lookups(None, band)

    assert "2025-01-05" in lookups.band_cycles
    assert set(lookups.band_recovery) == {"2025-01-06"}


def test_recovery_without_known_cycle_uses_creation_date():
    band = BandDataset(
        recovery=[BandRecovery(cycle_id=999, created_at="2025-01-07T07:00:00.000Z", recovery_score=55)],
    )

    lookups = build_lookups(None, band)

    assert lookups.band_recovery["2025-01-07"].recovery_score == 55


def test_naps_are_not_indexed():
    band = BandDataset(
        sleep=[
            BandSleep(id=1, start="2025-01-06T00:30:00.000Z", sleep_performance_percentage=90),
            BandSleep(id=2, start="2025-01-06T14:00:00.000Z", sleep_performance_percentage=10, nap=True),
        ],
    )

    lookups = build_lookups(None, band)

    assert lookups.band_sleep["2025-01-06"].sleep_performance_percentage == 90


def test_first_sleep_period_of_the_day_wins():
    ring = RingDataset(
        sleep_periods=[
            RingSleepPeriod(day="2025-01-06", average_hrv=40),
            RingSleepPeriod(day="2025-01-06", average_hrv=60),
        ]
    )

    assert build_lookups(ring, None).ring_sleep_periods["2025-01-06"].average_hrv == 40


def test_day_without_any_data_is_empty_and_recovering():
    record = aggregate_day(date(2025, 1, 6), DailyLookups())

    assert record.is_empty
    assert record.zone is Zone.RECOVERY_STATE
    assert record.met_minutes is None
    assert record.date == date(2025, 1, 6)


def test_energy_heavy_day_is_j_curve_risk_despite_good_recovery():
    band = BandDataset(
        cycles=[
            BandCycle(id=1, start="2025-01-05T07:00:00.000Z", kilojoule=8000),
            BandCycle(id=2, start="2025-01-06T07:00:00.000Z", strain=15.2, kilojoule=8730),
        ],
        recovery=[BandRecovery(cycle_id=1, recovery_score=70)],
    )

    record = aggregate_day("2025-01-06", build_lookups(None, band))

    assert record.met_minutes == 300
    assert record.recovery_score == 70
    assert record.strain == 15.2
    assert record.kilojoule == 8730
    assert record.zone is Zone.J_CURVE_RISK


def test_merged_day_from_both_providers(oura_fixture, whoop_fixture):
    lookups = build_lookups(adapt_oura_payload(oura_fixture), adapt_whoop_payload(whoop_fixture))

    record = aggregate_day(date(2025, 1, 6), lookups)

    assert record.readiness_score == 71
    assert record.recovery_score == 70
    assert record.sleep_score == 85
    assert record.hrv == 55
    assert record.rhr == 52
    assert record.steps == 8100
    assert record.met_minutes == 190
    assert record.zone is Zone.HIGH_LOAD


def test_unscored_cycle_falls_back_to_ring_activity(oura_fixture, whoop_fixture):
    lookups = build_lookups(adapt_oura_payload(oura_fixture), adapt_whoop_payload(whoop_fixture))

    record = aggregate_day(date(2025, 1, 11), lookups)

    assert record.kilojoule is None
    assert record.strain is None
    assert record.met_minutes == 130
    assert record.recovery_score == 70
    assert record.zone is Zone.OPTIMAL


def test_cycle_without_recovery_fills_only_strain_and_energy():
    band = BandDataset(
        cycles=[BandCycle(id=20, start="2025-01-06T07:00:00.000Z", strain=11.4, kilojoule=8180)],
    )

    record = aggregate_day(date(2025, 1, 6), build_lookups(None, band))

    assert record.strain == 11.4
    assert record.kilojoule == 8180
    assert record.met_minutes == 190
    assert record.recovery_score is None
    assert record.hrv is None
    assert record.rhr is None
    assert record.readiness_score is None


def test_recovery_lands_on_the_day_after_its_cycle():
    band = BandDataset(
        cycles=[BandCycle(id=30, start="2025-01-05T23:30:00.000Z", strain=9.0, kilojoule=8000)],
        recovery=[
            BandRecovery(
                cycle_id=30,
                created_at="2025-01-06T07:10:00.000Z",
                recovery_score=64,
                hrv_rmssd_milli=48.6,
                resting_heart_rate=55,
            )
        ],
    )

    cycle_day, next_day = aggregate_daily(None, band, date(2025, 1, 5), date(2025, 1, 6))

    assert cycle_day.kilojoule == 8000
    assert cycle_day.hrv is None
    assert cycle_day.rhr is None
    assert cycle_day.recovery_score is None
    assert next_day.kilojoule is None
    assert next_day.recovery_score == 64
    assert next_day.hrv == 49
    assert next_day.rhr == 55
