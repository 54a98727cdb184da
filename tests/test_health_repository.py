"""Tests for persisting daily records, weekly rollups and sync history."""
from __future__ import annotations

from datetime import date, datetime, timedelta

from zonetracker.models.database_models import DailyHealthRecord, WeeklyHealthRecord
from zonetracker.models.records import DailyRecord, RingDataset, RingReadiness, RowType, Trend, Zone
from zonetracker.services.adapters import adapt_oura_payload, adapt_whoop_payload
from zonetracker.services.daily_aggregator import build_lookups
from zonetracker.services.health_aggregator import aggregate, aggregate_daily
from zonetracker.services.health_repository import HealthRepository


def test_empty_days_are_skipped(db_session):
    repository = HealthRepository(db_session)
    days = [
        DailyRecord(date=date(2025, 1, 5), zone=Zone.RECOVERY_STATE),
        DailyRecord(date=date(2025, 1, 6), zone=Zone.OPTIMAL, met_minutes=140, recovery_score=55),
    ]

    assert repository.save_daily_records(days) == 1
    assert [r.date for r in repository.get_daily_records(date(2025, 1, 1), date(2025, 1, 31))] == [date(2025, 1, 6)]


def test_daily_records_are_upserted_with_raw_columns(db_session, oura_fixture, whoop_fixture):
    repository = HealthRepository(db_session)
    ring = adapt_oura_payload(oura_fixture)
    band = adapt_whoop_payload(whoop_fixture)
    days = aggregate_daily(ring, band, date(2025, 1, 5), date(2025, 1, 11))
    lookups = build_lookups(ring, band)

    assert repository.save_daily_records(days, lookups) == 7
    assert repository.save_daily_records(days, lookups) == 7
    assert db_session.query(DailyHealthRecord).count() == 7

    record = db_session.query(DailyHealthRecord).filter(DailyHealthRecord.date == date(2025, 1, 6)).one()
    assert record.whoop_kilojoule == 8180
    assert record.whoop_recovery_score == 70
    assert record.oura_readiness_score == 71
    assert record.oura_average_hrv == 42
    assert record.combined_hrv == 55
    assert record.met_minutes == 190
    assert record.zone == "HIGH_LOAD"


def test_weekly_rows_round_trip(db_session, whoop_fixture):
    repository = HealthRepository(db_session)
    band = adapt_whoop_payload(whoop_fixture)
    rows = aggregate(None, band, date(2024, 12, 29), date(2025, 1, 8))

    assert repository.save_weekly_rows(rows) == 2
    assert repository.save_weekly_rows(rows) == 2
    assert db_session.query(WeeklyHealthRecord).count() == 2

    stored = repository.get_weekly_rows(12)
    assert [r.row_type for r in stored] == [RowType.WEEK_CUMULATIVE, RowType.WEEK]
    assert [r.week for r in stored] == ["Week 2", "Week 53"]
    assert stored[0].days_count == 4
    assert stored[0].total_met_minutes == rows[0].total_met_minutes
    assert stored[0].date_range == "01/05 - 01/08"
    assert stored[0].trend is rows[0].trend


def test_weekly_rows_limit(db_session):
    repository = HealthRepository(db_session)
    start, end = date(2024, 11, 3), date(2025, 1, 11)
    ring = RingDataset(
        readiness=[RingReadiness(day=(start + timedelta(days=n)).isoformat(), score=60) for n in range((end - start).days + 1)]
    )
    rows = aggregate(ring, None, start, end)

    repository.save_weekly_rows(rows)

    stored = repository.get_weekly_rows(3)
    assert len(stored) == 3
    assert stored[0].start_date == date(2025, 1, 5)
    assert all(r.trend is Trend.FLAT for r in stored)


def test_sync_status_without_history(db_session):
    status = HealthRepository(db_session).sync_status()

    assert status["last_sync"] is None
    assert status["stale"] is True


def test_sync_status_after_success(db_session):
    repository = HealthRepository(db_session)
    entry = repository.start_sync("whoop", date(2025, 1, 5), date(2025, 1, 11))
    assert entry.status == "pending"

    repository.finish_sync(entry, "success", 7)

    status = repository.sync_status()
    assert status["stale"] is False
    assert status["records_synced"] == 7
    assert status["range"] == {"start": "2025-01-05", "end": "2025-01-11"}
    assert repository.last_successful_sync("oura") is None


def test_old_sync_is_stale(db_session):
    repository = HealthRepository(db_session)
    entry = repository.finish_sync(repository.start_sync("oura", date(2025, 1, 5), date(2025, 1, 11)), "success", 3)
    entry.completed_at = datetime.utcnow() - timedelta(days=3)
    db_session.flush()

    assert repository.sync_status()["stale"] is True


def test_load_days_fills_unsaved_days(db_session):
    repository = HealthRepository(db_session)
    repository.save_daily_records(
        [
            DailyRecord(date=date(2025, 1, 6), zone=Zone.HIGH_LOAD, met_minutes=190, strain=12.5, kilojoule=8180),
            DailyRecord(date=date(2025, 1, 8), zone=Zone.OPTIMAL, met_minutes=140, steps=8200, recovery_score=70),
        ]
    )

    days = repository.load_days(date(2025, 1, 5), date(2025, 1, 8))

    assert [d.date for d in days] == [date(2025, 1, 5), date(2025, 1, 6), date(2025, 1, 7), date(2025, 1, 8)]
    assert days[0].is_empty
    assert days[0].zone is Zone.RECOVERY_STATE
    assert (days[1].met_minutes, days[1].strain, days[1].kilojoule) == (190, 12.5, 8180)
    assert days[1].zone is Zone.HIGH_LOAD
    assert (days[3].steps, days[3].recovery_score) == (8200, 70)
    assert repository.earliest_daily_date() == date(2025, 1, 6)


def test_previous_weekly_record(db_session, whoop_fixture):
    repository = HealthRepository(db_session)
    rows = aggregate(None, adapt_whoop_payload(whoop_fixture), date(2024, 12, 29), date(2025, 1, 11))
    repository.save_weekly_rows(rows)

    previous = repository.previous_weekly_record(date(2025, 1, 5))

    assert previous.start_date == date(2024, 12, 29)
    assert repository.previous_weekly_record(date(2024, 12, 29)) is None
