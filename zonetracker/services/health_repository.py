"""Persistence for synced daily records, weekly rollups and sync history."""
from __future__ import annotations

import logging
from datetime import date, datetime, timedelta
from typing import Iterable, Sequence

from sqlalchemy import func
from sqlalchemy.orm import Session

from zonetracker.models.database_models import DailyHealthRecord, SyncLog, WeeklyHealthRecord
from zonetracker.models.records import DailyRecord, HealthRow, RowType, Trend, Zone
from zonetracker.services.daily_aggregator import DailyLookups
from zonetracker.services.weekly_aggregator import SUNDAY, week_key


logger = logging.getLogger(__name__)


def _raw_columns(day: DailyRecord, lookups: DailyLookups | None) -> dict:
    """Provider-native values for ``day`` kept alongside the merged columns."""

    if lookups is None:
        return {
            "oura_steps": day.steps,
            "whoop_strain": day.strain,
            "whoop_kilojoule": day.kilojoule,
        }

    key = day.date.isoformat()
    readiness = lookups.ring_readiness.get(key)
    ring_sleep = lookups.ring_sleep.get(key)
    period = lookups.ring_sleep_periods.get(key)
    activity = lookups.ring_activity.get(key)
    recovery = lookups.band_recovery.get(key)
    cycle = lookups.band_cycles.get(key)
    band_sleep = lookups.band_sleep.get(key)

    return {
        "oura_readiness_score": readiness.score if readiness else None,
        "oura_hrv_balance": readiness.hrv_balance if readiness else None,
        "oura_resting_hr": readiness.resting_heart_rate if readiness else None,
        "oura_average_hrv": period.average_hrv if period else None,
        "oura_sleep_score": ring_sleep.score if ring_sleep else None,
        "oura_steps": activity.steps if activity else None,
        "oura_active_calories": activity.active_calories if activity else None,
        "oura_high_met_minutes": activity.high_met_minutes if activity else None,
        "oura_medium_met_minutes": activity.medium_met_minutes if activity else None,
        "oura_low_met_minutes": activity.low_met_minutes if activity else None,
        "whoop_recovery_score": recovery.recovery_score if recovery else None,
        "whoop_hrv": recovery.hrv_rmssd_milli if recovery else None,
        "whoop_rhr": recovery.resting_heart_rate if recovery else None,
        "whoop_strain": cycle.strain if cycle else None,
        "whoop_kilojoule": cycle.kilojoule if cycle else None,
        "whoop_sleep_performance": band_sleep.sleep_performance_percentage if band_sleep else None,
    }


def _to_daily_record(record: DailyHealthRecord) -> DailyRecord:
    return DailyRecord(
        date=record.date,
        zone=Zone(record.zone),
        readiness_score=record.combined_readiness,
        recovery_score=record.combined_recovery,
        sleep_score=record.combined_sleep,
        hrv=record.combined_hrv,
        rhr=record.combined_rhr,
        strain=record.whoop_strain,
        steps=record.oura_steps,
        kilojoule=record.whoop_kilojoule,
        met_minutes=record.met_minutes,
        trend=Trend(record.trend),
    )


class HealthRepository:
    """Upserts and range queries over the health tables."""

    def __init__(self, db: Session) -> None:
        self.db = db

    # Daily records
    def save_daily_records(
        self,
        days: Iterable[DailyRecord],
        lookups: DailyLookups | None = None,
        skip_empty: bool = True,
    ) -> int:
        """Insert or update one row per day; days with no data at all are skipped."""

        saved = 0
        now = datetime.utcnow()
        for day in days:
            if skip_empty and day.is_empty:
                continue

            values = {
                **_raw_columns(day, lookups),
                "combined_readiness": day.readiness_score,
                "combined_recovery": day.recovery_score,
                "combined_sleep": day.sleep_score,
                "combined_hrv": day.hrv,
                "combined_rhr": day.rhr,
                "met_minutes": day.met_minutes,
                "zone": day.zone.value,
                "trend": day.trend.value,
                "synced_at": now,
            }

            existing = self.db.query(DailyHealthRecord).filter(DailyHealthRecord.date == day.date).first()
            if existing:
                for key, value in values.items():
                    setattr(existing, key, value)
                existing.updated_at = now
            else:
                self.db.add(DailyHealthRecord(date=day.date, **values))
            saved += 1

        self.db.flush()
        logger.debug("Saved %d daily record(s)", saved)
        return saved

    def get_daily_records(self, start_date: date, end_date: date) -> list[DailyHealthRecord]:
        return (
            self.db.query(DailyHealthRecord)
            .filter(DailyHealthRecord.date >= start_date, DailyHealthRecord.date <= end_date)
            .order_by(DailyHealthRecord.date.desc())
            .all()
        )

    def earliest_daily_date(self) -> date | None:
        return self.db.query(func.min(DailyHealthRecord.date)).scalar()

    def load_days(self, start_date: date, end_date: date) -> list[DailyRecord]:
        """
        Stored days as DailyRecords, one per calendar day, oldest first.

        Days that were never saved come back empty so week completeness is
        still counted over calendar days.
        """
        stored = {record.date: record for record in self.get_daily_records(start_date, end_date)}
        days = []
        current = start_date
        while current <= end_date:
            record = stored.get(current)
            days.append(_to_daily_record(record) if record else DailyRecord(date=current, zone=Zone.RECOVERY_STATE))
            current += timedelta(days=1)
        return days

    # Weekly rollups
    def save_weekly_rows(self, rows: Sequence[HealthRow], first_weekday: int = SUNDAY) -> int:
        """Persist the week-level rows of a table, keyed by (year, week number)."""

        saved = 0
        for row in rows:
            if not row.is_week_level:
                continue

            year, week_number = week_key(row.start_date, first_weekday)
            values = {
                "start_date": row.start_date,
                "end_date": row.end_date,
                "days_count": row.days_count,
                "avg_readiness": row.avg_readiness,
                "avg_recovery": row.avg_recovery,
                "avg_sleep": row.avg_sleep,
                "avg_hrv": row.avg_hrv,
                "avg_steps": row.avg_steps,
                "total_strain": row.total_strain,
                "total_met_minutes": row.total_met_minutes,
                "zone": row.zone,
                "trend": row.trend.value,
                "row_type": row.row_type.value,
            }

            existing = (
                self.db.query(WeeklyHealthRecord)
                .filter(WeeklyHealthRecord.year == year, WeeklyHealthRecord.week_number == week_number)
                .first()
            )
            if existing:
                for key, value in values.items():
                    setattr(existing, key, value)
                existing.updated_at = datetime.utcnow()
            else:
                self.db.add(WeeklyHealthRecord(year=year, week_number=week_number, **values))
            saved += 1

        self.db.flush()
        logger.debug("Saved %d weekly rollup(s)", saved)
        return saved

    def previous_weekly_record(self, before: date) -> WeeklyHealthRecord | None:
        """Most recent stored rollup that starts before ``before``."""
        return (
            self.db.query(WeeklyHealthRecord)
            .filter(WeeklyHealthRecord.start_date < before)
            .order_by(WeeklyHealthRecord.start_date.desc())
            .first()
        )

    def get_weekly_rows(self, weeks: int = 12) -> list[HealthRow]:
        """Most recent ``weeks`` rollups as display rows, newest first."""

        records = (
            self.db.query(WeeklyHealthRecord)
            .order_by(WeeklyHealthRecord.start_date.desc())
            .limit(weeks)
            .all()
        )
        return [
            HealthRow(
                week=f"Week {record.week_number}",
                date_range=f"{record.start_date:%m/%d} - {record.end_date:%m/%d}",
                start_date=record.start_date,
                end_date=record.end_date,
                days_count=record.days_count,
                row_type=RowType(record.row_type),
                zone=record.zone,
                avg_readiness=record.avg_readiness,
                avg_recovery=record.avg_recovery,
                avg_sleep=record.avg_sleep,
                avg_hrv=record.avg_hrv,
                avg_steps=record.avg_steps,
                total_strain=record.total_strain,
                total_met_minutes=record.total_met_minutes,
                trend=Trend(record.trend),
            )
            for record in records
        ]

    # Sync log
    def start_sync(self, provider: str, start_date: date, end_date: date, sync_type: str = "full") -> SyncLog:
        entry = SyncLog(
            provider=provider,
            sync_type=sync_type,
            start_date=start_date,
            end_date=end_date,
            status="pending",
        )
        self.db.add(entry)
        self.db.flush()
        return entry

    def finish_sync(
        self,
        entry: SyncLog,
        status: str,
        records_synced: int = 0,
        error_message: str | None = None,
    ) -> SyncLog:
        entry.status = status
        entry.records_synced = records_synced
        entry.error_message = error_message
        entry.completed_at = datetime.utcnow()
        self.db.flush()
        return entry

    def last_successful_sync(self, provider: str | None = None) -> SyncLog | None:
        query = self.db.query(SyncLog).filter(SyncLog.status == "success")
        if provider:
            query = query.filter(SyncLog.provider == provider)
        return query.order_by(SyncLog.completed_at.desc()).first()

    def sync_status(self, stale_after: timedelta = timedelta(hours=36)) -> dict:
        """Last successful sync and whether the cached data should be considered stale."""

        last = self.last_successful_sync()
        if last is None or last.completed_at is None:
            return {"last_sync": None, "stale": True, "records_synced": 0}

        age = datetime.utcnow() - last.completed_at
        return {
            "last_sync": last.completed_at.isoformat(),
            "stale": age > stale_after,
            "age_hours": round(age.total_seconds() / 3600, 1),
            "records_synced": last.records_synced,
            "range": {"start": last.start_date.isoformat(), "end": last.end_date.isoformat()},
        }
