"""SQLAlchemy ORM models for synced health data and provider credentials."""
from datetime import date, datetime
from sqlalchemy import Integer, Date, DateTime, Float, String, Text, Index, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from zonetracker.database import Base


class DailyHealthRecord(Base):
    """One merged day of ring and band metrics."""

    __tablename__ = "daily_records"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    date: Mapped[date] = mapped_column(Date, unique=True, nullable=False, index=True)

    # Ring (Oura)
    oura_readiness_score: Mapped[int | None] = mapped_column(Integer, nullable=True)
    oura_hrv_balance: Mapped[float | None] = mapped_column(Float, nullable=True)  # Contributor index, not ms
    oura_resting_hr: Mapped[float | None] = mapped_column(Float, nullable=True)
    oura_average_hrv: Mapped[float | None] = mapped_column(Float, nullable=True)  # ms, from sleep periods
    oura_sleep_score: Mapped[int | None] = mapped_column(Integer, nullable=True)
    oura_steps: Mapped[int | None] = mapped_column(Integer, nullable=True)
    oura_active_calories: Mapped[int | None] = mapped_column(Integer, nullable=True)
    oura_high_met_minutes: Mapped[float | None] = mapped_column(Float, nullable=True)
    oura_medium_met_minutes: Mapped[float | None] = mapped_column(Float, nullable=True)
    oura_low_met_minutes: Mapped[float | None] = mapped_column(Float, nullable=True)

    # Band (WHOOP)
    whoop_recovery_score: Mapped[float | None] = mapped_column(Float, nullable=True)
    whoop_hrv: Mapped[float | None] = mapped_column(Float, nullable=True)  # RMSSD in ms
    whoop_rhr: Mapped[float | None] = mapped_column(Float, nullable=True)
    whoop_strain: Mapped[float | None] = mapped_column(Float, nullable=True)  # 0-21 scale
    whoop_kilojoule: Mapped[float | None] = mapped_column(Float, nullable=True)
    whoop_sleep_performance: Mapped[float | None] = mapped_column(Float, nullable=True)

    # Combined
    combined_readiness: Mapped[int | None] = mapped_column(Integer, nullable=True)
    combined_recovery: Mapped[int | None] = mapped_column(Integer, nullable=True)
    combined_sleep: Mapped[int | None] = mapped_column(Integer, nullable=True)
    combined_hrv: Mapped[int | None] = mapped_column(Integer, nullable=True)
    combined_rhr: Mapped[int | None] = mapped_column(Integer, nullable=True)
    met_minutes: Mapped[int | None] = mapped_column(Integer, nullable=True)
    zone: Mapped[str] = mapped_column(String(20), nullable=False)
    trend: Mapped[str] = mapped_column(String(10), default="flat", nullable=False)

    # Timestamps
    synced_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class WeeklyHealthRecord(Base):
    """Persisted weekly rollup, keyed by (year, week_number)."""

    __tablename__ = "weekly_records"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    week_number: Mapped[int] = mapped_column(Integer, nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    days_count: Mapped[int] = mapped_column(Integer, nullable=False)

    avg_readiness: Mapped[int | None] = mapped_column(Integer, nullable=True)
    avg_recovery: Mapped[int | None] = mapped_column(Integer, nullable=True)
    avg_sleep: Mapped[int | None] = mapped_column(Integer, nullable=True)
    avg_hrv: Mapped[int | None] = mapped_column(Integer, nullable=True)
    avg_rhr: Mapped[int | None] = mapped_column(Integer, nullable=True)
    avg_steps: Mapped[int | None] = mapped_column(Integer, nullable=True)
    total_strain: Mapped[float | None] = mapped_column(Float, nullable=True)
    total_met_minutes: Mapped[int | None] = mapped_column(Integer, nullable=True)

    zone: Mapped[str] = mapped_column(String(20), nullable=False)
    trend: Mapped[str] = mapped_column(String(10), default="flat", nullable=False)
    row_type: Mapped[str] = mapped_column(String(20), default="week", nullable=False)  # week, week_cumulative

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        UniqueConstraint("year", "week_number", name="uq_weekly_records_year_week"),
    )


class OAuthToken(Base):
    """Stored OAuth credentials, one row per provider."""

    __tablename__ = "oauth_tokens"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    provider: Mapped[str] = mapped_column(String(20), unique=True, nullable=False)  # oura, whoop
    access_token: Mapped[str] = mapped_column(Text, nullable=False)
    refresh_token: Mapped[str | None] = mapped_column(Text, nullable=True)
    expires_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)  # naive UTC

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class SyncLog(Base):
    """Audit trail of sync runs per provider."""

    __tablename__ = "sync_logs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    provider: Mapped[str] = mapped_column(String(20), nullable=False, index=True)  # oura, whoop, all
    sync_type: Mapped[str] = mapped_column(String(20), default="full", nullable=False)  # full, incremental
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    records_synced: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    status: Mapped[str] = mapped_column(String(20), default="pending", nullable=False)  # pending, success, error, skipped
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    __table_args__ = (
        Index("ix_sync_logs_provider_status", "provider", "status"),
    )
