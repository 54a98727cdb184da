"""Initial zone tracker schema."""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa


revision = "20250301_01"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
    ]


def upgrade() -> None:
    op.create_table(
        "daily_records",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("date", sa.Date(), nullable=False, unique=True),
        sa.Column("oura_readiness_score", sa.Integer(), nullable=True),
        sa.Column("oura_hrv_balance", sa.Float(), nullable=True),
        sa.Column("oura_resting_hr", sa.Float(), nullable=True),
        sa.Column("oura_average_hrv", sa.Float(), nullable=True),
        sa.Column("oura_sleep_score", sa.Integer(), nullable=True),
        sa.Column("oura_steps", sa.Integer(), nullable=True),
        sa.Column("oura_active_calories", sa.Integer(), nullable=True),
        sa.Column("oura_high_met_minutes", sa.Float(), nullable=True),
        sa.Column("oura_medium_met_minutes", sa.Float(), nullable=True),
        sa.Column("oura_low_met_minutes", sa.Float(), nullable=True),
        sa.Column("whoop_recovery_score", sa.Float(), nullable=True),
        sa.Column("whoop_hrv", sa.Float(), nullable=True),
        sa.Column("whoop_rhr", sa.Float(), nullable=True),
        sa.Column("whoop_strain", sa.Float(), nullable=True),
        sa.Column("whoop_kilojoule", sa.Float(), nullable=True),
        sa.Column("whoop_sleep_performance", sa.Float(), nullable=True),
        sa.Column("combined_readiness", sa.Integer(), nullable=True),
        sa.Column("combined_recovery", sa.Integer(), nullable=True),
        sa.Column("combined_sleep", sa.Integer(), nullable=True),
        sa.Column("combined_hrv", sa.Integer(), nullable=True),
        sa.Column("combined_rhr", sa.Integer(), nullable=True),
        sa.Column("met_minutes", sa.Integer(), nullable=True),
        sa.Column("zone", sa.String(length=20), nullable=False),
        sa.Column("trend", sa.String(length=10), nullable=False, server_default="flat"),
        sa.Column(
            "synced_at",
            sa.DateTime(),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
        *_timestamps(),
    )
    op.create_index("ix_daily_records_date", "daily_records", ["date"], unique=False)

    op.create_table(
        "weekly_records",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("week_number", sa.Integer(), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("days_count", sa.Integer(), nullable=False),
        sa.Column("avg_readiness", sa.Integer(), nullable=True),
        sa.Column("avg_recovery", sa.Integer(), nullable=True),
        sa.Column("avg_sleep", sa.Integer(), nullable=True),
        sa.Column("avg_hrv", sa.Integer(), nullable=True),
        sa.Column("avg_rhr", sa.Integer(), nullable=True),
        sa.Column("avg_steps", sa.Integer(), nullable=True),
        sa.Column("total_strain", sa.Float(), nullable=True),
        sa.Column("total_met_minutes", sa.Integer(), nullable=True),
        sa.Column("zone", sa.String(length=20), nullable=False),
        sa.Column("trend", sa.String(length=10), nullable=False, server_default="flat"),
        sa.Column("row_type", sa.String(length=20), nullable=False, server_default="week"),
        *_timestamps(),
        sa.UniqueConstraint("year", "week_number", name="uq_weekly_records_year_week"),
    )
    op.create_index("ix_weekly_records_start_date", "weekly_records", ["start_date"], unique=False)

    op.create_table(
        "oauth_tokens",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("provider", sa.String(length=20), nullable=False, unique=True),
        sa.Column("access_token", sa.Text(), nullable=False),
        sa.Column("refresh_token", sa.Text(), nullable=True),
        sa.Column("expires_at", sa.DateTime(), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        "sync_logs",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("provider", sa.String(length=20), nullable=False),
        sa.Column("sync_type", sa.String(length=20), nullable=False, server_default="full"),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("records_synced", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="pending"),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
        sa.Column("completed_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_sync_logs_provider", "sync_logs", ["provider"], unique=False)
    op.create_index("ix_sync_logs_provider_status", "sync_logs", ["provider", "status"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_sync_logs_provider_status", table_name="sync_logs")
    op.drop_index("ix_sync_logs_provider", table_name="sync_logs")
    op.drop_table("sync_logs")
    op.drop_table("oauth_tokens")
    op.drop_index("ix_weekly_records_start_date", table_name="weekly_records")
    op.drop_table("weekly_records")
    op.drop_index("ix_daily_records_date", table_name="daily_records")
    op.drop_table("daily_records")
