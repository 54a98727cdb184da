"""Pydantic models describing API payloads."""
from datetime import date
from pydantic import BaseModel, Field


class HealthRowSchema(BaseModel):
    """One row of the weekly table (week summary or day detail)."""

    week: str
    date_range: str
    start_date: date
    end_date: date
    days_count: int
    avg_readiness: int | None = None
    avg_recovery: int | None = None
    avg_sleep: int | None = None
    avg_hrv: int | None = None
    avg_steps: int | None = None
    total_strain: float | None = None
    total_met_minutes: int | None = None
    cumulative_met_minutes: int | None = None
    zone: str
    trend: str = Field(description="up, flat or down")
    row_type: str = Field(description="week, week_cumulative or day")


class HealthSummarySchema(BaseModel):
    """Headline statistics above the table."""

    avg_weekly_met_minutes: int | None = None
    avg_readiness: int | None = None
    avg_recovery: int | None = None
    avg_sleep: int | None = None
    avg_hrv: int | None = None
    avg_steps: int | None = None


class DataSources(BaseModel):
    oura: bool = False
    whoop: bool = False
    cached: bool = False


class HealthResponse(BaseModel):
    """Schema for the weekly health table API response."""

    success: bool = True
    data: list[HealthRowSchema] = []
    summary: HealthSummarySchema
    sources: DataSources
    message: str | None = None


class TokenExchangeRequest(BaseModel):
    code: str = Field(min_length=1)
    redirect_uri: str | None = None


class TokenExchangeResponse(BaseModel):
    access_token: str
    refresh_token: str | None = None
    expires_in: int | None = None


class SyncRequest(BaseModel):
    """Body of POST /api/sync; either weeks or days may be given."""

    weeks: int | None = Field(default=None, ge=1, le=104)
    days: int | None = Field(default=None, ge=1, le=730)

    def resolve_days(self, default_days: int) -> int:
        if self.days is not None:
            return self.days
        if self.weeks is not None:
            return self.weeks * 7
        return default_days


class SyncResponse(BaseModel):
    success: bool = True
    start_date: date
    end_date: date
    days_synced: int
    weeks_synced: int
    sources: dict[str, bool]
    errors: dict[str, str] = {}


class TokenRefreshResponse(BaseModel):
    success: bool = True
    refreshed_at: str
    results: dict[str, str]
