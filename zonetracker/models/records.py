"""Value objects shared by the aggregation pipeline.

Provider records only carry the fields the normalizer reads; everything
else in the provider payload is dropped by the adapters.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any


class Trend(str, Enum):
    """Direction of the week-over-week recovery change."""

    UP = "up"
    FLAT = "flat"
    DOWN = "down"

    @property
    def arrow(self) -> str:
        return {"up": "↑", "flat": "→", "down": "↓"}[self.value]


class Zone(str, Enum):
    """Load zones, most severe first."""

    J_CURVE_RISK = "J_CURVE_RISK"
    CRITICAL = "CRITICAL"
    HIGH_LOAD = "HIGH_LOAD"
    SLIGHTLY_HIGH = "SLIGHTLY_HIGH"
    GOLDEN_ANCHOR = "GOLDEN_ANCHOR"
    OPTIMAL = "OPTIMAL"
    RECOVERY_STATE = "RECOVERY_STATE"

    @property
    def label(self) -> str:
        return _ZONE_LABELS[self]

    @property
    def severity(self) -> int:
        """Higher is more severe; golden anchor and optimal share a rank."""
        return _ZONE_SEVERITY[self]


_ZONE_LABELS = {
    Zone.J_CURVE_RISK: "J-curve Risk",
    Zone.CRITICAL: "Critical",
    Zone.HIGH_LOAD: "High Load",
    Zone.SLIGHTLY_HIGH: "Slightly High",
    Zone.GOLDEN_ANCHOR: "Golden Anchor",
    Zone.OPTIMAL: "Optimal",
    Zone.RECOVERY_STATE: "Recovery State",
}

_ZONE_SEVERITY = {
    Zone.J_CURVE_RISK: 5,
    Zone.CRITICAL: 4,
    Zone.HIGH_LOAD: 3,
    Zone.SLIGHTLY_HIGH: 2,
    Zone.GOLDEN_ANCHOR: 1,
    Zone.OPTIMAL: 1,
    Zone.RECOVERY_STATE: 0,
}


class RowType(str, Enum):
    """Display kind of an aggregated row."""

    WEEK = "week"
    WEEK_CUMULATIVE = "week_cumulative"
    DAY = "day"


# Ring (Oura) records
@dataclass(frozen=True)
class RingReadiness:
    day: str
    score: int | None = None
    hrv_balance: float | None = None
    resting_heart_rate: float | None = None


@dataclass(frozen=True)
class RingSleep:
    day: str
    score: int | None = None


@dataclass(frozen=True)
class RingSleepPeriod:
    """Detailed sleep period; reports HRV in milliseconds."""

    day: str
    average_hrv: float | None = None
    lowest_heart_rate: float | None = None


@dataclass(frozen=True)
class RingActivity:
    day: str
    steps: int | None = None
    high_met_minutes: float | None = None
    medium_met_minutes: float | None = None
    low_met_minutes: float | None = None
    active_calories: int | None = None


# Band (WHOOP) records
@dataclass(frozen=True)
class BandRecovery:
    cycle_id: int | None
    created_at: str | None = None
    recovery_score: float | None = None
    hrv_rmssd_milli: float | None = None
    resting_heart_rate: float | None = None
    score_state: str | None = None


@dataclass(frozen=True)
class BandCycle:
    id: int | None
    start: str
    strain: float | None = None
    kilojoule: float | None = None
    score_state: str | None = None


@dataclass(frozen=True)
class BandSleep:
    id: int | str | None
    start: str
    sleep_performance_percentage: float | None = None
    nap: bool = False


@dataclass(frozen=True)
class RingDataset:
    readiness: list[RingReadiness] = field(default_factory=list)
    sleep: list[RingSleep] = field(default_factory=list)
    activity: list[RingActivity] = field(default_factory=list)
    sleep_periods: list[RingSleepPeriod] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not (self.readiness or self.sleep or self.activity or self.sleep_periods)


@dataclass(frozen=True)
class BandDataset:
    recovery: list[BandRecovery] = field(default_factory=list)
    cycles: list[BandCycle] = field(default_factory=list)
    sleep: list[BandSleep] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not (self.recovery or self.cycles or self.sleep)


@dataclass(frozen=True)
class DailyRecord:
    """Canonical merged view of one calendar day."""

    date: date
    zone: Zone
    readiness_score: int | None = None
    recovery_score: int | None = None
    sleep_score: int | None = None
    hrv: int | None = None
    rhr: int | None = None
    strain: float | None = None
    steps: int | None = None
    kilojoule: float | None = None
    met_minutes: int | None = None
    trend: Trend = Trend.FLAT

    @property
    def is_empty(self) -> bool:
        return all(
            value is None
            for value in (
                self.readiness_score,
                self.recovery_score,
                self.sleep_score,
                self.hrv,
                self.rhr,
                self.strain,
                self.steps,
                self.met_minutes,
            )
        )


@dataclass(frozen=True)
class WeeklyRecord:
    """Rollup of the days sharing one calendar week."""

    year: int
    week_number: int
    start_date: date
    end_date: date
    days: tuple[DailyRecord, ...]
    zone: Zone
    avg_readiness: int | None = None
    avg_recovery: int | None = None
    avg_sleep: int | None = None
    avg_hrv: int | None = None
    avg_rhr: int | None = None
    avg_steps: int | None = None
    total_strain: float | None = None
    total_met_minutes: int | None = None
    trend: Trend = Trend.FLAT

    @property
    def day_count(self) -> int:
        return len(self.days)

    @property
    def is_complete(self) -> bool:
        return self.day_count >= 7

    @property
    def label(self) -> str:
        return f"Week {self.week_number}"


@dataclass(frozen=True)
class HealthRow:
    """One display row: a week summary or a single day inside an open week."""

    week: str
    date_range: str
    start_date: date
    end_date: date
    days_count: int
    row_type: RowType
    zone: str
    avg_readiness: int | None = None
    avg_recovery: int | None = None
    avg_sleep: int | None = None
    avg_hrv: int | None = None
    avg_steps: int | None = None
    total_strain: float | None = None
    total_met_minutes: int | None = None
    cumulative_met_minutes: int | None = None
    trend: Trend = Trend.FLAT

    @property
    def is_week_level(self) -> bool:
        return self.row_type in (RowType.WEEK, RowType.WEEK_CUMULATIVE)

    def to_dict(self) -> dict[str, Any]:
        return {
            "week": self.week,
            "date_range": self.date_range,
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat(),
            "days_count": self.days_count,
            "avg_readiness": self.avg_readiness,
            "avg_recovery": self.avg_recovery,
            "avg_sleep": self.avg_sleep,
            "avg_hrv": self.avg_hrv,
            "avg_steps": self.avg_steps,
            "total_strain": self.total_strain,
            "total_met_minutes": self.total_met_minutes,
            "cumulative_met_minutes": self.cumulative_met_minutes,
            "zone": self.zone,
            "trend": self.trend.value,
            "row_type": self.row_type.value,
        }

