"""Load-zone classification from MET-minutes, strain and recovery.

Thresholds are daily-scale values derived from weekly MET-minute targets
divided by seven:

    J-curve risk    weekly > 1500   daily > 214
    Critical        weekly > 1400   daily > 200
    High load       weekly > 1300   daily > 186
    Slightly high   weekly > 1200   daily > 171
    Optimal         weekly 900-1200 daily 129-171
    Golden anchor   weekly 1000-1100 daily 143-157

MET-minutes always win over strain; strain is only consulted when no
MET-minute figure exists for the period.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, fields, replace
from functools import lru_cache
from pathlib import Path

import yaml

from zonetracker.models.records import Zone
from zonetracker.services.numeric import round_half_up


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ZoneThresholds:
    """Every tunable number used by the normalizer and the classifier."""

    met_j_risk: float = 214
    met_critical: float = 200
    met_high_load: float = 186
    met_slightly_high: float = 171
    met_optimal_min: float = 129
    met_optimal_max: float = 171
    met_golden_min: float = 143
    met_golden_max: float = 157

    strain_j_risk: float = 18
    strain_critical: float = 16
    strain_high_load: float = 14
    strain_slightly_high: float = 12
    strain_optimal_min: float = 6
    strain_optimal_max: float = 14
    strain_golden_min: float = 8
    strain_golden_max: float = 12

    recovery_good: float = 67
    recovery_low: float = 34

    # 72 kg reference body: 72 kg x 24 h x 1 kcal/kg/h = 1728 kcal = 7230 kJ
    basal_kj: float = 7230
    conversion_factor: float = 5
    include_light_activity: bool = False

    @classmethod
    def weekly_targets(cls) -> "ZoneThresholds":
        """MET-minute table expressed at weekly scale."""
        return cls(
            met_j_risk=1500,
            met_critical=1400,
            met_high_load=1300,
            met_slightly_high=1200,
            met_optimal_min=900,
            met_optimal_max=1200,
            met_golden_min=1000,
            met_golden_max=1100,
        )

    @classmethod
    def from_weekly(
        cls,
        j_risk: float,
        critical: float,
        high_load: float,
        slightly_high: float,
        optimal: tuple[float, float],
        golden: tuple[float, float],
        **overrides,
    ) -> "ZoneThresholds":
        """Build a daily table from weekly MET-minute targets."""

        def daily(value: float) -> int:
            return round_half_up(value / 7)

        return cls(
            met_j_risk=daily(j_risk),
            met_critical=daily(critical),
            met_high_load=daily(high_load),
            met_slightly_high=daily(slightly_high),
            met_optimal_min=daily(optimal[0]),
            met_optimal_max=daily(optimal[1]),
            met_golden_min=daily(golden[0]),
            met_golden_max=daily(golden[1]),
            **overrides,
        )

    def with_overrides(self, **overrides) -> "ZoneThresholds":
        known = {f.name for f in fields(self)}
        unknown = sorted(set(overrides) - known)
        if unknown:
            raise ValueError(f"Unknown zone threshold(s): {', '.join(unknown)}")
        return replace(self, **overrides)


DEFAULT_THRESHOLDS = ZoneThresholds()


def load_thresholds(path: Path | str) -> ZoneThresholds:
    """Read threshold overrides from a YAML mapping on top of the defaults."""

    with Path(path).open("r", encoding="utf-8") as fh:
        data = yaml.safe_load(fh) or {}

    if not isinstance(data, dict):
        raise ValueError(f"Zone threshold file {path} must contain a mapping")

    # Allow the file to nest everything under a single top-level key.
    if set(data) == {"zone_thresholds"}:
        data = data["zone_thresholds"] or {}

    thresholds = DEFAULT_THRESHOLDS.with_overrides(**data)
    logger.info("Loaded %d zone threshold override(s) from %s", len(data), path)
    return thresholds


@lru_cache()
def get_thresholds() -> ZoneThresholds:
    """Return the thresholds configured for this process."""

    from zonetracker.config import get_settings

    path = get_settings().zone_config_path
    if path is None:
        return DEFAULT_THRESHOLDS
    return load_thresholds(path)


def _classify_load(
    load: float,
    recovery: float | None,
    *,
    j_risk: float,
    critical: float,
    high_load: float,
    slightly_high: float,
    optimal: tuple[float, float],
    golden: tuple[float, float],
    recovery_good: float,
    recovery_low: float,
) -> Zone:
    if load > j_risk:
        return Zone.J_CURVE_RISK
    if load > critical:
        return Zone.CRITICAL
    if load > high_load:
        return Zone.HIGH_LOAD
    if load > slightly_high:
        return Zone.SLIGHTLY_HIGH

    optimal_min, optimal_max = optimal
    golden_min, golden_max = golden
    if recovery is not None:
        if recovery >= recovery_good and golden_min <= load <= golden_max:
            return Zone.GOLDEN_ANCHOR
        if recovery >= recovery_good and optimal_min <= load <= optimal_max:
            return Zone.OPTIMAL
        if recovery < recovery_low:
            return Zone.RECOVERY_STATE

    if optimal_min <= load <= optimal_max:
        return Zone.OPTIMAL
    return Zone.RECOVERY_STATE


def classify(
    met_minutes: float | None,
    recovery: float | None,
    strain: float | None,
    thresholds: ZoneThresholds = DEFAULT_THRESHOLDS,
) -> Zone:
    """
    Classify a period's load into a zone.

    Args:
        met_minutes: MET-minutes for the period (per day), or None
        recovery: Recovery score 0-100, or None
        strain: Band strain for the period (per day), or None
        thresholds: Threshold table to classify against

    Returns:
        Zone: severity bands are checked before any recovery-conditioned band
    """
    t = thresholds
    recovery_cutoffs = {"recovery_good": t.recovery_good, "recovery_low": t.recovery_low}

    if met_minutes is not None:
        return _classify_load(
            met_minutes,
            recovery,
            j_risk=t.met_j_risk,
            critical=t.met_critical,
            high_load=t.met_high_load,
            slightly_high=t.met_slightly_high,
            optimal=(t.met_optimal_min, t.met_optimal_max),
            golden=(t.met_golden_min, t.met_golden_max),
            **recovery_cutoffs,
        )

    if strain is not None:
        return _classify_load(
            strain,
            recovery,
            j_risk=t.strain_j_risk,
            critical=t.strain_critical,
            high_load=t.strain_high_load,
            slightly_high=t.strain_slightly_high,
            optimal=(t.strain_optimal_min, t.strain_optimal_max),
            golden=(t.strain_golden_min, t.strain_golden_max),
            **recovery_cutoffs,
        )

    return Zone.RECOVERY_STATE
