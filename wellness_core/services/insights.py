"""
Aggregated wellness insights over a time range: averages, detected pattern
codes and recommendation codes. Reads weekly buckets and pattern insights
only; never touches individual reflections.
"""
from __future__ import annotations

import statistics
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Optional

from sqlalchemy.orm import Session

from wellness_core.core.errors import ValidationError
from wellness_core.services.aggregator import get_history, week_start_for
from wellness_core.services.patterns import get_pattern_codes

TIME_RANGE_DAYS = {"week": 7, "month": 30, "quarter": 90}

STRESS_MANAGEMENT_THRESHOLD = 7.0
ENERGY_RESTORATION_THRESHOLD = 4.0


@dataclass
class InsightMetrics:
    average_stress: Optional[float] = None
    average_energy: Optional[float] = None
    weeks: int = 0


@dataclass
class WellnessInsights:
    has_data: bool
    time_range: str
    metrics: InsightMetrics = field(default_factory=InsightMetrics)
    pattern_codes: list[str] = field(default_factory=list)
    recommendation_codes: list[str] = field(default_factory=list)


def range_start(time_range: str, now: datetime) -> date:
    """First day of the range, widened to the Monday of its week."""
    days = TIME_RANGE_DAYS.get(time_range)
    if days is None:
        raise ValidationError("time_range", f"must be one of {list(TIME_RANGE_DAYS)}", time_range)
    return week_start_for((now - timedelta(days=days)).date())


def _average(values: list[float]) -> Optional[float]:
    return round(statistics.fmean(values), 1) if values else None


def recommendation_codes(
    average_stress: Optional[float],
    average_energy: Optional[float],
    pattern_codes: list[str],
) -> list[str]:
    codes = []
    if average_stress is not None and average_stress > STRESS_MANAGEMENT_THRESHOLD:
        codes.append("STRESS_MANAGEMENT_NEEDED")
    if average_energy is not None and average_energy < ENERGY_RESTORATION_THRESHOLD:
        codes.append("ENERGY_RESTORATION_NEEDED")
    if "BURNOUT_RISK" in pattern_codes:
        codes.append("BURNOUT_PREVENTION_URGENT")
    return codes


def get_wellness_insights(
    db: Session,
    identity_hash: str,
    time_range: str,
    now: datetime,
) -> WellnessInsights:
    since = range_start(time_range, now)
    history = get_history(db, identity_hash, since=since)
    if not history:
        return WellnessInsights(has_data=False, time_range=time_range)

    # missing fields are skipped, not counted as zero
    average_stress = _average([w.stress_level for w in history if w.stress_level is not None])
    average_energy = _average([w.energy_level for w in history if w.energy_level is not None])
    codes = get_pattern_codes(db, identity_hash, since=since)

    return WellnessInsights(
        has_data=True,
        time_range=time_range,
        metrics=InsightMetrics(
            average_stress=average_stress,
            average_energy=average_energy,
            weeks=len(history),
        ),
        pattern_codes=codes,
        recommendation_codes=recommendation_codes(average_stress, average_energy, codes),
    )
