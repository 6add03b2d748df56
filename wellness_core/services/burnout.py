"""
Burnout risk predictor.

Turns >= 3 weekly snapshots into a bounded [0, 10] risk score, a level, a
trend and an intervention urgency. Pure: no DB, no clock reads (callers
pass `now`).

Score
-----
    base  = (10 - energy_trend) * 0.15          energy level, recent 3 weeks
          + min(energy_std, 3) / 3 * 0.5        energy instability
          + low_energy_weeks / weeks * 1.0
          + stress_level * 0.2                  latest week
          + high_stress_weeks / weeks * 1.0
          + burnout_current * 0.2
          + burnout_peak * 0.05
          + 0.75 if chronic stress
          + 0.5  if recovery needed
          + 0.25 if engagement < 3 readings in the last 4 weeks
    trend = clamp(5 + 2.5 * delta, 0, 10)
    score = clamp(0.8 * base + 0.2 * trend, 0, 10)

`delta` is the mean point risk of the latest k weeks minus the mean of the
k weeks before them, k = min(3, n // 2). Every term is non-decreasing in
the latest week's stress and burnout values.

Insufficient history
--------------------
Fewer than MIN_DATA_POINTS snapshots never silently yields a score. The
caller picks one of three named outcomes via InsufficientDataPolicy.
"""
from __future__ import annotations

import enum
import math
import statistics
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Optional, Sequence, Union

from wellness_core.core.errors import InsufficientDataError
from wellness_core.services.aggregator import WeekSnapshot

MIN_DATA_POINTS = 3
TREND_WINDOW = 3
TREND_TOLERANCE = 0.25
TREND_WEIGHT = 0.2
CHRONIC_WINDOW = 4
CHRONIC_MIN_WEEKS = 3
ENGAGEMENT_WINDOW = 4
LOW_ENGAGEMENT = 3
COMPLETENESS_FULL_WEEKS = 8
WEEKS_UNTIL_BURNOUT_CAP = 12
CRITICAL_SCORE = 8.0

DEFAULT_ENERGY = 5.0
DEFAULT_STRESS = 5.0
DEFAULT_BURNOUT = 0.0


class RiskLevel(str, enum.Enum):
    minimal = "minimal"
    low = "low"
    moderate = "moderate"
    high = "high"
    critical = "critical"


class Trend(str, enum.Enum):
    stable = "stable"
    declining = "declining"
    worsening = "worsening"


class InterventionUrgency(str, enum.Enum):
    monitoring = "monitoring"
    recommended = "recommended"
    urgent = "urgent"
    immediate = "immediate"


class InsufficientDataPolicy(str, enum.Enum):
    report = "report"            # return InsufficientData
    provisional = "provisional"  # return the flagged default assessment
    strict = "strict"            # raise InsufficientDataError


_URGENCY_BY_LEVEL = {
    RiskLevel.critical: InterventionUrgency.immediate,
    RiskLevel.high: InterventionUrgency.urgent,
    RiskLevel.moderate: InterventionUrgency.recommended,
    RiskLevel.low: InterventionUrgency.monitoring,
    RiskLevel.minimal: InterventionUrgency.monitoring,
}

_ACTIONS_BY_LEVEL = {
    RiskLevel.critical: [
        "Take an immediate wellness break",
        "Schedule a supervisor check-in",
        "Access crisis support resources",
    ],
    RiskLevel.high: [
        "Review and adjust workload",
        "Start a daily stress reduction practice",
        "Connect with peer support",
    ],
    RiskLevel.moderate: [
        "Establish a weekly reflection practice",
        "Build resilience skills for challenging assignments",
    ],
    RiskLevel.low: [
        "Continue regular wellness check-ins",
        "Monitor stress patterns",
    ],
    RiskLevel.minimal: [
        "Continue regular wellness check-ins",
    ],
}


# ---------------------------------------------------------------------------
# Result types
# ---------------------------------------------------------------------------

@dataclass
class BurnoutFactors:
    energy_trend: float
    energy_stability: float
    low_energy_frequency: int
    stress_level: float
    high_stress_frequency: int
    burnout_current: float
    burnout_peak: float
    chronic_stress_detected: bool
    recovery_needed: bool
    confidence_level: float
    engagement_days: int
    last_check_in: Optional[str]
    trend_direction: str


@dataclass
class BurnoutRiskAssessment:
    risk_score: float
    risk_level: RiskLevel
    trend: Trend
    weeks_until_burnout: Optional[int]
    intervention_urgency: InterventionUrgency
    recommended_actions: list[str]
    factors: BurnoutFactors
    assessment_date: datetime
    provisional: bool = False

    def to_dict(self) -> dict:
        data = asdict(self)
        data["risk_level"] = self.risk_level.value
        data["trend"] = self.trend.value
        data["intervention_urgency"] = self.intervention_urgency.value
        data["assessment_date"] = self.assessment_date.isoformat()
        return data


@dataclass
class InsufficientData:
    """Not enough history yet. A calm, expected state, not an error."""
    data_points: int
    required: int = MIN_DATA_POINTS
    message: str = "Keep checking in: a risk assessment needs at least three weeks of history."


@dataclass
class RiskTrendPoint:
    week_start: str
    risk_score: float
    risk_level: RiskLevel


RiskOutcome = Union[BurnoutRiskAssessment, InsufficientData]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def _round1(value: float) -> float:
    return math.floor(value * 10 + 0.5) / 10


def _mean(values: Sequence[float], default: float) -> float:
    return statistics.fmean(values) if values else default


def risk_level_for(score: float) -> RiskLevel:
    if score >= 8:
        return RiskLevel.critical
    if score >= 6:
        return RiskLevel.high
    if score >= 4:
        return RiskLevel.moderate
    if score >= 2:
        return RiskLevel.low
    return RiskLevel.minimal


def urgency_for(level: RiskLevel) -> InterventionUrgency:
    return _URGENCY_BY_LEVEL[level]


def point_risk(week: WeekSnapshot) -> float:
    """Single-week risk used for the trend series and the history chart."""
    energy = week.energy_level if week.energy_level is not None else DEFAULT_ENERGY
    stress = week.stress_level if week.stress_level is not None else DEFAULT_STRESS
    burnout = week.burnout_score if week.burnout_score is not None else DEFAULT_BURNOUT
    raw = (
        (10 - energy) * 0.3
        + stress * 0.3
        + burnout * 0.2
        + (2 if week.high_stress else 0)
        + (2 if week.low_energy else 0)
    )
    return min(10.0, raw)


def trend_delta(points: Sequence[float]) -> tuple[float, int]:
    """(mean of the latest k points - mean of the k before, k)."""
    k = min(TREND_WINDOW, len(points) // 2)
    if k == 0:
        return 0.0, 0
    recent = points[-k:]
    prior = points[-2 * k:-k]
    return statistics.fmean(recent) - statistics.fmean(prior), k


def trend_for(delta: float) -> Trend:
    if delta > TREND_TOLERANCE:
        return Trend.worsening
    if delta < -TREND_TOLERANCE:
        return Trend.declining
    return Trend.stable


def _completeness(history: Sequence[WeekSnapshot]) -> float:
    coverage = min(1.0, len(history) / COMPLETENESS_FULL_WEEKS)
    fields = [
        v
        for w in history
        for v in (w.stress_level, w.energy_level, w.confidence_score, w.burnout_score)
    ]
    filled = sum(1 for v in fields if v is not None) / len(fields) if fields else 0.0
    return round(coverage * filled, 2)


def compute_factors(history: Sequence[WeekSnapshot], trend: Trend) -> BurnoutFactors:
    latest = history[-1]
    energies = [w.energy_level for w in history if w.energy_level is not None]
    recent_energies = [w.energy_level for w in history[-TREND_WINDOW:] if w.energy_level is not None]
    burnouts = [w.burnout_score for w in history if w.burnout_score is not None]
    chronic_window = history[-CHRONIC_WINDOW:]

    return BurnoutFactors(
        energy_trend=round(_mean(recent_energies, DEFAULT_ENERGY), 2),
        energy_stability=round(statistics.pstdev(energies), 2) if len(energies) > 1 else 0.0,
        low_energy_frequency=sum(1 for w in history if w.low_energy),
        stress_level=latest.stress_level if latest.stress_level is not None else DEFAULT_STRESS,
        high_stress_frequency=sum(1 for w in history if w.high_stress),
        burnout_current=(
            latest.burnout_score if latest.burnout_score is not None else DEFAULT_BURNOUT
        ),
        burnout_peak=max(burnouts) if burnouts else DEFAULT_BURNOUT,
        chronic_stress_detected=sum(1 for w in chronic_window if w.high_stress) >= CHRONIC_MIN_WEEKS,
        recovery_needed=latest.low_energy,
        confidence_level=_completeness(history),
        engagement_days=sum(w.reading_count for w in history[-ENGAGEMENT_WINDOW:]),
        last_check_in=(
            latest.updated_at.isoformat() if latest.updated_at else latest.week_start.isoformat()
        ),
        trend_direction=trend.value,
    )


def base_score(factors: BurnoutFactors, weeks: int) -> float:
    return (
        (10 - factors.energy_trend) * 0.15
        + min(factors.energy_stability, 3.0) / 3.0 * 0.5
        + factors.low_energy_frequency / weeks * 1.0
        + factors.stress_level * 0.2
        + factors.high_stress_frequency / weeks * 1.0
        + factors.burnout_current * 0.2
        + factors.burnout_peak * 0.05
        + (0.75 if factors.chronic_stress_detected else 0.0)
        + (0.5 if factors.recovery_needed else 0.0)
        + (0.25 if factors.engagement_days < LOW_ENGAGEMENT else 0.0)
    )


def _weeks_until_burnout(score: float, trend: Trend, delta: float, k: int) -> Optional[int]:
    if score >= CRITICAL_SCORE:
        return 0
    if trend is not Trend.worsening or k == 0:
        return None
    per_week = max(delta / k, TREND_TOLERANCE)
    return min(WEEKS_UNTIL_BURNOUT_CAP, math.ceil((CRITICAL_SCORE - score) / per_week))


# ---------------------------------------------------------------------------
# Public
# ---------------------------------------------------------------------------

def predict(history: Sequence[WeekSnapshot], now: datetime) -> BurnoutRiskAssessment:
    """
    Assess burnout risk from weekly snapshots (oldest -> newest).
    Raises InsufficientDataError with fewer than MIN_DATA_POINTS weeks.
    """
    if len(history) < MIN_DATA_POINTS:
        raise InsufficientDataError(data_points=len(history), required=MIN_DATA_POINTS)

    history = sorted(history, key=lambda w: w.week_start)
    delta, k = trend_delta([point_risk(w) for w in history])
    trend = trend_for(delta)
    factors = compute_factors(history, trend)

    trend_component = _clamp(5 + 2.5 * delta, 0.0, 10.0)
    raw = (1 - TREND_WEIGHT) * base_score(factors, len(history)) + TREND_WEIGHT * trend_component
    score = _round1(_clamp(raw, 0.0, 10.0))
    level = risk_level_for(score)

    return BurnoutRiskAssessment(
        risk_score=score,
        risk_level=level,
        trend=trend,
        weeks_until_burnout=_weeks_until_burnout(score, trend, delta, k),
        intervention_urgency=urgency_for(level),
        recommended_actions=list(_ACTIONS_BY_LEVEL[level]),
        factors=factors,
        assessment_date=now,
    )


def provisional_assessment(data_points: int, now: datetime) -> BurnoutRiskAssessment:
    """
    Placeholder assessment for callers that explicitly want something to
    render before enough history exists. Always flagged `provisional=True`.
    """
    return BurnoutRiskAssessment(
        risk_score=3.5,
        risk_level=RiskLevel.moderate,
        trend=Trend.stable,
        weeks_until_burnout=None,
        intervention_urgency=InterventionUrgency.monitoring,
        recommended_actions=[
            "Continue regular wellness check-ins",
            "Monitor stress patterns",
            "Maintain work-life balance",
        ],
        factors=BurnoutFactors(
            energy_trend=DEFAULT_ENERGY,
            energy_stability=0.0,
            low_energy_frequency=0,
            stress_level=DEFAULT_STRESS,
            high_stress_frequency=0,
            burnout_current=DEFAULT_BURNOUT,
            burnout_peak=DEFAULT_BURNOUT,
            chronic_stress_detected=False,
            recovery_needed=False,
            confidence_level=0.0,
            engagement_days=data_points,
            last_check_in=None,
            trend_direction=Trend.stable.value,
        ),
        assessment_date=now,
        provisional=True,
    )


def assess(
    history: Sequence[WeekSnapshot],
    now: datetime,
    policy: InsufficientDataPolicy = InsufficientDataPolicy.report,
) -> RiskOutcome:
    """predict() with the caller's chosen handling of short histories."""
    if len(history) >= MIN_DATA_POINTS:
        return predict(history, now)
    if policy is InsufficientDataPolicy.strict:
        raise InsufficientDataError(data_points=len(history), required=MIN_DATA_POINTS)
    if policy is InsufficientDataPolicy.provisional:
        return provisional_assessment(len(history), now)
    return InsufficientData(data_points=len(history))


def risk_trend(history: Sequence[WeekSnapshot]) -> list[RiskTrendPoint]:
    """Per-week point risk, for charting. Works with any amount of history."""
    points = []
    for week in sorted(history, key=lambda w: w.week_start):
        score = _round1(point_risk(week))
        points.append(RiskTrendPoint(
            week_start=week.week_start.isoformat(),
            risk_score=score,
            risk_level=risk_level_for(score),
        ))
    return points


# ---------------------------------------------------------------------------
# Team roll-up
# ---------------------------------------------------------------------------

REPLACEMENT_COST = 15_000.0
_COST_WEIGHTS = {RiskLevel.critical: 0.5, RiskLevel.high: 0.25, RiskLevel.moderate: 0.05}


@dataclass
class TeamRollup:
    """Per-member results aggregated upstream; members are never re-scored here."""
    team_size: int
    risk_distribution: dict[str, int] = field(default_factory=dict)
    average_risk_score: float = 0.0
    trend_counts: dict[str, int] = field(default_factory=dict)


@dataclass
class TeamBurnoutAssessment:
    org_id: str
    assessment_date: datetime
    team_size: int
    risk_distribution: dict[str, int]
    average_risk_score: float
    trend_analysis: dict[str, int]
    urgent_interventions_needed: int
    predicted_turnover_risk: float
    estimated_cost_impact: float
    recommended_org_actions: list[str]


def rollup_members(assessments: Sequence[BurnoutRiskAssessment]) -> TeamRollup:
    distribution = {level.value: 0 for level in RiskLevel}
    trends = {trend.value: 0 for trend in Trend}
    for a in assessments:
        distribution[a.risk_level.value] += 1
        trends[a.trend.value] += 1
    average = statistics.fmean(a.risk_score for a in assessments) if assessments else 0.0
    return TeamRollup(
        team_size=len(assessments),
        risk_distribution=distribution,
        average_risk_score=round(average, 2),
        trend_counts=trends,
    )


def assess_team(org_id: str, rollup: TeamRollup, now: datetime) -> TeamBurnoutAssessment:
    distribution = {level.value: int(rollup.risk_distribution.get(level.value, 0)) for level in RiskLevel}
    trends = {trend.value: int(rollup.trend_counts.get(trend.value, 0)) for trend in Trend}
    critical = distribution[RiskLevel.critical.value]
    high = distribution[RiskLevel.high.value]
    size = max(rollup.team_size, 0)

    turnover = (critical + 0.5 * high) / size if size else 0.0
    cost = sum(
        distribution[level.value] * weight * REPLACEMENT_COST
        for level, weight in _COST_WEIGHTS.items()
    )

    actions: list[str] = []
    if critical:
        actions.append("Arrange immediate one-on-one support for critical-risk team members")
    if size and (critical + high) / size >= 0.25:
        actions.append("Rebalance assignment load across the team")
        actions.append("Schedule a team-wide debrief and recovery day")
    if size and trends[Trend.worsening.value] / size >= 0.3:
        actions.append("Review recent scheduling changes driving the worsening trend")
    if rollup.average_risk_score >= 4:
        actions.append("Offer resilience training for the whole team")
    if not actions:
        actions.append("Maintain current wellness programs and monitoring")

    return TeamBurnoutAssessment(
        org_id=org_id,
        assessment_date=now,
        team_size=size,
        risk_distribution=distribution,
        average_risk_score=round(rollup.average_risk_score, 2),
        trend_analysis=trends,
        urgent_interventions_needed=critical + high,
        predicted_turnover_risk=round(min(1.0, turnover), 2),
        estimated_cost_impact=round(cost, 2),
        recommended_org_actions=actions,
    )
