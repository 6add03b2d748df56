"""
Emotional labor quantifier.

Scores one interpreting session on Hochschild's emotional labor components
and turns the result into a compensation-multiplier recommendation.

Public API
----------
assess(session)                                        -> EmotionalLaborAssessment   (pure)
compensate(base_rate, assessment, context, trauma)     -> EmotionalLaborCompensation (pure)
record_entry(db, identity_hash, session_hash, ...)     -> EmotionalLaborEntry        (flush only)
get_entries(db, identity_hash, since)                  -> list[EmotionalLaborEntry]
summarize_entries(entries)                             -> EmotionalLaborAnalytics    (pure)

Inputs feeding a compensation figure are validated, not clamped: a value
outside its range raises ValidationError.
"""
from __future__ import annotations

import logging
import statistics
from collections import Counter
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Iterable, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from wellness_core.core.errors import StorageError, ValidationError
from wellness_core.models.emotional_labor import EmotionalLaborEntry
from wellness_core.models.reflection import ContextType
from wellness_core.schemas.submission import is_finite_number
from wellness_core.services.identity import hash_prefix

logger = logging.getLogger(__name__)

CLIENT_STATES = frozenset({"calm", "distressed", "angry", "grief", "panic", "mixed"})

MULTIPLIER_MIN = 1.0
MULTIPLIER_MAX = 3.0
EMOTIONAL_LABOR_HOURS_PER_WEEK = 20
WEEKS_PER_YEAR = 52
URGENT_BURNOUT_RISK = 0.7


@dataclass(frozen=True)
class Benchmark:
    base_multiplier: float
    high_stakes_bonus: float
    trauma_exposure_bonus: float


BENCHMARKS: dict[ContextType, Benchmark] = {
    ContextType.medical: Benchmark(1.8, 0.4, 0.6),
    ContextType.mental_health: Benchmark(2.2, 0.5, 0.8),
    ContextType.legal: Benchmark(1.5, 0.6, 0.3),
    ContextType.educational: Benchmark(1.2, 0.2, 0.1),
    ContextType.community: Benchmark(1.3, 0.3, 0.4),
    ContextType.general: Benchmark(1.0, 0.1, 0.1),
}

# How often emotional labor is required in each context, 0-10.
FREQUENCY_BY_CONTEXT: dict[ContextType, float] = {
    ContextType.mental_health: 9,
    ContextType.medical: 8,
    ContextType.legal: 6,
    ContextType.community: 5,
    ContextType.educational: 4,
    ContextType.general: 2,
}

# Display rules that cost more than the flat per-rule weight.
RULE_BONUSES = {"hide_shock": 3, "show_empathy": 2}


# ---------------------------------------------------------------------------
# Input / result types
# ---------------------------------------------------------------------------

def _unit_score(name: str, value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(name, "must be a number", value)
    if not is_finite_number(value) or not 0 <= value <= 10:
        raise ValidationError(name, "must be a finite number in [0, 10]", value)
    return float(value)


def _context(value: Any) -> ContextType:
    try:
        return ContextType(value)
    except ValueError:
        raise ValidationError("context", f"unknown context '{value}'") from None


@dataclass(frozen=True)
class SessionRecord:
    context: ContextType
    duration_minutes: float
    emotional_intensity: float
    trauma_exposure: bool
    client_emotional_state: str
    display_rules: tuple[str, ...]
    internal_state: float
    displayed_state: float
    control_over_expression: float
    consequence_severity: float

    @classmethod
    def create(
        cls,
        context: Any,
        duration_minutes: Any,
        emotional_intensity: Any,
        trauma_exposure: Any,
        client_emotional_state: Any,
        display_rules: Iterable[Any],
        internal_state: Any,
        displayed_state: Any,
        control_over_expression: Any,
        consequence_severity: Any,
    ) -> "SessionRecord":
        """Validate raw session parameters. Raises ValidationError."""
        if isinstance(duration_minutes, bool) or not isinstance(duration_minutes, (int, float)):
            raise ValidationError("duration_minutes", "must be a number", duration_minutes)
        if not is_finite_number(duration_minutes) or duration_minutes < 0:
            raise ValidationError("duration_minutes", "must be a finite number >= 0", duration_minutes)
        if not isinstance(trauma_exposure, bool):
            raise ValidationError("trauma_exposure", "must be a boolean", trauma_exposure)
        if client_emotional_state not in CLIENT_STATES:
            raise ValidationError(
                "client_emotional_state",
                f"must be one of {sorted(CLIENT_STATES)}",
                client_emotional_state,
            )
        rules = tuple(display_rules)
        if not all(isinstance(r, str) for r in rules):
            raise ValidationError("display_rules", "must be a list of rule names")

        return cls(
            context=_context(context),
            duration_minutes=float(duration_minutes),
            emotional_intensity=_unit_score("emotional_intensity", emotional_intensity),
            trauma_exposure=trauma_exposure,
            client_emotional_state=client_emotional_state,
            display_rules=rules,
            internal_state=_unit_score("internal_state", internal_state),
            displayed_state=_unit_score("displayed_state", displayed_state),
            control_over_expression=_unit_score("control_over_expression", control_over_expression),
            consequence_severity=_unit_score("consequence_severity", consequence_severity),
        )


@dataclass
class EmotionalLaborAssessment:
    surface_acting_score: float
    deep_acting_score: float
    emotional_dissonance: float
    emotional_suppression: float
    emotional_amplification: float
    display_rule_complexity: float
    frequency_of_emotional_labor: float
    duration_of_emotional_labor: float
    intensity_required: float
    autonomy_over_expression: float
    consequences_of_failure: float

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "EmotionalLaborAssessment":
        return cls(**{k: data[k] for k in cls.__dataclass_fields__})


@dataclass
class CompensationJustification:
    surface_acting_cost: float
    deep_acting_cost: float
    dissonance_penalty: float
    complexity_premium: float
    risk_adjustment: float


@dataclass
class EmotionalLaborCompensation:
    base_rate: float
    multiplier: float
    hazard_pay: float
    total_rate: float
    justification: CompensationJustification
    annual_impact_estimate: float
    burnout_risk_factor: float
    recommended_interventions: list[str]
    urgent: bool = False

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class BenchmarkComparison:
    context: str
    user_average: float
    industry_benchmark: float
    differential: float


@dataclass
class EmotionalLaborAnalytics:
    entry_count: int
    average_multiplier: float
    total_extra_compensation: float
    burnout_risk_trend: list[float] = field(default_factory=list)
    highest_labor_contexts: list[str] = field(default_factory=list)
    recommendations: list[str] = field(default_factory=list)
    comparison_to_benchmark: list[BenchmarkComparison] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Scoring (pure)
# ---------------------------------------------------------------------------

def _cap(value: float) -> float:
    return min(10.0, value)


def _money(value: float) -> float:
    return round(value, 2)


def surface_acting(session: SessionRecord) -> float:
    """Faking unfelt emotions."""
    gap = abs(session.internal_state - session.displayed_state)
    rule_multiplier = 3 if "hide_shock" in session.display_rules else 1
    return _cap(gap * rule_multiplier * 0.8)


def deep_acting(session: SessionRecord) -> float:
    """Actually reshaping one's feelings to match the role."""
    empathy_bonus = 3 if "show_empathy" in session.display_rules else 0
    return _cap((empathy_bonus + session.emotional_intensity / 10) * 2)


def suppression(session: SessionRecord) -> float:
    return _cap(max(0.0, session.internal_state - session.displayed_state) * 1.2)


def amplification(session: SessionRecord) -> float:
    return _cap(max(0.0, session.displayed_state - session.internal_state) * 1.2)


def display_rule_complexity(rules: Sequence[str]) -> float:
    bonus = sum(b for rule, b in RULE_BONUSES.items() if rule in rules)
    return _cap(2 * len(rules) + bonus)


def assess(session: SessionRecord) -> EmotionalLaborAssessment:
    dissonance = abs(session.internal_state - session.displayed_state) / 10
    return EmotionalLaborAssessment(
        surface_acting_score=surface_acting(session),
        deep_acting_score=deep_acting(session),
        emotional_dissonance=_cap(dissonance * 10),
        emotional_suppression=suppression(session),
        emotional_amplification=amplification(session),
        display_rule_complexity=display_rule_complexity(session.display_rules),
        frequency_of_emotional_labor=FREQUENCY_BY_CONTEXT[session.context],
        duration_of_emotional_labor=session.duration_minutes,
        intensity_required=session.emotional_intensity,
        autonomy_over_expression=session.control_over_expression,
        consequences_of_failure=session.consequence_severity,
    )


def burnout_risk_factor(assessment: EmotionalLaborAssessment) -> float:
    """Surface acting and dissonance are the strongest predictors; autonomy protects."""
    risk = (
        assessment.surface_acting_score / 10 * 0.4
        + assessment.emotional_dissonance / 10 * 0.3
        + assessment.frequency_of_emotional_labor / 10 * 0.2
        - assessment.autonomy_over_expression / 10 * 0.1
    )
    return max(0.0, min(1.0, risk))


def recommend_interventions(assessment: EmotionalLaborAssessment, risk: float) -> list[str]:
    interventions: list[str] = []
    if assessment.surface_acting_score > 7:
        interventions.append("Practice authentic emotional expression techniques")
        interventions.append("Discuss role boundaries with supervisor")
    if assessment.emotional_dissonance > 7:
        interventions.append("Emotional regulation training recommended")
        interventions.append("Consider rotating to less emotionally demanding assignments")
    if assessment.autonomy_over_expression < 4:
        interventions.append("Advocate for more flexibility in emotional display rules")
        interventions.append("Request training on managing emotional expectations")
    if risk > URGENT_BURNOUT_RISK:
        interventions.append("URGENT: High burnout risk - immediate support needed")
        interventions.append("Consider temporary reduction in emotional labor assignments")
        interventions.append("Schedule wellness check-in with supervisor")
    if not interventions:
        interventions.append("Continue current emotional labor management practices")
    return interventions


def _check_assessment(assessment: EmotionalLaborAssessment) -> None:
    for name, value in assessment.to_dict().items():
        if name == "duration_of_emotional_labor":
            if not is_finite_number(value) or value < 0:
                raise ValidationError(name, "must be a finite number >= 0", value)
            continue
        _unit_score(name, value)


def compensate(
    base_rate: float,
    assessment: EmotionalLaborAssessment,
    context: Any,
    trauma_exposure: bool = False,
) -> EmotionalLaborCompensation:
    if not is_finite_number(base_rate) or base_rate <= 0:
        raise ValidationError("base_rate", "must be a finite number > 0", base_rate)
    _check_assessment(assessment)
    benchmark = BENCHMARKS[_context(context)]

    surface_cost = assessment.surface_acting_score / 10 * 0.5
    deep_cost = assessment.deep_acting_score / 10 * 0.3
    dissonance_cost = assessment.emotional_dissonance / 10 * 0.6
    complexity_cost = assessment.display_rule_complexity / 10 * 0.4
    autonomy_discount = assessment.autonomy_over_expression / 10 * -0.2
    high_stakes = assessment.consequences_of_failure / 10 * benchmark.high_stakes_bonus
    trauma = benchmark.trauma_exposure_bonus if trauma_exposure else 0.0

    multiplier = (
        benchmark.base_multiplier
        + surface_cost + deep_cost + dissonance_cost + complexity_cost
        + autonomy_discount + high_stakes + trauma
    )
    multiplier = max(MULTIPLIER_MIN, min(MULTIPLIER_MAX, multiplier))

    hazard_pay = (multiplier - 1.0) * base_rate
    risk = burnout_risk_factor(assessment)

    return EmotionalLaborCompensation(
        base_rate=float(base_rate),
        multiplier=round(multiplier, 2),
        hazard_pay=_money(hazard_pay),
        total_rate=_money(base_rate * multiplier),
        justification=CompensationJustification(
            surface_acting_cost=_money(surface_cost * base_rate),
            deep_acting_cost=_money(deep_cost * base_rate),
            dissonance_penalty=_money(dissonance_cost * base_rate),
            complexity_premium=_money(complexity_cost * base_rate),
            risk_adjustment=_money((high_stakes + trauma) * base_rate),
        ),
        annual_impact_estimate=float(round(hazard_pay * EMOTIONAL_LABOR_HOURS_PER_WEEK * WEEKS_PER_YEAR)),
        burnout_risk_factor=round(risk, 2),
        recommended_interventions=recommend_interventions(assessment, risk),
        urgent=risk > URGENT_BURNOUT_RISK,
    )


# ---------------------------------------------------------------------------
# Persistence
# ---------------------------------------------------------------------------

def record_entry(
    db: Session,
    identity_hash: str,
    session_hash: str,
    context: ContextType,
    assessment: EmotionalLaborAssessment,
    compensation: EmotionalLaborCompensation,
    now: datetime,
) -> EmotionalLaborEntry:
    """Append an entry. Flush-only: the caller commits."""
    entry = EmotionalLaborEntry(
        identity_hash=identity_hash,
        session_hash=session_hash,
        context_category=context,
        assessment=assessment.to_dict(),
        compensation=compensation.to_dict(),
        recorded_at=now,
    )
    try:
        db.add(entry)
        db.flush()
    except SQLAlchemyError as exc:
        logger.error("emotional_labor_write_failed identity=%s", hash_prefix(identity_hash))
        raise StorageError("record_emotional_labor") from exc

    logger.info(
        "emotional_labor_recorded identity=%s context=%s urgent=%s",
        hash_prefix(identity_hash), context.value, compensation.urgent,
    )
    return entry


def get_entries(
    db: Session,
    identity_hash: str,
    since: Optional[datetime] = None,
) -> list[EmotionalLaborEntry]:
    q = select(EmotionalLaborEntry).where(EmotionalLaborEntry.identity_hash == identity_hash)
    if since is not None:
        q = q.where(EmotionalLaborEntry.recorded_at >= since)
    q = q.order_by(EmotionalLaborEntry.recorded_at, EmotionalLaborEntry.id)
    try:
        return list(db.scalars(q).all())
    except SQLAlchemyError as exc:
        raise StorageError("read_emotional_labor") from exc


# ---------------------------------------------------------------------------
# Analytics (pure over stored rows)
# ---------------------------------------------------------------------------

def _ev(v) -> str:
    return v.value if hasattr(v, "value") else str(v)


def _analytics_recommendations(entries: Sequence[EmotionalLaborEntry], average_multiplier: float) -> list[str]:
    recommendations: list[str] = []
    if average_multiplier > 2.0:
        recommendations.append(
            "Your emotional labor load is significantly above average - consider compensation negotiation"
        )
    elif average_multiplier > 1.5:
        recommendations.append("Track emotional labor patterns to optimize assignment selection")

    high_risk = [e for e in entries if e.compensation["burnout_risk_factor"] > 0.6]
    if len(high_risk) > len(entries) * 0.3:
        recommendations.append("High frequency of burnout-risk sessions - consider workload adjustment")

    surface_avg = statistics.fmean(e.assessment["surface_acting_score"] for e in entries)
    if surface_avg > 7:
        recommendations.append("Focus on authentic expression training to reduce surface acting burden")
    return recommendations


def summarize_entries(entries: Sequence[EmotionalLaborEntry]) -> EmotionalLaborAnalytics:
    if not entries:
        return EmotionalLaborAnalytics(
            entry_count=0,
            average_multiplier=1.0,
            total_extra_compensation=0.0,
            recommendations=["Start tracking emotional labor to get insights"],
        )

    multipliers = [e.compensation["multiplier"] for e in entries]
    average_multiplier = statistics.fmean(multipliers)
    extra = sum(
        e.compensation["hazard_pay"] * (e.assessment["duration_of_emotional_labor"] / 60)
        for e in entries
    )
    contexts = Counter(_ev(e.context_category) for e in entries)

    comparison = []
    for context, benchmark in BENCHMARKS.items():
        in_context = [e.compensation["multiplier"] for e in entries if _ev(e.context_category) == context.value]
        if not in_context:
            continue
        user_average = statistics.fmean(in_context)
        comparison.append(BenchmarkComparison(
            context=context.value,
            user_average=round(user_average, 2),
            industry_benchmark=benchmark.base_multiplier,
            differential=round(user_average - benchmark.base_multiplier, 2),
        ))

    return EmotionalLaborAnalytics(
        entry_count=len(entries),
        average_multiplier=round(average_multiplier, 2),
        total_extra_compensation=_money(extra),
        burnout_risk_trend=[e.compensation["burnout_risk_factor"] for e in entries],
        highest_labor_contexts=[c for c, _ in contexts.most_common(3)],
        recommendations=_analytics_recommendations(entries, average_multiplier),
        comparison_to_benchmark=comparison,
    )
