"""
Intervention plan builder.

Pure function of a BurnoutRiskAssessment: a prioritized action list,
conversational prompts for the assistant, and resource links. Actions are
picked by risk level first, then by specific factor flags.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal, Optional

from wellness_core.services.burnout import (
    BurnoutRiskAssessment,
    InterventionUrgency,
    RiskLevel,
)

ActionCategory = Literal["self_care", "professional_support", "workload", "social", "training"]
Priority = Literal["critical", "high", "medium", "low"]

LOW_ENGAGEMENT_DAYS = 3
LOW_ENERGY_TREND = 4


@dataclass
class InterventionAction:
    id: str
    title: str
    description: str
    priority: Priority
    category: ActionCategory
    estimated_time: str


@dataclass
class Resource:
    title: str
    type: Literal["article", "video", "exercise", "contact"]
    url: Optional[str] = None


@dataclass
class InterventionPlan:
    type: Literal["immediate", "urgent", "preventive", "maintenance"]
    actions: list[InterventionAction] = field(default_factory=list)
    prompts: list[str] = field(default_factory=list)
    resources: list[Resource] = field(default_factory=list)


_LEVEL_ACTIONS: dict[RiskLevel, list[InterventionAction]] = {
    RiskLevel.critical: [
        InterventionAction(
            "immediate-break", "Take Immediate Wellness Break",
            "Step away from current assignments for a brief reset period",
            "critical", "self_care", "15-30 minutes",
        ),
        InterventionAction(
            "supervisor-check", "Schedule Supervisor Check-in",
            "Discuss workload and support needs with your supervisor",
            "critical", "professional_support", "30 minutes",
        ),
        InterventionAction(
            "crisis-support", "Access Crisis Support Resources",
            "Connect with mental health support services immediately",
            "critical", "professional_support", "As needed",
        ),
    ],
    RiskLevel.high: [
        InterventionAction(
            "workload-review", "Review and Adjust Workload",
            "Identify assignments that can be rescheduled or delegated",
            "high", "workload", "45 minutes",
        ),
        InterventionAction(
            "stress-reduction", "Implement Daily Stress Reduction",
            "Start a daily 10-minute stress reduction practice",
            "high", "self_care", "10 minutes/day",
        ),
        InterventionAction(
            "peer-support", "Connect with Peer Support",
            "Schedule time with a trusted colleague for support",
            "medium", "social", "30 minutes",
        ),
    ],
    RiskLevel.moderate: [
        InterventionAction(
            "weekly-reflection", "Establish Weekly Reflection Practice",
            "Set aside time each week for structured reflection",
            "medium", "self_care", "20 minutes/week",
        ),
        InterventionAction(
            "skill-building", "Build Resilience Skills",
            "Learn new coping strategies for challenging assignments",
            "medium", "training", "30 minutes/week",
        ),
    ],
}

_LEVEL_PROMPTS: dict[RiskLevel, list[str]] = {
    RiskLevel.critical: [
        "I'm feeling completely overwhelmed and need immediate support",
        "Help me create an emergency self-care plan for today",
        "What are signs I should take a mental health day?",
    ],
    RiskLevel.high: [
        "Help me recognize early warning signs of burnout",
        "I need strategies for managing vicarious trauma",
        "How can I set better boundaries in high-stress assignments?",
    ],
    RiskLevel.moderate: [
        "What are effective ways to decompress after difficult sessions?",
        "Help me build a sustainable self-care routine",
        "How can I maintain energy throughout long assignments?",
    ],
}

_CHRONIC_STRESS_ACTION = InterventionAction(
    "stress-assessment", "Complete Comprehensive Stress Assessment",
    "Identify specific stressors and develop targeted solutions",
    "high", "professional_support", "60 minutes",
)
_RE_ENGAGEMENT_ACTION = InterventionAction(
    "re-engagement", "Re-engage with Wellness Practice",
    "Restart your daily reflection practice with small, manageable steps",
    "medium", "self_care", "5 minutes/day",
)
_ENERGY_ACTION = InterventionAction(
    "energy-restoration", "Focus on Energy Restoration",
    "Prioritize sleep, nutrition, and movement for energy recovery",
    "high", "self_care", "30 minutes/day",
)

_BASE_RESOURCES = [
    Resource("Interpreter Self-Care Guide", "article", "/resources/self-care-guide"),
    Resource("Quick Stress Relief Exercises", "video", "/resources/stress-relief-video"),
    Resource("5-Minute Grounding Practice", "exercise", "/exercises/grounding"),
]
_CRISIS_LINE = Resource("Mental Health Support Line", "contact", "tel:988")

_PRIORITY_ORDER = {"critical": 0, "high": 1, "medium": 2, "low": 3}


def _plan_type(assessment: BurnoutRiskAssessment) -> str:
    if assessment.intervention_urgency is InterventionUrgency.immediate:
        return "immediate"
    if assessment.intervention_urgency is InterventionUrgency.urgent:
        return "urgent"
    if assessment.risk_level is RiskLevel.moderate:
        return "preventive"
    return "maintenance"


def build_intervention_plan(assessment: BurnoutRiskAssessment) -> InterventionPlan:
    level = assessment.risk_level
    factors = assessment.factors

    actions = list(_LEVEL_ACTIONS.get(level, []))
    if factors.chronic_stress_detected:
        actions.append(_CHRONIC_STRESS_ACTION)
    if factors.engagement_days < LOW_ENGAGEMENT_DAYS:
        actions.append(_RE_ENGAGEMENT_ACTION)
    if factors.energy_trend < LOW_ENERGY_TREND:
        actions.append(_ENERGY_ACTION)
    # stable sort keeps level actions ahead of factor actions at equal priority
    actions.sort(key=lambda a: _PRIORITY_ORDER[a.priority])

    resources = list(_BASE_RESOURCES)
    if level in (RiskLevel.critical, RiskLevel.high):
        resources.append(_CRISIS_LINE)

    return InterventionPlan(
        type=_plan_type(assessment),
        actions=actions,
        prompts=list(_LEVEL_PROMPTS.get(level, [])),
        resources=resources,
    )
