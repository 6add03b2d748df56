"""
Known submission shapes, one per reflection category.

The host app posts an arbitrary field map; the anonymizer resolves the
category and validates the map against the matching shape below. Each shape
is the explicit allow-list for its category:

  - unknown keys (free text, names, notes) are ignored
  - non-numeric, boolean, NaN and infinite values are treated as absent
  - numbers are clamped to [0, 10] and rounded to one decimal

A shape never raises on odd input: the privacy boundary degrades to
"fewer metrics", never to a rejected submission.
"""
from __future__ import annotations

import math
from decimal import ROUND_HALF_UP, Decimal
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, TypeAdapter

METRIC_MIN = 0.0
METRIC_MAX = 10.0


def normalize_metric(value: Any) -> Optional[float]:
    """Clamp a raw value to [0, 10] with one decimal, or None if unusable."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if isinstance(value, int):
        # ints of any size compare exactly; clamp before float() can overflow
        value = min(int(METRIC_MAX), max(int(METRIC_MIN), value))
    as_float = float(value)
    if not math.isfinite(as_float):
        return None
    clamped = min(METRIC_MAX, max(METRIC_MIN, as_float))
    return float(Decimal(repr(clamped)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))



def is_finite_number(value: Any) -> bool:
    """True for an int or float (not bool) that fits a finite float."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    try:
        return math.isfinite(value)
    except OverflowError:
        return False

Metric = Annotated[Optional[float], BeforeValidator(normalize_metric)]


class _SubmissionShape(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    stress_level: Metric = None
    energy_level: Metric = None
    confidence: Metric = None
    burnout_score: Metric = None

    def metrics(self) -> dict[str, float]:
        """Allow-listed metrics that were present and numeric."""
        return {
            name: value
            for name, value in self.model_dump(exclude={"category"}).items()
            if value is not None
        }


class WellnessCheckSubmission(_SubmissionShape):
    category: Literal["wellness_check"] = "wellness_check"
    emotional_balance: Metric = None
    mental_clarity: Metric = None
    physical_energy: Metric = None


class SessionReflectionSubmission(_SubmissionShape):
    category: Literal["session_reflection"] = "session_reflection"
    satisfaction: Metric = None
    preparedness_rating: Metric = None
    confidence_level: Metric = None


class TeamSyncSubmission(_SubmissionShape):
    category: Literal["team_sync"] = "team_sync"
    satisfaction: Metric = None


class ValuesAlignmentSubmission(_SubmissionShape):
    category: Literal["values_alignment"] = "values_alignment"
    emotional_balance: Metric = None
    satisfaction: Metric = None


class StressManagementSubmission(_SubmissionShape):
    category: Literal["stress_management"] = "stress_management"
    emotional_balance: Metric = None
    physical_energy: Metric = None
    mental_clarity: Metric = None


class GrowthAssessmentSubmission(_SubmissionShape):
    category: Literal["growth_assessment"] = "growth_assessment"
    confidence_level: Metric = None
    satisfaction: Metric = None


Submission = Annotated[
    Union[
        WellnessCheckSubmission,
        SessionReflectionSubmission,
        TeamSyncSubmission,
        ValuesAlignmentSubmission,
        StressManagementSubmission,
        GrowthAssessmentSubmission,
    ],
    Field(discriminator="category"),
]

submission_adapter: TypeAdapter[Submission] = TypeAdapter(Submission)

SHAPES_BY_CATEGORY: dict[str, type[_SubmissionShape]] = {
    "wellness_check": WellnessCheckSubmission,
    "session_reflection": SessionReflectionSubmission,
    "team_sync": TeamSyncSubmission,
    "values_alignment": ValuesAlignmentSubmission,
    "stress_management": StressManagementSubmission,
    "growth_assessment": GrowthAssessmentSubmission,
}


def allowed_metrics(category: str) -> frozenset[str]:
    shape = SHAPES_BY_CATEGORY[category]
    return frozenset(name for name in shape.model_fields if name != "category")
