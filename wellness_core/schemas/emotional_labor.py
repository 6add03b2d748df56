"""
Emotional labor schemas.

POST /emotional-labor/{account_id}/sessions   → SessionRequest → EmotionalLaborResponse
GET  /emotional-labor/{account_id}/analytics  → EmotionalLaborAnalyticsResponse

Request bodies are range-checked by the quantifier itself so the same
ValidationError envelope comes back for HTTP and library callers.
"""
from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any, Optional

from pydantic import BaseModel, Field


class SessionRequest(BaseModel):
    context: str = Field(
        description="medical | legal | educational | mental_health | community | general",
        examples=["medical"],
    )
    duration_minutes: Any = Field(examples=[90])
    emotional_intensity: Any = Field(description="0–10", examples=[7])
    trauma_exposure: Any = Field(default=False)
    client_emotional_state: str = Field(
        description="calm | distressed | angry | grief | panic | mixed",
        examples=["distressed"],
    )
    display_rules: list[str] = Field(
        default_factory=list,
        examples=[["hide_shock", "show_empathy", "maintain_neutrality"]],
    )
    internal_state: Any = Field(description="Felt emotion, 0–10.")
    displayed_state: Any = Field(description="Displayed emotion, 0–10.")
    control_over_expression: Any = Field(description="Autonomy over expression, 0–10.")
    consequence_severity: Any = Field(description="Stakes of getting it wrong, 0–10.")


class EmotionalLaborRequest(BaseModel):
    session: SessionRequest
    base_rate: Any = Field(description="Hourly base rate, > 0.", examples=[55.0])
    session_id: Optional[Annotated[str, Field(max_length=256)]] = None


class AssessmentResponse(BaseModel):
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


class JustificationResponse(BaseModel):
    surface_acting_cost: float
    deep_acting_cost: float
    dissonance_penalty: float
    complexity_premium: float
    risk_adjustment: float


class CompensationResponse(BaseModel):
    base_rate: float
    multiplier: float = Field(description="Clamped to [1.0, 3.0].")
    hazard_pay: float
    total_rate: float
    justification: JustificationResponse
    annual_impact_estimate: float
    burnout_risk_factor: float = Field(description="0.0–1.0")
    recommended_interventions: list[str]
    urgent: bool


class EmotionalLaborResponse(BaseModel):
    context: str
    recorded_at: datetime
    assessment: AssessmentResponse
    compensation: CompensationResponse


class BenchmarkComparisonResponse(BaseModel):
    context: str
    user_average: float
    industry_benchmark: float
    differential: float


class EmotionalLaborAnalyticsResponse(BaseModel):
    time_range: str
    entry_count: int
    average_multiplier: float
    total_extra_compensation: float
    burnout_risk_trend: list[float]
    highest_labor_contexts: list[str]
    recommendations: list[str]
    comparison_to_benchmark: list[BenchmarkComparisonResponse]
