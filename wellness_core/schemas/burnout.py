"""
Burnout risk schemas.

GET  /burnout/{account_id}/risk   → BurnoutRiskResponse
GET  /burnout/{account_id}/plan   → InterventionPlanResponse
GET  /burnout/{account_id}/trend  → RiskTrendResponse
POST /burnout/team                → TeamRollupRequest → TeamAssessmentResponse
"""
from __future__ import annotations

from datetime import datetime
from typing import Annotated, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class BurnoutFactorsResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    energy_trend: float
    energy_stability: float
    low_energy_frequency: int
    stress_level: float
    high_stress_frequency: int
    burnout_current: float
    burnout_peak: float
    chronic_stress_detected: bool
    recovery_needed: bool
    confidence_level: float = Field(
        description="Data completeness in [0, 1]. Reported only; does not affect the score."
    )
    engagement_days: int = Field(description="Readings in the last 4 weekly buckets.")
    last_check_in: Optional[str] = None
    trend_direction: str


class BurnoutAssessmentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    risk_score: float = Field(description="0.0–10.0, one decimal.", examples=[6.3])
    risk_level: Literal["minimal", "low", "moderate", "high", "critical"]
    trend: Literal["declining", "stable", "worsening"]
    weeks_until_burnout: Optional[int] = None
    intervention_urgency: Literal["monitoring", "recommended", "urgent", "immediate"]
    recommended_actions: list[str]
    factors: BurnoutFactorsResponse
    assessment_date: datetime
    provisional: bool = Field(
        default=False,
        description="True when the value is a placeholder for a short history.",
    )


class BurnoutRiskResponse(BaseModel):
    status: Literal["assessed", "provisional", "insufficient_data"]
    assessment: Optional[BurnoutAssessmentResponse] = None
    data_points: Optional[int] = None
    required: Optional[int] = None
    message: Optional[str] = None


class InterventionActionResponse(BaseModel):
    id: str
    title: str
    description: str
    priority: str
    category: str
    estimated_time: str


class ResourceResponse(BaseModel):
    title: str
    type: str
    url: Optional[str] = None


class InterventionPlanResponse(BaseModel):
    type: Literal["immediate", "urgent", "preventive", "maintenance"]
    risk_level: str
    provisional: bool
    actions: list[InterventionActionResponse]
    prompts: list[str]
    resources: list[ResourceResponse]


class RiskTrendPointResponse(BaseModel):
    week_start: str
    risk_score: float
    risk_level: str


class RiskTrendResponse(BaseModel):
    weeks: int
    points: list[RiskTrendPointResponse] = Field(description="Oldest first.")


class TeamRollupRequest(BaseModel):
    """Per-member results aggregated upstream. Members are never re-scored."""
    org_id: Annotated[str, Field(min_length=1, max_length=128)]
    team_size: Annotated[int, Field(ge=0)]
    risk_distribution: dict[
        Literal["minimal", "low", "moderate", "high", "critical"], Annotated[int, Field(ge=0)]
    ] = Field(default_factory=dict)
    average_risk_score: Annotated[float, Field(ge=0, le=10)] = 0.0
    trend_counts: dict[
        Literal["declining", "stable", "worsening"], Annotated[int, Field(ge=0)]
    ] = Field(default_factory=dict)

    @model_validator(mode="after")
    def check_distribution_fits_team(self) -> "TeamRollupRequest":
        if sum(self.risk_distribution.values()) > self.team_size:
            raise ValueError("risk_distribution counts exceed team_size")
        return self


class TeamAssessmentResponse(BaseModel):
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
