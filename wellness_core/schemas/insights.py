"""
GET /insights/{account_id} → WellnessInsightsResponse
"""
from typing import Optional

from pydantic import BaseModel, Field


class InsightMetricsResponse(BaseModel):
    average_stress: Optional[float] = Field(default=None, description="Mean weekly stress, 1 decimal.")
    average_energy: Optional[float] = Field(default=None, description="Mean weekly energy, 1 decimal.")
    weeks: int = Field(description="Weekly buckets in the range.")


class WellnessInsightsResponse(BaseModel):
    has_data: bool
    time_range: str
    metrics: InsightMetricsResponse
    pattern_codes: list[str] = Field(examples=[["STRESS_RISING", "BURNOUT_RISK"]])
    recommendation_codes: list[str] = Field(
        examples=[["STRESS_MANAGEMENT_NEEDED", "BURNOUT_PREVENTION_URGENT"]]
    )
