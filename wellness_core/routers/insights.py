"""
Insights router.

GET /insights/{account_id}?time_range=week|month|quarter
"""
from __future__ import annotations

from typing import Literal

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from wellness_core.db.base import get_core, get_db
from wellness_core.schemas.insights import InsightMetricsResponse, WellnessInsightsResponse

router = APIRouter(prefix="/insights", tags=["insights"])


@router.get(
    "/{account_id}",
    response_model=WellnessInsightsResponse,
    summary="Aggregated wellness insights",
)
def get_insights(
    account_id: str,
    time_range: Literal["week", "month", "quarter"] = Query(default="month"),
    db: Session = Depends(get_db),
    core=Depends(get_core),
):
    """
    Averages, detected pattern codes and recommendation codes over the
    range. `has_data=false` when no weekly bucket falls in the range.
    """
    result = core.get_wellness_insights(db, account_id, time_range)
    return WellnessInsightsResponse(
        has_data=result.has_data,
        time_range=result.time_range,
        metrics=InsightMetricsResponse(
            average_stress=result.metrics.average_stress,
            average_energy=result.metrics.average_energy,
            weeks=result.metrics.weeks,
        ),
        pattern_codes=result.pattern_codes,
        recommendation_codes=result.recommendation_codes,
    )
