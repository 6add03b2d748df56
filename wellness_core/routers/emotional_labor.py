"""
Emotional labor router.

POST /emotional-labor/{account_id}/sessions    — assess and record one session
GET  /emotional-labor/{account_id}/analytics   — summary over a time range
"""
from __future__ import annotations

from dataclasses import asdict
from typing import Literal

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from wellness_core.db.base import get_core, get_db
from wellness_core.schemas.common import ErrorResponse
from wellness_core.schemas.emotional_labor import (
    EmotionalLaborAnalyticsResponse,
    EmotionalLaborRequest,
    EmotionalLaborResponse,
)

router = APIRouter(prefix="/emotional-labor", tags=["emotional-labor"])


@router.post(
    "/{account_id}/sessions",
    response_model=EmotionalLaborResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Quantify a session's emotional labor",
    responses={
        422: {"model": ErrorResponse, "description": "A session value is missing or out of range."},
    },
)
def record_session(
    account_id: str,
    payload: EmotionalLaborRequest,
    db: Session = Depends(get_db),
    core=Depends(get_core),
):
    """
    Score surface acting, deep acting, dissonance and related components,
    then recommend a compensation multiplier in [1.0, 3.0].
    """
    result = core.record_emotional_labor(
        db,
        account_id,
        session=payload.session.model_dump(),
        base_rate=payload.base_rate,
        session_id=payload.session_id,
    )
    return EmotionalLaborResponse(
        context=result.context,
        recorded_at=result.recorded_at,
        assessment=asdict(result.assessment),
        compensation=asdict(result.compensation),
    )


@router.get(
    "/{account_id}/analytics",
    response_model=EmotionalLaborAnalyticsResponse,
    summary="Emotional labor analytics",
)
def get_analytics(
    account_id: str,
    time_range: Literal["week", "month", "quarter"] = Query(default="month"),
    db: Session = Depends(get_db),
    core=Depends(get_core),
):
    analytics = core.get_emotional_labor_analytics(db, account_id, time_range)
    return EmotionalLaborAnalyticsResponse(time_range=time_range, **asdict(analytics))
