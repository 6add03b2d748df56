"""
Reflections router.

POST /reflections   — submit one self-report
"""
from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from wellness_core.db.base import get_core, get_db
from wellness_core.schemas.common import ErrorResponse
from wellness_core.schemas.reflections import ReflectionRequest, SubmissionAckResponse

router = APIRouter(prefix="/reflections", tags=["reflections"])


@router.post(
    "",
    response_model=SubmissionAckResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Submit a reflection",
    responses={
        422: {"model": ErrorResponse, "description": "Empty account id or malformed body."},
        503: {"model": ErrorResponse, "description": "Persistence failed; nothing was stored."},
    },
)
def submit_reflection(
    payload: ReflectionRequest,
    db: Session = Depends(get_db),
    core=Depends(get_core),
):
    """
    Anonymize a reflection and fold it into the caller's weekly bucket.

    Only allow-listed numeric metrics for the resolved category are kept;
    free text and unknown fields are dropped before anything is written.
    The raw account id and session id are hashed and never stored.
    """
    ack = core.submit_reflection(
        db,
        account_id=payload.account_id,
        type_hint=payload.type_hint,
        raw_fields=payload.fields,
        session_id=payload.session_id,
    )
    return SubmissionAckResponse(
        reflection_id=ack.reflection_id,
        category=ack.category,
        context_type=ack.context_type,
        week_start=ack.week_start.isoformat(),
        metrics_recorded=ack.metrics_recorded,
        pattern_code=ack.pattern_code,
    )
