"""
Burnout router.

GET  /burnout/{account_id}/risk    — risk assessment (or insufficient_data)
GET  /burnout/{account_id}/plan    — intervention plan
GET  /burnout/{account_id}/trend   — weekly point-risk series
POST /burnout/team                 — org roll-up from per-member results
"""
from __future__ import annotations

from dataclasses import asdict
from typing import Literal

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from wellness_core.db.base import get_core, get_db
from wellness_core.schemas.burnout import (
    BurnoutAssessmentResponse,
    BurnoutRiskResponse,
    InterventionPlanResponse,
    RiskTrendPointResponse,
    RiskTrendResponse,
    TeamAssessmentResponse,
    TeamRollupRequest,
)
from wellness_core.schemas.common import ErrorResponse
from wellness_core.services.burnout import BurnoutRiskAssessment, InsufficientData, TeamRollup

router = APIRouter(prefix="/burnout", tags=["burnout"])


# ---------------------------------------------------------------------------
# Serialization helpers
# ---------------------------------------------------------------------------

def _assessment_to_response(a: BurnoutRiskAssessment) -> BurnoutAssessmentResponse:
    return BurnoutAssessmentResponse.model_validate(a.to_dict())


def _outcome_to_response(outcome) -> BurnoutRiskResponse:
    if isinstance(outcome, InsufficientData):
        return BurnoutRiskResponse(
            status="insufficient_data",
            data_points=outcome.data_points,
            required=outcome.required,
            message=outcome.message,
        )
    return BurnoutRiskResponse(
        status="provisional" if outcome.provisional else "assessed",
        assessment=_assessment_to_response(outcome),
    )


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------

@router.get(
    "/{account_id}/risk",
    response_model=BurnoutRiskResponse,
    summary="Burnout risk assessment",
    responses={
        409: {"model": ErrorResponse, "description": "policy=strict and fewer than 3 weeks of history."},
    },
)
def get_risk(
    account_id: str,
    policy: Literal["report", "provisional", "strict"] = Query(
        default="report",
        description=(
            "Handling of histories shorter than 3 weeks: `report` returns "
            "status=insufficient_data, `provisional` returns a flagged placeholder "
            "assessment, `strict` responds 409."
        ),
    ),
    db: Session = Depends(get_db),
    core=Depends(get_core),
):
    return _outcome_to_response(core.get_burnout_risk(db, account_id, policy))


@router.get(
    "/{account_id}/plan",
    response_model=InterventionPlanResponse,
    summary="Intervention plan for the current risk level",
)
def get_plan(
    account_id: str,
    db: Session = Depends(get_db),
    core=Depends(get_core),
):
    assessment, plan = core.get_intervention_plan(db, account_id)
    return InterventionPlanResponse(
        type=plan.type,
        risk_level=assessment.risk_level.value,
        provisional=assessment.provisional,
        actions=[asdict(a) for a in plan.actions],
        prompts=plan.prompts,
        resources=[asdict(r) for r in plan.resources],
    )


@router.get(
    "/{account_id}/trend",
    response_model=RiskTrendResponse,
    summary="Weekly risk series",
)
def get_trend(
    account_id: str,
    weeks: int = Query(default=12, ge=1, le=104),
    db: Session = Depends(get_db),
    core=Depends(get_core),
):
    points = core.get_burnout_trend(db, account_id, weeks)
    return RiskTrendResponse(
        weeks=weeks,
        points=[
            RiskTrendPointResponse(
                week_start=p.week_start,
                risk_score=p.risk_score,
                risk_level=p.risk_level.value,
            )
            for p in points
        ],
    )


@router.post(
    "/team",
    response_model=TeamAssessmentResponse,
    summary="Team burnout roll-up",
)
def assess_team(payload: TeamRollupRequest, core=Depends(get_core)):
    """
    Organization-level view built from per-member results computed upstream.
    No individual data is read here.
    """
    rollup = TeamRollup(
        team_size=payload.team_size,
        risk_distribution=dict(payload.risk_distribution),
        average_risk_score=payload.average_risk_score,
        trend_counts=dict(payload.trend_counts),
    )
    result = core.assess_team(rollup, payload.org_id)
    return TeamAssessmentResponse(**asdict(result))
