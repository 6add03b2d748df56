"""
Attestations router.

POST /attestations                                 — issue a receipt
POST /attestations/activity                        — receipt for a completed activity
POST /attestations/recovery                        — recovery receipt (stress ≤ 5)
POST /attestations/threshold                       — threshold-held proof
GET  /attestations/{receipt_id}/verify             — verify a receipt
POST /attestations/verify                          — verify several receipts
GET  /attestations/account/{account_id}            — recent receipts
GET  /attestations/account/{account_id}/readiness  — current readiness receipt
"""
from __future__ import annotations

from dataclasses import asdict
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from wellness_core.db.base import get_core, get_db
from wellness_core.models.attestation import AttestationReceipt
from wellness_core.schemas.attestation import (
    ActivityAttestationRequest,
    AttestationListResponse,
    AttestationRequest,
    AttestationViewResponse,
    BatchVerificationItem,
    BatchVerifyRequest,
    BatchVerifyResponse,
    ReadinessResponse,
    ReceiptResponse,
    RecoveryAttestationRequest,
    ThresholdProofRequest,
    VerificationResponse,
)
from wellness_core.schemas.common import ErrorResponse

router = APIRouter(prefix="/attestations", tags=["attestations"])


def _ev(v) -> str:
    return v.value if hasattr(v, "value") else str(v)


def _receipt_to_response(r: AttestationReceipt, core) -> ReceiptResponse:
    return ReceiptResponse(
        receipt_id=r.receipt_id,
        receipt_type=_ev(r.receipt_type),
        receipt_hash=r.receipt_hash,
        signature=r.signature,
        issued_at=r.issued_at,
        valid_until=r.valid_until,
        criteria=r.criteria,
        verification_url=core.verification_url(r.receipt_id),
    )


@router.post(
    "",
    response_model=ReceiptResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Issue an attestation receipt",
    responses={422: {"model": ErrorResponse, "description": "Unknown type or negative validity."}},
)
def issue(payload: AttestationRequest, db: Session = Depends(get_db), core=Depends(get_core)):
    receipt = core.issue_attestation(
        db, payload.account_id, payload.receipt_type, payload.validity_hours,
    )
    return _receipt_to_response(receipt, core)


@router.post(
    "/activity",
    response_model=ReceiptResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Attest a completed wellness activity",
)
def attest_activity(
    payload: ActivityAttestationRequest,
    db: Session = Depends(get_db),
    core=Depends(get_core),
):
    """Wellness checks are valid for 24 hours, other activities for a week."""
    return _receipt_to_response(core.attest_activity(db, payload.account_id, payload.activity), core)


@router.post(
    "/recovery",
    response_model=ReceiptResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Attest recovery",
    responses={422: {"model": ErrorResponse, "description": "Stress above the recovery threshold."}},
)
def attest_recovery(
    payload: RecoveryAttestationRequest,
    db: Session = Depends(get_db),
    core=Depends(get_core),
):
    return _receipt_to_response(core.attest_recovery(db, payload.account_id, payload.stress_level), core)


@router.post(
    "/threshold",
    response_model=ReceiptResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Prove a wellness threshold held",
    responses={422: {"model": ErrorResponse, "description": "CRITERIA_NOT_MET or malformed criterion."}},
)
def prove_threshold(
    payload: ThresholdProofRequest,
    db: Session = Depends(get_db),
    core=Depends(get_core),
):
    """
    Issue a `wellness_threshold_met` receipt when the criterion held for
    each of the latest consecutive weeks. The receipt records the criterion
    definition only, never the measured values.
    """
    receipt = core.prove_threshold(db, payload.account_id, payload.criterion.model_dump())
    return _receipt_to_response(receipt, core)


@router.get(
    "/{receipt_id}/verify",
    response_model=VerificationResponse,
    summary="Verify a receipt",
)
def verify(
    receipt_id: str,
    verifier_id: Optional[str] = Query(default=None, max_length=256),
    db: Session = Depends(get_db),
    core=Depends(get_core),
):
    """
    Always 200: `valid` plus a `reason` of valid, not_found, tampered or
    expired. Each call on an existing receipt is counted and audited.
    """
    result = core.verify_attestation(db, receipt_id, verifier_id)
    return VerificationResponse(**asdict(result))


@router.post(
    "/verify",
    response_model=BatchVerifyResponse,
    summary="Verify several receipts",
)
def verify_batch(
    payload: BatchVerifyRequest,
    db: Session = Depends(get_db),
    core=Depends(get_core),
):
    """Duplicate ids are verified once. Unknown ids come back as not_found."""
    results = core.verify_attestations(db, payload.receipt_ids, payload.verifier_id)
    return BatchVerifyResponse(results=[
        BatchVerificationItem(receipt_id=receipt_id, **asdict(result))
        for receipt_id, result in results
    ])


@router.get(
    "/account/{account_id}",
    response_model=AttestationListResponse,
    summary="Recent receipts for an account",
)
def list_for_account(
    account_id: str,
    limit: int = Query(default=10, ge=1, le=100),
    db: Session = Depends(get_db),
    core=Depends(get_core),
):
    views = core.list_attestations(db, account_id, limit)
    return AttestationListResponse(items=[AttestationViewResponse(**asdict(v)) for v in views])


@router.get(
    "/account/{account_id}/readiness",
    response_model=ReadinessResponse,
    summary="Current readiness status",
)
def readiness(account_id: str, db: Session = Depends(get_db), core=Depends(get_core)):
    view = core.check_readiness(db, account_id)
    return ReadinessResponse(
        is_ready=view is not None,
        attestation=AttestationViewResponse(**asdict(view)) if view is not None else None,
    )
