"""
Attestation schemas.

POST /attestations                           → AttestationRequest → ReceiptResponse
POST /attestations/activity                  → ActivityAttestationRequest → ReceiptResponse
POST /attestations/recovery                  → RecoveryAttestationRequest → ReceiptResponse
POST /attestations/threshold                 → ThresholdProofRequest → ReceiptResponse
GET  /attestations/{receipt_id}/verify       → VerificationResponse
POST /attestations/verify                    → BatchVerifyRequest → BatchVerifyResponse
GET  /attestations/account/{account_id}      → AttestationListResponse
GET  /attestations/account/{account_id}/readiness → ReadinessResponse
"""
from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

AccountId = Annotated[str, Field(min_length=1, max_length=256)]


class AttestationRequest(BaseModel):
    account_id: AccountId
    receipt_type: str = Field(examples=["readiness", "shift_ready"])
    validity_hours: Optional[int] = Field(
        default=None,
        description="Hours until expiry. 0 = never expires. Defaults to the configured window.",
    )


class ActivityAttestationRequest(BaseModel):
    account_id: AccountId
    activity: Literal["wellness_check", "team_sync", "training", "break", "debrief"]


class RecoveryAttestationRequest(BaseModel):
    account_id: AccountId
    stress_level: Any = Field(description="Current stress, 0–10. Must be ≤ 5.")


class ThresholdCriterion(BaseModel):
    type: Literal["stress_below", "energy_above", "regular_practice"]
    value: float = Field(description="Threshold; stress/energy on 0–10, or readings per week.")
    weeks: int = Field(default=4, ge=1, le=52)


class ThresholdProofRequest(BaseModel):
    account_id: AccountId
    criterion: ThresholdCriterion


class ReceiptResponse(BaseModel):
    """A receipt as issued. Carries no measurement."""
    model_config = ConfigDict(from_attributes=True)

    receipt_id: str
    receipt_type: str
    receipt_hash: str
    signature: str
    issued_at: datetime
    valid_until: Optional[datetime] = None
    criteria: Optional[dict[str, Any]] = Field(
        default=None,
        description="Threshold definition for wellness_threshold_met receipts.",
    )
    verification_url: str = Field(description="Where a third party can check this receipt.")


class VerificationResponse(BaseModel):
    valid: bool
    reason: Literal["valid", "not_found", "tampered", "expired"]
    receipt_type: Optional[str] = None
    issued_at: Optional[datetime] = None
    valid_until: Optional[datetime] = None
    verification_count: int = 0
    criteria: Optional[dict[str, Any]] = Field(
        default=None,
        description="Certified threshold definition for wellness_threshold_met receipts. Never measured values.",
    )


class BatchVerifyRequest(BaseModel):
    receipt_ids: list[Annotated[str, Field(min_length=1, max_length=64)]] = Field(min_length=1, max_length=100)
    verifier_id: Optional[Annotated[str, Field(max_length=256)]] = None


class BatchVerificationItem(VerificationResponse):
    receipt_id: str


class BatchVerifyResponse(BaseModel):
    results: list[BatchVerificationItem]


class AttestationViewResponse(BaseModel):
    receipt_id: str
    receipt_type: str
    issued_at: datetime
    valid_until: Optional[datetime] = None
    verification_count: int
    is_valid: bool


class AttestationListResponse(BaseModel):
    items: list[AttestationViewResponse]


class ReadinessResponse(BaseModel):
    is_ready: bool
    attestation: Optional[AttestationViewResponse] = None
