"""
Attestation receipts: signed, payload-free proofs that something happened.

Public API
----------
AttestationSigner(secret)
generate(db, signer, identity_hash, receipt_type, validity_hours, now, criteria=None) -> AttestationReceipt
verify(db, signer, receipt_id, now, verifier_hash=None)                            -> VerificationResult
verify_many(db, signer, receipt_ids, now, verifier_hash=None)                      -> list[(receipt_id, VerificationResult)]
verification_url(base_url, receipt_id)                                            -> str
prove_threshold(db, signer, identity_hash, criterion, now, validity_hours)          -> AttestationReceipt
attest_activity(activity)                                                         -> (ReceiptType, hours)
attest_recovery(db, signer, identity_hash, stress_level, now)                     -> AttestationReceipt
list_attestations(db, identity_hash, now, limit=10)                               -> list[AttestationView]

Receipt hash
------------
SHA-256 over the canonical JSON (sorted keys, no whitespace) of
{receipt_id, type, issued_at, valid_until, criteria, nonce}. Timestamps are
rendered as UTC with microseconds so the hash survives a database round trip
on backends that drop the tz offset. The signature is HMAC-SHA256 over the
receipt hash, keyed by SHA-256("attestation:" + secret).

Verification misses are results, not exceptions.
"""
from __future__ import annotations

import hashlib
import hmac
import json
import logging
import secrets
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Mapping, Optional

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from wellness_core.core.config import check_salt
from wellness_core.core.errors import CriteriaNotMetError, StorageError, ValidationError
from wellness_core.models.attestation import (
    AttestationReceipt,
    AttestationVerification,
    ReceiptType,
)
from wellness_core.schemas.submission import is_finite_number
from wellness_core.services.aggregator import WeekSnapshot, get_history, week_start_for
from wellness_core.services.identity import hash_prefix

logger = logging.getLogger(__name__)

# activity name -> receipt type
ACTIVITY_RECEIPTS: dict[str, ReceiptType] = {
    "wellness_check": ReceiptType.wellness_check,
    "team_sync": ReceiptType.team_sync,
    "training": ReceiptType.training_complete,
    "break": ReceiptType.break_taken,
    "debrief": ReceiptType.debrief_complete,
}
WELLNESS_CHECK_VALID_HOURS = 24
ACTIVITY_VALID_HOURS = 168

RECOVERY_MAX_STRESS = 5.0
RECOVERY_VALID_HOURS = 72

THRESHOLD_CRITERIA = ("stress_below", "energy_above", "regular_practice")
DEFAULT_THRESHOLD_WEEKS = 4

MAX_BATCH_VERIFY = 100

VALID = "valid"
NOT_FOUND = "not_found"
TAMPERED = "tampered"
EXPIRED = "expired"


# ---------------------------------------------------------------------------
# Signing
# ---------------------------------------------------------------------------

def _aware(dt: datetime) -> datetime:
    """SQLite hands back naive datetimes; stored values are always UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _stamp(dt: Optional[datetime]) -> Optional[str]:
    if dt is None:
        return None
    return _aware(dt).strftime("%Y-%m-%dT%H:%M:%S.%fZ")


class AttestationSigner:
    def __init__(self, secret: str):
        check_salt(secret)
        self._key = hashlib.sha256(f"attestation:{secret}".encode("utf-8")).digest()

    def receipt_hash(
        self,
        receipt_id: str,
        receipt_type: str,
        issued_at: datetime,
        valid_until: Optional[datetime],
        criteria: Optional[Mapping[str, Any]],
        nonce: str,
    ) -> str:
        payload = {
            "receipt_id": receipt_id,
            "type": receipt_type,
            "issued_at": _stamp(issued_at),
            "valid_until": _stamp(valid_until),
            "criteria": criteria,
            "nonce": nonce,
        }
        canonical = json.dumps(payload, sort_keys=True, separators=(",", ":"))
        return hashlib.sha256(canonical.encode("utf-8")).hexdigest()

    def sign(self, receipt_hash: str) -> str:
        return hmac.new(self._key, receipt_hash.encode("utf-8"), hashlib.sha256).hexdigest()

    def check(self, receipt: AttestationReceipt) -> bool:
        """True when the stored hash and signature both match the stored fields."""
        expected_hash = self.receipt_hash(
            receipt.receipt_id,
            _ev(receipt.receipt_type),
            receipt.issued_at,
            receipt.valid_until,
            receipt.criteria,
            receipt.nonce,
        )
        return hmac.compare_digest(expected_hash, receipt.receipt_hash) and hmac.compare_digest(
            self.sign(receipt.receipt_hash), receipt.signature
        )

    def __repr__(self) -> str:
        return "AttestationSigner(secret=***)"


def _ev(v) -> str:
    return v.value if hasattr(v, "value") else str(v)


# ---------------------------------------------------------------------------
# Result types
# ---------------------------------------------------------------------------

@dataclass
class VerificationResult:
    valid: bool
    reason: str
    receipt_type: Optional[str] = None
    issued_at: Optional[datetime] = None
    valid_until: Optional[datetime] = None
    verification_count: int = 0
    criteria: Optional[dict[str, Any]] = None


@dataclass
class AttestationView:
    receipt_id: str
    receipt_type: str
    issued_at: datetime
    valid_until: Optional[datetime]
    verification_count: int
    is_valid: bool


# ---------------------------------------------------------------------------
# Generate / verify
# ---------------------------------------------------------------------------

def _receipt_type(value: Any) -> ReceiptType:
    try:
        return ReceiptType(value)
    except ValueError:
        raise ValidationError("receipt_type", f"unknown receipt type '{value}'") from None


def generate(
    db: Session,
    signer: AttestationSigner,
    identity_hash: str,
    receipt_type: Any,
    validity_hours: int,
    now: datetime,
    criteria: Optional[Mapping[str, Any]] = None,
) -> AttestationReceipt:
    """
    Issue a signed receipt. `validity_hours=0` means the receipt never
    expires. Flush-only: the caller commits.
    """
    rtype = _receipt_type(receipt_type)
    if isinstance(validity_hours, bool) or not isinstance(validity_hours, int) or validity_hours < 0:
        raise ValidationError("validity_hours", "must be an integer >= 0", validity_hours)

    issued_at = _aware(now)
    valid_until = issued_at + timedelta(hours=validity_hours) if validity_hours else None
    receipt_id = str(uuid.uuid4())
    nonce = secrets.token_hex(16)
    stored_criteria = dict(criteria) if criteria is not None else None

    receipt_hash = signer.receipt_hash(receipt_id, rtype.value, issued_at, valid_until, stored_criteria, nonce)
    receipt = AttestationReceipt(
        receipt_id=receipt_id,
        identity_hash=identity_hash,
        receipt_type=rtype,
        receipt_hash=receipt_hash,
        signature=signer.sign(receipt_hash),
        nonce=nonce,
        criteria=stored_criteria,
        issued_at=issued_at,
        valid_until=valid_until,
        verification_count=0,
    )
    try:
        db.add(receipt)
        db.flush()
    except SQLAlchemyError as exc:
        logger.error("attestation_write_failed identity=%s", hash_prefix(identity_hash))
        raise StorageError("generate_attestation") from exc

    logger.info(
        "attestation_issued identity=%s type=%s receipt_id=%s valid_hours=%s",
        hash_prefix(identity_hash), rtype.value, receipt_id, validity_hours,
    )
    return receipt


def verify(
    db: Session,
    signer: AttestationSigner,
    receipt_id: str,
    now: datetime,
    verifier_hash: Optional[str] = None,
) -> VerificationResult:
    """
    Check a receipt. Found receipts get their counter bumped and an audit
    row regardless of outcome. Flush-only: the caller commits.
    """
    try:
        receipt = db.get(AttestationReceipt, receipt_id)
    except SQLAlchemyError as exc:
        raise StorageError("verify_attestation") from exc
    if receipt is None:
        logger.info("attestation_verified receipt_id=%s reason=%s", receipt_id, NOT_FOUND)
        return VerificationResult(valid=False, reason=NOT_FOUND)

    if not signer.check(receipt):
        reason = TAMPERED
    elif receipt.valid_until is not None and _aware(now) >= _aware(receipt.valid_until):
        reason = EXPIRED
    else:
        reason = VALID

    try:
        db.execute(
            update(AttestationReceipt)
            .where(AttestationReceipt.receipt_id == receipt_id)
            .values(verification_count=AttestationReceipt.verification_count + 1)
        )
        db.add(AttestationVerification(
            receipt_id=receipt_id,
            verifier_hash=verifier_hash,
            reason=reason,
            verified_at=_aware(now),
        ))
        db.flush()
        db.refresh(receipt)
    except SQLAlchemyError as exc:
        logger.error("attestation_audit_failed receipt_id=%s", receipt_id)
        raise StorageError("verify_attestation") from exc

    if reason == TAMPERED:
        logger.warning("attestation_tampered receipt_id=%s", receipt_id)
    else:
        logger.info("attestation_verified receipt_id=%s reason=%s", receipt_id, reason)

    return VerificationResult(
        valid=reason == VALID,
        reason=reason,
        receipt_type=_ev(receipt.receipt_type),
        issued_at=receipt.issued_at,
        valid_until=receipt.valid_until,
        verification_count=receipt.verification_count,
        criteria=None if reason == TAMPERED else receipt.criteria,
    )


def verify_many(
    db: Session,
    signer: AttestationSigner,
    receipt_ids: list[str],
    now: datetime,
    verifier_hash: Optional[str] = None,
) -> list[tuple[str, VerificationResult]]:
    """Verify each distinct id once, in request order. Flush-only."""
    if not receipt_ids or len(receipt_ids) > MAX_BATCH_VERIFY:
        raise ValidationError(
            "receipt_ids", f"must hold between 1 and {MAX_BATCH_VERIFY} ids", len(receipt_ids)
        )
    return [
        (receipt_id, verify(db, signer, receipt_id, now, verifier_hash))
        for receipt_id in dict.fromkeys(receipt_ids)
    ]


def verification_url(base_url: str, receipt_id: str) -> str:
    return f"{base_url.rstrip('/')}/attestations/{receipt_id}/verify"


# ---------------------------------------------------------------------------
# Threshold proofs
# ---------------------------------------------------------------------------

def _parse_criterion(criterion: Mapping[str, Any]) -> tuple[str, float, int]:
    ctype = criterion.get("type")
    if ctype not in THRESHOLD_CRITERIA:
        raise ValidationError("type", f"must be one of {list(THRESHOLD_CRITERIA)}", ctype)
    value = criterion.get("value")
    if not is_finite_number(value):
        raise ValidationError("value", "must be a finite number", value)
    weeks = criterion.get("weeks", DEFAULT_THRESHOLD_WEEKS)
    if isinstance(weeks, bool) or not isinstance(weeks, int) or not 1 <= weeks <= 52:
        raise ValidationError("weeks", "must be an integer in [1, 52]", weeks)
    return ctype, float(value), weeks


def _week_holds(ctype: str, threshold: float, week: WeekSnapshot) -> bool:
    if ctype == "stress_below":
        return week.stress_level is not None and week.stress_level < threshold
    if ctype == "energy_above":
        return week.energy_level is not None and week.energy_level > threshold
    return week.reading_count >= threshold


def check_threshold(
    ctype: str,
    threshold: float,
    weeks: int,
    history: list[WeekSnapshot],
    now: datetime,
) -> None:
    """Raise CriteriaNotMetError unless the latest `weeks` buckets all hold."""
    if len(history) < weeks:
        raise CriteriaNotMetError(ctype, f"{len(history)} of {weeks} weeks recorded")
    latest_allowed = week_start_for(_aware(now).date()) - timedelta(weeks=1)
    if history[-1].week_start < latest_allowed:
        raise CriteriaNotMetError(ctype, "no data in the current or previous week")
    for earlier, later in zip(history, history[1:]):
        if later.week_start - earlier.week_start != timedelta(weeks=1):
            raise CriteriaNotMetError(ctype, "weeks are not consecutive")
    failing = sum(1 for week in history if not _week_holds(ctype, threshold, week))
    if failing:
        raise CriteriaNotMetError(ctype, f"{failing} of {weeks} weeks outside the threshold")


def prove_threshold(
    db: Session,
    signer: AttestationSigner,
    identity_hash: str,
    criterion: Mapping[str, Any],
    now: datetime,
    validity_hours: int,
) -> AttestationReceipt:
    """
    Issue a wellness_threshold_met receipt when the criterion held for the
    latest consecutive weeks. The receipt records the criterion, never the
    measured values.
    """
    ctype, threshold, weeks = _parse_criterion(criterion)
    history = get_history(db, identity_hash, weeks=weeks)
    try:
        check_threshold(ctype, threshold, weeks, history, now)
    except CriteriaNotMetError:
        logger.info(
            "threshold_not_met identity=%s criterion=%s weeks=%s",
            hash_prefix(identity_hash), ctype, weeks,
        )
        raise

    return generate(
        db, signer, identity_hash, ReceiptType.wellness_threshold_met, validity_hours, now,
        criteria={"type": ctype, "threshold": threshold, "weeks": weeks},
    )


# ---------------------------------------------------------------------------
# Activity / recovery shortcuts
# ---------------------------------------------------------------------------

def attest_activity(activity: str) -> tuple[ReceiptType, int]:
    """Receipt type and validity window for a completed wellness activity."""
    rtype = ACTIVITY_RECEIPTS.get(activity)
    if rtype is None:
        raise ValidationError("activity", f"must be one of {sorted(ACTIVITY_RECEIPTS)}", activity)
    hours = WELLNESS_CHECK_VALID_HOURS if activity == "wellness_check" else ACTIVITY_VALID_HOURS
    return rtype, hours


def attest_recovery(
    db: Session,
    signer: AttestationSigner,
    identity_hash: str,
    stress_level: float,
    now: datetime,
) -> AttestationReceipt:
    if not is_finite_number(stress_level) or not 0 <= stress_level <= 10:
        raise ValidationError("stress_level", "must be a finite number in [0, 10]", stress_level)
    if stress_level > RECOVERY_MAX_STRESS:
        raise CriteriaNotMetError("recovery", "stress level too high for a recovery attestation")
    return generate(db, signer, identity_hash, ReceiptType.recovery, RECOVERY_VALID_HOURS, now)


# ---------------------------------------------------------------------------
# Read path
# ---------------------------------------------------------------------------

def _is_valid(receipt: AttestationReceipt, now: datetime) -> bool:
    return receipt.valid_until is None or _aware(now) < _aware(receipt.valid_until)


def list_attestations(
    db: Session,
    identity_hash: str,
    now: datetime,
    limit: int = 10,
) -> list[AttestationView]:
    """Most recent receipts first."""
    q = (
        select(AttestationReceipt)
        .where(AttestationReceipt.identity_hash == identity_hash)
        .order_by(AttestationReceipt.issued_at.desc())
        .limit(limit)
    )
    try:
        rows = db.scalars(q).all()
    except SQLAlchemyError as exc:
        raise StorageError("list_attestations") from exc
    return [
        AttestationView(
            receipt_id=r.receipt_id,
            receipt_type=_ev(r.receipt_type),
            issued_at=r.issued_at,
            valid_until=r.valid_until,
            verification_count=r.verification_count,
            is_valid=_is_valid(r, now),
        )
        for r in rows
    ]


def readiness_status(views: list[AttestationView]) -> Optional[AttestationView]:
    """The newest still-valid readiness or shift_ready receipt, if any."""
    for view in views:
        if view.receipt_type in (ReceiptType.readiness.value, ReceiptType.shift_ready.value) and view.is_valid:
            return view
    return None
