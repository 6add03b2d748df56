"""
Attestation receipts and their verification audit log.

A receipt certifies that something happened (a check-in, a recovery, a
threshold held) without carrying any measurement. `criteria` stores only
the definition of a threshold, never the measured values.
"""
from datetime import datetime
import enum

from sqlalchemy import JSON, DateTime, Enum, ForeignKey, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from wellness_core.db.base import Base


class ReceiptType(str, enum.Enum):
    readiness = "readiness"
    recovery = "recovery"
    wellness_check = "wellness_check"
    team_sync = "team_sync"
    training_complete = "training_complete"
    shift_ready = "shift_ready"
    break_taken = "break_taken"
    debrief_complete = "debrief_complete"
    wellness_threshold_met = "wellness_threshold_met"


class AttestationReceipt(Base):
    __tablename__ = "attestation_receipts"

    receipt_id: Mapped[str] = mapped_column(String(36), primary_key=True)
    identity_hash: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    receipt_type: Mapped[str] = mapped_column(
        Enum(ReceiptType, name="receipt_type_enum"), nullable=False
    )
    receipt_hash: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    signature: Mapped[str] = mapped_column(String(64), nullable=False)
    nonce: Mapped[str] = mapped_column(String(32), nullable=False)
    criteria: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    issued_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    valid_until: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    verification_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


class AttestationVerification(Base):
    __tablename__ = "attestation_verifications"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    receipt_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("attestation_receipts.receipt_id"), nullable=False, index=True
    )
    verifier_hash: Mapped[str | None] = mapped_column(String(64), nullable=True)
    reason: Mapped[str] = mapped_column(String(16), nullable=False)
    verified_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
