"""
Attestation receipts: signing, verification outcomes, threshold proofs.
"""
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import func, select, update

from wellness_core.core.errors import ConfigurationError, CriteriaNotMetError, ValidationError
from wellness_core.models.attestation import AttestationReceipt, AttestationVerification, ReceiptType
from wellness_core.services import attestation
from wellness_core.services.aggregator import upsert_weekly_metrics

ISSUED = datetime(2099, 11, 4, 8, 0, tzinfo=timezone.utc)


@pytest.fixture()
def signer(facade):
    return facade.signer


@pytest.fixture()
def identity(facade, account_id):
    return facade.hasher.hash(account_id)


def _seed_weeks(db, identity, stress_values, end=ISSUED, readings=1):
    """One bucket per week, the last one in the week of `end`."""
    n = len(stress_values)
    for i, stress in enumerate(stress_values):
        when = end - timedelta(weeks=n - 1 - i)
        for _ in range(readings):
            upsert_weekly_metrics(db, identity, {"stress_level": stress, "energy_level": 6.0}, when)
    db.commit()


class TestSigner:
    def test_short_secret_rejected(self):
        with pytest.raises(ConfigurationError):
            attestation.AttestationSigner("short")

    def test_hash_is_deterministic(self, signer):
        args = ("rid", "readiness", ISSUED, None, None, "n" * 32)
        assert signer.receipt_hash(*args) == signer.receipt_hash(*args)

    def test_naive_and_aware_utc_hash_equal(self, signer):
        naive = ISSUED.replace(tzinfo=None)
        assert signer.receipt_hash("r", "readiness", naive, None, None, "n") == \
            signer.receipt_hash("r", "readiness", ISSUED, None, None, "n")

    def test_repr_masks_secret(self, signer):
        assert "***" in repr(signer)


class TestGenerateAndVerify:
    def test_valid_then_expired(self, db, signer, identity):
        receipt = attestation.generate(db, signer, identity, "readiness", 24, ISSUED)
        db.commit()

        ok = attestation.verify(db, signer, receipt.receipt_id, ISSUED + timedelta(hours=1))
        db.commit()
        assert ok.valid is True
        assert ok.reason == "valid"
        assert ok.verification_count == 1

        late = attestation.verify(db, signer, receipt.receipt_id, ISSUED + timedelta(hours=25))
        db.commit()
        assert late.valid is False
        assert late.reason == "expired"
        assert late.verification_count == 2

    def test_boundary_is_expired(self, db, signer, identity):
        receipt = attestation.generate(db, signer, identity, "readiness", 24, ISSUED)
        db.commit()
        result = attestation.verify(db, signer, receipt.receipt_id, ISSUED + timedelta(hours=24))
        assert result.reason == "expired"

    def test_zero_validity_never_expires(self, db, signer, identity):
        receipt = attestation.generate(db, signer, identity, "training_complete", 0, ISSUED)
        db.commit()
        assert receipt.valid_until is None
        result = attestation.verify(db, signer, receipt.receipt_id, ISSUED + timedelta(days=3650))
        assert result.reason == "valid"

    def test_negative_validity_rejected(self, db, signer, identity):
        with pytest.raises(ValidationError):
            attestation.generate(db, signer, identity, "readiness", -1, ISSUED)

    def test_unknown_type_rejected(self, db, signer, identity):
        with pytest.raises(ValidationError):
            attestation.generate(db, signer, identity, "promotion", 24, ISSUED)

    def test_not_found(self, db, signer):
        result = attestation.verify(db, signer, "00000000-0000-0000-0000-000000000000", ISSUED)
        assert result.valid is False
        assert result.reason == "not_found"

    def test_tampered_validity(self, db, signer, identity):
        receipt = attestation.generate(db, signer, identity, "shift_ready", 24, ISSUED)
        db.commit()
        db.execute(
            update(AttestationReceipt)
            .where(AttestationReceipt.receipt_id == receipt.receipt_id)
            .values(valid_until=ISSUED + timedelta(days=365))
        )
        db.commit()
        db.expire_all()

        result = attestation.verify(db, signer, receipt.receipt_id, ISSUED + timedelta(hours=1))
        assert result.valid is False
        assert result.reason == "tampered"
        assert result.criteria is None

    def test_tampered_type(self, db, signer, identity):
        receipt = attestation.generate(db, signer, identity, "break_taken", 24, ISSUED)
        db.commit()
        db.execute(
            update(AttestationReceipt)
            .where(AttestationReceipt.receipt_id == receipt.receipt_id)
            .values(receipt_type=ReceiptType.readiness)
        )
        db.commit()
        db.expire_all()
        assert attestation.verify(db, signer, receipt.receipt_id, ISSUED).reason == "tampered"

    def test_other_secret_sees_tampering(self, db, signer, identity):
        receipt = attestation.generate(db, signer, identity, "readiness", 24, ISSUED)
        db.commit()
        other = attestation.AttestationSigner("a-different-deployment-secret")
        assert attestation.verify(db, other, receipt.receipt_id, ISSUED).reason == "tampered"

    def test_verification_audited(self, db, signer, identity, facade):
        receipt = attestation.generate(db, signer, identity, "readiness", 24, ISSUED)
        db.commit()
        verifier = facade.hasher.hash("verifier-account")
        attestation.verify(db, signer, receipt.receipt_id, ISSUED, verifier_hash=verifier)
        db.commit()

        rows = db.scalars(
            select(AttestationVerification).where(AttestationVerification.receipt_id == receipt.receipt_id)
        ).all()
        assert len(rows) == 1
        assert rows[0].reason == "valid"
        assert rows[0].verifier_hash == verifier


class TestThresholdProof:
    def test_stress_below_held(self, db, signer, identity):
        _seed_weeks(db, identity, [4, 3, 4, 2])
        receipt = attestation.prove_threshold(
            db, signer, identity, {"type": "stress_below", "value": 5, "weeks": 4}, ISSUED, 720,
        )
        db.commit()

        assert receipt.receipt_type == ReceiptType.wellness_threshold_met
        assert receipt.criteria == {"type": "stress_below", "threshold": 5.0, "weeks": 4}
        assert attestation.verify(db, signer, receipt.receipt_id, ISSUED).valid is True

    def test_verification_reports_certified_threshold(self, db, signer, identity):
        _seed_weeks(db, identity, [4.3, 3.7, 2.9])
        receipt = attestation.prove_threshold(
            db, signer, identity, {"type": "stress_below", "value": 5, "weeks": 3}, ISSUED, 720,
        )
        db.commit()

        result = attestation.verify(db, signer, receipt.receipt_id, ISSUED)
        assert result.valid is True
        assert result.criteria == {"type": "stress_below", "threshold": 5.0, "weeks": 3}
        for measured in ("4.3", "3.7", "2.9"):
            assert measured not in repr(result)

    def test_receipt_holds_no_measurements(self, db, signer, identity):
        _seed_weeks(db, identity, [4.3, 3.7, 2.9])
        receipt = attestation.prove_threshold(
            db, signer, identity, {"type": "stress_below", "value": 5, "weeks": 3}, ISSUED, 720,
        )
        db.commit()
        stored = repr(receipt.criteria)
        for measured in ("4.3", "3.7", "2.9"):
            assert measured not in stored

    def test_one_bad_week_fails(self, db, signer, identity):
        _seed_weeks(db, identity, [4, 8, 4, 2])
        with pytest.raises(CriteriaNotMetError) as exc_info:
            attestation.prove_threshold(
                db, signer, identity, {"type": "stress_below", "value": 5}, ISSUED, 720,
            )
        assert exc_info.value.code == "CRITERIA_NOT_MET"
        assert db.scalar(
            select(func.count()).select_from(AttestationReceipt).where(AttestationReceipt.identity_hash == identity)
        ) == 0

    def test_too_few_weeks(self, db, signer, identity):
        _seed_weeks(db, identity, [2, 2])
        with pytest.raises(CriteriaNotMetError):
            attestation.prove_threshold(
                db, signer, identity, {"type": "stress_below", "value": 5, "weeks": 4}, ISSUED, 720,
            )

    def test_gap_in_weeks_fails(self, db, signer, identity):
        for offset in (0, 1, 3):
            upsert_weekly_metrics(db, identity, {"stress_level": 2.0}, ISSUED - timedelta(weeks=offset))
        db.commit()
        with pytest.raises(CriteriaNotMetError):
            attestation.prove_threshold(
                db, signer, identity, {"type": "stress_below", "value": 5, "weeks": 3}, ISSUED, 720,
            )

    def test_stale_data_fails(self, db, signer, identity):
        _seed_weeks(db, identity, [2, 2, 2], end=ISSUED - timedelta(weeks=6))
        with pytest.raises(CriteriaNotMetError):
            attestation.prove_threshold(
                db, signer, identity, {"type": "stress_below", "value": 5, "weeks": 3}, ISSUED, 720,
            )

    def test_energy_above(self, db, signer, identity):
        _seed_weeks(db, identity, [5, 5])
        receipt = attestation.prove_threshold(
            db, signer, identity, {"type": "energy_above", "value": 5, "weeks": 2}, ISSUED, 720,
        )
        assert receipt.criteria["type"] == "energy_above"

    def test_regular_practice(self, db, signer, identity):
        _seed_weeks(db, identity, [5, 5, 5], readings=3)
        receipt = attestation.prove_threshold(
            db, signer, identity, {"type": "regular_practice", "value": 3, "weeks": 3}, ISSUED, 720,
        )
        assert receipt.criteria == {"type": "regular_practice", "threshold": 3.0, "weeks": 3}

    @pytest.mark.parametrize("criterion", [
        {"type": "happiness_above", "value": 5},
        {"type": "stress_below", "value": "5"},
        {"type": "stress_below", "value": float("nan")},
        {"type": "stress_below", "value": 10**400},
        {"type": "stress_below", "value": 5, "weeks": 0},
    ])
    def test_malformed_criterion(self, db, signer, identity, criterion):
        with pytest.raises(ValidationError):
            attestation.prove_threshold(db, signer, identity, criterion, ISSUED, 720)


class TestActivityAndRecovery:
    @pytest.mark.parametrize("activity,rtype,hours", [
        ("wellness_check", ReceiptType.wellness_check, 24),
        ("team_sync", ReceiptType.team_sync, 168),
        ("training", ReceiptType.training_complete, 168),
        ("break", ReceiptType.break_taken, 168),
        ("debrief", ReceiptType.debrief_complete, 168),
    ])
    def test_activity_mapping(self, activity, rtype, hours):
        assert attestation.attest_activity(activity) == (rtype, hours)

    def test_unknown_activity(self):
        with pytest.raises(ValidationError):
            attestation.attest_activity("nap")

    def test_recovery_below_threshold(self, db, signer, identity):
        receipt = attestation.attest_recovery(db, signer, identity, 4, ISSUED)
        assert receipt.receipt_type == ReceiptType.recovery
        assert receipt.valid_until - receipt.issued_at == timedelta(hours=72)

    def test_recovery_stress_too_high(self, db, signer, identity):
        with pytest.raises(CriteriaNotMetError):
            attestation.attest_recovery(db, signer, identity, 6, ISSUED)

    @pytest.mark.parametrize("stress", [10**400, float("nan"), "3", True])
    def test_recovery_malformed_stress(self, db, signer, identity, stress):
        with pytest.raises(ValidationError) as exc_info:
            attestation.attest_recovery(db, signer, identity, stress, ISSUED)
        assert exc_info.value.field == "stress_level"


class TestBatchVerify:
    def test_each_distinct_id_once(self, db, signer, identity):
        receipt = attestation.generate(db, signer, identity, "readiness", 24, ISSUED)
        db.commit()

        results = attestation.verify_many(
            db, signer, [receipt.receipt_id, "missing", receipt.receipt_id], ISSUED,
        )
        db.commit()
        assert [rid for rid, _ in results] == [receipt.receipt_id, "missing"]
        assert [r.reason for _, r in results] == ["valid", "not_found"]
        assert results[0][1].verification_count == 1

    @pytest.mark.parametrize("ids", [[], ["r"] * (attestation.MAX_BATCH_VERIFY + 1)])
    def test_batch_size_bounds(self, db, signer, ids):
        with pytest.raises(ValidationError):
            attestation.verify_many(db, signer, ids, ISSUED)

    def test_verification_url(self):
        assert attestation.verification_url("https://wellness.example/", "abc") == \
            "https://wellness.example/attestations/abc/verify"


class TestListing:
    def test_list_and_readiness(self, db, signer, identity):
        attestation.generate(db, signer, identity, "readiness", 24, ISSUED - timedelta(days=3))
        attestation.generate(db, signer, identity, "shift_ready", 24, ISSUED)
        db.commit()

        views = attestation.list_attestations(db, identity, ISSUED + timedelta(hours=1))
        assert [v.receipt_type for v in views] == ["shift_ready", "readiness"]
        assert [v.is_valid for v in views] == [True, False]
        assert attestation.readiness_status(views).receipt_type == "shift_ready"
