"""
WellnessCore: the explicit context object behind every entry point.

Built once from Settings with `WellnessCore.init(settings)` and passed (or
stored on `app.state.core`) instead of living in module globals. Each method
takes a request-scoped `db` Session; methods that write commit exactly once
and roll back on failure.

Raw account ids enter here and are hashed immediately. Nothing below this
module ever sees them.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from typing import Any, Mapping, Optional, Union

from sqlalchemy import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from wellness_core.core.config import Settings
from wellness_core.core.errors import StorageError, ValidationError, WellnessCoreError
from wellness_core.db.base import build_engine, build_session_factory
from wellness_core.models.reflection import AnonymizedReflection
from wellness_core.services import attestation, burnout, emotional_labor, insights
from wellness_core.services.aggregator import get_history, upsert_weekly_metrics, week_start_for
from wellness_core.services.anonymizer import anonymize
from wellness_core.services.identity import IdentityHasher, hash_prefix, hash_session
from wellness_core.services.interventions import InterventionPlan, build_intervention_plan
from wellness_core.services.patterns import record_pattern

logger = logging.getLogger(__name__)

ASSESSMENT_HISTORY_WEEKS = 12


def _now() -> datetime:
    return datetime.now(tz=timezone.utc)


# ---------------------------------------------------------------------------
# Result types
# ---------------------------------------------------------------------------

@dataclass
class SubmissionAck:
    reflection_id: int
    category: str
    context_type: str
    week_start: date
    metrics_recorded: list[str] = field(default_factory=list)
    pattern_code: Optional[str] = None


@dataclass
class EmotionalLaborResult:
    context: str
    assessment: emotional_labor.EmotionalLaborAssessment
    compensation: emotional_labor.EmotionalLaborCompensation
    recorded_at: datetime


# ---------------------------------------------------------------------------
# Facade
# ---------------------------------------------------------------------------

class WellnessCore:
    def __init__(
        self,
        settings: Settings,
        engine: Engine,
        session_factory: sessionmaker[Session],
        hasher: IdentityHasher,
        signer: attestation.AttestationSigner,
    ):
        self.settings = settings
        self.engine = engine
        self.session_factory = session_factory
        self.hasher = hasher
        self.signer = signer

    @classmethod
    def init(cls, settings: Settings) -> "WellnessCore":
        """Validate the secret and build the engine. Raises ConfigurationError."""
        hasher = IdentityHasher.from_settings(settings)
        signer = attestation.AttestationSigner(settings.ZKWV_SALT)
        engine = build_engine(settings.DATABASE_URL)
        logger.info("wellness_core_initialized env=%s", settings.APP_ENV)
        return cls(settings, engine, build_session_factory(engine), hasher, signer)

    def close(self) -> None:
        self.engine.dispose()

    def __repr__(self) -> str:
        return f"WellnessCore(env={self.settings.APP_ENV!r})"

    # -- transaction helper -------------------------------------------------

    @staticmethod
    def _commit(db: Session, operation: str) -> None:
        try:
            db.commit()
        except SQLAlchemyError as exc:
            db.rollback()
            raise StorageError(operation) from exc

    # -- reflections ---------------------------------------------------------

    def submit_reflection(
        self,
        db: Session,
        account_id: str,
        type_hint: Optional[str],
        raw_fields: Any,
        session_id: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> SubmissionAck:
        """
        anonymize -> append reflection -> upsert weekly bucket -> record pattern,
        all in one transaction.
        """
        now = now or _now()
        identity_hash = self.hasher.hash(account_id)
        draft = anonymize(
            identity_hash=identity_hash,
            session_hash=hash_session(session_id),
            type_hint=type_hint,
            raw_fields=raw_fields,
            week_start=week_start_for(now.date()),
            now=now,
        )

        try:
            reflection = AnonymizedReflection(
                identity_hash=draft.identity_hash,
                session_hash=draft.session_hash,
                category=draft.category,
                metrics=dict(draft.metrics),
                context_type=draft.context_type,
                week_start=draft.week_start,
                created_at=draft.created_at,
            )
            db.add(reflection)
            db.flush()

            bucket = upsert_weekly_metrics(db, identity_hash, draft.metrics, now)
            insight = record_pattern(db, identity_hash, bucket.stress_level, bucket.burnout_score, now)
            db.commit()
        except WellnessCoreError:
            db.rollback()
            raise
        except SQLAlchemyError as exc:
            db.rollback()
            logger.error("reflection_submit_failed identity=%s", hash_prefix(identity_hash))
            raise StorageError("submit_reflection") from exc

        logger.info(
            "reflection_submitted identity=%s category=%s context=%s metrics=%s",
            hash_prefix(identity_hash), draft.category.value, draft.context_type.value, len(draft.metrics),
        )
        return SubmissionAck(
            reflection_id=reflection.id,
            category=draft.category.value,
            context_type=draft.context_type.value,
            week_start=draft.week_start,
            metrics_recorded=sorted(draft.metrics),
            pattern_code=insight.pattern_code.value if insight is not None else None,
        )

    def get_wellness_insights(
        self,
        db: Session,
        account_id: str,
        time_range: str = "month",
        now: Optional[datetime] = None,
    ) -> insights.WellnessInsights:
        return insights.get_wellness_insights(db, self.hasher.hash(account_id), time_range, now or _now())

    # -- burnout -------------------------------------------------------------

    def _history(self, db: Session, account_id: str):
        return get_history(db, self.hasher.hash(account_id), weeks=ASSESSMENT_HISTORY_WEEKS)

    def get_burnout_risk(
        self,
        db: Session,
        account_id: str,
        policy: Union[str, burnout.InsufficientDataPolicy] = burnout.InsufficientDataPolicy.report,
        now: Optional[datetime] = None,
    ) -> burnout.RiskOutcome:
        try:
            policy = burnout.InsufficientDataPolicy(policy)
        except ValueError:
            raise ValidationError(
                "policy", f"must be one of {[p.value for p in burnout.InsufficientDataPolicy]}", policy
            ) from None
        return burnout.assess(self._history(db, account_id), now or _now(), policy)

    def get_intervention_plan(
        self,
        db: Session,
        account_id: str,
        now: Optional[datetime] = None,
    ) -> tuple[burnout.BurnoutRiskAssessment, InterventionPlan]:
        """Short histories get the provisional moderate assessment's plan."""
        assessment = burnout.assess(
            self._history(db, account_id), now or _now(), burnout.InsufficientDataPolicy.provisional
        )
        return assessment, build_intervention_plan(assessment)

    def get_burnout_trend(
        self,
        db: Session,
        account_id: str,
        weeks: int = 12,
        now: Optional[datetime] = None,
    ) -> list[burnout.RiskTrendPoint]:
        if isinstance(weeks, bool) or not isinstance(weeks, int) or not 1 <= weeks <= 104:
            raise ValidationError("weeks", "must be an integer in [1, 104]", weeks)
        now = now or _now()
        since = week_start_for(now.date()) - timedelta(weeks=weeks - 1)
        return burnout.risk_trend(get_history(db, self.hasher.hash(account_id), since=since))

    def assess_team(
        self,
        rollup: burnout.TeamRollup,
        org_id: str,
        now: Optional[datetime] = None,
    ) -> burnout.TeamBurnoutAssessment:
        return burnout.assess_team(org_id, rollup, now or _now())

    # -- emotional labor -----------------------------------------------------

    def record_emotional_labor(
        self,
        db: Session,
        account_id: str,
        session: Union[emotional_labor.SessionRecord, Mapping[str, Any]],
        base_rate: float,
        session_id: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> EmotionalLaborResult:
        now = now or _now()
        identity_hash = self.hasher.hash(account_id)
        if not isinstance(session, emotional_labor.SessionRecord):
            session = emotional_labor.SessionRecord.create(**session)

        assessment = emotional_labor.assess(session)
        compensation = emotional_labor.compensate(
            base_rate, assessment, session.context, session.trauma_exposure
        )
        try:
            emotional_labor.record_entry(
                db, identity_hash, hash_session(session_id), session.context,
                assessment, compensation, now,
            )
        except StorageError:
            db.rollback()
            raise
        self._commit(db, "record_emotional_labor")
        return EmotionalLaborResult(
            context=session.context.value,
            assessment=assessment,
            compensation=compensation,
            recorded_at=now,
        )

    def get_emotional_labor_analytics(
        self,
        db: Session,
        account_id: str,
        time_range: str = "month",
        now: Optional[datetime] = None,
    ) -> emotional_labor.EmotionalLaborAnalytics:
        days = insights.TIME_RANGE_DAYS.get(time_range)
        if days is None:
            raise ValidationError("time_range", f"must be one of {list(insights.TIME_RANGE_DAYS)}", time_range)
        since = (now or _now()) - timedelta(days=days)
        entries = emotional_labor.get_entries(db, self.hasher.hash(account_id), since=since)
        return emotional_labor.summarize_entries(entries)

    # -- attestations --------------------------------------------------------

    def _issue(self, db: Session, operation: str, issue) -> attestation.AttestationReceipt:
        try:
            receipt = issue()
        except StorageError:
            db.rollback()
            raise
        self._commit(db, operation)
        return receipt

    def issue_attestation(
        self,
        db: Session,
        account_id: str,
        receipt_type: str,
        validity_hours: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> attestation.AttestationReceipt:
        hours = self.settings.ATTESTATION_DEFAULT_VALID_HOURS if validity_hours is None else validity_hours
        identity_hash = self.hasher.hash(account_id)
        return self._issue(db, "generate_attestation", lambda: attestation.generate(
            db, self.signer, identity_hash, receipt_type, hours, now or _now(),
        ))

    def attest_activity(
        self,
        db: Session,
        account_id: str,
        activity: str,
        now: Optional[datetime] = None,
    ) -> attestation.AttestationReceipt:
        receipt_type, hours = attestation.attest_activity(activity)
        return self.issue_attestation(db, account_id, receipt_type.value, hours, now)

    def attest_recovery(
        self,
        db: Session,
        account_id: str,
        stress_level: float,
        now: Optional[datetime] = None,
    ) -> attestation.AttestationReceipt:
        identity_hash = self.hasher.hash(account_id)
        return self._issue(db, "generate_attestation", lambda: attestation.attest_recovery(
            db, self.signer, identity_hash, stress_level, now or _now(),
        ))

    def verify_attestation(
        self,
        db: Session,
        receipt_id: str,
        verifier_id: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> attestation.VerificationResult:
        verifier_hash = self.hasher.hash(verifier_id) if verifier_id else None
        try:
            result = attestation.verify(db, self.signer, receipt_id, now or _now(), verifier_hash)
        except StorageError:
            db.rollback()
            raise
        self._commit(db, "verify_attestation")
        return result

    def verify_attestations(
        self,
        db: Session,
        receipt_ids: list[str],
        verifier_id: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> list[tuple[str, attestation.VerificationResult]]:
        """Batch verify; every found receipt is counted and audited in one commit."""
        verifier_hash = self.hasher.hash(verifier_id) if verifier_id else None
        try:
            results = attestation.verify_many(db, self.signer, receipt_ids, now or _now(), verifier_hash)
        except StorageError:
            db.rollback()
            raise
        self._commit(db, "verify_attestations")
        return results

    def verification_url(self, receipt_id: str) -> str:
        return attestation.verification_url(self.settings.PUBLIC_BASE_URL, receipt_id)

    def prove_threshold(
        self,
        db: Session,
        account_id: str,
        criterion: Mapping[str, Any],
        now: Optional[datetime] = None,
    ) -> attestation.AttestationReceipt:
        identity_hash = self.hasher.hash(account_id)
        return self._issue(db, "prove_threshold", lambda: attestation.prove_threshold(
            db, self.signer, identity_hash, criterion, now or _now(),
            self.settings.THRESHOLD_PROOF_VALID_HOURS,
        ))

    def list_attestations(
        self,
        db: Session,
        account_id: str,
        limit: int = 10,
        now: Optional[datetime] = None,
    ) -> list[attestation.AttestationView]:
        return attestation.list_attestations(db, self.hasher.hash(account_id), now or _now(), limit)

    def check_readiness(
        self,
        db: Session,
        account_id: str,
        now: Optional[datetime] = None,
    ) -> Optional[attestation.AttestationView]:
        views = self.list_attestations(db, account_id, limit=5, now=now)
        return attestation.readiness_status(views)
