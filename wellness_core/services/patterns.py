"""
Pattern detector: classify a weekly bucket's latest values into a trend code.

Priority (first match wins)
---------------------------
  1. burnout_score > 7  -> BURNOUT_RISK      (0.95)  overrides any stress code
  2. stress_level  > 7  -> STRESS_RISING     (0.90)
  3. stress_level  < 3  -> STRESS_DECLINING  (0.85)
  4. stress present     -> STRESS_STABLE     (0.70)

No stress and no qualifying burnout value -> no insight is written.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from wellness_core.core.errors import StorageError, ValidationError
from wellness_core.models.pattern_insight import PatternCode, PatternInsight
from wellness_core.schemas.submission import is_finite_number
from wellness_core.services.aggregator import month_start_for
from wellness_core.services.identity import hash_prefix

logger = logging.getLogger(__name__)

BURNOUT_THRESHOLD = 7.0
STRESS_HIGH_THRESHOLD = 7.0
STRESS_LOW_THRESHOLD = 3.0


@dataclass(frozen=True)
class PatternResult:
    code: PatternCode
    confidence: float


def _checked(name: str, value: Optional[float]) -> Optional[float]:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(name, "must be a number", value)
    if not is_finite_number(value) or not 0 <= value <= 10:
        raise ValidationError(name, "must be a finite number in [0, 10]", value)
    return float(value)


def classify(
    stress_level: Optional[float],
    burnout_score: Optional[float],
) -> Optional[PatternResult]:
    stress = _checked("stress_level", stress_level)
    burnout = _checked("burnout_score", burnout_score)

    if burnout is not None and burnout > BURNOUT_THRESHOLD:
        return PatternResult(PatternCode.BURNOUT_RISK, 0.95)
    if stress is None:
        return None
    if stress > STRESS_HIGH_THRESHOLD:
        return PatternResult(PatternCode.STRESS_RISING, 0.9)
    if stress < STRESS_LOW_THRESHOLD:
        return PatternResult(PatternCode.STRESS_DECLINING, 0.85)
    return PatternResult(PatternCode.STRESS_STABLE, 0.7)


def record_pattern(
    db: Session,
    identity_hash: str,
    stress_level: Optional[float],
    burnout_score: Optional[float],
    now: datetime,
) -> Optional[PatternInsight]:
    """Classify and append a PatternInsight. Flush-only: the caller commits."""
    result = classify(stress_level, burnout_score)
    if result is None:
        return None

    insight = PatternInsight(
        identity_hash=identity_hash,
        pattern_code=result.code,
        confidence=result.confidence,
        month_start=month_start_for(now.date()),
    )
    try:
        db.add(insight)
        db.flush()
    except SQLAlchemyError as exc:
        logger.error("pattern_write_failed identity=%s", hash_prefix(identity_hash))
        raise StorageError("record_pattern") from exc

    logger.info(
        "pattern_recorded identity=%s code=%s",
        hash_prefix(identity_hash), result.code.value,
    )
    return insight


def get_pattern_codes(
    db: Session,
    identity_hash: str,
    since: Optional[date] = None,
) -> list[str]:
    """Distinct pattern codes for a handle, in first-seen order."""
    q = select(PatternInsight.pattern_code).where(PatternInsight.identity_hash == identity_hash)
    if since is not None:
        q = q.where(PatternInsight.month_start >= month_start_for(since))
    q = q.order_by(PatternInsight.id)
    try:
        codes = db.scalars(q).all()
    except SQLAlchemyError as exc:
        raise StorageError("read_pattern_insights") from exc
    seen: dict[str, None] = {}
    for code in codes:
        seen.setdefault(code.value if hasattr(code, "value") else str(code), None)
    return list(seen)
