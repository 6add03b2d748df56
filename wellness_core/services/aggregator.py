"""
Metrics aggregator: weekly buckets keyed by (identity_hash, week_start).

Public API
----------
week_start_for(day)                                   -> date
upsert_weekly_metrics(db, identity_hash, metrics, now) -> WellnessMetric
get_history(db, identity_hash, weeks, since)          -> list[WeekSnapshot]

Merge policy
------------
Last write wins per field: a submission only overwrites the fields it
carries. `high_stress_pattern` (stress > 7) and `recovery_needed`
(energy < 4) are recomputed whenever their source field is written.

The upsert is a single INSERT ... ON CONFLICT DO UPDATE statement, so two
submissions racing on the same week cannot lose each other's fields. This
module holds no locks. Flush-only: the caller commits.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Mapping, Optional

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from wellness_core.core.errors import StorageError
from wellness_core.models.wellness_metric import WellnessMetric
from wellness_core.services.identity import hash_prefix

logger = logging.getLogger(__name__)

HIGH_STRESS_THRESHOLD = 7.0
LOW_ENERGY_THRESHOLD = 4.0

# anonymized metric name -> bucket column, in priority order per column
_COLUMN_SOURCES: dict[str, tuple[str, ...]] = {
    "stress_level": ("stress_level",),
    "energy_level": ("energy_level",),
    "confidence_score": ("confidence", "confidence_level"),
    "burnout_score": ("burnout_score",),
}


# ---------------------------------------------------------------------------
# Result types
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class WeekSnapshot:
    """Plain read model of one weekly bucket (no ORM)."""
    week_start: date
    stress_level: Optional[float] = None
    energy_level: Optional[float] = None
    confidence_score: Optional[float] = None
    burnout_score: Optional[float] = None
    reading_count: int = 1
    updated_at: Optional[datetime] = None

    @property
    def high_stress(self) -> bool:
        return self.stress_level is not None and self.stress_level > HIGH_STRESS_THRESHOLD

    @property
    def low_energy(self) -> bool:
        return self.energy_level is not None and self.energy_level < LOW_ENERGY_THRESHOLD


def snapshot_from_bucket(bucket: WellnessMetric) -> WeekSnapshot:
    return WeekSnapshot(
        week_start=bucket.week_start,
        stress_level=bucket.stress_level,
        energy_level=bucket.energy_level,
        confidence_score=bucket.confidence_score,
        burnout_score=bucket.burnout_score,
        reading_count=bucket.reading_count,
        updated_at=bucket.updated_at,
    )


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def week_start_for(day: date) -> date:
    """Monday of the ISO week containing `day`."""
    return day - timedelta(days=day.weekday())


def month_start_for(day: date) -> date:
    return day.replace(day=1)


def bucket_values(metrics: Mapping[str, float]) -> dict[str, object]:
    """Map anonymized metrics onto bucket columns, deriving the two flags."""
    values: dict[str, object] = {}
    for column, sources in _COLUMN_SOURCES.items():
        for source in sources:
            if metrics.get(source) is not None:
                values[column] = float(metrics[source])
                break
    if "stress_level" in values:
        values["high_stress_pattern"] = values["stress_level"] > HIGH_STRESS_THRESHOLD
    if "energy_level" in values:
        values["recovery_needed"] = values["energy_level"] < LOW_ENERGY_THRESHOLD
    return values


def _dialect_insert(db: Session):
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        return pg_insert
    if dialect == "sqlite":
        return sqlite_insert
    raise StorageError(
        "aggregate_weekly_metrics",
        message=f"Dialect '{dialect}' has no atomic upsert support configured.",
    )


# ---------------------------------------------------------------------------
# Public: write path
# ---------------------------------------------------------------------------

def upsert_weekly_metrics(
    db: Session,
    identity_hash: str,
    metrics: Mapping[str, float],
    now: datetime,
) -> WellnessMetric:
    """
    Merge one submission's metrics into the bucket for the week of `now`.
    Returns the merged row as stored.
    """
    week_start = week_start_for(now.date())
    values = bucket_values(metrics)
    table = WellnessMetric.__table__

    insert = _dialect_insert(db)
    stmt = insert(WellnessMetric).values(
        identity_hash=identity_hash,
        week_start=week_start,
        high_stress_pattern=values.get("high_stress_pattern", False),
        recovery_needed=values.get("recovery_needed", False),
        reading_count=1,
        updated_at=now,
        **{k: v for k, v in values.items() if k in _COLUMN_SOURCES},
    )
    update_set = {name: stmt.excluded[name] for name in values}
    update_set["reading_count"] = table.c.reading_count + 1
    update_set["updated_at"] = stmt.excluded.updated_at
    stmt = stmt.on_conflict_do_update(
        index_elements=["identity_hash", "week_start"],
        set_=update_set,
    ).returning(WellnessMetric)

    try:
        bucket = db.scalars(stmt, execution_options={"populate_existing": True}).one()
    except SQLAlchemyError as exc:
        logger.error(
            "weekly_upsert_failed identity=%s week_start=%s",
            hash_prefix(identity_hash), week_start,
        )
        raise StorageError("aggregate_weekly_metrics") from exc

    logger.info(
        "weekly_bucket_upserted identity=%s week_start=%s fields=%s readings=%s",
        hash_prefix(identity_hash), week_start, sorted(values), bucket.reading_count,
    )
    return bucket


# ---------------------------------------------------------------------------
# Public: read path
# ---------------------------------------------------------------------------

def get_history(
    db: Session,
    identity_hash: str,
    weeks: Optional[int] = None,
    since: Optional[date] = None,
) -> list[WeekSnapshot]:
    """Weekly buckets oldest -> newest, optionally the latest `weeks` only."""
    q = select(WellnessMetric).where(WellnessMetric.identity_hash == identity_hash)
    if since is not None:
        q = q.where(WellnessMetric.week_start >= since)
    q = q.order_by(WellnessMetric.week_start.desc())
    if weeks is not None:
        q = q.limit(weeks)
    try:
        rows = db.scalars(q).all()
    except SQLAlchemyError as exc:
        raise StorageError("read_weekly_history") from exc
    return [snapshot_from_bucket(r) for r in reversed(rows)]
