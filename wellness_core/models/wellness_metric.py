"""
WellnessMetric — weekly bucket of a pseudonymous user's core numbers.

One row per (identity_hash, week_start), written by an atomic
INSERT ... ON CONFLICT DO UPDATE. Per field, the last write wins.
"""
from datetime import date, datetime

from sqlalchemy import Boolean, Date, DateTime, Integer, Numeric, String, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from wellness_core.db.base import Base


class WellnessMetric(Base):
    __tablename__ = "wellness_metrics"
    __table_args__ = (
        UniqueConstraint("identity_hash", "week_start", name="uq_wellness_identity_week"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    identity_hash: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    week_start: Mapped[date] = mapped_column(
        Date, nullable=False, index=True, comment="Monday of the ISO week (UTC)"
    )
    stress_level: Mapped[float | None] = mapped_column(Numeric(3, 1, asdecimal=False), nullable=True)
    energy_level: Mapped[float | None] = mapped_column(Numeric(3, 1, asdecimal=False), nullable=True)
    confidence_score: Mapped[float | None] = mapped_column(Numeric(3, 1, asdecimal=False), nullable=True)
    burnout_score: Mapped[float | None] = mapped_column(Numeric(3, 1, asdecimal=False), nullable=True)
    high_stress_pattern: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    recovery_needed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    reading_count: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, comment="Submissions merged into this bucket"
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
