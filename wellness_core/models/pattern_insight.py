"""
PatternInsight — append-only log of trend codes written by the detector.

pattern_code values (see wellness_core/services/patterns.py):
  "BURNOUT_RISK"      — burnout_score > 7 (overrides stress codes)
  "STRESS_RISING"     — stress_level > 7
  "STRESS_DECLINING"  — stress_level < 3
  "STRESS_STABLE"     — otherwise
"""
from datetime import date, datetime
import enum

from sqlalchemy import Date, DateTime, Enum, Integer, Numeric, String, func
from sqlalchemy.orm import Mapped, mapped_column

from wellness_core.db.base import Base


class PatternCode(str, enum.Enum):
    BURNOUT_RISK = "BURNOUT_RISK"
    STRESS_RISING = "STRESS_RISING"
    STRESS_DECLINING = "STRESS_DECLINING"
    STRESS_STABLE = "STRESS_STABLE"


class PatternInsight(Base):
    __tablename__ = "pattern_insights"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    identity_hash: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    pattern_code: Mapped[str] = mapped_column(
        Enum(PatternCode, name="pattern_code_enum"), nullable=False, index=True
    )
    confidence: Mapped[float] = mapped_column(Numeric(3, 2, asdecimal=False), nullable=False)
    month_start: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
