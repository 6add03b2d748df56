"""
AnonymizedReflection — one row per self-report, stripped to numbers and labels.

Append-only. The only string columns are the two hashes and enum labels;
there is no column that can hold free text.
"""
from datetime import date, datetime
import enum

from sqlalchemy import JSON, Date, DateTime, Enum, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from wellness_core.db.base import Base


class ReflectionCategory(str, enum.Enum):
    wellness_check = "wellness_check"
    session_reflection = "session_reflection"
    team_sync = "team_sync"
    values_alignment = "values_alignment"
    stress_management = "stress_management"
    growth_assessment = "growth_assessment"


class ContextType(str, enum.Enum):
    medical = "medical"
    legal = "legal"
    educational = "educational"
    mental_health = "mental_health"
    community = "community"
    general = "general"


class AnonymizedReflection(Base):
    __tablename__ = "anonymized_reflections"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    identity_hash: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    session_hash: Mapped[str] = mapped_column(String(64), nullable=False)
    category: Mapped[str] = mapped_column(
        Enum(ReflectionCategory, name="reflection_category_enum"), nullable=False
    )
    metrics: Mapped[dict] = mapped_column(
        JSON, nullable=False, default=dict,
        comment="Allow-listed metric name -> number in [0, 10], one decimal",
    )
    context_type: Mapped[str] = mapped_column(
        Enum(ContextType, name="context_type_enum"), nullable=False, default=ContextType.general
    )
    week_start: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
