"""
EmotionalLaborEntry — append-only log of per-session assessments.

assessment / compensation hold the serialized dataclasses from
wellness_core/services/emotional_labor.py. The raw session id is never
stored, only its hash.
"""
from datetime import datetime

from sqlalchemy import JSON, DateTime, Enum, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from wellness_core.db.base import Base
from wellness_core.models.reflection import ContextType


class EmotionalLaborEntry(Base):
    __tablename__ = "emotional_labor_entries"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    identity_hash: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    session_hash: Mapped[str] = mapped_column(String(64), nullable=False)
    context_category: Mapped[str] = mapped_column(
        Enum(ContextType, name="context_type_enum"), nullable=False
    )
    assessment: Mapped[dict] = mapped_column(JSON, nullable=False)
    compensation: Mapped[dict] = mapped_column(JSON, nullable=False)
    recorded_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, index=True
    )
