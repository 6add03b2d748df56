"""
Reflection submission schemas.

POST /reflections → ReflectionRequest → SubmissionAckResponse

`fields` is deliberately loose: it may carry free text, unknown keys or
out-of-range numbers. The anonymizer drops everything that is not an
allow-listed metric for the resolved category.
"""
from __future__ import annotations

from typing import Annotated, Any, Optional

from pydantic import BaseModel, Field


class ReflectionRequest(BaseModel):
    account_id: Annotated[str, Field(
        min_length=1,
        max_length=256,
        description="Caller's account id. Hashed on arrival, never stored.",
    )]
    type_hint: Optional[str] = Field(
        default=None,
        description="Free-text reflection type used to pick a category.",
        examples=["pre_assignment_prep", "wellness_check", "team sync"],
    )
    fields: dict[str, Any] = Field(
        default_factory=dict,
        description="Raw reflection form fields.",
        examples=[{"stress_level": 6, "energy_level": 5, "notes": "dropped on arrival"}],
    )
    session_id: Optional[str] = Field(
        default=None,
        max_length=256,
        description="Session id for grouping. Hashed; random when omitted.",
    )


class SubmissionAckResponse(BaseModel):
    success: bool = True
    reflection_id: int
    category: str = Field(description="Resolved reflection category.")
    context_type: str = Field(description="Resolved assignment context.")
    week_start: str = Field(description="Monday (UTC) of the bucket week.")
    metrics_recorded: list[str] = Field(description="Names of the metrics kept.")
    pattern_code: Optional[str] = Field(
        default=None,
        description="Pattern recorded for the bucket after this submission, if any.",
    )
