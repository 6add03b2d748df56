"""
Anonymizer: the single privacy choke-point between the host app and storage.

A submission comes in as (type hint, arbitrary field map). What comes out is
an AnonymizedDraft holding only:
  - a category label, resolved from the hint by keyword
  - allow-listed numeric metrics (see wellness_core/schemas/submission.py)
  - a coarse context label, resolved from an optional context field

Everything else, including every piece of free text, is dropped. Unknown
or malformed input is ignored, never rejected.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Mapping, Optional

from wellness_core.models.reflection import ContextType, ReflectionCategory
from wellness_core.schemas.submission import submission_adapter

# Ordered: first keyword found in the hint wins.
_CATEGORY_KEYWORDS: tuple[tuple[str, ReflectionCategory], ...] = (
    ("wellness", ReflectionCategory.wellness_check),
    ("session", ReflectionCategory.session_reflection),
    ("team", ReflectionCategory.team_sync),
    ("values", ReflectionCategory.values_alignment),
    ("stress", ReflectionCategory.stress_management),
    ("growth", ReflectionCategory.growth_assessment),
)
DEFAULT_CATEGORY = ReflectionCategory.session_reflection

_CONTEXT_KEYWORDS: tuple[tuple[str, ContextType], ...] = (
    ("medical", ContextType.medical),
    ("legal", ContextType.legal),
    ("education", ContextType.educational),
    ("mental", ContextType.mental_health),
    ("community", ContextType.community),
)
DEFAULT_CONTEXT = ContextType.general

_CONTEXT_FIELDS = ("context_type", "assignment_type", "context")
_HINT_FIELDS = ("reflection_type", "type")


@dataclass(frozen=True)
class AnonymizedDraft:
    """Anonymized reflection before persistence (no ids, no timestamps from the DB)."""
    identity_hash: str
    session_hash: str
    category: ReflectionCategory
    context_type: ContextType
    week_start: date
    created_at: datetime
    metrics: dict[str, float] = field(default_factory=dict)


def resolve_category(type_hint: Any) -> ReflectionCategory:
    if not isinstance(type_hint, str):
        return DEFAULT_CATEGORY
    lowered = type_hint.lower()
    for keyword, category in _CATEGORY_KEYWORDS:
        if keyword in lowered:
            return category
    return DEFAULT_CATEGORY


def resolve_context(raw_fields: Mapping[str, Any]) -> ContextType:
    for name in _CONTEXT_FIELDS:
        value = raw_fields.get(name)
        if isinstance(value, str) and value.strip():
            lowered = value.lower()
            for keyword, context in _CONTEXT_KEYWORDS:
                if keyword in lowered:
                    return context
            return DEFAULT_CONTEXT
    return DEFAULT_CONTEXT


def extract_metrics(category: ReflectionCategory, raw_fields: Mapping[str, Any]) -> dict[str, float]:
    """Validate the field map against the category's shape and keep its metrics."""
    payload = {k: v for k, v in raw_fields.items() if isinstance(k, str) and k != "category"}
    payload["category"] = category.value
    shape = submission_adapter.validate_python(payload)
    return shape.metrics()


def anonymize(
    identity_hash: str,
    session_hash: str,
    type_hint: Optional[str],
    raw_fields: Any,
    week_start: date,
    now: datetime,
) -> AnonymizedDraft:
    if not isinstance(raw_fields, Mapping):
        raw_fields = {}

    hint = type_hint
    if not (isinstance(hint, str) and hint.strip()):
        hint = next(
            (raw_fields[f] for f in _HINT_FIELDS if isinstance(raw_fields.get(f), str)),
            "",
        )
    category = resolve_category(hint)

    return AnonymizedDraft(
        identity_hash=identity_hash,
        session_hash=session_hash,
        category=category,
        context_type=resolve_context(raw_fields),
        week_start=week_start,
        created_at=now,
        metrics=extract_metrics(category, raw_fields),
    )
