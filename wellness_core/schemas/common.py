"""
Error envelope shared by every router's `responses=` declarations.

Body shape for all 4xx/5xx responses:

    {"code": "VALIDATION_ERROR", "message": "...", "details": {...}}
"""
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field

ErrorCode = Literal[
    "VALIDATION_ERROR",
    "INSUFFICIENT_DATA",
    "CRITERIA_NOT_MET",
    "STORAGE_ERROR",
    "CONFIGURATION_ERROR",
    "INTERNAL_ERROR",
]


class FieldError(BaseModel):
    """One request-body problem, as listed under `details.errors`."""
    field: str = Field(examples=["session.emotional_intensity"])
    message: str
    type: str


class ErrorResponse(BaseModel):
    code: ErrorCode
    message: str
    details: Optional[dict[str, Any]] = Field(
        default=None,
        description=(
            "VALIDATION_ERROR carries `field` (and `errors` for request bodies); "
            "INSUFFICIENT_DATA carries `data_points` and `required`; "
            "CRITERIA_NOT_MET carries `criterion` and `reason`."
        ),
    )
