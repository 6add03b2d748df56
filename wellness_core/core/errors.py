"""
Exception hierarchy for the wellness analytics core.

Rule: every error carries a machine-readable `code` string so callers
can branch on it without parsing English messages.

Attestation verification misses (not found / expired / tampered) are NOT
exceptions; they come back as a VerificationResult with `valid=False`.
"""
from __future__ import annotations

import logging
from typing import Any

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette import status

from wellness_core.schemas.common import FieldError

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Exception classes
# ---------------------------------------------------------------------------

class WellnessCoreError(Exception):
    """Base class for all application-level errors."""
    http_status: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "INTERNAL_ERROR"

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict:
        payload: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class ConfigurationError(WellnessCoreError):
    http_status = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "CONFIGURATION_ERROR"


def _display(value: Any) -> str:
    try:
        return repr(value)[:200]
    except ValueError:
        # int beyond the interpreter's str conversion limit
        return f"<{type(value).__name__} too large to display>"


class ValidationError(WellnessCoreError):
    """Malformed numeric input that would corrupt a score or compensation figure."""
    http_status = status.HTTP_422_UNPROCESSABLE_ENTITY
    code = "VALIDATION_ERROR"

    def __init__(self, field: str, message: str, value: Any = None):
        details: dict[str, Any] = {"field": field}
        if value is not None:
            details["value"] = _display(value)
        super().__init__(message=f"{field}: {message}", details=details)
        self.field = field


class InsufficientDataError(WellnessCoreError):
    http_status = status.HTTP_409_CONFLICT
    code = "INSUFFICIENT_DATA"

    def __init__(self, data_points: int, required: int):
        super().__init__(
            message=(
                f"Not enough history yet: {data_points} weekly data point(s), "
                f"{required} required."
            ),
            details={"data_points": data_points, "required": required},
        )
        self.data_points = data_points
        self.required = required


class CriteriaNotMetError(WellnessCoreError):
    http_status = status.HTTP_422_UNPROCESSABLE_ENTITY
    code = "CRITERIA_NOT_MET"

    def __init__(self, criterion_type: str, reason: str):
        super().__init__(
            message=f"Threshold criterion '{criterion_type}' is not met: {reason}.",
            details={"criterion": criterion_type, "reason": reason},
        )


class StorageError(WellnessCoreError):
    http_status = status.HTTP_503_SERVICE_UNAVAILABLE
    code = "STORAGE_ERROR"

    def __init__(self, operation: str, message: str | None = None):
        super().__init__(
            message=message or f"Persistence failed during {operation}.",
            details={"operation": operation},
        )
        self.operation = operation


# ---------------------------------------------------------------------------
# FastAPI exception handlers
# ---------------------------------------------------------------------------

async def wellness_exception_handler(request: Request, exc: WellnessCoreError) -> JSONResponse:
    if exc.http_status >= 500:
        logger.error("request_failed code=%s path=%s", exc.code, request.url.path)
    return JSONResponse(
        status_code=exc.http_status,
        content=exc.to_dict(),
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Return structured 422 with machine-readable field errors."""
    field_errors = []
    for error in exc.errors():
        field_errors.append(FieldError(
            field=".".join(str(loc) for loc in error["loc"] if loc != "body"),
            message=error["msg"],
            type=error["type"],
        ).model_dump())
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "code": "VALIDATION_ERROR",
            "message": "Request validation failed.",
            "details": {"errors": field_errors},
        },
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unhandled_exception path=%s", request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "code": "INTERNAL_ERROR",
            "message": "An unexpected error occurred.",
        },
    )
