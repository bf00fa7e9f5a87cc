"""
Custom exception hierarchy for Chat Maestro.

Rule: every HTTP error has a machine-readable `code` string so clients
can branch on it without parsing English messages.

The engines themselves never raise on well-typed input; these errors come
from the service layer (unknown ids, bad ratings, settings that fail
validation after a merge).
"""
from __future__ import annotations

import logging
from typing import Any

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette import status

from maestro.schemas.common import ErrorDetail

logger = logging.getLogger(__name__)


def field_errors(errors: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Flatten pydantic errors into `ErrorDetail` dicts; the "body" loc prefix is dropped."""
    return [
        ErrorDetail(
            field=".".join(str(loc) for loc in error["loc"] if loc != "body"),
            message=error["msg"],
            type=error["type"],
        ).model_dump()
        for error in errors
    ]


# ---------------------------------------------------------------------------
# Exception classes
# ---------------------------------------------------------------------------

class MaestroException(Exception):
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


class UnknownTriggerError(MaestroException):
    http_status = status.HTTP_404_NOT_FOUND
    code = "UNKNOWN_TRIGGER"

    def __init__(self, trigger_id: str):
        super().__init__(
            message=f"No proactive trigger with id '{trigger_id}'.",
            details={"trigger_id": trigger_id},
        )


class FeedbackNotFoundError(MaestroException):
    http_status = status.HTTP_404_NOT_FOUND
    code = "FEEDBACK_NOT_FOUND"

    def __init__(self, feedback_id: str):
        super().__init__(
            message=f"Feedback item '{feedback_id}' is not in this user's history.",
            details={"feedback_id": feedback_id},
        )


class InvalidRatingError(MaestroException):
    http_status = status.HTTP_422_UNPROCESSABLE_ENTITY
    code = "INVALID_RATING"

    def __init__(self, rating: int):
        super().__init__(
            message=f"Rating must be between 1 and 5. Received {rating}.",
            details={"rating": rating, "min": 1, "max": 5},
        )


class InvalidSettingsError(MaestroException):
    http_status = status.HTTP_422_UNPROCESSABLE_ENTITY
    code = "INVALID_SETTINGS"

    def __init__(self, errors: list[dict[str, Any]]):
        super().__init__(
            message="Settings update produced an invalid configuration.",
            details={"errors": errors},
        )


# ---------------------------------------------------------------------------
# FastAPI exception handlers
# ---------------------------------------------------------------------------

async def maestro_exception_handler(request: Request, exc: MaestroException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.http_status,
        content=exc.to_dict(),
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Return structured 422 with machine-readable field errors."""
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "code": "VALIDATION_ERROR",
            "message": "Request validation failed.",
            "details": {"errors": field_errors(exc.errors())},
        },
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "Unhandled exception: %s",
        exc,
        exc_info=True,
        extra={"extra_fields": {"method": request.method, "path": request.url.path}},
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "code": "INTERNAL_ERROR",
            "message": "An unexpected error occurred.",
        },
    )
