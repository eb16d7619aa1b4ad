"""Unified API response format and error handling."""

from typing import Any
from datetime import datetime
from uuid import uuid4

from pydantic import BaseModel, Field
from starlette.responses import JSONResponse

from utils.timezone import now_utc


class APIError(BaseModel):
    """Error details in API response."""

    code: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error message")


class APIMeta(BaseModel):
    """Metadata included in every API response."""

    timestamp: datetime = Field(..., description="Response timestamp (UTC)")
    request_id: str = Field(..., description="Unique request identifier for tracing")


class APIResponse(BaseModel):
    """
    Unified response format for all API endpoints.

    `success`, `message` and `meta` are always present. Endpoints put their
    payload either in `data` or in named top-level fields (`user`, `token`,
    `expiresIn`, `bookingId`, ...), which the web client reads directly.
    """

    success: bool
    message: str | None = None
    data: Any | None = None
    error: APIError | None = None
    meta: APIMeta

    model_config = {"extra": "allow"}


def _meta() -> APIMeta:
    return APIMeta(timestamp=now_utc(), request_id=str(uuid4()))


def success_response(data: Any = None, message: str | None = None, **fields: Any) -> APIResponse:
    """Create a success response."""
    return APIResponse(
        success=True,
        message=message,
        data=data,
        error=None,
        meta=_meta(),
        **fields,
    )


def error_response(code: str, message: str, **fields: Any) -> APIResponse:
    """Create an error response."""
    return APIResponse(
        success=False,
        message=message,
        data=None,
        error=APIError(code=code, message=message),
        meta=_meta(),
        **fields,
    )


def error_json(
    status_code: int,
    code: str,
    message: str,
    headers: dict[str, str] | None = None,
    **fields: Any,
) -> JSONResponse:
    """Error response rendered with an HTTP status."""
    return JSONResponse(
        status_code=status_code,
        headers=headers,
        content=error_response(code, message, **fields).model_dump(mode="json"),
    )


class ErrorCodes:
    """Standard error codes for consistent error handling."""

    # Authentication & Authorization
    NOT_AUTHENTICATED = "NOT_AUTHENTICATED"
    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
    ADMIN_REQUIRED = "ADMIN_REQUIRED"
    RATE_LIMITED = "RATE_LIMITED"

    # Passwordless credentials (lower-case tags the web client matches on)
    INVALID_OR_EXPIRED = "invalid_or_expired"
    EXPIRED = "expired"
    INVALID_CODE = "invalid_code"
    TOO_MANY_ATTEMPTS = "too_many_attempts"
    USER_GONE = "user_gone"

    # Resource Errors
    NOT_FOUND = "NOT_FOUND"
    ALREADY_EXISTS = "ALREADY_EXISTS"

    # Validation Errors
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_REQUEST = "INVALID_REQUEST"

    # Payments
    PAYMENT_REJECTED = "PAYMENT_REJECTED"

    # Infrastructure
    INTERNAL_ERROR = "INTERNAL_ERROR"
    EXTERNAL_SERVICE_ERROR = "EXTERNAL_SERVICE_ERROR"
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"
