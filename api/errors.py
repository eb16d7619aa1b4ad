"""Global exception handlers for FastAPI."""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError

from api.base import error_json, ErrorCodes
from auth.api import auth_error_json
from auth.exceptions import AuthError
from clients.errors import ExternalServiceError
from clients.google_client import GoogleAuthError
from core.exceptions import ConflictError
from core.services.payment_service import PaymentRejectedError

logger = logging.getLogger(__name__)


def register_error_handlers(app: FastAPI) -> None:
    """Register global exception handlers on the app."""

    @app.exception_handler(ValueError)
    async def value_error_handler(request: Request, exc: ValueError):
        message = str(exc)
        if "not found" in message.lower():
            return error_json(404, ErrorCodes.NOT_FOUND, message)
        return error_json(400, ErrorCodes.INVALID_REQUEST, message)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return error_json(422, ErrorCodes.VALIDATION_ERROR, str(exc.errors()))

    @app.exception_handler(ConflictError)
    async def conflict_handler(request: Request, exc: ConflictError):
        return error_json(409, ErrorCodes.ALREADY_EXISTS, str(exc))

    @app.exception_handler(AuthError)
    async def auth_error_handler(request: Request, exc: AuthError):
        return auth_error_json(exc)

    @app.exception_handler(PaymentRejectedError)
    async def payment_rejected_handler(request: Request, exc: PaymentRejectedError):
        return error_json(400, ErrorCodes.PAYMENT_REJECTED, str(exc))

    @app.exception_handler(GoogleAuthError)
    async def google_auth_handler(request: Request, exc: GoogleAuthError):
        return error_json(401, ErrorCodes.INVALID_CREDENTIALS, str(exc))

    @app.exception_handler(ExternalServiceError)
    async def external_service_handler(request: Request, exc: ExternalServiceError):
        # Clients log provider detail; the message here is already client-safe
        logger.error(f"External service failure on {request.url.path}: {exc}")
        return error_json(500, ErrorCodes.EXTERNAL_SERVICE_ERROR, str(exc))

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled exception")
        return error_json(500, ErrorCodes.INTERNAL_ERROR, "An internal error occurred")
