"""HTTP routes for authentication."""

import ipaddress

from fastapi import APIRouter, Depends, Request
from starlette.responses import JSONResponse

from api.base import success_response, error_json, ErrorCodes
from auth.exceptions import (
    AccessTokenError,
    AdminRequiredError,
    AuthError,
    InvalidCodeError,
    InvalidCredentialsError,
    InvalidTokenError,
    RateLimitedError,
    TokenExpiredError,
    TooManyAttemptsError,
    UserGoneError,
)
from auth.issuer import CredentialIssuer
from auth.security_middleware import current_user_id
from auth.service import AuthService
from auth.types import (
    AuthenticatedUser,
    CredentialRequest,
    GoogleLoginRequest,
    LoginRequest,
    MagicLinkVerifyRequest,
    OtpVerifyRequest,
    SignupRequest,
)
from auth.verifier import CredentialVerifier


def _get_client_ip(request: Request) -> str | None:
    """Extract valid IP address from request, or None if invalid."""
    if not request.client:
        return None
    host = request.client.host
    try:
        ipaddress.ip_address(host)
        return host
    except ValueError:
        return None


def auth_error_json(exc: AuthError) -> JSONResponse:
    """Render a typed auth failure with its status and reason tag."""
    if isinstance(exc, InvalidCodeError):
        return error_json(
            401,
            ErrorCodes.INVALID_CODE,
            "Invalid code",
            attemptsRemaining=exc.attempts_remaining,
        )
    if isinstance(exc, TokenExpiredError):
        return error_json(401, ErrorCodes.EXPIRED, str(exc))
    if isinstance(exc, InvalidTokenError):
        return error_json(401, ErrorCodes.INVALID_OR_EXPIRED, str(exc))
    if isinstance(exc, InvalidCredentialsError):
        return error_json(401, ErrorCodes.INVALID_CREDENTIALS, "Invalid credentials")
    if isinstance(exc, TooManyAttemptsError):
        return error_json(429, ErrorCodes.TOO_MANY_ATTEMPTS, str(exc))
    if isinstance(exc, RateLimitedError):
        return error_json(
            429,
            ErrorCodes.RATE_LIMITED,
            f"Too many requests. Please wait {exc.retry_after_seconds} seconds.",
            headers={"Retry-After": str(exc.retry_after_seconds)},
        )
    if isinstance(exc, UserGoneError):
        return error_json(404, ErrorCodes.USER_GONE, str(exc))
    if isinstance(exc, AdminRequiredError):
        return error_json(403, ErrorCodes.ADMIN_REQUIRED, str(exc))
    if isinstance(exc, AccessTokenError):
        return error_json(401, ErrorCodes.NOT_AUTHENTICATED, str(exc))
    return error_json(401, ErrorCodes.NOT_AUTHENTICATED, "Authentication failed")


def _authenticated(result: AuthenticatedUser, message: str):
    return success_response(
        message=message,
        user=result.user.model_dump(mode="json"),
        token=result.token,
    ).model_dump(mode="json")


def create_auth_router(
    auth_service: AuthService,
    issuer: CredentialIssuer,
    verifier: CredentialVerifier,
) -> APIRouter:
    """Create auth router with injected services."""
    router = APIRouter(tags=["auth"])

    @router.post("/signup", status_code=201)
    def signup(request: Request, body: SignupRequest):
        """Create a password account and sign it in."""
        result = auth_service.signup(
            username=body.username,
            email=body.email,
            password=body.password,
            ip_address=_get_client_ip(request),
        )
        return _authenticated(result, "Signup successful")

    @router.post("/login")
    def login(request: Request, body: LoginRequest):
        """Password login with username or email."""
        try:
            result = auth_service.login(
                identifier=body.identifier,
                password=body.password,
                ip_address=_get_client_ip(request),
            )
        except AuthError as e:
            return auth_error_json(e)
        return _authenticated(result, "Login successful")

    @router.post("/auth/google")
    def google_login(request: Request, body: GoogleLoginRequest):
        """Sign in with a Google ID token."""
        result = auth_service.google_login(body.credential, ip_address=_get_client_ip(request))
        return _authenticated(result, "Google login successful")

    @router.get("/auth/me")
    def get_current_user(user_id: int = Depends(current_user_id)):
        """Get current authenticated user."""
        user = auth_service.get_user(user_id)
        return success_response(user=user.model_dump(mode="json")).model_dump(mode="json")

    @router.post("/auth/magic-link/request")
    def request_magic_link(request: Request, body: CredentialRequest):
        """Email a sign-in link."""
        try:
            issued = issuer.issue_magic_link(
                email=body.email,
                ip_address=_get_client_ip(request),
                user_agent=request.headers.get("User-Agent"),
            )
        except AuthError as e:
            return auth_error_json(e)
        return success_response(
            message="Magic link sent to your email",
            expiresIn=issued.expires_in,
        ).model_dump(mode="json")

    @router.post("/auth/magic-link/verify")
    def verify_magic_link(request: Request, body: MagicLinkVerifyRequest):
        """Exchange a magic link token for an access token."""
        try:
            result = verifier.verify_magic_link(
                token=body.token,
                ip_address=_get_client_ip(request),
                user_agent=request.headers.get("User-Agent"),
            )
        except AuthError as e:
            return auth_error_json(e)
        return _authenticated(result, "Login successful")

    @router.post("/auth/otp/request")
    def request_otp(request: Request, body: CredentialRequest):
        """Email a one-time code."""
        try:
            issued = issuer.issue_otp(
                email=body.email,
                ip_address=_get_client_ip(request),
                user_agent=request.headers.get("User-Agent"),
            )
        except AuthError as e:
            return auth_error_json(e)
        return success_response(
            message="OTP sent to your email",
            expiresIn=issued.expires_in,
        ).model_dump(mode="json")

    @router.post("/auth/otp/verify")
    def verify_otp(request: Request, body: OtpVerifyRequest):
        """Exchange an email + one-time code for an access token."""
        try:
            result = verifier.verify_otp(
                email=body.email,
                code=body.code,
                ip_address=_get_client_ip(request),
                user_agent=request.headers.get("User-Agent"),
            )
        except AuthError as e:
            return auth_error_json(e)
        return _authenticated(result, "Login successful")

    return router
