"""Security middleware for FastAPI - bearer token validation and user context."""

from fastapi import Request
from starlette.concurrency import run_in_threadpool
from starlette.middleware.base import BaseHTTPMiddleware

from auth.database import AuthDatabase
from auth.exceptions import AccessTokenError, AdminRequiredError
from auth.tokens import AccessTokenManager
from api.base import error_json, ErrorCodes
from utils.user_context import set_current_user_id, clear_current_user_id


def _bearer_token(request: Request) -> str | None:
    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


class AuthMiddleware(BaseHTTPMiddleware):
    """Middleware that validates access tokens and sets user context.

    For protected routes:
    1. Extracts the token from the 'Authorization: Bearer' header
    2. Verifies signature and expiry via AccessTokenManager
    3. Sets user_id/is_admin in request.state and user_id in user context.
       An admin claim is re-checked against the users table when auth_db is
       given, so a deleted or demoted admin loses access at once.
    4. Clears context after request completes

    Public paths never require a token. A valid token on a public path is
    still honored (bookings get attributed to the user); an invalid one is
    ignored there.
    """

    PUBLIC_PATHS = [
        "/auth/magic-link/",
        "/auth/otp/",
        "/auth/google",
        "/signup",
        "/login",
        "/paystack/verify-payment",
        "/send-booking-quote",
        "/support-message",
        "/testimonials",
        "/health",
        "/docs",
        "/redoc",
        "/openapi.json",
    ]

    # Public for GET only
    PUBLIC_READ_PATHS = [
        "/cars",
    ]

    def __init__(self, app, tokens: AccessTokenManager, auth_db: AuthDatabase | None = None):
        super().__init__(app)
        self._tokens = tokens
        self._auth_db = auth_db

    async def _still_admin(self, user_id: int) -> bool:
        """The users table, not the token, decides whether an admin claim still holds."""
        user = await run_in_threadpool(self._auth_db.get_user_by_id, user_id)
        return user is not None and user.is_admin

    def _is_public(self, method: str, path: str) -> bool:
        """Check if method/path bypasses authentication."""
        if method == "OPTIONS":
            return True
        for public_path in self.PUBLIC_PATHS:
            if path == public_path or path.startswith(public_path):
                return True
        if method in ("GET", "HEAD"):
            for public_path in self.PUBLIC_READ_PATHS:
                if path == public_path or path.startswith(public_path + "/"):
                    return True
        return False

    async def dispatch(self, request: Request, call_next):
        """Process request through middleware."""
        public = self._is_public(request.method, request.url.path)
        token = _bearer_token(request)

        if token is None:
            if public:
                return await call_next(request)
            return error_json(401, ErrorCodes.NOT_AUTHENTICATED, "Authentication required")

        try:
            claims = self._tokens.verify(token)
        except AccessTokenError as e:
            if public:
                return await call_next(request)
            return error_json(401, ErrorCodes.NOT_AUTHENTICATED, str(e))

        set_current_user_id(claims.user_id)
        request.state.user_id = claims.user_id
        request.state.is_admin = claims.is_admin
        if claims.is_admin and self._auth_db is not None:
            request.state.is_admin = await self._still_admin(claims.user_id)

        try:
            response = await call_next(request)
            return response
        finally:
            # Always clear context
            clear_current_user_id()


def current_user_id(request: Request) -> int:
    """FastAPI dependency: the authenticated user's id.

    Raises:
        AccessTokenError: If the request carried no valid token
    """
    user_id = getattr(request.state, "user_id", None)
    if user_id is None:
        raise AccessTokenError("Authentication required")
    return user_id


def optional_user_id(request: Request) -> int | None:
    """FastAPI dependency: the user's id when a valid token was sent."""
    return getattr(request.state, "user_id", None)


def require_admin(request: Request) -> int:
    """FastAPI dependency: the authenticated admin's id.

    Raises:
        AccessTokenError: No valid token
        AdminRequiredError: Token lacks the admin flag
    """
    user_id = current_user_id(request)
    if not getattr(request.state, "is_admin", False):
        raise AdminRequiredError("Admin access required")
    return user_id
