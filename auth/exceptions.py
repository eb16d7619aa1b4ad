"""Typed exceptions for auth failures."""


class AuthError(Exception):
    """Base class for authentication/authorization errors."""


class InvalidCredentialsError(AuthError):
    """Username/email and password did not match a user."""


class InvalidTokenError(AuthError):
    """
    Magic link token or OTP is unknown, already consumed, or swept.

    Subclasses narrow the reason. `reason` is the machine-readable tag sent
    to clients.
    """

    reason = "invalid_or_expired"


class TokenExpiredError(InvalidTokenError):
    """Credential was found but its expiry has passed. It has been deleted."""

    reason = "expired"


class InvalidCodeError(InvalidTokenError):
    """OTP did not match. The entry survives with one more failed attempt."""

    reason = "invalid_code"

    def __init__(self, attempts_remaining: int):
        self.attempts_remaining = attempts_remaining
        super().__init__(f"Invalid code. {attempts_remaining} attempts remaining.")


class TooManyAttemptsError(AuthError):
    """OTP attempt limit reached. The entry has been deleted."""


class RateLimitedError(AuthError):
    """Too many attempts. Client should wait before retrying."""

    def __init__(self, retry_after_seconds: int):
        self.retry_after_seconds = retry_after_seconds
        super().__init__(f"Rate limited. Retry after {retry_after_seconds} seconds.")


class UserGoneError(AuthError):
    """The user a credential or access token points at no longer exists."""


class AccessTokenError(AuthError):
    """Bearer access token is missing, malformed, forged, or expired."""


class AdminRequiredError(AuthError):
    """Authenticated user lacks the admin flag."""
