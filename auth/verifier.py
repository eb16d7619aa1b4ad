"""
Check presented magic links and OTPs, consume them, mint access tokens.

Magic links are taken from the store atomically before any other check, so
two concurrent verifications of one token cannot both succeed. OTP entries
survive a wrong code with one more failed attempt recorded.
"""

import hmac
import logging
from datetime import datetime
from typing import Callable

from auth.config import AuthConfig
from auth.credential_store import CredentialStore
from auth.database import AuthDatabase
from auth.exceptions import (
    InvalidCodeError,
    InvalidTokenError,
    TokenExpiredError,
    TooManyAttemptsError,
    UserGoneError,
)
from auth.rate_limiter import RateLimiter
from auth.security_logger import SecurityLogger, SecurityEvent
from auth.tokens import AccessTokenManager
from auth.types import AuthenticatedUser
from utils.timezone import now_utc

logger = logging.getLogger(__name__)


class CredentialVerifier:
    """Exchange a valid credential for a signed access token."""

    def __init__(
        self,
        config: AuthConfig,
        store: CredentialStore,
        auth_db: AuthDatabase,
        tokens: AccessTokenManager,
        security_logger: SecurityLogger,
        rate_limiter: RateLimiter | None = None,
        clock: Callable[[], datetime] = now_utc,
    ):
        self._config = config
        self._store = store
        self._auth_db = auth_db
        self._tokens = tokens
        self._security_logger = security_logger
        self._rate_limiter = rate_limiter
        self._clock = clock

    def _complete_login(self, user_id: int, event: SecurityEvent, ip_address: str | None) -> AuthenticatedUser:
        user = self._auth_db.get_user_by_id(user_id)
        if user is None:
            logger.warning(f"User {user_id} was deleted before verifying a credential")
            raise UserGoneError("User no longer exists")

        if self._rate_limiter is not None:
            self._rate_limiter.reset_rate_limit(user.email)

        self._security_logger.log(event, email=user.email, user_id=user.id, ip_address=ip_address)
        return AuthenticatedUser(user=user, token=self._tokens.mint(user))

    def verify_magic_link(
        self,
        token: str | None,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> AuthenticatedUser:
        """
        Consume a magic link token.

        Raises:
            ValueError: Token missing from the request
            InvalidTokenError: Unknown or already used
            TokenExpiredError: Past its expiry (entry removed)
            UserGoneError: User deleted since issuance
        """
        token = (token or "").strip()
        if not token:
            raise ValueError("Token is required.")

        credential = self._store.pop_magic_link(token)
        if credential is None:
            self._security_logger.log(
                SecurityEvent.MAGIC_LINK_FAILED,
                ip_address=ip_address,
                user_agent=user_agent,
                details={"reason": InvalidTokenError.reason},
            )
            raise InvalidTokenError("Invalid or expired token")

        if credential.expires_at < self._clock():
            self._security_logger.log(
                SecurityEvent.MAGIC_LINK_EXPIRED,
                email=credential.email,
                user_id=credential.user_id,
                ip_address=ip_address,
                user_agent=user_agent,
            )
            raise TokenExpiredError("Token has expired")

        return self._complete_login(credential.user_id, SecurityEvent.MAGIC_LINK_VERIFIED, ip_address)

    def verify_otp(
        self,
        email: str | None,
        code: str | None,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> AuthenticatedUser:
        """
        Check a one-time code for an email.

        Raises:
            ValueError: Email or code missing from the request
            InvalidTokenError: No pending code for this email
            TokenExpiredError: Past its expiry (entry removed)
            TooManyAttemptsError: Attempt limit reached (entry removed)
            InvalidCodeError: Wrong code; carries attempts_remaining
            UserGoneError: User deleted since issuance
        """
        email = (email or "").strip().lower()
        code = (code or "").strip()
        if not email or not code:
            raise ValueError("Email and code are required.")

        credential = self._store.get_otp(email)
        if credential is None:
            self._security_logger.log(
                SecurityEvent.OTP_FAILED,
                email=email,
                ip_address=ip_address,
                user_agent=user_agent,
                details={"reason": InvalidTokenError.reason},
            )
            raise InvalidTokenError("Invalid or expired code")

        if credential.expires_at < self._clock():
            self._store.delete_otp(email)
            self._security_logger.log(
                SecurityEvent.OTP_EXPIRED,
                email=email,
                user_id=credential.user_id,
                ip_address=ip_address,
            )
            raise TokenExpiredError("Code has expired")

        max_attempts = self._config.otp_max_attempts
        if credential.attempts >= max_attempts:
            self._store.delete_otp(email)
            self._security_logger.log(
                SecurityEvent.OTP_TOO_MANY_ATTEMPTS,
                email=email,
                user_id=credential.user_id,
                ip_address=ip_address,
            )
            raise TooManyAttemptsError("Too many failed attempts. Request a new code.")

        if not hmac.compare_digest(code.encode(), credential.code.encode()):
            attempts = self._store.record_failed_otp_attempt(email)
            if attempts is None:
                raise InvalidTokenError("Invalid or expired code")
            self._security_logger.log(
                SecurityEvent.OTP_FAILED,
                email=email,
                user_id=credential.user_id,
                ip_address=ip_address,
                user_agent=user_agent,
                details={"reason": InvalidCodeError.reason, "attempts": attempts},
            )
            raise InvalidCodeError(attempts_remaining=max(max_attempts - attempts, 0))

        # Another request may have consumed the code since the read above
        if self._store.pop_otp(email) is None:
            raise InvalidTokenError("Invalid or expired code")

        return self._complete_login(credential.user_id, SecurityEvent.OTP_VERIFIED, ip_address)
