"""
Mint magic links and OTPs, store them, email them.

A credential is only reported as issued once the email went out. If sending
fails the stored entry is left alone: it is useless without delivery and
expires on its own.
"""

import base64
import hashlib
import logging
import secrets
from datetime import datetime, timedelta
from typing import Callable
from urllib.parse import quote

from auth.config import AuthConfig
from auth.credential_store import CredentialStore
from auth.exceptions import RateLimitedError
from auth.identity import IdentityResolver, normalize_email
from auth.rate_limiter import RateLimiter
from auth.security_logger import SecurityLogger, SecurityEvent
from auth.types import CredentialKind, IssuedCredential, MagicLinkCredential, OtpCredential
from clients.email_client import EmailClient
from utils.timezone import now_utc

logger = logging.getLogger(__name__)


def generate_link_token(user_id: int, issued_at: datetime) -> str:
    """Hash 32 random bytes with the user id and issue time; base64url, unpadded."""
    material = secrets.token_bytes(32) + f":{user_id}:{issued_at.timestamp()}".encode()
    digest = hashlib.sha256(material).digest()
    return base64.urlsafe_b64encode(digest).rstrip(b"=").decode("ascii")


def generate_otp_code(digits: int = 6) -> str:
    """Uniform code, leading zeros kept."""
    return f"{secrets.randbelow(10 ** digits):0{digits}d}"


class CredentialIssuer:
    """Issue passwordless credentials."""

    def __init__(
        self,
        config: AuthConfig,
        store: CredentialStore,
        identity: IdentityResolver,
        email_client: EmailClient,
        security_logger: SecurityLogger,
        rate_limiter: RateLimiter | None = None,
        clock: Callable[[], datetime] = now_utc,
    ):
        self._config = config
        self._store = store
        self._identity = identity
        self._email_client = email_client
        self._security_logger = security_logger
        self._rate_limiter = rate_limiter
        self._clock = clock

    def _check_rate_limit(self, email: str, kind: CredentialKind, ip_address: str | None) -> None:
        if self._rate_limiter is None:
            return
        try:
            self._rate_limiter.check_rate_limit(email, kind)
        except RateLimitedError:
            self._security_logger.log(
                SecurityEvent.RATE_LIMITED,
                email=email,
                ip_address=ip_address,
                details={"kind": kind.value},
            )
            raise

    def issue_magic_link(
        self,
        email: str,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> IssuedCredential:
        """
        Email a single-use sign-in link.

        Raises:
            ValueError: Bad email
            RateLimitedError: Too many requests for this email
            EmailDeliveryError: Email could not be sent
        """
        email = normalize_email(email)
        self._check_rate_limit(email, CredentialKind.MAGIC_LINK, ip_address)

        user = self._identity.resolve_or_create(email)
        now = self._clock()
        expires_in = self._config.magic_link_expiry_seconds
        token = generate_link_token(user.id, now)

        self._store.purge_expired(now)
        self._store.put_magic_link(
            token,
            MagicLinkCredential(
                user_id=user.id,
                email=email,
                expires_at=now + timedelta(seconds=expires_in),
            ),
        )
        self._security_logger.log(
            SecurityEvent.MAGIC_LINK_REQUESTED,
            email=email,
            user_id=user.id,
            ip_address=ip_address,
            user_agent=user_agent,
        )

        link = f"{self._config.frontend_base_url.rstrip('/')}/auth/magic-link/verify?token={quote(token)}"
        self._email_client.send_magic_link(
            email=email,
            link=link,
            expires_minutes=self._config.magic_link_expiry_minutes,
            app_name=self._config.app_name,
        )

        self._security_logger.log(
            SecurityEvent.MAGIC_LINK_SENT,
            email=email,
            user_id=user.id,
            ip_address=ip_address,
        )
        return IssuedCredential(token=token, expires_in=expires_in)

    def issue_otp(
        self,
        email: str,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> IssuedCredential:
        """
        Email a one-time code. Replaces any code already pending for the email.

        Raises:
            ValueError: Bad email
            RateLimitedError: Too many requests for this email
            EmailDeliveryError: Email could not be sent
        """
        email = normalize_email(email)
        self._check_rate_limit(email, CredentialKind.OTP, ip_address)

        user = self._identity.resolve_or_create(email)
        now = self._clock()
        expires_in = self._config.otp_expiry_seconds
        code = generate_otp_code(self._config.otp_digits)

        self._store.purge_expired(now)
        self._store.put_otp(
            email,
            OtpCredential(
                code=code,
                user_id=user.id,
                email=email,
                expires_at=now + timedelta(seconds=expires_in),
                attempts=0,
            ),
        )
        self._security_logger.log(
            SecurityEvent.OTP_REQUESTED,
            email=email,
            user_id=user.id,
            ip_address=ip_address,
            user_agent=user_agent,
        )

        self._email_client.send_otp_code(
            email=email,
            code=code,
            expires_minutes=self._config.otp_expiry_minutes,
            app_name=self._config.app_name,
        )

        self._security_logger.log(
            SecurityEvent.OTP_SENT,
            email=email,
            user_id=user.id,
            ip_address=ip_address,
        )
        return IssuedCredential(expires_in=expires_in)
