"""Rate limiting for magic link and OTP requests.

Each credential kind has its own per-email budget, so a user who burns
through OTP requests can still ask for a magic link. Uses Valkey with a
sliding window TTL: every attempt resets the expiry, so callers hammering
the endpoint hit an ever-extending lockout.
"""

import logging

from clients.valkey_client import ValkeyClient
from auth.config import AuthConfig
from auth.exceptions import RateLimitedError
from auth.types import CredentialKind

logger = logging.getLogger(__name__)


class RateLimiter:
    """Per-email, per-credential-kind rate limiting using Valkey."""

    KEY_PREFIX = "ratelimit:"

    def __init__(self, valkey: ValkeyClient, config: AuthConfig):
        self._valkey = valkey
        self._window_seconds = config.rate_limit_window_minutes * 60
        self._budgets = {
            CredentialKind.MAGIC_LINK: config.magic_link_rate_limit,
            CredentialKind.OTP: config.otp_rate_limit,
        }

    def _key(self, email: str, kind: CredentialKind) -> str:
        """e.g. ratelimit:otp:ama@example.com"""
        return f"{self.KEY_PREFIX}{kind.value}:{email.lower()}"

    def check_rate_limit(self, email: str, kind: CredentialKind) -> None:
        """Count one request of this kind and enforce its budget.

        Raises:
            RateLimitedError: If this kind's budget is spent for the email.
        """
        key = self._key(email, kind)

        count = self._valkey.incr(key)
        self._valkey.expire(key, self._window_seconds)

        if count > self._budgets[kind]:
            retry_after = max(self._valkey.ttl(key), 1)
            logger.warning(f"{kind.value} requests for {email} over budget ({count}); retry in {retry_after}s")
            raise RateLimitedError(retry_after_seconds=retry_after)

    def reset_rate_limit(self, email: str) -> None:
        """Clear every budget for the email after a successful sign-in."""
        for kind in CredentialKind:
            self._valkey.delete(self._key(email, kind))
