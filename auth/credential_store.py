"""
Pending magic-link and OTP credentials.

Two backends share one interface:

- InMemoryCredentialStore: process-local dicts behind a lock. Correct only
  when issuance and verification hit the same process (single worker, tests).
- ValkeyCredentialStore: hashes with TTL in Valkey, shared by every worker.

Neither backend enforces expiry on read. Expiry is decided by the verifier
against the stored `expires_at`, so an expired entry that has not been swept
yet is still reported as expired.
"""

import logging
import math
import threading
from abc import ABC, abstractmethod
from datetime import datetime

from clients.valkey_client import ValkeyClient
from auth.types import MagicLinkCredential, OtpCredential
from utils.timezone import now_utc, parse_iso

logger = logging.getLogger(__name__)


class CredentialStore(ABC):
    """Keyed holder of pending credentials."""

    @abstractmethod
    def put_magic_link(self, token: str, credential: MagicLinkCredential) -> None:
        ...

    @abstractmethod
    def pop_magic_link(self, token: str) -> MagicLinkCredential | None:
        """Atomically fetch and delete. Only one caller ever gets the entry."""

    @abstractmethod
    def put_otp(self, email: str, credential: OtpCredential) -> None:
        """Store the OTP for an email, replacing any previous one."""

    @abstractmethod
    def get_otp(self, email: str) -> OtpCredential | None:
        ...

    @abstractmethod
    def pop_otp(self, email: str) -> OtpCredential | None:
        """Atomically fetch and delete."""

    @abstractmethod
    def record_failed_otp_attempt(self, email: str) -> int | None:
        """
        Increment the attempt counter in place.

        Returns:
            New attempt count, or None if the entry vanished meanwhile.
        """

    @abstractmethod
    def delete_otp(self, email: str) -> None:
        ...

    @abstractmethod
    def purge_expired(self, now: datetime) -> int:
        """Drop entries whose expiry is before `now`. Returns count removed."""


class InMemoryCredentialStore(CredentialStore):
    """Thread-safe process-local store."""

    def __init__(self):
        self._lock = threading.Lock()
        self._magic_links: dict[str, MagicLinkCredential] = {}
        self._otps: dict[str, OtpCredential] = {}

    def put_magic_link(self, token: str, credential: MagicLinkCredential) -> None:
        with self._lock:
            self._magic_links[token] = credential

    def pop_magic_link(self, token: str) -> MagicLinkCredential | None:
        with self._lock:
            return self._magic_links.pop(token, None)

    def put_otp(self, email: str, credential: OtpCredential) -> None:
        with self._lock:
            self._otps[email] = credential

    def get_otp(self, email: str) -> OtpCredential | None:
        with self._lock:
            return self._otps.get(email)

    def pop_otp(self, email: str) -> OtpCredential | None:
        with self._lock:
            return self._otps.pop(email, None)

    def record_failed_otp_attempt(self, email: str) -> int | None:
        with self._lock:
            current = self._otps.get(email)
            if current is None:
                return None
            updated = current.model_copy(update={"attempts": current.attempts + 1})
            self._otps[email] = updated
            return updated.attempts

    def delete_otp(self, email: str) -> None:
        with self._lock:
            self._otps.pop(email, None)

    def purge_expired(self, now: datetime) -> int:
        with self._lock:
            stale_links = [k for k, v in self._magic_links.items() if v.expires_at < now]
            stale_otps = [k for k, v in self._otps.items() if v.expires_at < now]
            for key in stale_links:
                del self._magic_links[key]
            for key in stale_otps:
                del self._otps[key]
        removed = len(stale_links) + len(stale_otps)
        if removed:
            logger.debug(f"Purged {removed} expired credentials")
        return removed

    def __len__(self) -> int:
        with self._lock:
            return len(self._magic_links) + len(self._otps)


class ValkeyCredentialStore(CredentialStore):
    """
    Shared store on Valkey hashes.

    Keys live for the credential lifetime plus `retention_seconds`, so an
    entry can still be read (and reported expired) shortly after its expiry
    before Valkey reclaims it. purge_expired is a no-op: TTLs do the sweeping.
    """

    MAGIC_LINK_PREFIX = "credential:magic_link:"
    OTP_PREFIX = "credential:otp:"

    def __init__(self, valkey: ValkeyClient, retention_seconds: int = 300):
        self._valkey = valkey
        self._retention_seconds = retention_seconds

    def _ttl_for(self, expires_at: datetime) -> int:
        remaining = (expires_at - now_utc()).total_seconds()
        return max(math.ceil(remaining) + self._retention_seconds, 1)

    # -- magic links --------------------------------------------------------

    def put_magic_link(self, token: str, credential: MagicLinkCredential) -> None:
        self._valkey.replace_hash(
            f"{self.MAGIC_LINK_PREFIX}{token}",
            {
                "user_id": str(credential.user_id),
                "email": credential.email,
                "expires_at": credential.expires_at.isoformat(),
            },
            expire_seconds=self._ttl_for(credential.expires_at),
        )

    def pop_magic_link(self, token: str) -> MagicLinkCredential | None:
        data = self._valkey.pop_hash(f"{self.MAGIC_LINK_PREFIX}{token}")
        if data is None:
            return None
        return MagicLinkCredential(
            user_id=int(data["user_id"]),
            email=data["email"],
            expires_at=parse_iso(data["expires_at"]),
        )

    # -- OTPs ---------------------------------------------------------------

    @staticmethod
    def _otp_from_hash(data: dict[str, str]) -> OtpCredential | None:
        # A hash without its code is a leftover from a racing HINCRBY
        if "code" not in data:
            return None
        return OtpCredential(
            code=data["code"],
            user_id=int(data["user_id"]),
            email=data["email"],
            expires_at=parse_iso(data["expires_at"]),
            attempts=int(data.get("attempts", 0)),
        )

    def put_otp(self, email: str, credential: OtpCredential) -> None:
        self._valkey.replace_hash(
            f"{self.OTP_PREFIX}{email}",
            {
                "code": credential.code,
                "user_id": str(credential.user_id),
                "email": credential.email,
                "expires_at": credential.expires_at.isoformat(),
                "attempts": str(credential.attempts),
            },
            expire_seconds=self._ttl_for(credential.expires_at),
        )

    def get_otp(self, email: str) -> OtpCredential | None:
        data = self._valkey.get_hash(f"{self.OTP_PREFIX}{email}")
        return self._otp_from_hash(data) if data else None

    def pop_otp(self, email: str) -> OtpCredential | None:
        data = self._valkey.pop_hash(f"{self.OTP_PREFIX}{email}")
        return self._otp_from_hash(data) if data else None

    def record_failed_otp_attempt(self, email: str) -> int | None:
        key = f"{self.OTP_PREFIX}{email}"
        attempts = self._valkey.hincrby(key, "attempts")
        # HINCRBY on a key that expired meanwhile recreates it without a TTL
        if self._valkey.ttl(key) == -1:
            self._valkey.delete(key)
            return None
        return attempts

    def delete_otp(self, email: str) -> None:
        self._valkey.delete(f"{self.OTP_PREFIX}{email}")

    def purge_expired(self, now: datetime) -> int:
        return 0
