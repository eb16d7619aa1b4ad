"""bcrypt password hashing."""

import secrets

from passlib.context import CryptContext


class PasswordHasher:
    """
    Hash and verify passwords with bcrypt.

    The work factor only affects new hashes; every hash embeds its own cost,
    so existing passwords keep verifying after the factor changes.
    """

    def __init__(self, rounds: int = 10):
        self._context = CryptContext(
            schemes=["bcrypt"],
            deprecated="auto",
            bcrypt__rounds=rounds,
        )

    def hash(self, password: str) -> str:
        return self._context.hash(password)

    def verify(self, password: str, hashed: str) -> bool:
        """False on mismatch or on a hash passlib cannot identify."""
        try:
            return self._context.verify(password, hashed)
        except ValueError:
            return False

    @staticmethod
    def random_password() -> str:
        """Throwaway password for passwordless accounts."""
        return secrets.token_urlsafe(24)
