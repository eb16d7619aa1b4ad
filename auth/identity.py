"""Find or lazily create the user behind an email address."""

import logging
import secrets

from email_validator import EmailNotValidError, validate_email

from auth.database import AuthDatabase
from auth.passwords import PasswordHasher
from auth.security_logger import SecurityLogger, SecurityEvent
from auth.types import User
from core.exceptions import ConflictError

logger = logging.getLogger(__name__)

_USERNAME_ATTEMPTS = 3


def normalize_email(value: str | None) -> str:
    """
    Trim, lower-case and syntax-check an email address.

    Raises:
        ValueError: If empty or not a valid address
    """
    email = (value or "").strip().lower()
    if not email:
        raise ValueError("Email is required.")
    try:
        validate_email(email, check_deliverability=False)
    except EmailNotValidError:
        raise ValueError("A valid email is required.")
    return email


def synthesize_username(email: str) -> str:
    """`<local-part>_<0-999>`."""
    local_part = email.split("@", 1)[0]
    return f"{local_part}_{secrets.randbelow(1000)}"


class IdentityResolver:
    """Upsert-by-email for passwordless logins (magic link, OTP, Google)."""

    def __init__(
        self,
        auth_db: AuthDatabase,
        passwords: PasswordHasher,
        security_logger: SecurityLogger,
    ):
        self._auth_db = auth_db
        self._passwords = passwords
        self._security_logger = security_logger

    def resolve_or_create(self, email: str) -> User:
        """
        Return the user for a normalized email, inserting one if needed.

        Concurrent first logins for the same email race on the unique
        constraint. The loser re-reads the winner's row. A username clash
        retries with a fresh suffix.

        Raises:
            ConflictError: If the row cannot be created nor found
        """
        existing = self._auth_db.get_user_by_email(email)
        if existing is not None:
            return existing

        password_hash = self._passwords.hash(self._passwords.random_password())

        for _ in range(_USERNAME_ATTEMPTS):
            try:
                user = self._auth_db.create_user(
                    username=synthesize_username(email),
                    email=email,
                    password_hash=password_hash,
                )
            except ConflictError as e:
                winner = self._auth_db.get_user_by_email(email)
                if winner is not None:
                    logger.info(f"Lost user-creation race for {email}; using existing row")
                    return winner
                if e.field == "username":
                    continue
                raise

            logger.info(f"Created user {user.id} for {email}")
            self._security_logger.log(
                SecurityEvent.USER_CREATED,
                email=email,
                user_id=user.id,
                details={"method": "passwordless"},
            )
            return user

        raise ConflictError("Could not allocate a unique username", field="username")
