"""Database operations for users.

Every query selects explicit columns. Only `get_user_with_password_by_login`
reads the password hash.
"""

import logging

import psycopg2.errors

from clients.postgres_client import PostgresClient
from auth.types import User, UserWithPassword
from core.exceptions import ConflictError

logger = logging.getLogger(__name__)

_USER_COLUMNS = "id, username, email, is_admin, created_at"


def _conflict_field(error: psycopg2.errors.UniqueViolation) -> str | None:
    """Map a unique-violation to the column it names (users_email_key -> email)."""
    constraint = getattr(error.diag, "constraint_name", None) or ""
    for field in ("username", "email"):
        if field in constraint:
            return field
    return None


class AuthDatabase:
    """Database operations for authentication."""

    def __init__(self, postgres: PostgresClient):
        self._db = postgres

    def get_user_by_email(self, email: str) -> User | None:
        """Find user by exact (already normalized) email."""
        row = self._db.execute_single(
            f"SELECT {_USER_COLUMNS} FROM users WHERE email = %s",
            (email,),
        )
        if row is None:
            return None
        return User.model_validate(row)

    def get_user_by_id(self, user_id: int) -> User | None:
        """Find user by ID."""
        row = self._db.execute_single(
            f"SELECT {_USER_COLUMNS} FROM users WHERE id = %s",
            (user_id,),
        )
        if row is None:
            return None
        return User.model_validate(row)

    def username_exists(self, username: str) -> bool:
        return self._db.execute_single(
            "SELECT 1 AS found FROM users WHERE username = %s",
            (username,),
        ) is not None

    def email_exists(self, email: str) -> bool:
        return self._db.execute_single(
            "SELECT 1 AS found FROM users WHERE email = %s",
            (email,),
        ) is not None

    def get_user_with_password_by_login(self, identifier: str) -> UserWithPassword | None:
        """Find user whose username OR email equals the identifier."""
        row = self._db.execute_single(
            f"""SELECT {_USER_COLUMNS}, password
               FROM users
               WHERE username = %s OR email = %s
               ORDER BY (username = %s) DESC
               LIMIT 1""",
            (identifier, identifier, identifier),
        )
        if row is None:
            return None
        return UserWithPassword.model_validate(row)

    def create_user(
        self,
        username: str,
        email: str,
        password_hash: str,
        is_admin: bool = False,
    ) -> User:
        """
        Insert a user.

        Raises:
            ConflictError: username or email already taken (field set accordingly)
        """
        try:
            rows = self._db.execute_returning(
                f"""INSERT INTO users (username, email, password, is_admin)
                   VALUES (%s, %s, %s, %s)
                   RETURNING {_USER_COLUMNS}""",
                (username, email, password_hash, is_admin),
            )
        except psycopg2.errors.UniqueViolation as e:
            field = _conflict_field(e)
            logger.info(f"User insert collided on {field or 'unknown constraint'}")
            raise ConflictError(f"User with this {field or 'identity'} already exists", field=field)
        return User.model_validate(rows[0])

    def set_admin(self, user_id: int, is_admin: bool) -> User | None:
        rows = self._db.execute_returning(
            f"UPDATE users SET is_admin = %s WHERE id = %s RETURNING {_USER_COLUMNS}",
            (is_admin, user_id),
        )
        return User.model_validate(rows[0]) if rows else None

    def list_users(self) -> list[User]:
        """All users, newest first."""
        rows = self._db.execute(
            f"SELECT {_USER_COLUMNS} FROM users ORDER BY created_at DESC, id DESC"
        )
        return [User.model_validate(row) for row in rows]

    def delete_user(self, user_id: int) -> bool:
        """Permanently delete user. Their bookings keep a NULL user_id.

        Returns:
            True if user was found and deleted, False if not found.
        """
        rows = self._db.execute_returning(
            "DELETE FROM users WHERE id = %s RETURNING id",
            (user_id,),
        )
        return len(rows) > 0
