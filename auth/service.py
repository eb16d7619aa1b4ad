"""Authentication service - password, Google and account administration flows.

Passwordless flows (magic link, OTP) live in auth.issuer and auth.verifier.
"""

import logging

from auth.database import AuthDatabase
from auth.exceptions import InvalidCredentialsError, UserGoneError
from auth.identity import IdentityResolver, normalize_email
from auth.passwords import PasswordHasher
from auth.security_logger import SecurityLogger, SecurityEvent
from auth.tokens import AccessTokenManager
from auth.types import AuthenticatedUser, User
from clients.google_client import GoogleClient, GoogleAuthError
from core.exceptions import ConflictError

logger = logging.getLogger(__name__)

_CONFLICT_MESSAGES = {
    "username": "Username already exists.",
    "email": "Email is already registered.",
}


class AuthService:
    """Orchestrates password signup/login, Google sign-in and user admin.

    Handles:
    - Signup with username/email/password
    - Login by username or email
    - Google ID token login
    - Current-user lookup, listing and deletion
    - Admin grants and bootstrap admin seeding
    """

    def __init__(
        self,
        auth_db: AuthDatabase,
        passwords: PasswordHasher,
        tokens: AccessTokenManager,
        identity: IdentityResolver,
        security_logger: SecurityLogger,
        google_client: GoogleClient | None = None,
    ):
        self._auth_db = auth_db
        self._passwords = passwords
        self._tokens = tokens
        self._identity = identity
        self._security_logger = security_logger
        self._google_client = google_client

    def signup(
        self,
        username: str | None,
        email: str | None,
        password: str | None,
        ip_address: str | None = None,
        is_admin: bool = False,
    ) -> AuthenticatedUser:
        """Register a password account.

        Username and email are trimmed and lower-cased; the password is trimmed.

        Raises:
            ValueError: Missing field or malformed email
            ConflictError: Username or email already taken
        """
        username = (username or "").strip().lower()
        password = (password or "").strip()
        if not username or not (email or "").strip() or not password:
            raise ValueError("Username, email and password are required.")
        email = normalize_email(email)

        if self._auth_db.username_exists(username):
            raise ConflictError(_CONFLICT_MESSAGES["username"], field="username")
        if self._auth_db.email_exists(email):
            raise ConflictError(_CONFLICT_MESSAGES["email"], field="email")

        try:
            user = self._auth_db.create_user(
                username=username,
                email=email,
                password_hash=self._passwords.hash(password),
                is_admin=is_admin,
            )
        except ConflictError as e:
            raise ConflictError(_CONFLICT_MESSAGES.get(e.field, str(e)), field=e.field)

        self._security_logger.log(
            SecurityEvent.USER_CREATED,
            email=email,
            user_id=user.id,
            ip_address=ip_address,
            details={"method": "password", "is_admin": is_admin},
        )
        return AuthenticatedUser(user=user, token=self._tokens.mint(user))

    def login(
        self,
        identifier: str | None,
        password: str | None,
        ip_address: str | None = None,
    ) -> AuthenticatedUser:
        """Password login with a username or an email.

        Raises:
            ValueError: Missing identifier or password
            InvalidCredentialsError: Unknown user or wrong password
        """
        identifier = (identifier or "").strip().lower()
        password = (password or "").strip()
        if not identifier or not password:
            raise ValueError("Login and password are required.")

        record = self._auth_db.get_user_with_password_by_login(identifier)
        if record is None or not self._passwords.verify(password, record.password):
            self._security_logger.log(
                SecurityEvent.LOGIN_FAILED,
                email=identifier if "@" in identifier else None,
                user_id=record.id if record else None,
                ip_address=ip_address,
                details={"method": "password"},
            )
            raise InvalidCredentialsError("Invalid credentials")

        user = record.public()
        self._security_logger.log(
            SecurityEvent.LOGIN_SUCCEEDED,
            email=user.email,
            user_id=user.id,
            ip_address=ip_address,
            details={"method": "password"},
        )
        return AuthenticatedUser(user=user, token=self._tokens.mint(user))

    def google_login(self, credential: str | None, ip_address: str | None = None) -> AuthenticatedUser:
        """Sign in (creating the user on first visit) with a Google ID token.

        Raises:
            ValueError: Missing credential
            GoogleAuthError: Not configured, token rejected or Google unreachable
        """
        if not credential:
            raise ValueError("Google credential is required.")
        if self._google_client is None:
            raise GoogleAuthError("Google sign-in is not configured")

        identity = self._google_client.verify_id_token(credential)
        user = self._identity.resolve_or_create(identity.email)

        self._security_logger.log(
            SecurityEvent.LOGIN_SUCCEEDED,
            email=user.email,
            user_id=user.id,
            ip_address=ip_address,
            details={"method": "google"},
        )
        return AuthenticatedUser(user=user, token=self._tokens.mint(user))

    def get_user(self, user_id: int) -> User:
        """
        Raises:
            UserGoneError: If the user was deleted after the token was minted
        """
        user = self._auth_db.get_user_by_id(user_id)
        if user is None:
            raise UserGoneError("User no longer exists")
        return user

    def list_users(self) -> list[User]:
        return self._auth_db.list_users()

    def delete_user(self, user_id: int, ip_address: str | None = None) -> None:
        """
        Raises:
            ValueError: If user not found
        """
        user = self._auth_db.get_user_by_id(user_id)
        if user is None or not self._auth_db.delete_user(user_id):
            raise ValueError(f"User {user_id} not found")

        self._security_logger.log(
            SecurityEvent.USER_DELETED,
            email=user.email,
            user_id=user_id,
            ip_address=ip_address,
        )

    def grant_admin(self, user_id: int) -> User:
        """
        Raises:
            ValueError: If user not found
        """
        user = self._auth_db.set_admin(user_id, True)
        if user is None:
            raise ValueError(f"User {user_id} not found")
        logger.info(f"Granted admin to user {user_id}")
        return user

    def ensure_admin(self, email: str, password: str, username: str | None = None) -> User:
        """Make sure an admin account exists for email.

        Creates the account when missing and promotes it when it exists
        without admin rights. An existing password is left unchanged.
        Safe to run on every start.

        Raises:
            ValueError: Malformed email or missing password
        """
        email = normalize_email(email)
        existing = self._auth_db.get_user_by_email(email)
        if existing is not None:
            if existing.is_admin:
                return existing
            return self.grant_admin(existing.id)

        username = username or email.split("@", 1)[0]
        user = self.signup(username, email, password, is_admin=True).user
        logger.info(f"Created admin account {user.id} for {email}")
        return user
