"""Authentication and authorization modules."""

from auth.exceptions import (
    AuthError,
    InvalidCredentialsError,
    InvalidTokenError,
    TokenExpiredError,
    InvalidCodeError,
    TooManyAttemptsError,
    RateLimitedError,
    UserGoneError,
    AccessTokenError,
    AdminRequiredError,
)
from auth.types import (
    CredentialKind,
    User,
    MagicLinkCredential,
    OtpCredential,
    IssuedCredential,
    AccessTokenClaims,
    AuthenticatedUser,
)
from auth.config import AuthConfig
from auth.database import AuthDatabase
from auth.passwords import PasswordHasher
from auth.credential_store import CredentialStore, InMemoryCredentialStore, ValkeyCredentialStore
from auth.identity import IdentityResolver, normalize_email
from auth.issuer import CredentialIssuer
from auth.verifier import CredentialVerifier
from auth.tokens import AccessTokenManager
from auth.rate_limiter import RateLimiter
from auth.security_logger import SecurityLogger, SecurityEvent
from auth.service import AuthService
from auth.security_middleware import AuthMiddleware
from auth.api import create_auth_router
