"""Shared test fixtures.

Nothing here needs PostgreSQL or Valkey: the auth database is an in-memory
fake, SQL-backed services get Mock(spec=PostgresClient), and outbound HTTP is
mocked with `responses`.
"""

from pathlib import Path
from unittest.mock import Mock

import pytest
from dotenv import load_dotenv

# Load .env file BEFORE any other imports that might use env vars
load_dotenv(Path(__file__).parent.parent / ".env")

# Reset vault client singleton to pick up env vars
import clients.vault_client as vault_module
vault_module._vault_client_instance = None
vault_module._secret_cache.clear()

from auth.config import AuthConfig
from auth.credential_store import InMemoryCredentialStore
from auth.identity import IdentityResolver
from auth.issuer import CredentialIssuer
from auth.passwords import PasswordHasher
from auth.security_logger import SecurityLogger
from auth.service import AuthService
from auth.tokens import AccessTokenManager
from auth.verifier import CredentialVerifier
from clients.email_client import EmailClient
from utils.user_context import clear_current_user_id

from fakes import FakeAuthDatabase, FakeClock, TEST_JWT_SECRET


# =============================================================================
# USER CONTEXT FIXTURES
# =============================================================================


@pytest.fixture(autouse=True)
def reset_user_context():
    """Ensure clean user context before and after each test."""
    clear_current_user_id()
    yield
    clear_current_user_id()


# =============================================================================
# AUTH FIXTURES
# =============================================================================


@pytest.fixture
def auth_config() -> AuthConfig:
    """Defaults except the cheapest bcrypt cost."""
    return AuthConfig(bcrypt_rounds=4, frontend_base_url="https://rentals.example.com")


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def auth_db() -> FakeAuthDatabase:
    return FakeAuthDatabase()


@pytest.fixture
def passwords(auth_config) -> PasswordHasher:
    return PasswordHasher(rounds=auth_config.bcrypt_rounds)


@pytest.fixture
def tokens() -> AccessTokenManager:
    return AccessTokenManager(TEST_JWT_SECRET, expiry_hours=1)


@pytest.fixture
def security_logger():
    return Mock(spec=SecurityLogger)


@pytest.fixture
def email_client():
    """Mock email client - no actual emails sent in tests."""
    return Mock(spec=EmailClient)


@pytest.fixture
def store() -> InMemoryCredentialStore:
    return InMemoryCredentialStore()


@pytest.fixture
def identity(auth_db, passwords, security_logger) -> IdentityResolver:
    return IdentityResolver(auth_db, passwords, security_logger)


@pytest.fixture
def issuer(auth_config, store, identity, email_client, security_logger, clock) -> CredentialIssuer:
    return CredentialIssuer(auth_config, store, identity, email_client, security_logger, clock=clock)


@pytest.fixture
def verifier(auth_config, store, auth_db, tokens, security_logger, clock) -> CredentialVerifier:
    return CredentialVerifier(auth_config, store, auth_db, tokens, security_logger, clock=clock)


@pytest.fixture
def auth_service(auth_db, passwords, tokens, identity, security_logger) -> AuthService:
    return AuthService(auth_db, passwords, tokens, identity, security_logger)
