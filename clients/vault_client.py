"""
HashiCorp Vault client for rental backend secret management.

Uses AppRole authentication when VAULT_ADDR is set. Without Vault, secrets
are read from environment variables (loaded from .env by main.py).
All Vault paths are scoped to the 'rentals/' prefix - no escape to other secrets.
"""

import os
import logging
from typing import Dict
from urllib.parse import quote

import hvac
from hvac.exceptions import InvalidPath, Unauthorized, Forbidden

logger = logging.getLogger(__name__)

# Project scope - all secrets under this path
_SECRET_PREFIX = "rentals"

# Singleton instance and cache
_vault_client_instance: "VaultClient | None" = None
_secret_cache: Dict[str, str] = {}


def _ensure_vault_client() -> "VaultClient":
    global _vault_client_instance
    if _vault_client_instance is None:
        _vault_client_instance = VaultClient()
    return _vault_client_instance


def vault_enabled() -> bool:
    """Vault is used only when VAULT_ADDR is configured."""
    return bool(os.getenv("VAULT_ADDR"))


class VaultError(Exception):
    """Secret lookup failed. Fatal - application cannot function without secrets."""


class VaultClient:
    """Vault client with AppRole auth, env-based config, and fail-fast behavior."""

    def __init__(
        self,
        vault_addr: str | None = None,
        vault_namespace: str | None = None,
    ):
        """Initialize with environment variables. Fails fast on missing config."""
        self.vault_addr = vault_addr or os.getenv("VAULT_ADDR")
        self.vault_namespace = vault_namespace or os.getenv("VAULT_NAMESPACE")
        self.vault_role_id = os.getenv("VAULT_ROLE_ID")
        self.vault_secret_id = os.getenv("VAULT_SECRET_ID")

        if not self.vault_addr:
            raise ValueError("VAULT_ADDR environment variable is required")

        if not self.vault_role_id or not self.vault_secret_id:
            raise ValueError(
                "VAULT_ROLE_ID and VAULT_SECRET_ID environment variables are required"
            )

        client_kwargs = {"url": self.vault_addr}
        if self.vault_namespace:
            client_kwargs["namespace"] = self.vault_namespace

        self.client = hvac.Client(**client_kwargs)
        self._authenticate_approle()

        if not self.client.is_authenticated():
            raise PermissionError("Vault authentication failed")

        logger.info(f"Vault client initialized: {self.vault_addr}")

    def _authenticate_approle(self) -> None:
        """Authenticate using AppRole credentials."""
        try:
            auth_response = self.client.auth.approle.login(
                role_id=self.vault_role_id,
                secret_id=self.vault_secret_id,
            )
            self.client.token = auth_response["auth"]["client_token"]
            logger.info("AppRole authentication successful")
        except Exception as e:
            logger.error(f"AppRole authentication failed: {e}")
            raise PermissionError(f"AppRole authentication failed: {e}")

    def get_secret(self, path: str, field: str) -> str:
        """
        Retrieve single field from KV v2 secret.

        Path is automatically scoped to 'rentals/' prefix.
        Caller passes 'database', we access 'rentals/database'.

        Raises:
            PermissionError: Path not accessible or doesn't exist.
            KeyError: Field not found in secret.
        """
        full_path = f"{_SECRET_PREFIX}/{path}"

        try:
            response = self.client.secrets.kv.v2.read_secret_version(
                path=full_path, raise_on_deleted_version=True
            )
            secret_data = response["data"]["data"]

            if field not in secret_data:
                available = list(secret_data.keys())
                raise KeyError(
                    f"Field '{field}' not found in secret '{full_path}'. "
                    f"Available: {', '.join(available)}"
                )

            return secret_data[field]

        except InvalidPath:
            logger.error(f"Secret path not found: {full_path}")
            raise PermissionError(f"Secret path '{full_path}' not found in Vault")

        except (Unauthorized, Forbidden) as e:
            logger.error(f"Access denied to secret {full_path}: {e}")
            raise PermissionError(f"Access denied to secret '{full_path}': {e}")


def _lookup(path: str, field: str, env_var: str, required: bool = True) -> str | None:
    """Resolve a secret from Vault (if enabled) or the environment, with caching."""
    cache_key = f"{_SECRET_PREFIX}/{path}/{field}"
    if cache_key in _secret_cache:
        return _secret_cache[cache_key]

    if vault_enabled():
        value = _ensure_vault_client().get_secret(path, field)
    else:
        value = os.getenv(env_var)

    if not value:
        if required:
            raise VaultError(
                f"Secret '{path}/{field}' is not configured (set {env_var} or store it in Vault)"
            )
        return None

    _secret_cache[cache_key] = value
    return value


# Convenience functions


def get_database_url() -> str:
    """
    Get PostgreSQL connection URL.

    Falls back to assembling a URL from DB_USER/DB_PASSWORD/DB_HOST/DB_PORT/DB_DATABASE
    when neither Vault nor DATABASE_URL provides one.
    """
    url = _lookup("database", "url", "DATABASE_URL", required=False)
    if url:
        return url

    parts = {name: os.getenv(name) for name in ("DB_USER", "DB_HOST", "DB_DATABASE", "DB_PASSWORD")}
    missing = [name for name, value in parts.items() if not value]
    if missing:
        raise VaultError(
            f"Database is not configured. Set DATABASE_URL or: {', '.join(missing)}"
        )

    port = os.getenv("DB_PORT", "5432")
    return (
        f"postgresql://{quote(parts['DB_USER'])}:{quote(parts['DB_PASSWORD'])}"
        f"@{parts['DB_HOST']}:{port}/{parts['DB_DATABASE']}"
    )


def get_valkey_url() -> str | None:
    """Get Valkey (Redis) connection URL. None means run without Valkey."""
    return _lookup("valkey", "url", "VALKEY_URL", required=False)


def get_email_config() -> Dict[str, str]:
    """Get Resend configuration.

    Returns:
        Dict with keys: api_key, sender
    """
    return {
        "api_key": _lookup("email", "api_key", "RESEND_API_KEY"),
        "sender": _lookup("email", "sender", "EMAIL_SENDER", required=False)
        or "onboarding@resend.dev",
    }


def get_paystack_config() -> Dict[str, str]:
    """Get Paystack configuration."""
    return {"secret_key": _lookup("paystack", "secret_key", "PAYSTACK_SECRET_KEY")}


def get_jwt_secret() -> str:
    """Get the HMAC key used to sign access tokens."""
    return _lookup("auth", "jwt_secret", "JWT_SECRET")


def get_google_client_id() -> str | None:
    """Get the Google OAuth client id. None disables Google sign-in."""
    return _lookup("google", "client_id", "GOOGLE_CLIENT_ID", required=False)


def get_admin_seed() -> Dict[str, str] | None:
    """Get the bootstrap admin account, or None when none is configured.

    Read from the environment only, never Vault: ADMIN_EMAIL and
    ADMIN_PASSWORD are meant to be set for the first start and then removed.

    Returns:
        Dict with keys: email, password, username (username may be None)
    """
    email = os.getenv("ADMIN_EMAIL", "").strip()
    password = os.getenv("ADMIN_PASSWORD", "").strip()
    if not email or not password:
        return None
    return {
        "email": email,
        "password": password,
        "username": os.getenv("ADMIN_USERNAME", "").strip() or None,
    }
