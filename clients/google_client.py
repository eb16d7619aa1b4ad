"""
Google Sign-In ID token verification.

The frontend obtains an ID token from Google Identity Services and posts it to
us. We ask Google's tokeninfo endpoint to validate signature and expiry, then
check the audience and email verification ourselves.
"""

import json
import logging

import requests
from pydantic import BaseModel

from clients.errors import ExternalServiceError

logger = logging.getLogger(__name__)

GOOGLE_TOKENINFO_URL = "https://oauth2.googleapis.com/tokeninfo"
_GOOGLE_ISSUERS = {"accounts.google.com", "https://accounts.google.com"}


class GoogleAuthError(ExternalServiceError):
    """The ID token is invalid, or Google could not be asked."""


class GoogleIdentity(BaseModel):
    """Verified claims we rely on."""

    subject: str
    email: str
    name: str | None = None


class GoogleClient:
    """Validate Google ID tokens for a single OAuth client."""

    def __init__(
        self,
        client_id: str,
        tokeninfo_url: str = GOOGLE_TOKENINFO_URL,
        timeout_seconds: float = 10,
    ):
        if not client_id:
            raise ValueError("client_id is required")

        self.client_id = client_id
        self.tokeninfo_url = tokeninfo_url
        self.timeout_seconds = timeout_seconds

    def verify_id_token(self, id_token: str) -> GoogleIdentity:
        """
        Validate an ID token and return the identity it asserts.

        Raises:
            GoogleAuthError: Token rejected, wrong audience, unverified email,
                or Google unreachable
        """
        try:
            response = requests.get(
                self.tokeninfo_url,
                params={"id_token": id_token},
                timeout=self.timeout_seconds,
            )
        except (requests.exceptions.RequestException, ConnectionError) as e:
            logger.error(f"Google tokeninfo connection failed: {e}")
            raise GoogleAuthError("Google sign-in is temporarily unavailable")

        try:
            claims = response.json()
        except (json.JSONDecodeError, ValueError):
            logger.error(f"Google tokeninfo returned invalid JSON ({response.status_code})")
            raise GoogleAuthError("Google sign-in is temporarily unavailable")

        if response.status_code != 200:
            logger.warning(f"Google rejected ID token: {claims.get('error_description', claims)}")
            raise GoogleAuthError("Invalid Google credential")

        if claims.get("aud") != self.client_id:
            logger.warning(f"Google ID token audience mismatch: {claims.get('aud')}")
            raise GoogleAuthError("Invalid Google credential")

        if claims.get("iss") not in _GOOGLE_ISSUERS:
            raise GoogleAuthError("Invalid Google credential")

        # tokeninfo returns booleans as strings
        if str(claims.get("email_verified")).lower() != "true" or not claims.get("email"):
            raise GoogleAuthError("Google account email is not verified")

        return GoogleIdentity(
            subject=claims["sub"],
            email=claims["email"].strip().lower(),
            name=claims.get("name"),
        )
