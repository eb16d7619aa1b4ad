"""Signed access tokens (JWT, HS256 by default)."""

import logging
from datetime import timedelta

from jose import ExpiredSignatureError, JWTError, jwt

from auth.exceptions import AccessTokenError
from auth.types import AccessTokenClaims, User
from utils.timezone import now_utc, from_timestamp

logger = logging.getLogger(__name__)


class AccessTokenManager:
    """
    Mint and verify the bearer tokens handed out after any successful login.

    Claims: sub (user id as string), iat, exp, adm (admin flag).
    """

    def __init__(self, secret: str, expiry_hours: int = 24, algorithm: str = "HS256"):
        if not secret:
            raise ValueError("Access token secret is required")
        self._secret = secret
        self._expiry = timedelta(hours=expiry_hours)
        self._algorithm = algorithm

    def mint(self, user: User) -> str:
        issued_at = now_utc()
        claims = {
            "sub": str(user.id),
            "iat": int(issued_at.timestamp()),
            "exp": int((issued_at + self._expiry).timestamp()),
            "adm": user.is_admin,
        }
        return jwt.encode(claims, self._secret, algorithm=self._algorithm)

    def verify(self, token: str) -> AccessTokenClaims:
        """
        Check signature and expiry.

        Raises:
            AccessTokenError: On any defect
        """
        try:
            claims = jwt.decode(token, self._secret, algorithms=[self._algorithm])
        except ExpiredSignatureError:
            raise AccessTokenError("Access token has expired")
        except JWTError as e:
            logger.info(f"Rejected access token: {e}")
            raise AccessTokenError("Invalid access token")

        try:
            return AccessTokenClaims(
                user_id=int(claims["sub"]),
                is_admin=bool(claims.get("adm", False)),
                issued_at=from_timestamp(claims["iat"]),
                expires_at=from_timestamp(claims["exp"]),
            )
        except (KeyError, TypeError, ValueError):
            raise AccessTokenError("Invalid access token")
