"""Pydantic models for auth domain."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class CredentialKind(str, Enum):
    """Passwordless credential types, each with its own request budget."""

    MAGIC_LINK = "magic_link"
    OTP = "otp"


class User(BaseModel):
    """A registered user. Never carries the password hash."""

    id: int
    username: str
    email: str
    is_admin: bool = False
    created_at: datetime

    model_config = {"from_attributes": True}


class UserWithPassword(User):
    """User row including the bcrypt hash. Internal to the auth package."""

    password: str

    def public(self) -> User:
        """Strip the hash."""
        return User.model_validate(self.model_dump(exclude={"password"}))


class SignupRequest(BaseModel):
    """Request payload for password signup. Emptiness is checked by the service."""

    username: str | None = None
    email: str | None = None
    password: str | None = None


class LoginRequest(BaseModel):
    """Request payload for password login. Any one identifier field may be used."""

    login: str | None = None
    username: str | None = None
    email: str | None = None
    password: str | None = None

    @property
    def identifier(self) -> str | None:
        return self.login or self.username or self.email


class GoogleLoginRequest(BaseModel):
    """ID token from Google Identity Services."""

    credential: str | None = None


class CredentialRequest(BaseModel):
    """Request payload for a magic link or an OTP."""

    email: str | None = None


class MagicLinkVerifyRequest(BaseModel):
    token: str | None = None


class OtpVerifyRequest(BaseModel):
    email: str | None = None
    code: str | None = None


class MagicLinkCredential(BaseModel):
    """A pending magic link, keyed by its token in the credential store."""

    user_id: int
    email: str
    expires_at: datetime


class OtpCredential(BaseModel):
    """A pending one-time code, keyed by normalized email in the credential store."""

    code: str
    user_id: int
    email: str
    expires_at: datetime
    attempts: int = Field(0, ge=0)


class IssuedCredential(BaseModel):
    """What the issuer hands back. `token` is only set for magic links."""

    token: str | None = None
    expires_in: int = Field(..., description="Seconds until the credential expires")


class AccessTokenClaims(BaseModel):
    """Decoded, verified access token."""

    user_id: int
    is_admin: bool
    issued_at: datetime
    expires_at: datetime


class AuthenticatedUser(BaseModel):
    """User info returned after successful authentication."""

    user: User
    token: str
