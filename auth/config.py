"""Authentication configuration."""

from pydantic import BaseModel, Field


class AuthConfig(BaseModel):
    """
    Authentication configuration.

    All durations are in their natural units (minutes for short durations,
    hours for longer ones) to make configuration intuitive.
    """

    # Magic link settings
    magic_link_expiry_minutes: int = Field(
        default=15,
        description="How long magic links remain valid",
        ge=1,
        le=60,
    )

    # OTP settings
    otp_expiry_minutes: int = Field(
        default=10,
        description="How long one-time codes remain valid",
        ge=1,
        le=60,
    )
    otp_digits: int = Field(
        default=6,
        description="Number of decimal digits in a one-time code",
        ge=4,
        le=10,
    )
    otp_max_attempts: int = Field(
        default=5,
        description="Wrong codes allowed before the OTP is discarded",
        ge=1,
        le=20,
    )

    # Credential store
    credential_retention_seconds: int = Field(
        default=300,
        description="How long an expired credential lingers in a TTL store so it "
        "can still be reported as expired rather than unknown",
        ge=0,
        le=3600,
    )

    # Passwords
    bcrypt_rounds: int = Field(
        default=10,
        description="bcrypt work factor for new hashes",
        ge=4,
        le=15,
    )

    # Access tokens
    access_token_expiry_hours: int = Field(
        default=24,
        description="Lifetime of signed access tokens",
        ge=1,
        le=720,
    )
    access_token_algorithm: str = Field(
        default="HS256",
        description="JWS algorithm for access tokens",
    )

    # Rate limiting
    magic_link_rate_limit: int = Field(
        default=5,
        description="Max magic link requests per email per window",
        ge=1,
        le=20,
    )
    otp_rate_limit: int = Field(
        default=3,
        description="Max OTP requests per email per window",
        ge=1,
        le=20,
    )
    rate_limit_window_minutes: int = Field(
        default=15,
        description="Rate limit window duration",
        ge=1,
        le=60,
    )

    # Application
    frontend_base_url: str = Field(
        default="http://localhost:5173",
        description="Base URL for magic link generation",
    )
    app_name: str = Field(
        default="Hood Car Rentals",
        description="Application name for emails",
    )

    @property
    def magic_link_expiry_seconds(self) -> int:
        return self.magic_link_expiry_minutes * 60

    @property
    def otp_expiry_seconds(self) -> int:
        return self.otp_expiry_minutes * 60
