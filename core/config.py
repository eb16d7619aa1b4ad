"""Application configuration outside of auth."""

import os

from pydantic import BaseModel, Field


class AppConfig(BaseModel):
    """Site-wide settings. Secrets are not here; see clients.vault_client."""

    cors_origins: list[str] = Field(
        default_factory=lambda: ["http://localhost:5173"],
        description="Origins allowed to call the API from a browser",
    )
    bookings_inbox: str = Field(
        ...,
        description="Address that receives booking quotes",
    )
    support_inbox: str = Field(
        ...,
        description="Address that receives support form messages",
    )
    currency: str = Field(
        default="GHS",
        description="Currency label shown in emails",
        min_length=1,
        max_length=8,
    )
    credential_store: str = Field(
        default="auto",
        pattern="^(auto|memory|valkey)$",
        description="Credential store backend; auto picks valkey when configured",
    )
    db_pool_max: int = Field(
        default=10,
        ge=1,
        description="Upper bound on pooled PostgreSQL connections per worker",
    )

    @classmethod
    def from_env(cls) -> "AppConfig":
        """
        Build from environment variables.

        Raises:
            ValueError: If BOOKINGS_EMAIL is not set
        """
        bookings_inbox = os.getenv("BOOKINGS_EMAIL")
        if not bookings_inbox:
            raise ValueError("BOOKINGS_EMAIL must be set")

        origins = os.getenv("CORS_ORIGINS", "http://localhost:5173")
        return cls(
            cors_origins=[o.strip() for o in origins.split(",") if o.strip()],
            bookings_inbox=bookings_inbox,
            support_inbox=os.getenv("SUPPORT_EMAIL", bookings_inbox),
            currency=os.getenv("CURRENCY", "GHS"),
            credential_store=os.getenv("CREDENTIAL_STORE", "auto").lower(),
            db_pool_max=int(os.getenv("DB_POOL_MAX", "10")),
        )
