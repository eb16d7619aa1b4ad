"""
Paystack transaction verification client.

Only the verify call is used: the frontend completes checkout with Paystack
and hands us the transaction reference.
"""

import json
import logging
from typing import Any
from urllib.parse import quote

import requests
from pydantic import BaseModel, Field

from clients.errors import ExternalServiceError

logger = logging.getLogger(__name__)

PAYSTACK_API_URL = "https://api.paystack.co"


class PaymentGatewayError(ExternalServiceError):
    """Paystack could not be reached or answered with something unreadable."""


class PaystackCustomer(BaseModel):
    email: str | None = None
    first_name: str | None = None
    last_name: str | None = None


class PaystackTransaction(BaseModel):
    """The `data` object of a verify response."""

    status: str | None = None
    reference: str | None = None
    amount: int = Field(0, description="Amount in minor units (pesewas/kobo)")
    currency: str | None = None
    customer: PaystackCustomer = Field(default_factory=PaystackCustomer)


class PaystackVerification(BaseModel):
    """Parsed verify response: {status, message, data}."""

    status: bool = False
    message: str | None = None
    data: PaystackTransaction | None = None

    @property
    def succeeded(self) -> bool:
        """The provider says the charge went through."""
        return self.status and self.data is not None and self.data.status == "success"


class PaystackClient:
    """Verify Paystack transactions by reference."""

    def __init__(
        self,
        secret_key: str,
        api_url: str = PAYSTACK_API_URL,
        timeout_seconds: float = 10,
    ):
        if not secret_key:
            raise ValueError("secret_key is required")

        self.secret_key = secret_key
        self.api_url = api_url.rstrip("/")
        self.timeout_seconds = timeout_seconds

    def verify_transaction(self, reference: str) -> PaystackVerification:
        """
        Ask Paystack for the outcome of a transaction.

        A declined or unknown transaction is NOT an error here: the returned
        PaystackVerification has succeeded == False and carries the
        provider's message.

        Raises:
            PaymentGatewayError: On transport failure or unreadable response
        """
        url = f"{self.api_url}/transaction/verify/{quote(reference, safe='')}"
        headers = {"Authorization": f"Bearer {self.secret_key}"}

        try:
            response = requests.get(url, headers=headers, timeout=self.timeout_seconds)
        except (requests.exceptions.RequestException, ConnectionError) as e:
            logger.error(f"Paystack connection failed for {reference}: {e}")
            raise PaymentGatewayError("An error occurred while verifying the transaction.")

        try:
            body: dict[str, Any] = response.json()
        except (json.JSONDecodeError, ValueError):
            logger.error(f"Paystack returned invalid JSON ({response.status_code}): {response.text}")
            raise PaymentGatewayError("Internal server error during payment verification.")

        if response.status_code >= 500:
            logger.error(f"Paystack server error ({response.status_code}): {body}")
            raise PaymentGatewayError("Payment provider is unavailable.")

        verification = PaystackVerification.model_validate(body)
        logger.info(
            f"Paystack verify {reference}: status={verification.status} "
            f"data.status={verification.data.status if verification.data else None}"
        )
        return verification
