"""
Transactional email client for the Resend HTTP API.

Every message is a single POST of {from, to, subject, html}. Failures of any
kind (network, non-2xx, unparseable body) raise EmailDeliveryError.
"""

import html
import json
import logging

import requests

from clients.errors import ExternalServiceError

logger = logging.getLogger(__name__)

RESEND_API_URL = "https://api.resend.com/emails"


class EmailDeliveryError(ExternalServiceError):
    """Raised when the email provider rejects or never receives a message."""


class EmailClient:
    """Send emails via Resend."""

    def __init__(
        self,
        api_key: str,
        sender: str,
        api_url: str = RESEND_API_URL,
        timeout_seconds: float = 10,
    ):
        """
        Initialize with provider credentials.

        Args:
            api_key: Resend API key (Bearer token)
            sender: Verified "from" address
            api_url: Endpoint override (tests, regional endpoints)
            timeout_seconds: Upper bound on each HTTP call

        Raises:
            ValueError: If any credential is empty
        """
        if not api_key:
            raise ValueError("api_key is required")
        if not sender:
            raise ValueError("sender is required")

        self.api_key = api_key
        self.sender = sender
        self.api_url = api_url
        self.timeout_seconds = timeout_seconds

    def send_email(self, to: str, subject: str, html_body: str) -> str | None:
        """
        Send an HTML email.

        Returns:
            Provider message id, if the provider returned one.

        Raises:
            EmailDeliveryError: On any failure
        """
        payload = {
            "from": self.sender,
            "to": [to],
            "subject": subject,
            "html": html_body,
        }
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

        try:
            response = requests.post(
                self.api_url,
                json=payload,
                headers=headers,
                timeout=self.timeout_seconds,
            )
        except (requests.exceptions.RequestException, ConnectionError) as e:
            logger.error(f"Email provider connection failed: {e}")
            raise EmailDeliveryError("Email service is unreachable")

        try:
            response_data = response.json()
        except (json.JSONDecodeError, ValueError):
            logger.error(f"Email provider returned invalid JSON ({response.status_code}): {response.text}")
            raise EmailDeliveryError("Invalid response from email service")

        if not response.ok:
            error_msg = response_data.get("message", "Unknown error")
            logger.error(f"Email provider error ({response.status_code}): {error_msg}")
            raise EmailDeliveryError("Email could not be sent")

        logger.info(f"Email sent to {to}: {subject}")
        return response_data.get("id")

    def send_magic_link(self, email: str, link: str, expires_minutes: int, app_name: str) -> None:
        """
        Send a sign-in link.

        Raises:
            EmailDeliveryError: On any failure
        """
        safe_link = html.escape(link, quote=True)
        body = (
            f"<h1>Sign in to {html.escape(app_name)}</h1>"
            f"<p>Click the link below to sign in. It expires in {expires_minutes} minutes "
            f"and can only be used once.</p>"
            f'<p><a href="{safe_link}">Sign in</a></p>'
            f"<p>If you did not request this, you can ignore this email.</p>"
        )
        self.send_email(to=email, subject=f"Your {app_name} sign-in link", html_body=body)

    def send_otp_code(self, email: str, code: str, expires_minutes: int, app_name: str) -> None:
        """
        Send a one-time passcode.

        Raises:
            EmailDeliveryError: On any failure
        """
        body = (
            f"<h1>Your {html.escape(app_name)} code</h1>"
            f"<p>Enter this code to sign in:</p>"
            f'<p style="font-size:28px;letter-spacing:6px"><strong>{code}</strong></p>'
            f"<p>It expires in {expires_minutes} minutes.</p>"
        )
        self.send_email(to=email, subject=f"{code} is your {app_name} code", html_body=body)
