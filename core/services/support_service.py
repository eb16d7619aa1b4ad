"""Support form: forward a visitor's message to the support inbox."""

import html
import logging

from auth.identity import normalize_email
from clients.email_client import EmailClient
from core.models import SupportMessage

logger = logging.getLogger(__name__)


class SupportService:
    """Relay support form messages by email."""

    def __init__(self, email_client: EmailClient, support_inbox: str):
        self.email_client = email_client
        self.support_inbox = support_inbox

    def send(self, message: SupportMessage) -> None:
        """
        Raises:
            ValueError: Missing field or malformed reply address
            EmailDeliveryError: Email could not be sent
        """
        fields = {
            "name": (message.name or "").strip(),
            "email": (message.email or "").strip(),
            "subject": (message.subject or "").strip(),
            "message": (message.message or "").strip(),
        }
        if not all(fields.values()):
            raise ValueError("All fields are required.")
        reply_to = normalize_email(fields["email"])

        body = (
            "<h1>New support message</h1>"
            "<p>You have received a new message from the website support form.</p>"
            "<ul>"
            f"<li><strong>Name:</strong> {html.escape(fields['name'])}</li>"
            f"<li><strong>Email:</strong> {html.escape(reply_to)}</li>"
            f"<li><strong>Subject:</strong> {html.escape(fields['subject'])}</li>"
            "</ul>"
            f"<p>{html.escape(fields['message']).replace(chr(10), '<br>')}</p>"
        )
        self.email_client.send_email(
            to=self.support_inbox,
            subject=f"Support: {fields['subject']}",
            html_body=body,
        )
        logger.info(f"Forwarded support message from {reply_to}")
