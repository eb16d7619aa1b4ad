"""
Handler for BookingPaid events.

Emails a receipt to the paying customer.
"""

import html
import logging
from typing import Callable

from clients.email_client import EmailClient
from core.events import BookingPaid
from utils.money import format_amount

logger = logging.getLogger(__name__)


def render_receipt_email(event: BookingPaid, currency: str) -> str:
    booking = event.booking
    name = html.escape(event.customer_name or "Valued Customer")
    lines = [
        f"<li><strong>Reference:</strong> {html.escape(event.reference)}</li>",
        f"<li><strong>Amount Paid:</strong> {currency} {format_amount(event.amount)}</li>",
        f"<li><strong>Customer Email:</strong> {html.escape(event.customer_email or 'N/A')}</li>",
    ]
    if booking is not None:
        lines += [
            f"<li><strong>Car:</strong> {html.escape(booking.car_title)}</li>",
            f"<li><strong>Dates:</strong> {booking.start_date.isoformat()} to {booking.end_date.isoformat()}"
            f" ({booking.num_days} days)</li>",
            f"<li><strong>Booking ID:</strong> {booking.id}</li>",
        ]

    return (
        "<h1>Booking Confirmed!</h1>"
        f"<p>Thank you, {name}! Your payment has been received and your booking is confirmed.</p>"
        "<h2>Receipt Details:</h2>"
        f"<ul>{''.join(lines)}</ul>"
        "<p>We will be in touch shortly with the final details of your car rental.</p>"
    )


def handle_booking_paid(
    email_client: EmailClient,
    bookings_inbox: str,
    currency: str,
) -> Callable:
    """
    Factory that returns a BookingPaid handler.

    Args:
        email_client: Outbound email client
        bookings_inbox: Fallback recipient when the provider gave no email
        currency: Currency label shown next to amounts

    Returns:
        Handler callable that emails the receipt
    """

    def send_receipt(event: BookingPaid):
        recipient = event.customer_email or bookings_inbox
        email_client.send_email(
            to=recipient,
            subject="Your Car Rental Booking is Confirmed!",
            html_body=render_receipt_email(event, currency),
        )
        logger.info(f"Receipt for payment {event.reference} emailed to {recipient}")

    return send_receipt
