"""
Handler for BookingQuoted events.

Emails the quote to the bookings inbox so staff can follow up.
"""

import html
import logging
from typing import Callable

from clients.email_client import EmailClient
from core.events import BookingQuoted
from utils.money import format_amount

logger = logging.getLogger(__name__)


def _esc(value) -> str:
    return html.escape(str(value)) if value is not None else "N/A"


def render_quote_email(event: BookingQuoted, currency: str, app_name: str) -> str:
    booking = event.booking

    return (
        "<h1>Car Rental Quote</h1>"
        f"<p>Hello {_esc(event.customer_name or 'Valued Customer')},</p>"
        "<p>Thank you for your interest! Here is the quote for the requested booking:</p>"
        "<h2>Car Details</h2><ul>"
        f"<li><strong>Car:</strong> {_esc(booking.car_title)}</li>"
        f"<li><strong>Price per day:</strong> {currency} {format_amount(booking.car_price_per_day)}</li>"
        "</ul>"
        "<h2>Booking Preferences</h2><ul>"
        f"<li><strong>Region:</strong> {_esc(booking.region)}</li>"
        f"<li><strong>City:</strong> {_esc(booking.city)}</li>"
        f"<li><strong>Area:</strong> {_esc(booking.area)}</li>"
        f"<li><strong>Start Date:</strong> {booking.start_date.isoformat()}</li>"
        f"<li><strong>End Date:</strong> {booking.end_date.isoformat()}</li>"
        f"<li><strong>Number of Days:</strong> {booking.num_days}</li>"
        "</ul>"
        "<h2>Customer</h2><ul>"
        f"<li><strong>Email:</strong> {_esc(booking.user_email)}</li>"
        f"<li><strong>Booking ID:</strong> {booking.id}</li>"
        "</ul>"
        f"<h2>Total Estimated Cost: {currency} {format_amount(booking.total_amount)}</h2>"
        f"<p>Thank you,<br>{_esc(app_name)}</p>"
    )


def handle_booking_quoted(
    email_client: EmailClient,
    bookings_inbox: str,
    currency: str,
    app_name: str,
) -> Callable:
    """
    Factory that returns a BookingQuoted handler.

    Args:
        email_client: Outbound email client
        bookings_inbox: Address that receives quotes
        currency: Currency label shown next to amounts
        app_name: Signature line

    Returns:
        Handler callable that emails the quote
    """

    def send_quote(event: BookingQuoted):
        booking = event.booking
        email_client.send_email(
            to=bookings_inbox,
            subject=f"Your Quote for {booking.car_title}",
            html_body=render_quote_email(event, currency, app_name),
        )
        logger.info(f"Quote for booking {booking.id} emailed to {bookings_inbox}")

    return send_quote
