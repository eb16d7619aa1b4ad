"""
Domain events for bookings.

Immutable event objects that represent state changes in the booking domain.
A service publishes what happened, and handlers react (send emails) without
the publisher knowing who's listening.

Events carry the full domain object so handlers don't need to re-fetch state.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any
from uuid import uuid4

from utils.timezone import now_utc


@dataclass(frozen=True, kw_only=True)
class DomainEvent:
    """Base class for all domain events."""
    event_id: str = field(default_factory=lambda: str(uuid4()))
    occurred_at: datetime = field(default_factory=now_utc)


# =============================================================================
# BOOKING EVENTS
# =============================================================================


@dataclass(frozen=True)
class BookingEvent(DomainEvent):
    """Events related to booking lifecycle."""

    @property
    def subject(self) -> str:
        """What the event is about, for log lines."""
        booking = getattr(self, "booking", None)
        if booking is not None and getattr(booking, "id", None) is not None:
            return f"booking {booking.id}"
        return "unsaved booking"


@dataclass(frozen=True)
class BookingQuoted(BookingEvent):
    """An unpaid booking was recorded from a quote request."""
    booking: Any = None  # Booking; Any avoids a circular import
    customer_name: str | None = None

    @classmethod
    def create(cls, booking: Any, customer_name: str | None = None) -> "BookingQuoted":
        return cls(booking=booking, customer_name=customer_name)


@dataclass(frozen=True)
class BookingPaid(BookingEvent):
    """
    The payment provider confirmed a charge.

    `booking` is None when the client sent no booking context; the receipt
    is still emailed from the provider's data.
    """
    reference: str = ""
    amount: Any = None  # Decimal, major units
    customer_email: str | None = None
    customer_name: str | None = None
    booking: Any = None

    @property
    def subject(self) -> str:
        if self.booking is not None:
            return f"payment {self.reference}, booking {self.booking.id}"
        return f"payment {self.reference}"

    @classmethod
    def create(
        cls,
        reference: str,
        amount: Any,
        customer_email: str | None,
        customer_name: str | None = None,
        booking: Any = None,
    ) -> "BookingPaid":
        return cls(
            reference=reference,
            amount=amount,
            customer_email=customer_email,
            customer_name=customer_name,
            booking=booking,
        )
