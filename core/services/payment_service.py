"""
Payment confirmation.

The web client completes checkout with Paystack, then posts the transaction
reference here. We ask Paystack whether the charge succeeded and, if so,
record the paid booking and email a receipt.

Confirming the same reference twice returns the booking recorded the first
time; no duplicate row, no second receipt.
"""

import logging
from dataclasses import dataclass

from clients.paystack_client import PaystackClient, PaystackCustomer
from core.event_bus import EventBus
from core.events import BookingPaid
from core.models import Booking, BookingCreate, BookingRequest, PaymentStatus, QuoteUser
from core.services.booking_service import BookingService
from utils.money import amounts_equal, from_minor_units

logger = logging.getLogger(__name__)

UNDERPAID_MESSAGE = (
    "Payment received but it is less than the booking total. "
    "Your booking is pending review."
)


class PaymentRejectedError(Exception):
    """The provider says the charge did not succeed. Message is the provider's."""


@dataclass
class ConfirmationResult:
    """Outcome of a successful verification."""

    message: str
    booking: Booking | None = None
    created: bool = False
    receipt_sent: bool = False


class PaymentConfirmationBridge:
    """Turn a provider-confirmed payment reference into a paid booking."""

    def __init__(self, paystack: PaystackClient, bookings: BookingService, event_bus: EventBus):
        self._paystack = paystack
        self._bookings = bookings
        self._event_bus = event_bus

    def verify_payment(
        self,
        reference: str | None,
        context: BookingRequest | None = None,
        user_id: int | None = None,
    ) -> ConfirmationResult:
        """
        Verify a payment reference and record its booking.

        Paystack is always asked first. Booking context that cannot be turned
        into a booking never blocks a successful payment: the payment is
        confirmed without a booking and the receipt still goes out. A payer
        missing from the context is taken from the Paystack customer.

        An amount below the booking total is recorded as a pending booking
        and no receipt is sent.

        Raises:
            ValueError: Missing reference
            PaymentGatewayError: Provider unreachable or unreadable
            PaymentRejectedError: Provider reports the charge failed
        """
        reference = (reference or "").strip()
        if not reference:
            raise ValueError("Payment reference is required for verification.")

        verification = self._paystack.verify_transaction(reference)
        if not verification.succeeded:
            logger.warning(f"Payment {reference} rejected by provider: {verification.message}")
            raise PaymentRejectedError(verification.message or "Payment verification failed.")

        existing = self._bookings.get_by_reference(reference)
        if existing is not None:
            logger.info(f"Payment {reference} already confirmed as booking {existing.id}")
            return self._already_recorded(existing)

        transaction = verification.data
        customer = transaction.customer
        amount = from_minor_units(transaction.amount)
        booking = None
        created = False

        draft = self._draft(reference, context, user_id, customer) if context is not None else None
        if draft is not None:
            status = PaymentStatus.PAID
            if amount < draft.total_amount:
                logger.warning(
                    f"Payment {reference}: provider amount {amount} is below "
                    f"booking total {draft.total_amount}; holding booking as pending"
                )
                status = PaymentStatus.PENDING
            elif not amounts_equal(draft.total_amount, amount):
                logger.info(
                    f"Payment {reference}: provider amount {amount} exceeds "
                    f"booking total {draft.total_amount}"
                )

            booking, created = self._bookings.record_paid(draft, status=status)
            if not created:
                return self._already_recorded(booking)
            if status == PaymentStatus.PENDING:
                return ConfirmationResult(message=UNDERPAID_MESSAGE, booking=booking, created=True)

        failed = self._event_bus.publish(BookingPaid.create(
            reference=reference,
            amount=amount,
            customer_email=customer.email or (booking.user_email if booking else None),
            customer_name=customer.first_name or (booking.user_name if booking else None),
            booking=booking,
        ))

        return ConfirmationResult(
            message="Payment verified and booking confirmed.",
            booking=booking,
            created=created,
            receipt_sent=not failed,
        )

    def _draft(
        self,
        reference: str,
        context: BookingRequest,
        user_id: int | None,
        customer: PaystackCustomer,
    ) -> BookingCreate | None:
        """Booking row for a confirmed payment, or None when the context is unusable."""
        if context.user is None or not (context.user.email or "").strip():
            payer = QuoteUser(username=customer.first_name, email=customer.email)
            context = context.model_copy(update={"user": payer})

        try:
            return self._bookings.build(
                context,
                user_id=user_id,
                payment_status=PaymentStatus.PAID,
                payment_reference=reference,
            )
        except ValueError as e:
            logger.warning(f"Payment {reference} confirmed without a booking: {e}")
            return None

    @staticmethod
    def _already_recorded(booking: Booking) -> ConfirmationResult:
        message = "Payment already verified." if booking.is_paid else UNDERPAID_MESSAGE
        return ConfirmationResult(message=message, booking=booking, created=False)
