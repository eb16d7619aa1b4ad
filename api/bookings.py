"""Booking routes: quote requests, payment confirmation, a user's bookings."""

import logging

from fastapi import APIRouter, Depends

from api.base import success_response
from auth.security_middleware import current_user_id, optional_user_id
from auth.service import AuthService
from core.models import BookingQuoteRequest, PaymentVerificationRequest
from core.services.booking_service import BookingService
from core.services.payment_service import PaymentConfirmationBridge

logger = logging.getLogger(__name__)


def create_bookings_router(
    booking_svc: BookingService,
    payments: PaymentConfirmationBridge,
    auth_service: AuthService,
) -> APIRouter:
    router = APIRouter(tags=["bookings"])

    @router.post("/send-booking-quote")
    def send_booking_quote(
        body: BookingQuoteRequest,
        user_id: int | None = Depends(optional_user_id),
    ):
        """Record an unpaid booking and email the quote."""
        booking = booking_svc.create_quote(body, user_id=user_id)
        return success_response(
            message="Booking quote sent successfully.",
            bookingId=booking.id,
            totalAmount=f"{booking.total_amount:.2f}",
        ).model_dump(mode="json")

    @router.post("/paystack/verify-payment")
    def verify_payment(
        body: PaymentVerificationRequest,
        user_id: int | None = Depends(optional_user_id),
    ):
        """Confirm a Paystack reference; record the paid booking if context was sent."""
        result = payments.verify_payment(
            body.reference,
            context=body if body.has_booking_context else None,
            user_id=user_id,
        )
        return success_response(
            message=result.message,
            bookingId=result.booking.id if result.booking else None,
            paymentStatus=result.booking.payment_status.value if result.booking else None,
        ).model_dump(mode="json")

    @router.get("/bookings/me")
    def my_bookings(user_id: int = Depends(current_user_id)):
        user = auth_service.get_user(user_id)
        bookings = booking_svc.list_for_user(user.id, email=user.email)
        return success_response(
            [b.model_dump(mode="json") for b in bookings]
        ).model_dump(mode="json")

    return router
