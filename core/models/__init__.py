"""Core domain models."""

from core.models.car import Car, CarCreate, CarUpdate
from core.models.booking import (
    Booking,
    BookingCreate,
    BookingDetails,
    BookingQuoteRequest,
    BookingRequest,
    PaymentStatus,
    PaymentVerificationRequest,
    QuoteCar,
    QuoteUser,
)
from core.models.testimonial import Testimonial, TestimonialCreate
from core.models.support import SupportMessage

__all__ = [
    # Car
    "Car", "CarCreate", "CarUpdate",
    # Booking
    "Booking", "BookingCreate", "BookingDetails", "BookingQuoteRequest", "BookingRequest",
    "PaymentStatus", "PaymentVerificationRequest", "QuoteCar", "QuoteUser",
    # Testimonial
    "Testimonial", "TestimonialCreate",
    # Support
    "SupportMessage",
]
