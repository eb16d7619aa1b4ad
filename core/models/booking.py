"""Booking domain models.

Bookings snapshot the car title and daily price at booking time, so later
price changes never rewrite history. Amounts are Decimal with two places.

The request payloads mirror what the web client posts (camelCase keys,
a `user` that is sometimes wrapped in a one-element list), and are loose on
purpose: completeness is checked by BookingService with a readable message.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from pydantic import AliasChoices, BaseModel, Field, field_validator


class PaymentStatus(str, Enum):
    """Booking payment status."""

    UNPAID = "unpaid"
    PENDING = "pending"
    PAID = "paid"


def _date_part(value: Any) -> Any:
    # Clients send either "2025-03-01" or a full ISO timestamp
    if isinstance(value, str) and len(value) > 10 and value[10] in "T ":
        return value[:10]
    return value


class QuoteCar(BaseModel):
    """Car as posted by the client. `price` may carry a currency symbol."""

    id: int | None = None
    title: str | None = None
    price: str | int | float | Decimal | None = None


class BookingDetails(BaseModel):
    """Trip details as posted by the client."""

    region: str | None = Field(None, validation_alias=AliasChoices("selectedRegion", "region"))
    city: str | None = Field(None, validation_alias=AliasChoices("selectedCity", "city"))
    area: str | None = Field(None, validation_alias=AliasChoices("selectedArea", "area"))
    start_date: date | None = Field(None, validation_alias=AliasChoices("startDate", "start_date"))
    end_date: date | None = Field(None, validation_alias=AliasChoices("endDate", "end_date"))
    num_days: int | None = Field(None, validation_alias=AliasChoices("numDays", "num_days"))

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def strip_time(cls, value: Any) -> Any:
        return _date_part(value)


class QuoteUser(BaseModel):
    id: int | None = None
    username: str | None = None
    email: str | None = None


class BookingRequest(BaseModel):
    """Shared shape of the quote and payment-verification payloads."""

    car: QuoteCar | None = None
    booking_details: BookingDetails | None = Field(
        None, validation_alias=AliasChoices("bookingDetails", "booking_details")
    )
    user: QuoteUser | None = None
    total_amount: str | int | float | Decimal | None = Field(
        None, validation_alias=AliasChoices("totalAmount", "total_amount")
    )

    @field_validator("user", mode="before")
    @classmethod
    def unwrap_user(cls, value: Any) -> Any:
        if isinstance(value, list):
            return value[0] if value else None
        return value


class BookingQuoteRequest(BookingRequest):
    """POST /send-booking-quote body."""


class PaymentVerificationRequest(BookingRequest):
    """POST /paystack/verify-payment body. Booking context is optional."""

    reference: str | None = None

    @property
    def has_booking_context(self) -> bool:
        return self.car is not None and self.booking_details is not None


class BookingCreate(BaseModel):
    """Validated, computed booking ready to insert."""

    user_id: int | None = None
    user_name: str | None = None
    user_email: str = Field(..., min_length=3)
    car_id: int | None = None
    car_title: str = Field(..., min_length=1)
    car_price_per_day: Decimal
    region: str | None = None
    city: str | None = None
    area: str | None = None
    start_date: date
    end_date: date
    num_days: int = Field(..., ge=1)
    total_amount: Decimal
    payment_status: PaymentStatus = PaymentStatus.UNPAID
    payment_reference: str | None = None


class Booking(BaseModel):
    """Full booking entity as stored."""

    id: int
    user_id: int | None
    user_name: str | None
    user_email: str
    car_id: int | None
    car_title: str
    car_price_per_day: Decimal | None
    region: str | None
    city: str | None
    area: str | None
    start_date: date
    end_date: date
    num_days: int
    total_amount: Decimal
    payment_status: PaymentStatus
    payment_reference: str | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}

    @property
    def is_paid(self) -> bool:
        return self.payment_status == PaymentStatus.PAID
