"""
Booking service.

Bookings are created two ways: a quote request (unpaid) or a verified
payment (paid, tagged with the provider reference). A payment reference maps
to at most one booking; the partial unique index on payment_reference makes
concurrent confirmations of one reference collapse into a single row.

When the request names a listed car, its inventory price is used in place of
the price the client sent.
"""

import logging
from datetime import timedelta
from decimal import Decimal

from clients.postgres_client import PostgresClient
from core.audit import AuditLogger, AuditAction
from core.event_bus import EventBus
from core.events import BookingQuoted
from core.models import Booking, BookingCreate, BookingRequest, PaymentStatus, QuoteCar
from core.services.car_service import CarService
from utils.money import compute_total, parse_amount, quantize
from utils.timezone import now_utc

logger = logging.getLogger(__name__)

MISSING_DETAILS_MESSAGE = (
    "Essential details like car title, price, start date, number of days, "
    "and user email are required."
)

_INSERT_COLUMNS = (
    "user_id", "user_name", "user_email", "car_id", "car_title", "car_price_per_day",
    "region", "city", "area", "start_date", "end_date", "num_days", "total_amount",
    "payment_status", "payment_reference",
)


class BookingService:
    """Service for booking operations."""

    def __init__(
        self,
        postgres: PostgresClient,
        audit: AuditLogger,
        event_bus: EventBus,
        cars: CarService | None = None,
    ):
        self.postgres = postgres
        self.audit = audit
        self.event_bus = event_bus
        self.cars = cars

    def build(
        self,
        request: BookingRequest,
        user_id: int | None = None,
        payment_status: PaymentStatus = PaymentStatus.UNPAID,
        payment_reference: str | None = None,
    ) -> BookingCreate:
        """
        Validate a client payload and compute the booking row.

        The total is price_per_day * num_days rounded to cents, unless the
        client supplied one. A client total below the listed car's price is
        raised to the listed total.

        Raises:
            ValueError: If essential details are missing or amounts unparseable
        """
        car = request.car
        details = request.booking_details
        user = request.user

        if (
            car is None or details is None or user is None
            or not car.title or car.price in (None, "")
            or details.start_date is None or not details.num_days
            or not (user.email or "").strip()
        ):
            raise ValueError(MISSING_DETAILS_MESSAGE)
        if details.num_days < 1:
            raise ValueError("Number of days must be at least 1.")

        listed_price = self._listed_price(car)
        price_per_day = listed_price if listed_price is not None else quantize(parse_amount(car.price))
        if price_per_day <= 0:
            raise ValueError("Car price must be positive.")

        computed = compute_total(price_per_day, details.num_days)
        if request.total_amount not in (None, ""):
            total = quantize(parse_amount(request.total_amount))
            if listed_price is not None and total < computed:
                logger.warning(
                    f"Client total {total} for car {car.id} is below listed total {computed}; using listed"
                )
                total = computed
        else:
            total = computed

        end_date = details.end_date or details.start_date + timedelta(days=details.num_days)
        if end_date < details.start_date:
            raise ValueError("End date cannot be before start date.")

        return BookingCreate(
            user_id=user_id,
            user_name=user.username,
            user_email=user.email.strip().lower(),
            car_id=car.id,
            car_title=car.title.strip(),
            car_price_per_day=price_per_day,
            region=details.region,
            city=details.city,
            area=details.area,
            start_date=details.start_date,
            end_date=end_date,
            num_days=details.num_days,
            total_amount=total,
            payment_status=payment_status,
            payment_reference=payment_reference,
        )

    def _listed_price(self, car: QuoteCar) -> Decimal | None:
        """Inventory price per day for a car id, or None when it is not listed."""
        if car.id is None or self.cars is None:
            return None
        listed = self.cars.get_by_id(car.id)
        if listed is None:
            logger.warning(f"Car {car.id} is not in inventory; using client price {car.price!r}")
            return None
        return quantize(listed.price_per_day)

    def _insert_params(self, data: BookingCreate) -> tuple:
        values = data.model_dump()
        values["payment_status"] = data.payment_status.value
        now = now_utc()
        return tuple(values[c] for c in _INSERT_COLUMNS) + (now, now)

    def create_quote(self, request: BookingRequest, user_id: int | None = None) -> Booking:
        """
        Record an unpaid booking from a quote request and announce it.

        Raises:
            ValueError: If essential details are missing
        """
        data = self.build(request, user_id=user_id)

        row = self.postgres.execute_returning(
            f"""
            INSERT INTO bookings ({', '.join(_INSERT_COLUMNS)}, created_at, updated_at)
            VALUES ({', '.join(['%s'] * (len(_INSERT_COLUMNS) + 2))})
            RETURNING *
            """,
            self._insert_params(data)
        )[0]

        booking = Booking.model_validate(row)
        logger.info(f"Recorded quote booking {booking.id} for {booking.user_email}")

        self.event_bus.publish(BookingQuoted.create(
            booking=booking,
            customer_name=data.user_name,
        ))
        return booking

    def record_paid(
        self, data: BookingCreate, status: PaymentStatus = PaymentStatus.PAID
    ) -> tuple[Booking, bool]:
        """
        Insert a booking for a confirmed payment unless its reference is
        already recorded.

        Args:
            status: PAID, or PENDING when the amount received falls short of
                the booking total

        Returns:
            (booking, created). created is False when another call already
            recorded this reference; the existing row is returned.
        """
        if not data.payment_reference:
            raise ValueError("Paid bookings require a payment reference")
        if status == PaymentStatus.UNPAID:
            raise ValueError("A confirmed payment cannot be recorded as unpaid")

        paid = data.model_copy(update={"payment_status": status})
        rows = self.postgres.execute_returning(
            f"""
            INSERT INTO bookings ({', '.join(_INSERT_COLUMNS)}, created_at, updated_at)
            VALUES ({', '.join(['%s'] * (len(_INSERT_COLUMNS) + 2))})
            ON CONFLICT (payment_reference) WHERE payment_reference IS NOT NULL
            DO NOTHING
            RETURNING *
            """,
            self._insert_params(paid)
        )

        if rows:
            booking = Booking.model_validate(rows[0])
            logger.info(
                f"Recorded {status.value} booking {booking.id} for reference {booking.payment_reference}"
            )
            return booking, True

        existing = self.get_by_reference(data.payment_reference)
        if existing is None:
            raise RuntimeError(f"Booking for reference {data.payment_reference} vanished after conflict")
        logger.info(f"Reference {data.payment_reference} already recorded as booking {existing.id}")
        return existing, False

    def get_by_id(self, booking_id: int) -> Booking | None:
        row = self.postgres.execute_single(
            "SELECT * FROM bookings WHERE id = %s",
            (booking_id,)
        )
        if row is None:
            return None
        return Booking.model_validate(row)

    def get_by_reference(self, reference: str) -> Booking | None:
        row = self.postgres.execute_single(
            "SELECT * FROM bookings WHERE payment_reference = %s",
            (reference,)
        )
        if row is None:
            return None
        return Booking.model_validate(row)

    def list_for_user(self, user_id: int, email: str | None = None) -> list[Booking]:
        """A user's bookings, newest first. Matches guest bookings by email too."""
        rows = self.postgres.execute(
            """
            SELECT * FROM bookings
            WHERE user_id = %s OR (user_id IS NULL AND user_email = %s)
            ORDER BY created_at DESC, id DESC
            """,
            (user_id, email)
        )
        return [Booking.model_validate(row) for row in rows]

    def list_all(self, payment_status: PaymentStatus | None = None) -> list[Booking]:
        if payment_status is not None:
            rows = self.postgres.execute(
                "SELECT * FROM bookings WHERE payment_status = %s ORDER BY created_at DESC, id DESC",
                (payment_status.value,)
            )
        else:
            rows = self.postgres.execute(
                "SELECT * FROM bookings ORDER BY created_at DESC, id DESC"
            )
        return [Booking.model_validate(row) for row in rows]

    def delete(self, booking_id: int) -> None:
        """
        Remove a booking (admin action).

        Raises:
            ValueError: If booking not found
        """
        current = self.get_by_id(booking_id)
        if current is None:
            raise ValueError(f"Booking {booking_id} not found")

        self.postgres.execute_returning(
            "DELETE FROM bookings WHERE id = %s RETURNING id",
            (booking_id,)
        )

        self.audit.log_change(
            entity_type="booking",
            entity_id=booking_id,
            action=AuditAction.DELETE,
            changes={"deleted": current.model_dump(mode="json")}
        )
