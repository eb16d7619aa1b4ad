"""
Car service for rental inventory.

Public reads, admin-only writes. Every write is audited.
"""

import logging

from clients.postgres_client import PostgresClient
from core.audit import AuditLogger, AuditAction, compute_changes
from core.models import Car, CarCreate, CarUpdate
from utils.timezone import now_utc

logger = logging.getLogger(__name__)

_UPDATABLE_COLUMNS = {
    "title", "description", "price_per_day", "category", "seats",
    "transmission", "fuel_type", "image_urls", "is_available",
}


class CarService:
    """Service for car operations."""

    def __init__(self, postgres: PostgresClient, audit: AuditLogger):
        self.postgres = postgres
        self.audit = audit

    def create(self, data: CarCreate) -> Car:
        """
        List a new car.

        Args:
            data: Car creation data

        Returns:
            Created car
        """
        now = now_utc()
        row = self.postgres.execute_returning(
            """
            INSERT INTO cars (
                title, description, price_per_day, category, seats,
                transmission, fuel_type, image_urls, is_available,
                created_at, updated_at
            ) VALUES (
                %s, %s, %s, %s, %s,
                %s, %s, %s, %s,
                %s, %s
            )
            RETURNING *
            """,
            (
                data.title, data.description, data.price_per_day, data.category, data.seats,
                data.transmission, data.fuel_type, data.image_urls, data.is_available,
                now, now
            )
        )[0]

        car = Car.model_validate(row)

        self.audit.log_change(
            entity_type="car",
            entity_id=car.id,
            action=AuditAction.CREATE,
            changes={"created": data.model_dump(mode="json", exclude_none=True)}
        )

        return car

    def get_by_id(self, car_id: int) -> Car | None:
        row = self.postgres.execute_single(
            "SELECT * FROM cars WHERE id = %s",
            (car_id,)
        )
        if row is None:
            return None
        return Car.model_validate(row)

    def list(self, available_only: bool = False) -> list[Car]:
        """Cars, newest first. Optionally only those open for booking."""
        if available_only:
            rows = self.postgres.execute(
                "SELECT * FROM cars WHERE is_available ORDER BY created_at DESC, id DESC"
            )
        else:
            rows = self.postgres.execute(
                "SELECT * FROM cars ORDER BY created_at DESC, id DESC"
            )
        return [Car.model_validate(row) for row in rows]

    def update(self, car_id: int, data: CarUpdate) -> Car:
        """
        Update car fields.

        Raises:
            ValueError: If car not found
        """
        current = self.get_by_id(car_id)
        if current is None:
            raise ValueError(f"Car {car_id} not found")

        updates = {
            k: v for k, v in data.model_dump(exclude_none=True).items()
            if k in _UPDATABLE_COLUMNS
        }
        if not updates:
            return current

        set_parts = [f"{field} = %s" for field in updates]
        params = list(updates.values())

        set_parts.append("updated_at = %s")
        params.append(now_utc())
        params.append(car_id)

        row = self.postgres.execute_returning(
            f"""
            UPDATE cars
            SET {', '.join(set_parts)}
            WHERE id = %s
            RETURNING *
            """,
            tuple(params)
        )[0]

        updated = Car.model_validate(row)

        changes = compute_changes(
            current.model_dump(mode="json"),
            updated.model_dump(mode="json")
        )
        if changes:
            self.audit.log_change(
                entity_type="car",
                entity_id=car_id,
                action=AuditAction.UPDATE,
                changes=changes
            )

        return updated

    def delete(self, car_id: int) -> None:
        """
        Remove a car. Existing bookings keep their snapshot of it.

        Raises:
            ValueError: If car not found
        """
        current = self.get_by_id(car_id)
        if current is None:
            raise ValueError(f"Car {car_id} not found")

        self.postgres.execute_returning(
            "DELETE FROM cars WHERE id = %s RETURNING id",
            (car_id,)
        )

        self.audit.log_change(
            entity_type="car",
            entity_id=car_id,
            action=AuditAction.DELETE,
            changes={"deleted": current.model_dump(mode="json")}
        )
        logger.info(f"Deleted car {car_id}")
