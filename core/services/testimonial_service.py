"""Testimonial service: public submissions, newest-first listing."""

import logging

from clients.postgres_client import PostgresClient
from core.models.testimonial import Testimonial, TestimonialCreate
from utils.timezone import now_utc

logger = logging.getLogger(__name__)


class TestimonialService:
    """Service for testimonial operations."""

    def __init__(self, postgres: PostgresClient):
        self.postgres = postgres

    def create(self, data: TestimonialCreate) -> Testimonial:
        row = self.postgres.execute_returning(
            """
            INSERT INTO testimonials (name, rating, message, created_at)
            VALUES (%s, %s, %s, %s)
            RETURNING *
            """,
            (data.name.strip(), data.rating, data.message.strip(), now_utc())
        )[0]
        return Testimonial.model_validate(row)

    def list_all(self, limit: int = 100) -> list[Testimonial]:
        rows = self.postgres.execute(
            "SELECT * FROM testimonials ORDER BY id DESC LIMIT %s",
            (limit,)
        )
        return [Testimonial.model_validate(row) for row in rows]
