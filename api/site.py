"""Public site routes: testimonials, support form, health."""

import logging

from fastapi import APIRouter

from api.base import success_response, error_json, ErrorCodes
from clients.postgres_client import PostgresClient
from clients.valkey_client import ValkeyClient
from core.models import SupportMessage
from core.models.testimonial import TestimonialCreate
from core.services.support_service import SupportService
from core.services.testimonial_service import TestimonialService

logger = logging.getLogger(__name__)


def create_site_router(
    testimonial_svc: TestimonialService,
    support_svc: SupportService,
    postgres: PostgresClient,
    valkey: ValkeyClient | None = None,
) -> APIRouter:
    router = APIRouter(tags=["site"])

    @router.post("/testimonials", status_code=201)
    def create_testimonial(body: TestimonialCreate):
        testimonial = testimonial_svc.create(body)
        return success_response(
            testimonial.model_dump(mode="json"),
            message="Testimonial submitted successfully!",
        ).model_dump(mode="json")

    @router.get("/testimonials")
    def list_testimonials():
        testimonials = testimonial_svc.list_all()
        return success_response(
            [t.model_dump(mode="json") for t in testimonials]
        ).model_dump(mode="json")

    @router.post("/support-message")
    def support_message(body: SupportMessage):
        support_svc.send(body)
        return success_response(message="Message sent successfully!").model_dump(mode="json")

    @router.get("/health")
    def health():
        """Ping each backing store; 503 names the first one that is down."""
        checks = [("Database", postgres)]
        if valkey is not None:
            checks.append(("Valkey", valkey))

        for name, client in checks:
            try:
                client.ping()
            except Exception as e:
                logger.error(f"Health check failed for {name}: {e}")
                return error_json(503, ErrorCodes.SERVICE_UNAVAILABLE, f"{name} unavailable")

        return success_response(status="ok").model_dump(mode="json")

    return router
