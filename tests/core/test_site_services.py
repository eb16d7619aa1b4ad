"""Tests for SupportService and TestimonialService."""

from datetime import datetime, timezone
from unittest.mock import Mock

import pytest

from clients.email_client import EmailClient, EmailDeliveryError
from clients.postgres_client import PostgresClient
from core.models import SupportMessage
from core.models import testimonial as testimonial_models
from core.services import testimonial_service
from core.services.support_service import SupportService


def support_message(**overrides):
    fields = {
        "name": "Ama",
        "email": "Ama@Example.com",
        "subject": "Pickup time",
        "message": "Can I collect at 7am?\nThanks",
    }
    fields.update(overrides)
    return SupportMessage(**fields)


class TestSupportService:

    def test_forwards_to_inbox(self):
        email_client = Mock(spec=EmailClient)

        SupportService(email_client, "support@hood.example").send(support_message())

        kwargs = email_client.send_email.call_args.kwargs
        assert kwargs["to"] == "support@hood.example"
        assert kwargs["subject"] == "Support: Pickup time"
        assert "ama@example.com" in kwargs["html_body"]
        assert "7am?<br>Thanks" in kwargs["html_body"]

    @pytest.mark.parametrize("field", ["name", "email", "subject", "message"])
    def test_all_fields_required(self, field):
        email_client = Mock(spec=EmailClient)
        with pytest.raises(ValueError, match="All fields are required."):
            SupportService(email_client, "support@hood.example").send(support_message(**{field: " "}))
        email_client.send_email.assert_not_called()

    def test_escapes_html(self):
        email_client = Mock(spec=EmailClient)
        SupportService(email_client, "support@hood.example").send(support_message(message="<img src=x>"))
        assert "<img" not in email_client.send_email.call_args.kwargs["html_body"]

    def test_delivery_failure_propagates(self):
        email_client = Mock(spec=EmailClient)
        email_client.send_email.side_effect = EmailDeliveryError("Email could not be sent")
        with pytest.raises(EmailDeliveryError):
            SupportService(email_client, "support@hood.example").send(support_message())


class TestTestimonials:

    def test_create_trims_and_returns(self):
        postgres = Mock(spec=PostgresClient)
        postgres.execute_returning.return_value = [{
            "id": 1, "name": "Ama", "rating": 5, "message": "Great car",
            "created_at": datetime(2025, 1, 1, tzinfo=timezone.utc),
        }]
        service = testimonial_service.TestimonialService(postgres)

        created = service.create(testimonial_models.TestimonialCreate(name=" Ama ", rating=5, message=" Great car "))

        assert created.id == 1
        assert postgres.execute_returning.call_args.args[1][:3] == ("Ama", 5, "Great car")

    def test_rating_bounds(self):
        with pytest.raises(ValueError):
            testimonial_models.TestimonialCreate(name="Ama", rating=6, message="hi")

    def test_list_newest_first(self):
        postgres = Mock(spec=PostgresClient)
        postgres.execute.return_value = []

        testimonial_service.TestimonialService(postgres).list_all(limit=10)

        sql, params = postgres.execute.call_args.args
        assert "ORDER BY id DESC" in sql
        assert params == (10,)
