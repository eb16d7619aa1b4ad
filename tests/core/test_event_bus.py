"""Tests for EventBus and booking events."""

import logging
from decimal import Decimal
from unittest.mock import Mock

import pytest

from core.event_bus import EventBus
from core.events import BookingPaid, BookingQuoted
from core.models import Booking
from fakes import booking_row


@pytest.fixture
def bus():
    return EventBus()


class TestEvents:

    def test_events_are_immutable(self):
        event = BookingQuoted.create(booking=None, customer_name="Ama")
        with pytest.raises(Exception):
            event.customer_name = "Kofi"

    def test_events_get_unique_ids(self):
        first = BookingPaid.create("ref_1", Decimal("300.00"), "a@b.com")
        second = BookingPaid.create("ref_1", Decimal("300.00"), "a@b.com")
        assert first.event_id != second.event_id
        assert first.occurred_at.tzinfo is not None

    def test_subject_names_booking_and_reference(self):
        booking = Booking.model_validate(booking_row())

        assert BookingQuoted.create(booking=booking).subject == "booking 42"
        assert BookingQuoted.create(booking=None).subject == "unsaved booking"
        assert BookingPaid.create("ref_1", Decimal("1.00"), None).subject == "payment ref_1"
        assert BookingPaid.create("ref_1", Decimal("1.00"), None, booking=booking).subject == (
            "payment ref_1, booking 42"
        )


class TestPublish:

    def test_delivers_to_subscribers_in_order(self, bus):
        calls = []
        bus.subscribe(BookingQuoted, lambda e: calls.append(("first", e)))
        bus.subscribe(BookingQuoted, lambda e: calls.append(("second", e)))
        event = BookingQuoted.create(booking=None)

        assert bus.publish(event) == []
        assert calls == [("first", event), ("second", event)]

    def test_dispatch_by_event_class(self, bus):
        handler = Mock()
        bus.subscribe(BookingPaid, handler)

        bus.publish(BookingQuoted.create(booking=None))

        handler.assert_not_called()

    def test_no_subscribers_is_fine(self, bus):
        assert bus.publish(BookingPaid.create("ref_1", Decimal("1.00"), None)) == []

    def test_failed_receipt_logged_with_reference(self, bus, caplog):
        """A failing email never undoes the payment that triggered it."""
        after = Mock()
        bus.subscribe(BookingPaid, Mock(side_effect=RuntimeError("smtp down"), __name__="send_receipt"))
        bus.subscribe(BookingPaid, after)

        with caplog.at_level(logging.ERROR, logger="core.event_bus"):
            failed = bus.publish(BookingPaid.create("ref_9", Decimal("1.00"), "a@b.com"))

        assert failed == ["send_receipt"]
        after.assert_called_once()
        message = caplog.records[0].getMessage()
        assert "send_receipt" in message
        assert "payment ref_9" in message

    def test_failed_quote_logged_with_booking_id(self, bus, caplog):
        bus.subscribe(BookingQuoted, Mock(side_effect=RuntimeError("smtp down"), __name__="send_quote"))
        booking = Booking.model_validate(booking_row(id=77))

        with caplog.at_level(logging.ERROR, logger="core.event_bus"):
            bus.publish(BookingQuoted.create(booking=booking))

        assert "booking 77" in caplog.records[0].getMessage()
