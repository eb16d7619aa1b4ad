"""Tests for SecurityLogger - auth event audit trail."""

from unittest.mock import Mock

import pytest
from psycopg2.extras import Json

from auth.security_logger import SecurityLogger, SecurityEvent
from clients.postgres_client import PostgresClient


@pytest.fixture
def postgres():
    return Mock(spec=PostgresClient)


class TestLogEvent:
    """Test event logging."""

    def test_inserts_event_row(self, postgres):
        """Event type, email and ip are written in column order."""
        SecurityLogger(postgres).log(
            event=SecurityEvent.MAGIC_LINK_REQUESTED,
            email="logged@example.com",
            user_id=4,
            ip_address="192.168.1.1",
        )

        sql, params = postgres.execute_returning.call_args.args
        assert "INSERT INTO security_events" in sql
        assert params[:4] == ("magic_link_requested", "logged@example.com", 4, "192.168.1.1")
        assert params[5] is None

    def test_details_wrapped_as_json(self, postgres):
        SecurityLogger(postgres).log(
            SecurityEvent.OTP_FAILED,
            email="x@example.com",
            details={"reason": "invalid_code", "attempts": 1},
        )

        params = postgres.execute_returning.call_args.args[1]
        assert isinstance(params[5], Json)
        assert params[5].adapted == {"reason": "invalid_code", "attempts": 1}
