"""API fixtures: the full route table over fakes and mocks.

Auth runs for real (fake users table, in-memory credential store, real JWTs).
SQL-backed services sit on Mock(spec=PostgresClient); tests set the rows
they expect back.
"""

from unittest.mock import Mock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from api.admin import create_admin_router
from api.bookings import create_bookings_router
from api.cars import create_cars_router
from api.errors import register_error_handlers
from api.middleware import RequestIDMiddleware
from api.site import create_site_router
from auth.api import create_auth_router
from auth.security_middleware import AuthMiddleware
from clients.paystack_client import PaystackClient
from clients.postgres_client import PostgresClient
from clients.valkey_client import ValkeyClient
from core.audit import AuditLogger
from core.event_bus import EventBus
from core.services.booking_service import BookingService
from core.services.car_service import CarService
from core.services.payment_service import PaymentConfirmationBridge
from core.services.support_service import SupportService
from core.services.testimonial_service import TestimonialService


# =============================================================================
# BACKING CLIENTS
# =============================================================================


@pytest.fixture
def postgres():
    db = Mock(spec=PostgresClient)
    db.execute.return_value = []
    db.execute_single.return_value = None
    return db


@pytest.fixture
def valkey():
    return Mock(spec=ValkeyClient)


@pytest.fixture
def paystack():
    return Mock(spec=PaystackClient)


@pytest.fixture
def event_bus():
    return Mock(spec=EventBus)


# =============================================================================
# SERVICES
# =============================================================================


@pytest.fixture
def booking_service(postgres, event_bus, car_service):
    return BookingService(postgres, Mock(spec=AuditLogger), event_bus, cars=car_service)


@pytest.fixture
def car_service(postgres):
    return CarService(postgres, Mock(spec=AuditLogger))


@pytest.fixture
def payments(paystack, booking_service, event_bus):
    return PaymentConfirmationBridge(paystack, booking_service, event_bus)


# =============================================================================
# APP & CLIENT FIXTURES
# =============================================================================


@pytest.fixture
def app(
    tokens,
    auth_db,
    auth_service,
    issuer,
    verifier,
    car_service,
    booking_service,
    payments,
    postgres,
    valkey,
    email_client,
):
    """FastAPI app with auth middleware, error handlers, and every router."""
    app = FastAPI()
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(AuthMiddleware, tokens=tokens, auth_db=auth_db)
    register_error_handlers(app)

    app.include_router(create_auth_router(auth_service, issuer, verifier))
    app.include_router(create_cars_router(car_service))
    app.include_router(create_bookings_router(booking_service, payments, auth_service))
    app.include_router(create_admin_router(auth_service, booking_service))
    app.include_router(create_site_router(
        TestimonialService(postgres),
        SupportService(email_client, "support@example.com"),
        postgres,
        valkey,
    ))
    return app


@pytest.fixture
def client(app):
    return TestClient(app, raise_server_exceptions=False)


# =============================================================================
# AUTH HELPERS
# =============================================================================


@pytest.fixture
def user(auth_db):
    return auth_db.create_user("ama", "ama@example.com", "x")


@pytest.fixture
def admin(auth_db):
    return auth_db.create_user("kofi", "kofi@example.com", "x", is_admin=True)


@pytest.fixture
def user_headers(tokens, user):
    return {"Authorization": f"Bearer {tokens.mint(user)}"}


@pytest.fixture
def admin_headers(tokens, admin):
    return {"Authorization": f"Bearer {tokens.mint(admin)}"}
