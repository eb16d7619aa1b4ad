"""
Application entry point.

Wires clients, services, routers and middleware into a FastAPI app.
Run with `uvicorn main:app` or `python main.py`.
"""

import logging
import os
from contextlib import asynccontextmanager

import uvicorn
from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.admin import create_admin_router
from api.bookings import create_bookings_router
from api.cars import create_cars_router
from api.errors import register_error_handlers
from api.middleware import RequestIDMiddleware
from api.site import create_site_router
from auth.api import create_auth_router
from auth.config import AuthConfig
from auth.credential_store import CredentialStore, InMemoryCredentialStore, ValkeyCredentialStore
from auth.database import AuthDatabase
from auth.identity import IdentityResolver
from auth.issuer import CredentialIssuer
from auth.passwords import PasswordHasher
from auth.rate_limiter import RateLimiter
from auth.security_logger import SecurityLogger
from auth.security_middleware import AuthMiddleware
from auth.service import AuthService
from auth.tokens import AccessTokenManager
from auth.verifier import CredentialVerifier
from clients.email_client import EmailClient
from clients.google_client import GoogleClient
from clients.paystack_client import PaystackClient
from clients.postgres_client import PostgresClient
from clients.valkey_client import ValkeyClient
from clients.vault_client import (
    get_admin_seed,
    get_database_url,
    get_email_config,
    get_google_client_id,
    get_jwt_secret,
    get_paystack_config,
    get_valkey_url,
)
from core.audit import AuditLogger
from core.config import AppConfig
from core.event_bus import EventBus
from core.events import BookingPaid, BookingQuoted
from core.handlers.booking_paid_handler import handle_booking_paid
from core.handlers.booking_quote_handler import handle_booking_quoted
from core.services.booking_service import BookingService
from core.services.car_service import CarService
from core.services.payment_service import PaymentConfirmationBridge
from core.services.support_service import SupportService
from core.services.testimonial_service import TestimonialService

logger = logging.getLogger(__name__)


def _credential_store(app_config: AppConfig, auth_config: AuthConfig, valkey: ValkeyClient | None) -> CredentialStore:
    backend = app_config.credential_store
    if backend == "auto":
        backend = "valkey" if valkey is not None else "memory"

    if backend == "valkey":
        if valkey is None:
            raise ValueError("CREDENTIAL_STORE=valkey requires VALKEY_URL")
        logger.info("Using Valkey credential store")
        return ValkeyCredentialStore(valkey, retention_seconds=auth_config.credential_retention_seconds)

    logger.warning("Using in-memory credential store; run a single worker")
    return InMemoryCredentialStore()


def create_app() -> FastAPI:
    """Build the application from environment and Vault configuration."""
    app_config = AppConfig.from_env()
    auth_config = AuthConfig(
        frontend_base_url=os.getenv("FRONTEND_URL", "http://localhost:5173"),
        app_name=os.getenv("APP_NAME", "Hood Car Rentals"),
    )

    # Clients
    postgres = PostgresClient(get_database_url(), max_connections=app_config.db_pool_max)
    valkey_url = get_valkey_url()
    valkey = ValkeyClient(valkey_url) if valkey_url else None
    email_config = get_email_config()
    email_client = EmailClient(api_key=email_config["api_key"], sender=email_config["sender"])
    paystack = PaystackClient(secret_key=get_paystack_config()["secret_key"])
    google_client_id = get_google_client_id()
    google_client = GoogleClient(google_client_id) if google_client_id else None

    # Auth
    auth_db = AuthDatabase(postgres)
    passwords = PasswordHasher(rounds=auth_config.bcrypt_rounds)
    tokens = AccessTokenManager(
        get_jwt_secret(),
        expiry_hours=auth_config.access_token_expiry_hours,
        algorithm=auth_config.access_token_algorithm,
    )
    security_logger = SecurityLogger(postgres)
    rate_limiter = RateLimiter(valkey, auth_config) if valkey is not None else None
    store = _credential_store(app_config, auth_config, valkey)
    identity = IdentityResolver(auth_db, passwords, security_logger)
    issuer = CredentialIssuer(auth_config, store, identity, email_client, security_logger, rate_limiter)
    verifier = CredentialVerifier(auth_config, store, auth_db, tokens, security_logger, rate_limiter)
    auth_service = AuthService(auth_db, passwords, tokens, identity, security_logger, google_client)

    # Domain
    event_bus = EventBus()
    audit = AuditLogger(postgres)
    car_svc = CarService(postgres, audit)
    booking_svc = BookingService(postgres, audit, event_bus, cars=car_svc)
    payments = PaymentConfirmationBridge(paystack, booking_svc, event_bus)
    testimonial_svc = TestimonialService(postgres)
    support_svc = SupportService(email_client, app_config.support_inbox)

    event_bus.subscribe(BookingQuoted, handle_booking_quoted(
        email_client, app_config.bookings_inbox, app_config.currency, auth_config.app_name,
    ))
    event_bus.subscribe(BookingPaid, handle_booking_paid(
        email_client, app_config.bookings_inbox, app_config.currency,
    ))

    admin_seed = get_admin_seed()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if admin_seed is not None:
            auth_service.ensure_admin(**admin_seed)
        yield
        PostgresClient.close_all_pools()
        if valkey is not None:
            valkey.close()

    app = FastAPI(title=auth_config.app_name, lifespan=lifespan)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(AuthMiddleware, tokens=tokens, auth_db=auth_db)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_config.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_error_handlers(app)

    app.include_router(create_auth_router(auth_service, issuer, verifier))
    app.include_router(create_cars_router(car_svc))
    app.include_router(create_bookings_router(booking_svc, payments, auth_service))
    app.include_router(create_admin_router(auth_service, booking_svc))
    app.include_router(create_site_router(testimonial_svc, support_svc, postgres, valkey))

    return app


load_dotenv()
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = create_app()


if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=int(os.getenv("PORT", "5000")))
