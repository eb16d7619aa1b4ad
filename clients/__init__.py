# Infrastructure clients
from clients.vault_client import (
    VaultClient,
    VaultError,
    get_database_url,
    get_valkey_url,
    get_email_config,
    get_paystack_config,
    get_jwt_secret,
    get_google_client_id,
)
from clients.errors import ExternalServiceError
from clients.postgres_client import PostgresClient
from clients.valkey_client import ValkeyClient
from clients.email_client import EmailClient, EmailDeliveryError
from clients.paystack_client import PaystackClient, PaystackVerification, PaymentGatewayError
from clients.google_client import GoogleClient, GoogleIdentity, GoogleAuthError
