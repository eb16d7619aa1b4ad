"""Tests for the auth routes: password accounts, magic links, OTPs."""

from unittest.mock import Mock

import pytest

from auth.credential_store import InMemoryCredentialStore
from auth.exceptions import RateLimitedError
from auth.issuer import CredentialIssuer
from auth.rate_limiter import RateLimiter
from fakes import sent_magic_link_token


class TestPasswordAccounts:

    def test_signup_returns_user_and_token(self, client):
        response = client.post("/signup", json={"username": "Bob", "email": "BOB@x.com", "password": "secret"})

        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "Signup successful"
        assert body["user"]["username"] == "bob"
        assert body["user"]["email"] == "bob@x.com"
        assert "password" not in body["user"]
        assert body["token"]

    def test_signup_missing_field(self, client):
        response = client.post("/signup", json={"username": "bob", "email": "bob@x.com"})

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "INVALID_REQUEST"

    def test_signup_duplicate_username(self, client):
        client.post("/signup", json={"username": "bob", "email": "bob@x.com", "password": "secret"})
        response = client.post("/signup", json={"username": "BOB", "email": "other@x.com", "password": "secret"})

        assert response.status_code == 409
        assert response.json()["message"] == "Username already exists."

    def test_login_by_email_any_case(self, client):
        client.post("/signup", json={"username": "bob", "email": "bob@x.com", "password": "secret"})
        response = client.post("/login", json={"login": "Bob@X.com", "password": "secret"})

        assert response.status_code == 200
        assert response.json()["message"] == "Login successful"
        assert response.json()["user"]["username"] == "bob"

    def test_login_wrong_password(self, client):
        client.post("/signup", json={"username": "bob", "email": "bob@x.com", "password": "secret"})
        response = client.post("/login", json={"username": "bob", "password": "wrong"})

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "INVALID_CREDENTIALS"

    def test_me_with_token(self, client):
        token = client.post(
            "/signup", json={"username": "bob", "email": "bob@x.com", "password": "secret"},
        ).json()["token"]

        response = client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 200
        assert response.json()["user"]["email"] == "bob@x.com"

    def test_me_without_token(self, client):
        response = client.get("/auth/me")

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "NOT_AUTHENTICATED"

    def test_me_after_account_deleted(self, client, auth_db, user, user_headers):
        auth_db.delete_user(user.id)

        response = client.get("/auth/me", headers=user_headers)

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "user_gone"

    def test_google_not_configured(self, client):
        response = client.post("/auth/google", json={"credential": "id-token"})

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "INVALID_CREDENTIALS"


class TestMagicLinkRoutes:

    def test_request_then_verify(self, client, email_client):
        response = client.post("/auth/magic-link/request", json={"email": "Ama@Example.com"})

        assert response.status_code == 200
        assert response.json()["message"] == "Magic link sent to your email"
        assert response.json()["expiresIn"] == 900

        token = sent_magic_link_token(email_client)
        verified = client.post("/auth/magic-link/verify", json={"token": token})

        assert verified.status_code == 200
        assert verified.json()["user"]["email"] == "ama@example.com"
        assert verified.json()["token"]

    def test_reuse_is_rejected(self, client, email_client):
        client.post("/auth/magic-link/request", json={"email": "ama@example.com"})
        token = sent_magic_link_token(email_client)
        client.post("/auth/magic-link/verify", json={"token": token})

        response = client.post("/auth/magic-link/verify", json={"token": token})

        assert response.status_code == 401
        assert response.json()["success"] is False
        assert response.json()["error"]["code"] == "invalid_or_expired"

    def test_expired_link(self, client, email_client, clock):
        client.post("/auth/magic-link/request", json={"email": "ama@example.com"})
        clock.advance(15 * 60 + 1)

        response = client.post("/auth/magic-link/verify", json={"token": sent_magic_link_token(email_client)})

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "expired"

    def test_bad_email(self, client, email_client):
        response = client.post("/auth/magic-link/request", json={"email": "not-an-email"})

        assert response.status_code == 400
        email_client.send_magic_link.assert_not_called()


class TestOtpRoutes:

    @pytest.fixture(autouse=True)
    def fixed_code(self, monkeypatch):
        monkeypatch.setattr("auth.issuer.generate_otp_code", lambda digits: "123456")

    def test_wrong_then_right_code(self, client, store):
        requested = client.post("/auth/otp/request", json={"email": "a@b.com"})
        assert requested.json()["message"] == "OTP sent to your email"
        assert requested.json()["expiresIn"] == 600

        wrong = client.post("/auth/otp/verify", json={"email": "a@b.com", "code": "654321"})
        assert wrong.status_code == 401
        assert wrong.json()["error"]["code"] == "invalid_code"
        assert wrong.json()["attemptsRemaining"] == 4

        right = client.post("/auth/otp/verify", json={"email": "a@b.com", "code": "123456"})
        assert right.status_code == 200
        assert right.json()["user"]["email"] == "a@b.com"
        assert "password" not in right.json()["user"]
        assert right.json()["token"]
        assert store.get_otp("a@b.com") is None

    def test_attempt_limit(self, client):
        client.post("/auth/otp/request", json={"email": "a@b.com"})
        for _ in range(5):
            client.post("/auth/otp/verify", json={"email": "a@b.com", "code": "000000"})

        response = client.post("/auth/otp/verify", json={"email": "a@b.com", "code": "123456"})

        assert response.status_code == 429
        assert response.json()["error"]["code"] == "too_many_attempts"

    def test_no_pending_code(self, client):
        response = client.post("/auth/otp/verify", json={"email": "a@b.com", "code": "123456"})

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "invalid_or_expired"

    def test_token_works_on_protected_route(self, client):
        client.post("/auth/otp/request", json={"email": "a@b.com"})
        token = client.post("/auth/otp/verify", json={"email": "a@b.com", "code": "123456"}).json()["token"]

        response = client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})

        assert response.json()["user"]["email"] == "a@b.com"


class TestRateLimitedRequests:

    @pytest.fixture
    def issuer(self, auth_config, identity, email_client, security_logger, clock):
        limiter = Mock(spec=RateLimiter)
        limiter.check_rate_limit.side_effect = RateLimitedError(retry_after_seconds=240)
        return CredentialIssuer(
            auth_config, InMemoryCredentialStore(), identity, email_client, security_logger,
            rate_limiter=limiter, clock=clock,
        )

    @pytest.mark.parametrize("path", ["/auth/otp/request", "/auth/magic-link/request"])
    def test_429_with_retry_after(self, client, email_client, path):
        response = client.post(path, json={"email": "ama@example.com"})

        assert response.status_code == 429
        assert response.headers["Retry-After"] == "240"
        assert response.json()["error"]["code"] == "RATE_LIMITED"
        email_client.send_otp_code.assert_not_called()
        email_client.send_magic_link.assert_not_called()
