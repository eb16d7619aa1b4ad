"""Tests for AccessTokenManager - signed bearer tokens."""

from datetime import timedelta

import pytest
from jose import jwt

from auth.exceptions import AccessTokenError
from auth.tokens import AccessTokenManager
from fakes import TEST_JWT_SECRET, make_user
from utils.timezone import now_utc


class TestMint:

    def test_claims(self, tokens):
        """sub is the id as a string; adm mirrors the admin flag."""
        token = tokens.mint(make_user(id=17, is_admin=True))
        claims = jwt.decode(token, TEST_JWT_SECRET, algorithms=["HS256"])
        assert claims["sub"] == "17"
        assert claims["adm"] is True
        assert claims["exp"] - claims["iat"] == 3600

    def test_secret_required(self):
        with pytest.raises(ValueError, match="secret"):
            AccessTokenManager("")


class TestVerify:

    def test_round_trip(self, tokens):
        claims = tokens.verify(tokens.mint(make_user(id=3)))
        assert claims.user_id == 3
        assert claims.is_admin is False
        assert claims.expires_at > claims.issued_at

    def test_rejects_other_secret(self, tokens):
        foreign = AccessTokenManager("some-other-secret").mint(make_user())
        with pytest.raises(AccessTokenError, match="Invalid access token"):
            tokens.verify(foreign)

    def test_rejects_garbage(self, tokens):
        with pytest.raises(AccessTokenError):
            tokens.verify("not.a.jwt")

    def test_rejects_expired(self, tokens):
        issued = now_utc() - timedelta(hours=3)
        expired = jwt.encode(
            {
                "sub": "1",
                "iat": int(issued.timestamp()),
                "exp": int((issued + timedelta(hours=1)).timestamp()),
                "adm": False,
            },
            TEST_JWT_SECRET,
            algorithm="HS256",
        )
        with pytest.raises(AccessTokenError, match="expired"):
            tokens.verify(expired)

    def test_rejects_missing_subject(self, tokens):
        now = int(now_utc().timestamp())
        token = jwt.encode({"iat": now, "exp": now + 60}, TEST_JWT_SECRET, algorithm="HS256")
        with pytest.raises(AccessTokenError):
            tokens.verify(token)
