"""Tests for auth/config.py - Auth configuration with validation."""

import pytest
from pydantic import ValidationError

from auth.config import AuthConfig


class TestAuthConfigDefaults:
    """Tests that AuthConfig has sensible defaults."""

    def test_credential_expiry_defaults(self):
        config = AuthConfig()
        assert config.magic_link_expiry_minutes == 15
        assert config.otp_expiry_minutes == 10

    def test_expiry_seconds(self):
        config = AuthConfig()
        assert config.magic_link_expiry_seconds == 900
        assert config.otp_expiry_seconds == 600

    def test_otp_defaults(self):
        config = AuthConfig()
        assert config.otp_digits == 6
        assert config.otp_max_attempts == 5

    def test_rate_limit_defaults(self):
        config = AuthConfig()
        assert config.magic_link_rate_limit == 5
        assert config.otp_rate_limit == 3
        assert config.rate_limit_window_minutes == 15

    def test_bcrypt_default(self):
        assert AuthConfig().bcrypt_rounds == 10


class TestAuthConfigValidation:
    """Tests that AuthConfig enforces validation bounds."""

    def test_magic_link_expiry_max_bound(self):
        with pytest.raises(ValidationError):
            AuthConfig(magic_link_expiry_minutes=61)

    def test_bcrypt_rounds_min_bound(self):
        with pytest.raises(ValidationError):
            AuthConfig(bcrypt_rounds=3)

    def test_access_token_expiry_min_bound(self):
        with pytest.raises(ValidationError):
            AuthConfig(access_token_expiry_hours=0)
