"""Tests for RateLimiter - per-kind credential request throttling."""

from unittest.mock import Mock

import pytest

from auth.rate_limiter import RateLimiter
from auth.config import AuthConfig
from auth.exceptions import RateLimitedError
from auth.types import CredentialKind
from clients.valkey_client import ValkeyClient

LINK = CredentialKind.MAGIC_LINK
OTP = CredentialKind.OTP


@pytest.fixture
def config():
    """Small budgets: three magic links, two codes."""
    return AuthConfig(magic_link_rate_limit=3, otp_rate_limit=2, rate_limit_window_minutes=5)


@pytest.fixture
def valkey():
    """Valkey mock with a working INCR counter per key."""
    counters = {}
    client = Mock(spec=ValkeyClient)

    def incr(key):
        counters[key] = counters.get(key, 0) + 1
        return counters[key]

    client.incr.side_effect = incr
    client.delete.side_effect = lambda key: counters.pop(key, None)
    client.ttl.return_value = 240
    return client


@pytest.fixture
def rate_limiter(valkey, config):
    return RateLimiter(valkey, config)


class TestCheckRateLimit:

    def test_within_limit_passes(self, rate_limiter, config):
        for _ in range(config.magic_link_rate_limit):
            rate_limiter.check_rate_limit("allowed@example.com", LINK)

    def test_exceeds_limit_raises(self, rate_limiter, config):
        for _ in range(config.otp_rate_limit):
            rate_limiter.check_rate_limit("blocked@example.com", OTP)

        with pytest.raises(RateLimitedError) as exc_info:
            rate_limiter.check_rate_limit("blocked@example.com", OTP)

        assert exc_info.value.retry_after_seconds == 240

    def test_budgets_are_separate(self, rate_limiter, config):
        """Spent OTP budget leaves magic links available, with their own larger allowance."""
        for _ in range(config.otp_rate_limit):
            rate_limiter.check_rate_limit("ama@example.com", OTP)
        with pytest.raises(RateLimitedError):
            rate_limiter.check_rate_limit("ama@example.com", OTP)

        for _ in range(config.magic_link_rate_limit):
            rate_limiter.check_rate_limit("ama@example.com", LINK)
        with pytest.raises(RateLimitedError):
            rate_limiter.check_rate_limit("ama@example.com", LINK)

    def test_retry_after_at_least_one(self, rate_limiter, valkey, config):
        """A key without TTL still reports a positive wait."""
        valkey.ttl.return_value = -1
        for _ in range(config.otp_rate_limit):
            rate_limiter.check_rate_limit("edge@example.com", OTP)

        with pytest.raises(RateLimitedError) as exc_info:
            rate_limiter.check_rate_limit("edge@example.com", OTP)

        assert exc_info.value.retry_after_seconds == 1

    def test_different_emails_tracked_separately(self, rate_limiter, config):
        for _ in range(config.otp_rate_limit):
            rate_limiter.check_rate_limit("user1@example.com", OTP)

        rate_limiter.check_rate_limit("user2@example.com", OTP)

    def test_emails_normalized_lowercase(self, rate_limiter, config):
        for _ in range(config.otp_rate_limit):
            rate_limiter.check_rate_limit("CASE@example.com", OTP)

        with pytest.raises(RateLimitedError):
            rate_limiter.check_rate_limit("case@EXAMPLE.com", OTP)

    def test_every_attempt_resets_window(self, rate_limiter, valkey):
        """Sliding window: expire is called on each attempt."""
        rate_limiter.check_rate_limit("hammer@example.com", LINK)
        rate_limiter.check_rate_limit("hammer@example.com", LINK)

        assert valkey.expire.call_count == 2
        valkey.expire.assert_called_with("ratelimit:magic_link:hammer@example.com", 300)


class TestResetRateLimit:

    def test_reset_clears_both_budgets(self, rate_limiter, valkey, config):
        for _ in range(config.otp_rate_limit):
            rate_limiter.check_rate_limit("reset@example.com", OTP)
        for _ in range(config.magic_link_rate_limit):
            rate_limiter.check_rate_limit("reset@example.com", LINK)

        rate_limiter.reset_rate_limit("reset@example.com")

        rate_limiter.check_rate_limit("reset@example.com", OTP)
        rate_limiter.check_rate_limit("reset@example.com", LINK)
        deleted = {c.args[0] for c in valkey.delete.call_args_list}
        assert deleted == {"ratelimit:magic_link:reset@example.com", "ratelimit:otp:reset@example.com"}
