"""
Valkey (Redis-compatible) client for credential storage and rate limiting.

Simple wrapper around redis-py. Connection URL from Vault or VALKEY_URL.
Fail-fast: raises on connection failure, never returns fallback values.
"""

import logging

import redis

logger = logging.getLogger(__name__)


class ValkeyClient:
    """
    Redis-compatible client for Valkey.

    Usage:
        client = ValkeyClient("redis://localhost:6379/0")
        attempts = client.incr("ratelimit:credential:ama@example.com")
        fields = client.get_hash("credential:otp:ama@example.com")  # None if missing
    """

    def __init__(self, url: str):
        """
        Initialize Valkey connection.

        Args:
            url: Redis-compatible connection URL (e.g., redis://localhost:6379/0)

        Raises:
            redis.ConnectionError: If connection fails
        """
        self._client = redis.from_url(
            url,
            decode_responses=True,
            socket_timeout=5,
            socket_connect_timeout=5,
        )
        # Verify connectivity immediately (fail-fast)
        self._client.ping()
        logger.info("ValkeyClient connected")

    def ping(self) -> bool:
        """
        Health check.

        Returns True if Valkey responds.
        Raises redis.ConnectionError if unreachable.
        """
        self._client.ping()
        return True

    def delete(self, key: str) -> bool:
        """
        Delete key.

        Returns True if key existed and was deleted, False if key didn't exist.
        """
        return self._client.delete(key) > 0

    def expire(self, key: str, seconds: int) -> bool:
        """Set TTL on an existing key. Returns False if key doesn't exist."""
        return bool(self._client.expire(key, seconds))

    def ttl(self, key: str) -> int:
        """
        Get remaining TTL in seconds.

        Returns:
            -2 if key doesn't exist
            -1 if key has no expiration
            Positive int: remaining seconds
        """
        return self._client.ttl(key)

    def incr(self, key: str) -> int:
        """
        Increment key by 1.

        Creates key with value 1 if it doesn't exist.
        Returns the new value.
        """
        return self._client.incr(key)

    # === Hashes ===

    def replace_hash(self, key: str, mapping: dict[str, str], expire_seconds: int) -> None:
        """
        Atomically replace a hash and set its TTL (MULTI/EXEC).

        Any existing fields under the key are discarded.
        """
        pipe = self._client.pipeline(transaction=True)
        pipe.delete(key)
        pipe.hset(key, mapping=mapping)
        pipe.expire(key, expire_seconds)
        pipe.execute()

    def get_hash(self, key: str) -> dict[str, str] | None:
        """Get all fields of a hash. None if the key doesn't exist."""
        data = self._client.hgetall(key)
        return data or None

    def pop_hash(self, key: str) -> dict[str, str] | None:
        """
        Atomically read and delete a hash (MULTI/EXEC).

        Of two concurrent callers, only one receives the fields.
        """
        pipe = self._client.pipeline(transaction=True)
        pipe.hgetall(key)
        pipe.delete(key)
        data, _deleted = pipe.execute()
        return data or None

    def hincrby(self, key: str, field: str, amount: int = 1) -> int:
        """Atomically increment an integer hash field. Returns the new value."""
        return self._client.hincrby(key, field, amount)

    def close(self) -> None:
        """Close the connection."""
        self._client.close()
        logger.info("ValkeyClient closed")
