"""Tests for PostgresClient - pooled psycopg2 access."""

from unittest.mock import MagicMock, Mock

import psycopg2.pool
import pytest

from clients.postgres_client import PostgresClient


@pytest.fixture
def pool(monkeypatch):
    """ThreadedConnectionPool replaced by a mock handing out one connection."""
    monkeypatch.setattr(PostgresClient, "_connection_pools", {})
    pool = Mock()
    conn = MagicMock()
    conn.closed = False
    cursor = MagicMock()
    conn.cursor.return_value.__enter__.return_value = cursor
    pool.getconn.return_value = conn
    monkeypatch.setattr("clients.postgres_client.psycopg2.pool.ThreadedConnectionPool", Mock(return_value=pool))
    monkeypatch.setattr("clients.postgres_client.psycopg2.extras.register_default_jsonb", Mock())
    return pool


@pytest.fixture
def conn(pool):
    return pool.getconn.return_value


@pytest.fixture
def cursor(conn):
    return conn.cursor.return_value.__enter__.return_value


@pytest.fixture
def db(pool):
    return PostgresClient("postgresql://test/rentals")


class TestPool:

    def test_pool_shared_per_url(self, db, pool):
        other = PostgresClient("postgresql://test/rentals")
        assert other._connection_pools[other._database_url] is pool
        assert len(PostgresClient._connection_pools) == 1

    def test_pool_bounds_passed_through(self, pool):
        PostgresClient("postgresql://test/other", min_connections=2, max_connections=4)

        kwargs = psycopg2.pool.ThreadedConnectionPool.call_args.kwargs
        assert (kwargs["minconn"], kwargs["maxconn"]) == (2, 4)

    def test_rejects_inverted_bounds(self, pool):
        with pytest.raises(ValueError):
            PostgresClient("postgresql://test/rentals", min_connections=5, max_connections=2)

    def test_close_all_pools(self, db, pool):
        PostgresClient.close_all_pools()
        pool.closeall.assert_called_once()
        assert PostgresClient._connection_pools == {}


class TestExecute:

    def test_execute_returns_dicts_and_commits(self, db, conn, cursor, pool):
        cursor.description = [("id",)]
        cursor.fetchall.return_value = [{"id": 1}, {"id": 2}]

        assert db.execute("SELECT id FROM cars WHERE seats > %s", (4,)) == [{"id": 1}, {"id": 2}]
        cursor.execute.assert_called_once_with("SELECT id FROM cars WHERE seats > %s", (4,))
        conn.commit.assert_called_once()
        pool.putconn.assert_called_once_with(conn)

    def test_execute_without_result_set(self, db, cursor):
        cursor.description = None
        assert db.execute("UPDATE cars SET is_available = false") == []

    def test_execute_single(self, db, cursor):
        cursor.description = [("id",)]
        cursor.fetchall.return_value = []
        assert db.execute_single("SELECT id FROM cars WHERE id = %s", (9,)) is None

    def test_execute_scalar(self, db, cursor):
        cursor.fetchone.return_value = (1,)
        assert db.ping() is True

    def test_error_rolls_back_and_returns_connection(self, db, conn, cursor, pool):
        """A failed statement never leaves an aborted transaction in the pool."""
        cursor.execute.side_effect = RuntimeError("duplicate key")

        with pytest.raises(RuntimeError):
            db.execute_returning("INSERT INTO users (email) VALUES (%s) RETURNING id", ("a@b.com",))

        conn.rollback.assert_called_once()
        pool.putconn.assert_called_once_with(conn)
