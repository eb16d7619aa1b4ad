"""Tests for AuthDatabase - user queries against a mocked pool."""

from datetime import datetime, timezone
from unittest.mock import Mock

import psycopg2.errors
import pytest

from auth.database import AuthDatabase, _conflict_field
from clients.postgres_client import PostgresClient
from core.exceptions import ConflictError


def user_row(**overrides):
    row = {
        "id": 1,
        "username": "ama",
        "email": "ama@example.com",
        "is_admin": False,
        "created_at": datetime(2025, 1, 1, tzinfo=timezone.utc),
    }
    row.update(overrides)
    return row


class FakeUniqueViolation(psycopg2.errors.UniqueViolation):
    """Raisable UniqueViolation with a settable constraint name."""

    def __init__(self, constraint):
        super().__init__("duplicate key")
        self._constraint = constraint

    @property
    def diag(self):
        return Mock(constraint_name=self._constraint)


@pytest.fixture
def postgres():
    return Mock(spec=PostgresClient)


@pytest.fixture
def auth_database(postgres):
    return AuthDatabase(postgres)


class TestConflictField:

    @pytest.mark.parametrize("constraint, field", [
        ("users_email_key", "email"),
        ("users_username_key", "username"),
        ("something_else", None),
    ])
    def test_maps_constraint(self, constraint, field):
        assert _conflict_field(FakeUniqueViolation(constraint)) == field


class TestLookups:

    def test_get_user_by_email(self, auth_database, postgres):
        postgres.execute_single.return_value = user_row()

        user = auth_database.get_user_by_email("ama@example.com")

        assert user.id == 1
        assert postgres.execute_single.call_args.args[1] == ("ama@example.com",)

    def test_lookups_never_select_password(self, auth_database, postgres):
        postgres.execute_single.return_value = None
        auth_database.get_user_by_id(1)
        assert "password" not in postgres.execute_single.call_args.args[0]

    def test_missing_user(self, auth_database, postgres):
        postgres.execute_single.return_value = None
        assert auth_database.get_user_by_id(99) is None

    def test_login_lookup_prefers_username(self, auth_database, postgres):
        postgres.execute_single.return_value = user_row(password="$2b$04$hash")

        record = auth_database.get_user_with_password_by_login("ama")

        sql, params = postgres.execute_single.call_args.args
        assert "ORDER BY (username = %s) DESC" in sql
        assert params == ("ama", "ama", "ama")
        assert record.password == "$2b$04$hash"
        assert "password" not in record.public().model_dump()

    def test_exists_checks(self, auth_database, postgres):
        postgres.execute_single.return_value = {"found": 1}
        assert auth_database.username_exists("ama")
        postgres.execute_single.return_value = None
        assert not auth_database.email_exists("ghost@example.com")


class TestCreateUser:

    def test_returns_user(self, auth_database, postgres):
        postgres.execute_returning.return_value = [user_row(id=4)]
        user = auth_database.create_user("ama", "ama@example.com", "hash")
        assert user.id == 4
        assert postgres.execute_returning.call_args.args[1] == ("ama", "ama@example.com", "hash", False)

    def test_unique_violation_becomes_conflict(self, auth_database, postgres):
        postgres.execute_returning.side_effect = FakeUniqueViolation("users_email_key")

        with pytest.raises(ConflictError) as exc_info:
            auth_database.create_user("ama", "ama@example.com", "hash")

        assert exc_info.value.field == "email"


class TestAdministration:

    def test_delete_user(self, auth_database, postgres):
        postgres.execute_returning.return_value = [{"id": 1}]
        assert auth_database.delete_user(1) is True
        postgres.execute_returning.return_value = []
        assert auth_database.delete_user(2) is False

    def test_set_admin(self, auth_database, postgres):
        postgres.execute_returning.return_value = [user_row(is_admin=True)]
        assert auth_database.set_admin(1, True).is_admin is True

    def test_list_users(self, auth_database, postgres):
        postgres.execute.return_value = [user_row(id=2), user_row(id=1)]
        assert [u.id for u in auth_database.list_users()] == [2, 1]
