"""Tests for PostgresRepository against a mocked psycopg2 connection."""

from datetime import datetime, timezone
from unittest.mock import MagicMock, patch

import psycopg2
import pytest

from src.slack import Category
from src.storage import PersistenceError, PostgresRepository
from src.storage.postgres import (
    LOOKUP_CHANNEL_SQL,
    SCHEMA_SQL,
    SET_WATERMARK_SQL,
    UPSERT_MESSAGE_SQL,
)
from tests.slack_test_helpers import make_update

NOW = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def connection():
    return MagicMock()


@pytest.fixture
def cursor(connection):
    return connection.cursor.return_value.__enter__.return_value


@pytest.fixture
def repo(connection):
    return PostgresRepository(connection=connection)


class TestChannels:
    def test_lookup_channel(self, repo, cursor):
        cursor.fetchone.return_value = (4, "C1", "general", NOW)

        channel = repo.lookup_channel("general")

        cursor.execute.assert_called_once_with(LOOKUP_CHANNEL_SQL, ("general",))
        assert channel.local_id == 4
        assert channel.remote_id == "C1"
        assert channel.last_synced_at == NOW

    def test_lookup_miss(self, repo, cursor):
        cursor.fetchone.return_value = None
        assert repo.lookup_channel("general") is None

    def test_upsert_channel(self, repo, cursor):
        cursor.fetchone.return_value = (7, "C9", "support-tier1", None)

        channel = repo.upsert_channel("C9", "support-tier1")

        assert channel.local_id == 7
        assert cursor.execute.call_args[0][1] == ("C9", "support-tier1")

    def test_upsert_channel_without_row(self, repo, cursor):
        cursor.fetchone.return_value = None

        with pytest.raises(PersistenceError):
            repo.upsert_channel("C9", "support-tier1")


class TestWatermarks:
    def test_get_watermark(self, repo, cursor):
        cursor.fetchone.return_value = (NOW,)
        assert repo.get_watermark(1) == NOW

    def test_get_watermark_never_synced(self, repo, cursor):
        cursor.fetchone.return_value = (None,)
        assert repo.get_watermark(1) is None

    def test_get_watermark_missing_row(self, repo, cursor):
        cursor.fetchone.return_value = None

        with pytest.raises(PersistenceError):
            repo.get_watermark(99)

    def test_set_watermark(self, repo, cursor):
        cursor.rowcount = 1

        repo.set_watermark(1, NOW)

        cursor.execute.assert_called_once_with(SET_WATERMARK_SQL, (NOW, 1))


class TestMessages:
    def test_upsert_message(self, repo, cursor):
        update = make_update(
            "1700000000.000100",
            text="Outage in EU",
            category=Category.ALERT,
            priority=3,
            permalink="https://acme.slack.com/archives/C1/p1700000000000100",
        )

        repo.upsert_message(1, update)

        cursor.execute.assert_called_once_with(
            UPSERT_MESSAGE_SQL,
            (
                "1700000000.000100",
                1,
                "Outage in EU",
                datetime(2023, 11, 14, 22, 13, 20, 100, tzinfo=timezone.utc),
                "https://acme.slack.com/archives/C1/p1700000000000100",
                "alert",
                3,
            ),
        )

    def test_upsert_message_invalid_ts(self, repo, cursor):
        with pytest.raises(PersistenceError):
            repo.upsert_message(1, make_update("not-a-ts"))
        cursor.execute.assert_not_called()

    def test_query_recent_messages(self, repo, cursor):
        cursor.fetchall.return_value = [
            ("Outage in EU", "1700000100.000000", "https://l/1", "alert", 3, "general"),
            ("How do I export?", "1700000000.000000", None, None, None, "support-tier1"),
        ]

        updates = repo.query_recent_messages(1, NOW)

        assert cursor.execute.call_args[0][1] == (1, NOW)
        assert updates[0].category is Category.ALERT
        assert updates[0].priority == 3
        assert updates[0].permalink == "https://l/1"
        # Rows stored without a category are classified on read
        assert updates[1].category is Category.SUPPORT
        assert updates[1].priority == 2
        assert updates[1].permalink == ""
        assert updates[1].channel == "support-tier1"


class TestConnection:
    def test_driver_error_becomes_persistence_error(self, repo, cursor):
        cursor.execute.side_effect = psycopg2.OperationalError("server closed the connection")

        with pytest.raises(PersistenceError) as exc_info:
            repo.lookup_channel("general")
        assert exc_info.value.operation == "lookup_channel"

    def test_ensure_schema(self, repo, cursor):
        repo.ensure_schema()
        cursor.execute.assert_called_once_with(SCHEMA_SQL)

    def test_lazy_connect(self):
        with patch("src.storage.postgres.psycopg2.connect") as mock_connect:
            repo = PostgresRepository(
                host="db", port="5432", dbname="digest", user="u", password="p"
            )
            mock_connect.assert_not_called()

            repo.ensure_schema()

            mock_connect.assert_called_once_with(
                sslmode="disable",
                host="db",
                port="5432",
                dbname="digest",
                user="u",
                password="p",
            )
            assert mock_connect.return_value.autocommit is True

    def test_connect_failure(self):
        with patch(
            "src.storage.postgres.psycopg2.connect",
            side_effect=psycopg2.OperationalError("connection refused"),
        ):
            repo = PostgresRepository(host="db")
            with pytest.raises(PersistenceError):
                repo.ensure_schema()

    def test_close(self, repo, connection):
        repo.close()
        connection.close.assert_called_once()
        assert repo._conn is None
