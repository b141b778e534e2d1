"""PostgreSQL implementation of the digest repository using psycopg2."""

import logging
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Iterator, Optional

import psycopg2
from psycopg2 import Error as PsycopgError
from psycopg2 import extensions

from src.slack.classifier import classify
from src.slack.models import Category, Channel, Update

from .exceptions import PersistenceError
from .repository import DigestRepository

logger = logging.getLogger(__name__)

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS channels (
    id SERIAL PRIMARY KEY,
    slack_id TEXT NOT NULL UNIQUE,
    name TEXT NOT NULL,
    last_fetched TIMESTAMP WITH TIME ZONE,
    created_at TIMESTAMP WITH TIME ZONE DEFAULT CURRENT_TIMESTAMP,
    updated_at TIMESTAMP WITH TIME ZONE DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS messages (
    id SERIAL PRIMARY KEY,
    slack_ts TEXT NOT NULL,
    channel_id INTEGER NOT NULL REFERENCES channels(id),
    text TEXT NOT NULL,
    posted_at TIMESTAMP WITH TIME ZONE NOT NULL,
    permalink TEXT,
    category TEXT,
    priority INTEGER,
    created_at TIMESTAMP WITH TIME ZONE DEFAULT CURRENT_TIMESTAMP,
    UNIQUE (channel_id, slack_ts)
);

CREATE INDEX IF NOT EXISTS idx_messages_channel_posted_at
    ON messages (channel_id, posted_at);
"""

LOOKUP_CHANNEL_SQL = """
SELECT id, slack_id, name, last_fetched FROM channels WHERE name = %s
"""

UPSERT_CHANNEL_SQL = """
INSERT INTO channels (slack_id, name, created_at, updated_at)
VALUES (%s, %s, CURRENT_TIMESTAMP, CURRENT_TIMESTAMP)
ON CONFLICT (slack_id)
DO UPDATE SET name = EXCLUDED.name, updated_at = CURRENT_TIMESTAMP
RETURNING id, slack_id, name, last_fetched
"""

GET_WATERMARK_SQL = "SELECT last_fetched FROM channels WHERE id = %s"

SET_WATERMARK_SQL = "UPDATE channels SET last_fetched = %s WHERE id = %s"

RECENT_MESSAGES_SQL = """
SELECT m.text, m.slack_ts, m.permalink, m.category, m.priority, c.name
FROM messages m
JOIN channels c ON m.channel_id = c.id
WHERE m.channel_id = %s AND m.posted_at >= %s
ORDER BY m.posted_at DESC
"""

UPSERT_MESSAGE_SQL = """
INSERT INTO messages (slack_ts, channel_id, text, posted_at, permalink, category, priority)
VALUES (%s, %s, %s, %s, %s, %s, %s)
ON CONFLICT (channel_id, slack_ts) DO UPDATE
SET text = EXCLUDED.text,
    permalink = EXCLUDED.permalink,
    category = EXCLUDED.category,
    priority = EXCLUDED.priority
"""


class PostgresRepository(DigestRepository):
    """Channel cache, watermarks and message history in PostgreSQL.

    Runs in autocommit mode: every write is a single idempotent
    statement, so no explicit transactions are needed.

    Example usage:
        repo = PostgresRepository(host="localhost", port="5432", dbname="digest",
                                  user="digest", password="secret")
        repo.ensure_schema()
        channel = repo.lookup_channel("general")
    """

    def __init__(
        self,
        host: str = "localhost",
        port: str = "5432",
        dbname: str = "",
        user: str = "",
        password: str = "",
        connection: Optional[extensions.connection] = None,
    ):
        """Initialize the repository.

        Args:
            host, port, dbname, user, password: Connection settings.
            connection: Pre-opened psycopg2 connection (for testing).
                If provided, the connection settings are ignored.
        """
        self._conn_kwargs = {
            "host": host,
            "port": port,
            "dbname": dbname,
            "user": user,
            "password": password,
        }
        self._conn = connection

    def _get_connection(self) -> extensions.connection:
        """Get or open the database connection (lazy initialization)."""
        if self._conn is None:
            try:
                self._conn = psycopg2.connect(sslmode="disable", **self._conn_kwargs)
            except PsycopgError as e:
                raise PersistenceError("connect", str(e)) from e
            self._conn.autocommit = True
            logger.debug(
                "Connected to PostgreSQL host=%s db=%s",
                self._conn_kwargs["host"],
                self._conn_kwargs["dbname"],
            )
        return self._conn

    @contextmanager
    def _cursor(self, operation: str) -> Iterator[Any]:
        """Yield a cursor, translating driver errors into PersistenceError."""
        conn = self._get_connection()
        try:
            with conn.cursor() as cur:
                yield cur
        except PsycopgError as e:
            raise PersistenceError(operation, str(e)) from e

    def ensure_schema(self) -> None:
        """Create tables and indexes if they do not exist."""
        with self._cursor("ensure_schema") as cur:
            cur.execute(SCHEMA_SQL)

    def close(self) -> None:
        """Close the connection if open."""
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    @staticmethod
    def _row_to_channel(row: tuple) -> Channel:
        local_id, slack_id, name, last_fetched = row
        return Channel(
            name=name,
            remote_id=slack_id,
            local_id=local_id,
            last_synced_at=last_fetched,
        )

    def lookup_channel(self, name: str) -> Optional[Channel]:
        with self._cursor("lookup_channel") as cur:
            cur.execute(LOOKUP_CHANNEL_SQL, (name,))
            row = cur.fetchone()
        if row is None:
            return None
        channel = self._row_to_channel(row)
        logger.debug(
            "Found channel in database cache name=%s slack_id=%s db_id=%s",
            channel.name,
            channel.remote_id,
            channel.local_id,
        )
        return channel

    def upsert_channel(self, remote_id: str, name: str) -> Channel:
        logger.debug("Upserting channel slack_id=%s name=%s", remote_id, name)
        with self._cursor("upsert_channel") as cur:
            cur.execute(UPSERT_CHANNEL_SQL, (remote_id, name))
            row = cur.fetchone()
        if row is None:
            raise PersistenceError("upsert_channel", f"no row returned for {remote_id}")
        return self._row_to_channel(row)

    def get_watermark(self, local_id: int) -> Optional[datetime]:
        with self._cursor("get_watermark") as cur:
            cur.execute(GET_WATERMARK_SQL, (local_id,))
            row = cur.fetchone()
        if row is None:
            raise PersistenceError("get_watermark", f"no channel row with id {local_id}")
        return row[0]

    def set_watermark(self, local_id: int, at: datetime) -> None:
        with self._cursor("set_watermark") as cur:
            cur.execute(SET_WATERMARK_SQL, (at, local_id))
            if cur.rowcount == 0:
                logger.warning("Watermark update affected 0 rows for channel id %s", local_id)

    def query_recent_messages(self, local_id: int, since: datetime) -> list[Update]:
        with self._cursor("query_recent_messages") as cur:
            cur.execute(RECENT_MESSAGES_SQL, (local_id, since))
            rows = cur.fetchall()

        updates = []
        for text, ts, permalink, category, priority, channel_name in rows:
            if category is None or priority is None:
                parsed_category, parsed_priority = classify(channel_name, text)
            else:
                try:
                    parsed_category = Category(category)
                    parsed_priority = int(priority)
                except ValueError:
                    parsed_category, parsed_priority = classify(channel_name, text)
            updates.append(
                Update(
                    text=text,
                    ts=ts,
                    permalink=permalink or "",
                    channel=channel_name,
                    category=parsed_category,
                    priority=parsed_priority,
                )
            )
        return updates

    def upsert_message(self, local_id: int, update: Update) -> None:
        try:
            posted_at = update.posted_at
        except ValueError as e:
            raise PersistenceError("upsert_message", str(e)) from e

        with self._cursor("upsert_message") as cur:
            cur.execute(
                UPSERT_MESSAGE_SQL,
                (
                    update.ts,
                    local_id,
                    update.text,
                    posted_at,
                    update.permalink,
                    update.category.value,
                    update.priority,
                ),
            )
