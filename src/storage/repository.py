"""Repository interface for channel and message persistence."""

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Optional

from src.slack.models import Channel, Update


class DigestRepository(ABC):
    """Interface for the channel cache, watermarks and message history.

    Every write is an idempotent upsert keyed on a natural key, so callers
    never need to assume they are the only writer.

    Implementations:
    - PostgresRepository: production store backed by PostgreSQL
    - InMemoryRepository: for tests and local experiments
    """

    @abstractmethod
    def lookup_channel(self, name: str) -> Optional[Channel]:
        """Find a cached channel by exact display name.

        Returns:
            The cached Channel, or None on a cache miss.

        Raises:
            PersistenceError: If the store cannot be queried.
        """
        pass

    @abstractmethod
    def upsert_channel(self, remote_id: str, name: str) -> Channel:
        """Insert a channel or update its name, keyed on ``remote_id``.

        The local id of an existing row never changes.

        Raises:
            PersistenceError: If the write fails.
        """
        pass

    @abstractmethod
    def get_watermark(self, local_id: int) -> Optional[datetime]:
        """Return the last successful sync time, or None if never synced.

        Raises:
            PersistenceError: If the store cannot be queried.
        """
        pass

    @abstractmethod
    def set_watermark(self, local_id: int, at: datetime) -> None:
        """Record a successful sync time for a channel.

        Raises:
            PersistenceError: If the write fails.
        """
        pass

    @abstractmethod
    def query_recent_messages(self, local_id: int, since: datetime) -> list[Update]:
        """Return stored messages of a channel posted at or after ``since``.

        Results are ordered newest first.

        Raises:
            PersistenceError: If the store cannot be queried.
        """
        pass

    @abstractmethod
    def upsert_message(self, local_id: int, update: Update) -> None:
        """Insert or refresh one message, keyed on (channel, ts).

        Raises:
            PersistenceError: If the write fails.
        """
        pass


class InMemoryRepository(DigestRepository):
    """In-memory implementation for testing.

    Nothing survives a restart, so every run behaves like a first run.
    """

    def __init__(self) -> None:
        self._channels: dict[str, Channel] = {}
        self._watermarks: dict[int, datetime] = {}
        self._messages: dict[tuple[int, str], Update] = {}
        self._next_id = 1

    def lookup_channel(self, name: str) -> Optional[Channel]:
        for channel in self._channels.values():
            if channel.name == name:
                return Channel(
                    name=channel.name,
                    remote_id=channel.remote_id,
                    local_id=channel.local_id,
                    last_synced_at=self._watermarks.get(channel.local_id),
                )
        return None

    def upsert_channel(self, remote_id: str, name: str) -> Channel:
        existing = self._channels.get(remote_id)
        if existing is None:
            existing = Channel(name=name, remote_id=remote_id, local_id=self._next_id)
            self._next_id += 1
            self._channels[remote_id] = existing
        else:
            existing.name = name
        return Channel(
            name=existing.name,
            remote_id=existing.remote_id,
            local_id=existing.local_id,
            last_synced_at=self._watermarks.get(existing.local_id),
        )

    def get_watermark(self, local_id: int) -> Optional[datetime]:
        return self._watermarks.get(local_id)

    def set_watermark(self, local_id: int, at: datetime) -> None:
        self._watermarks[local_id] = at

    def query_recent_messages(self, local_id: int, since: datetime) -> list[Update]:
        if since.tzinfo is None:
            since = since.replace(tzinfo=timezone.utc)
        recent = []
        for (channel_id, _), update in self._messages.items():
            if channel_id != local_id:
                continue
            try:
                if update.posted_at < since:
                    continue
            except ValueError:
                continue
            recent.append(update)
        recent.sort(key=lambda u: u.posted_at, reverse=True)
        return recent

    def upsert_message(self, local_id: int, update: Update) -> None:
        self._messages[(local_id, update.ts)] = update

    @property
    def message_count(self) -> int:
        """Number of stored messages across all channels."""
        return len(self._messages)
