"""ChannelResolver: maps channel names to Slack and local ids."""

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterator, Optional

from src.storage.exceptions import PersistenceError

from .client import SlackGateway
from .exceptions import ChannelNotFoundError
from .models import Channel
from .retry import RetryPolicy

if TYPE_CHECKING:
    from src.storage.repository import DigestRepository

logger = logging.getLogger(__name__)


@dataclass
class ChannelInfo:
    """A channel as listed by the Slack directory."""

    name: str
    remote_id: str
    is_private: bool = False


class ChannelResolver:
    """Resolves channel display names, caching results in the repository.

    Example usage:
        resolver = ChannelResolver(gateway, repository)
        channel = resolver.resolve("support-tier1")
        print(channel.remote_id, channel.local_id)
    """

    def __init__(
        self,
        gateway: SlackGateway,
        repository: "DigestRepository",
        retry_policy: Optional[RetryPolicy] = None,
    ):
        self._gateway = gateway
        self._repository = repository
        self._retry = retry_policy or RetryPolicy()

    def iter_directory(self) -> Iterator[ChannelInfo]:
        """Yield every visible channel, page by page.

        Raises:
            SlackTransportError: If a directory call fails.
        """
        cursor = ""
        while True:
            page = self._retry.call(
                lambda: self._gateway.list_channels_page(cursor),
                description="conversations list",
            )
            for raw in page.channels:
                yield ChannelInfo(
                    name=raw.get("name", ""),
                    remote_id=raw.get("id", ""),
                    is_private=bool(raw.get("is_private")),
                )
            if not page.next_cursor:
                return
            cursor = page.next_cursor
            self._retry.pause_between_pages()

    def list_channels(self) -> list[ChannelInfo]:
        """Return all visible channels sorted by name."""
        return sorted(self.iter_directory(), key=lambda c: c.name)

    def resolve(self, name: str) -> Channel:
        """Resolve a channel name to its ids.

        Args:
            name: Exact (case-sensitive) channel display name.

        Returns:
            Channel with ``remote_id`` set. ``local_id`` is None when the
            channel was found remotely but could not be cached.

        Raises:
            ValueError: If ``name`` is empty.
            PersistenceError: If the cache lookup fails.
            ChannelNotFoundError: If no visible channel has this name.
            SlackTransportError: If the directory call fails.
        """
        if not name:
            raise ValueError("Channel name must not be empty")

        cached = self._repository.lookup_channel(name)
        if cached is not None:
            return cached

        logger.info("Channel %s not in cache, querying Slack API", name)
        match: Optional[ChannelInfo] = None
        for info in self.iter_directory():
            if info.name == name:
                match = info
                break

        if match is None:
            raise ChannelNotFoundError(name)

        logger.info("Found channel via Slack API name=%s id=%s", name, match.remote_id)
        try:
            return self._repository.upsert_channel(match.remote_id, name)
        except PersistenceError as e:
            logger.error(
                "Failed to store channel %s (%s), proceeding without local id: %s",
                name,
                match.remote_id,
                e,
            )
            return Channel(name=name, remote_id=match.remote_id, local_id=None)
