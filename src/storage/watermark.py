"""Per-channel "last successfully synced" timestamps."""

import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from src.slack.models import Channel

from .exceptions import PersistenceError
from .repository import DigestRepository

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class WatermarkStore:
    """Reads and advances sync watermarks.

    ``set`` is the single commit point of a channel sync: the orchestrator
    calls it only after the fetch pass succeeded and its messages were
    stored. Write failures are logged and reported, never raised; the
    next run simply re-fetches the overlap.
    """

    def __init__(
        self,
        repository: DigestRepository,
        default_lookback: timedelta = timedelta(days=7),
        clock: Callable[[], datetime] = _utcnow,
    ):
        self._repository = repository
        self._default_lookback = default_lookback
        self._clock = clock

    def default_since(self) -> datetime:
        """Fallback watermark for channels never synced."""
        return self._clock() - self._default_lookback

    def get(self, channel: Channel) -> datetime:
        """Return where the next fetch for ``channel`` should start.

        Falls back to now minus the default lookback when the channel has
        no local row, was never synced, or the store cannot be read.
        """
        if not channel.is_persisted:
            logger.info(
                "Channel %s has no local id, using default watermark", channel.name
            )
            return self.default_since()

        try:
            watermark = self._repository.get_watermark(channel.local_id)
        except PersistenceError as e:
            logger.error(
                "Failed to get last fetch time for %s, using default: %s",
                channel.name,
                e,
            )
            return self.default_since()

        if watermark is None:
            logger.info(
                "No last fetch timestamp for %s, using default (%s ago)",
                channel.name,
                self._default_lookback,
            )
            return self.default_since()
        return watermark

    def set(self, channel: Channel, timestamp: Optional[datetime] = None) -> bool:
        """Advance the watermark of ``channel``.

        Args:
            channel: Channel that was synced.
            timestamp: New watermark. Defaults to now.

        Returns:
            True if the watermark was written.
        """
        if not channel.is_persisted:
            logger.warning(
                "Cannot update last fetch time for %s: no local id", channel.name
            )
            return False

        moment = timestamp or self._clock()
        try:
            self._repository.set_watermark(channel.local_id, moment)
        except PersistenceError as e:
            logger.error("Failed to update last fetch time for %s: %s", channel.name, e)
            return False

        logger.info("Updated last fetch time for %s to %s", channel.name, moment.isoformat())
        return True
