"""HistoryFetcher: incremental, paginated channel history retrieval."""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Iterator, Optional

from .classifier import classify
from .client import HistoryPage, SlackGateway
from .exceptions import SlackTransportError
from .models import Update
from .retry import RetryPolicy
from .timestamps import fallback_permalink, ts_from_datetime

logger = logging.getLogger(__name__)


@dataclass
class FetchStats:
    """Counters for one fetch pass."""

    pages: int = 0
    fetched: int = 0
    skipped_bots: int = 0
    skipped_subtypes: int = 0
    thread_replies: int = 0
    emitted: int = 0
    fallback_permalinks: int = 0


def skip_reason(message: dict[str, Any]) -> Optional[str]:
    """Return why a raw message is excluded from the digest, or None.

    Excluded are non-message events, bot posts, non-primary subtypes
    (joins, topic changes...) and thread replies not broadcast to the
    channel.
    """
    subtype = message.get("subtype") or ""
    if message.get("type", "message") != "message":
        return "subtype"
    if message.get("bot_id") or subtype == "bot_message":
        return "bot"
    if subtype and subtype != "thread_broadcast":
        return "subtype"
    thread_ts = message.get("thread_ts")
    if thread_ts and thread_ts != message.get("ts") and subtype != "thread_broadcast":
        return "thread_reply"
    return None


class HistoryFetcher:
    """Fetches classified channel messages newer than a watermark.

    ``fetch`` returns a lazy iterator; pages are requested as it is
    consumed. Any fatal error is raised from the iterator, so callers that
    need all-or-nothing semantics should drain it fully (e.g. with
    ``list()``) before persisting anything.

    Example usage:
        fetcher = HistoryFetcher(gateway=SlackGateway(token="xoxb-..."))
        updates = list(fetcher.fetch("C0123", since, "general"))
    """

    def __init__(
        self,
        gateway: SlackGateway,
        retry_policy: Optional[RetryPolicy] = None,
    ):
        self._gateway = gateway
        self._retry = retry_policy or RetryPolicy()

    def iter_pages(self, channel_id: str, since: datetime) -> Iterator[HistoryPage]:
        """Yield history pages from ``since`` until Slack reports no more.

        Raises:
            ChannelAccessError: Channel missing or not readable.
            SlackTransportError: API failure or exhausted rate-limit retries.
        """
        oldest = ts_from_datetime(since)
        cursor = ""
        while True:
            page = self._retry.call(
                lambda: self._gateway.history_page(channel_id, oldest=oldest, cursor=cursor),
                description=f"history of {channel_id}",
            )
            logger.debug(
                "Received message batch channel=%s count=%d has_more=%s",
                channel_id,
                len(page.messages),
                page.has_more,
            )
            yield page

            if page.is_last:
                return
            cursor = page.next_cursor
            self._retry.pause_between_pages()

    def _permalink(self, channel_id: str, ts: str, stats: FetchStats) -> str:
        try:
            return self._gateway.get_permalink(channel_id, ts)
        except SlackTransportError as e:
            stats.fallback_permalinks += 1
            logger.warning(
                "Failed to get permalink for %s in %s, constructing fallback: %s",
                ts,
                channel_id,
                e,
            )
            return fallback_permalink(channel_id, ts)

    def fetch(self, channel_id: str, since: datetime, channel_name: str) -> Iterator[Update]:
        """Yield classified updates posted at or after ``since``.

        Order follows Slack's native order (newest first within a page).

        Args:
            channel_id: Slack channel ID.
            since: Lower bound (the watermark or an explicit override).
            channel_name: Display name used for classification and output.

        Yields:
            Update objects for every primary human message.

        Raises:
            ChannelAccessError: Channel missing or not readable.
            SlackTransportError: API failure or exhausted rate-limit retries.
        """
        stats = FetchStats()
        logger.info(
            "Fetching messages from Slack channel=%s id=%s since=%s",
            channel_name,
            channel_id,
            since.isoformat(),
        )

        for page in self.iter_pages(channel_id, since):
            stats.pages += 1
            stats.fetched += len(page.messages)
            for message in page.messages:
                reason = skip_reason(message)
                if reason == "bot":
                    stats.skipped_bots += 1
                    continue
                if reason == "subtype":
                    stats.skipped_subtypes += 1
                    continue
                if reason == "thread_reply":
                    stats.thread_replies += 1
                    continue

                ts = message["ts"]
                text = message.get("text", "")
                category, priority = classify(channel_name, text)
                stats.emitted += 1
                yield Update(
                    text=text,
                    ts=ts,
                    permalink=self._permalink(channel_id, ts, stats),
                    channel=channel_name,
                    category=category,
                    priority=priority,
                )

        logger.info(
            "Processed messages from channel=%s pages=%d fetched=%d skipped_bots=%d "
            "skipped_subtypes=%d thread_replies=%d emitted=%d fallback_links=%d",
            channel_name,
            stats.pages,
            stats.fetched,
            stats.skipped_bots,
            stats.skipped_subtypes,
            stats.thread_replies,
            stats.emitted,
            stats.fallback_permalinks,
        )
