"""Data models for the Slack synchronization module."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from .timestamps import format_jst, parse_ts


class Category(Enum):
    """Message category used for digest sections."""

    ALERT = "alert"
    SUPPORT = "support"
    GENERAL = "general"


@dataclass
class Channel:
    """A Slack channel and its local cache row.

    Attributes:
        name: Display name as shown in Slack (without '#').
        remote_id: Slack channel ID (e.g. "C0123ABCD"), unique.
        local_id: Primary key of the cache row, or None when the channel
            could not be persisted this run.
        last_synced_at: Watermark of the last successful sync, if any.
    """

    name: str
    remote_id: str
    local_id: Optional[int] = None
    last_synced_at: Optional[datetime] = None

    @property
    def is_persisted(self) -> bool:
        """Whether the channel has a local cache row."""
        return self.local_id is not None


@dataclass(frozen=True)
class Update:
    """A single channel message prepared for the digest.

    Attributes:
        text: Raw message text.
        ts: Slack timestamp; unique per channel and used as the dedup key.
        permalink: Deep link to the message, reproduced verbatim.
        channel: Channel display name.
        category: Assigned category.
        priority: 1 (low) to 3 (high).
    """

    text: str
    ts: str
    permalink: str
    channel: str
    category: Category = Category.GENERAL
    priority: int = 1

    @property
    def posted_at(self) -> datetime:
        """Message time as an aware UTC datetime.

        Raises:
            ValueError: If ``ts`` is not a valid Slack timestamp.
        """
        return parse_ts(self.ts)

    @property
    def posted_at_jst(self) -> str:
        """Message time formatted for display in JST."""
        return format_jst(self.ts)

    def to_dict(self) -> dict[str, Any]:
        """Serialize update to dictionary."""
        return {
            "text": self.text,
            "ts": self.ts,
            "permalink": self.permalink,
            "channel": self.channel,
            "category": self.category.value,
            "priority": self.priority,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Update":
        """Deserialize update from dictionary."""
        return cls(
            text=data["text"],
            ts=data["ts"],
            permalink=data.get("permalink", ""),
            channel=data.get("channel", ""),
            category=Category(data.get("category", "general")),
            priority=int(data.get("priority", 1)),
        )


@dataclass
class SyncWindow:
    """Time range covered by one fetch pass. Not persisted."""

    channel: Channel
    since: datetime
    until: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
