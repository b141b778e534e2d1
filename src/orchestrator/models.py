"""Data models for digest run results."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from src.digest.models import PromptBundle


@dataclass
class StepResult:
    """Result of a single pipeline step."""

    name: str
    success: bool
    duration_seconds: float
    details: dict[str, Any]
    error: str | None = None
    skipped: bool = False


@dataclass
class ChannelSyncResult:
    """Outcome of syncing one channel.

    Attributes:
        channel_name: Channel display name as configured.
        success: Whether the channel was fetched and merged.
        remote_id: Slack channel ID, once resolved.
        fetched: Updates fetched from Slack this run.
        persisted_loaded: Updates loaded from the trailing storage window.
        merged: Updates contributed to the digest after dedup.
        saved: Fetched updates written to storage.
        save_failures: Fetched updates that could not be written.
        watermark_advanced: Whether the sync watermark was moved forward.
        error: Reason the channel was skipped, if it was.
    """

    channel_name: str
    success: bool = False
    remote_id: str | None = None
    fetched: int = 0
    persisted_loaded: int = 0
    merged: int = 0
    saved: int = 0
    save_failures: int = 0
    watermark_advanced: bool = False
    error: str | None = None


@dataclass
class RunResult:
    """Aggregate result of a digest run."""

    started_at: datetime
    focus: str = "default"
    dry_run: bool = False
    finished_at: datetime | None = None
    channels: list[ChannelSyncResult] = field(default_factory=list)
    steps: list[StepResult] = field(default_factory=list)
    bundle: Optional[PromptBundle] = None
    digest_text: str | None = None
    subject: str | None = None

    @property
    def channels_processed(self) -> int:
        return sum(1 for c in self.channels if c.success)

    @property
    def channels_skipped(self) -> int:
        return sum(1 for c in self.channels if not c.success)

    @property
    def success(self) -> bool:
        return all(step.success or step.skipped for step in self.steps)

    @property
    def all_channels_skipped(self) -> bool:
        """True when channels were requested but none could be synced."""
        return self.channels_processed == 0 and self.channels_skipped > 0
