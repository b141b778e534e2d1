"""Exceptions for the Slack synchronization module."""

from typing import Optional


class SlackSyncError(Exception):
    """Base exception for Slack synchronization errors."""

    pass


class ChannelNotFoundError(SlackSyncError):
    """Raised when no visible channel matches the requested name."""

    def __init__(self, channel_name: str):
        self.channel_name = channel_name
        super().__init__(f"Channel '{channel_name}' not found via Slack API")


class ChannelAccessError(SlackSyncError):
    """Raised when Slack reports the channel as missing or inaccessible.

    This is permanent for the run: the channel id is unknown to Slack or the
    bot is not a member / lacks the scopes to read it.
    """

    def __init__(self, channel_id: str, reason: str):
        self.channel_id = channel_id
        self.reason = reason
        super().__init__(
            f"Slack channel {channel_id} not found or bot lacks permission: {reason}"
        )


class SlackTransportError(SlackSyncError):
    """Network or API failure while talking to Slack."""

    pass


class RateLimitedError(SlackSyncError):
    """Slack asked us to slow down.

    Only raised by the gateway; the retry policy absorbs it.

    Attributes:
        retry_after: Seconds Slack asked us to wait, if provided.
    """

    def __init__(self, message: str, retry_after: Optional[float] = None):
        super().__init__(message)
        self.retry_after = retry_after
