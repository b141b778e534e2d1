"""Slack synchronization module.

Resolves channel names, pages channel history from a watermark forward and
classifies each message for the digest.

Public API:
    - ChannelResolver: Name to id resolution with a persistent cache
    - HistoryFetcher: Lazy, paginated history retrieval
    - SlackGateway: Thin wrapper over the Slack Web API
    - RetryPolicy: Page pacing and bounded rate-limit retries
    - classify: Keyword categorization of a message
    - Channel, Update, Category, SyncWindow: Data models
    - SlackSyncError and subclasses: Error taxonomy
"""

from .classifier import classify
from .client import ChannelPage, HistoryPage, SlackGateway
from .exceptions import (
    ChannelAccessError,
    ChannelNotFoundError,
    RateLimitedError,
    SlackSyncError,
    SlackTransportError,
)
from .history import HistoryFetcher
from .models import Category, Channel, SyncWindow, Update
from .resolver import ChannelInfo, ChannelResolver
from .retry import RetryPolicy

__all__ = [
    # Main classes
    "ChannelResolver",
    "HistoryFetcher",
    "SlackGateway",
    "RetryPolicy",
    "classify",
    # Models
    "Category",
    "Channel",
    "ChannelInfo",
    "ChannelPage",
    "HistoryPage",
    "SyncWindow",
    "Update",
    # Exceptions
    "SlackSyncError",
    "ChannelNotFoundError",
    "ChannelAccessError",
    "SlackTransportError",
    "RateLimitedError",
]
