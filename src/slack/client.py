"""Thin gateway over the Slack Web API.

Wraps the three calls the sync needs (conversations.list,
conversations.history, chat.getPermalink) and translates slack_sdk
exceptions into this module's error taxonomy.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Optional

from slack_sdk import WebClient
from slack_sdk.errors import SlackApiError, SlackClientError

from .exceptions import ChannelAccessError, RateLimitedError, SlackTransportError

logger = logging.getLogger(__name__)

# Slack error codes that mean the channel can never be read with this token
ACCESS_ERROR_CODES = frozenset(
    {
        "channel_not_found",
        "not_in_channel",
        "missing_scope",
        "access_denied",
        "team_access_not_granted",
    }
)

CHANNEL_TYPES = "public_channel,private_channel"


@dataclass
class ChannelPage:
    """One page of conversations.list results."""

    channels: list[dict[str, Any]] = field(default_factory=list)
    next_cursor: str = ""


@dataclass
class HistoryPage:
    """One page of conversations.history results."""

    messages: list[dict[str, Any]] = field(default_factory=list)
    has_more: bool = False
    next_cursor: str = ""

    @property
    def is_last(self) -> bool:
        return not self.has_more or not self.next_cursor


def _retry_after(error: SlackApiError) -> Optional[float]:
    headers = getattr(error.response, "headers", None) or {}
    value = headers.get("Retry-After") or headers.get("retry-after")
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _error_code(error: SlackApiError) -> str:
    try:
        return str(error.response.get("error") or "")
    except AttributeError:
        return ""


def _is_rate_limited(error: SlackApiError) -> bool:
    status = getattr(error.response, "status_code", None)
    return status == 429 or _error_code(error) == "ratelimited"


class SlackGateway:
    """Slack Web API access used by the resolver and history fetcher.

    Example usage:
        gateway = SlackGateway(token="xoxb-...")
        page = gateway.history_page("C0123", oldest="1700000000.000000")
        for message in page.messages:
            print(message["ts"], message.get("text"))
    """

    LIST_PAGE_SIZE = 200
    HISTORY_PAGE_SIZE = 200

    def __init__(
        self,
        token: Optional[str] = None,
        client: Optional[WebClient] = None,
    ):
        """Initialize the gateway.

        Args:
            token: Slack bot token. Ignored when ``client`` is given.
            client: Pre-built WebClient (for testing).
        """
        self._token = token
        self._client = client

    def _get_client(self) -> WebClient:
        """Get or create the WebClient (lazy initialization)."""
        if self._client is None:
            self._client = WebClient(token=self._token)
        return self._client

    def list_channels_page(self, cursor: str = "") -> ChannelPage:
        """Fetch one page of visible, non-archived channels.

        Raises:
            RateLimitedError: Slack asked us to back off.
            SlackTransportError: Any other API or network failure.
        """
        try:
            response = self._get_client().conversations_list(
                exclude_archived=True,
                limit=self.LIST_PAGE_SIZE,
                types=CHANNEL_TYPES,
                cursor=cursor or None,
            )
        except SlackApiError as e:
            if _is_rate_limited(e):
                raise RateLimitedError(
                    "Rate limited listing conversations", _retry_after(e)
                ) from e
            raise SlackTransportError(
                f"Error getting conversations from Slack: {_error_code(e) or e}"
            ) from e
        except (SlackClientError, OSError) as e:
            raise SlackTransportError(f"Error getting conversations from Slack: {e}") from e

        metadata = response.get("response_metadata") or {}
        return ChannelPage(
            channels=list(response.get("channels") or []),
            next_cursor=metadata.get("next_cursor") or "",
        )

    def history_page(self, channel_id: str, oldest: str, cursor: str = "") -> HistoryPage:
        """Fetch one page of channel history at or after ``oldest``.

        Raises:
            RateLimitedError: Slack asked us to back off.
            ChannelAccessError: Channel unknown or not readable by the bot.
            SlackTransportError: Any other API or network failure.
        """
        try:
            response = self._get_client().conversations_history(
                channel=channel_id,
                oldest=oldest,
                limit=self.HISTORY_PAGE_SIZE,
                cursor=cursor or None,
            )
        except SlackApiError as e:
            code = _error_code(e)
            if _is_rate_limited(e):
                raise RateLimitedError(
                    f"Rate limited reading history of {channel_id}", _retry_after(e)
                ) from e
            if code in ACCESS_ERROR_CODES:
                raise ChannelAccessError(channel_id, code) from e
            raise SlackTransportError(
                f"Failed to get conversation history for {channel_id}: {code or e}"
            ) from e
        except (SlackClientError, OSError) as e:
            raise SlackTransportError(
                f"Failed to get conversation history for {channel_id}: {e}"
            ) from e

        metadata = response.get("response_metadata") or {}
        return HistoryPage(
            messages=list(response.get("messages") or []),
            has_more=bool(response.get("has_more")),
            next_cursor=metadata.get("next_cursor") or "",
        )

    def get_permalink(self, channel_id: str, ts: str) -> str:
        """Resolve the permalink of one message.

        Raises:
            SlackTransportError: If Slack cannot produce a permalink.
        """
        try:
            response = self._get_client().chat_getPermalink(
                channel=channel_id, message_ts=ts
            )
        except (SlackClientError, OSError) as e:
            raise SlackTransportError(f"Couldn't get permalink for {ts}: {e}") from e

        permalink = response.get("permalink")
        if not permalink:
            raise SlackTransportError(f"Slack returned no permalink for {ts}")
        return permalink
