"""Tests for HistoryFetcher pagination, filtering and error handling."""

from datetime import datetime, timezone
from unittest.mock import MagicMock, call

import pytest

from src.slack import (
    Category,
    ChannelAccessError,
    HistoryFetcher,
    HistoryPage,
    RateLimitedError,
    SlackGateway,
    SlackTransportError,
)
from src.slack.history import skip_reason
from tests.slack_test_helpers import instant_retry_policy, raw_message

SINCE = datetime(2023, 11, 14, 22, 13, 20, tzinfo=timezone.utc)
OLDEST = "1700000000.000000"


def _permalink(channel_id: str, ts: str) -> str:
    return f"https://acme.slack.com/archives/{channel_id}/p{ts.replace('.', '')}"


@pytest.fixture
def gateway():
    gateway = MagicMock(spec=SlackGateway)
    gateway.get_permalink.side_effect = _permalink
    return gateway


@pytest.fixture
def retry():
    return instant_retry_policy()


@pytest.fixture
def fetcher(gateway, retry):
    return HistoryFetcher(gateway=gateway, retry_policy=retry)


class TestSkipReason:
    """Tests for skip_reason()."""

    def test_plain_message_kept(self):
        assert skip_reason(raw_message("1.0")) is None

    def test_bot_id(self):
        assert skip_reason(raw_message("1.0", bot_id="B1")) == "bot"

    def test_bot_message_subtype(self):
        assert skip_reason(raw_message("1.0", subtype="bot_message")) == "bot"

    @pytest.mark.parametrize("subtype", ["channel_join", "channel_topic", "message_changed"])
    def test_non_primary_subtypes(self, subtype):
        assert skip_reason(raw_message("1.0", subtype=subtype)) == "subtype"

    def test_non_message_type(self):
        assert skip_reason(raw_message("1.0", type="reaction_added")) == "subtype"

    def test_thread_reply(self):
        assert skip_reason(raw_message("2.0", thread_ts="1.0")) == "thread_reply"

    def test_thread_parent_kept(self):
        assert skip_reason(raw_message("1.0", thread_ts="1.0")) is None

    def test_thread_broadcast_kept(self):
        message = raw_message("2.0", thread_ts="1.0", subtype="thread_broadcast")
        assert skip_reason(message) is None


class TestFetch:
    """Tests for HistoryFetcher.fetch()."""

    def test_follows_pages_until_exhausted(self, fetcher, gateway, retry):
        gateway.history_page.side_effect = [
            HistoryPage(
                messages=[raw_message("1700000003.000000"), raw_message("1700000002.000000")],
                has_more=True,
                next_cursor="c2",
            ),
            HistoryPage(messages=[raw_message("1700000001.000000")]),
        ]

        updates = list(fetcher.fetch("C1", SINCE, "general"))

        assert [u.ts for u in updates] == [
            "1700000003.000000",
            "1700000002.000000",
            "1700000001.000000",
        ]
        assert gateway.history_page.call_args_list == [
            call("C1", oldest=OLDEST, cursor=""),
            call("C1", oldest=OLDEST, cursor="c2"),
        ]
        retry.sleep.assert_called_once_with(1.2)

    def test_builds_updates(self, fetcher, gateway):
        gateway.history_page.return_value = HistoryPage(
            messages=[raw_message("1700000001.000100", "Customer can't log in")]
        )

        updates = list(fetcher.fetch("C9", SINCE, "support-tier1"))

        assert len(updates) == 1
        update = updates[0]
        assert update.text == "Customer can't log in"
        assert update.channel == "support-tier1"
        assert update.category is Category.SUPPORT
        assert update.priority == 2
        assert update.permalink == "https://acme.slack.com/archives/C9/p1700000001000100"

    def test_filters_bots_subtypes_and_replies(self, fetcher, gateway):
        gateway.history_page.return_value = HistoryPage(
            messages=[
                raw_message("1700000005.000000", "deploy finished", bot_id="B1"),
                raw_message("1700000004.000000", subtype="channel_join"),
                raw_message("1700000003.000000", "reply", thread_ts="1700000001.000000"),
                raw_message(
                    "1700000002.000000",
                    "broadcast reply",
                    thread_ts="1700000001.000000",
                    subtype="thread_broadcast",
                ),
                raw_message("1700000001.000000", "thread parent", thread_ts="1700000001.000000"),
            ]
        )

        updates = list(fetcher.fetch("C1", SINCE, "general"))

        assert [u.text for u in updates] == ["broadcast reply", "thread parent"]
        assert gateway.get_permalink.call_count == 2

    def test_permalink_fallback(self, fetcher, gateway):
        gateway.history_page.return_value = HistoryPage(
            messages=[raw_message("1700000000.000100")]
        )
        gateway.get_permalink.side_effect = SlackTransportError("message_not_found")

        updates = list(fetcher.fetch("C1", SINCE, "general"))

        assert updates[0].permalink == "https://slack.com/archives/C1/p1700000000000100"

    def test_empty_channel(self, fetcher, gateway):
        gateway.history_page.return_value = HistoryPage()

        assert list(fetcher.fetch("C1", SINCE, "general")) == []
        gateway.get_permalink.assert_not_called()

    def test_rate_limit_retries_same_cursor(self, fetcher, gateway, retry):
        gateway.history_page.side_effect = [
            HistoryPage(messages=[raw_message("1700000002.000000")], has_more=True, next_cursor="c2"),
            RateLimitedError("slow down"),
            HistoryPage(messages=[raw_message("1700000001.000000")]),
        ]

        updates = list(fetcher.fetch("C1", SINCE, "general"))

        assert len(updates) == 2
        assert gateway.history_page.call_args_list[1:] == [
            call("C1", oldest=OLDEST, cursor="c2"),
            call("C1", oldest=OLDEST, cursor="c2"),
        ]
        assert retry.sleep.call_args_list == [call(1.2), call(30.0)]

    def test_rate_limit_exhausted(self, fetcher, gateway):
        gateway.history_page.side_effect = [RateLimitedError("slow"), RateLimitedError("slow")]

        with pytest.raises(SlackTransportError):
            list(fetcher.fetch("C1", SINCE, "general"))

    def test_access_error_propagates(self, fetcher, gateway):
        gateway.history_page.side_effect = ChannelAccessError("C1", "not_in_channel")

        with pytest.raises(ChannelAccessError):
            list(fetcher.fetch("C1", SINCE, "general"))

    def test_failure_on_later_page_propagates(self, fetcher, gateway):
        gateway.history_page.side_effect = [
            HistoryPage(messages=[raw_message("1700000002.000000")], has_more=True, next_cursor="c2"),
            SlackTransportError("connection reset"),
        ]

        with pytest.raises(SlackTransportError):
            list(fetcher.fetch("C1", SINCE, "general"))

    def test_fetch_is_lazy(self, fetcher, gateway):
        gateway.history_page.return_value = HistoryPage()

        iterator = fetcher.fetch("C1", SINCE, "general")

        gateway.history_page.assert_not_called()
        list(iterator)
        gateway.history_page.assert_called_once()
