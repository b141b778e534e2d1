"""Tests for ChannelResolver."""

from unittest.mock import MagicMock

import pytest

from src.slack import (
    ChannelNotFoundError,
    ChannelPage,
    ChannelResolver,
    SlackGateway,
    SlackTransportError,
)
from src.storage import DigestRepository, InMemoryRepository, PersistenceError
from tests.slack_test_helpers import instant_retry_policy


@pytest.fixture
def gateway():
    return MagicMock(spec=SlackGateway)


@pytest.fixture
def repository():
    return InMemoryRepository()


@pytest.fixture
def resolver(gateway, repository):
    return ChannelResolver(gateway, repository, instant_retry_policy())


def _two_pages():
    return [
        ChannelPage(
            channels=[
                {"id": "C1", "name": "general", "is_private": False},
                {"id": "C2", "name": "random", "is_private": False},
            ],
            next_cursor="page2",
        ),
        ChannelPage(
            channels=[{"id": "C9", "name": "support-tier1", "is_private": True}],
            next_cursor="",
        ),
    ]


class TestResolve:
    """Tests for ChannelResolver.resolve()."""

    def test_cache_hit_skips_slack(self, resolver, gateway, repository):
        repository.upsert_channel("C1", "general")

        channel = resolver.resolve("general")

        assert channel.remote_id == "C1"
        assert channel.local_id == 1
        gateway.list_channels_page.assert_not_called()

    def test_found_on_second_page_is_cached(self, resolver, gateway, repository):
        gateway.list_channels_page.side_effect = _two_pages()

        channel = resolver.resolve("support-tier1")

        assert channel.remote_id == "C9"
        assert channel.local_id == 1
        assert gateway.list_channels_page.call_count == 2
        gateway.list_channels_page.assert_called_with("page2")
        assert repository.lookup_channel("support-tier1").remote_id == "C9"
        # Only the requested channel is cached
        assert repository.lookup_channel("general") is None

        again = resolver.resolve("support-tier1")
        assert again.local_id == channel.local_id
        assert gateway.list_channels_page.call_count == 2

    def test_stops_scanning_after_match(self, resolver, gateway):
        gateway.list_channels_page.side_effect = _two_pages()

        resolver.resolve("general")

        assert gateway.list_channels_page.call_count == 1

    def test_not_found(self, resolver, gateway):
        gateway.list_channels_page.side_effect = _two_pages()

        with pytest.raises(ChannelNotFoundError) as exc_info:
            resolver.resolve("does-not-exist")
        assert exc_info.value.channel_name == "does-not-exist"

    def test_match_is_case_sensitive(self, resolver, gateway):
        gateway.list_channels_page.side_effect = _two_pages()

        with pytest.raises(ChannelNotFoundError):
            resolver.resolve("General")

    def test_empty_name(self, resolver):
        with pytest.raises(ValueError):
            resolver.resolve("")

    def test_directory_failure_propagates(self, resolver, gateway):
        gateway.list_channels_page.side_effect = SlackTransportError("invalid_auth")

        with pytest.raises(SlackTransportError):
            resolver.resolve("general")

    def test_upsert_failure_degrades_to_remote_only(self, gateway):
        repository = MagicMock(spec=DigestRepository)
        repository.lookup_channel.return_value = None
        repository.upsert_channel.side_effect = PersistenceError("upsert_channel", "db down")
        gateway.list_channels_page.side_effect = _two_pages()
        resolver = ChannelResolver(gateway, repository, instant_retry_policy())

        channel = resolver.resolve("general")

        assert channel.remote_id == "C1"
        assert channel.local_id is None
        assert channel.is_persisted is False

    def test_lookup_failure_propagates(self, gateway):
        repository = MagicMock(spec=DigestRepository)
        repository.lookup_channel.side_effect = PersistenceError("lookup_channel", "db down")
        resolver = ChannelResolver(gateway, repository, instant_retry_policy())

        with pytest.raises(PersistenceError):
            resolver.resolve("general")
        gateway.list_channels_page.assert_not_called()


class TestListChannels:
    def test_sorted_with_visibility(self, resolver, gateway):
        gateway.list_channels_page.side_effect = _two_pages()

        channels = resolver.list_channels()

        assert [c.name for c in channels] == ["general", "random", "support-tier1"]
        assert channels[2].is_private is True
        assert channels[0].is_private is False
