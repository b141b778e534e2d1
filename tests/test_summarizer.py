"""Tests for DigestSummarizer with a mocked adapter."""

from unittest.mock import MagicMock

import pytest

from src.digest import DigestGenerationError, DigestSummarizer
from src.digest.models import PromptBundle
from src.digest.prompts import NOTHING_RENDERABLE
from src.llm import LLMAdapter, LLMRateLimitError, MessageRole


@pytest.fixture
def mock_adapter():
    adapter = MagicMock(spec=LLMAdapter)
    adapter.model_name = "test-model"
    adapter.provider_name = "test-provider"
    return adapter


@pytest.fixture
def bundle():
    return PromptBundle(
        system_message="You summarize Slack.",
        user_prompt="General Messages:\n[...] #general: hi Link: https://l",
        included_message_count=1,
        total_message_count=1,
    )


class TestDigestSummarizer:
    def test_returns_model_text(self, mock_adapter, bundle):
        mock_adapter.complete.return_value = "## Top highlights\n- hi"

        text = DigestSummarizer(mock_adapter).summarize(bundle)

        assert text == "## Top highlights\n- hi"

    def test_sends_system_and_user_messages(self, mock_adapter, bundle):
        mock_adapter.complete.return_value = "digest"

        DigestSummarizer(mock_adapter).summarize(bundle)

        messages = mock_adapter.complete.call_args[0][0]
        assert [m.role for m in messages] == [MessageRole.SYSTEM, MessageRole.USER]
        assert messages[0].content == bundle.system_message
        assert messages[1].content == bundle.user_prompt
        kwargs = mock_adapter.complete.call_args[1]
        assert kwargs == {"temperature": 0.3, "max_tokens": 1000}

    def test_custom_generation_settings(self, mock_adapter, bundle):
        mock_adapter.complete.return_value = "digest"

        DigestSummarizer(mock_adapter, temperature=0.0, max_tokens=200).summarize(bundle)

        assert mock_adapter.complete.call_args[1] == {"temperature": 0.0, "max_tokens": 200}

    def test_nothing_renderable(self, mock_adapter):
        empty = PromptBundle(
            system_message="sys", user_prompt=NOTHING_RENDERABLE, included_message_count=0
        )

        with pytest.raises(DigestGenerationError):
            DigestSummarizer(mock_adapter).summarize(empty)
        mock_adapter.complete.assert_not_called()

    def test_llm_error(self, mock_adapter, bundle):
        mock_adapter.complete.side_effect = LLMRateLimitError("rate limited", retry_after=20)

        with pytest.raises(DigestGenerationError) as exc_info:
            DigestSummarizer(mock_adapter).summarize(bundle)
        assert "rate limited" in str(exc_info.value)

    @pytest.mark.parametrize("reply", ["", "   \n"])
    def test_empty_reply(self, mock_adapter, bundle, reply):
        mock_adapter.complete.return_value = reply

        with pytest.raises(DigestGenerationError):
            DigestSummarizer(mock_adapter).summarize(bundle)
