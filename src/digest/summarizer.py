"""DigestSummarizer: turns a prompt bundle into digest text via an LLM."""

import logging
from typing import Optional

from src.llm import LLMAdapter, LLMError, Message, MessageRole

from .exceptions import DigestGenerationError
from .models import PromptBundle

logger = logging.getLogger(__name__)


class DigestSummarizer:
    """Sends an assembled prompt to the LLM and returns its markdown reply.

    Failures are reported as DigestGenerationError and never retried here;
    retry behaviour, if any, belongs to the adapter.
    """

    def __init__(
        self,
        adapter: LLMAdapter,
        temperature: float = 0.3,
        max_tokens: int = 1000,
    ):
        self._adapter = adapter
        self._temperature = temperature
        self._max_tokens = max_tokens

    def summarize(self, bundle: PromptBundle) -> str:
        """Generate digest text for ``bundle``.

        Raises:
            DigestGenerationError: If the bundle has nothing to render, the
                LLM call fails, or the reply is empty.
        """
        if not bundle.is_renderable:
            raise DigestGenerationError("prompt contains no renderable messages")

        messages = [
            Message(role=MessageRole.SYSTEM, content=bundle.system_message),
            Message(role=MessageRole.USER, content=bundle.user_prompt),
        ]
        logger.info(
            "Generating summary with %s focus=%s messages=%d truncated=%s",
            self._adapter.provider_name,
            bundle.focus,
            bundle.included_message_count,
            bundle.truncated,
        )

        try:
            text = self._adapter.complete(
                messages,
                temperature=self._temperature,
                max_tokens=self._max_tokens,
            )
        except LLMError as e:
            raise DigestGenerationError(str(e)) from e

        if not text or not text.strip():
            raise DigestGenerationError("model returned an empty summary")

        logger.info("Summary generated successfully (%d chars)", len(text))
        return text
