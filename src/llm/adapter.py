"""Abstract interface for LLM adapters."""

from abc import ABC, abstractmethod

from .models import Message


class LLMAdapter(ABC):
    """Abstract base class for LLM provider adapters.

    Implementations translate provider-specific exceptions into the ones
    defined in exceptions.py, so callers never see SDK errors.

    Example usage:
        adapter = OpenAIAdapter(api_key="...")
        messages = [
            Message(MessageRole.SYSTEM, "You summarize Slack messages."),
            Message(MessageRole.USER, "Messages: ..."),
        ]
        text = adapter.complete(messages, temperature=0.3)
    """

    @abstractmethod
    def complete(
        self,
        messages: list[Message],
        temperature: float = 0.0,
        max_tokens: int = 1024,
    ) -> str:
        """Send messages to the LLM and return its reply text.

        Raises:
            LLMConnectionError: Failed to connect to provider.
            LLMRateLimitError: Rate limit exceeded.
            LLMAuthenticationError: Invalid credentials.
            LLMResponseError: Invalid or empty response from provider.
        """
        pass

    @property
    @abstractmethod
    def model_name(self) -> str:
        """Return the name of the model being used."""
        pass

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Return the name of the LLM provider."""
        pass
