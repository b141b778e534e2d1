"""Custom exceptions for the LLM adapter module."""

from typing import Optional


class LLMError(Exception):
    """Base exception for LLM adapter errors."""

    pass


class LLMConnectionError(LLMError):
    """Failed to connect to LLM provider."""

    pass


class LLMRateLimitError(LLMError):
    """Rate limit exceeded on LLM provider.

    Attributes:
        retry_after: Seconds to wait before retrying, if provided by the API.
    """

    def __init__(self, message: str, retry_after: Optional[float] = None):
        super().__init__(message)
        self.retry_after = retry_after


class LLMResponseError(LLMError):
    """LLM returned an invalid or empty response."""

    pass


class LLMAuthenticationError(LLMError):
    """Authentication failed with LLM provider."""

    pass
