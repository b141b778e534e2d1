"""LLM adapters used to turn an assembled prompt into digest text.

Public API:
    - LLMAdapter: Interface for LLM providers
    - OpenAIAdapter: OpenAI chat completion implementation
    - Message, MessageRole: Conversation models
    - LLMError and subclasses: Provider-neutral errors
"""

from .adapter import LLMAdapter
from .exceptions import (
    LLMAuthenticationError,
    LLMConnectionError,
    LLMError,
    LLMRateLimitError,
    LLMResponseError,
)
from .models import Message, MessageRole
from .openai_adapter import OpenAIAdapter

__all__ = [
    "LLMAdapter",
    "OpenAIAdapter",
    "Message",
    "MessageRole",
    "LLMError",
    "LLMAuthenticationError",
    "LLMConnectionError",
    "LLMRateLimitError",
    "LLMResponseError",
]
