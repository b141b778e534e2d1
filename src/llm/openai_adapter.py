"""OpenAI chat completion adapter."""

import logging
from typing import Optional

from openai import (
    APIConnectionError,
    APIError,
    AuthenticationError,
    OpenAI,
    RateLimitError,
)

from .adapter import LLMAdapter
from .exceptions import (
    LLMAuthenticationError,
    LLMConnectionError,
    LLMRateLimitError,
    LLMResponseError,
)
from .models import Message

logger = logging.getLogger(__name__)


class OpenAIAdapter(LLMAdapter):
    """LLM adapter for OpenAI chat models.

    The API key is passed in explicitly (normally from DigestConfig); the
    OpenAI client itself is created lazily.

    Example usage:
        adapter = OpenAIAdapter(api_key="sk-...", model="gpt-4o")
    """

    DEFAULT_MODEL = "gpt-4o-mini"

    def __init__(
        self,
        api_key: str,
        model: Optional[str] = None,
        organization: Optional[str] = None,
    ):
        """Initialize the OpenAI adapter.

        Args:
            api_key: OpenAI API key.
            model: Model to use. Defaults to gpt-4o-mini.
            organization: Optional OpenAI organization ID.

        Raises:
            LLMAuthenticationError: If the API key is empty.
        """
        if not api_key:
            raise LLMAuthenticationError(
                "OpenAI API key not provided. Set OPENAI_API_KEY."
            )
        self._api_key = api_key
        self._model = model or self.DEFAULT_MODEL
        self._organization = organization
        self._client: Optional[OpenAI] = None

    def _get_client(self) -> OpenAI:
        """Get or create OpenAI client (lazy initialization)."""
        if self._client is None:
            self._client = OpenAI(
                api_key=self._api_key,
                organization=self._organization,
            )
        return self._client

    def complete(
        self,
        messages: list[Message],
        temperature: float = 0.0,
        max_tokens: int = 1024,
    ) -> str:
        client = self._get_client()
        logger.debug("Sending request to OpenAI model=%s", self._model)

        try:
            response = client.chat.completions.create(
                model=self._model,
                messages=[m.to_dict() for m in messages],  # type: ignore[arg-type]
                temperature=temperature,
                max_tokens=max_tokens,
            )
        except AuthenticationError as e:
            raise LLMAuthenticationError(f"OpenAI authentication failed: {e}") from e
        except RateLimitError as e:
            retry_after = None
            if getattr(e, "response", None) is not None:
                retry_header = e.response.headers.get("retry-after")
                if retry_header:
                    retry_after = float(retry_header)
            raise LLMRateLimitError(
                f"OpenAI rate limit exceeded: {e}", retry_after
            ) from e
        except APIConnectionError as e:
            raise LLMConnectionError(f"Failed to connect to OpenAI: {e}") from e
        except APIError as e:
            raise LLMResponseError(f"OpenAI API error: {e}") from e

        if not response.choices:
            raise LLMResponseError("No choices in OpenAI response")

        content = response.choices[0].message.content
        if not content:
            raise LLMResponseError("Empty content in OpenAI response")

        if response.usage:
            logger.debug(
                "OpenAI response received (prompt=%d, completion=%d tokens)",
                response.usage.prompt_tokens,
                response.usage.completion_tokens,
            )
        return content

    @property
    def model_name(self) -> str:
        """Return the model name."""
        return self._model

    @property
    def provider_name(self) -> str:
        """Return the provider name."""
        return "OpenAI"
