"""Bounded retry policy for rate-limited Slack calls."""

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, TypeVar

from tenacity import (
    RetryCallState,
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
)

from .exceptions import RateLimitedError, SlackTransportError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class RetryPolicy:
    """How paginated Slack calls pace themselves and absorb rate limits.

    Attributes:
        page_delay: Seconds to sleep between consecutive pages.
        rate_limit_delay: Minimum seconds to sleep after a rate-limit reply.
            A larger Retry-After from Slack takes precedence.
        max_retries: Retries allowed for a single page after rate limiting.
        sleep: Sleep function (injectable for tests).
    """

    page_delay: float = 1.2
    rate_limit_delay: float = 30.0
    max_retries: int = 1
    sleep: Callable[[float], None] = field(default=time.sleep, repr=False)

    def _backoff(self, retry_state: RetryCallState) -> float:
        """Seconds to wait before re-sending the rate-limited request."""
        error = retry_state.outcome.exception()
        delay = max(self.rate_limit_delay, getattr(error, "retry_after", None) or 0.0)
        logger.warning(
            "Rate limited by Slack API, pausing %.1fs (retry %d/%d)",
            delay,
            retry_state.attempt_number,
            self.max_retries,
        )
        return delay

    def call(self, fn: Callable[[], T], description: str = "Slack call") -> T:
        """Run ``fn``, retrying the same request after rate limiting.

        Args:
            fn: Zero-argument callable performing one API request.
            description: Used in log and error messages.

        Returns:
            Whatever ``fn`` returns.

        Raises:
            SlackTransportError: If still rate limited after ``max_retries``.
        """

        def give_up(retry_state: RetryCallState) -> T:
            raise SlackTransportError(
                f"{description} still rate limited after "
                f"{retry_state.attempt_number - 1} retries"
            ) from retry_state.outcome.exception()

        retrying = Retrying(
            retry=retry_if_exception_type(RateLimitedError),
            stop=stop_after_attempt(self.max_retries + 1),
            wait=self._backoff,
            sleep=self.sleep,
            retry_error_callback=give_up,
        )
        return retrying(fn)

    def pause_between_pages(self) -> None:
        """Sleep the fixed inter-page delay."""
        if self.page_delay > 0:
            self.sleep(self.page_delay)
