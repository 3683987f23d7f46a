"""Error types and retry policy for AI provider calls.

This module provides:
- The exception hierarchy raised inside provider adapters
- A retry factory for rate-limited requests (linear backoff)

Provider errors never cross the provider boundary: ``BaseAIProvider.analyze``
converts them to an empty explanation.
"""

from __future__ import annotations

import time
from collections.abc import Callable

import structlog
from tenacity import (
    RetryCallState,
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_incrementing,
)

log = structlog.get_logger()


# =============================================================================
# Custom Exceptions
# =============================================================================


class InsightError(Exception):
    """Base exception for runtime-insight errors."""


class TracebackParseError(InsightError):
    """Failed to parse a traceback from text."""


class ProviderError(InsightError):
    """AI provider request failed (transport, protocol, or non-2xx status)."""


class ProviderTimeoutError(ProviderError):
    """AI provider request timed out."""


class RateLimitError(ProviderError):
    """AI provider rate limit exceeded.

    Attributes:
        retry_after: Number of seconds the backend asked to wait, if known.
    """

    def __init__(self, message: str, retry_after: float | None = None) -> None:
        super().__init__(message)
        self.retry_after = retry_after


# =============================================================================
# Retry Policy
# =============================================================================


def _log_retry(retry_state: RetryCallState) -> None:
    """Log rate-limit retries."""
    if retry_state.outcome is None:
        return

    exception = retry_state.outcome.exception()
    if exception:
        log.warning(
            "rate_limit_retry",
            attempt=retry_state.attempt_number,
            exception_type=type(exception).__name__,
            exception_message=str(exception),
            wait_time=retry_state.next_action.sleep if retry_state.next_action else 0,
        )


def create_rate_limit_retry(
    max_attempts: int = 3,
    backoff: float = 1.0,
    sleep: Callable[[float], None] = time.sleep,
) -> Retrying:
    """Create a retry controller for rate-limited provider requests.

    Only ``RateLimitError`` is retried. The wait before attempt ``n + 1`` is
    ``n * backoff`` seconds (linear), so the defaults sleep 1s then 2s across
    three attempts. Any other error propagates immediately, and the last
    ``RateLimitError`` is re-raised once attempts are exhausted.

    Args:
        max_attempts: Total attempts including the first one.
        backoff: Backoff step in seconds.
        sleep: Sleep function, injectable for tests.

    Returns:
        A tenacity ``Retrying`` instance; call it as ``retrying(fn, *args)``.
    """
    return Retrying(
        stop=stop_after_attempt(max_attempts),
        wait=wait_incrementing(start=backoff, increment=backoff),
        retry=retry_if_exception_type(RateLimitError),
        before_sleep=_log_retry,
        sleep=sleep,
        reraise=True,
    )
