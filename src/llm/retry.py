# src/llm/retry.py — v3
"""Backoff for transient model-provider failures.

Three failure kinds are transient: rate limiting, timeouts and 5xx
server errors. Each has its own attempt budget and delay curve. Any
other error (bad request, safety block, unreadable image) ends the call
at once.
"""

from __future__ import annotations

import asyncio
import logging
import random
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

logger = logging.getLogger(__name__)

RATE_LIMIT = "rate_limit"
TIMEOUT = "timeout"
SERVER_ERROR = "server_error"
NOT_RETRYABLE = "unknown"


class LLMRetryExhausted(Exception):
    """Raised when a call fails for good, carrying the last provider error."""

    def __init__(self, operation: str, error_type: str, attempts: int, last_error: Exception):
        super().__init__(
            f"'{operation}' gave up after {attempts} call(s) [{error_type}]: {last_error}"
        )
        self.operation = operation
        self.error_type = error_type
        self.attempts = attempts
        self.last_error = last_error


@dataclass(frozen=True)
class RetryConfig:
    """Extra attempts allowed and delay curve for one failure kind."""

    max_retries: int
    base_delay_s: float
    backoff_factor: float = 2.0
    jitter: bool = True

    def delay_for(self, retry_number: int) -> float:
        """Seconds to wait before retry ``retry_number`` (0-based)."""
        delay = self.base_delay_s * self.backoff_factor ** retry_number
        if self.jitter:
            delay *= random.uniform(0.5, 1.5)  # noqa: S311
        return delay


DEFAULT_RETRY_CONFIGS: dict[str, RetryConfig] = {
    RATE_LIMIT: RetryConfig(max_retries=3, base_delay_s=2.0),
    TIMEOUT: RetryConfig(max_retries=2, base_delay_s=1.0, backoff_factor=1.0),
    SERVER_ERROR: RetryConfig(max_retries=3, base_delay_s=5.0),
}

_RATE_LIMIT_HINTS = ("429", "rate limit", "quota")
_TIMEOUT_HINTS = ("timeout", "timed out", "deadline")
_SERVER_HINTS = ("500", "502", "503", "504", "unavailable")


def classify_error(error: Exception) -> str:
    """Map a provider exception to a failure kind using its name and message.

    google-generativeai raises google.api_core exceptions whose class names
    (ResourceExhausted, DeadlineExceeded, ServiceUnavailable) and messages
    carry the HTTP status.
    """
    name = type(error).__name__.lower()
    text = f"{name} {error}".lower()

    if "resourceexhausted" in name or any(h in text for h in _RATE_LIMIT_HINTS):
        return RATE_LIMIT
    if any(h in text for h in _TIMEOUT_HINTS):
        return TIMEOUT
    if any(h in text for h in _SERVER_HINTS):
        return SERVER_ERROR
    return NOT_RETRYABLE


async def with_retry(
    fn: Callable[..., Awaitable[Any]],
    *args: Any,
    operation: str = "llm_call",
    retry_configs: dict[str, RetryConfig] | None = None,
    **kwargs: Any,
) -> Any:
    """Await ``fn(*args, **kwargs)``, retrying transient failures.

    Args:
        fn: Coroutine function to call.
        operation: Label used in logs and in the final error.
        retry_configs: Policy per failure kind; ``{}`` disables retries.

    Raises:
        LLMRetryExhausted: On a non-transient error or when the budget
            for the failure kind is used up.
    """
    policy = DEFAULT_RETRY_CONFIGS if retry_configs is None else retry_configs
    calls = 0

    while True:
        calls += 1
        try:
            return await fn(*args, **kwargs)
        except Exception as e:
            kind = classify_error(e)
            config = policy.get(kind)
            retries_used = calls - 1
            if config is None or retries_used >= config.max_retries:
                raise LLMRetryExhausted(operation, kind, calls, e) from e

            delay = config.delay_for(retries_used)
            logger.warning(
                "%s hit %s, retry %d/%d in %.1fs",
                operation, kind, retries_used + 1, config.max_retries, delay,
            )
            await asyncio.sleep(delay)
