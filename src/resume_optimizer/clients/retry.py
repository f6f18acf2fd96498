"""Retry policy and combinator for provider calls."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, TypeVar

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
)

from resume_optimizer.errors import InvalidRequest, ProviderError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def is_retryable(exc: BaseException) -> bool:
    """Default predicate: retry transient provider failures only."""
    if isinstance(exc, InvalidRequest):
        return False
    if isinstance(exc, ProviderError):
        return exc.retryable
    return False


@dataclass(frozen=True)
class RetryPolicy:
    """How many times to attempt a call and how long to wait between tries.

    ``backoff_ms[i]`` is the wait after the (i+1)-th failed attempt; when the
    schedule runs out ``delay_ms`` is used.
    """

    max_attempts: int = 3
    backoff_ms: tuple[int, ...] = (1000, 2000, 4000)
    delay_ms: int = 1000
    should_retry: Callable[[BaseException], bool] = field(default=is_retryable)

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got {self.max_attempts}")

    @classmethod
    def from_config(cls, config, should_retry: Callable[[BaseException], bool] | None = None) -> RetryPolicy:
        return cls(
            max_attempts=config.max_attempts,
            backoff_ms=tuple(config.backoff_ms),
            delay_ms=config.delay_ms,
            should_retry=should_retry or is_retryable,
        )

    def wait_seconds(self, attempt: int) -> float:
        """Seconds to sleep after failed attempt number ``attempt`` (1-based)."""
        index = attempt - 1
        if 0 <= index < len(self.backoff_ms):
            return self.backoff_ms[index] / 1000
        return self.delay_ms / 1000


def _log_retry(state: RetryCallState) -> None:
    exc = state.outcome.exception() if state.outcome else None
    logger.warning(
        "Attempt %d failed (%s); retrying in %.1fs",
        state.attempt_number,
        exc,
        state.next_action.sleep if state.next_action else 0.0,
    )


async def with_retry(fn: Callable[[], Awaitable[T]], policy: RetryPolicy) -> T:
    """Await ``fn()`` under ``policy``; re-raise the last error on exhaustion."""
    retrying = AsyncRetrying(
        stop=stop_after_attempt(policy.max_attempts),
        wait=lambda state: policy.wait_seconds(state.attempt_number),
        retry=retry_if_exception(policy.should_retry),
        before_sleep=_log_retry,
        reraise=True,
    )
    return await retrying(fn)
