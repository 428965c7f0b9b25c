"""
Retry helpers with exponential backoff.

Used by the HTTP transport to ride out rate limits and flaky networking so
the merge workflow never sees them.
"""

import asyncio
import functools
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, TypeVar

import httpx

from renovate_merger.exceptions import ErrorKind, MergerError, RateLimitInfo
from renovate_merger.logging import get_logger

T = TypeVar("T")

logger = get_logger("retry")

# Extra wait after a rate limit window resets
RATE_LIMIT_MARGIN = 1.0

_TRANSIENT_MESSAGE_MARKERS = (
    "econnreset",
    "etimedout",
    "timed out",
    "timeout",
    "connection reset",
    "socket hang up",
    "socket closed",
    "network",
    "fetch failed",
)


@dataclass(frozen=True)
class RetryConfig:
    """Configuration for automatic retry behavior. Delays are in seconds."""

    max_attempts: int = 3
    initial_delay: float = 1.0
    max_delay: float = 30.0
    backoff_multiplier: float = 2.0


def _status_of(error: BaseException) -> int | None:
    for attr in ("status_code", "status"):
        value = getattr(error, attr, None)
        if isinstance(value, int):
            return value
    response = getattr(error, "response", None)
    value = getattr(response, "status_code", None)
    return value if isinstance(value, int) else None


def is_transient_error(error: BaseException) -> bool:
    """Check if an error is likely transient and worth retrying."""
    if isinstance(error, MergerError) and error.recoverable:
        return True

    if isinstance(error, httpx.TransportError):
        return True

    # Our own messages are classified by kind, not by wording
    if not isinstance(error, MergerError):
        message = str(error).lower()
        if any(marker in message for marker in _TRANSIENT_MESSAGE_MARKERS):
            return True

    status = _status_of(error)
    if status is not None and (status >= 500 or status == 429):
        return True

    return False


def _rate_limit_wait(error: BaseException, now: float) -> float | None:
    if (
        isinstance(error, MergerError)
        and error.kind is ErrorKind.RATE_LIMIT
        and isinstance(error.payload, RateLimitInfo)
    ):
        return max(0.0, error.payload.reset_at.timestamp() - now) + RATE_LIMIT_MARGIN
    return None


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    config: RetryConfig | None = None,
    *,
    retry_condition: Callable[[BaseException], bool] | None = None,
    on_retry: Callable[[BaseException, int, float], None] | None = None,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    clock: Callable[[], float] = time.time,
) -> T:
    """
    Execute an async operation, retrying transient failures.

    Args:
        operation: Zero-argument coroutine function to run
        config: Attempt count and backoff schedule
        retry_condition: Decides whether a failure is retried (default: is_transient_error)
        on_retry: Called with (error, attempt, delay) before each backoff sleep
        sleep: Awaitable sleep function
        clock: Wall clock in epoch seconds, used for rate limit resets

    Returns:
        The operation's result

    Raises:
        The last failure, unchanged, when it is not retried or attempts run out
    """
    config = config or RetryConfig()
    should_retry = retry_condition or is_transient_error
    delay = min(config.initial_delay, config.max_delay)
    attempt = 1

    while True:
        try:
            return await operation()
        except Exception as exc:
            if not should_retry(exc) or attempt >= config.max_attempts:
                raise

            rate_limit_wait = _rate_limit_wait(exc, clock())
            if rate_limit_wait is not None:
                delay = rate_limit_wait

            if on_retry is not None:
                on_retry(exc, attempt, delay)
            logger.debug(
                "attempt %d/%d failed (%s), retrying in %.1fs",
                attempt,
                config.max_attempts,
                exc,
                delay,
            )

            await sleep(delay)
            delay = min(delay * config.backoff_multiplier, config.max_delay)
            attempt += 1


def retryable(
    config: RetryConfig | None = None,
    retry_condition: Callable[[BaseException], bool] | None = None,
) -> Callable[[Callable[..., Awaitable[T]]], Callable[..., Awaitable[T]]]:
    """Decorator form of :func:`with_retry` for coroutine functions."""

    def decorator(fn: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        @functools.wraps(fn)
        async def wrapper(*args: Any, **kwargs: Any) -> T:
            return await with_retry(
                lambda: fn(*args, **kwargs),
                config,
                retry_condition=retry_condition,
            )

        return wrapper

    return decorator
