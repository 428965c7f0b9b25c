"""
Polling utilities with adaptive intervals.

Every wait in the merge workflow (CI completion, a rebase landing) goes
through :func:`poll`.
"""

import asyncio
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, TypeVar

from renovate_merger.exceptions import (
    ErrorKind,
    MergerError,
    polling_aborted_error,
    polling_timeout_error,
)
from renovate_merger.logging import get_logger

T = TypeVar("T")

logger = get_logger("poller")

# Interval growth after each unfinished poll
DEFAULT_BACKOFF_FACTOR = 1.2


class PollDecision(str, Enum):
    """What a poll condition wants to happen next."""

    CONTINUE = "continue"
    DONE = "done"
    ABORT = "abort"


@dataclass(frozen=True)
class PollerOptions(Generic[T]):
    """Configuration for a single :func:`poll` call. Times are in seconds."""

    operation_name: str
    condition: Callable[[T], PollDecision]
    timeout: float
    initial_interval: float
    max_interval: float
    interval_adjuster: Callable[[T, float], float] | None = None
    on_poll: Callable[[T, float], None] | None = None


async def poll(
    probe: Callable[[], Awaitable[T]],
    options: PollerOptions[T],
    *,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    clock: Callable[[], float] = time.monotonic,
) -> T:
    """
    Call ``probe`` until ``options.condition`` says DONE or ABORT.

    Args:
        probe: Zero-argument coroutine function producing the polled value
        options: Condition, timeout and interval schedule
        sleep: Awaitable sleep function
        clock: Monotonic clock in seconds

    Returns:
        The probe result for which the condition returned DONE

    Raises:
        MergerError: POLLING_TIMEOUT once the timeout has elapsed,
            POLLING_ABORTED when the condition aborts. A probe failure
            observed after the timeout is re-raised as is.
    """
    start = clock()
    interval = min(options.initial_interval, options.max_interval)

    while True:
        next_interval = interval
        elapsed = clock() - start
        if elapsed >= options.timeout:
            raise polling_timeout_error(options.operation_name, options.timeout)

        try:
            result = await probe()
        except MergerError as exc:
            if exc.kind is ErrorKind.POLLING_TIMEOUT:
                raise
            if clock() - start >= options.timeout:
                raise
            logger.debug("%s probe failed, will poll again: %s", options.operation_name, exc)
        except Exception as exc:
            if clock() - start >= options.timeout:
                raise
            logger.debug("%s probe failed, will poll again: %s", options.operation_name, exc)
        else:
            if options.on_poll is not None:
                try:
                    options.on_poll(result, elapsed)
                except Exception:
                    logger.debug("on_poll observer raised", exc_info=True)

            decision = options.condition(result)
            if decision is PollDecision.DONE:
                return result
            if decision is PollDecision.ABORT:
                raise polling_aborted_error(options.operation_name, options.timeout)

            if options.interval_adjuster is not None:
                next_interval = options.interval_adjuster(result, interval)
            else:
                next_interval = interval * DEFAULT_BACKOFF_FACTOR

        await sleep(interval)
        interval = min(next_interval, options.max_interval)


def ci_check_poller_options(
    condition: Callable[[T], PollDecision],
    on_poll: Callable[[T, float], None] | None = None,
    *,
    timeout: float = 10 * 60,
    initial_interval: float = 10.0,
    max_interval: float = 60.0,
) -> PollerOptions[T]:
    """Default poller configuration for waiting on CI checks."""
    return PollerOptions(
        operation_name="CI checks",
        condition=condition,
        timeout=timeout,
        initial_interval=initial_interval,
        max_interval=max_interval,
        on_poll=on_poll,
    )


def rebase_poller_options(
    condition: Callable[[T], PollDecision],
    on_poll: Callable[[T, float], None] | None = None,
    *,
    timeout: float = 5 * 60,
    initial_interval: float = 5.0,
    max_interval: float = 30.0,
) -> PollerOptions[T]:
    """Default poller configuration for waiting on a rebase."""
    return PollerOptions(
        operation_name="rebase",
        condition=condition,
        timeout=timeout,
        initial_interval=initial_interval,
        max_interval=max_interval,
        on_poll=on_poll,
    )


def format_duration(seconds: float) -> str:
    """Format a duration as "1m 5s" or "42s"."""
    total = int(seconds)
    minutes, remaining = divmod(total, 60)
    if minutes > 0:
        return f"{minutes}m {remaining}s"
    return f"{total}s"
