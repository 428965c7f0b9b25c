"""
Tests for the retry policy.
"""

import asyncio
from datetime import datetime, timezone

import httpx
import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from renovate_merger.exceptions import (
    ErrorCode,
    api_error,
    network_error,
    polling_timeout_error,
    pr_state_error,
    rate_limit_error,
)
from renovate_merger.retry import (
    RATE_LIMIT_MARGIN,
    RetryConfig,
    is_transient_error,
    retryable,
    with_retry,
)


class SleepRecorder:
    def __init__(self) -> None:
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


def failing_then(result: object, failures: list[BaseException]):
    """Operation that raises each of ``failures`` in turn, then returns ``result``."""
    state = {"calls": 0}

    async def operation() -> object:
        state["calls"] += 1
        if failures:
            raise failures.pop(0)
        return result

    return operation, state


class TestIsTransientError:
    def test_recoverable_kinds(self) -> None:
        assert is_transient_error(network_error("reset"))
        assert is_transient_error(rate_limit_error(datetime.now(timezone.utc)))

    def test_pr_state_is_not_transient(self) -> None:
        assert not is_transient_error(pr_state_error(ErrorCode.PR_CLOSED, 1, "PR was closed"))

    def test_polling_timeout_is_not_transient(self) -> None:
        # mentions "timeout" but is classified by kind
        assert not is_transient_error(polling_timeout_error("CI checks", 600))

    def test_httpx_transport_errors(self) -> None:
        assert is_transient_error(httpx.ConnectError("refused"))
        assert is_transient_error(httpx.ReadTimeout("slow"))

    @pytest.mark.parametrize(
        "message",
        ["ECONNRESET", "socket hang up", "request timed out", "Network unreachable", "fetch failed"],
    )
    def test_transient_messages(self, message: str) -> None:
        assert is_transient_error(RuntimeError(message))

    def test_status_codes(self) -> None:
        assert is_transient_error(api_error(502, "Bad Gateway"))
        assert is_transient_error(api_error(429, "Too Many Requests"))
        assert not is_transient_error(api_error(404, "Not Found"))
        assert not is_transient_error(api_error(422, "Validation Failed"))

    def test_status_attribute_on_foreign_errors(self) -> None:
        error = RuntimeError("odd")
        error.status = 503  # type: ignore[attr-defined]
        assert is_transient_error(error)

    def test_plain_errors(self) -> None:
        assert not is_transient_error(ValueError("bad input"))


class TestWithRetry:
    @pytest.mark.asyncio
    async def test_success_first_try(self) -> None:
        sleep = SleepRecorder()
        operation, state = failing_then("ok", [])
        assert await with_retry(operation, sleep=sleep) == "ok"
        assert state["calls"] == 1
        assert sleep.calls == []

    @pytest.mark.asyncio
    async def test_never_retry_condition_fails_after_one_attempt(self) -> None:
        sleep = SleepRecorder()
        error = network_error("reset")
        operation, state = failing_then("ok", [error])

        with pytest.raises(Exception) as excinfo:
            await with_retry(operation, retry_condition=lambda _: False, sleep=sleep)

        assert excinfo.value is error
        assert state["calls"] == 1
        assert sleep.calls == []

    @pytest.mark.asyncio
    async def test_fail_fail_succeed(self) -> None:
        sleep = SleepRecorder()
        operation, state = failing_then("ok", [RuntimeError("a"), RuntimeError("b")])
        config = RetryConfig(max_attempts=3, initial_delay=1.0, max_delay=1.5, backoff_multiplier=2.0)

        result = await with_retry(operation, config, retry_condition=lambda _: True, sleep=sleep)

        assert result == "ok"
        assert state["calls"] == 3
        assert sleep.calls == [1.0, 1.5]

    @pytest.mark.asyncio
    async def test_exhaustion_reraises_last_error(self) -> None:
        sleep = SleepRecorder()
        last = network_error("third")
        operation, state = failing_then("ok", [network_error("first"), network_error("second"), last])

        with pytest.raises(Exception) as excinfo:
            await with_retry(operation, RetryConfig(max_attempts=3), sleep=sleep)

        assert excinfo.value is last
        assert state["calls"] == 3
        assert len(sleep.calls) == 2

    @pytest.mark.asyncio
    async def test_non_transient_error_is_not_retried(self) -> None:
        sleep = SleepRecorder()
        error = pr_state_error(ErrorCode.PR_CLOSED, 1, "PR was closed")
        operation, state = failing_then("ok", [error])

        with pytest.raises(Exception) as excinfo:
            await with_retry(operation, sleep=sleep)

        assert excinfo.value is error
        assert state["calls"] == 1

    @pytest.mark.asyncio
    async def test_rate_limit_waits_for_reset(self) -> None:
        sleep = SleepRecorder()
        reset_at = datetime.fromtimestamp(1_010, tz=timezone.utc)
        operation, _ = failing_then("ok", [rate_limit_error(reset_at)])

        result = await with_retry(operation, sleep=sleep, clock=lambda: 1_000.0)

        assert result == "ok"
        assert sleep.calls == [10.0 + RATE_LIMIT_MARGIN]

    @pytest.mark.asyncio
    async def test_on_retry_observer(self) -> None:
        seen = []
        first = network_error("x")
        operation, _ = failing_then("ok", [first])

        await with_retry(
            operation,
            RetryConfig(initial_delay=0.25),
            on_retry=lambda exc, attempt, delay: seen.append((exc, attempt, delay)),
            sleep=SleepRecorder(),
        )

        assert seen == [(first, 1, 0.25)]

    @pytest.mark.asyncio
    async def test_retryable_decorator(self) -> None:
        calls = []

        @retryable(RetryConfig(max_attempts=2, initial_delay=0, max_delay=0))
        async def flaky(value: int) -> int:
            calls.append(value)
            if len(calls) == 1:
                raise network_error("blip")
            return value * 2

        assert await flaky(21) == 42
        assert calls == [21, 21]


@given(
    initial=st.floats(min_value=0.1, max_value=10.0),
    maximum=st.floats(min_value=0.1, max_value=20.0),
    multiplier=st.floats(min_value=1.0, max_value=4.0),
    attempts=st.integers(min_value=2, max_value=6),
)
@settings(max_examples=100)
def test_property_backoff_is_non_decreasing_and_capped(
    initial: float, maximum: float, multiplier: float, attempts: int
) -> None:
    """
    Property: Exponential backoff timing

    For an operation that always fails with a retriable error, the policy
    sleeps attempts - 1 times, each delay is at most max_delay, and delays
    never decrease.
    """
    sleep = SleepRecorder()
    config = RetryConfig(
        max_attempts=attempts,
        initial_delay=initial,
        max_delay=maximum,
        backoff_multiplier=multiplier,
    )

    async def always_fails() -> None:
        raise RuntimeError("boom")

    with pytest.raises(RuntimeError):
        asyncio.run(with_retry(always_fails, config, retry_condition=lambda _: True, sleep=sleep))

    assert len(sleep.calls) == attempts - 1
    assert all(delay <= maximum for delay in sleep.calls)
    assert all(a <= b for a, b in zip(sleep.calls, sleep.calls[1:]))
