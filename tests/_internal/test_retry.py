"""Tests for RetryPolicy backoff and deadline handling."""

from __future__ import annotations

import asyncio

import pytest

from voltwatch._internal.retry import RetryPolicy
from voltwatch.api.errors import (
    AuthError,
    ChargePointRejectedError,
    DecodeError,
    RemoteCallError,
)


class _FakeClock:
    """Monotonic clock advanced only by the policy's sleep calls."""

    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


def _policy(clock: _FakeClock, **kwargs: float) -> RetryPolicy:
    return RetryPolicy(randomization_factor=0.0, clock=clock, sleep=clock.sleep, **kwargs)


class _Flaky:
    def __init__(self, failures: list[BaseException], result: str = "ok") -> None:
        self._failures = list(failures)
        self.calls = 0
        self._result = result

    async def __call__(self) -> str:
        self.calls += 1
        if self._failures:
            raise self._failures.pop(0)
        return self._result


class TestRetryPolicy:
    @pytest.mark.asyncio
    async def test_success_first_try(self) -> None:
        clock = _FakeClock()
        op = _Flaky([])
        assert await _policy(clock).call(op) == "ok"
        assert op.calls == 1
        assert clock.sleeps == []

    @pytest.mark.asyncio
    async def test_retries_transient_errors_with_backoff(self) -> None:
        clock = _FakeClock()
        op = _Flaky([RemoteCallError("a"), RemoteCallError("b"), RemoteCallError("c")])

        assert await _policy(clock).call(op) == "ok"
        assert op.calls == 4
        assert clock.sleeps == pytest.approx([0.5, 0.75, 1.125])

    @pytest.mark.asyncio
    async def test_interval_capped(self) -> None:
        clock = _FakeClock()
        op = _Flaky([RemoteCallError()] * 4)

        await _policy(clock, initial_interval=2.0, multiplier=10.0, max_interval=5.0).call(op)
        assert clock.sleeps == [2.0, 5.0, 5.0, 5.0]

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error",
        [AuthError("denied"), ChargePointRejectedError("nope"), DecodeError("garbled")],
    )
    async def test_fatal_errors_not_retried(self, error: Exception) -> None:
        clock = _FakeClock()
        op = _Flaky([error])

        with pytest.raises(type(error)):
            await _policy(clock).call(op)
        assert op.calls == 1
        assert clock.sleeps == []

    @pytest.mark.asyncio
    async def test_custom_fatal(self) -> None:
        clock = _FakeClock()
        op = _Flaky([ChargePointRejectedError("pending"), DecodeError("bad")])

        with pytest.raises(DecodeError):
            await _policy(clock).call(op, fatal=(DecodeError,))
        assert op.calls == 2

    @pytest.mark.asyncio
    async def test_gives_up_after_max_elapsed(self) -> None:
        clock = _FakeClock()
        op = _Flaky([RemoteCallError(str(i)) for i in range(100)])

        with pytest.raises(RemoteCallError) as exc_info:
            await _policy(clock, max_elapsed=3.0).call(op)

        # 0.5 + 0.75 + 1.125 = 2.375; the next wait (1.6875) would overrun.
        assert clock.sleeps == pytest.approx([0.5, 0.75, 1.125])
        assert op.calls == 4
        assert str(exc_info.value) == "3"

    @pytest.mark.asyncio
    async def test_attempt_timeout_is_retried(self) -> None:
        clock = _FakeClock()
        calls = 0

        async def _slow_then_fast() -> str:
            nonlocal calls
            calls += 1
            if calls == 1:
                await asyncio.sleep(10)
            return "done"

        result = await _policy(clock, attempt_timeout=0.05).call(_slow_then_fast)
        assert result == "done"
        assert calls == 2

    @pytest.mark.asyncio
    async def test_cancellation_propagates(self) -> None:
        async def _hang() -> None:
            await asyncio.sleep(10)

        task = asyncio.create_task(RetryPolicy().call(_hang))
        await asyncio.sleep(0.01)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

    def test_randomized_interval_within_bounds(self) -> None:
        policy = RetryPolicy()
        for _ in range(200):
            assert 0.25 <= policy._randomize(0.5) <= 0.75
