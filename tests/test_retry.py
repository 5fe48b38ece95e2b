"""
Tests for the exponential backoff retry wrapper.
"""

import asyncio

import pytest

from idiomcomic.common import RetryExecutor, backoff_delay


class Flaky:
    def __init__(self, failures: int, result: str = "ok") -> None:
        self.failures = failures
        self.result = result
        self.calls = 0

    async def __call__(self) -> str:
        self.calls += 1
        if self.calls <= self.failures:
            raise ConnectionError(f"transient failure {self.calls}")
        return self.result


class TestBackoffDelay:
    def test_doubles_from_base(self):
        assert [backoff_delay(k) for k in (1, 2, 3, 4)] == [1.0, 2.0, 4.0, 8.0]

    def test_custom_base(self):
        assert backoff_delay(3, base_delay=0.5) == 2.0

    def test_rejects_attempt_zero(self):
        with pytest.raises(ValueError):
            backoff_delay(0)


class TestRetryExecutor:
    def test_first_attempt_success_does_not_sleep(self, clock):
        executor = RetryExecutor(sleep=clock)
        work = Flaky(failures=0)

        assert asyncio.run(executor.execute(work)) == "ok"
        assert work.calls == 1
        assert clock.sleeps == []

    def test_two_failures_then_success_waits_one_then_two_seconds(self, clock):
        executor = RetryExecutor(max_attempts=3, sleep=clock)
        work = Flaky(failures=2)

        assert asyncio.run(executor.execute(work)) == "ok"
        assert work.calls == 3
        assert clock.sleeps == [1.0, 2.0]
        assert clock.now == 3.0

    def test_exhaustion_reraises_last_error_unchanged(self, clock):
        executor = RetryExecutor(max_attempts=3, sleep=clock)
        work = Flaky(failures=5)

        with pytest.raises(ConnectionError, match="transient failure 3"):
            asyncio.run(executor.execute(work))
        assert work.calls == 3
        assert clock.sleeps == [1.0, 2.0]

    def test_exhausted_error_carries_attempt_count(self, clock):
        executor = RetryExecutor(max_attempts=2, sleep=clock)

        with pytest.raises(ConnectionError) as excinfo:
            asyncio.run(executor.execute(Flaky(failures=5)))
        assert excinfo.value.retry_attempts == 2

    def test_per_call_budget_override(self, clock):
        executor = RetryExecutor(max_attempts=3, sleep=clock)
        work = Flaky(failures=5)

        with pytest.raises(ConnectionError):
            asyncio.run(executor.execute(work, max_attempts=1))
        assert work.calls == 1
        assert clock.sleeps == []

    def test_cancellation_is_not_retried(self, clock):
        executor = RetryExecutor(max_attempts=3, sleep=clock)
        calls = []

        async def cancelled():
            calls.append(1)
            raise asyncio.CancelledError()

        with pytest.raises(asyncio.CancelledError):
            asyncio.run(executor.execute(cancelled))
        assert len(calls) == 1

    def test_invalid_budget(self):
        with pytest.raises(ValueError):
            RetryExecutor(max_attempts=0)
