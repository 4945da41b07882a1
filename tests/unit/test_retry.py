# tests/unit/test_retry.py
"""Unit tests for backoff calculation, retry decisions and cancellation."""

import asyncio

import pytest

from vogue_commerce.core.exceptions import (
    OperationCancelledException,
    PersistenceException,
    ProductDataException,
    ProductLoadException
)
from vogue_commerce.core.retry import (
    CancellationToken,
    RetryConfig,
    RetryStrategy,
    calculate_delay,
    execute_async_with_retry,
    get_retry_manager,
    should_retry
)


class RecordingWaiter:
    """Backoff waiter that records delays instead of sleeping."""

    def __init__(self, cancel_after: int = -1, token: CancellationToken = None):
        self.delays = []
        self.cancel_after = cancel_after
        self.token = token

    async def __call__(self, delay: float) -> bool:
        self.delays.append(delay)
        if len(self.delays) == self.cancel_after:
            self.token.cancel()
            return True
        return False


class FlakyOperation:
    """Fails ``failures`` times with ``error`` and then returns ``result``."""

    def __init__(self, failures: int, error: Exception, result="ok"):
        self.failures = failures
        self.error = error
        self.result = result
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        if self.calls <= self.failures:
            raise self.error
        return self.result


class TestCalculateDelay:
    """Test backoff strategies."""

    def test_default_policy_is_one_two_four(self):
        config = RetryConfig()
        assert config.max_attempts == 4
        assert [calculate_delay(attempt, config) for attempt in range(1, 5)] == [0.0, 1.0, 2.0, 4.0]

    def test_fixed_and_linear(self):
        fixed = RetryConfig(strategy=RetryStrategy.FIXED, base_delay=2.0)
        linear = RetryConfig(strategy=RetryStrategy.LINEAR, base_delay=2.0)
        assert [calculate_delay(n, fixed) for n in (2, 3, 4)] == [2.0, 2.0, 2.0]
        assert [calculate_delay(n, linear) for n in (2, 3, 4)] == [2.0, 4.0, 6.0]

    def test_delay_is_capped(self):
        config = RetryConfig(base_delay=10.0, max_delay=15.0)
        assert calculate_delay(4, config) == 15.0

    def test_jitter_stays_in_range(self):
        config = RetryConfig(strategy=RetryStrategy.EXPONENTIAL_JITTER, base_delay=1.0)
        for _ in range(20):
            assert 1.6 <= calculate_delay(3, config) <= 2.4


class TestShouldRetry:
    """Test exception-aware retry decisions."""

    def setup_method(self):
        self.config = RetryConfig()

    def test_network_failures_are_retried(self):
        assert should_retry(ProductLoadException("down"), 1, self.config) is True
        assert should_retry(ConnectionError("reset"), 1, self.config) is True

    def test_data_and_storage_failures_are_not_retried(self):
        assert should_retry(ProductDataException("bad row"), 1, self.config) is False
        assert should_retry(PersistenceException("disk"), 1, self.config) is False

    def test_cancellation_is_never_retried(self):
        assert should_retry(OperationCancelledException(), 1, self.config) is False

    def test_unknown_exceptions_are_not_retried(self):
        assert should_retry(KeyError("x"), 1, self.config) is False

    def test_last_attempt_is_not_retried(self):
        assert should_retry(ProductLoadException("down"), 4, self.config) is False


class TestExecuteAsyncWithRetry:
    """Test the retry loop."""

    @pytest.mark.asyncio
    async def test_retries_until_success(self):
        operation = FlakyOperation(failures=2, error=ProductLoadException("down"))
        waiter = RecordingWaiter()

        result = await execute_async_with_retry(operation, operation_name="flaky", wait=waiter)

        assert result == "ok"
        assert operation.calls == 3
        assert waiter.delays == [1.0, 2.0]
        stats = get_retry_manager().get_stats("flaky")
        assert stats.final_success is True
        assert stats.failed_attempts == 2

    @pytest.mark.asyncio
    async def test_exhausted_retries_raise_last_error(self):
        operation = FlakyOperation(failures=10, error=ProductLoadException("down"))
        waiter = RecordingWaiter()

        with pytest.raises(ProductLoadException):
            await execute_async_with_retry(operation, operation_name="always_down", wait=waiter)

        assert operation.calls == 4
        assert waiter.delays == [1.0, 2.0, 4.0]
        assert get_retry_manager().get_stats("always_down").delays == [1.0, 2.0, 4.0]

    @pytest.mark.asyncio
    async def test_non_retryable_error_stops_immediately(self):
        operation = FlakyOperation(failures=10, error=ProductDataException("bad row"))
        waiter = RecordingWaiter()

        with pytest.raises(ProductDataException):
            await execute_async_with_retry(operation, wait=waiter)

        assert operation.calls == 1
        assert waiter.delays == []

    @pytest.mark.asyncio
    async def test_cancel_before_first_attempt(self):
        token = CancellationToken()
        token.cancel()
        operation = FlakyOperation(failures=0, error=None)

        with pytest.raises(OperationCancelledException):
            await execute_async_with_retry(operation, cancel_token=token)

        assert operation.calls == 0

    @pytest.mark.asyncio
    async def test_cancel_during_backoff(self):
        token = CancellationToken()
        waiter = RecordingWaiter(cancel_after=2, token=token)
        operation = FlakyOperation(failures=10, error=ProductLoadException("down"))

        with pytest.raises(OperationCancelledException):
            await execute_async_with_retry(operation, operation_name="cancelled", cancel_token=token, wait=waiter)

        assert operation.calls == 2
        assert get_retry_manager().get_stats("cancelled").cancelled is True

    @pytest.mark.asyncio
    async def test_result_after_cancellation_is_discarded(self):
        token = CancellationToken()

        async def operation():
            token.cancel()
            return "late"

        with pytest.raises(OperationCancelledException):
            await execute_async_with_retry(operation, cancel_token=token)


class TestCancellationToken:
    """Test the token's cancellable wait."""

    @pytest.mark.asyncio
    async def test_wait_times_out_when_not_cancelled(self):
        token = CancellationToken()
        assert await token.wait(0.01) is False
        assert await token.wait(0) is False

    @pytest.mark.asyncio
    async def test_wait_returns_early_on_cancel(self):
        token = CancellationToken()
        loop = asyncio.get_running_loop()
        loop.call_later(0.01, token.cancel)

        started = loop.time()
        assert await token.wait(30) is True
        assert loop.time() - started < 5

    @pytest.mark.asyncio
    async def test_default_waiter_uses_token(self):
        token = CancellationToken()
        operation = FlakyOperation(failures=10, error=ProductLoadException("down"))
        loop = asyncio.get_running_loop()
        loop.call_later(0.05, token.cancel)

        with pytest.raises(OperationCancelledException):
            await execute_async_with_retry(operation, cancel_token=token)

        assert operation.calls == 1
