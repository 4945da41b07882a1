# src/vogue_commerce/core/retry.py
"""
Cancellable Retry Orchestration

This module provides the retry loop used by the product loader:
- Multiple retry strategies (fixed, linear, exponential, exponential with jitter)
- Exception-aware retry decisions based on the commerce error categories
- Cooperative cancellation through a CancellationToken
- Retry statistics for every run, kept per operation name

The loop is sequential: one attempt at a time, a backoff wait between
attempts, and a cancellation checkpoint before each attempt and during
each wait.

Key Design Patterns:
- Strategy Pattern: Different backoff strategies for different sources
- Observer Pattern: Per-attempt statistics for monitoring
"""

import asyncio
import random
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional, Set, Type
from uuid import uuid4

from .exceptions import CommerceException, ErrorCategory, ErrorSeverity, OperationCancelledException
from .logger import get_logger

Waiter = Callable[[float], Awaitable[bool]]


class RetryStrategy(str, Enum):
    """
    Retry strategies for different failure scenarios.

    Each strategy implements a different approach to timing
    retry attempts based on the nature of the failure.
    """

    FIXED = "fixed"
    """Fixed delay between retry attempts."""

    LINEAR = "linear"
    """Linear backoff - delay increases linearly with attempt number."""

    EXPONENTIAL = "exponential"
    """Exponential backoff - delay multiplies with each attempt."""

    EXPONENTIAL_JITTER = "exponential_jitter"
    """Exponential backoff with random jitter to prevent thundering herd."""


@dataclass
class RetryConfig:
    """
    Configuration for retry behavior.

    The defaults reproduce the product loader policy: one attempt plus
    three retries, waiting 1s, 2s and 4s in between.
    """

    max_attempts: int = 4
    """Maximum number of attempts (including initial attempt)."""

    base_delay: float = 1.0
    """Delay in seconds before the first retry."""

    max_delay: float = 30.0
    """Maximum delay in seconds between attempts."""

    strategy: RetryStrategy = RetryStrategy.EXPONENTIAL
    """Retry strategy to use."""

    backoff_multiplier: float = 2.0
    """Multiplier for exponential backoff strategies."""

    jitter_range: tuple = (0.8, 1.2)
    """Range for random jitter (as multipliers of calculated delay)."""

    retryable_exceptions: Set[Type[BaseException]] = field(
        default_factory=lambda: {
            CommerceException,
            ConnectionError,
            TimeoutError,
        }
    )
    """Exception types that may trigger retry attempts."""

    non_retryable_exceptions: Set[Type[BaseException]] = field(
        default_factory=lambda: {
            OperationCancelledException,
            KeyboardInterrupt,
            SystemExit,
            MemoryError,
        }
    )
    """Exception types that are never retried."""

    retry_on_severity: Set[ErrorSeverity] = field(
        default_factory=lambda: {
            ErrorSeverity.LOW,
            ErrorSeverity.MEDIUM
        }
    )
    """CommerceException severity levels that allow retry."""

    retry_on_categories: Set[ErrorCategory] = field(
        default_factory=lambda: {ErrorCategory.NETWORK}
    )
    """CommerceException categories that allow retry."""

    @classmethod
    def from_loader_settings(cls, loader_settings) -> "RetryConfig":
        """Build the loader policy from ``LoaderSettings``."""
        return cls(
            max_attempts=loader_settings.max_retries + 1,
            base_delay=loader_settings.retry_base_delay,
            max_delay=loader_settings.max_delay,
            backoff_multiplier=loader_settings.backoff_multiplier,
            strategy=RetryStrategy.EXPONENTIAL,
        )


class CancellationToken:
    """
    Cooperative cancellation flag for a retry loop.

    Example:
        >>> token = CancellationToken()
        >>> task = asyncio.create_task(store.load_products(cancel_token=token))
        >>> token.cancel()
    """

    def __init__(self):
        self._event = asyncio.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self, operation_name: Optional[str] = None) -> None:
        if self.is_cancelled:
            raise OperationCancelledException(operation_name=operation_name)

    async def wait(self, delay: float) -> bool:
        """
        Sleep for ``delay`` seconds unless cancelled first.

        Returns:
            True if the token was cancelled before or during the wait
        """
        if self.is_cancelled:
            return True
        if delay <= 0:
            return False
        try:
            await asyncio.wait_for(self._event.wait(), timeout=delay)
        except asyncio.TimeoutError:
            return False
        return True


@dataclass
class RetryAttempt:
    """Information about a single attempt."""

    attempt_number: int
    """Attempt number (1-based)."""

    timestamp: datetime
    """When the attempt was made."""

    exception: Optional[BaseException]
    """Exception raised by the attempt (None for successful attempts)."""

    delay_before: float
    """Delay in seconds before this attempt."""

    duration: float = 0.0
    """How long the attempt took in seconds."""


@dataclass
class RetryStats:
    """Statistics about one retried operation."""

    operation_id: str
    operation_name: str
    total_attempts: int = 0
    successful_attempts: int = 0
    failed_attempts: int = 0
    total_duration: float = 0.0
    attempts: List[RetryAttempt] = field(default_factory=list)
    final_success: bool = False
    final_exception: Optional[BaseException] = None
    cancelled: bool = False

    @property
    def delays(self) -> List[float]:
        """Backoff waits that preceded each retry."""
        return [attempt.delay_before for attempt in self.attempts[1:]]

    def record(self, attempt: RetryAttempt) -> None:
        self.attempts.append(attempt)
        self.total_attempts += 1
        self.total_duration += attempt.duration
        if attempt.exception is None:
            self.successful_attempts += 1
            self.final_success = True
        else:
            self.failed_attempts += 1
            self.final_exception = attempt.exception


class RetryManager:
    """Keeps the most recent statistics per operation name."""

    def __init__(self):
        self.stats: Dict[str, RetryStats] = {}
        self.logger = get_logger("retry_manager")

    def get_stats(self, operation_name: str) -> Optional[RetryStats]:
        return self.stats.get(operation_name)

    def clear_stats(self) -> None:
        self.stats.clear()
        self.logger.debug("Retry statistics cleared")

    def _record_stats(self, stats: RetryStats) -> None:
        self.stats[stats.operation_name] = stats


# Global retry manager instance
_retry_manager = RetryManager()


def get_retry_manager() -> RetryManager:
    """Get the global retry manager instance."""
    return _retry_manager


def calculate_delay(
        attempt: int,
        config: RetryConfig
) -> float:
    """
    Calculate delay before an attempt.

    Args:
        attempt: Attempt number about to run (1-based)
        config: Retry configuration

    Returns:
        Delay in seconds; always 0 for the first attempt
    """
    if attempt <= 1:
        return 0.0

    if config.strategy == RetryStrategy.FIXED:
        delay = config.base_delay

    elif config.strategy == RetryStrategy.LINEAR:
        delay = config.base_delay * (attempt - 1)

    elif config.strategy == RetryStrategy.EXPONENTIAL:
        delay = config.base_delay * (config.backoff_multiplier ** (attempt - 2))

    elif config.strategy == RetryStrategy.EXPONENTIAL_JITTER:
        base_delay = config.base_delay * (config.backoff_multiplier ** (attempt - 2))
        jitter_min, jitter_max = config.jitter_range
        delay = base_delay * random.uniform(jitter_min, jitter_max)

    else:
        delay = config.base_delay

    # Cap the delay at max_delay
    return min(delay, config.max_delay)


def should_retry(
        exception: BaseException,
        attempt: int,
        config: RetryConfig
) -> bool:
    """
    Determine if an exception should trigger another attempt.

    Args:
        exception: Exception raised by the attempt
        attempt: Attempt number that just failed
        config: Retry configuration

    Returns:
        True if another attempt should run
    """
    if attempt >= config.max_attempts:
        return False

    for exc_type in config.non_retryable_exceptions:
        if isinstance(exception, exc_type):
            return False

    if isinstance(exception, CommerceException):
        if exception.severity not in config.retry_on_severity:
            return False
        if exception.category not in config.retry_on_categories:
            return False

    for exc_type in config.retryable_exceptions:
        if isinstance(exception, exc_type):
            return True

    # Default: don't retry unknown exceptions
    return False


async def execute_async_with_retry(
        func: Callable[[], Awaitable[Any]],
        config: Optional[RetryConfig] = None,
        operation_name: Optional[str] = None,
        cancel_token: Optional[CancellationToken] = None,
        wait: Optional[Waiter] = None,
) -> Any:
    """
    Run ``func`` until it succeeds, fails permanently or is cancelled.

    Args:
        func: Zero-argument coroutine function performing one attempt
        config: Retry configuration (defaults to the loader policy)
        operation_name: Name for logging and statistics
        cancel_token: Token checked before each attempt and during waits
        wait: Backoff waiter returning True when cancelled
            (defaults to ``cancel_token.wait``)

    Returns:
        Result of the first successful attempt

    Raises:
        OperationCancelledException: If the token fires
        Exception: The last attempt's exception once retries are exhausted
    """
    config = config or RetryConfig()
    op_name = operation_name or getattr(func, "__name__", "operation")
    token = cancel_token or CancellationToken()
    waiter = wait or token.wait

    logger = get_logger("retry")
    stats = RetryStats(operation_id=str(uuid4()), operation_name=op_name)

    logger.debug(
        "Starting async operation with retry",
        operation_name=op_name,
        operation_id=stats.operation_id,
        max_attempts=config.max_attempts,
        strategy=config.strategy.value
    )

    try:
        for attempt in range(1, config.max_attempts + 1):
            delay_before = calculate_delay(attempt, config)

            if delay_before > 0:
                logger.debug(
                    f"Waiting before async attempt {attempt}",
                    delay_seconds=delay_before,
                    attempt=attempt,
                    operation_id=stats.operation_id
                )
                if await waiter(delay_before):
                    token.cancel()

            token.raise_if_cancelled(op_name)

            attempt_start = time.perf_counter()
            try:
                result = await func()
            except Exception as e:
                stats.record(RetryAttempt(
                    attempt_number=attempt,
                    timestamp=datetime.now(timezone.utc),
                    exception=e,
                    delay_before=delay_before,
                    duration=time.perf_counter() - attempt_start
                ))

                if isinstance(e, OperationCancelledException):
                    raise

                if should_retry(e, attempt, config):
                    logger.warning(
                        f"Async attempt {attempt} failed, will retry",
                        attempt=attempt,
                        exception_type=type(e).__name__,
                        exception_message=str(e),
                        operation_id=stats.operation_id
                    )
                    continue

                logger.error(
                    f"Async attempt {attempt} failed, no more retries",
                    attempt=attempt,
                    exception_type=type(e).__name__,
                    exception_message=str(e),
                    operation_id=stats.operation_id
                )
                break

            stats.record(RetryAttempt(
                attempt_number=attempt,
                timestamp=datetime.now(timezone.utc),
                exception=None,
                delay_before=delay_before,
                duration=time.perf_counter() - attempt_start
            ))

            # A result that arrives after cancellation is discarded
            token.raise_if_cancelled(op_name)

            logger.debug(
                f"Async operation succeeded on attempt {attempt}",
                attempt=attempt,
                operation_id=stats.operation_id
            )
            return result

    except OperationCancelledException:
        stats.cancelled = True
        logger.info(
            "Async operation cancelled",
            operation_name=op_name,
            total_attempts=stats.total_attempts,
            operation_id=stats.operation_id
        )
        raise

    finally:
        _retry_manager._record_stats(stats)

    logger.error(
        f"Async operation failed after {stats.total_attempts} attempts",
        operation_name=op_name,
        total_attempts=stats.total_attempts,
        total_duration=stats.total_duration,
        operation_id=stats.operation_id
    )
    raise stats.final_exception
