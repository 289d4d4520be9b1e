"""
Retry Policy - Exponential backoff for tracking server deliveries.

A delivery (one HTTP request, one T55 session) is retried with exponential
backoff and jitter. Once the attempts are exhausted the caller decides what
happens next; the forwarders end their loop.
"""

from __future__ import annotations

import asyncio
import random
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, List, Optional, Tuple, Type, TypeVar

from gnss_relay.core.errors import NetworkError
from gnss_relay.core.logging_utils import get_module_logger

logger = get_module_logger("RetryPolicy")

T = TypeVar("T")


class RetryOutcome(Enum):
    """Outcome of a retry operation."""
    SUCCESS = "success"
    EXHAUSTED = "exhausted"  # All retries failed
    ABORTED = "aborted"      # Retry was cancelled


@dataclass
class RetryAttempt:
    """Record of a single attempt."""
    attempt_number: int
    started_at: float
    duration_ms: float
    success: bool
    error: Optional[str] = None


@dataclass
class RetryResult:
    """Result of a retry operation."""
    outcome: RetryOutcome
    success: bool
    attempts: List[RetryAttempt] = field(default_factory=list)
    total_duration_ms: float = 0.0
    final_error: Optional[str] = None
    result_data: Any = None

    @property
    def attempt_count(self) -> int:
        return len(self.attempts)


class RetryPolicy:
    """
    Bounded retry with exponential backoff.

    Usage:
        policy = RetryPolicy(max_attempts=3, base_delay=1.0)

        result = await policy.execute(
            lambda: forwarder.send(fix),
            on_retry=lambda attempt, error: logger.warning(
                "Retry %d: %s", attempt, error
            ),
        )

        if not result.success:
            ...  # give up on this server

    ``max_attempts=1`` disables retrying: the first failure is final.
    """

    def __init__(
        self,
        max_attempts: int = 3,
        base_delay: float = 1.0,
        max_delay: float = 10.0,
        backoff_factor: float = 2.0,
        jitter: float = 0.1,
        retry_on: Tuple[Type[BaseException], ...] = (NetworkError,),
    ):
        """
        Args:
            max_attempts: Maximum number of attempts (including first try)
            base_delay: Delay before the first retry (seconds)
            max_delay: Maximum delay between retries (seconds)
            backoff_factor: Multiplier for exponential backoff
            jitter: Random jitter factor (0.1 = +/-10%)
            retry_on: Exception types that count as a failed attempt; anything
                else propagates to the caller immediately
        """
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.backoff_factor = backoff_factor
        self.jitter = jitter
        self.retry_on = retry_on
        self._aborted = False

    def abort(self) -> None:
        """Signal that retry should be aborted."""
        self._aborted = True

    def reset(self) -> None:
        """Reset abort flag for reuse."""
        self._aborted = False

    def get_delay(self, attempt: int) -> float:
        """
        Calculate delay before the given attempt.

        Args:
            attempt: Attempt number (1-based, first retry is attempt 2)

        Returns:
            Delay in seconds with jitter applied
        """
        if attempt <= 1:
            return 0.0

        delay = self.base_delay * (self.backoff_factor ** (attempt - 2))
        delay = min(delay, self.max_delay)

        if self.jitter > 0:
            jitter_range = delay * self.jitter
            delay += random.uniform(-jitter_range, jitter_range)

        return max(0.0, delay)

    async def execute(
        self,
        operation: Callable[[], Awaitable[T]],
        on_retry: Optional[Callable[[int, Optional[str]], None]] = None,
    ) -> RetryResult:
        """
        Run ``operation`` until it returns without raising one of
        ``retry_on``, or the attempts are used up.

        Args:
            operation: Async callable; its return value lands in result_data
            on_retry: Optional callback called before each retry (attempt_num, error)

        Returns:
            RetryResult with outcome and attempt history
        """
        self._aborted = False
        attempts: List[RetryAttempt] = []
        start_time = time.time()
        last_error: Optional[str] = None

        for attempt in range(1, self.max_attempts + 1):
            if self._aborted:
                return RetryResult(
                    outcome=RetryOutcome.ABORTED,
                    success=False,
                    attempts=attempts,
                    total_duration_ms=(time.time() - start_time) * 1000,
                    final_error="Retry aborted",
                )

            if attempt > 1:
                delay = self.get_delay(attempt)
                if on_retry:
                    on_retry(attempt, last_error)
                logger.debug(
                    "Retry attempt %d/%d after %.2fs delay",
                    attempt, self.max_attempts, delay
                )
                await asyncio.sleep(delay)

            attempt_start = time.time()
            try:
                data = await operation()
            except self.retry_on as e:
                last_error = str(e) or type(e).__name__
                attempts.append(RetryAttempt(
                    attempt_number=attempt,
                    started_at=attempt_start,
                    duration_ms=(time.time() - attempt_start) * 1000,
                    success=False,
                    error=last_error,
                ))
                logger.debug("Attempt %d failed: %s", attempt, last_error)
                continue

            attempts.append(RetryAttempt(
                attempt_number=attempt,
                started_at=attempt_start,
                duration_ms=(time.time() - attempt_start) * 1000,
                success=True,
            ))
            return RetryResult(
                outcome=RetryOutcome.SUCCESS,
                success=True,
                attempts=attempts,
                total_duration_ms=(time.time() - start_time) * 1000,
                result_data=data,
            )

        return RetryResult(
            outcome=RetryOutcome.EXHAUSTED,
            success=False,
            attempts=attempts,
            total_duration_ms=(time.time() - start_time) * 1000,
            final_error=last_error,
        )


__all__ = ["RetryPolicy", "RetryResult", "RetryOutcome", "RetryAttempt"]
