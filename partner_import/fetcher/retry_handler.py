"""Retry handler with exponential backoff and jitter."""

import asyncio
import random
from typing import Any, Awaitable, Callable, Iterable, Optional

import httpx


def calculate_backoff_delay(
    attempt: int,
    base_delay: float = 0.5,
    max_delay: float = 4.0,
    jitter_max: float = 0.5
) -> float:
    """
    Calculate exponential backoff delay with jitter.

    Formula: min(max_delay, (base_delay * (2 ** attempt)) + random_jitter)

    Args:
        attempt: Retry attempt number (0-indexed)
        base_delay: Base delay in seconds
        max_delay: Maximum delay cap in seconds
        jitter_max: Maximum jitter to add in seconds

    Returns:
        Delay in seconds
    """
    exponential_delay = base_delay * (2 ** attempt)
    jitter = random.uniform(0, jitter_max)
    return min(max_delay, exponential_delay + jitter)


class RetryHandler:
    """
    Retries HTTP calls that fail transiently.

    Retries on: configured status codes (429, 502, 503, 504 by default)
    and timeouts. Anything else propagates on the first failure.
    """

    def __init__(
        self,
        max_retries: int = 3,
        base_delay: float = 0.5,
        max_delay: float = 4.0,
        jitter_max: float = 0.5,
        retryable_status_codes: Optional[Iterable[int]] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep
    ):
        """
        Initialize retry handler.

        Args:
            max_retries: Maximum number of retries after the first attempt
            base_delay: Base delay for exponential backoff
            max_delay: Maximum delay cap
            jitter_max: Maximum jitter to add
            retryable_status_codes: HTTP status codes worth retrying
            sleep: Awaitable sleep, replaceable in tests
        """
        self.max_retries = max_retries
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.jitter_max = jitter_max
        self.retryable_status_codes = frozenset(
            retryable_status_codes or [429, 502, 503, 504]
        )
        self._sleep = sleep

    def is_retryable(self, error: Exception) -> bool:
        """Check if the failed call should be attempted again."""
        if isinstance(error, httpx.TimeoutException):
            return True
        if isinstance(error, httpx.HTTPStatusError):
            return error.response.status_code in self.retryable_status_codes
        return False

    async def execute(
        self,
        func: Callable[..., Awaitable[Any]],
        *args,
        on_error: Optional[Callable[[Exception, int], None]] = None,
        **kwargs
    ) -> Any:
        """
        Execute coroutine function with retry logic.

        Args:
            func: Coroutine function to execute
            on_error: Called with (error, attempt) after every failed attempt

        Returns:
            Result from successful function execution

        Raises:
            Exception: The last error once retries are exhausted, or the
                first non-retryable one
        """
        attempt = 0
        while True:
            try:
                return await func(*args, **kwargs)
            except Exception as e:
                if on_error is not None:
                    on_error(e, attempt)
                if attempt >= self.max_retries or not self.is_retryable(e):
                    raise

                delay = calculate_backoff_delay(
                    attempt,
                    self.base_delay,
                    self.max_delay,
                    self.jitter_max
                )
                await self._sleep(delay)
                attempt += 1
