"""Retry with exponential backoff for outbound calls.

Used around the AI provider call; each attempt can carry its own timeout so a
hung request counts as a failed attempt instead of blocking the caller.
"""

from __future__ import annotations

import asyncio
import logging
import random
from dataclasses import dataclass
from functools import wraps
from typing import Any, Awaitable, Callable, Optional, Tuple, Type, TypeVar, Union

logger = logging.getLogger(__name__)

T = TypeVar("T")
ExceptionTypes = Union[Type[BaseException], Tuple[Type[BaseException], ...]]


class RetryExhausted(Exception):
    """Raised when every attempt failed."""

    def __init__(self, message: str, attempts: int, last_exception: Optional[BaseException] = None):
        super().__init__(message)
        self.attempts = attempts
        self.last_exception = last_exception


@dataclass
class RetryConfig:
    """Retry behavior.

    Attributes:
        max_attempts: Total attempts, including the first one.
        base_delay: Delay before the first retry in seconds.
        max_delay: Upper bound for any delay.
        backoff_multiplier: Growth factor between consecutive delays.
        jitter: Random spread as a fraction of the delay (0-1).
        attempt_timeout: Per-attempt timeout in seconds (None = no timeout).
        retryable_exceptions: Exceptions that trigger another attempt.
        non_retryable_exceptions: Exceptions re-raised immediately.
    """
    max_attempts: int = 3
    base_delay: float = 0.5
    max_delay: float = 10.0
    backoff_multiplier: float = 2.0
    jitter: float = 0.1
    attempt_timeout: Optional[float] = None
    retryable_exceptions: ExceptionTypes = (Exception,)
    non_retryable_exceptions: ExceptionTypes = ()

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

    def calculate_delay(self, attempt: int) -> float:
        """Delay after the given 1-indexed attempt."""
        delay = min(self.base_delay * (self.backoff_multiplier ** (attempt - 1)), self.max_delay)
        if self.jitter > 0:
            spread = delay * self.jitter
            delay = max(0.0, delay + random.uniform(-spread, spread))
        return delay

    def should_retry(self, exception: BaseException) -> bool:
        if self.non_retryable_exceptions and isinstance(exception, self.non_retryable_exceptions):
            return False
        return isinstance(exception, self.retryable_exceptions)


def async_retry(
    max_attempts: int = 3,
    base_delay: float = 0.5,
    max_delay: float = 10.0,
    backoff_multiplier: float = 2.0,
    jitter: float = 0.1,
    attempt_timeout: Optional[float] = None,
    retryable_exceptions: ExceptionTypes = (Exception,),
    non_retryable_exceptions: ExceptionTypes = (),
    config: Optional[RetryConfig] = None,
) -> Callable[[Callable[..., Awaitable[T]]], Callable[..., Awaitable[T]]]:
    """Decorator for coroutine functions.

    Usage:
        @async_retry(max_attempts=2, attempt_timeout=15)
        async def call_provider():
            ...

    A timed-out attempt raises asyncio.TimeoutError, which is retried like
    any other retryable error. When all attempts fail, RetryExhausted is
    raised with the last error attached.
    """
    retry_config = config or RetryConfig(
        max_attempts=max_attempts,
        base_delay=base_delay,
        max_delay=max_delay,
        backoff_multiplier=backoff_multiplier,
        jitter=jitter,
        attempt_timeout=attempt_timeout,
        retryable_exceptions=retryable_exceptions,
        non_retryable_exceptions=non_retryable_exceptions,
    )

    def decorator(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        @wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> T:
            for attempt in range(1, retry_config.max_attempts + 1):
                try:
                    if retry_config.attempt_timeout is not None:
                        return await asyncio.wait_for(
                            func(*args, **kwargs), timeout=retry_config.attempt_timeout
                        )
                    return await func(*args, **kwargs)

                except Exception as e:
                    if not retry_config.should_retry(e):
                        logger.debug(f"Non-retryable exception in {func.__name__}: {e!r}")
                        raise

                    if attempt >= retry_config.max_attempts:
                        logger.warning(
                            f"Retry exhausted for {func.__name__} after {attempt} attempts: {e!r}"
                        )
                        raise RetryExhausted(
                            f"Retry exhausted after {attempt} attempts",
                            attempts=attempt,
                            last_exception=e,
                        ) from e

                    delay = retry_config.calculate_delay(attempt)
                    logger.info(
                        f"Retry {attempt}/{retry_config.max_attempts} "
                        f"for {func.__name__} in {delay:.2f}s: {e!r}"
                    )
                    await asyncio.sleep(delay)

            # Unreachable: the loop either returns or raises
            raise RetryExhausted("Retry loop ended", attempts=retry_config.max_attempts)

        return wrapper
    return decorator
