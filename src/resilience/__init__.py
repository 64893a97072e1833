"""Resilience patterns for calls to external services.

Provides retry logic with exponential backoff and per-attempt timeouts.
"""

from .retry import (
    async_retry,
    RetryConfig,
    RetryExhausted,
)

__all__ = [
    "async_retry",
    "RetryConfig",
    "RetryExhausted",
]
