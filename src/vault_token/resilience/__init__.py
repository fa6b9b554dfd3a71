"""
Resilience patterns module.

Components:
    - RetryConfig: Exponential backoff configuration with equal jitter
    - retry_call: Bounded retry combinator
    - @with_retry decorator: Same combinator as a decorator
    - Standard configs: DEFAULT_RETRY, SIGNING_RETRY
"""

from .retry import (
    DEFAULT_RETRY,
    SIGNING_RETRY,
    RetryConfig,
    RetryStats,
    retry_call,
    with_retry,
)

__all__ = [
    "RetryConfig",
    "RetryStats",
    "retry_call",
    "with_retry",
    "DEFAULT_RETRY",
    "SIGNING_RETRY",
]
