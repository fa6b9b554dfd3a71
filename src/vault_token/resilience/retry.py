"""
Retry utilities with exception-aware handling.

Uses the exception hierarchy to make retry decisions:
- Transient/unknown errors: retry with exponential backoff
- Permanent errors: fail immediately (no retry)
- Attempt cap reached: fail with RetryExhaustedError wrapping the last cause
"""

import logging
import random
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from functools import wraps
from typing import Any

from vault_token.errors.exceptions import (
    RetryExhaustedError,
    VaultTokenError,
    classify_exception,
    wrap_exception,
)
from vault_token.types import ErrorCategory

logger = logging.getLogger(__name__)


@dataclass
class RetryConfig:
    """Configuration for retry behavior."""

    max_attempts: int = 3
    base_delay: float = 1.0
    max_delay: float = 30.0
    exponential_base: float = 2.0

    # If True, don't retry permanent errors even if attempts remain
    respect_permanent: bool = True

    # Optional set of exception types to never retry (overrides classification)
    never_retry: set[type[Exception]] = field(default_factory=set)

    def __post_init__(self):
        """Ensure proper types from YAML/env vars."""
        self.max_attempts = int(self.max_attempts)
        self.base_delay = float(self.base_delay)
        self.max_delay = float(self.max_delay)
        self.exponential_base = float(self.exponential_base)
        # bool('false') would be True, so only coerce non-bools
        self.respect_permanent = (
            self.respect_permanent
            if isinstance(self.respect_permanent, bool)
            else str(self.respect_permanent).lower() == "true"
        )
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

    @classmethod
    def from_max_retries(cls, max_retries: int, **kwargs) -> "RetryConfig":
        """Build a config allowing max_retries retries after the first attempt."""
        return cls(max_attempts=int(max_retries) + 1, **kwargs)

    def get_delay(self, attempt: int) -> float:
        """
        Calculate delay with equal jitter to prevent thundering herd.

        Args:
            attempt: 0-indexed attempt number

        Returns:
            Delay in seconds
        """
        base_delay = self.base_delay * (self.exponential_base**attempt)

        # Equal jitter: half fixed, half random
        jitter = random.uniform(0, base_delay / 2)
        delay = (base_delay / 2) + jitter

        return min(delay, self.max_delay)

    def is_retryable(self, error: Exception) -> bool:
        """Classify error without regard to the attempt count."""
        if self.never_retry and isinstance(error, tuple(self.never_retry)):
            return False

        category = classify_exception(error)
        if self.respect_permanent and category == ErrorCategory.PERMANENT:
            return False

        return category in (
            ErrorCategory.TRANSIENT,
            ErrorCategory.AUTH,
            ErrorCategory.UNKNOWN,
        )

    def should_retry(self, error: Exception, attempt: int) -> bool:
        """
        Determine if error should be retried.

        Args:
            error: The exception that occurred
            attempt: 0-indexed current attempt

        Returns:
            True if should retry
        """
        if attempt >= self.max_attempts - 1:
            return False
        return self.is_retryable(error)


# Default configurations
DEFAULT_RETRY = RetryConfig(max_attempts=3, base_delay=1.0)

# Five retries after the first attempt, 0.5s initial interval growing 1.5x
SIGNING_RETRY = RetryConfig(
    max_attempts=6,
    base_delay=0.5,
    max_delay=60.0,
    exponential_base=1.5,
)


@dataclass
class RetryStats:
    """Statistics from a retry operation."""

    attempts: int = 0
    total_delay: float = 0.0
    final_error: Exception | None = None
    success: bool = False

    @property
    def retried(self) -> bool:
        """Whether any retries occurred."""
        return self.attempts > 1


def _log_retry_attempt(
    operation: str,
    attempt: int,
    config: RetryConfig,
    delay: float,
    error: Exception,
) -> None:
    logger.warning(
        "Retryable error for %s, will retry",
        operation,
        extra={
            "operation": operation,
            "attempt": attempt + 1,
            "max_attempts": config.max_attempts,
            "error_category": classify_exception(error).value,
            "delay_seconds": round(delay, 2),
            "error_message": str(error)[:200],
        },
    )


def retry_call(
    func: Callable[[], Any],
    config: RetryConfig | None = None,
    operation: str | None = None,
    wrap_errors: bool = True,
    stats: RetryStats | None = None,
) -> Any:
    """
    Call func until it succeeds, a permanent error occurs, or attempts run out.

    Args:
        func: Zero-argument callable, invoked once per attempt
        config: Retry configuration (defaults to DEFAULT_RETRY)
        operation: Name used in log records (defaults to func.__name__)
        wrap_errors: If True, wrap non-VaultTokenError exceptions before re-raising
        stats: Optional RetryStats filled in as attempts are made

    Returns:
        Whatever func returns on the first successful attempt

    Raises:
        RetryExhaustedError: The attempt cap was reached; cause is the last error
        VaultTokenError: A non-retryable error occurred (raised unchanged or wrapped)
    """
    config = config or DEFAULT_RETRY
    operation = operation or getattr(func, "__name__", "operation")
    stats = stats if stats is not None else RetryStats()

    for attempt in range(config.max_attempts):
        stats.attempts = attempt + 1
        try:
            result = func()
        except Exception as e:
            stats.final_error = e

            if not config.is_retryable(e):
                logger.warning(
                    "Permanent error for %s, not retrying: %s",
                    operation,
                    str(e)[:200],
                    extra={
                        "operation": operation,
                        "attempt": attempt + 1,
                        "error_type": type(e).__name__,
                        "error_category": classify_exception(e).value,
                    },
                )
                if wrap_errors and not isinstance(e, VaultTokenError):
                    raise wrap_exception(e) from e
                raise

            if not config.should_retry(e, attempt):
                logger.error(
                    "Max retries exhausted for %s: %s",
                    operation,
                    str(e)[:200],
                    extra={
                        "operation": operation,
                        "max_attempts": config.max_attempts,
                        "error_type": type(e).__name__,
                        "error_message": str(e)[:200],
                    },
                )
                raise RetryExhaustedError(
                    f"{operation} failed after {attempt + 1} attempts",
                    attempts=attempt + 1,
                    cause=e,
                    context={"operation": operation},
                ) from e

            delay = config.get_delay(attempt)
            _log_retry_attempt(operation, attempt, config, delay, e)
            stats.total_delay += delay
            time.sleep(delay)
            continue

        if attempt > 0:
            logger.info(
                "Retry succeeded for %s after %d attempts",
                operation,
                attempt + 1,
                extra={
                    "operation": operation,
                    "attempt": attempt + 1,
                    "total_attempts": config.max_attempts,
                },
            )
        stats.success = True
        return result

    # max_attempts >= 1, so the loop always returns or raises
    raise AssertionError("unreachable")


def with_retry(
    config: RetryConfig | None = None,
    wrap_errors: bool = True,
):
    """
    Decorator for retrying functions with backoff.

    Usage:
        @with_retry(config=SIGNING_RETRY)
        def sign_once():
            ...
    """

    def decorator(func: Callable):
        @wraps(func)
        def wrapper(*args, **kwargs):
            return retry_call(
                lambda: func(*args, **kwargs),
                config=config,
                operation=func.__name__,
                wrap_errors=wrap_errors,
            )

        return wrapper

    return decorator


__all__ = [
    "RetryConfig",
    "RetryStats",
    "retry_call",
    "with_retry",
    "DEFAULT_RETRY",
    "SIGNING_RETRY",
]
