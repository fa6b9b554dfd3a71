"""
Core types shared across modules.

This module provides the error classification enum used by the exception
hierarchy and the retry combinator to decide how a failure is handled.
"""

from enum import Enum


class ErrorCategory(Enum):
    """
    Classification of error types for handling decisions.

    Categories:
        TRANSIENT: Temporary failures that should retry with backoff
                   (e.g., network timeouts, 429/503 errors)
        AUTH: Credential rejected or missing; the caller should log in again
              (e.g., 401 errors, expired or revoked Vault token)
        PERMANENT: Non-retriable failures that won't succeed on retry
                   (e.g., 400/403/404, misconfigured workload identity)
        UNKNOWN: Unclassified errors, may retry conservatively
    """

    TRANSIENT = "transient"
    AUTH = "auth"
    PERMANENT = "permanent"
    UNKNOWN = "unknown"


__all__ = ["ErrorCategory"]
