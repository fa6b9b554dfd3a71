"""
Error classification and exception hierarchy.

Provides:
- VaultTokenError hierarchy for typed exceptions
- One exception kind per failing step of the token exchange
- Classification utilities for retry decisions
"""

from vault_token.errors.exceptions import (
    AuthError,
    ConfigError,
    LoginError,
    PermanentError,
    ResolutionError,
    RetryExhaustedError,
    SigningError,
    TokenLookupError,
    TokenRefreshError,
    TokenRevokeError,
    TransientError,
    VaultTokenError,
    classify_exception,
    classify_http_status,
    wrap_exception,
)
from vault_token.types import ErrorCategory

__all__ = [
    # Enums
    "ErrorCategory",
    # Base classes
    "VaultTokenError",
    "AuthError",
    "TransientError",
    "PermanentError",
    # Token exchange errors
    "ConfigError",
    "ResolutionError",
    "SigningError",
    "RetryExhaustedError",
    "LoginError",
    "TokenRefreshError",
    "TokenRevokeError",
    "TokenLookupError",
    # Classification utilities
    "classify_http_status",
    "classify_exception",
    "wrap_exception",
]
