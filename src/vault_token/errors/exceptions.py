"""
Exception hierarchy for Vault token issuance.

Provides typed exceptions with retry classification so each step of the
trust exchange (identity resolution, JWT signing, Vault login, token
self-operations) reports failures the caller can act on.
"""

from vault_token.types import ErrorCategory


class VaultTokenError(Exception):
    """
    Base exception for all token issuance errors.

    Attributes:
        message: Human-readable error description
        category: Error classification for retry decisions
        cause: Original exception if wrapping
        context: Additional context dict for debugging
    """

    category: ErrorCategory = ErrorCategory.UNKNOWN

    def __init__(
        self,
        message: str,
        cause: Exception | None = None,
        context: dict | None = None,
    ):
        self.message = message
        self.cause = cause
        self.context = context or {}
        super().__init__(message)

    @property
    def is_retryable(self) -> bool:
        return self.category in (
            ErrorCategory.TRANSIENT,
            ErrorCategory.AUTH,
            ErrorCategory.UNKNOWN,
        )

    @property
    def requires_login(self) -> bool:
        return self.category == ErrorCategory.AUTH

    def __str__(self) -> str:
        parts = [self.message]
        if self.cause:
            parts.append(f"Caused by: {self.cause}")
        return " | ".join(parts)


class TransientError(VaultTokenError):
    """Temporary failure, may succeed on retry."""

    category = ErrorCategory.TRANSIENT


class PermanentError(VaultTokenError):
    """Failure that will not be fixed by retrying."""

    category = ErrorCategory.PERMANENT


class AuthError(VaultTokenError):
    """Credential was rejected or is missing."""

    category = ErrorCategory.AUTH


# =============================================================================
# Configuration
# =============================================================================


class ConfigError(PermanentError):
    """Connection settings are invalid (e.g. both CA file and CA directory)."""

    pass


# =============================================================================
# Identity and signing
# =============================================================================


class ResolutionError(PermanentError):
    """
    The workload's signing identity could not be determined.

    Usually means workload identity is not bound for the running pod or the
    metadata server is unreachable; needs operator attention.
    """

    pass


class SigningError(VaultTokenError):
    """
    The IAM signJwt call was rejected or returned a malformed response.

    The category follows the HTTP code reported by the remote side, so a 403
    from IAM stops retrying while a 503 is retried.
    """

    def __init__(
        self,
        message: str,
        code: int | None = None,
        status: str | None = None,
        cause: Exception | None = None,
        context: dict | None = None,
    ):
        super().__init__(message, cause, context)
        self.code = code
        self.status = status
        if code is not None:
            self.category = classify_http_status(code)


class RetryExhaustedError(PermanentError):
    """Signing was retried to the attempt cap without success."""

    def __init__(
        self,
        message: str,
        attempts: int,
        cause: Exception | None = None,
        context: dict | None = None,
    ):
        super().__init__(message, cause, context)
        self.attempts = attempts


# =============================================================================
# Vault token lifecycle
# =============================================================================


class LoginError(AuthError):
    """Vault rejected the signed JWT or returned an unusable TTL."""

    pass


class TokenRefreshError(AuthError):
    """Token renewal failed or no token is held."""

    pass


class TokenRevokeError(AuthError):
    """Token revocation failed or no token is held."""

    pass


class TokenLookupError(TransientError):
    """Revocation status could not be determined (server unreachable or sealed)."""

    pass


# =============================================================================
# Error Classification Utilities
# =============================================================================


def classify_http_status(status_code: int) -> ErrorCategory:
    """Classify HTTP status code into error category."""
    if 200 <= status_code < 300:
        return ErrorCategory.UNKNOWN  # Not an error

    if status_code == 401:
        return ErrorCategory.AUTH

    if status_code in (408, 429):
        return ErrorCategory.TRANSIENT

    if 400 <= status_code < 500:
        return ErrorCategory.PERMANENT  # Client errors, won't fix with retry

    if status_code >= 500:
        return ErrorCategory.TRANSIENT  # Server errors, may recover

    return ErrorCategory.UNKNOWN


def classify_exception(exc: Exception) -> ErrorCategory:
    """Classify an exception into error category."""
    # Already classified
    if isinstance(exc, VaultTokenError):
        return exc.category

    exc_type = type(exc).__name__.lower()
    exc_str = str(exc).lower()

    connection_markers = (
        "connectionerror",
        "connection refused",
        "connection reset",
        "connection aborted",
        "name resolution",
        "broken pipe",
    )
    if any(m in exc_type or m in exc_str for m in connection_markers):
        return ErrorCategory.TRANSIENT

    if "timeout" in exc_type or "timeout" in exc_str:
        return ErrorCategory.TRANSIENT

    if "401" in exc_str or "unauthorized" in exc_str or "permission denied" in exc_str:
        return ErrorCategory.AUTH

    if "429" in exc_str or "503" in exc_str or "502" in exc_str or "504" in exc_str:
        return ErrorCategory.TRANSIENT

    if "403" in exc_str or "forbidden" in exc_str or "404" in exc_str:
        return ErrorCategory.PERMANENT

    return ErrorCategory.UNKNOWN


def wrap_exception(
    exc: Exception,
    default_class: type = VaultTokenError,
    context: dict | None = None,
) -> VaultTokenError:
    """Wrap a generic exception in the VaultTokenError subclass matching its category."""
    if isinstance(exc, VaultTokenError):
        if context:
            exc.context.update(context)
        return exc

    category = classify_exception(exc)
    context = context or {}

    if category == ErrorCategory.AUTH:
        return AuthError(str(exc), cause=exc, context=context)

    if category == ErrorCategory.TRANSIENT:
        return TransientError(str(exc), cause=exc, context=context)

    if category == ErrorCategory.PERMANENT:
        return PermanentError(str(exc), cause=exc, context=context)

    return default_class(str(exc), cause=exc, context=context)
