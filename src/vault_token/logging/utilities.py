"""Logging helpers for credential-bearing values."""

import logging
from typing import Any


def mask_credential(value: str | None, visible_chars: int = 4) -> str:
    """Mask a credential showing only first N chars for verification."""
    if not value:
        return "<not_set>"
    if len(value) <= visible_chars:
        return "***"
    return f"{value[:visible_chars]}...({len(value)} chars)"


def log_exception(
    logger: logging.Logger,
    exc: Exception,
    msg: str,
    level: int = logging.ERROR,
    include_traceback: bool = True,
    **kwargs: Any,
) -> None:
    """
    Log exception with context and optional traceback.

    Automatically extracts error_category from VaultTokenError subclasses.

    Args:
        logger: Logger instance
        exc: Exception to log
        msg: Context message
        level: Log level (default: ERROR)
        include_traceback: Include full traceback (default: True)
        **kwargs: Additional context fields

    Example:
        try:
            manager.get_token()
        except LoginError as e:
            log_exception(logger, e, "Vault login failed", role=role)
    """
    error_category = kwargs.get("error_category")
    if error_category is None and hasattr(exc, "category"):
        cat = exc.category
        kwargs["error_category"] = cat.value if hasattr(cat, "value") else str(cat)

    error_msg = str(exc)
    if len(error_msg) > 500:
        error_msg = error_msg[:500] + "..."
    kwargs["error_message"] = error_msg
    kwargs["error_type"] = type(exc).__name__

    if include_traceback:
        logger.log(level, msg, exc_info=exc, extra=kwargs)
    else:
        logger.log(level, msg, extra=kwargs)
