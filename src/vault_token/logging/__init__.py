"""
Structured logging module.

Provides JSON and console logging with context propagation and
credential redaction.
"""

from vault_token.logging.context import (
    clear_log_context,
    get_log_context,
    set_log_context,
)
from vault_token.logging.formatters import ConsoleFormatter, JSONFormatter, redact_secrets
from vault_token.logging.setup import get_logger, setup_logging
from vault_token.logging.utilities import log_exception, mask_credential

__all__ = [
    # Setup
    "setup_logging",
    "get_logger",
    # Formatters
    "JSONFormatter",
    "ConsoleFormatter",
    "redact_secrets",
    # Context
    "set_log_context",
    "get_log_context",
    "clear_log_context",
    # Utilities
    "log_exception",
    "mask_credential",
]
