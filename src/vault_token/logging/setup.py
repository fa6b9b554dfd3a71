"""Logging setup and configuration."""

import logging
import os
import sys
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path

from vault_token.logging.context import set_log_context
from vault_token.logging.formatters import ConsoleFormatter, JSONFormatter

# Default settings
DEFAULT_ROTATION_WHEN = "midnight"
DEFAULT_BACKUP_COUNT = 7
DEFAULT_CONSOLE_LEVEL = logging.INFO
DEFAULT_FILE_LEVEL = logging.DEBUG

# Noisy loggers to suppress
NOISY_LOGGERS = [
    "urllib3",
    "google.auth",
    "google.auth.transport.requests",
    "hvac",
]


def _level_from_env(default: int) -> int:
    name = os.getenv("VAULT_TOKEN_LOG_LEVEL", "").upper()
    if not name:
        return default
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else default


def setup_logging(
    name: str = "vault_token",
    role: str | None = None,
    log_file: Path | None = None,
    json_format: bool = False,
    console_level: int | None = None,
    file_level: int = DEFAULT_FILE_LEVEL,
    rotation_when: str = DEFAULT_ROTATION_WHEN,
    backup_count: int = DEFAULT_BACKUP_COUNT,
    suppress_noisy: bool = True,
) -> logging.Logger:
    """
    Configure logging with a console handler and an optional rotating file handler.

    Args:
        name: Logger name returned to the caller
        role: Vault role to stamp on every record via the log context
        log_file: Path for a time-rotated log file (no file logging if None)
        json_format: Use JSON on the console too (container deployments)
        console_level: Console handler level (default: VAULT_TOKEN_LOG_LEVEL or INFO)
        file_level: File handler level (default: DEBUG)
        rotation_when: When to rotate the file - 'midnight', 'H' (hourly), ...
        backup_count: Number of rotated files to keep
        suppress_noisy: Quiet down google-auth, hvac and HTTP client loggers

    Returns:
        Configured logger instance
    """
    if role:
        set_log_context(role=role)

    if console_level is None:
        console_level = _level_from_env(DEFAULT_CONSOLE_LEVEL)

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)  # Capture all, handlers filter
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(console_level)
    console_handler.setFormatter(JSONFormatter() if json_format else ConsoleFormatter())
    root_logger.addHandler(console_handler)

    if log_file is not None:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = TimedRotatingFileHandler(
            log_file,
            when=rotation_when,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(file_level)
        file_handler.setFormatter(JSONFormatter())
        root_logger.addHandler(file_handler)

    if suppress_noisy:
        for logger_name in NOISY_LOGGERS:
            logging.getLogger(logger_name).setLevel(logging.WARNING)

    logger = logging.getLogger(name)
    logger.debug(
        "Logging configured",
        extra={"operation": "setup_logging"},
    )
    return logger


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance.

    Use this instead of logging.getLogger() to ensure consistent naming.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Logger instance
    """
    return logging.getLogger(name)
