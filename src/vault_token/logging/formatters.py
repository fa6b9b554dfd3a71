"""Log formatters for JSON and console output."""

import json
import logging
import re
import sys
from datetime import UTC, datetime
from typing import Any

from vault_token.logging.context import get_log_context


def _json_default(obj: Any) -> Any:
    if isinstance(obj, datetime):
        return obj.isoformat()
    if hasattr(obj, "value"):
        return obj.value
    return str(obj)


# Vault service tokens (hvs./s.) and compact JWTs
SENSITIVE_VALUE_PATTERN = re.compile(
    r"\b(hvs\.[A-Za-z0-9_-]{8,}|s\.[A-Za-z0-9]{20,}|eyJ[A-Za-z0-9_-]+\.[A-Za-z0-9_-]+\.[A-Za-z0-9_-]+)"
)


def redact_secrets(text: str) -> str:
    """Replace Vault tokens and JWTs in text with a placeholder."""
    return SENSITIVE_VALUE_PATTERN.sub("[REDACTED]", text)


class JSONFormatter(logging.Formatter):
    """
    JSON log formatter with context injection.

    Produces one JSON object per line for easy parsing with jq/grep.
    Redacts token-like values before logging.
    """

    # Fields to extract from LogRecord extras
    EXTRA_FIELDS = [
        # Identity and Vault
        "role",
        "auth_path",
        "service_account",
        "vault_addr",
        "token_prefix",
        "ttl_seconds",
        "ttl_hint_seconds",
        "expires_at",
        "policies",
        "auth_mode",
        # HTTP
        "http_status",
        "http_method",
        "http_url",
        # Errors
        "error_category",
        "error_message",
        "error_code",
        "error_status",
        "error_type",
        # Resilience
        "operation",
        "attempt",
        "max_attempts",
        "total_attempts",
        "delay_seconds",
        "duration_ms",
    ]

    # Type mapping for numeric fields so they are not serialized as strings
    NUMERIC_FIELDS = {
        "duration_ms": float,
        "delay_seconds": float,
        "ttl_seconds": int,
        "ttl_hint_seconds": int,
        "attempt": int,
        "max_attempts": int,
        "total_attempts": int,
        "http_status": int,
        "error_code": int,
    }

    # Fields that contain URLs and should be sanitized
    URL_FIELDS = ["http_url", "vault_addr"]

    SENSITIVE_PARAMS_PATTERN = re.compile(
        r"([?&])(sig|token|key|secret|password|auth|jwt)=[^&]*",
        re.IGNORECASE,
    )

    def _sanitize_url(self, url: str) -> str:
        return self.SENSITIVE_PARAMS_PATTERN.sub(r"\1\2=[REDACTED]", url)

    def _sanitize_text(self, text: str) -> str:
        return redact_secrets(text)

    def _sanitize_value(self, key: str, value: Any) -> Any:
        if not isinstance(value, str):
            return value
        if key in self.URL_FIELDS:
            value = self._sanitize_url(value)
        return self._sanitize_text(value)

    def _ensure_type(self, field: str, value: Any) -> Any:
        """Convert numeric fields to their expected type, or None if that fails."""
        if field not in self.NUMERIC_FIELDS or value is None:
            return value

        expected_type = self.NUMERIC_FIELDS[field]
        try:
            return expected_type(value)
        except (ValueError, TypeError):
            return None

    def _base_log_entry(self, record: logging.LogRecord) -> dict[str, Any]:
        return {
            "ts": datetime.now(UTC).strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z",
            "level": record.levelname,
            "logger": record.name,
            "message": self._sanitize_text(record.getMessage()),
        }

    @staticmethod
    def _inject_context(log_entry: dict[str, Any], log_context: dict[str, Any]) -> None:
        for field in ("role", "operation", "trace_id"):
            if log_context[field]:
                log_entry[field] = log_context[field]

    def _inject_extra_fields(self, log_entry: dict[str, Any], record: logging.LogRecord) -> None:
        for field in self.EXTRA_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                typed_value = self._ensure_type(field, value)
                log_entry[field] = self._sanitize_value(field, typed_value)

    def _inject_exception(self, log_entry: dict[str, Any], record: logging.LogRecord) -> None:
        if not record.exc_info:
            return

        exc_type, exc_value, _ = record.exc_info
        log_entry["exception"] = {
            "type": exc_type.__name__ if exc_type else None,
            "message": self._sanitize_text(str(exc_value)) if exc_value else None,
            "stacktrace": self._sanitize_text(self.formatException(record.exc_info)),
        }

    def format(self, record: logging.LogRecord) -> str:
        log_entry = self._base_log_entry(record)
        self._inject_context(log_entry, get_log_context())

        if record.levelno in (logging.DEBUG, logging.ERROR, logging.CRITICAL):
            log_entry["file"] = f"{record.filename}:{record.lineno}"

        self._inject_extra_fields(log_entry, record)
        self._inject_exception(log_entry, record)

        return json.dumps(log_entry, default=_json_default, ensure_ascii=False)


class ConsoleFormatter(logging.Formatter):
    """
    Human-readable console formatter with color-coded log levels.

    Colors are auto-disabled when output is not a TTY (pipes, files).
    """

    COLORS = {
        logging.DEBUG: "\033[36m",  # Cyan
        logging.INFO: "\033[32m",  # Green
        logging.WARNING: "\033[33m",  # Yellow
        logging.ERROR: "\033[31m",  # Red
        logging.CRITICAL: "\033[35m",  # Magenta
    }
    RESET = "\033[0m"

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._use_colors = sys.stdout.isatty()

    def _format_level_name(self, record: logging.LogRecord) -> str:
        level_name = record.levelname
        if not self._use_colors:
            return level_name

        color = self.COLORS.get(record.levelno, "")
        if not color:
            return level_name

        return f"{color}{level_name}{self.RESET}"

    def format(self, record: logging.LogRecord) -> str:
        log_context = get_log_context()

        parts = [
            datetime.now().strftime("%Y-%m-%d %H:%M:%S"),
            self._format_level_name(record),
            record.name,
        ]
        role = getattr(record, "role", None) or log_context["role"]
        if role:
            parts.append(f"[{role}]")

        line = f"{' - '.join(parts)} - {redact_secrets(record.getMessage())}"
        if record.exc_info:
            line = f"{line}\n{redact_secrets(self.formatException(record.exc_info))}"
        return line
