"""Vault connection settings from YAML file and environment.

Loads optional YAML with a top-level ``vault`` section, then overlays the
standard Vault environment variables:

    vault:
      address: https://vault.example.com:8200
      ca_cert: /etc/vault/ca.pem        # or ca_path: /etc/vault/certs
      role: my-service
      auth_path: auth/gcp
      request_timeout: 30
      sign_max_retries: 5

Environment variables ARE supported using ${VAR_NAME} syntax in YAML files.
"""

import logging
import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv

from vault_token.auth.models import DEFAULT_AUTH_PATH, DEFAULT_REQUEST_TIMEOUT
from vault_token.auth.signer import DEFAULT_MAX_RETRIES
from vault_token.errors import ConfigError

logger = logging.getLogger(__name__)

# Environment variable -> VaultSettings field
ENV_VARS = {
    "VAULT_ADDR": "address",
    "VAULT_CACERT": "ca_cert",
    "VAULT_CAPATH": "ca_path",
    "VAULT_TOKEN": "token",
    "VAULT_ROLE": "role",
    "VAULT_AUTH_PATH": "auth_path",
    "VAULT_CLIENT_TIMEOUT": "request_timeout",
}


def load_yaml(path: Path) -> Dict[str, Any]:
    """Load YAML file and return dict."""
    if not path.exists():
        return {}
    with open(path, "r") as f:
        return yaml.safe_load(f) or {}


def _expand_env_vars(data: Any) -> Any:
    """Recursively expand ${VAR_NAME} and ${VAR_NAME:-default} environment variables in config data."""
    if isinstance(data, dict):
        return {key: _expand_env_vars(value) for key, value in data.items()}
    elif isinstance(data, list):
        return [_expand_env_vars(item) for item in data]
    elif isinstance(data, str):
        pattern = r"\$\{([^}:]+)(?::-(([^}]*))?)?\}"

        def replacer(match):
            var_name = match.group(1)
            default_value = match.group(2) if match.group(2) is not None else match.group(0)
            return os.getenv(var_name, default_value)

        return re.sub(pattern, replacer, data)
    else:
        return data


@dataclass
class VaultSettings:
    """Vault client connection settings.

    A static ``token`` bypasses workload identity entirely (local development);
    otherwise ``role`` selects the Vault GCP role to log in with.
    """

    address: str = ""
    ca_cert: Optional[str] = None
    ca_path: Optional[str] = None
    token: Optional[str] = None
    role: str = ""
    auth_path: str = DEFAULT_AUTH_PATH
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    sign_max_retries: int = DEFAULT_MAX_RETRIES

    def __post_init__(self):
        """Ensure proper types from YAML/env vars."""
        self.request_timeout = float(self.request_timeout)
        self.sign_max_retries = int(self.sign_max_retries)
        # Empty strings from unset ${VAR:-} mean "not configured"
        self.ca_cert = self.ca_cert or None
        self.ca_path = self.ca_path or None
        self.token = self.token or None

    def validate(self) -> None:
        """
        Check settings are usable.

        Raises:
            ConfigError: With every problem found, one per line
        """
        errors = []
        if not self.address:
            errors.append("Vault address is required (VAULT_ADDR)")
        if self.ca_cert and self.ca_path:
            errors.append("Specify ca_cert or ca_path, not both")
        if not self.token and not self.role:
            errors.append("Either a static token (VAULT_TOKEN) or a role (VAULT_ROLE) is required")
        if self.request_timeout <= 0:
            errors.append(f"request_timeout must be positive, got {self.request_timeout}")
        if self.sign_max_retries < 0:
            errors.append(f"sign_max_retries must be >= 0, got {self.sign_max_retries}")

        if errors:
            raise ConfigError("Invalid Vault settings:\n  - " + "\n  - ".join(errors))

    @property
    def auth_mode(self) -> str:
        """Return current auth mode for diagnostics."""
        return "static" if self.token else "gcp"


def load_settings(
    config_path: Optional[Path] = None,
    env_file: Optional[Path] = None,
    validate: bool = True,
) -> VaultSettings:
    """Load Vault settings from an optional YAML file and the environment.

    Priority (highest to lowest):
    1. Environment variables (VAULT_ADDR, VAULT_CACERT, ...)
    2. ``vault`` section of the YAML file
    3. Defaults

    Args:
        config_path: YAML file; skipped when None or missing
        env_file: .env file loaded before reading the environment (existing
            variables are not overridden)
        validate: Raise ConfigError for unusable settings

    Returns:
        VaultSettings
    """
    if env_file is not None:
        load_dotenv(env_file, override=False)

    data: Dict[str, Any] = {}
    if config_path is not None:
        yaml_data = _expand_env_vars(load_yaml(Path(config_path)))
        section = yaml_data.get("vault", {})
        if not isinstance(section, dict):
            raise ConfigError(f"'vault' section in {config_path} must be a mapping")
        data.update(section)

    for env_var, field_name in ENV_VARS.items():
        value = os.getenv(env_var)
        if value:
            data[field_name] = value

    known = set(VaultSettings.__dataclass_fields__)
    unknown = sorted(set(data) - known)
    if unknown:
        logger.warning("Ignoring unknown Vault settings: %s", ", ".join(unknown))

    try:
        settings = VaultSettings(**{k: v for k, v in data.items() if k in known})
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid Vault settings: {e}", cause=e) from e

    if validate:
        settings.validate()

    logger.debug(
        "Loaded Vault settings",
        extra={
            "vault_addr": settings.address,
            "auth_mode": settings.auth_mode,
            "role": settings.role,
        },
    )
    return settings


__all__ = ["VaultSettings", "load_settings", "load_yaml", "ENV_VARS"]
