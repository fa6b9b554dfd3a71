"""
Vault tokens for Google Cloud workloads.

Authenticates to a HashiCorp Vault server with the workload's ambient Google
service account identity (GKE Workload Identity), so no long-lived Vault
secret has to be stored with the workload.

Basic Usage:
    from vault_token import VaultClientConnection, load_settings

    conn = VaultClientConnection.from_settings(load_settings())
    client = conn.get_ready_client()
"""

from vault_token.auth import (
    AuthConfig,
    GcpAuth,
    JwtSigner,
    ServerToken,
    ServiceAccountResolver,
    TokenManager,
    TokenState,
    VaultAuth,
    VaultToken,
)
from vault_token.client import VaultClientConnection
from vault_token.config import VaultSettings, load_settings
from vault_token.errors import (
    ConfigError,
    LoginError,
    ResolutionError,
    RetryExhaustedError,
    SigningError,
    TokenLookupError,
    TokenRefreshError,
    TokenRevokeError,
    VaultTokenError,
)

__version__ = "0.1.0"

__all__ = [
    "VaultClientConnection",
    "VaultSettings",
    "load_settings",
    "VaultAuth",
    "VaultToken",
    "GcpAuth",
    "TokenManager",
    "TokenState",
    "JwtSigner",
    "ServiceAccountResolver",
    "AuthConfig",
    "ServerToken",
    "VaultTokenError",
    "ConfigError",
    "ResolutionError",
    "SigningError",
    "RetryExhaustedError",
    "LoginError",
    "TokenRefreshError",
    "TokenRevokeError",
    "TokenLookupError",
]
