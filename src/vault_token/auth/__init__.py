"""
Vault authentication with Google Cloud workload identity.

Flow: resolve the workload's service account, have it sign a short-lived JWT
for a Vault role, log in to Vault with the JWT, then track the resulting
token's expiry, renew it or revoke it on demand.

Basic Usage:
    import hvac
    from vault_token.auth import GcpAuth

    auth = GcpAuth()
    manager = auth.new_token(auth.get_config("my-role"), hvac.Client(url=VAULT_ADDR))
    token = manager.get_token()
"""

from vault_token.auth.manager import TokenManager
from vault_token.auth.models import (
    DEFAULT_AUTH_PATH,
    JWT_LIFETIME_SECONDS,
    AuthConfig,
    Claim,
    ServerToken,
    TokenState,
)
from vault_token.auth.providers import GcpAuth, VaultAuth, VaultToken
from vault_token.auth.resolver import ServiceAccount, ServiceAccountResolver
from vault_token.auth.signer import JwtSigner

__all__ = [
    # Manager
    "TokenManager",
    # Providers
    "VaultAuth",
    "VaultToken",
    "GcpAuth",
    # Workers
    "ServiceAccountResolver",
    "ServiceAccount",
    "JwtSigner",
    # Models
    "AuthConfig",
    "Claim",
    "ServerToken",
    "TokenState",
    "DEFAULT_AUTH_PATH",
    "JWT_LIFETIME_SECONDS",
]
