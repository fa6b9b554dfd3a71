"""Vault auth provider implementations."""

from vault_token.auth.base import VaultAuth, VaultToken
from vault_token.auth.providers.gcp import GcpAuth

__all__ = ["VaultAuth", "VaultToken", "GcpAuth"]
