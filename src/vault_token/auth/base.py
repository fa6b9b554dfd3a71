"""Base interfaces for Vault auth providers and the tokens they manage."""

from abc import ABC, abstractmethod

import hvac

from vault_token.auth.models import AuthConfig, ServerToken


class VaultToken(ABC):
    """
    Lifecycle of one Vault token obtained through an auth provider.

    Implementations hold at most one live token. get_token() logs in lazily
    and returns the held token afterwards without a network call.
    """

    @abstractmethod
    def get_token(self) -> ServerToken:
        """
        Return the held token, logging in first if none is held.

        Raises:
            LoginError: If Vault rejects the login
        """
        pass

    @abstractmethod
    def is_expired(self) -> bool:
        """Local expiry check; True when no token is held."""
        pass

    @abstractmethod
    def is_revoked(self) -> bool:
        """Ask Vault whether the held token still works; True when none is held."""
        pass

    @abstractmethod
    def refresh(self, ttl_hint_seconds: int) -> None:
        """
        Renew the held token, suggesting a new TTL.

        Raises:
            TokenRefreshError: If no token is held or renewal fails
        """
        pass

    @abstractmethod
    def revoke(self) -> None:
        """
        Revoke the held token; the next get_token() logs in again.

        Raises:
            TokenRevokeError: If no token is held or Vault refuses
        """
        pass


class VaultAuth(ABC):
    """
    Abstract base class for Vault auth providers.

    A provider turns a Vault role into an AuthConfig and creates the
    VaultToken that logs in with it. The client facade depends only on this
    interface, so providers can be added without touching it.
    """

    name: str = "base"

    @abstractmethod
    def get_config(self, role: str) -> AuthConfig:
        """
        Build the auth configuration for a Vault role.

        Raises:
            ConfigError: If the role is unusable for this provider
        """
        pass

    @abstractmethod
    def new_token(self, config: AuthConfig, client: hvac.Client) -> VaultToken:
        """Create the token manager that logs in through client."""
        pass


__all__ = ["VaultAuth", "VaultToken"]
