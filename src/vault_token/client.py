"""
Vault client connection with workload identity auth.

Sets up an hvac client for a Vault server. With a static token (typical for
local hosting) the client is ready immediately; otherwise the workload's
Google service account is used to log in on first use.

Example:
    >>> conn = VaultClientConnection("https://vault:8200", ca_cert="/etc/ca.pem", vault_role="orders")
    >>> client = conn.get_ready_client()
    >>> client.secrets.kv.v2.read_secret_version(path="orders/db")
"""

import logging

import hvac

from vault_token.auth.base import VaultAuth, VaultToken
from vault_token.auth.models import DEFAULT_REQUEST_TIMEOUT, AuthConfig
from vault_token.auth.providers.gcp import GcpAuth
from vault_token.config import VaultSettings
from vault_token.errors import ConfigError, ResolutionError
from vault_token.logging.utilities import log_exception

logger = logging.getLogger(__name__)


class VaultClientConnection:
    """
    Facade choosing between a static Vault token and provider-based login.

    Construction does not contact Vault. get_ready_client() returns the shared
    hvac client carrying a usable token; in provider mode the TokenManager's
    held token is reused, so repeated calls log in only once.

    Attributes:
        client: Underlying hvac client, shared across calls
        auth: Auth provider (None in static token mode)
        auth_config: Provider config for the role (None in static token mode)
    """

    def __init__(
        self,
        uri: str,
        ca_cert: str | None = None,
        ca_path: str | None = None,
        vault_token: str | None = None,
        vault_role: str = "",
        auth: VaultAuth | None = None,
        request_timeout: float = DEFAULT_REQUEST_TIMEOUT,
    ):
        """
        Make a new Vault client connection.

        Specify ca_cert or ca_path, not both. These provide the public cert of
        the server (e.g., root-ca) as a PEM file or a directory of PEM files.

        Args:
            uri: Vault server address
            ca_cert: Server CA PEM file path
            ca_path: Server CA PEM directory path
            vault_token: Static token; bypasses workload identity when set
            vault_role: Vault role bound to the workload's service account
            auth: Auth provider (default: GcpAuth)
            request_timeout: Seconds before Vault requests time out

        Raises:
            ConfigError: If both CA options are given or no role is set without a token
        """
        if ca_cert and ca_path:
            raise ConfigError("Specify ca_cert or ca_path, not both")

        self.client = hvac.Client(
            url=uri,
            verify=ca_cert or ca_path or True,
            timeout=request_timeout,
        )
        self.auth: VaultAuth | None = None
        self.auth_config: AuthConfig | None = None
        self._token_manager: VaultToken | None = None

        # if a static token is set, use it (typical for local hosting)
        if vault_token:
            self.client.token = vault_token
            logger.info(
                "Vault client using static token",
                extra={"vault_addr": uri, "auth_mode": "static"},
            )
            return

        # otherwise assume workload identity provides auth to get a JWT
        self.auth = auth or GcpAuth(request_timeout=request_timeout)
        self.auth_config = self.auth.get_config(vault_role)
        logger.info(
            "Vault client using provider auth",
            extra={
                "vault_addr": uri,
                "auth_mode": self.auth.name,
                "role": vault_role,
                "auth_path": self.auth_config.auth_path,
            },
        )

    @classmethod
    def from_settings(cls, settings: VaultSettings) -> "VaultClientConnection":
        """Create a connection from loaded settings."""
        auth = None
        if not settings.token:
            auth = GcpAuth(
                auth_path=settings.auth_path,
                request_timeout=settings.request_timeout,
                max_sign_retries=settings.sign_max_retries,
            )
        return cls(
            settings.address,
            ca_cert=settings.ca_cert,
            ca_path=settings.ca_path,
            vault_token=settings.token,
            vault_role=settings.role,
            auth=auth,
            request_timeout=settings.request_timeout,
        )

    @property
    def is_static(self) -> bool:
        return self.auth is None

    @property
    def token_manager(self) -> VaultToken | None:
        return self._token_manager

    def get_ready_client(self) -> hvac.Client:
        """
        Return the Vault client carrying a usable token.

        Static token mode returns the configured client unchanged. Otherwise
        the token manager is created on first use and asked for a token; it
        only logs in when it holds none.

        Raises:
            ResolutionError: Workload identity is misconfigured (operator attention)
            VaultTokenError: No usable token this call (signing or login failed)
        """
        if self.auth is None:
            return self.client

        if self._token_manager is None:
            self._token_manager = self.auth.new_token(self.auth_config, self.client)

        try:
            token = self._token_manager.get_token()
        except ResolutionError as e:
            log_exception(
                logger,
                e,
                "Vault client: can't resolve workload identity; check the workload's service account binding",
                role=self.auth_config.role,
            )
            raise
        except Exception as e:
            log_exception(logger, e, "Vault client: error in vault authentication", role=self.auth_config.role)
            raise

        self.client.token = token.client_token
        return self.client

    def close(self) -> None:
        """Close HTTP sessions opened for workload identity signing."""
        if self._token_manager is not None and hasattr(self._token_manager, "close"):
            self._token_manager.close()


__all__ = ["VaultClientConnection"]
