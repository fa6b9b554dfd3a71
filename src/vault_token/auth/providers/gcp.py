"""Vault GCP (IAM) auth provider."""

import logging

import hvac
import requests

from vault_token.auth.manager import TokenManager
from vault_token.auth.models import DEFAULT_AUTH_PATH, DEFAULT_REQUEST_TIMEOUT, AuthConfig
from vault_token.auth.base import VaultAuth
from vault_token.auth.signer import DEFAULT_MAX_RETRIES
from vault_token.errors import ConfigError

logger = logging.getLogger(__name__)


class GcpAuth(VaultAuth):
    """
    Logs in to Vault's GCP auth method with a JWT signed by the workload's
    Google service account (GKE Workload Identity or the GCE default account).
    """

    name = "gcp"

    def __init__(
        self,
        auth_path: str = DEFAULT_AUTH_PATH,
        request_timeout: float = DEFAULT_REQUEST_TIMEOUT,
        max_sign_retries: int = DEFAULT_MAX_RETRIES,
        test_session: requests.Session | None = None,
    ):
        """
        Initialize GCP auth provider.

        Args:
            auth_path: Mount path of the GCP auth method in Vault
            request_timeout: Seconds before metadata/IAM requests time out
            max_sign_retries: Signing retries after the first attempt
            test_session: Optional transport replacing the Google-authorized session
        """
        self.auth_path = auth_path
        self.request_timeout = request_timeout
        self.max_sign_retries = max_sign_retries
        self.test_session = test_session

    def get_config(self, role: str) -> AuthConfig:
        if not role:
            raise ConfigError("A Vault role is required for GCP auth")

        logger.debug(
            "Prepared GCP auth config",
            extra={"role": role, "auth_path": self.auth_path},
        )
        return AuthConfig(
            role=role,
            auth_path=self.auth_path,
            request_timeout=self.request_timeout,
            test_session=self.test_session,
        )

    def new_token(self, config: AuthConfig, client: hvac.Client) -> TokenManager:
        return TokenManager(config, client, max_sign_retries=self.max_sign_retries)


__all__ = ["GcpAuth"]
