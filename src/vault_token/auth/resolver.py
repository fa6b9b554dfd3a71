"""
Service account resolution for GKE Workload Identity.

The running pod's Kubernetes service account maps to a Google service account
through Workload Identity. This module finds that account's email and an HTTP
session authorized to call the IAM Credentials API as it. When the discovered
credential carries no email (compute/GKE metadata credentials), the default
service account email is read from the metadata server.
"""

import logging
from dataclasses import dataclass

import google.auth
import google.auth.exceptions
import requests
from google.auth.transport.requests import AuthorizedSession

from vault_token.auth.models import AuthConfig
from vault_token.errors import ResolutionError

logger = logging.getLogger(__name__)

CLOUD_PLATFORM_SCOPE = "https://www.googleapis.com/auth/cloud-platform"
METADATA_URL = "http://metadata.google.internal/computeMetadata/v1"
METADATA_EMAIL_PATH = "/instance/service-accounts/default/email"
METADATA_HEADERS = {"Metadata-Flavor": "Google"}

# Compute credentials report this until refreshed against the metadata server
_PLACEHOLDER_EMAIL = "default"


@dataclass
class ServiceAccount:
    """Resolved signing identity and a session authorized as it."""

    email: str
    session: requests.Session


class ServiceAccountResolver:
    """
    Determines the Google service account used to sign JWTs for Vault.

    Usage:
        resolver = ServiceAccountResolver(config)
        account = resolver.resolve()
        account.session.post(...)  # authenticated as account.email
        resolver.close()

    The authorized session is created on the first resolve() and reused by
    later calls; its credentials refresh their own access token.
    """

    def __init__(self, config: AuthConfig, metadata_url: str = METADATA_URL):
        self.config = config
        self.metadata_url = metadata_url.rstrip("/")
        self._authorized_session: AuthorizedSession | None = None
        self._metadata_session: requests.Session | None = None

    def _get_metadata_session(self) -> requests.Session:
        if self.config.test_session is not None:
            return self.config.test_session
        if self._metadata_session is None:
            self._metadata_session = requests.Session()
        return self._metadata_session

    def _get_authorized_session(self, credentials) -> requests.Session:
        if self.config.test_session is not None:
            return self.config.test_session
        if self._authorized_session is None:
            self._authorized_session = AuthorizedSession(credentials)
        return self._authorized_session

    def close(self) -> None:
        """Close the sessions this resolver opened (never the test session)."""
        for session in (self._authorized_session, self._metadata_session):
            if session is not None:
                session.close()
        self._authorized_session = None
        self._metadata_session = None

    def resolve(self) -> ServiceAccount:
        """
        Resolve the service account email and an authorized session.

        Returns:
            ServiceAccount with a non-empty email

        Raises:
            ResolutionError: If credential discovery or the metadata lookup fails
        """
        logger.debug(
            "Requesting GCP default credentials",
            extra={"operation": "resolve_service_account"},
        )
        try:
            credentials, _ = google.auth.default(scopes=[CLOUD_PLATFORM_SCOPE])
        except google.auth.exceptions.GoogleAuthError as e:
            raise ResolutionError(
                "Unable to find default Google credentials for service account",
                cause=e,
            ) from e

        email = self._email_from_credentials(credentials)
        if not email:
            email = self.get_default_email()

        session = self._get_authorized_session(credentials)

        logger.debug(
            "Resolved service account",
            extra={"service_account": email, "operation": "resolve_service_account"},
        )
        return ServiceAccount(email=email, session=session)

    @staticmethod
    def _email_from_credentials(credentials) -> str:
        email = getattr(credentials, "service_account_email", None) or ""
        if email == _PLACEHOLDER_EMAIL:
            logger.debug("Credential reports placeholder service account email")
            return ""
        if not email:
            logger.debug("Credential carries no service account email")
        return email

    def get_default_email(self) -> str:
        """
        Read the default service account email from the metadata server.

        See https://cloud.google.com/compute/docs/metadata/overview

        Raises:
            ResolutionError: On transport failure, non-2xx status or empty body
        """
        url = f"{self.metadata_url}{METADATA_EMAIL_PATH}"
        try:
            response = self._get_metadata_session().get(
                url,
                headers=METADATA_HEADERS,
                timeout=self.config.request_timeout,
            )
        except requests.RequestException as e:
            raise ResolutionError("Can't reach metadata server for default service account", cause=e) from e

        if not 200 <= response.status_code < 300:
            raise ResolutionError(
                f"Metadata server returned HTTP {response.status_code} for default service account",
                context={"http_status": response.status_code},
            )

        email = response.text.strip()
        if not email:
            raise ResolutionError("Metadata server returned an empty service account email")

        if "@" not in email:
            logger.warning(
                "Default service account email %r is not an address; ensure the workload "
                "runs under the intended Kubernetes service account (check the deployment's "
                "serviceAccountName)",
                email,
            )
        else:
            logger.debug("Default service account email is %s", email)
        return email


__all__ = [
    "ServiceAccount",
    "ServiceAccountResolver",
    "CLOUD_PLATFORM_SCOPE",
    "METADATA_URL",
]
