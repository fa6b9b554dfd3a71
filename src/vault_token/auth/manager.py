"""Vault token manager: login with a signed JWT, then track, renew and revoke the token."""

import logging
import threading
from datetime import UTC, datetime
from typing import Any

import hvac
import hvac.exceptions
import requests

from vault_token.auth.base import VaultToken
from vault_token.auth.models import AuthConfig, ServerToken, TokenState, parse_ttl
from vault_token.auth.signer import DEFAULT_MAX_RETRIES, JwtSigner
from vault_token.errors import (
    LoginError,
    TokenLookupError,
    TokenRefreshError,
    TokenRevokeError,
)
from vault_token.logging.utilities import mask_credential

logger = logging.getLogger(__name__)

# 4xx answers to lookup-self: Vault no longer accepts the token. Anything
# else (429, 5xx, unmapped statuses, transport errors) leaves it undetermined.
_REJECTED_LOOKUP_ERRORS = (
    hvac.exceptions.InvalidRequest,
    hvac.exceptions.Unauthorized,
    hvac.exceptions.Forbidden,
    hvac.exceptions.InvalidPath,
)

_VAULT_ERRORS = (hvac.exceptions.VaultError, requests.RequestException)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class TokenManager(VaultToken):
    """
    Owns the Vault token obtained by logging in with a service-account-signed JWT.

    States:
        UNISSUED: no token held; get_token() performs a full login
        ACTIVE: token held; get_token() returns it without a network call

    Revocation is not tracked; is_revoked() asks Vault each time.

    Usage:
        manager = TokenManager(AuthConfig(role="my-role"), hvac.Client(url=...))
        token = manager.get_token()
        if manager.is_expired():
            manager.refresh(3600)
    """

    def __init__(
        self,
        config: AuthConfig,
        client: hvac.Client,
        signer: JwtSigner | None = None,
        max_sign_retries: int = DEFAULT_MAX_RETRIES,
    ):
        self.config = config
        self._client = client
        self._signer = signer or JwtSigner.with_max_retries(config, max_sign_retries)
        self._token: ServerToken | None = None
        self._lock = threading.Lock()

    @property
    def state(self) -> TokenState:
        return TokenState.ACTIVE if self._token is not None else TokenState.UNISSUED

    @property
    def token(self) -> ServerToken | None:
        return self._token

    def get_token(self) -> ServerToken:
        """
        Return the held token, logging in to Vault first if none is held.

        Raises:
            RetryExhaustedError, ResolutionError, SigningError: JWT could not be signed
            LoginError: Vault rejected the JWT or returned an unusable TTL
        """
        token = self._token
        if token is not None:
            return token

        with self._lock:
            # Another thread may have logged in while we waited
            if self._token is not None:
                return self._token

            self._token = self._login()
            return self._token

    def _login(self) -> ServerToken:
        signed_jwt = self._signer.sign()

        # capture time before the login request
        issued_at = _utcnow()
        try:
            response = self._client.write_data(
                self.config.login_path,
                data={"role": self.config.role, "jwt": signed_jwt},
            )
        except _VAULT_ERRORS as e:
            raise LoginError(
                f"Vault login request to {self.config.login_path} failed",
                cause=e,
                context={"role": self.config.role},
            ) from e

        if not isinstance(response, dict):
            raise LoginError(
                "Vault login returned no auth data",
                context={"role": self.config.role},
            )

        try:
            token = ServerToken.from_auth_response(response, issued_at)
        except (KeyError, TypeError, ValueError) as e:
            raise LoginError("Vault login response has no usable token or TTL", cause=e) from e

        logger.info(
            "Vault login succeeded",
            extra={
                "role": self.config.role,
                "auth_path": self.config.auth_path,
                "token_prefix": mask_credential(token.client_token),
                "ttl_seconds": token.ttl_seconds,
                "expires_at": token.expires_at.isoformat(),
                "policies": ",".join(token.policies),
            },
        )
        return token

    def is_expired(self) -> bool:
        """True when no token is held or its TTL has elapsed (no network call)."""
        token = self._token
        if token is None:
            return True
        return _utcnow() > token.expires_at

    def _bind_token(self, token: ServerToken) -> None:
        self._client.token = token.client_token

    def is_revoked(self) -> bool:
        """
        Look up the held token; a successful lookup means it is not revoked.

        Raises:
            TokenLookupError: Vault could not be reached, is sealed or answered
                with a non-4xx error, so the token's status is unknown
        """
        token = self._token
        if token is None:
            return True

        self._bind_token(token)
        try:
            self._client.auth.token.lookup_self()
        except _REJECTED_LOOKUP_ERRORS as e:
            logger.info(
                "Vault token lookup rejected, treating token as revoked",
                extra={"error_type": type(e).__name__, "role": self.config.role},
            )
            return True
        except _VAULT_ERRORS as e:
            raise TokenLookupError("Can't determine Vault token revocation", cause=e) from e
        return False

    def refresh(self, ttl_hint_seconds: int) -> None:
        """
        Ask Vault to extend the held token; Vault may ignore the suggested TTL.

        Expiration is recomputed from the time of this call plus the TTL Vault
        returns, never added to the previous expiration.

        Raises:
            TokenRefreshError: No token held, renewal rejected, or TTL unparsable
        """
        token = self._token
        if token is None:
            raise TokenRefreshError("Can't refresh: no Vault token held")

        self._bind_token(token)
        issued_at = _utcnow()
        try:
            response = self._client.auth.token.renew_self(increment=ttl_hint_seconds)
        except _VAULT_ERRORS as e:
            raise TokenRefreshError("Can't refresh Vault token", cause=e) from e

        try:
            ttl = parse_ttl(response["auth"])
        except (KeyError, TypeError, ValueError) as e:
            raise TokenRefreshError("Vault token refresh returned no usable TTL", cause=e) from e

        with self._lock:
            token.renewed(ttl, issued_at)

        logger.info(
            "Vault token refreshed",
            extra={
                "role": self.config.role,
                "token_prefix": mask_credential(token.client_token),
                "ttl_hint_seconds": ttl_hint_seconds,
                "ttl_seconds": ttl,
                "expires_at": token.expires_at.isoformat(),
            },
        )

    def revoke(self) -> None:
        """
        Revoke the held token; on success the next get_token() logs in again.

        Raises:
            TokenRevokeError: No token held, or Vault refused (token retained)
        """
        token = self._token
        if token is None:
            raise TokenRevokeError("Can't revoke: no Vault token held")

        self._bind_token(token)
        try:
            self._client.auth.token.revoke_self()
        except _VAULT_ERRORS as e:
            raise TokenRevokeError("Revoke Vault token error", cause=e) from e

        with self._lock:
            if self._token is token:
                self._token = None

        logger.info("Vault token revoked", extra={"role": self.config.role})

    def get_token_info(self) -> dict[str, Any] | None:
        """
        Get information about the held token for diagnostics.

        Returns:
            Dict with token info (never the token itself), or None if none is held
        """
        token = self._token
        if token is None:
            return None

        return {
            "role": self.config.role,
            "auth_path": self.config.auth_path,
            "accessor": token.accessor,
            "policies": list(token.policies),
            "renewable": token.renewable,
            "issued_at": token.issued_at.isoformat(),
            "expires_at": token.expires_at.isoformat(),
            "remaining_seconds": (token.expires_at - _utcnow()).total_seconds(),
            "is_expired": self.is_expired(),
        }

    def close(self) -> None:
        """Close the signer's HTTP sessions. The held token is kept."""
        if hasattr(self._signer, "close"):
            self._signer.close()


__all__ = ["TokenManager"]
