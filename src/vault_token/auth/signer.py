"""
Service-account-signed JWTs for Vault GCP auth.

Vault's GCP auth method (IAM type) accepts a JWT whose audience is
"vault/<role>" and whose subject is a Google service account, signed by that
account through the IAM Credentials signJwt API. See
https://developer.hashicorp.com/vault/docs/auth/gcp#the-iam-authentication-token
and https://cloud.google.com/iam/docs/reference/credentials/rest/v1/projects.serviceAccounts/signJwt
"""

import json
import logging
import time
from datetime import UTC, datetime
from urllib.parse import quote

import google.auth.exceptions
import requests

from vault_token.auth.models import AuthConfig, Claim
from vault_token.auth.resolver import ServiceAccountResolver
from vault_token.errors import ResolutionError, SigningError
from vault_token.resilience.retry import SIGNING_RETRY, RetryConfig, retry_call

logger = logging.getLogger(__name__)

IAM_CREDENTIALS_URL = "https://iamcredentials.googleapis.com/v1"

# Retries after the first attempt in the default signing schedule
DEFAULT_MAX_RETRIES = SIGNING_RETRY.max_attempts - 1


def _utcnow() -> datetime:
    return datetime.now(UTC)


class JwtSigner:
    """
    Builds the Vault claim for a role and has the workload's service account sign it.

    Every attempt resolves the identity and builds a fresh claim, so the
    claim's expiry is relative to the attempt that sends it.

    Usage:
        signer = JwtSigner(AuthConfig(role="my-role"))
        signed_jwt = signer.sign()
    """

    def __init__(
        self,
        config: AuthConfig,
        resolver: ServiceAccountResolver | None = None,
        retry_config: RetryConfig | None = None,
        iam_url: str = IAM_CREDENTIALS_URL,
    ):
        self.config = config
        self.resolver = resolver or ServiceAccountResolver(config)
        self.retry_config = retry_config or SIGNING_RETRY
        self.iam_url = iam_url.rstrip("/")

    @classmethod
    def with_max_retries(cls, config: AuthConfig, max_retries: int, **kwargs) -> "JwtSigner":
        """Create a signer that retries up to max_retries times after the first attempt."""
        retry_config = RetryConfig.from_max_retries(
            max_retries,
            base_delay=SIGNING_RETRY.base_delay,
            max_delay=SIGNING_RETRY.max_delay,
            exponential_base=SIGNING_RETRY.exponential_base,
        )
        return cls(config, retry_config=retry_config, **kwargs)

    def sign(self) -> str:
        """
        Sign a JWT, retrying with exponential backoff.

        Returns:
            Signed JWT string, valid for one Vault login

        Raises:
            RetryExhaustedError: Signing kept failing until the attempt cap
            ResolutionError: The service account could not be determined
            SigningError: IAM rejected the request with a non-retryable status
        """
        return retry_call(self.sign_once, config=self.retry_config, operation="sign_jwt")

    def close(self) -> None:
        """Close the resolver's HTTP sessions."""
        self.resolver.close()

    def build_claim(self, subject: str) -> Claim:
        return Claim.for_role(self.config.role, subject, _utcnow())

    def sign_once(self) -> str:
        """Make a single signing attempt."""
        account = self.resolver.resolve()
        claim = self.build_claim(account.email)

        claim_json = json.dumps(claim.to_dict())
        logger.debug("Signing claim %s", claim_json, extra={"operation": "sign_jwt"})

        # signJwt takes the claim as a JSON string inside the JSON body
        body = json.dumps({"payload": claim_json})
        url = f"{self.iam_url}/projects/-/serviceAccounts/{quote(account.email, safe='@')}:signJwt"

        start = time.perf_counter()
        try:
            response = account.session.post(
                url,
                data=body,
                headers={"Content-Type": "application/json"},
                timeout=self.config.request_timeout,
            )
        except google.auth.exceptions.GoogleAuthError as e:
            # AuthorizedSession refreshes its access token before posting
            raise ResolutionError(
                f"Can't obtain an access token for service account {account.email}",
                cause=e,
                context={"service_account": account.email},
            ) from e
        except requests.RequestException as e:
            raise SigningError("Error posting to IAM signJwt", cause=e) from e

        logger.debug(
            "signJwt responded",
            extra={
                "operation": "sign_jwt",
                "http_method": "POST",
                "http_url": url,
                "http_status": response.status_code,
                "duration_ms": round((time.perf_counter() - start) * 1000, 2),
            },
        )
        return self._parse_response(response)

    @staticmethod
    def _parse_response(response: requests.Response) -> str:
        try:
            data = response.json()
        except ValueError as e:
            raise SigningError(
                f"Error parsing signJwt response (HTTP {response.status_code})",
                code=response.status_code if response.status_code >= 400 else None,
                cause=e,
                context={"body": response.text[:200]},
            ) from e

        if not isinstance(data, dict):
            raise SigningError("Unexpected signJwt response", context={"body": response.text[:200]})

        if "error" in data:
            error = data["error"]
            if not isinstance(error, dict):
                raise SigningError(f"signJwt error: {error}", code=response.status_code)
            code = error.get("code", response.status_code)
            status = error.get("status", "")
            message = error.get("message", "")
            logger.error(
                "Error requesting jwt signing %s %s %s",
                code,
                status,
                message,
                extra={"error_code": code, "error_status": status},
            )
            raise SigningError(
                message or f"signJwt failed with {status or code}",
                code=code if isinstance(code, int) else None,
                status=status,
            )

        signed_jwt = data.get("signedJwt")
        if not isinstance(signed_jwt, str) or not signed_jwt:
            raise SigningError(
                "Unexpected jwt signing response",
                code=response.status_code if response.status_code >= 400 else None,
                context={"keys": sorted(data.keys())},
            )
        return signed_jwt


__all__ = ["JwtSigner", "IAM_CREDENTIALS_URL", "DEFAULT_MAX_RETRIES"]
