"""Vault auth data models and configuration."""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Any

import requests

DEFAULT_AUTH_PATH = "auth/gcp"
DEFAULT_REQUEST_TIMEOUT = 30.0

# Signed JWT lifetime; the Vault GCP role rejects anything longer
JWT_LIFETIME_SECONDS = 60


class TokenState(Enum):
    """Lifecycle state of the Vault token held by a TokenManager."""

    UNISSUED = "unissued"
    ACTIVE = "active"


@dataclass(frozen=True)
class AuthConfig:
    """
    Vault auth configuration for one role.

    Attributes:
        role: Vault role bound to the workload's Google service account
        auth_path: Mount path of the GCP auth method (default "auth/gcp")
        request_timeout: Seconds before signing/metadata requests time out
        test_session: Optional requests session replacing the Google-authorized
            channel and metadata transport (tests and local fakes)
    """

    role: str
    auth_path: str = DEFAULT_AUTH_PATH
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    test_session: requests.Session | None = field(default=None, compare=False, repr=False)

    @property
    def login_path(self) -> str:
        return f"{self.auth_path.strip('/')}/login"


@dataclass(frozen=True)
class Claim:
    """
    JWT claim signed by the service account and presented to Vault.

    Attributes:
        audience: "vault/" + role
        subject: Service account email
        expires_at: UTC instant after which Vault rejects the JWT
    """

    audience: str
    subject: str
    expires_at: datetime

    @classmethod
    def for_role(cls, role: str, subject: str, now: datetime) -> "Claim":
        return cls(
            audience=f"vault/{role}",
            subject=subject,
            expires_at=now + timedelta(seconds=JWT_LIFETIME_SECONDS),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "aud": self.audience,
            "sub": self.subject,
            "exp": int(self.expires_at.timestamp()),
        }


@dataclass
class ServerToken:
    """
    Vault-issued client token with expiration tracking.

    Attributes:
        client_token: Opaque Vault token
        issued_at: UTC timestamp captured before the login (or renew) request
        ttl_seconds: Lease duration reported by Vault
        accessor: Token accessor, safe to log
        policies: Policies attached to the token
        renewable: Whether Vault allows renew-self on this token
    """

    client_token: str
    issued_at: datetime
    ttl_seconds: int
    accessor: str | None = None
    policies: list[str] = field(default_factory=list)
    renewable: bool = False

    @property
    def expires_at(self) -> datetime:
        return self.issued_at + timedelta(seconds=self.ttl_seconds)

    @classmethod
    def from_auth_response(cls, response: dict, issued_at: datetime) -> "ServerToken":
        """
        Create token from a Vault login response.

        Args:
            response: Vault response dict with an "auth" block
            issued_at: Timestamp taken before the request was sent

        Raises:
            KeyError, TypeError, ValueError: If the token or TTL is missing/unparsable
        """
        auth = response["auth"]
        client_token = auth["client_token"]
        if not client_token:
            raise ValueError("login response has an empty client_token")

        return cls(
            client_token=client_token,
            issued_at=issued_at,
            ttl_seconds=parse_ttl(auth),
            accessor=auth.get("accessor"),
            policies=list(auth.get("policies") or []),
            renewable=bool(auth.get("renewable", False)),
        )

    def renewed(self, ttl_seconds: int, issued_at: datetime) -> None:
        """Recompute expiration from a renew-self response."""
        self.issued_at = issued_at
        self.ttl_seconds = ttl_seconds


def parse_ttl(auth: dict) -> int:
    """Parse lease_duration (seconds) from a Vault auth block."""
    ttl = int(auth["lease_duration"])
    if ttl < 0:
        raise ValueError(f"negative lease_duration: {ttl}")
    return ttl


__all__ = [
    "AuthConfig",
    "Claim",
    "ServerToken",
    "TokenState",
    "parse_ttl",
    "DEFAULT_AUTH_PATH",
    "DEFAULT_REQUEST_TIMEOUT",
    "JWT_LIFETIME_SECONDS",
]
