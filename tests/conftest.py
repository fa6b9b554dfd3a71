"""
pytest configuration for vault_token tests.

Adds src directory to Python path for imports and provides shared fakes for
the Google, IAM and Vault collaborators.
"""

import sys
from datetime import UTC, datetime, timedelta
from pathlib import Path
from unittest.mock import MagicMock

import pytest

# Add src directory to Python path
src_dir = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_dir))

from vault_token.auth.models import AuthConfig  # noqa: E402

SA_EMAIL = "orders@my-project.iam.gserviceaccount.com"
T0 = datetime(2026, 1, 1, 12, 0, 0, tzinfo=UTC)


class FakeClock:
    """Settable replacement for the modules' _utcnow()."""

    def __init__(self, now: datetime = T0):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now = self.now + timedelta(seconds=seconds)


def _make_response(status_code=200, json_data=None, text=None):
    response = MagicMock()
    response.status_code = status_code
    if json_data is not None:
        response.json.return_value = json_data
        response.text = text if text is not None else str(json_data)
    else:
        response.json.side_effect = ValueError("No JSON object could be decoded")
        response.text = text or ""
    return response


def _login_response(client_token="hvs.CAESIexampletoken", lease_duration=3600, policies=None):
    return {
        "auth": {
            "client_token": client_token,
            "accessor": "acc-123",
            "policies": policies or ["default", "orders-read"],
            "lease_duration": lease_duration,
            "renewable": True,
        }
    }


@pytest.fixture
def sa_email():
    return SA_EMAIL


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def make_response():
    """Factory for requests.Response stand-ins."""
    return _make_response


@pytest.fixture
def login_response():
    """Factory for Vault login/renew response bodies."""
    return _login_response


@pytest.fixture
def auth_config():
    return AuthConfig(role="orders", request_timeout=5.0)


@pytest.fixture
def vault_client():
    """hvac.Client stand-in with a successful login."""
    client = MagicMock()
    client.token = None
    client.write_data.return_value = _login_response()
    return client
