"""Tests for the GCP auth provider."""

from unittest.mock import MagicMock

import pytest

from vault_token.auth.manager import TokenManager
from vault_token.auth.providers import GcpAuth, VaultAuth
from vault_token.errors import ConfigError


class TestGcpAuth:

    def test_is_a_vault_auth(self):
        auth = GcpAuth()
        assert isinstance(auth, VaultAuth)
        assert auth.name == "gcp"

    def test_get_config(self):
        session = MagicMock()
        auth = GcpAuth(auth_path="auth/gcp-prod", request_timeout=10.0, test_session=session)

        config = auth.get_config("orders")

        assert config.role == "orders"
        assert config.auth_path == "auth/gcp-prod"
        assert config.request_timeout == 10.0
        assert config.test_session is session

    def test_empty_role_rejected(self):
        with pytest.raises(ConfigError, match="role"):
            GcpAuth().get_config("")

    def test_new_token_is_unissued_manager(self):
        auth = GcpAuth(max_sign_retries=2)
        client = MagicMock()

        manager = auth.new_token(auth.get_config("orders"), client)

        assert isinstance(manager, TokenManager)
        assert manager.token is None
        assert manager._signer.retry_config.max_attempts == 3
        client.write_data.assert_not_called()
