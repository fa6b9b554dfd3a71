"""Tests for ServiceAccountResolver."""

import logging
from unittest.mock import MagicMock, patch

import google.auth.exceptions
import pytest
import requests

from vault_token.auth.models import AuthConfig
from vault_token.auth.resolver import (
    CLOUD_PLATFORM_SCOPE,
    METADATA_URL,
    ServiceAccountResolver,
)
from vault_token.errors import ResolutionError


@pytest.fixture
def session():
    return MagicMock()


@pytest.fixture
def config(session):
    return AuthConfig(role="orders", request_timeout=5.0, test_session=session)


@pytest.fixture
def default_credentials():
    with patch("vault_token.auth.resolver.google.auth.default") as mock_default:
        yield mock_default


def _credentials(email):
    creds = MagicMock()
    creds.service_account_email = email
    return creds


class TestResolve:

    def test_email_from_credentials(self, config, session, default_credentials, sa_email):
        default_credentials.return_value = (_credentials(sa_email), "my-project")

        account = ServiceAccountResolver(config).resolve()

        assert account.email == sa_email
        default_credentials.assert_called_once_with(scopes=[CLOUD_PLATFORM_SCOPE])
        session.get.assert_not_called()

    def test_test_session_is_the_authorized_channel(self, config, session, default_credentials, sa_email):
        default_credentials.return_value = (_credentials(sa_email), "my-project")

        account = ServiceAccountResolver(config).resolve()

        assert account.session is session

    def test_authorized_session_without_test_session(self, default_credentials, sa_email):
        creds = _credentials(sa_email)
        default_credentials.return_value = (creds, "my-project")

        with patch("vault_token.auth.resolver.AuthorizedSession") as mock_session:
            account = ServiceAccountResolver(AuthConfig(role="orders")).resolve()

        mock_session.assert_called_once_with(creds)
        assert account.session is mock_session.return_value

    @pytest.mark.parametrize("placeholder", ["default", "", None])
    def test_falls_back_to_metadata_server(
        self, config, session, default_credentials, make_response, sa_email, placeholder
    ):
        default_credentials.return_value = (_credentials(placeholder), None)
        session.get.return_value = make_response(200, text=sa_email + "\n")

        account = ServiceAccountResolver(config).resolve()

        assert account.email == sa_email
        session.get.assert_called_once_with(
            f"{METADATA_URL}/instance/service-accounts/default/email",
            headers={"Metadata-Flavor": "Google"},
            timeout=5.0,
        )

    def test_credentials_without_email_attribute(self, config, session, default_credentials, make_response, sa_email):
        default_credentials.return_value = (MagicMock(spec=[]), None)
        session.get.return_value = make_response(200, text=sa_email)

        assert ServiceAccountResolver(config).resolve().email == sa_email

    def test_no_default_credentials(self, config, default_credentials):
        cause = google.auth.exceptions.DefaultCredentialsError("Could not automatically determine credentials")
        default_credentials.side_effect = cause

        with pytest.raises(ResolutionError) as exc_info:
            ServiceAccountResolver(config).resolve()

        assert exc_info.value.cause is cause
        assert not exc_info.value.is_retryable


class TestGetDefaultEmail:

    def test_custom_metadata_url(self, config, session, make_response, sa_email):
        session.get.return_value = make_response(200, text=sa_email)

        ServiceAccountResolver(config, metadata_url="http://127.0.0.1:8080/v1/").get_default_email()

        assert session.get.call_args.args[0] == "http://127.0.0.1:8080/v1/instance/service-accounts/default/email"

    def test_non_2xx_status(self, config, session, make_response):
        session.get.return_value = make_response(404, text="not found")

        with pytest.raises(ResolutionError, match="HTTP 404"):
            ServiceAccountResolver(config).get_default_email()

    def test_empty_body(self, config, session, make_response):
        session.get.return_value = make_response(200, text="  \n")

        with pytest.raises(ResolutionError, match="empty"):
            ServiceAccountResolver(config).get_default_email()

    def test_metadata_unreachable(self, config, session):
        session.get.side_effect = requests.ConnectionError("Name or service not known")

        with pytest.raises(ResolutionError) as exc_info:
            ServiceAccountResolver(config).get_default_email()

        assert isinstance(exc_info.value.cause, requests.ConnectionError)

    def test_warns_when_email_is_not_an_address(self, config, session, make_response, caplog):
        session.get.return_value = make_response(200, text="orders-ksa")

        with caplog.at_level(logging.WARNING, logger="vault_token.auth.resolver"):
            email = ServiceAccountResolver(config).get_default_email()

        assert email == "orders-ksa"
        assert "serviceAccountName" in caplog.text


class TestSessionLifetime:

    def test_authorized_session_reused_across_resolves(self, default_credentials, sa_email):
        default_credentials.return_value = (_credentials(sa_email), "my-project")
        resolver = ServiceAccountResolver(AuthConfig(role="orders"))

        with patch("vault_token.auth.resolver.AuthorizedSession") as mock_session:
            first = resolver.resolve()
            second = resolver.resolve()

        mock_session.assert_called_once()
        assert first.session is second.session

    def test_close_closes_owned_sessions(self, default_credentials, make_response, sa_email):
        default_credentials.return_value = (_credentials("default"), None)
        resolver = ServiceAccountResolver(AuthConfig(role="orders"))

        with patch("vault_token.auth.resolver.AuthorizedSession") as mock_authorized, patch(
            "vault_token.auth.resolver.requests.Session"
        ) as mock_metadata:
            mock_metadata.return_value.get.return_value = make_response(200, text=sa_email)
            resolver.resolve()
            resolver.resolve()
            resolver.close()

        mock_metadata.assert_called_once_with()
        mock_metadata.return_value.close.assert_called_once_with()
        mock_authorized.return_value.close.assert_called_once_with()

    def test_close_leaves_test_session_open(self, config, session, default_credentials, sa_email):
        default_credentials.return_value = (_credentials(sa_email), "my-project")
        resolver = ServiceAccountResolver(config)
        resolver.resolve()

        resolver.close()

        session.close.assert_not_called()
