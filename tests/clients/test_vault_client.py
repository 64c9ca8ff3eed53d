"""Tests for VaultClient - HashiCorp Vault secrets management."""

from unittest.mock import MagicMock, patch

import pytest
from hvac.exceptions import Forbidden, InvalidPath

import clients.vault_client as vault_module
from clients.vault_client import (
    VaultClient,
    VaultError,
    get_email_config,
    get_stripe_config,
)


@pytest.fixture
def vault_env(monkeypatch):
    monkeypatch.setenv("VAULT_ADDR", "https://vault.example.com")
    monkeypatch.setenv("VAULT_ROLE_ID", "role")
    monkeypatch.setenv("VAULT_SECRET_ID", "secret")
    monkeypatch.delenv("VAULT_NAMESPACE", raising=False)


@pytest.fixture
def hvac_client(vault_env):
    """Patched hvac.Client that authenticates and serves one secret."""
    with patch("clients.vault_client.hvac.Client") as client_cls:
        hvac_mock = MagicMock()
        hvac_mock.auth.approle.login.return_value = {"auth": {"client_token": "tok"}}
        hvac_mock.is_authenticated.return_value = True
        hvac_mock.secrets.kv.v2.read_secret_version.return_value = {
            "data": {"data": {"secret_key": "sk_test", "webhook_secret": "whsec_test"}}
        }
        client_cls.return_value = hvac_mock
        yield hvac_mock


@pytest.fixture
def fresh_cache():
    """Reset the module singleton and secret cache around a test."""
    vault_module._vault_client_instance = None
    vault_module._secret_cache.clear()
    yield
    vault_module._vault_client_instance = None
    vault_module._secret_cache.clear()


class TestVaultClientInit:
    """Initialization and authentication."""

    def test_missing_vault_addr_raises(self, monkeypatch):
        monkeypatch.delenv("VAULT_ADDR", raising=False)
        with pytest.raises(ValueError, match="VAULT_ADDR"):
            VaultClient()

    def test_missing_approle_credentials_raises(self, monkeypatch):
        monkeypatch.setenv("VAULT_ADDR", "https://vault.example.com")
        monkeypatch.delenv("VAULT_ROLE_ID", raising=False)
        monkeypatch.delenv("VAULT_SECRET_ID", raising=False)
        with pytest.raises(ValueError, match="VAULT_ROLE_ID"):
            VaultClient()

    def test_failed_login_raises_vault_error(self, hvac_client):
        hvac_client.auth.approle.login.side_effect = RuntimeError("denied")
        with pytest.raises(VaultError, match="AppRole authentication failed"):
            VaultClient()

    def test_valid_approle_sets_token(self, hvac_client):
        client = VaultClient()
        assert client.client.token == "tok"


class TestGetSecret:
    """Secret retrieval - paths automatically scoped to ticketing/."""

    def test_path_is_scoped(self, hvac_client):
        VaultClient().get_secret("stripe", "secret_key")
        hvac_client.secrets.kv.v2.read_secret_version.assert_called_once_with(
            path="ticketing/stripe", raise_on_deleted_version=True
        )

    def test_returns_field_value(self, hvac_client):
        assert VaultClient().get_secret("stripe", "webhook_secret") == "whsec_test"

    def test_missing_field_raises_key_error(self, hvac_client):
        with pytest.raises(KeyError, match="not_a_field"):
            VaultClient().get_secret("stripe", "not_a_field")

    def test_missing_path_raises_vault_error(self, hvac_client):
        hvac_client.secrets.kv.v2.read_secret_version.side_effect = InvalidPath()
        with pytest.raises(VaultError, match="not found"):
            VaultClient().get_secret("nope", "x")

    def test_forbidden_raises_vault_error(self, hvac_client):
        hvac_client.secrets.kv.v2.read_secret_version.side_effect = Forbidden()
        with pytest.raises(VaultError, match="Access denied"):
            VaultClient().get_secret("stripe", "secret_key")


class TestConvenienceFunctions:
    def test_stripe_config_is_cached(self, hvac_client, fresh_cache):
        first = get_stripe_config()
        second = get_stripe_config()

        assert first == {"secret_key": "sk_test", "webhook_secret": "whsec_test"}
        assert first == second
        # One read per field, none on the second call
        assert hvac_client.secrets.kv.v2.read_secret_version.call_count == 2

    def test_email_config_fields(self, hvac_client, fresh_cache):
        hvac_client.secrets.kv.v2.read_secret_version.return_value = {
            "data": {"data": {
                "gateway_url": "https://gw.example.com/send",
                "api_key": "key",
                "hmac_secret": "hmac",
            }}
        }
        assert get_email_config() == {
            "gateway_url": "https://gw.example.com/send",
            "api_key": "key",
            "hmac_secret": "hmac",
        }
