"""
Tests for Microsoft Graph sign-in and token cache storage.
"""

import keyring
import pytest
from keyring.errors import KeyringError

from agendaai.adapters.graph_authenticator import GraphAuthenticator, TokenCacheStore
from agendaai.domain.exceptions import AuthenticationError


class MemoryKeyring:
    def __init__(self, fail=False):
        self.entries = {}
        self.fail = fail

    def get_password(self, service, key):
        if self.fail:
            raise KeyringError("no backend")
        return self.entries.get((service, key))

    def set_password(self, service, key, value):
        if self.fail:
            raise KeyringError("no backend")
        self.entries[(service, key)] = value

    def delete_password(self, service, key):
        self.entries.pop((service, key), None)


@pytest.fixture
def memory_keyring(monkeypatch):
    fake = MemoryKeyring()
    monkeypatch.setattr(keyring, "get_password", fake.get_password)
    monkeypatch.setattr(keyring, "set_password", fake.set_password)
    monkeypatch.setattr(keyring, "delete_password", fake.delete_password)
    return fake


class FakeMsalApp:
    """Stands in for msal.PublicClientApplication."""

    def __init__(self, silent=None, device_result=None, flow=None):
        self.accounts = [{"username": "doctor@example.com"}] if silent else []
        self.silent = silent
        self.device_result = device_result or {"access_token": "fresh-token"}
        self.flow = flow or {"user_code": "ABC123", "verification_uri": "https://microsoft.com/devicelogin"}
        self.device_flows = 0

    def get_accounts(self):
        return list(self.accounts)

    def remove_account(self, account):
        self.accounts.remove(account)

    def acquire_token_silent(self, scopes, account):
        return self.silent

    def initiate_device_flow(self, scopes):
        return self.flow

    def acquire_token_by_device_flow(self, flow):
        self.device_flows += 1
        return self.device_result


def _authenticator(tmp_path, app, shown=None):
    return GraphAuthenticator(
        client_id="client",
        tenant_id="tenant",
        store=TokenCacheStore(key="client:tenant", cache_file=tmp_path / "cache.json"),
        show_device_code=(shown.append if shown is not None else lambda flow: None),
        app=app,
    )


class TestTokenCacheStore:
    """Tests for TokenCacheStore."""

    def test_round_trip_through_keyring(self, tmp_path, memory_keyring):
        store = TokenCacheStore(key="k", cache_file=tmp_path / "cache.json")

        store.save('{"AccessToken": {}}')

        assert store.load() == '{"AccessToken": {}}'
        assert store.backend == "keyring"
        assert not (tmp_path / "cache.json").exists()

    def test_falls_back_to_file(self, tmp_path, monkeypatch):
        broken = MemoryKeyring(fail=True)
        monkeypatch.setattr(keyring, "get_password", broken.get_password)
        monkeypatch.setattr(keyring, "set_password", broken.set_password)
        store = TokenCacheStore(key="k", cache_file=tmp_path / "cache.json")

        store.save("serialized")

        assert store.backend == "file"
        assert (tmp_path / "cache.json").read_text(encoding="utf-8") == "serialized"
        assert (tmp_path / "cache.json").stat().st_mode & 0o777 == 0o600
        assert store.load() == "serialized"

    def test_clear(self, tmp_path, memory_keyring):
        cache_file = tmp_path / "cache.json"
        cache_file.write_text("old", encoding="utf-8")
        store = TokenCacheStore(key="k", cache_file=cache_file)
        store.save("serialized")

        store.clear()

        assert not cache_file.exists()
        assert memory_keyring.entries == {}


class TestGraphAuthenticator:
    """Tests for GraphAuthenticator."""

    def test_cached_account_skips_sign_in(self, tmp_path, memory_keyring):
        app = FakeMsalApp(silent={"access_token": "cached-token"})
        shown = []

        token = _authenticator(tmp_path, app, shown).get_access_token()

        assert token == "cached-token"
        assert shown == []
        assert app.device_flows == 0

    def test_device_code_flow(self, tmp_path, memory_keyring):
        app = FakeMsalApp()
        shown = []

        token = _authenticator(tmp_path, app, shown).get_access_token()

        assert token == "fresh-token"
        assert shown[0]["user_code"] == "ABC123"

    def test_force_refresh_signs_in_again(self, tmp_path, memory_keyring):
        app = FakeMsalApp(silent={"access_token": "cached-token"})

        assert _authenticator(tmp_path, app).get_access_token(force_refresh=True) == "fresh-token"

    def test_device_flow_cannot_start(self, tmp_path, memory_keyring):
        app = FakeMsalApp(flow={"error_description": "invalid client"})

        with pytest.raises(AuthenticationError, match="invalid client"):
            _authenticator(tmp_path, app).get_access_token()

    def test_sign_in_rejected(self, tmp_path, memory_keyring):
        app = FakeMsalApp(device_result={"error_description": "declined"})

        with pytest.raises(AuthenticationError, match="declined"):
            _authenticator(tmp_path, app).get_access_token()

    def test_clear_cache_forgets_accounts(self, tmp_path, memory_keyring):
        app = FakeMsalApp(silent={"access_token": "cached-token"})
        authenticator = _authenticator(tmp_path, app)

        authenticator.clear_cache()

        assert app.get_accounts() == []
        assert authenticator.cache_backend == "keyring"
