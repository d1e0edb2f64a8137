"""Tests for the authentication guard (core/authentication.py)."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from ownstak.core.authentication import AuthenticationGuard
from ownstak.core.models import Credentials
from ownstak.exceptions import LoginError, MissingCredentialsError
from ownstak.settings import get_settings


class _FakeStore:
    """In-memory credential store; ``pending`` becomes visible on reload."""

    def __init__(self, stored: str | None = None) -> None:
        self.api_url = "https://api.example.test"
        self._keys: dict[str, str] = {}
        if stored:
            self._keys[self.api_url] = stored
        self.pending: dict[str, str] = {}
        self.reloads = 0

    def get_api_key(self, api_url: str | None = None) -> str | None:
        return self._keys.get(api_url or self.api_url)

    def reload(self) -> None:
        self.reloads += 1
        self._keys.update(self.pending)


def _make_login(store: _FakeStore, key: str | None = "osk_new") -> MagicMock:
    def _persist(api_url: str | None) -> None:
        if key:
            store.pending[api_url or store.api_url] = key

    return MagicMock(side_effect=_persist)


class TestTryGetCredential:
    def test_explicit_key_wins(self) -> None:
        store = _FakeStore(stored="osk_stored")
        guard = AuthenticationGuard(store, MagicMock())
        assert guard.try_get_credential(api_key="osk_explicit") == "osk_explicit"

    def test_falls_back_to_store(self) -> None:
        guard = AuthenticationGuard(_FakeStore(stored="osk_stored"), MagicMock())
        assert guard.try_get_credential() == "osk_stored"

    def test_none_when_nothing_stored(self) -> None:
        guard = AuthenticationGuard(_FakeStore(), MagicMock())
        assert guard.try_get_credential() is None

    def test_environment_key_before_store(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("OWNSTAK_API_KEY", "osk_env")
        get_settings.cache_clear()
        guard = AuthenticationGuard(_FakeStore(stored="osk_stored"), MagicMock())
        assert guard.try_get_credential() == "osk_env"
        assert guard.try_get_credential(api_key="osk_explicit") == "osk_explicit"

    def test_blank_environment_key_ignored(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("OWNSTAK_API_KEY", "")
        get_settings.cache_clear()
        guard = AuthenticationGuard(_FakeStore(stored="osk_stored"), MagicMock())
        assert guard.try_get_credential() == "osk_stored"


class TestEnsureAuthenticated:
    def test_stored_key_does_not_login(self) -> None:
        store = _FakeStore(stored="osk_stored")
        login = MagicMock()
        creds = AuthenticationGuard(store, login).ensure_authenticated()
        assert creds == Credentials(api_key="osk_stored", api_url=store.api_url)
        login.assert_not_called()
        assert store.reloads == 0

    def test_environment_key_does_not_login(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("OWNSTAK_API_KEY", "osk_env")
        get_settings.cache_clear()
        store = _FakeStore()
        login = MagicMock()
        creds = AuthenticationGuard(store, login).ensure_authenticated()
        assert creds == Credentials(api_key="osk_env", api_url=store.api_url)
        login.assert_not_called()

    def test_explicit_key_and_url(self) -> None:
        login = MagicMock()
        creds = AuthenticationGuard(_FakeStore(), login).ensure_authenticated(
            "https://other.test", "osk_explicit",
        )
        assert creds == Credentials(api_key="osk_explicit", api_url="https://other.test")
        login.assert_not_called()

    def test_logs_in_once_then_reuses_key(self) -> None:
        store = _FakeStore()
        login = _make_login(store)
        guard = AuthenticationGuard(store, login)

        first = guard.ensure_authenticated()
        second = guard.ensure_authenticated()

        assert first.api_key == second.api_key == "osk_new"
        login.assert_called_once_with(None)
        assert store.reloads == 1

    def test_login_for_explicit_url(self) -> None:
        store = _FakeStore()
        login = _make_login(store)
        creds = AuthenticationGuard(store, login).ensure_authenticated("https://other.test")
        login.assert_called_once_with("https://other.test")
        assert creds.api_url == "https://other.test"

    def test_missing_after_login(self) -> None:
        store = _FakeStore()
        login = _make_login(store, key=None)
        with pytest.raises(MissingCredentialsError) as exc_info:
            AuthenticationGuard(store, login).ensure_authenticated()
        assert "--api-key" in (exc_info.value.hint or "")
        login.assert_called_once()

    def test_login_failure_propagates(self) -> None:
        store = _FakeStore()
        login = MagicMock(side_effect=LoginError("The link has expired."))
        with pytest.raises(LoginError):
            AuthenticationGuard(store, login).ensure_authenticated()
        assert store.reloads == 0
