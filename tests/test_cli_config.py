"""Tests for the persisted CLI config (infra/cli_config.py).

The autouse ``isolated_settings`` fixture points the config directory at
``tmp_path``, so these tests never touch the real home directory.
"""

from __future__ import annotations

import json
import os
import sys
from pathlib import Path

import pytest

from ownstak.exceptions import ConfigError
from ownstak.infra.cli_config import CliConfig, mask_api_key
from ownstak.settings import DEFAULT_API_URL, get_settings


class TestMaskApiKey:
    def test_long_key(self) -> None:
        assert mask_api_key("osk_1234567890abcd") == "osk******abcd"

    @pytest.mark.parametrize("key", ["", "short", "1234567"])
    def test_short_key_fully_masked(self, key: str) -> None:
        assert mask_api_key(key) == "*" * len(key)


class TestCliConfig:
    def test_default_path_comes_from_settings(self, isolated_settings: Path) -> None:
        assert CliConfig().path == isolated_settings / "config.json"

    def test_missing_file_is_empty(self) -> None:
        config = CliConfig()
        assert config.api_keys == {}
        assert config.api_url == DEFAULT_API_URL
        assert config.get_api_key() is None

    def test_api_url_setting_is_default(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("OWNSTAK_API_URL", "https://api.example.test")
        get_settings.cache_clear()
        assert CliConfig().api_url == "https://api.example.test"

    def test_save_and_reload(self, isolated_settings: Path) -> None:
        config = CliConfig()
        config.set_api_key("osk_secret_value")
        config.save()

        reloaded = CliConfig()
        assert reloaded.get_api_key() == "osk_secret_value"
        data = json.loads((isolated_settings / "config.json").read_text())
        assert data["api_keys"] == {DEFAULT_API_URL: "osk_secret_value"}

    @pytest.mark.skipif(sys.platform == "win32", reason="POSIX permissions")
    def test_saved_file_is_owner_only(self) -> None:
        config = CliConfig()
        config.set_api_key("osk_secret_value")
        config.save()
        assert os.stat(config.path).st_mode & 0o777 == 0o600

    def test_keys_are_per_url_and_slash_insensitive(self) -> None:
        config = CliConfig()
        config.set_api_key("osk_a", "https://a.test/")
        config.set_api_key("osk_b", "https://b.test")
        assert config.get_api_key("https://a.test") == "osk_a"
        assert config.get_api_key("https://b.test/") == "osk_b"
        assert config.get_api_key() is None

    def test_delete_api_key(self) -> None:
        config = CliConfig()
        config.set_api_key("osk_a")
        assert config.delete_api_key() is True
        assert config.delete_api_key() is False

    def test_reload_discards_unsaved_changes(self) -> None:
        config = CliConfig()
        config.set_api_key("osk_a")
        config.reload()
        assert config.get_api_key() is None

    def test_masked_dict(self) -> None:
        config = CliConfig()
        config.set_api_key("osk_1234567890abcd")
        assert config.to_dict(masked=True)["api_keys"] == {DEFAULT_API_URL: "osk******abcd"}

    def test_invalid_json(self, tmp_path: Path) -> None:
        path = tmp_path / "config.json"
        path.write_text("{not json")
        with pytest.raises(ConfigError, match="Cannot read"):
            CliConfig(path)

    def test_non_object(self, tmp_path: Path) -> None:
        path = tmp_path / "config.json"
        path.write_text("[]")
        with pytest.raises(ConfigError, match="JSON object"):
            CliConfig(path)

    def test_stored_api_url_overrides_setting(self, tmp_path: Path) -> None:
        path = tmp_path / "config.json"
        path.write_text(json.dumps({
            "api_url": "https://staging.test",
            "api_keys": {"https://staging.test/": "osk_s"},
        }))
        config = CliConfig(path)
        assert config.api_url == "https://staging.test"
        assert config.get_api_key() == "osk_s"
