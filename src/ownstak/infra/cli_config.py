"""Persisted CLI configuration (API keys per API URL).

The file is a small JSON document::

    {
      "api_url": "https://api.ownstak.com",
      "api_keys": {"https://api.ownstak.com": "osk_..."}
    }

Only the login and logout flows write it; everything else reads.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any

from ownstak.exceptions import ConfigError
from ownstak.settings import get_settings

logger = logging.getLogger(__name__)


def mask_api_key(api_key: str) -> str:
    """Render *api_key* as ``abc******wxyz`` for display."""
    if len(api_key) <= 7:
        return "*" * len(api_key)
    return f"{api_key[:3]}******{api_key[-4:]}"


class CliConfig:
    """Read/write access to the CLI config file.

    Parameters
    ----------
    path:
        Location of the JSON file.  Defaults to the ``config_file``
        setting (``~/.ownstak/config.json``).
    """

    def __init__(self, path: Path | None = None) -> None:
        self.path: Path = path or get_settings().config_file
        self.api_url: str = get_settings().api_url
        self.api_keys: dict[str, str] = {}
        self.reload()

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def reload(self) -> None:
        """Re-read the file; a missing file means an empty config."""
        self.api_url = get_settings().api_url
        self.api_keys = {}
        if not self.path.exists():
            return

        try:
            raw: Any = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            raise ConfigError(
                f"Cannot read CLI config at {self.path}: {exc}",
                hint="Fix or delete the file and log in again.",
            ) from exc
        if not isinstance(raw, dict):
            raise ConfigError(f"CLI config at {self.path} must be a JSON object.")

        if isinstance(raw.get("api_url"), str):
            self.api_url = raw["api_url"]
        keys = raw.get("api_keys")
        if isinstance(keys, dict):
            self.api_keys = {_normalize_url(str(k)): str(v) for k, v in keys.items() if v}

    def save(self) -> None:
        """Write the config with owner-only permissions."""
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(self.to_dict(), indent=2), encoding="utf-8")
            os.chmod(self.path, 0o600)
        except OSError as exc:
            raise ConfigError(f"Cannot write CLI config at {self.path}: {exc}") from exc
        logger.debug("Saved CLI config to %s", self.path)

    def to_dict(self, *, masked: bool = False) -> dict[str, Any]:
        keys = {
            url: mask_api_key(key) if masked else key
            for url, key in self.api_keys.items()
        }
        return {"api_url": self.api_url, "api_keys": keys}

    # ------------------------------------------------------------------
    # API keys
    # ------------------------------------------------------------------

    def get_api_key(self, api_url: str | None = None) -> str | None:
        return self.api_keys.get(_normalize_url(api_url or self.api_url))

    def set_api_key(self, api_key: str, api_url: str | None = None) -> None:
        self.api_keys[_normalize_url(api_url or self.api_url)] = api_key

    def delete_api_key(self, api_url: str | None = None) -> bool:
        """Forget the key for *api_url*; return whether one was stored."""
        return self.api_keys.pop(_normalize_url(api_url or self.api_url), None) is not None


def _normalize_url(url: str) -> str:
    return url.rstrip("/")
