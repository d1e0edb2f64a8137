"""Runtime settings loaded from the environment.

Uses pydantic-settings so every value can be overridden with an
``OWNSTAK_``-prefixed environment variable.  ``LOG_LEVEL`` and ``LOCAL``
are read without the prefix because compute tooling on the platform
sets them that way.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import AliasChoices, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

BRAND: str = "OwnStak"
NAME: str = "ownstak"
DEFAULT_API_URL: str = "https://api.ownstak.com"
DEFAULT_CONSOLE_URL: str = "https://console.ownstak.com"
SUPPORT_URL: str = "https://ownstak.com/support"

_LOG_LEVELS: frozenset[str] = frozenset({"debug", "info", "warn", "warning", "error"})


class Settings(BaseSettings):
    """CLI settings.

    All values are optional; the API key is usually read from the
    stored config instead (see :mod:`ownstak.infra.cli_config`).
    """

    model_config = SettingsConfigDict(env_prefix="OWNSTAK_", extra="ignore")

    api_url: str = DEFAULT_API_URL
    console_url: str = DEFAULT_CONSOLE_URL
    api_key: SecretStr | None = None
    config_dir: Path = Path.home() / ".ownstak"
    request_timeout: float = 30.0

    log_level: str = Field(
        default="info",
        validation_alias=AliasChoices("LOG_LEVEL", "OWNSTAK_LOG_LEVEL"),
    )
    local: bool = Field(
        default=False,
        validation_alias=AliasChoices("LOCAL", "OWNSTAK_LOCAL"),
    )

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        normalized = value.strip().lower()
        if normalized not in _LOG_LEVELS:
            return "info"
        return normalized

    @property
    def config_file(self) -> Path:
        """Location of the persisted CLI config JSON."""
        return self.config_dir / "config.json"


@lru_cache
def get_settings() -> Settings:
    """Return cached settings (single instance per process).

    In tests, call ``get_settings.cache_clear()`` after changing
    environment variables.
    """
    return Settings()
