"""Shared pytest fixtures and configuration for the ownstak test suite.

Guidelines
----------
* No internet access in any test.
* The Console API must be mocked at the infra boundary
  (``httpx.MockTransport``) or replaced by a ``MagicMock`` lookup.
* Core tests must be pure, with no side effects.
* Tests must not depend on OS state: the config directory always points
  into ``tmp_path``.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from pathlib import Path

import pytest

from ownstak.settings import get_settings

_ENV_VARS: tuple[str, ...] = (
    "OWNSTAK_API_URL",
    "OWNSTAK_CONSOLE_URL",
    "OWNSTAK_API_KEY",
    "OWNSTAK_LOG_LEVEL",
    "OWNSTAK_LOCAL",
    "LOG_LEVEL",
    "LOCAL",
)


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[Path]:
    """Point the CLI config at a temporary directory and reset settings."""
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    config_dir = tmp_path / ".ownstak"
    monkeypatch.setenv("OWNSTAK_CONFIG_DIR", str(config_dir))
    get_settings.cache_clear()
    yield config_dir
    get_settings.cache_clear()


@pytest.fixture(autouse=True)
def restore_ownstak_logger() -> Iterator[None]:
    """Undo handler, level and propagation changes made by ``setup_logging``."""
    logger = logging.getLogger("ownstak")
    handlers = list(logger.handlers)
    level = logger.level
    propagate = logger.propagate
    yield
    logger.handlers[:] = handlers
    logger.setLevel(level)
    logger.propagate = propagate
