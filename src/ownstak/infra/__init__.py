"""Infrastructure layer — external system integration.

This layer wraps the Console API (over httpx) and the on-disk CLI
config.  Every raw third-party exception is caught here and re-raised as
an :class:`~ownstak.exceptions.OwnstakError` subclass.

Rules
-----
* No imports from ``cli``.
* No user-facing output (no ``print()``, no Rich rendering).
"""

from ownstak.infra.cli_config import CliConfig, mask_api_key
from ownstak.infra.console_client import ConsoleClient

__all__: list[str] = [
    "CliConfig",
    "ConsoleClient",
    "mask_api_key",
]
