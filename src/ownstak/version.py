"""Single source of truth for the package version."""

from __future__ import annotations

__version__: str = "0.4.2"
