"""Allow ``python -m ownstak`` invocation.

Delegates to the CLI error-boundary entry point so that
``python -m ownstak`` behaves identically to the ``ownstak`` console
script.
"""

from __future__ import annotations

from ownstak.cli.app import cli

if __name__ == "__main__":
    cli()
