"""Interactive slug selection for the CLI layer.

Used by ``deploy`` when an organization, project or environment slug
was not passed on the command line and stdin is a terminal.  Prompts via
questionary arrow keys and returns the chosen slug.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from ownstak.exceptions import EnvironmentError, OwnstakError


def _import_questionary() -> Any:
    """Import questionary lazily for interactive selection."""
    try:
        import questionary
    except ModuleNotFoundError as exc:
        raise EnvironmentError(
            "questionary is not installed. Install with: pip install questionary",
        ) from exc
    return questionary


def build_choice_label(slug: str, name: str) -> str:
    """Build the single-line label shown in the selector.

    Format: ``"acme            (Acme Inc.)"``
    """
    if not name or name == slug:
        return slug
    return f"{slug:<16} ({name})"


def prompt_slug(level: str, entries: Sequence[Any]) -> str:
    """Ask the user to pick one of *entries* (objects with ``slug``/``name``).

    A single entry is returned without prompting.

    Raises
    ------
    OwnstakError
        If there is nothing to choose from, or the prompt was cancelled.
    """
    if not entries:
        raise OwnstakError(
            f"No {level}s are available to choose from.",
            hint=f"Create one in the console or pass --{level} explicitly.",
        )
    if len(entries) == 1:
        return str(entries[0].slug)

    questionary = _import_questionary()
    choices = [
        questionary.Choice(title=build_choice_label(entry.slug, entry.name), value=entry.slug)
        for entry in entries
    ]
    selected: str | None = questionary.select(
        f"Select {level}:",
        choices=choices,
        use_arrow_keys=True,
        use_shortcuts=False,
    ).ask()  # Returns None on Ctrl+C / Esc

    if selected is None:
        raise OwnstakError(
            f"No {level} selected.",
            hint="Use arrow keys to pick an entry, then press Enter.",
        )
    return selected
