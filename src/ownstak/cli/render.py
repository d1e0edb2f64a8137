"""Rich table rendering for listing and resolution commands.

All display-related logic lives here; it makes no API calls.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from ownstak.cli.console import output
from ownstak.core.models import (
    Deployment,
    Environment,
    Organization,
    Permissions,
    Project,
    ResourceReference,
    Resolution,
)
from ownstak.exceptions import EnvironmentError


def _import_rich_table() -> type[Any]:
    """Import rich table lazily for rendering."""
    try:
        from rich.table import Table
    except ModuleNotFoundError as exc:
        raise EnvironmentError(
            "rich is not installed. Install with: pip install rich",
        ) from exc
    return Table


# ---------------------------------------------------------------------------
# Presentation helpers (pure transforms, no I/O)
# ---------------------------------------------------------------------------

def format_permissions(can: Permissions) -> str:
    """Render a permission set as ``read, update`` or ``none``."""
    granted = [name for name in ("read", "update", "delete") if getattr(can, name)]
    return ", ".join(granted) if granted else "none"


def resolution_rows(resolution: Resolution) -> list[tuple[str, ResourceReference]]:
    """Return ``(level, reference)`` pairs, top level first."""
    rows: list[tuple[str, ResourceReference]] = []
    for level in ("organization", "project", "environment", "cloud_backend"):
        ref = getattr(resolution, level, None)
        if ref is not None:
            rows.append((level.replace("_", " "), ref))
    return rows


# ---------------------------------------------------------------------------
# Tables
# ---------------------------------------------------------------------------

def _new_table(title: str, columns: Sequence[str]) -> Any:
    table_class = _import_rich_table()
    table = table_class(
        title=title,
        show_header=True,
        header_style="bold magenta",
        border_style="dim",
    )
    for column in columns:
        table.add_column(column)
    return table


def print_organizations(organizations: Sequence[Organization]) -> None:
    table = _new_table("Organizations", ("Slug", "Name", "ID"))
    for org in organizations:
        table.add_row(org.slug, org.name, org.id)
    output.print(table)


def print_projects(projects: Sequence[Project]) -> None:
    table = _new_table("Projects", ("Slug", "Name", "ID"))
    for project in projects:
        table.add_row(project.slug, project.name, project.id)
    output.print(table)


def print_environments(environments: Sequence[Environment]) -> None:
    table = _new_table("Environments", ("Slug", "Name", "ID"))
    for env in environments:
        table.add_row(env.slug, env.name, env.id)
    output.print(table)


def print_resolution(resolution: Resolution) -> None:
    table = _new_table("Resolved resources", ("Level", "Slug", "ID", "Permissions"))
    for level, ref in resolution_rows(resolution):
        table.add_row(level, ref.slug, ref.id, format_permissions(ref.can))
    output.print(table)


def print_deployment(deployment: Deployment) -> None:
    output.print(f"[bold]Deployment:[/bold]   {deployment.id}")
    output.print(f"[bold]Build:[/bold]        #{deployment.build_number}")
    output.print(f"[bold]Status:[/bold]       {deployment.status}")
    for link in deployment.links:
        output.print(f"[bold]{link.type.title()} URL:[/bold] [cyan]{link.url}[/cyan]")
    if deployment.console_url:
        output.print(f"[bold]Console:[/bold]      [cyan]{deployment.console_url}[/cyan]")
