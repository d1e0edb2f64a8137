"""CLI application entry point and command routing for ownstak.

This module is the **sole error boundary** for the entire application.
It catches :class:`~ownstak.exceptions.OwnstakError`, ``KeyboardInterrupt``,
and any unexpected ``Exception``, rendering user-friendly messages via Rich
and returning well-defined exit codes.

Architecture notes
------------------
* No business logic lives here; all work is delegated to the core and
  infrastructure layers.
* ``print()`` is used only for raw JSON output, which must reach stdout
  untouched by Rich markup; everything else goes through the console proxy.
* This module is the only place that translates between the domain world
  and the OS process exit code.
"""

from __future__ import annotations

import argparse
import dataclasses
import json
import sys
from collections.abc import Callable, Sequence
from typing import TYPE_CHECKING, Any

from ownstak.cli import exit_codes
from ownstak.cli.console import console
from ownstak.exceptions import OwnstakError, ResourceForbiddenError
from ownstak.logging import setup_logging
from ownstak.settings import NAME
from ownstak.version import __version__

if TYPE_CHECKING:
    from ownstak.infra.console_client import ConsoleClient


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------

def _add_auth_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--api-url", default=None, help="Console API URL.")
    parser.add_argument("--api-key", default=None, help="API key (skips stored credentials).")


def _add_slug_options(parser: argparse.ArgumentParser, *levels: str) -> None:
    for level in levels:
        parser.add_argument(f"--{level}", default=None, help=f"{level.replace('-', ' ').title()} slug.")


def _build_parser() -> argparse.ArgumentParser:
    """Construct the top-level argument parser with sub-commands."""
    parser = argparse.ArgumentParser(
        prog=NAME,
        description="Command-line client for the OwnStak deployment platform.",
    )
    parser.add_argument(
        "-V",
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logging.")
    sub = parser.add_subparsers(dest="command", metavar="<command>")

    login = sub.add_parser("login", help="Log in and store an API key.")
    _add_auth_options(login)

    logout = sub.add_parser("logout", help="Forget the stored API key.")
    logout.add_argument("--api-url", default=None, help="Console API URL.")

    config = sub.add_parser("config", help="Inspect the CLI config.")
    config_sub = config.add_subparsers(dest="config_command", metavar="<action>")
    config_sub.add_parser("print", help="Print the CLI config with keys masked.")

    orgs = sub.add_parser("organizations", help="List organizations.")
    _add_auth_options(orgs)

    projects = sub.add_parser("projects", help="List projects of an organization.")
    _add_auth_options(projects)
    _add_slug_options(projects, "organization")

    envs = sub.add_parser("environments", help="List environments of a project.")
    _add_auth_options(envs)
    _add_slug_options(envs, "organization", "project")

    resolve = sub.add_parser("resolve", help="Resolve slugs to IDs and permissions.")
    _add_auth_options(resolve)
    _add_slug_options(resolve, "organization", "project", "environment", "cloud-backend")
    resolve.add_argument("--json", action="store_true", help="Print the result as JSON.")

    deploy = sub.add_parser("deploy", help="Create and start a deployment.")
    _add_auth_options(deploy)
    _add_slug_options(deploy, "organization", "project", "environment")
    deploy.add_argument("--framework", default=None)
    deploy.add_argument("--runtime", default=None)
    deploy.add_argument("--memory", type=int, default=None, help="Memory in MiB.")
    deploy.add_argument("--timeout", type=int, default=None, help="Timeout in seconds.")
    deploy.add_argument("--arch", default=None)

    sub.add_parser("doctor", help="Run environment diagnostics.")
    return parser


# ---------------------------------------------------------------------------
# Wiring helpers
# ---------------------------------------------------------------------------

def _open_client(args: argparse.Namespace) -> ConsoleClient:
    """Authenticate (logging in if needed) and return a Console client."""
    from ownstak.cli.login import run_login
    from ownstak.core.authentication import AuthenticationGuard
    from ownstak.infra.cli_config import CliConfig
    from ownstak.infra.console_client import ConsoleClient

    config = CliConfig()
    guard = AuthenticationGuard(config, lambda api_url: run_login(api_url, config=config))
    credentials = guard.ensure_authenticated(args.api_url, args.api_key)
    return ConsoleClient(credentials.api_url, credentials.api_key)


def _require_slug(
    args: argparse.Namespace,
    level: str,
    choices_loader: Callable[[], Sequence[Any]],
) -> str:
    """Return ``--<level>``, prompting for it on a terminal when missing."""
    value = getattr(args, level.replace("-", "_"))
    if value:
        return value
    if not sys.stdin.isatty():
        raise OwnstakError(f"Missing required option --{level}.")
    from ownstak.cli.prompts import prompt_slug

    return prompt_slug(level, choices_loader())


# ---------------------------------------------------------------------------
# Command dispatch
# ---------------------------------------------------------------------------

def _handle_login(args: argparse.Namespace) -> int:
    from ownstak.cli.login import run_login

    run_login(args.api_url, args.api_key)
    return exit_codes.SUCCESS


def _handle_logout(args: argparse.Namespace) -> int:
    from ownstak.cli.login import run_logout

    run_logout(args.api_url)
    return exit_codes.SUCCESS


def _handle_config(args: argparse.Namespace) -> int:
    from ownstak.infra.cli_config import CliConfig

    if args.config_command != "print":
        console.print(f"Usage: {NAME} config print")
        return exit_codes.GENERAL_ERROR
    config = CliConfig()
    console.print(f"[dim]{config.path}[/dim]")
    print(json.dumps(config.to_dict(masked=True), indent=2))
    return exit_codes.SUCCESS


def _handle_organizations(args: argparse.Namespace) -> int:
    from ownstak.cli.render import print_organizations

    with _open_client(args) as client:
        print_organizations(client.get_organizations())
    return exit_codes.SUCCESS


def _handle_projects(args: argparse.Namespace) -> int:
    from ownstak.cli.render import print_projects
    from ownstak.core.resolution import SlugResolver

    with _open_client(args) as client:
        org_slug = _require_slug(args, "organization", client.get_organizations)
        resolution = SlugResolver(client).resolve_organization(org_slug)
        print_projects(client.get_projects(resolution.organization.id))
    return exit_codes.SUCCESS


def _handle_environments(args: argparse.Namespace) -> int:
    from ownstak.cli.render import print_environments
    from ownstak.core.resolution import SlugResolver

    with _open_client(args) as client:
        resolver = SlugResolver(client)
        org_slug = _require_slug(args, "organization", client.get_organizations)
        org = resolver.resolve_organization(org_slug)
        project_slug = _require_slug(
            args, "project", lambda: client.get_projects(org.organization.id),
        )
        resolution = resolver.resolve_project_in(org, project_slug)
        print_environments(client.get_environments(resolution.project.id))
    return exit_codes.SUCCESS


def _handle_resolve(args: argparse.Namespace) -> int:
    from ownstak.cli.render import print_resolution
    from ownstak.core.resolution import SlugResolver

    if not args.organization:
        raise OwnstakError("Missing required option --organization.")
    with _open_client(args) as client:
        try:
            resolution = SlugResolver(client).resolve(
                args.organization, args.project, args.environment, args.cloud_backend,
            )
        except ValueError as exc:
            raise OwnstakError(str(exc)) from exc

    if args.json:
        print(json.dumps(dataclasses.asdict(resolution), indent=2))
    else:
        print_resolution(resolution)
    return exit_codes.SUCCESS


def _handle_deploy(args: argparse.Namespace) -> int:
    """Resolve the target environment and start a deployment.

    Flow:
    1. Authenticate (interactive login if no key is stored).
    2. Resolve organization → project → environment, prompting for
       missing slugs on a terminal.
    3. Require ``update`` on the environment.
    4. Create the deployment, then trigger it.
    """
    from ownstak.cli.render import print_deployment
    from ownstak.core.models import DeploymentRequest
    from ownstak.core.resolution import SlugResolver

    overrides = {
        key: value
        for key, value in (
            ("framework", args.framework),
            ("runtime", args.runtime),
            ("memory", args.memory),
            ("timeout", args.timeout),
            ("arch", args.arch),
        )
        if value is not None
    }
    try:
        request = DeploymentRequest(cli_version=__version__, **overrides)
    except ValueError as exc:
        raise OwnstakError(str(exc)) from exc

    with _open_client(args) as client:
        resolver = SlugResolver(client)
        org_slug = _require_slug(args, "organization", client.get_organizations)
        org = resolver.resolve_organization(org_slug)
        project_slug = _require_slug(
            args, "project", lambda: client.get_projects(org.organization.id),
        )
        project = resolver.resolve_project_in(org, project_slug)
        env_slug = _require_slug(
            args, "environment", lambda: client.get_environments(project.project.id),
        )
        resolution = resolver.resolve_environment_in(project, env_slug)

        if not resolution.environment.can.update:
            raise ResourceForbiddenError(
                "environment", resolution.environment.slug, action="update",
                hint="Ask a project owner for deploy access.",
            )

        console.print(
            f"\n[bold]Deploying to[/bold] {org_slug}/{project_slug}/{env_slug}…\n"
        )
        deployment = client.create_deployment(resolution.environment.id, request)
        deployment = client.deploy_deployment(deployment.id)

    print_deployment(deployment)
    console.print("\n[bold green]Deployment started.[/bold green]")
    return exit_codes.SUCCESS


def _handle_doctor(_args: argparse.Namespace) -> int:
    """Dispatch the ``doctor`` diagnostics command."""
    from ownstak.cli.doctor import run_doctor

    return run_doctor()


_HANDLERS = {
    "login": _handle_login,
    "logout": _handle_logout,
    "config": _handle_config,
    "organizations": _handle_organizations,
    "projects": _handle_projects,
    "environments": _handle_environments,
    "resolve": _handle_resolve,
    "deploy": _handle_deploy,
    "doctor": _handle_doctor,
}


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------

def main(argv: list[str] | None = None) -> int:
    """Run the ownstak CLI.

    Parameters
    ----------
    argv:
        Explicit argument list.  When ``None`` (default), ``sys.argv[1:]``
        is used.  Accepting *argv* enables deterministic testing without
        monkeypatching.

    Returns
    -------
    int
        OS process exit code.
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return exit_codes.SUCCESS

    setup_logging(debug=args.debug)
    return _HANDLERS[args.command](args)


# ---------------------------------------------------------------------------
# Script-level error boundary
# ---------------------------------------------------------------------------

def cli() -> None:
    """Top-level error boundary invoked by the console-script entry point.

    This function wraps :func:`main` and guarantees the process never
    exits with a raw stack trace during normal usage.
    """
    try:
        code = main()
        sys.exit(code)
    except OwnstakError as exc:
        console.print(f"[bold red]Error:[/bold red] {exc}")
        if exc.hint:
            console.print(f"[yellow]Hint:[/yellow] {exc.hint}")
        if isinstance(exc, ResourceForbiddenError):
            sys.exit(exit_codes.PERMISSION_DENIED)
        sys.exit(exit_codes.GENERAL_ERROR)
    except KeyboardInterrupt:
        console.print("\n[yellow]Aborted by user.[/yellow]")
        sys.exit(exit_codes.KEYBOARD_INTERRUPT)
    except Exception as exc:  # noqa: BLE001
        console.print(
            "[bold red]Unexpected error.[/bold red] "
            "Please report this issue.\n"
            f"  {type(exc).__name__}: {exc}"
        )
        sys.exit(exit_codes.UNEXPECTED_ERROR)
