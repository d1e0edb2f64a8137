"""``ownstak login`` / ``ownstak logout`` — API key acquisition.

Interactive flow:

1. Create an API key request and show its approval link.
2. Poll until the request is approved or the link expires.
3. Retrieve the key with the request secret.
4. Validate the key by listing organizations, then persist it.

An explicitly passed ``--api-key`` skips steps 1-3.
"""

from __future__ import annotations

import logging
import socket
import time
from collections.abc import Callable
from datetime import datetime, timezone

from ownstak.cli.console import console
from ownstak.exceptions import ConsoleApiError, LoginError
from ownstak.infra.cli_config import CliConfig, mask_api_key
from ownstak.infra.console_client import ConsoleClient
from ownstak.settings import BRAND, NAME
from ownstak.version import __version__

logger = logging.getLogger(__name__)

POLL_INTERVAL_SECONDS: float = 2.0


def run_login(
    api_url: str | None = None,
    api_key: str | None = None,
    *,
    config: CliConfig | None = None,
    client_factory: Callable[..., ConsoleClient] = ConsoleClient,
    sleep: Callable[[float], None] = time.sleep,
    now: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
) -> str:
    """Log in and persist the API key; return the key.

    Raises
    ------
    LoginError
        If the link expires, or the obtained key is rejected.
    """
    config = config or CliConfig()
    resolved_url = api_url or config.api_url

    existing = config.get_api_key(resolved_url)
    if existing:
        console.print(f"You're already logged in to {BRAND}.")
        console.print(f"API key: [cyan]{mask_api_key(existing)}[/cyan]")
        console.print(f"API URL: [cyan]{resolved_url}[/cyan]")
        console.print(
            f"[dim]To use a different account, run `{NAME} logout` first.[/dim]"
        )
        return existing

    if not api_key:
        api_key = _acquire_interactively(resolved_url, client_factory, sleep, now)

    with client_factory(resolved_url, api_key) as client:
        try:
            client.get_organizations()
        except ConsoleApiError as exc:
            raise LoginError(
                f"Invalid API key: {exc}",
                hint="Check your API key and try again.",
            ) from exc

    config.set_api_key(api_key, resolved_url)
    config.save()
    console.print(f"[bold green]Successfully logged in to {BRAND}.[/bold green]")
    return api_key


def run_logout(api_url: str | None = None, *, config: CliConfig | None = None) -> bool:
    """Forget the stored key; return whether one was removed."""
    config = config or CliConfig()
    removed = config.delete_api_key(api_url)
    if removed:
        config.save()
        console.print(f"[bold green]Logged out of {BRAND}.[/bold green]")
    else:
        console.print(f"You're not logged in to {BRAND}.")
    return removed


def _acquire_interactively(
    api_url: str,
    client_factory: Callable[..., ConsoleClient],
    sleep: Callable[[float], None],
    now: Callable[[], datetime],
) -> str:
    device = socket.gethostname()
    with client_factory(api_url) as client:
        request = client.create_api_key_request(
            client_name=f"{BRAND} CLI v{__version__}",
            name=f"{BRAND} CLI on {device}",
        )
        expires_at = _parse_timestamp(request.expires_at)
        secret = request.secret

        console.print(
            "Please open the link below in your browser and follow the instructions."
        )
        if expires_at is not None:
            console.print(f"The link expires at [dim]{expires_at.astimezone():%H:%M:%S}[/dim].")
        console.print(f"Link: [cyan underline]{request.url}[/cyan underline]\n")
        console.print("[dim]Waiting for authentication to complete…[/dim]")

        while not request.approved:
            if expires_at is not None and now() >= expires_at:
                raise LoginError(
                    "The link has expired.",
                    hint=f"Run `{NAME} login` again.",
                )
            sleep(POLL_INTERVAL_SECONDS)
            request = client.get_api_key_request(request.id)
            logger.debug("API key request %s is %s", request.id, request.status)

        api_key = client.retrieve_api_key(request.id, secret)

    if not api_key:
        raise LoginError("Failed to authenticate. Please try again.")
    console.print("[green]Authentication complete![/green]")
    return api_key


def _parse_timestamp(value: str) -> datetime | None:
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        logger.debug("Unparseable expiry timestamp %r", value)
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
