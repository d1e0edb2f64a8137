"""Authentication guard — make sure a usable API key exists.

The guard is a two-phase protocol:

1. :meth:`AuthenticationGuard.try_get_credential`: a pure lookup of the
   explicit key, then ``OWNSTAK_API_KEY``, then the stored config.
2. :meth:`AuthenticationGuard.trigger_interactive_login`: only when
   phase 1 found nothing; runs the injected login side effect and
   reloads the store.

A missing key after both phases is user-fatal and raised as
:class:`~ownstak.exceptions.MissingCredentialsError`; it is never folded
into the compute error taxonomy.
"""

from __future__ import annotations

import logging

from ownstak.core.models import Credentials
from ownstak.core.protocols import CredentialStore, InteractiveLogin
from ownstak.exceptions import MissingCredentialsError
from ownstak.settings import BRAND, NAME, get_settings

logger = logging.getLogger(__name__)


class AuthenticationGuard:
    """Resolve credentials for a command, logging in when necessary.

    Parameters
    ----------
    store:
        Persisted CLI config (read-only from the guard's perspective).
    login:
        Callable run when no key is found; it persists the new key.
    """

    def __init__(self, store: CredentialStore, login: InteractiveLogin) -> None:
        self._store: CredentialStore = store
        self._login: InteractiveLogin = login

    def try_get_credential(
        self, api_url: str | None = None, api_key: str | None = None,
    ) -> str | None:
        """Return the explicit key, the environment key, the stored one, or ``None``."""
        if api_key:
            return api_key
        env_key = get_settings().api_key
        if env_key is not None and env_key.get_secret_value():
            return env_key.get_secret_value()
        return self._store.get_api_key(api_url)

    def trigger_interactive_login(self, api_url: str | None = None) -> str | None:
        """Run the login side effect and return the freshly stored key."""
        logger.info("You'll need to login to %s first.", BRAND)
        self._login(api_url)
        self._store.reload()
        return self._store.get_api_key(api_url)

    def ensure_authenticated(
        self, api_url: str | None = None, api_key: str | None = None,
    ) -> Credentials:
        """Return credentials, triggering interactive login at most once.

        Raises
        ------
        MissingCredentialsError
            If no key exists after the login step.
        """
        resolved_url = api_url or self._store.api_url
        key = self.try_get_credential(api_url, api_key)
        if not key:
            key = self.trigger_interactive_login(api_url)
        if not key:
            raise MissingCredentialsError(
                "The API key is missing, possibly because the interactive "
                "login did not complete.",
                hint=(
                    f"Create a new API key at {get_settings().console_url}/settings "
                    f"and pass it manually, e.g. `{NAME} deploy --api-key <key>`."
                ),
            )
        return Credentials(api_key=key, api_url=resolved_url)
