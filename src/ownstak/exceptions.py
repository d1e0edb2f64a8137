"""Custom exception hierarchy for the ownstak CLI.

All exceptions that reach the CLI error boundary must inherit from
:class:`OwnstakError`.  Raw transport exceptions (e.g. from httpx) must
NEVER propagate beyond the infrastructure layer; they are caught there
and re-raised as a typed subclass defined here.

Compute invocation failures live in a separate family
(:mod:`ownstak.compute.errors`) because they are rendered into proxy
responses, never printed directly.

Hierarchy
---------
OwnstakError
├── ResourceNotFoundError
├── ResourceForbiddenError
├── MissingCredentialsError
├── LoginError
├── ConfigError
├── ApiConnectionError
├── ConsoleApiError
│   ├── ConsoleUnauthenticatedError
│   ├── ConsoleUnauthorizedError
│   └── ConsoleResourceNotFoundError
└── EnvironmentError
"""

from __future__ import annotations


class OwnstakError(Exception):
    """Base exception for all ownstak errors.

    Every user-visible error condition maps to a subclass of this
    exception so that the CLI error boundary can render a clean message
    without leaking internal stack traces.
    """

    def __init__(self, message: str, *, hint: str | None = None) -> None:
        super().__init__(message)
        self.hint: str | None = hint
        """Optional actionable guidance shown below the error message."""


# --- Slug resolution -------------------------------------------------------

class ResourceNotFoundError(OwnstakError):
    """Raised when a slug does not exist under its resolved parent."""

    def __init__(
        self,
        level: str,
        slug: str,
        *,
        hint: str | None = None,
    ) -> None:
        super().__init__(f"The {level} '{slug}' was not found.", hint=hint)
        self.level: str = level
        self.slug: str = slug


class ResourceForbiddenError(OwnstakError):
    """Raised when a slug resolves but the caller may not read it."""

    def __init__(
        self,
        level: str,
        slug: str,
        *,
        action: str = "read",
        hint: str | None = None,
    ) -> None:
        super().__init__(
            f"You don't have permission to {action} the {level} '{slug}'.",
            hint=hint,
        )
        self.level: str = level
        self.slug: str = slug
        self.action: str = action


# --- Authentication --------------------------------------------------------

class MissingCredentialsError(OwnstakError):
    """Raised when no API key is available even after the login attempt."""


class LoginError(OwnstakError):
    """Raised when the interactive login flow cannot complete."""


# --- Configuration ---------------------------------------------------------

class ConfigError(OwnstakError):
    """Raised when the stored CLI config cannot be read or written."""


# --- Console API transport -------------------------------------------------

class ApiConnectionError(OwnstakError):
    """Raised when the Console API cannot be reached at all."""

    def __init__(self, message: str, base_url: str, *, hint: str | None = None) -> None:
        super().__init__(f"{message} [{base_url}]", hint=hint)
        self.base_url: str = base_url


class ConsoleApiError(OwnstakError):
    """Raised when the Console API answers with a non-success status."""

    def __init__(
        self,
        status_code: int,
        error: str,
        code: str,
        *,
        hint: str | None = None,
    ) -> None:
        super().__init__(f"[{status_code}] {error} ({code})", hint=hint)
        self.status_code: int = status_code
        self.error: str = error
        self.code: str = code


class ConsoleUnauthenticatedError(ConsoleApiError):
    """HTTP 401 — the API key is missing, invalid, or revoked."""


class ConsoleUnauthorizedError(ConsoleApiError):
    """HTTP 403 — the API key is valid but lacks access."""


class ConsoleResourceNotFoundError(ConsoleApiError):
    """HTTP 404 — the requested resource does not exist."""


# --- Environment / tooling -------------------------------------------------

class EnvironmentError(OwnstakError):
    """Raised when a required runtime dependency is not available."""
