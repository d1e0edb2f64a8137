"""Protocols (interfaces) consumed by the core layer.

These define the contracts that infrastructure adapters must satisfy.
Core code depends ONLY on these protocols, never on concrete
implementations.
"""

from __future__ import annotations

from typing import Protocol

from ownstak.core.models import ResourceReference


class SlugLookup(Protocol):
    """Contract for slug lookups against the Console API.

    Each method returns the matching :class:`ResourceReference`, or
    ``None`` when no resource with *slug* exists under the given parent.
    Lookups are pure reads with no side effects.
    """

    def lookup_organization(self, slug: str) -> ResourceReference | None:
        ...  # pragma: no cover

    def lookup_project(
        self, organization: ResourceReference, slug: str,
    ) -> ResourceReference | None:
        ...  # pragma: no cover

    def lookup_environment(
        self, project: ResourceReference, slug: str,
    ) -> ResourceReference | None:
        ...  # pragma: no cover

    def lookup_environment_cloud_backend(
        self, environment: ResourceReference, slug: str,
    ) -> ResourceReference | None:
        ...  # pragma: no cover

    def lookup_organization_cloud_backend(
        self, organization: ResourceReference, slug: str,
    ) -> ResourceReference | None:
        ...  # pragma: no cover


class CredentialStore(Protocol):
    """Read side of the persisted CLI config."""

    api_url: str
    """API URL used when a command does not pass one."""

    def get_api_key(self, api_url: str | None = None) -> str | None:
        """Return the stored key for *api_url* (default URL when ``None``)."""
        ...  # pragma: no cover

    def reload(self) -> None:
        """Re-read the backing storage, discarding cached values."""
        ...  # pragma: no cover


class InteractiveLogin(Protocol):
    """Side-effecting login step run only when no credential exists.

    Implementations persist the obtained key into the credential store
    and raise :class:`~ownstak.exceptions.OwnstakError` subclasses on
    failure.
    """

    def __call__(self, api_url: str | None) -> None:
        ...  # pragma: no cover
