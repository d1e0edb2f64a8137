"""Slug resolution chain: organization → project → environment → backend.

Every step takes the parent's resolution, looks up one slug under the
parent's resource, checks ``read`` on the result, and returns the parent
extended with the new reference.  The first missing or unreadable level
stops the chain; nothing below it is looked up and no partial result is
returned.

Guarantees
----------
* Pure orchestration: lookups go through the injected
  :class:`~ownstak.core.protocols.SlugLookup`.
* Only :class:`~ownstak.exceptions.OwnstakError` subclasses escape.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from ownstak.core.models import (
    EnvironmentCloudBackendResolution,
    EnvironmentResolution,
    OrganizationCloudBackendResolution,
    OrganizationResolution,
    ProjectResolution,
    ResourceReference,
    Resolution,
)
from ownstak.core.protocols import SlugLookup
from ownstak.exceptions import (
    ConsoleResourceNotFoundError,
    ConsoleUnauthorizedError,
    OwnstakError,
    ResourceForbiddenError,
    ResourceNotFoundError,
)

logger = logging.getLogger(__name__)


class SlugResolver:
    """Stateless service resolving slug paths to authorized references.

    Parameters
    ----------
    lookup:
        Any object satisfying the :class:`SlugLookup` protocol.
    """

    def __init__(self, lookup: SlugLookup) -> None:
        self._lookup: SlugLookup = lookup

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def resolve_organization(self, organization: str) -> OrganizationResolution:
        ref = self._step(
            "organization", organization,
            lambda slug: self._lookup.lookup_organization(slug),
        )
        return OrganizationResolution(organization=ref)

    def resolve_project(self, organization: str, project: str) -> ProjectResolution:
        return self.resolve_project_in(self.resolve_organization(organization), project)

    def resolve_environment(
        self, organization: str, project: str, environment: str,
    ) -> EnvironmentResolution:
        return self.resolve_environment_in(
            self.resolve_project(organization, project), environment,
        )

    def resolve_environment_cloud_backend(
        self, organization: str, project: str, environment: str, cloud_backend: str,
    ) -> EnvironmentCloudBackendResolution:
        return self.resolve_environment_cloud_backend_in(
            self.resolve_environment(organization, project, environment), cloud_backend,
        )

    def resolve_organization_cloud_backend(
        self, organization: str, cloud_backend: str,
    ) -> OrganizationCloudBackendResolution:
        return self.resolve_organization_cloud_backend_in(
            self.resolve_organization(organization), cloud_backend,
        )

    # Extending an already resolved parent; the parent is not looked up again.

    def resolve_project_in(
        self, parent: OrganizationResolution, project: str,
    ) -> ProjectResolution:
        ref = self._step(
            "project", project,
            lambda slug: self._lookup.lookup_project(parent.organization, slug),
        )
        return parent.with_project(ref)

    def resolve_environment_in(
        self, parent: ProjectResolution, environment: str,
    ) -> EnvironmentResolution:
        ref = self._step(
            "environment", environment,
            lambda slug: self._lookup.lookup_environment(parent.project, slug),
        )
        return parent.with_environment(ref)

    def resolve_environment_cloud_backend_in(
        self, parent: EnvironmentResolution, cloud_backend: str,
    ) -> EnvironmentCloudBackendResolution:
        ref = self._step(
            "cloud backend", cloud_backend,
            lambda slug: self._lookup.lookup_environment_cloud_backend(
                parent.environment, slug,
            ),
        )
        return parent.with_cloud_backend(ref)

    def resolve_organization_cloud_backend_in(
        self, parent: OrganizationResolution, cloud_backend: str,
    ) -> OrganizationCloudBackendResolution:
        ref = self._step(
            "cloud backend", cloud_backend,
            lambda slug: self._lookup.lookup_organization_cloud_backend(
                parent.organization, slug,
            ),
        )
        return parent.with_cloud_backend(ref)

    def resolve(
        self,
        organization: str | None,
        project: str | None = None,
        environment: str | None = None,
        cloud_backend: str | None = None,
    ) -> Resolution:
        """Resolve whatever partial path was supplied.

        A cloud backend without project and environment resolves against
        the organization branch.

        Raises
        ------
        ValueError
            If a level is given without its parent (e.g. an environment
            without a project).
        ResourceNotFoundError
            If a slug does not exist under its resolved parent.
        ResourceForbiddenError
            If the caller lacks ``read`` on a resolved level.
        """
        if organization is None:
            raise ValueError("A resource slug requires an organization slug.")
        if environment is not None and project is None:
            raise ValueError("An environment slug requires a project slug.")

        if project is None:
            if cloud_backend is not None:
                return self.resolve_organization_cloud_backend(organization, cloud_backend)
            return self.resolve_organization(organization)
        if environment is None:
            if cloud_backend is not None:
                raise ValueError("A cloud backend under a project requires an environment slug.")
            return self.resolve_project(organization, project)
        if cloud_backend is None:
            return self.resolve_environment(organization, project, environment)
        return self.resolve_environment_cloud_backend(
            organization, project, environment, cloud_backend,
        )

    # ------------------------------------------------------------------
    # Single level
    # ------------------------------------------------------------------

    @staticmethod
    def _step(
        level: str,
        slug: str,
        lookup: Callable[[str], ResourceReference | None],
    ) -> ResourceReference:
        """Look up one level and enforce ``read`` on it."""
        slug = slug.strip()
        if not slug:
            raise ResourceNotFoundError(level, slug)

        logger.debug("Resolving %s '%s'", level, slug)
        try:
            ref: ResourceReference | None = lookup(slug)
        except ConsoleResourceNotFoundError as exc:
            raise ResourceNotFoundError(level, slug) from exc
        except ConsoleUnauthorizedError as exc:
            raise ResourceForbiddenError(level, slug) from exc
        except OwnstakError:
            raise
        except Exception as exc:
            raise OwnstakError(f"Unexpected error while resolving {level} '{slug}': {exc}") from exc

        if ref is None:
            raise ResourceNotFoundError(
                level, slug,
                hint=f"Check the {level} slug for typos.",
            )
        if not ref.can.read:
            raise ResourceForbiddenError(
                level, slug,
                hint="Ask an owner of the resource to grant you access.",
            )
        return ref
