"""Domain models for ownstak.

All models are **frozen** dataclasses: immutable value objects with no
behaviour beyond data access and small derived views.  Resolution
results are flat records built by composition: each level copies its
parent's references into its own fields instead of subclassing the
parent's type.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


# ---------------------------------------------------------------------------
# Permissions and resource references
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class Permissions:
    """Capability set attached to a resolved resource."""

    read: bool = False
    update: bool = False
    delete: bool = False

    @classmethod
    def from_api(cls, raw: Any) -> Permissions:
        """Parse the ``can`` object returned by the Console API.

        Missing keys are treated as not granted.  A missing ``can``
        object entirely is a listing entry the caller could see, so it
        carries ``read`` only.
        """
        if not isinstance(raw, dict):
            return cls(read=True)
        return cls(
            read=bool(raw.get("read", False)),
            update=bool(raw.get("update", False)),
            delete=bool(raw.get("delete", False)),
        )

    def allows(self, action: str) -> bool:
        """Return whether *action* (``read``/``update``/``delete``) is granted."""
        if action not in ("read", "update", "delete"):
            raise ValueError(f"Unknown permission action: {action!r}")
        return bool(getattr(self, action))


@dataclass(frozen=True, slots=True)
class ResourceReference:
    """One node of the authorization chain."""

    id: str
    """Opaque platform identifier."""

    slug: str
    """Human-readable identifier, unique under its parent."""

    can: Permissions
    """What the caller may do to this resource."""


# ---------------------------------------------------------------------------
# Resolution results
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class OrganizationResolution:
    organization: ResourceReference

    def with_project(self, project: ResourceReference) -> ProjectResolution:
        return ProjectResolution(organization=self.organization, project=project)

    def with_cloud_backend(
        self, cloud_backend: ResourceReference,
    ) -> OrganizationCloudBackendResolution:
        return OrganizationCloudBackendResolution(
            organization=self.organization,
            cloud_backend=cloud_backend,
        )


@dataclass(frozen=True, slots=True)
class ProjectResolution:
    organization: ResourceReference
    project: ResourceReference

    def with_environment(self, environment: ResourceReference) -> EnvironmentResolution:
        return EnvironmentResolution(
            organization=self.organization,
            project=self.project,
            environment=environment,
        )


@dataclass(frozen=True, slots=True)
class EnvironmentResolution:
    organization: ResourceReference
    project: ResourceReference
    environment: ResourceReference

    def with_cloud_backend(
        self, cloud_backend: ResourceReference,
    ) -> EnvironmentCloudBackendResolution:
        return EnvironmentCloudBackendResolution(
            organization=self.organization,
            project=self.project,
            environment=self.environment,
            cloud_backend=cloud_backend,
        )


@dataclass(frozen=True, slots=True)
class EnvironmentCloudBackendResolution:
    organization: ResourceReference
    project: ResourceReference
    environment: ResourceReference
    cloud_backend: ResourceReference


@dataclass(frozen=True, slots=True)
class OrganizationCloudBackendResolution:
    """A backend attached directly under an organization.

    Sibling of the project branch: it never carries a project or an
    environment.
    """

    organization: ResourceReference
    cloud_backend: ResourceReference


Resolution = (
    OrganizationResolution
    | ProjectResolution
    | EnvironmentResolution
    | EnvironmentCloudBackendResolution
    | OrganizationCloudBackendResolution
)


# ---------------------------------------------------------------------------
# Deployment request
# ---------------------------------------------------------------------------

DEFAULT_RUNTIME: str = "nodejs22.x"
DEFAULT_ARCH: str = "arm64"
DEFAULT_MEMORY: int = 1024
DEFAULT_TIMEOUT: int = 20


@dataclass(frozen=True, slots=True)
class DeploymentRequest:
    """Immutable description of a deployment to create.

    ``runtime`` and ``arch`` are platform identifiers validated by the
    Console API, not here.
    """

    cli_version: str
    runtime: str = DEFAULT_RUNTIME
    memory: int = DEFAULT_MEMORY
    timeout: int = DEFAULT_TIMEOUT
    arch: str = DEFAULT_ARCH
    framework: str | None = None

    def __post_init__(self) -> None:
        if self.memory <= 0:
            raise ValueError(f"memory must be positive, got {self.memory}")
        if self.timeout <= 0:
            raise ValueError(f"timeout must be positive, got {self.timeout}")

    def to_payload(self) -> dict[str, Any]:
        """Return the JSON body expected by the create-deployment endpoint."""
        payload: dict[str, Any] = {
            "cli_version": self.cli_version,
            "runtime": self.runtime,
            "memory": self.memory,
            "timeout": self.timeout,
            "arch": self.arch,
        }
        if self.framework is not None:
            payload["framework"] = self.framework
        return payload


# ---------------------------------------------------------------------------
# Listing entities
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class Organization:
    id: str
    name: str
    slug: str
    description: str | None = None
    created_at: str | None = None
    updated_at: str | None = None


@dataclass(frozen=True, slots=True)
class Project:
    id: str
    name: str
    slug: str
    organization_id: str
    description: str | None = None
    created_at: str | None = None
    updated_at: str | None = None


@dataclass(frozen=True, slots=True)
class Environment:
    id: str
    name: str
    slug: str
    project_id: str
    description: str | None = None
    created_at: str | None = None
    updated_at: str | None = None


@dataclass(frozen=True, slots=True)
class DeploymentLink:
    backend: str
    type: str
    url: str


@dataclass(frozen=True, slots=True)
class Deployment:
    """A deployment as returned by the Console API."""

    id: str
    environment_id: str
    build_number: str
    status: str
    console_url: str | None = None
    links: tuple[DeploymentLink, ...] = field(default_factory=tuple)


@dataclass(frozen=True, slots=True)
class ApiKeyRequest:
    """Pending browser-approved API key request used by ``login``."""

    id: str
    status: str
    url: str
    secret: str
    expires_at: str

    @property
    def approved(self) -> bool:
        return self.status == "approved"


@dataclass(frozen=True, slots=True)
class Credentials:
    """Credentials handed to commands by the authentication guard."""

    api_key: str
    api_url: str
