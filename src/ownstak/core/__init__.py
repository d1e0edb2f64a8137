"""Core / service layer — authorization chain and credential resolution.

Rules
-----
* No ``print()`` calls.
* No filesystem or network I/O; external systems are reached only
  through the protocols in :mod:`ownstak.core.protocols`.
* No imports from ``cli`` or ``infra``.
"""

from ownstak.core.authentication import AuthenticationGuard
from ownstak.core.models import (
    Credentials,
    DeploymentRequest,
    EnvironmentCloudBackendResolution,
    EnvironmentResolution,
    OrganizationCloudBackendResolution,
    OrganizationResolution,
    Permissions,
    ProjectResolution,
    ResourceReference,
)
from ownstak.core.protocols import CredentialStore, InteractiveLogin, SlugLookup
from ownstak.core.resolution import SlugResolver

__all__: list[str] = [
    "AuthenticationGuard",
    "CredentialStore",
    "Credentials",
    "DeploymentRequest",
    "EnvironmentCloudBackendResolution",
    "EnvironmentResolution",
    "InteractiveLogin",
    "OrganizationCloudBackendResolution",
    "OrganizationResolution",
    "Permissions",
    "ProjectResolution",
    "ResourceReference",
    "SlugLookup",
    "SlugResolver",
]
