"""httpx-backed client for the OwnStak Console API.

This module is the **only** place in the codebase that imports
``httpx``.  Transport failures and non-success responses are caught here
and re-raised as typed :class:`~ownstak.exceptions.OwnstakError`
subclasses; nothing raw escapes the infrastructure boundary.

The client also satisfies :class:`~ownstak.core.protocols.SlugLookup`
structurally, resolving slugs over the listing endpoints.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from ownstak.core.models import (
    ApiKeyRequest,
    Deployment,
    DeploymentLink,
    DeploymentRequest,
    Environment,
    Organization,
    Permissions,
    Project,
    ResourceReference,
)
from ownstak.exceptions import (
    ApiConnectionError,
    ConsoleApiError,
    ConsoleResourceNotFoundError,
    ConsoleUnauthenticatedError,
    ConsoleUnauthorizedError,
)
from ownstak.settings import BRAND, get_settings
from ownstak.version import __version__

logger = logging.getLogger(__name__)

_STATUS_ERRORS: dict[int, type[ConsoleApiError]] = {
    401: ConsoleUnauthenticatedError,
    403: ConsoleUnauthorizedError,
    404: ConsoleResourceNotFoundError,
}

_DNS_SIGNALS: tuple[str, ...] = (
    "name or service not known",
    "nodename nor servname",
    "getaddrinfo failed",
    "temporary failure in name resolution",
)


class ConsoleClient:
    """Thin synchronous client for the Console REST API.

    Usage::

        with ConsoleClient(api_key="osk_...") as client:
            orgs = client.get_organizations()

    Parameters
    ----------
    api_url:
        Base URL; defaults to the ``api_url`` setting.
    api_key:
        Sent as a bearer token when given.
    transport:
        Optional httpx transport, used by tests to mock the API.
    """

    def __init__(
        self,
        api_url: str | None = None,
        api_key: str | None = None,
        *,
        timeout: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        settings = get_settings()
        self.base_url: str = (api_url or settings.api_url).rstrip("/")
        headers = {
            "User-Agent": f"{BRAND} CLI {__version__}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"
        self._http = httpx.Client(
            base_url=self.base_url,
            headers=headers,
            timeout=timeout if timeout is not None else settings.request_timeout,
            transport=transport,
        )

    def __enter__(self) -> ConsoleClient:
        return self

    def __exit__(self, *_args: object) -> None:
        self.close()

    def close(self) -> None:
        self._http.close()

    # ------------------------------------------------------------------
    # Listing
    # ------------------------------------------------------------------

    def get_organizations(self) -> list[Organization]:
        return [
            Organization(
                id=str(raw["id"]),
                name=str(raw.get("name", raw["slug"])),
                slug=str(raw["slug"]),
                description=raw.get("description"),
                created_at=raw.get("created_at"),
                updated_at=raw.get("updated_at"),
            )
            for raw in self._get_list("/api/organizations")
        ]

    def get_projects(self, organization_id: str) -> list[Project]:
        return [
            Project(
                id=str(raw["id"]),
                name=str(raw.get("name", raw["slug"])),
                slug=str(raw["slug"]),
                organization_id=str(raw.get("organization_id", organization_id)),
                description=raw.get("description"),
                created_at=raw.get("created_at"),
                updated_at=raw.get("updated_at"),
            )
            for raw in self._get_list(f"/api/organizations/{organization_id}/projects")
        ]

    def get_environments(self, project_id: str) -> list[Environment]:
        return [
            Environment(
                id=str(raw["id"]),
                name=str(raw.get("name", raw["slug"])),
                slug=str(raw["slug"]),
                project_id=str(raw.get("project_id", project_id)),
                description=raw.get("description"),
                created_at=raw.get("created_at"),
                updated_at=raw.get("updated_at"),
            )
            for raw in self._get_list(f"/api/projects/{project_id}/environments")
        ]

    # ------------------------------------------------------------------
    # Deployments
    # ------------------------------------------------------------------

    def create_deployment(self, environment_id: str, request: DeploymentRequest) -> Deployment:
        data = self._request(
            "POST",
            f"/api/environments/{environment_id}/deployments",
            json=request.to_payload(),
        )
        return _parse_deployment(data)

    def deploy_deployment(self, deployment_id: str) -> Deployment:
        data = self._request("POST", f"/api/deployments/{deployment_id}/deploy")
        return _parse_deployment(data)

    # ------------------------------------------------------------------
    # Login support
    # ------------------------------------------------------------------

    def create_api_key_request(self, *, client_name: str, name: str) -> ApiKeyRequest:
        data = self._request(
            "POST",
            "/api/api_key_requests",
            json={"client_name": client_name, "name": name},
        )
        return _parse_api_key_request(data)

    def get_api_key_request(self, request_id: str) -> ApiKeyRequest:
        return _parse_api_key_request(self._request("GET", f"/api/api_key_requests/{request_id}"))

    def retrieve_api_key(self, request_id: str, secret: str) -> str:
        data = self._request(
            "POST",
            f"/api/api_key_requests/{request_id}/retrieve",
            json={"secret": secret},
        )
        return str(data["token"])

    # ------------------------------------------------------------------
    # SlugLookup protocol
    # ------------------------------------------------------------------

    def lookup_organization(self, slug: str) -> ResourceReference | None:
        return _find_slug(self._get_list("/api/organizations"), slug)

    def lookup_project(
        self, organization: ResourceReference, slug: str,
    ) -> ResourceReference | None:
        return _find_slug(
            self._get_list(f"/api/organizations/{organization.id}/projects"), slug,
        )

    def lookup_environment(
        self, project: ResourceReference, slug: str,
    ) -> ResourceReference | None:
        return _find_slug(
            self._get_list(f"/api/projects/{project.id}/environments"), slug,
        )

    def lookup_environment_cloud_backend(
        self, environment: ResourceReference, slug: str,
    ) -> ResourceReference | None:
        return _find_slug(
            self._get_list(f"/api/environments/{environment.id}/cloud_backends"), slug,
        )

    def lookup_organization_cloud_backend(
        self, organization: ResourceReference, slug: str,
    ) -> ResourceReference | None:
        return _find_slug(
            self._get_list(f"/api/organizations/{organization.id}/cloud_backends"), slug,
        )

    # ------------------------------------------------------------------
    # Transport (safe boundary)
    # ------------------------------------------------------------------

    def _get_list(self, path: str) -> list[dict[str, Any]]:
        data = self._request("GET", path)
        if not isinstance(data, list):
            raise ConsoleApiError(200, f"Expected a list from {path}", "invalid_response")
        return [entry for entry in data if isinstance(entry, dict)]

    def _request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
    ) -> Any:
        logger.debug("HTTP %s %s%s", method, self.base_url, path)
        try:
            response = self._http.request(method, path, json=json)
        except httpx.TimeoutException as exc:
            raise ApiConnectionError(
                "The API server did not respond in time", self.base_url,
            ) from exc
        except httpx.ConnectError as exc:
            if any(signal in str(exc).lower() for signal in _DNS_SIGNALS):
                raise ApiConnectionError("The API server was not found", self.base_url) from exc
            raise ApiConnectionError(
                "Failed to connect to the API server", self.base_url,
                hint="Check your network connection and the --api-url option.",
            ) from exc
        except (httpx.RemoteProtocolError, httpx.ReadError) as exc:
            raise ApiConnectionError(
                "Connection was reset by the API server", self.base_url,
            ) from exc
        except httpx.HTTPError as exc:
            raise ApiConnectionError(str(exc) or type(exc).__name__, self.base_url) from exc

        logger.debug("Response %s", response.status_code)
        if response.is_error:
            self._raise_mapped(response)
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise ConsoleApiError(
                response.status_code, "The API returned invalid JSON", "invalid_response",
            ) from exc

    @staticmethod
    def _raise_mapped(response: httpx.Response) -> None:
        """Translate an error response into a typed exception.  Always raises."""
        error = response.reason_phrase or "Request failed"
        code = "unknown"
        try:
            payload = response.json()
        except ValueError:
            payload = None
        if isinstance(payload, dict):
            error = str(payload.get("error", error))
            code = str(payload.get("code", code))
        elif response.text:
            error = response.text

        error_class = _STATUS_ERRORS.get(response.status_code, ConsoleApiError)
        hint = None
        if error_class is ConsoleUnauthenticatedError:
            hint = "Your API key may be invalid or revoked. Run `ownstak login` again."
        raise error_class(response.status_code, error, code, hint=hint)


# ---------------------------------------------------------------------------
# Raw-dict → domain-model parsers (pure)
# ---------------------------------------------------------------------------

def _find_slug(entries: list[dict[str, Any]], slug: str) -> ResourceReference | None:
    for raw in entries:
        if raw.get("slug") == slug:
            return ResourceReference(
                id=str(raw["id"]),
                slug=str(raw["slug"]),
                can=Permissions.from_api(raw.get("can")),
            )
    return None


def _parse_deployment(data: Any) -> Deployment:
    if not isinstance(data, dict):
        raise ConsoleApiError(200, "Unexpected deployment payload", "invalid_response")
    links = tuple(
        DeploymentLink(
            backend=str(link.get("backend", "")),
            type=str(link.get("type", "")),
            url=str(link.get("url", "")),
        )
        for link in data.get("links") or []
        if isinstance(link, dict)
    )
    return Deployment(
        id=str(data["id"]),
        environment_id=str(data.get("environment_id", "")),
        build_number=str(data.get("build_number", "")),
        status=str(data.get("status", "")),
        console_url=data.get("console_url"),
        links=links,
    )


def _parse_api_key_request(data: Any) -> ApiKeyRequest:
    if not isinstance(data, dict):
        raise ConsoleApiError(200, "Unexpected API key request payload", "invalid_response")
    return ApiKeyRequest(
        id=str(data["id"]),
        status=str(data.get("status", "pending")),
        url=str(data.get("url", "")),
        secret=str(data.get("secret", "")),
        expires_at=str(data.get("expires_at", "")),
    )
