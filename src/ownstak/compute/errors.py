"""Failure taxonomy for compute invocations.

Hierarchy
---------
BaseComputeError
├── ComputeError                      "Compute Error"                    500
│   ├── ComputeProjectError           "Project Error"                    534
│   └── ComputeReqRecursionError      "Request Recursion Error"          542
└── ProjectError                      "Project Error"                    540
    ├── ProjectTimeoutError           "Project Timeout Error"            541
    └── ProjectReqRecursionError      "Project Request Recursion Error"  543

Each class declares only its own ``defaults``.  The effective options of
an instance are merged explicitly: every ``defaults`` mapping along the
MRO from the most general class to the most specific one, then the
caller's overrides.  So a more specific variant always wins over a more
general one, and the caller wins over both.

Instances are finalized in ``__init__`` and never mutated afterwards;
they are rendered into a proxy response by
:func:`ownstak.compute.response.build_proxy_response`.
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import html
import json
import traceback
from typing import Any, ClassVar, Protocol, runtime_checkable

from ownstak.settings import BRAND, SUPPORT_URL, get_settings
from ownstak.version import __version__

STATUS_COMPUTE_ERROR: int = 500
STATUS_COMPUTE_PROJECT_ERROR: int = 534
STATUS_PROJECT_ERROR: int = 540
STATUS_PROJECT_TIMEOUT: int = 541
STATUS_REQUEST_RECURSION_ERROR: int = 542
STATUS_PROJECT_REQUEST_RECURSION_ERROR: int = 543


@runtime_checkable
class RenderableError(Protocol):
    """Anything that can be rendered into a proxy error response."""

    title: str
    status_code: int
    message: str

    def to_json(self, include_stack: bool | None = None) -> str:
        ...  # pragma: no cover

    def to_html(self, include_stack: bool | None = None) -> str:
        ...  # pragma: no cover


class BaseComputeError(Exception):
    """Shared construction and rendering for every compute failure."""

    defaults: ClassVar[dict[str, Any]] = {
        "title": "Compute Error",
        "status_code": STATUS_COMPUTE_ERROR,
    }
    default_message: ClassVar[str] = (
        f"An unknown error occurred in one of the {BRAND} components. "
        "Please see the stack trace in the logs for more details."
    )

    def __init__(
        self,
        message: str | None = None,
        *,
        title: str | None = None,
        status_code: int | None = None,
        cause: BaseException | None = None,
        request_id: str | None = None,
        version: str | None = None,
    ) -> None:
        options = self.merged_defaults()
        overrides = {"title": title, "status_code": status_code}
        options.update({key: value for key, value in overrides.items() if value is not None})

        self.message: str = message or self.default_message
        super().__init__(self.message)
        self.title: str = options["title"]
        self.status_code: int = int(options["status_code"])
        self.cause: BaseException | None = cause
        self.request_id: str | None = request_id
        self.version: str | None = version
        if cause is not None:
            self.__cause__ = cause

    @classmethod
    def merged_defaults(cls) -> dict[str, Any]:
        """Merge ``defaults`` from the most general class to *cls*."""
        merged: dict[str, Any] = {}
        for klass in reversed(cls.__mro__):
            merged.update(vars(klass).get("defaults", {}))
        return merged

    @classmethod
    def from_error(cls, exc: BaseException, *, request_id: str | None = None) -> BaseComputeError:
        """Return *exc* when it is already classified, else wrap it in *cls*."""
        if isinstance(exc, BaseComputeError):
            return exc
        return cls(str(exc) or None, cause=exc, request_id=request_id)

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    @property
    def component(self) -> str:
        return f"{BRAND} CLI v{self.version or __version__}"

    @staticmethod
    def can_include_stack() -> bool:
        settings = get_settings()
        return settings.log_level == "debug" or settings.local

    def stack_lines(self) -> list[str]:
        origin: BaseException = self.cause if self.cause is not None else self
        formatted = traceback.format_exception(type(origin), origin, origin.__traceback__)
        return "".join(formatted).rstrip("\n").split("\n")

    def to_dict(self, include_stack: bool | None = None) -> dict[str, Any]:
        if include_stack is None:
            include_stack = self.can_include_stack()
        data: dict[str, Any] = {
            "errorStatus": self.status_code,
            "errorTitle": self.title,
            "errorMessage": self.message,
        }
        if include_stack:
            data["errorStack"] = self.stack_lines()
        if self.request_id is not None:
            data["requestId"] = self.request_id
        data["component"] = self.component
        return data

    def to_json(self, include_stack: bool | None = None) -> str:
        return json.dumps(self.to_dict(include_stack), indent=2)

    def to_html(self, include_stack: bool | None = None) -> str:
        if include_stack is None:
            include_stack = self.can_include_stack()
        details = self.message
        if include_stack:
            details = "\n".join([self.message, *self.stack_lines()])
        return _HTML_TEMPLATE.format(
            status=self.status_code,
            title=html.escape(self.title),
            details=html.escape(details),
            request_id=html.escape(self.request_id or "UNKNOWN"),
            component=html.escape(self.component),
            support_url=SUPPORT_URL,
            brand=BRAND,
        )

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(title={self.title!r}, "
            f"status_code={self.status_code}, message={self.message!r})"
        )


# --- Platform-side failures -----------------------------------------------

class ComputeError(BaseComputeError):
    """Generic invocation failure."""


class ComputeProjectError(ComputeError):
    """Failure caused by the project's own configuration, not the platform."""

    defaults: ClassVar[dict[str, Any]] = {
        "title": "Project Error",
        "status_code": STATUS_COMPUTE_PROJECT_ERROR,
    }


class ComputeReqRecursionError(ComputeError):
    defaults: ClassVar[dict[str, Any]] = {
        "title": "Request Recursion Error",
        "status_code": STATUS_REQUEST_RECURSION_ERROR,
    }


# --- Project-scoped failures ----------------------------------------------

class ProjectError(BaseComputeError):
    """Failure raised by the deployed project's code."""

    defaults: ClassVar[dict[str, Any]] = {
        "title": "Project Error",
        "status_code": STATUS_PROJECT_ERROR,
    }


class ProjectTimeoutError(ProjectError):
    """Invocation exceeded the deployment's ``timeout`` bound."""

    defaults: ClassVar[dict[str, Any]] = {
        "title": "Project Timeout Error",
        "status_code": STATUS_PROJECT_TIMEOUT,
    }


class ProjectReqRecursionError(ProjectError):
    defaults: ClassVar[dict[str, Any]] = {
        "title": "Project Request Recursion Error",
        "status_code": STATUS_PROJECT_REQUEST_RECURSION_ERROR,
    }


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------

# Distinct classes before Python 3.11, aliases of TimeoutError afterwards.
_TIMEOUT_ERRORS: tuple[type[BaseException], ...] = (
    TimeoutError,
    asyncio.TimeoutError,
    concurrent.futures.TimeoutError,
)


def classify_failure(
    exc: BaseException,
    *,
    request_id: str | None = None,
    timeout: int | None = None,
) -> BaseComputeError:
    """Map any exception raised by an invocation to the taxonomy.

    Taxonomy errors are kept as raised, timeouts become
    :class:`ProjectTimeoutError` and anything else is wrapped in
    :class:`ProjectError` with the original chained as ``cause``.
    """
    if isinstance(exc, BaseComputeError):
        return exc
    if isinstance(exc, _TIMEOUT_ERRORS):
        message = (
            f"The project did not respond within the configured timeout of {timeout}s."
            if timeout is not None
            else str(exc) or None
        )
        return ProjectTimeoutError(message, cause=exc, request_id=request_id)
    return ProjectError.from_error(exc, request_id=request_id)


_HTML_TEMPLATE: str = """<!DOCTYPE html>
<html>
    <head>
        <title>Error {status}</title>
        <meta charset="UTF-8">
        <meta name="viewport" content="width=device-width, initial-scale=1.0">
    </head>
    <body>
        <h1>{status}</h1>
        <h2>This site is experiencing problems serving your request. If you are the site administrator, please see the error details below or contact <a href="{support_url}">{brand} support</a>.</h2>
        <div class="error">
            <div class="error-title"><i>Error:</i> {title}</div>
            <pre class="error-details">{details}</pre>
            <div class="error-footer">Request ID: {request_id}<br>Component: {component}</div>
        </div>
    </body>
</html>
"""
