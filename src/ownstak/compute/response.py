"""Proxy response shaping for compute invocation outcomes.

:func:`build_proxy_response` turns either a success payload or a
classified :class:`~ownstak.compute.errors.RenderableError` into a
:class:`ProxyResponseEvent`, the HTTP-like envelope that is proxied back
to the caller.

Rules
-----
* Binary payloads are always base64 encoded and flagged with
  ``isBase64Encoded``; text payloads are passed through unchanged.
* Multi-valued headers go to ``multiValueHeaders``, which wins over
  ``headers`` when a key appears in both.
* ``x-amz-*`` / ``x-amzn-*`` headers are stripped; the upstream
  gateway rejects responses that echo them.
"""

from __future__ import annotations

import base64
import binascii
import json
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from ownstak.compute.errors import ProjectError, RenderableError, classify_failure

HEADER_CONTENT_TYPE: str = "content-type"
HEADER_SET_COOKIE: str = "set-cookie"

CONTENT_TYPE_JSON: str = "application/json"
CONTENT_TYPE_HTML: str = "text/html"
CONTENT_TYPE_TEXT: str = "text/plain; charset=utf-8"
CONTENT_TYPE_BINARY: str = "application/octet-stream"

_STRIPPED_HEADER_PREFIXES: tuple[str, ...] = ("x-amz-", "x-amzn-")


# ---------------------------------------------------------------------------
# Wire envelope
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class ProxyResponseEvent:
    """Normalized HTTP-like envelope for one invocation outcome."""

    status_code: int
    headers: dict[str, str] | None = None
    multi_value_headers: dict[str, list[str]] | None = None
    body: str | None = None
    is_base64_encoded: bool = False

    def __post_init__(self) -> None:
        if self.status_code <= 0:
            raise ValueError(f"statusCode must be a positive integer, got {self.status_code}")

    def to_dict(self) -> dict[str, Any]:
        """Return the wire representation (camelCase keys, absent fields omitted)."""
        data: dict[str, Any] = {"statusCode": self.status_code}
        if self.headers is not None:
            data["headers"] = dict(self.headers)
        if self.multi_value_headers is not None:
            data["multiValueHeaders"] = {k: list(v) for k, v in self.multi_value_headers.items()}
        if self.body is not None:
            data["body"] = self.body
        data["isBase64Encoded"] = self.is_base64_encoded
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ProxyResponseEvent:
        """Parse a wire event; ``isBase64Encoded`` defaults to ``False``."""
        headers = data.get("headers")
        multi = data.get("multiValueHeaders")
        return cls(
            status_code=int(data["statusCode"]),
            headers={str(k): str(v) for k, v in headers.items()} if headers else None,
            multi_value_headers=(
                {str(k): [str(item) for item in v] for k, v in multi.items()} if multi else None
            ),
            body=data.get("body"),
            is_base64_encoded=bool(data.get("isBase64Encoded", False)),
        )


def decode_body(event: ProxyResponseEvent) -> bytes:
    """Return the raw body bytes; a missing body is empty.

    Raises
    ------
    ValueError
        If the event claims base64 encoding but the body is not valid
        base64.
    """
    if not event.body:
        return b""
    if event.is_base64_encoded:
        try:
            return base64.b64decode(event.body, validate=True)
        except binascii.Error as exc:
            raise ValueError("Response body is not valid base64.") from exc
    return event.body.encode("utf-8")


def merged_headers(event: ProxyResponseEvent) -> dict[str, list[str]]:
    """Combine both header maps; ``multiValueHeaders`` is authoritative."""
    merged: dict[str, list[str]] = {}
    for key, value in (event.headers or {}).items():
        merged[key.lower()] = [value]
    for key, values in (event.multi_value_headers or {}).items():
        merged[key.lower()] = list(values)
    return merged


# ---------------------------------------------------------------------------
# Mutable response builder
# ---------------------------------------------------------------------------

class Response:
    """Mutable HTTP response assembled before conversion to an event.

    Header keys are stored lower-cased.  ``set-cookie`` keeps every
    value; other repeated headers are comma-joined.
    """

    def __init__(
        self,
        body: str | bytes | None = None,
        *,
        status_code: int = 200,
        headers: Mapping[str, str | Sequence[str]] | None = None,
    ) -> None:
        self.status_code: int = status_code
        self.headers: dict[str, str | list[str]] = {}
        self.body: str | bytes | None = body
        if headers:
            self.set_headers(headers)

    # ------------------------------------------------------------------
    # Headers
    # ------------------------------------------------------------------

    def set_header(self, key: str, value: str | Sequence[str]) -> None:
        self.headers[key.lower()] = value if isinstance(value, str) else list(value)

    def set_headers(self, headers: Mapping[str, str | Sequence[str]]) -> None:
        for key, value in headers.items():
            self.set_header(key, value)

    def add_header(self, key: str, value: str | Sequence[str]) -> None:
        key = key.lower()
        new_values = [*self.get_header_list(key), *([value] if isinstance(value, str) else value)]
        if key == HEADER_SET_COOKIE:
            self.headers[key] = new_values
        else:
            self.headers[key] = ",".join(new_values)

    def add_headers(self, headers: Mapping[str, str | Sequence[str]]) -> None:
        for key, value in headers.items():
            self.add_header(key, value)

    def get_header(self, key: str) -> str | None:
        value = self.headers.get(key.lower())
        if value is None:
            return None
        return value if isinstance(value, str) else ",".join(value)

    def get_header_list(self, key: str) -> list[str]:
        key = key.lower()
        value = self.headers.get(key)
        if value is None:
            return []
        if isinstance(value, str):
            # Cookie attributes (e.g. Expires) contain commas.
            return [value] if key == HEADER_SET_COOKIE else value.split(",")
        return list(value)

    def delete_header(self, key: str) -> None:
        self.headers.pop(key.lower(), None)

    def delete_amzn_headers(self) -> None:
        for key in list(self.headers):
            if key.startswith(_STRIPPED_HEADER_PREFIXES):
                self.delete_header(key)

    # ------------------------------------------------------------------
    # Conversion
    # ------------------------------------------------------------------

    def to_event(self) -> ProxyResponseEvent:
        """Freeze this response into a :class:`ProxyResponseEvent`."""
        self.delete_amzn_headers()

        single: dict[str, str] = {}
        multi: dict[str, list[str]] = {}
        for key, value in self.headers.items():
            if isinstance(value, str):
                single[key] = value
            elif value:
                single[key] = value[0]
                multi[key] = list(value)

        body: str | None
        encoded = False
        if isinstance(self.body, (bytes, bytearray, memoryview)):
            body = base64.b64encode(bytes(self.body)).decode("ascii")
            encoded = True
        else:
            body = self.body

        return ProxyResponseEvent(
            status_code=self.status_code,
            headers=single or None,
            multi_value_headers=multi or None,
            body=body,
            is_base64_encoded=encoded,
        )


# ---------------------------------------------------------------------------
# Outcome → event
# ---------------------------------------------------------------------------

def build_proxy_response(
    outcome: Any,
    *,
    status_code: int = 200,
    headers: Mapping[str, str | Sequence[str]] | None = None,
    accept: str | None = None,
    request_id: str | None = None,
) -> ProxyResponseEvent:
    """Render an invocation outcome as a :class:`ProxyResponseEvent`.

    Never raises for a bad outcome: exceptions outside the taxonomy are
    classified first, and a success payload that cannot be serialized
    is reported as a :class:`~ownstak.compute.errors.ProjectError`.

    Parameters
    ----------
    outcome:
        A :class:`RenderableError` for failures; otherwise the success
        payload (``str``, ``bytes``, JSON-serializable value, an existing
        :class:`Response`, or ``None`` for an empty body).
    status_code:
        Status for success outcomes.  Errors always use their own.
    headers:
        Extra headers added to the response.
    accept:
        The caller's ``Accept`` header; errors render as HTML when it
        contains ``text/html``.
    request_id:
        Attached to errors raised while rendering the outcome.
    """
    if isinstance(outcome, BaseException) and not isinstance(outcome, RenderableError):
        outcome = classify_failure(outcome, request_id=request_id)

    if isinstance(outcome, Response):
        response = outcome
    elif isinstance(outcome, RenderableError):
        response = _error_response(outcome, accept)
    else:
        try:
            response = _success_response(outcome, status_code)
        except (TypeError, ValueError) as exc:
            error = ProjectError(
                f"The response body could not be serialized: {exc}",
                cause=exc,
                request_id=request_id,
            )
            response = _error_response(error, accept)

    if headers:
        response.set_headers(headers)
    return response.to_event()


def _error_response(error: RenderableError, accept: str | None) -> Response:
    if accept and CONTENT_TYPE_HTML in accept:
        return Response(
            error.to_html(),
            status_code=error.status_code,
            headers={HEADER_CONTENT_TYPE: CONTENT_TYPE_HTML},
        )
    return Response(
        error.to_json(),
        status_code=error.status_code,
        headers={HEADER_CONTENT_TYPE: CONTENT_TYPE_JSON},
    )


def _success_response(payload: Any, status_code: int) -> Response:
    if payload is None:
        return Response(status_code=status_code)
    if isinstance(payload, (bytes, bytearray, memoryview)):
        return Response(
            bytes(payload),
            status_code=status_code,
            headers={HEADER_CONTENT_TYPE: CONTENT_TYPE_BINARY},
        )
    if isinstance(payload, str):
        return Response(
            payload,
            status_code=status_code,
            headers={HEADER_CONTENT_TYPE: CONTENT_TYPE_TEXT},
        )
    return Response(
        json.dumps(payload),
        status_code=status_code,
        headers={HEADER_CONTENT_TYPE: CONTENT_TYPE_JSON},
    )
