"""Run a compute handler and always come back with a proxy response.

The handler itself is external; this module only classifies what it
raises (see :func:`~ownstak.compute.errors.classify_failure`):

* taxonomy errors (:class:`~ownstak.compute.errors.BaseComputeError`)
  are kept as raised,
* timeouts become :class:`~ownstak.compute.errors.ProjectTimeoutError`,
* anything else becomes
  :class:`~ownstak.compute.errors.ProjectError` with the original
  exception chained as ``cause``.

A success value that cannot be rendered is reported the same way by
:func:`~ownstak.compute.response.build_proxy_response`.

No retry happens here; a caller wanting one re-enters the whole chain.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from ownstak.compute.errors import classify_failure
from ownstak.compute.response import ProxyResponseEvent, build_proxy_response

logger = logging.getLogger(__name__)

__all__: list[str] = ["classify_failure", "run_invocation"]


def run_invocation(
    handler: Callable[[Any], Any],
    event: Any,
    *,
    accept: str | None = None,
    request_id: str | None = None,
    timeout: int | None = None,
) -> ProxyResponseEvent:
    """Call *handler* with *event* and render the outcome.

    ``KeyboardInterrupt`` and ``SystemExit`` are not classified; they
    abandon the invocation.
    """
    try:
        result = handler(event)
    except Exception as exc:
        error = classify_failure(exc, request_id=request_id, timeout=timeout)
        logger.debug("Invocation failed: %r", error)
        return build_proxy_response(error, accept=accept)
    return build_proxy_response(result, accept=accept, request_id=request_id)
