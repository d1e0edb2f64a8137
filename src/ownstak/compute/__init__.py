"""Compute outcome layer — failure taxonomy and proxy response shaping.

The compute runtime itself is external; this package only classifies
invocation outcomes and renders them as proxy response events.
"""

from ownstak.compute.errors import (
    BaseComputeError,
    ComputeError,
    ComputeProjectError,
    ComputeReqRecursionError,
    ProjectError,
    ProjectReqRecursionError,
    ProjectTimeoutError,
    RenderableError,
    classify_failure,
)
from ownstak.compute.invocation import run_invocation
from ownstak.compute.response import (
    ProxyResponseEvent,
    Response,
    build_proxy_response,
    decode_body,
    merged_headers,
)

__all__: list[str] = [
    "BaseComputeError",
    "ComputeError",
    "ComputeProjectError",
    "ComputeReqRecursionError",
    "ProjectError",
    "ProjectReqRecursionError",
    "ProjectTimeoutError",
    "ProxyResponseEvent",
    "RenderableError",
    "Response",
    "build_proxy_response",
    "classify_failure",
    "decode_body",
    "merged_headers",
    "run_invocation",
]
