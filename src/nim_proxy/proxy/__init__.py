"""
Logique de proxy HTTP vers les providers LLM.
"""

from .router import ProviderRouter, detect_provider, error_response
from .resolver import ModelResolver, heuristic_fallback
from .directives import scan_directives
from .builder import build_upstream_request
from .transformers import ReasoningTransform, parse_event, format_sse
from .stream import (
    LineReassembler,
    iter_lines,
    transform_lines,
    reasoning_stream,
    passthrough_stream,
)
from .client import create_proxy_client, ProxyClient

__all__ = [
    "ProviderRouter",
    "detect_provider",
    "error_response",
    "ModelResolver",
    "heuristic_fallback",
    "scan_directives",
    "build_upstream_request",
    "ReasoningTransform",
    "parse_event",
    "format_sse",
    "LineReassembler",
    "iter_lines",
    "transform_lines",
    "reasoning_stream",
    "passthrough_stream",
    "create_proxy_client",
    "ProxyClient",
]
