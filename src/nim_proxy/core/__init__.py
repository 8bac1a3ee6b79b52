"""
Cœur métier de NIM Proxy Gateway.
Modules indépendants sans dépendances externes au package.
"""

from .exceptions import (
    NimProxyError,
    ConfigurationError,
    ProviderError,
    UpstreamError,
)
from .constants import (
    DEFAULT_PROVIDER,
    DEFAULT_MAX_TOKENS,
    THINKING_MARKER,
    THINK_OPEN,
    THINK_CLOSE,
)
from .models import (
    ChatRequest,
    ResolvedTarget,
    ProbeResult,
    UpstreamRequest,
    StreamEvent,
    ReasoningState,
)

__all__ = [
    # Exceptions
    "NimProxyError",
    "ConfigurationError",
    "ProviderError",
    "UpstreamError",
    # Constants
    "DEFAULT_PROVIDER",
    "DEFAULT_MAX_TOKENS",
    "THINKING_MARKER",
    "THINK_OPEN",
    "THINK_CLOSE",
    # Models
    "ChatRequest",
    "ResolvedTarget",
    "ProbeResult",
    "UpstreamRequest",
    "StreamEvent",
    "ReasoningState",
]
