"""
Constantes globales pour NIM Proxy Gateway.
"""

# ============================================================================
# PROVIDERS
# ============================================================================
PROVIDER_NVIDIA = "nvidia"
PROVIDER_EHUB = "ehub"
DEFAULT_PROVIDER = PROVIDER_NVIDIA

DEFAULT_NIM_API_BASE = "https://integrate.api.nvidia.com/v1"
DEFAULT_EHUB_API_BASE = "https://api.electronhub.ai/v1"

# Préfixe de chemin entrant -> provider
PROVIDER_PATH_PREFIXES = {
    "/nvidia/": PROVIDER_NVIDIA,
    "/ehub/": PROVIDER_EHUB,
}

# ============================================================================
# DÉFAUTS DE REQUÊTE
# ============================================================================
DEFAULT_MAX_TOKENS = 1024

DEFAULT_TEMPERATURES = {
    PROVIDER_NVIDIA: 0.6,
    PROVIDER_EHUB: 0.7,
}

# Directive ajoutée au body quand le raisonnement est demandé
THINKING_DIRECTIVE = {"chat_template_kwargs": {"thinking": True}}

# ============================================================================
# RAISONNEMENT
# ============================================================================
THINKING_MARKER = "<ENABLETHINKING>"

THINK_OPEN = "<think>\n"
THINK_CLOSE = "\n</think>\n\n"

REASONING_FIELD = "reasoning_content"

# ============================================================================
# SSE
# ============================================================================
SSE_DATA_PREFIX = "data:"
SSE_DONE = "[DONE]"

# ============================================================================
# MAPPINGS DE MODÈLES (nom client -> nom provider)
# ============================================================================
NVIDIA_MODEL_MAPPING = {
    "gpt-3.5-turbo": "nvidia/llama-3.1-nemotron-ultra-253b-v1",
    "gpt-4": "qwen/qwen3-coder-480b-a35b-instruct",
    "kimi-k2": "moonshotai/kimi-k2-instruct-0905",
    "deepseek-v3.1": "deepseek-ai/deepseek-v3.1",
    "claude-3-opus": "openai/gpt-oss-120b",
    "claude-3-sonnet": "openai/gpt-oss-20b",
    "gemini-pro": "qwen/qwen3-next-80b-a3b-thinking",
    "kimi-k2-thinking": "moonshotai/kimi-k2-thinking",
    "deepseek-v3.1-terminus": "deepseek-ai/deepseek-v3.1-terminus",
    "deepseek-v3.2": "deepseek-ai/deepseek-v3.2",
}

EHUB_MODEL_MAPPING = {
    "deepseek-v3.1-terminus": "deepseek-v3.1-terminus:free",
    "deepseek-v3.2": "deepseek-v3.2:free",
    "deepseek-r1-0528": "deepseek-r1-0528:free",
    "gemini-2.5-flash": "gemini-2.5-flash:free",
    "gemini-2.5-pro": "gemini-2.5-pro:free",
    "minimax-m2": "minimax-m2:free",
    "kimi-k2": "kimi-k2-instruct-0905:free",
    "kimi-k2-thinking": "kimi-k2-thinking:free",
}

# ============================================================================
# FALLBACK HEURISTIQUE (évalué dans l'ordre, premier match gagne)
# ============================================================================
NVIDIA_LARGE_FALLBACK = "meta/llama-3.1-405b-instruct"
NVIDIA_MEDIUM_FALLBACK = "meta/llama-3.1-70b-instruct"
NVIDIA_DEFAULT_FALLBACK = "meta/llama-3.1-8b-instruct"

NVIDIA_FALLBACK_RULES = (
    (("gpt-4", "405b"), NVIDIA_LARGE_FALLBACK),
    (("70b",), NVIDIA_MEDIUM_FALLBACK),
)

EHUB_DEFAULT_MODEL = "deepseek-v3.2:free"

# ============================================================================
# TIMEOUTS (secondes)
# ============================================================================
REQUEST_TIMEOUT = 120.0
PROBE_TIMEOUT = 15.0
CONNECT_TIMEOUT = 10.0
