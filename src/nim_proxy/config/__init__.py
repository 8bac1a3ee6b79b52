"""
Configuration de NIM Proxy Gateway.
"""

from .loader import load_config, load_settings, apply_env_overrides
from .settings import Settings, ProviderConfig, FeatureToggles

__all__ = [
    "load_config",
    "load_settings",
    "apply_env_overrides",
    "Settings",
    "ProviderConfig",
    "FeatureToggles",
]
