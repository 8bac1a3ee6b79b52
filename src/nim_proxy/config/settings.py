"""
Dataclasses pour la configuration.

Toute la configuration est figée au démarrage puis injectée explicitement
dans le router et les transformations: aucun toggle global mutable.
"""
from dataclasses import dataclass, field
from typing import Dict, Any, Mapping, Optional, Tuple

from ..core.constants import (
    PROVIDER_NVIDIA,
    PROVIDER_EHUB,
    DEFAULT_PROVIDER,
    DEFAULT_NIM_API_BASE,
    DEFAULT_EHUB_API_BASE,
    DEFAULT_TEMPERATURES,
    NVIDIA_MODEL_MAPPING,
    EHUB_MODEL_MAPPING,
    NVIDIA_FALLBACK_RULES,
    NVIDIA_DEFAULT_FALLBACK,
    EHUB_DEFAULT_MODEL,
    THINKING_DIRECTIVE,
    REQUEST_TIMEOUT,
    PROBE_TIMEOUT,
    CONNECT_TIMEOUT,
)
from ..core.exceptions import ConfigurationError, ProviderError

FallbackRules = Tuple[Tuple[Tuple[str, ...], str], ...]

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def parse_bool(value: Any, key: str) -> bool:
    """Convertit une valeur de config/env en booléen strict."""
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE_VALUES:
            return True
        if lowered in _FALSE_VALUES:
            return False
    raise ConfigurationError(
        message=f"Valeur booléenne invalide: {value!r}",
        config_key=key
    )


def parse_float(value: Any, key: str) -> float:
    """Convertit une valeur de config/env en float."""
    if isinstance(value, bool):
        raise ConfigurationError(f"Valeur numérique invalide: {value!r}", config_key=key)
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"Valeur numérique invalide: {value!r}", config_key=key)


@dataclass(frozen=True)
class FeatureToggles:
    """Toggles de raisonnement."""
    show_reasoning: bool = True
    # False: le raisonnement n'est activé que par le marqueur <ENABLETHINKING>
    enable_thinking_mode: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FeatureToggles":
        """Crée une instance depuis un dictionnaire."""
        return cls(
            show_reasoning=parse_bool(data.get("show_reasoning", True), "features.show_reasoning"),
            enable_thinking_mode=parse_bool(
                data.get("enable_thinking_mode", False), "features.enable_thinking_mode"
            )
        )


@dataclass(frozen=True)
class ProviderConfig:
    """
    Configuration d'un provider upstream.

    Les différences de comportement entre providers sont décrites ici
    (probe, passthrough des noms inconnus, transformation du raisonnement)
    et appliquées uniquement par le router et le resolver.
    """
    key: str
    base_url: str
    api_key: str = ""
    default_temperature: float = 0.7
    model_map: Mapping[str, str] = field(default_factory=dict)
    supports_probe: bool = False
    passthrough_unmapped: bool = False
    fallback_rules: FallbackRules = ()
    default_model: str = ""
    reasoning_transform: bool = False
    thinking_directive: Mapping[str, Any] = field(default_factory=lambda: dict(THINKING_DIRECTIVE))

    @property
    def completions_url(self) -> str:
        return f"{self.base_url.rstrip('/')}/chat/completions"

    def with_overrides(self, data: Dict[str, Any]) -> "ProviderConfig":
        """Retourne une copie avec les valeurs de la section TOML du provider."""
        model_map = dict(self.model_map)
        model_map.update(data.get("models", {}))
        return ProviderConfig(
            key=self.key,
            base_url=data.get("base_url") or self.base_url,
            api_key=data.get("api_key") or self.api_key,
            default_temperature=parse_float(
                data.get("temperature", self.default_temperature),
                f"providers.{self.key}.temperature"
            ),
            model_map=model_map,
            supports_probe=self.supports_probe,
            passthrough_unmapped=self.passthrough_unmapped,
            fallback_rules=self.fallback_rules,
            default_model=data.get("default_model") or self.default_model,
            reasoning_transform=self.reasoning_transform,
            thinking_directive=self.thinking_directive,
        )


def default_providers() -> Dict[str, ProviderConfig]:
    """Providers intégrés: NVIDIA NIM (principal) et ElectronHub."""
    return {
        PROVIDER_NVIDIA: ProviderConfig(
            key=PROVIDER_NVIDIA,
            base_url=DEFAULT_NIM_API_BASE,
            default_temperature=DEFAULT_TEMPERATURES[PROVIDER_NVIDIA],
            model_map=dict(NVIDIA_MODEL_MAPPING),
            supports_probe=True,
            fallback_rules=NVIDIA_FALLBACK_RULES,
            default_model=NVIDIA_DEFAULT_FALLBACK,
            reasoning_transform=True,
        ),
        PROVIDER_EHUB: ProviderConfig(
            key=PROVIDER_EHUB,
            base_url=DEFAULT_EHUB_API_BASE,
            default_temperature=DEFAULT_TEMPERATURES[PROVIDER_EHUB],
            model_map=dict(EHUB_MODEL_MAPPING),
            passthrough_unmapped=True,
            default_model=EHUB_DEFAULT_MODEL,
        ),
    }


@dataclass(frozen=True)
class Settings:
    """Configuration globale de l'application."""
    providers: Dict[str, ProviderConfig] = field(default_factory=default_providers)
    features: FeatureToggles = field(default_factory=FeatureToggles)
    default_provider: str = DEFAULT_PROVIDER
    request_timeout: float = REQUEST_TIMEOUT
    probe_timeout: float = PROBE_TIMEOUT
    connect_timeout: float = CONNECT_TIMEOUT

    @classmethod
    def from_config(
        cls,
        config: Dict[str, Any],
        environ: Optional[Mapping[str, str]] = None
    ) -> "Settings":
        """
        Crée une instance depuis la configuration chargée.

        Les variables d'environnement ont priorité sur le fichier TOML.
        """
        from .loader import apply_env_overrides

        config = apply_env_overrides(config, environ or {})

        providers = default_providers()
        for provider_key, provider_data in config.get("providers", {}).items():
            if provider_key not in providers:
                raise ConfigurationError(
                    message=f"Provider inconnu: {provider_key}",
                    config_key=f"providers.{provider_key}"
                )
            providers[provider_key] = providers[provider_key].with_overrides(provider_data)

        timeouts = config.get("timeouts", {})
        return cls(
            providers=providers,
            features=FeatureToggles.from_dict(config.get("features", {})),
            request_timeout=parse_float(timeouts.get("request", REQUEST_TIMEOUT), "timeouts.request"),
            probe_timeout=parse_float(timeouts.get("probe", PROBE_TIMEOUT), "timeouts.probe"),
            connect_timeout=parse_float(timeouts.get("connect", CONNECT_TIMEOUT), "timeouts.connect"),
        )

    def get_provider(self, key: str) -> ProviderConfig:
        """Récupère un provider par sa clé."""
        provider = self.providers.get(key)
        if provider is None:
            raise ProviderError(f"Provider non configuré: {key}", provider=key)
        return provider
