"""nim_proxy.config.loader

Chargement de la configuration TOML + surcharges par variables d'environnement.

Note d'architecture:
- Le fichier `config.toml` est optionnel: sans lui, les providers intégrés
  sont utilisés avec les clés API lues dans l'environnement.
- La configuration est chargée une fois au démarrage et transformée en
  `Settings` immuable; elle n'est jamais relue pendant une requête.
"""
import copy
import os
import re
import tomllib
from pathlib import Path
from typing import Dict, Any, Mapping, Optional

from ..core.constants import PROVIDER_NVIDIA, PROVIDER_EHUB
from ..core.exceptions import ConfigurationError
from .settings import Settings

CONFIG_PATH_ENV = "NIM_PROXY_CONFIG"

_ENV_VAR_PATTERN = re.compile(r"\$\{([^}]+)\}")

# Variable d'environnement -> (section, sous-section, clé)
ENV_OVERRIDES = {
    "NIM_API_BASE": ("providers", PROVIDER_NVIDIA, "base_url"),
    "NIM_API_KEY": ("providers", PROVIDER_NVIDIA, "api_key"),
    "EHUB_API_BASE": ("providers", PROVIDER_EHUB, "base_url"),
    "EHUB_API_KEY": ("providers", PROVIDER_EHUB, "api_key"),
    "SHOW_REASONING": ("features", None, "show_reasoning"),
    "ENABLE_THINKING_MODE": ("features", None, "enable_thinking_mode"),
}


def _expand_env_vars(obj: Any, environ: Mapping[str, str]) -> Any:
    """
    Récursivement étend les variables d'environnement ${VAR} dans la config.

    Une variable absente est remplacée par une chaîne vide.
    """
    if isinstance(obj, str):
        return _ENV_VAR_PATTERN.sub(lambda match: environ.get(match.group(1), ""), obj)
    elif isinstance(obj, dict):
        return {k: _expand_env_vars(v, environ) for k, v in obj.items()}
    elif isinstance(obj, list):
        return [_expand_env_vars(item, environ) for item in obj]
    return obj


def _default_config_path() -> Path:
    # Structure: project/src/nim_proxy/config/loader.py
    return Path(__file__).resolve().parents[3] / "config.toml"


def load_config(
    config_path: Optional[str] = None,
    environ: Optional[Mapping[str, str]] = None
) -> Dict[str, Any]:
    """
    Charge la configuration depuis config.toml.

    Args:
        config_path: Chemin vers le fichier config (optionnel)
        environ: Environnement utilisé pour l'expansion ${VAR}

    Returns:
        Dictionnaire de configuration ({} si aucun fichier par défaut)

    Raises:
        ConfigurationError: Si le fichier explicite n'existe pas ou est invalide
    """
    if environ is None:
        environ = os.environ

    explicit = config_path or environ.get(CONFIG_PATH_ENV)
    path = Path(explicit) if explicit else _default_config_path()

    if not path.exists():
        if explicit:
            raise ConfigurationError(
                message=f"Fichier de configuration non trouvé: {path}",
                config_key="config_path"
            )
        return {}

    try:
        with open(path, "rb") as f:
            raw_config = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigurationError(
            message=f"Fichier de configuration invalide ({path}): {e}",
            config_key="config_path"
        ) from e

    return _expand_env_vars(raw_config, environ)


def apply_env_overrides(config: Dict[str, Any], environ: Mapping[str, str]) -> Dict[str, Any]:
    """
    Applique les variables d'environnement connues sur une copie de la config.

    Args:
        config: Configuration chargée
        environ: Variables d'environnement

    Returns:
        Nouvelle configuration (l'originale n'est pas modifiée)
    """
    merged = copy.deepcopy(config)
    for env_name, (section, subsection, key) in ENV_OVERRIDES.items():
        value = environ.get(env_name)
        if not value:
            continue
        target = merged.setdefault(section, {})
        if subsection is not None:
            target = target.setdefault(subsection, {})
        target[key] = value
    return merged


def load_settings(
    config_path: Optional[str] = None,
    environ: Optional[Mapping[str, str]] = None
) -> Settings:
    """Charge le fichier de configuration puis construit les `Settings`."""
    if environ is None:
        environ = os.environ
    config = load_config(config_path, environ)
    return Settings.from_config(config, environ)
