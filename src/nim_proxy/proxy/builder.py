"""
Construction du body de requête envoyé au provider.
"""
import copy
from typing import Any, List

from ..config.settings import ProviderConfig
from ..core.constants import DEFAULT_MAX_TOKENS
from ..core.models import ResolvedTarget, UpstreamRequest


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def build_upstream_request(
    provider: ProviderConfig,
    target: ResolvedTarget,
    messages: List[Any],
    temperature: Any = None,
    max_tokens: Any = None,
    stream: Any = False,
    force_thinking: bool = False
) -> UpstreamRequest:
    """
    Assemble la requête upstream.

    Args:
        provider: Provider cible (température par défaut, directive thinking)
        target: Modèle résolu et demande de raisonnement
        messages: Messages déjà nettoyés du marqueur
        temperature: Valeur client, remplacée si absente ou non numérique
        max_tokens: Valeur client, remplacée si absente ou non numérique
        stream: Converti en booléen strict
        force_thinking: Toggle global qui force le raisonnement

    Returns:
        UpstreamRequest dont la directive thinking est absente si non demandée
    """
    thinking = None
    if target.thinking_requested or force_thinking:
        thinking = copy.deepcopy(dict(provider.thinking_directive))

    return UpstreamRequest(
        model=target.provider_model_id,
        messages=list(messages),
        temperature=temperature if _is_number(temperature) else provider.default_temperature,
        max_tokens=max_tokens if _is_number(max_tokens) else DEFAULT_MAX_TOKENS,
        stream=bool(stream),
        thinking=thinking
    )
