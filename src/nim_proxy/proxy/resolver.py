"""
Résolution du nom de modèle client vers l'identifiant du provider.

Ordre de résolution:
1. Mapping statique du provider
2. Sonde de capacité (providers qui la supportent)
3. Passthrough du nom tel quel (providers qui l'acceptent)
4. Fallback heuristique par mots-clés, premier match gagne
"""
import logging
from typing import Any, Optional

from ..config.settings import FallbackRules, ProviderConfig
from .client import ProxyClient

logger = logging.getLogger(__name__)


def heuristic_fallback(client_model: Any, rules: FallbackRules, default: str) -> str:
    """
    Choisit un modèle de repli par correspondance de sous-chaîne.

    Les règles sont évaluées dans l'ordre; les mots-clés peuvent se
    recouvrir, seul le premier match compte.
    """
    model_lower = str(client_model or "").lower()
    for keywords, target in rules:
        if any(keyword in model_lower for keyword in keywords):
            return target
    return default


class ModelResolver:
    """Mappe un nom de modèle client vers un modèle provider utilisable."""

    def __init__(self, client: Optional[ProxyClient] = None):
        self.client = client

    async def resolve(self, client_model: Any, provider: ProviderConfig) -> str:
        """
        Résout `client_model` pour `provider`. Ne retourne jamais de chaîne vide.

        Args:
            client_model: Nom envoyé par le client (peut être absent ou invalide)
            provider: Configuration du provider cible

        Returns:
            Identifiant de modèle provider
        """
        usable_name = isinstance(client_model, str) and bool(client_model)

        if isinstance(client_model, str) and client_model in provider.model_map:
            mapped = provider.model_map[client_model]
            logger.debug(f"[RESOLVER] Mapping statique: {client_model} → {mapped}")
            return mapped

        if usable_name and provider.supports_probe and self.client is not None:
            result = await self.client.probe(
                provider.completions_url, provider.api_key, client_model
            )
            if result.ok:
                logger.info(f"[RESOLVER] Modèle accepté par la sonde: {client_model}")
                return client_model
            logger.info(
                f"[RESOLVER] Sonde négative pour '{client_model}' "
                f"(statut={result.status_code}, erreur={result.error}), fallback"
            )

        if usable_name and provider.passthrough_unmapped:
            return client_model

        fallback = heuristic_fallback(client_model, provider.fallback_rules, provider.default_model)
        logger.warning(f"[RESOLVER] Aucun mapping pour '{client_model}', fallback vers '{fallback}'")
        return fallback
