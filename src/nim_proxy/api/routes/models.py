"""Routes API pour la liste des modèles.

Endpoint OpenAI-compatible minimal (object/list/data): les ids sont les
noms de modèles client connus du mapping statique du provider.
"""

from __future__ import annotations

from typing import Any, Dict, List

from fastapi import APIRouter, Request

from ...config.settings import ProviderConfig
from ...proxy.router import detect_provider

router = APIRouter()


def _build_openai_models_list(provider: ProviderConfig) -> List[Dict[str, Any]]:
    models_list: List[Dict[str, Any]] = []
    for client_model, provider_model in provider.model_map.items():
        models_list.append(
            {
                "id": client_model,
                "object": "model",
                # Valeur stable (placeholder) - OpenAI renvoie un timestamp "created"
                "created": 1704067200,
                "owned_by": provider.key,
                "root": provider_model,
            }
        )
    models_list.sort(key=lambda m: m["id"])
    return models_list


@router.get("/v1/models")
@router.get("/nvidia/v1/models")
@router.get("/ehub/v1/models")
async def openai_models(request: Request) -> Dict[str, Any]:
    """Endpoint OpenAI-compatible minimal: GET /v1/models."""
    settings = request.app.state.settings
    provider = settings.get_provider(
        detect_provider(request.url.path, settings.default_provider)
    )
    return {
        "object": "list",
        "data": _build_openai_models_list(provider),
    }
