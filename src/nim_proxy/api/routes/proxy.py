"""
Route proxy principale /chat/completions.
"""
import json
from typing import Any

from fastapi import APIRouter, Request
from starlette.responses import Response

router = APIRouter()

# Chemins équivalents: le préfixe choisit le provider
CHAT_COMPLETION_PATHS = (
    "/v1/chat/completions",
    "/chat/completions",
    "/nvidia/v1/chat/completions",
    "/ehub/v1/chat/completions",
)


async def _read_body(request: Request) -> Any:
    """Décode le body JSON; un body invalide équivaut à un body vide."""
    raw = await request.body()
    if not raw:
        return {}
    try:
        return json.loads(raw)
    except ValueError:
        return {}


async def proxy_chat(request: Request) -> Response:
    """
    Proxy vers le provider sélectionné par le chemin, avec:
    - Résolution du modèle (mapping, sonde, fallback)
    - Détection du marqueur <ENABLETHINKING>
    - Transformation du raisonnement en blocs <think>
    """
    body = await _read_body(request)
    provider_router = request.app.state.provider_router
    return await provider_router.route(request.url.path, body)


for _path in CHAT_COMPLETION_PATHS:
    router.add_api_route(_path, proxy_chat, methods=["POST"])
