"""
Routes API pour le health check.
"""
from fastapi import APIRouter, Request

router = APIRouter()


@router.get("/health")
async def health_check(request: Request):
    """Health check avec l'état des toggles de raisonnement."""
    settings = request.app.state.settings
    return {
        "status": "ok",
        "thinking_via_tag_only": not settings.features.enable_thinking_mode,
        "show_reasoning": settings.features.show_reasoning,
        "providers": sorted(settings.providers),
    }
