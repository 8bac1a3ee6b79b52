"""
NIM Proxy Gateway - Application FastAPI Factory.
Proxy chat-completions OpenAI vers NVIDIA NIM et ElectronHub, avec
reconstruction du raisonnement en blocs <think>.
"""
from contextlib import asynccontextmanager
from typing import Optional

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from . import __version__
from .config.loader import load_settings
from .config.settings import Settings
from .proxy.client import create_proxy_client
from .proxy.router import ProviderRouter
from .api.router import api_router


def create_app(
    settings: Optional[Settings] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None
) -> FastAPI:
    """
    Factory pour créer l'application FastAPI.

    Args:
        settings: Configuration figée (chargée depuis l'environnement si absente)
        transport: Transport HTTPX injecté dans le client upstream (tests)

    Returns:
        Instance configurée de FastAPI
    """
    if settings is None:
        settings = load_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Gestion du cycle de vie de l'application."""
        # Startup
        _startup(app, settings, transport)
        yield
        # Shutdown
        await _shutdown(app)

    app = FastAPI(
        title="NIM Proxy Gateway",
        description="Proxy chat-completions multi-provider avec normalisation du raisonnement",
        version=__version__,
        lifespan=lifespan
    )

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.settings = settings

    # Inclusion des routes API
    app.include_router(api_router)

    return app


def _startup(app: FastAPI, settings: Settings, transport: Optional[httpx.AsyncBaseTransport]):
    """Initialisation au démarrage."""
    print("🚀 Démarrage du NIM Proxy Gateway...")

    client = create_proxy_client(
        timeout=settings.request_timeout,
        connect_timeout=settings.connect_timeout,
        probe_timeout=settings.probe_timeout,
        transport=transport
    )
    app.state.proxy_client = client
    app.state.provider_router = ProviderRouter(settings, client)

    for key, provider in sorted(settings.providers.items()):
        status = "clé API configurée" if provider.api_key else "⚠️  clé API manquante"
        print(f"✅ Provider {key}: {provider.base_url} ({status})")

    if settings.features.enable_thinking_mode:
        print("🧠 Mode thinking forcé pour toutes les requêtes")
    else:
        print("🧠 Mode thinking activé uniquement via le tag <ENABLETHINKING>")


async def _shutdown(app: FastAPI):
    """Arrêt de l'application."""
    print("\n👋 Arrêt du serveur...")

    if hasattr(app.state, "proxy_client"):
        await app.state.proxy_client.aclose()

    print("✅ Serveur arrêté proprement")
