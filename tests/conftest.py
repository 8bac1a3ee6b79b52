"""
Configuration des tests pytest.
"""
import json
import os
import sys

import httpx
import pytest

# Ajoute src au path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from nim_proxy.config.settings import Settings  # noqa: E402


@pytest.fixture
def anyio_backend():
    """Les tests async tournent uniquement sous asyncio."""
    return "asyncio"


@pytest.fixture
def settings():
    """Settings de test: clés factices, toggles par défaut."""
    return Settings.from_config(
        {
            "providers": {
                "nvidia": {"base_url": "http://nim.test/v1", "api_key": "nim-key"},
                "ehub": {"base_url": "http://ehub.test/v1", "api_key": "ehub-key"},
            }
        },
        environ={}
    )


@pytest.fixture
def sample_messages():
    """Fixture pour des messages de test."""
    return [
        {"role": "system", "content": "Tu es un assistant utile."},
        {"role": "user", "content": "<ENABLETHINKING> Combien font 6 x 7 ?"},
        {"role": "assistant", "content": "Je réfléchis."}
    ]


class UpstreamRecorder:
    """
    Faux provider pour httpx.MockTransport.

    Enregistre chaque requête reçue (URL, headers, body JSON) et répond via
    un handler fourni par le test.
    """

    def __init__(self, handler):
        self.handler = handler
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content) if request.content else None
        self.requests.append({"url": str(request.url), "headers": request.headers, "json": body})
        return self.handler(request, body)

    @property
    def bodies(self):
        return [r["json"] for r in self.requests]

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


@pytest.fixture
def upstream():
    """Factory: upstream(handler) -> UpstreamRecorder."""
    return UpstreamRecorder
