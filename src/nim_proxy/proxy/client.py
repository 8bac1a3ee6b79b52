"""
Client HTTPX pour le proxy: appels bufferisés, streaming et sonde de capacité.

Contrat vis-à-vis des providers:
- statut >= 500 ou erreur réseau: UpstreamError
- statut dans [200, 500): réponse normale, interprétée par l'appelant
- aucun retry: un échec est terminal pour la tentative
"""
import logging
from typing import Any, Dict, Optional

import httpx

from ..core.constants import REQUEST_TIMEOUT, PROBE_TIMEOUT, CONNECT_TIMEOUT
from ..core.exceptions import UpstreamError
from ..core.models import ProbeResult

logger = logging.getLogger(__name__)

PROBE_MESSAGES = [{"role": "user", "content": "test"}]


class ProxyClient:
    """
    Client HTTP partagé vers les APIs LLM.

    Gère:
    - Un pool de connexions unique pour tout le processus
    - Les timeouts (requête, connexion, sonde)
    - La conversion des échecs transport/5xx en UpstreamError
    """

    def __init__(
        self,
        timeout: float = REQUEST_TIMEOUT,
        connect_timeout: float = CONNECT_TIMEOUT,
        probe_timeout: float = PROBE_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.timeout = timeout
        self.connect_timeout = connect_timeout
        self.probe_timeout = probe_timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self) -> "ProxyClient":
        self._get_client()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout, connect=self.connect_timeout),
                limits=httpx.Limits(
                    max_keepalive_connections=20,
                    max_connections=50
                ),
                transport=self._transport
            )
        return self._client

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    def build_request(
        self,
        url: str,
        api_key: str,
        payload: Dict[str, Any],
        timeout: Optional[float] = None
    ) -> httpx.Request:
        """Construit une requête POST JSON avec le header d'autorisation."""
        headers = {
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        }
        client = self._get_client()
        if timeout is None:
            return client.build_request("POST", url, headers=headers, json=payload)
        return client.build_request(
            "POST", url, headers=headers, json=payload,
            timeout=httpx.Timeout(timeout, connect=self.connect_timeout)
        )

    async def send(self, request: httpx.Request, provider: str = None) -> httpx.Response:
        """
        Envoie une requête et retourne la réponse complète.

        Raises:
            UpstreamError: erreur réseau ou statut >= 500
        """
        logger.debug(f"[CLIENT] POST {request.url}")
        try:
            response = await self._get_client().send(request)
        except httpx.HTTPError as e:
            raise UpstreamError(_describe_transport_error(e), provider=provider) from e

        if response.status_code >= 500:
            logger.warning(f"[CLIENT] {provider or 'upstream'} a répondu {response.status_code}")
            raise UpstreamError(
                f"Erreur provider {response.status_code}: {response.text[:500]}",
                status_code=response.status_code,
                provider=provider
            )
        return response

    async def send_streaming(self, request: httpx.Request, provider: str = None) -> httpx.Response:
        """
        Envoie une requête en mode streaming.

        L'appelant est responsable de fermer la réponse (`aclose`).

        Raises:
            UpstreamError: erreur réseau ou statut >= 500
        """
        logger.debug(f"[CLIENT] POST {request.url} (stream)")
        try:
            response = await self._get_client().send(request, stream=True)
        except httpx.HTTPError as e:
            raise UpstreamError(_describe_transport_error(e), provider=provider) from e

        if response.status_code >= 500:
            try:
                body = await response.aread()
            except httpx.HTTPError:
                body = b""
            finally:
                await response.aclose()
            raise UpstreamError(
                f"Erreur provider {response.status_code}: "
                f"{body.decode('utf-8', errors='ignore')[:500]}",
                status_code=response.status_code,
                provider=provider
            )
        return response

    async def probe(self, url: str, api_key: str, model: str) -> ProbeResult:
        """
        Sonde minimale (1 token) pour savoir si le provider accepte `model` tel quel.

        Ne lève jamais: toute erreur est retournée dans le ProbeResult.
        """
        payload = {
            "model": model,
            "messages": PROBE_MESSAGES,
            "max_tokens": 1,
        }
        request = self.build_request(url, api_key, payload, timeout=self.probe_timeout)
        try:
            response = await self.send(request)
        except UpstreamError as e:
            return ProbeResult(ok=False, status_code=e.status_code, error=e.message)

        if 200 <= response.status_code < 300:
            return ProbeResult(ok=True, status_code=response.status_code)
        return ProbeResult(
            ok=False,
            status_code=response.status_code,
            error=response.text[:200]
        )


def _describe_transport_error(error: httpx.HTTPError) -> str:
    if isinstance(error, httpx.TimeoutException):
        return f"Timeout provider: {error}"
    if isinstance(error, httpx.ConnectError):
        return f"Impossible de se connecter au provider: {error}"
    return f"Erreur réseau provider: {error}"


def create_proxy_client(
    timeout: float = REQUEST_TIMEOUT,
    connect_timeout: float = CONNECT_TIMEOUT,
    probe_timeout: float = PROBE_TIMEOUT,
    transport: Optional[httpx.AsyncBaseTransport] = None
) -> ProxyClient:
    """
    Crée un client proxy.

    Args:
        timeout: Timeout global des requêtes en secondes
        connect_timeout: Timeout de connexion
        probe_timeout: Timeout de la sonde de capacité
        transport: Transport HTTPX (tests: httpx.MockTransport)

    Returns:
        Instance de ProxyClient
    """
    return ProxyClient(
        timeout=timeout,
        connect_timeout=connect_timeout,
        probe_timeout=probe_timeout,
        transport=transport
    )
