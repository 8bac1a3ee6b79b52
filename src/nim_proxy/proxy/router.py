"""
Routing des requêtes vers les providers.

Seul point où les comportements des providers divergent: le choix entre
le pipeline complet (réassemblage + transformation du raisonnement) et le
relais direct est fait ici, à partir de `ProviderConfig.reasoning_transform`.
"""
import json
import logging
from typing import Any

import httpx
from fastapi.responses import JSONResponse, StreamingResponse
from starlette.responses import Response

from ..config.settings import ProviderConfig, Settings
from ..core.constants import PROVIDER_PATH_PREFIXES
from ..core.exceptions import UpstreamError
from ..core.models import ChatRequest, ResolvedTarget, UpstreamRequest
from .builder import build_upstream_request
from .client import ProxyClient
from .directives import scan_directives
from .resolver import ModelResolver
from .stream import reasoning_stream, passthrough_stream
from .transformers import ReasoningTransform

logger = logging.getLogger(__name__)

# Headers SSE attendus par certains clients (et nginx)
SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


def detect_provider(path: str, default: str) -> str:
    """Détermine le provider depuis le préfixe du chemin entrant."""
    for prefix, provider_key in PROVIDER_PATH_PREFIXES.items():
        if path.startswith(prefix):
            return provider_key
    return default


def error_response(status_code: int, message: str) -> JSONResponse:
    """Document d'erreur unique renvoyé au client."""
    return JSONResponse(
        content={"error": message, "code": status_code},
        status_code=status_code
    )


class ProviderRouter:
    """Orchestre Resolver -> Scanner -> Builder -> client HTTP -> Transform."""

    def __init__(self, settings: Settings, client: ProxyClient):
        self.settings = settings
        self.client = client
        self.resolver = ModelResolver(client)
        self.transform = ReasoningTransform(settings.features)

    async def prepare(self, provider: ProviderConfig, body: Any) -> UpstreamRequest:
        """Construit la requête upstream depuis le body client (jamais d'exception)."""
        request = ChatRequest.from_body(body)
        thinking_requested, cleaned_messages = scan_directives(request.messages)

        target = ResolvedTarget(
            provider_model_id=await self.resolver.resolve(request.model, provider),
            thinking_requested=thinking_requested
        )
        if target.provider_model_id != request.model:
            logger.info(f"[PROXY] Modèle mappé: {request.model} → {target.provider_model_id}")

        return build_upstream_request(
            provider,
            target,
            cleaned_messages,
            temperature=request.temperature,
            max_tokens=request.max_tokens,
            stream=request.stream,
            force_thinking=self.settings.features.enable_thinking_mode
        )

    async def route(self, path: str, body: Any) -> Response:
        """
        Traite une requête chat-completion entrante.

        Args:
            path: Chemin entrant (sélection du provider)
            body: Body JSON décodé (forme quelconque)

        Returns:
            JSONResponse ou StreamingResponse
        """
        provider = self.settings.get_provider(
            detect_provider(path, self.settings.default_provider)
        )
        upstream = await self.prepare(provider, body)
        logger.info(
            f"[PROXY] {provider.key}: model={upstream.model}, stream={upstream.stream}, "
            f"thinking={upstream.thinking is not None}"
        )

        try:
            if upstream.stream:
                return await self._send_streaming(provider, upstream)
            return await self._send(provider, upstream)
        except UpstreamError as e:
            logger.error(f"[PROXY] Échec upstream {provider.key}: {e.message}")
            return error_response(e.client_status, e.message)

    async def _send(self, provider: ProviderConfig, upstream: UpstreamRequest) -> JSONResponse:
        request = self.client.build_request(
            provider.completions_url, provider.api_key, upstream.to_payload()
        )
        response = await self.client.send(request, provider=provider.key)
        data = _json_or_error(response.content, response.status_code)

        if provider.reasoning_transform and response.status_code < 400:
            data = self.transform.transform_completion(data)
        return JSONResponse(content=data, status_code=response.status_code)

    async def _send_streaming(self, provider: ProviderConfig, upstream: UpstreamRequest) -> Response:
        request = self.client.build_request(
            provider.completions_url, provider.api_key, upstream.to_payload()
        )
        response = await self.client.send_streaming(request, provider=provider.key)

        if response.status_code >= 400:
            # Erreur provider 4xx: body JSON, pas de SSE
            try:
                content = await response.aread()
            except httpx.HTTPError as e:
                raise UpstreamError(
                    str(e), status_code=response.status_code, provider=provider.key
                ) from e
            finally:
                await response.aclose()
            logger.warning(f"[PROXY] Erreur provider {response.status_code}: {content[:500]!r}")
            return JSONResponse(
                content=_json_or_error(content, response.status_code),
                status_code=response.status_code
            )

        if provider.reasoning_transform:
            generator = reasoning_stream(response, self.transform, provider=provider.key)
        else:
            generator = passthrough_stream(response, provider=provider.key)

        return StreamingResponse(
            generator,
            status_code=response.status_code,
            headers=SSE_HEADERS,
            media_type="text/event-stream"
        )


def _json_or_error(content: bytes, status_code: int) -> Any:
    try:
        return json.loads(content) if content else {}
    except ValueError:
        return {
            "error": content.decode("utf-8", errors="ignore")[:500],
            "code": status_code
        }
