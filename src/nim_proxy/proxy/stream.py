"""
Réassemblage du stream SSE upstream et ré-émission vers le client.

Contraintes:
- Les chunks réseau ne respectent pas les frontières de lignes (ni de
  caractères UTF-8): il faut bufferiser jusqu'au prochain `\\n`
- Le provider peut interrompre le stream (ReadError, timeout)
- Les headers sont déjà envoyés: une erreur en cours de stream ne peut
  que fermer la connexion, sans sentinelle [DONE]
"""
import logging
from datetime import datetime
from typing import AsyncGenerator, AsyncIterable, AsyncIterator, List

import httpx

from ..core.constants import SSE_DONE
from ..core.models import ReasoningState
from .transformers import ReasoningTransform, parse_event, format_sse

logger = logging.getLogger(__name__)

SSE_EVENT_END = b"\n\n"
_DONE_BYTES = SSE_DONE.encode("utf-8")


# Types d'erreurs streaming connus
STREAMING_ERROR_TYPES = {
    "read_error": "Connexion interrompue par le provider",
    "connect_error": "Impossible de se connecter au provider",
    "timeout_error": "Timeout lors de la lecture du stream",
    "unknown": "Erreur streaming inconnue"
}


class LineReassembler:
    """
    Reconstruit des lignes complètes à partir de chunks arbitraires.

    Seul le dernier fragment incomplet est conservé entre deux chunks.
    """

    def __init__(self):
        self._buffer = b""

    @property
    def pending(self) -> bytes:
        return self._buffer

    def feed(self, chunk: bytes) -> List[bytes]:
        """
        Ajoute un chunk et retourne les lignes complètes non vides, dans l'ordre.

        Les lignes restent en bytes: seul le parsing les décode.
        """
        self._buffer += chunk
        *complete, self._buffer = self._buffer.split(b"\n")
        lines = []
        for raw in complete:
            line = raw.rstrip(b"\r")
            # Les lignes vides sont le framing SSE, re-généré à l'émission
            if line:
                lines.append(line)
        return lines

    def close(self) -> bytes:
        """Fin de stream: retourne le fragment restant (abandonné) et vide le buffer."""
        remainder, self._buffer = self._buffer, b""
        return remainder


async def iter_lines(chunks: AsyncIterable[bytes]) -> AsyncIterator[bytes]:
    """
    Itère sur les lignes complètes d'un flux de bytes.

    Un fragment final non terminé par `\\n` n'est jamais émis.
    """
    reassembler = LineReassembler()
    async for chunk in chunks:
        for line in reassembler.feed(chunk):
            yield line

    remainder = reassembler.close()
    if remainder.strip():
        logger.warning(
            f"[STREAM] Fragment final incomplet abandonné ({len(remainder)} octets)"
        )


async def transform_lines(
    lines: AsyncIterable[bytes],
    transform: ReasoningTransform
) -> AsyncIterator[bytes]:
    """
    Applique la transformation de raisonnement à chaque ligne.

    L'état de raisonnement est créé ici: un état par stream, jamais partagé.
    Une ligne non modifiée est ré-émise avec ses octets d'origine, même si
    elle n'est pas de l'UTF-8 valide.
    """
    state = ReasoningState()
    async for line in lines:
        event = parse_event(line.decode("utf-8", errors="replace"))
        emitted = transform.transform_event(event, state)
        if emitted is event.raw:
            yield line + SSE_EVENT_END
        else:
            yield format_sse(emitted).encode("utf-8")


async def reasoning_stream(
    response: httpx.Response,
    transform: ReasoningTransform,
    provider: str = "nvidia"
) -> AsyncGenerator[bytes, None]:
    """
    Générateur de streaming avec réassemblage et transformation du raisonnement.

    Args:
        response: Réponse HTTPX en streaming
        transform: Transformation configurée (toggles injectés)
        provider: Clé du provider, pour les logs

    Yields:
        Événements SSE (bytes terminés par une ligne vide)

    Raises:
        Aucune: les erreurs réseau sont loggées et le stream se termine
    """
    stats = _StreamStats(provider)
    try:
        async for event in transform_lines(iter_lines(response.aiter_bytes()), transform):
            stats.track(event)
            yield event
    except httpx.HTTPError as e:
        stats.fail(e)
    finally:
        await response.aclose()
        stats.finish()


async def passthrough_stream(
    response: httpx.Response,
    provider: str = "ehub"
) -> AsyncGenerator[bytes, None]:
    """
    Générateur de streaming sans transformation: les bytes upstream sont
    relayés tels quels.
    """
    stats = _StreamStats(provider)
    try:
        async for chunk in response.aiter_bytes():
            stats.track_raw(chunk)
            yield chunk
    except httpx.HTTPError as e:
        stats.fail(e)
    finally:
        await response.aclose()
        stats.finish()


class _StreamStats:
    """Compteurs d'un stream pour les logs de fin et d'erreur."""

    def __init__(self, provider: str):
        self.provider = provider
        self.chunks = 0
        self.done_seen = False
        self.failed = False
        self.start_time = datetime.now()
        self._tail = b""

    def track(self, event: bytes) -> None:
        self.chunks += 1
        if event.startswith((b"data: " + _DONE_BYTES, b"data:" + _DONE_BYTES)):
            self.done_seen = True

    def track_raw(self, chunk: bytes) -> None:
        self.chunks += 1
        # La sentinelle peut être coupée entre deux chunks
        window = self._tail + chunk
        if _DONE_BYTES in window:
            self.done_seen = True
        self._tail = window[-len(_DONE_BYTES):]

    def fail(self, error: httpx.HTTPError) -> None:
        self.failed = True
        _log_streaming_error(
            error_type=_classify_error(error),
            provider=self.provider,
            chunks_received=self.chunks,
            error=str(error),
            start_time=self.start_time
        )

    def finish(self) -> None:
        if not self.done_seen and not self.failed:
            logger.warning(
                f"[STREAM] Stream {self.provider} terminé sans [DONE] "
                f"après {self.chunks} événement(s)"
            )


def _classify_error(error: httpx.HTTPError) -> str:
    if isinstance(error, httpx.TimeoutException):
        return "timeout_error"
    if isinstance(error, httpx.ConnectError):
        return "connect_error"
    if isinstance(error, (httpx.ReadError, httpx.RemoteProtocolError)):
        return "read_error"
    return "unknown"


def _log_streaming_error(
    error_type: str,
    provider: str,
    chunks_received: int,
    error: str,
    start_time: datetime
) -> None:
    """Log structuré (une ligne) d'une erreur streaming."""
    duration = (datetime.now() - start_time).total_seconds()
    error_msg = STREAMING_ERROR_TYPES.get(error_type, STREAMING_ERROR_TYPES["unknown"])

    logger.error(
        f"[STREAM_ERROR] {error_msg} | provider={provider} "
        f"chunks={chunks_received} durée={duration:.2f}s détail={error[:200]}"
    )
