"""
Dataclasses métier pour NIM Proxy Gateway.
"""
from dataclasses import dataclass, field
from typing import List, Optional, Dict, Any


@dataclass(frozen=True)
class ChatRequest:
    """
    Requête chat entrante au format OpenAI.

    Construite via `from_body`, qui accepte n'importe quelle forme de body:
    les champs absents ou invalides reçoivent des valeurs neutres.
    """
    model: Any = None
    messages: List[Any] = field(default_factory=list)
    temperature: Any = None
    max_tokens: Any = None
    stream: bool = False

    @classmethod
    def from_body(cls, body: Any) -> "ChatRequest":
        """Crée une requête depuis le body JSON décodé (dict ou autre)."""
        if not isinstance(body, dict):
            body = {}
        messages = body.get("messages")
        return cls(
            model=body.get("model"),
            messages=list(messages) if isinstance(messages, list) else [],
            temperature=body.get("temperature"),
            max_tokens=body.get("max_tokens"),
            stream=bool(body.get("stream", False))
        )


@dataclass(frozen=True)
class ResolvedTarget:
    """Modèle provider résolu et mode raisonnement, figés pour la requête."""
    provider_model_id: str
    thinking_requested: bool = False


@dataclass(frozen=True)
class ProbeResult:
    """
    Résultat d'une sonde de capacité.

    Une erreur (timeout, statut non 2xx, réseau) n'est pas une exception:
    c'est une entrée valide pour la décision de fallback.
    """
    ok: bool
    status_code: Optional[int] = None
    error: Optional[str] = None


@dataclass(frozen=True)
class UpstreamRequest:
    """
    Body envoyé au provider.

    `thinking` vaut None quand le raisonnement n'est pas demandé: la clé est
    alors absente du payload (le provider réagit à sa présence, pas à sa valeur).
    """
    model: str
    messages: List[Any]
    temperature: float
    max_tokens: int
    stream: bool = False
    thinking: Optional[Dict[str, Any]] = None

    def to_payload(self) -> Dict[str, Any]:
        """Convertit la requête en body JSON pour le provider."""
        payload = {
            "model": self.model,
            "messages": self.messages,
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
        }
        if self.thinking is not None:
            payload.update(self.thinking)
        payload["stream"] = self.stream
        return payload


@dataclass(frozen=True)
class StreamEvent:
    """Une ligne du protocole SSE upstream: sentinelle, JSON ou brute."""
    kind: str  # "done", "json", "raw"
    raw: str
    payload: Optional[Dict[str, Any]] = None

    @property
    def is_done(self) -> bool:
        return self.kind == "done"


@dataclass
class ReasoningState:
    """État par stream: un bloc <think> est-il ouvert sans fermeture ?"""
    inside_think: bool = False
