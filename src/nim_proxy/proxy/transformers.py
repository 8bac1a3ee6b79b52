"""
Transformation du raisonnement provider vers le format unifié <think>.

Le provider sépare `reasoning_content` (raisonnement) et `content`
(réponse). Le client reçoit un seul champ `content` où le raisonnement
est encadré par les délimiteurs <think> ... </think>.
"""
import copy
import json
from typing import Any, Dict, Optional

from ..config.settings import FeatureToggles
from ..core.constants import (
    THINK_OPEN,
    THINK_CLOSE,
    REASONING_FIELD,
    SSE_DATA_PREFIX,
    SSE_DONE,
)
from ..core.models import StreamEvent, ReasoningState


def parse_event(line: str) -> StreamEvent:
    """
    Classe une ligne SSE complète.

    - `data: [DONE]` -> sentinelle
    - `data: {...}` avec un objet JSON -> événement JSON
    - tout le reste (JSON invalide, lignes hors `data:`) -> brut
    """
    if not line.startswith(SSE_DATA_PREFIX):
        return StreamEvent(kind="raw", raw=line)

    data = line[len(SSE_DATA_PREFIX):]
    if data.startswith(" "):
        data = data[1:]

    if data.strip() == SSE_DONE:
        return StreamEvent(kind="done", raw=line)

    try:
        payload = json.loads(data)
    except ValueError:
        return StreamEvent(kind="raw", raw=line)

    if not isinstance(payload, dict):
        return StreamEvent(kind="raw", raw=line)
    return StreamEvent(kind="json", raw=line, payload=payload)


def format_sse(line: str) -> str:
    """Termine une ligne d'événement par la ligne vide SSE."""
    return f"{line}\n\n"


def _dump(payload: Dict[str, Any]) -> str:
    return SSE_DATA_PREFIX + " " + json.dumps(payload, ensure_ascii=False, separators=(",", ":"))


def _first_choice_field(payload: Dict[str, Any], field: str) -> Optional[Dict[str, Any]]:
    choices = payload.get("choices")
    if not isinstance(choices, list) or not choices or not isinstance(choices[0], dict):
        return None
    value = choices[0].get(field)
    return value if isinstance(value, dict) else None


def _text(value: Any) -> str:
    # Une chaîne vide compte comme absente
    return value if isinstance(value, str) and value else ""


class ReasoningTransform:
    """
    Fonction pure de (événement, état, toggles).

    L'état `ReasoningState` est propre à un stream: il indique si un bloc
    <think> a été ouvert sans être refermé.
    """

    def __init__(
        self,
        features: FeatureToggles,
        think_open: str = THINK_OPEN,
        think_close: str = THINK_CLOSE
    ):
        self.show_reasoning = features.show_reasoning
        self.think_open = think_open
        self.think_close = think_close

    # ------------------------------------------------------------------
    # Streaming
    # ------------------------------------------------------------------

    def transform_event(self, event: StreamEvent, state: ReasoningState) -> str:
        """
        Transforme un événement et retourne la ligne à émettre (sans `\\n\\n`).

        Les événements non modifiés (sentinelle, lignes brutes, deltas sans
        raisonnement ni contenu, contenu seul hors bloc <think>) sont renvoyés
        tels qu'ils ont été reçus.
        """
        if event.kind != "json":
            return event.raw

        delta = _first_choice_field(event.payload, "delta")
        if delta is None:
            return event.raw

        if not self.show_reasoning:
            if REASONING_FIELD not in delta:
                return event.raw
            payload = copy.deepcopy(event.payload)
            new_delta = payload["choices"][0]["delta"]
            del new_delta[REASONING_FIELD]
            if new_delta.get("content") is None:
                new_delta["content"] = ""
            return _dump(payload)

        reasoning = _text(delta.get(REASONING_FIELD))
        content = _text(delta.get("content"))
        if not reasoning and not content:
            return event.raw
        if not reasoning and not state.inside_think and REASONING_FIELD not in delta:
            return event.raw

        combined = ""
        if reasoning:
            if not state.inside_think:
                combined = self.think_open
                state.inside_think = True
            combined += reasoning
        if content:
            if state.inside_think:
                combined += self.think_close
                state.inside_think = False
            combined += content

        payload = copy.deepcopy(event.payload)
        new_delta = payload["choices"][0]["delta"]
        new_delta["content"] = combined
        new_delta.pop(REASONING_FIELD, None)
        return _dump(payload)

    # ------------------------------------------------------------------
    # Non-streaming
    # ------------------------------------------------------------------

    def transform_completion(self, body: Any) -> Any:
        """
        Préfixe la réponse de chaque choice par son bloc de raisonnement.

        Chaque choice est traité indépendamment. Le champ de raisonnement
        brut est toujours retiré du message renvoyé.
        """
        if not isinstance(body, dict):
            return body
        choices = body.get("choices")
        if not isinstance(choices, list):
            return body

        transformed = []
        for choice in choices:
            message = choice.get("message") if isinstance(choice, dict) else None
            if not isinstance(message, dict):
                transformed.append(choice)
                continue

            new_message = dict(message)
            reasoning = _text(new_message.pop(REASONING_FIELD, None))
            if self.show_reasoning and reasoning:
                answer = new_message.get("content") or ""
                new_message["content"] = (
                    self.think_open + reasoning + self.think_close + answer
                )
            transformed.append({**choice, "message": new_message})

        return {**body, "choices": transformed}
