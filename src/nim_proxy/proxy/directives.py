"""
Détection du marqueur <ENABLETHINKING> dans la conversation.
"""
from typing import Any, List, Sequence, Tuple

from ..core.constants import THINKING_MARKER


def _strip_marker(content: str, marker: str) -> str:
    # Boucle: retirer une occurrence peut en recoller une autre
    while marker in content:
        content = content.replace(marker, "")
    return content.strip()


def scan_directives(
    messages: Sequence[Any],
    marker: str = THINKING_MARKER
) -> Tuple[bool, List[Any]]:
    """
    Cherche le marqueur dans le contenu texte des messages et le retire.

    Le flag est global à la requête: une seule occurrence suffit. Les
    messages sans marqueur sont repris tels quels (mêmes objets), les
    autres sont copiés avec le contenu nettoyé. La liste d'entrée n'est
    jamais modifiée.

    Returns:
        Tuple (thinking_requested, cleaned_messages)
    """
    thinking_requested = False
    cleaned = []

    for message in messages:
        content = message.get("content") if isinstance(message, dict) else None
        if isinstance(content, str) and marker in content:
            thinking_requested = True
            cleaned.append({**message, "content": _strip_marker(content, marker)})
        else:
            cleaned.append(message)

    return thinking_requested, cleaned
