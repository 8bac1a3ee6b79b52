"""
Tests unitaires pour la détection du marqueur <ENABLETHINKING>.
"""
import copy

import pytest

from nim_proxy.proxy.directives import scan_directives

MARKER = "<ENABLETHINKING>"


class TestScanDirectives:
    """Détection et nettoyage du marqueur."""

    def test_no_marker(self, sample_messages):
        """Sans marqueur: flag faux, mêmes objets message."""
        messages = [m for m in sample_messages if MARKER not in m["content"]]
        thinking, cleaned = scan_directives(messages)

        assert thinking is False
        assert cleaned == messages
        assert cleaned is not messages
        assert all(a is b for a, b in zip(cleaned, messages))

    def test_marker_detected_and_stripped(self, sample_messages):
        """Le marqueur est retiré et le contenu trimé."""
        thinking, cleaned = scan_directives(sample_messages)

        assert thinking is True
        assert cleaned[1]["content"] == "Combien font 6 x 7 ?"
        assert cleaned[1]["role"] == "user"
        # Les autres messages sont inchangés
        assert cleaned[0] is sample_messages[0]
        assert cleaned[2] is sample_messages[2]

    def test_input_not_mutated(self, sample_messages):
        """La liste et les messages d'entrée ne sont jamais modifiés."""
        original = copy.deepcopy(sample_messages)
        scan_directives(sample_messages)
        assert sample_messages == original

    def test_all_occurrences_removed(self):
        """Toutes les occurrences sont retirées, dans tous les messages."""
        messages = [
            {"role": "system", "content": f"{MARKER}a{MARKER}b {MARKER}"},
            {"role": "user", "content": f"  {MARKER}  question"},
        ]
        thinking, cleaned = scan_directives(messages)

        assert thinking is True
        assert cleaned[0]["content"] == "ab"
        assert cleaned[1]["content"] == "question"

    def test_nested_marker_removed(self):
        """Un retrait qui recolle un nouveau marqueur est aussi nettoyé."""
        messages = [{"role": "user", "content": "<ENABLE<ENABLETHINKING>THINKING>go"}]
        thinking, cleaned = scan_directives(messages)

        assert thinking is True
        assert MARKER not in cleaned[0]["content"]
        assert cleaned[0]["content"] == "go"

    def test_idempotent(self, sample_messages):
        """Re-scanner des messages nettoyés ne détecte plus rien."""
        _, cleaned = scan_directives(sample_messages)
        thinking, cleaned_again = scan_directives(cleaned)

        assert thinking is False
        assert cleaned_again == cleaned

    @pytest.mark.parametrize("message", [
        {"role": "user", "content": None},
        {"role": "user", "content": [{"type": "text", "text": MARKER}]},
        {"role": "user"},
        "pas un dict",
        None,
    ])
    def test_non_string_content_passes_through(self, message):
        """Contenus non texte et messages invalides sont repris tels quels."""
        thinking, cleaned = scan_directives([message])

        assert thinking is False
        assert len(cleaned) == 1
        assert cleaned[0] is message

    def test_empty_conversation(self):
        """Conversation vide: flag faux, liste vide."""
        assert scan_directives([]) == (False, [])

    def test_length_and_order_preserved(self):
        """Même nombre de messages, même ordre."""
        messages = [{"role": "user", "content": f"{i} {MARKER}"} for i in range(5)]
        _, cleaned = scan_directives(messages)

        assert [m["content"] for m in cleaned] == [str(i) for i in range(5)]
