"""
Tests unitaires pour la transformation du raisonnement.
"""
import json

import pytest

from nim_proxy.config.settings import FeatureToggles
from nim_proxy.core.models import ReasoningState
from nim_proxy.proxy.transformers import ReasoningTransform, parse_event, format_sse

SHOW = ReasoningTransform(FeatureToggles(show_reasoning=True))
HIDE = ReasoningTransform(FeatureToggles(show_reasoning=False))


def delta_line(**delta):
    return "data: " + json.dumps({"id": "c1", "choices": [{"index": 0, "delta": delta}]})


def emitted_delta(line):
    assert line.startswith("data: ")
    return json.loads(line[len("data: "):])["choices"][0]["delta"]


class TestParseEvent:
    """Classification des lignes SSE."""

    def test_done(self):
        assert parse_event("data: [DONE]").is_done
        assert parse_event("data:[DONE]").is_done

    def test_json(self):
        event = parse_event(delta_line(content="hi"))
        assert event.kind == "json"
        assert event.payload["choices"][0]["delta"]["content"] == "hi"

    def test_json_without_space(self):
        assert parse_event('data:{"choices":[]}').kind == "json"

    @pytest.mark.parametrize("line", [
        "data: not-json",
        'data: {"choices": [',
        "data: 42",
        ": keep-alive",
        "event: ping",
    ])
    def test_raw(self, line):
        event = parse_event(line)
        assert event.kind == "raw"
        assert event.raw == line


class TestTransformEventShowReasoning:
    """Reconstruction des blocs <think> en streaming."""

    def test_reasoning_then_content(self):
        state = ReasoningState()
        first = SHOW.transform_event(parse_event(delta_line(reasoning_content="ab")), state)
        assert emitted_delta(first) == {"content": "<think>\nab"}
        assert state.inside_think is True

        second = SHOW.transform_event(parse_event(delta_line(reasoning_content="c")), state)
        assert emitted_delta(second) == {"content": "c"}

        third = SHOW.transform_event(parse_event(delta_line(content="42")), state)
        assert emitted_delta(third) == {"content": "\n</think>\n\n42"}
        assert state.inside_think is False

    def test_reasoning_and_content_in_same_delta(self):
        state = ReasoningState()
        line = SHOW.transform_event(
            parse_event(delta_line(reasoning_content="why", content="answer")), state
        )
        assert emitted_delta(line)["content"] == "<think>\nwhy\n</think>\n\nanswer"
        assert state.inside_think is False

    def test_content_only_passes_unchanged(self):
        raw = delta_line(content="hello")
        state = ReasoningState()
        assert SHOW.transform_event(parse_event(raw), state) == raw
        assert state.inside_think is False

    def test_content_only_with_empty_reasoning_field_drops_field(self):
        state = ReasoningState()
        line = SHOW.transform_event(
            parse_event(delta_line(reasoning_content="", content="hello")), state
        )
        assert emitted_delta(line) == {"content": "hello"}

    def test_content_only_closes_open_block(self):
        state = ReasoningState(inside_think=True)
        line = SHOW.transform_event(parse_event(delta_line(content="hello")), state)
        assert emitted_delta(line) == {"content": "\n</think>\n\nhello"}

    def test_content_null_with_reasoning(self):
        state = ReasoningState()
        line = SHOW.transform_event(
            parse_event(delta_line(content=None, reasoning_content="r")), state
        )
        assert emitted_delta(line) == {"content": "<think>\nr"}

    def test_empty_reasoning_is_absent(self):
        raw = delta_line(reasoning_content="", content="")
        state = ReasoningState()
        assert SHOW.transform_event(parse_event(raw), state) == raw
        assert state.inside_think is False

    def test_other_delta_fields_kept(self):
        state = ReasoningState()
        line = SHOW.transform_event(
            parse_event(delta_line(role="assistant", reasoning_content="r")), state
        )
        assert emitted_delta(line) == {"role": "assistant", "content": "<think>\nr"}

    def test_non_ascii_kept(self):
        state = ReasoningState()
        line = SHOW.transform_event(parse_event(delta_line(reasoning_content="déjà")), state)
        assert "déjà" in line

    def test_done_untouched(self):
        state = ReasoningState(inside_think=True)
        assert SHOW.transform_event(parse_event("data: [DONE]"), state) == "data: [DONE]"
        assert state.inside_think is True

    def test_invalid_json_forwarded(self):
        state = ReasoningState(inside_think=True)
        line = SHOW.transform_event(parse_event("data: not-json"), state)
        assert format_sse(line) == "data: not-json\n\n"
        assert state.inside_think is True

    @pytest.mark.parametrize("payload", [
        {"choices": []},
        {"choices": [{"index": 0}]},
        {"choices": "nope"},
        {"usage": {"total_tokens": 3}},
    ])
    def test_without_delta_unchanged(self, payload):
        raw = "data: " + json.dumps(payload)
        assert SHOW.transform_event(parse_event(raw), ReasoningState()) == raw

    def test_input_payload_not_mutated(self):
        event = parse_event(delta_line(reasoning_content="r"))
        SHOW.transform_event(event, ReasoningState())
        assert event.payload["choices"][0]["delta"] == {"reasoning_content": "r"}


class TestTransformEventHideReasoning:
    """Raisonnement masqué: ni champ brut ni délimiteurs."""

    @pytest.mark.parametrize("delta", [
        {"reasoning_content": "secret"},
        {"reasoning_content": "secret", "content": "ok"},
        {"reasoning_content": None, "content": None},
        {"content": "ok"},
    ])
    def test_never_leaks(self, delta):
        state = ReasoningState()
        line = HIDE.transform_event(parse_event(delta_line(**delta)), state)

        assert "reasoning_content" not in line
        assert "<think>" not in line
        assert "</think>" not in line
        assert state.inside_think is False

    def test_content_defaults_to_empty(self):
        line = HIDE.transform_event(parse_event(delta_line(reasoning_content="secret")), ReasoningState())
        assert emitted_delta(line) == {"content": ""}

    def test_content_kept(self):
        line = HIDE.transform_event(
            parse_event(delta_line(reasoning_content="secret", content="ok")), ReasoningState()
        )
        assert emitted_delta(line) == {"content": "ok"}


class TestTransformCompletion:
    """Réponses non-streaming."""

    def _body(self, **message):
        return {
            "id": "cmpl-1",
            "choices": [{"index": 0, "message": {"role": "assistant", **message}, "finish_reason": "stop"}],
            "usage": {"total_tokens": 10},
        }

    def test_reasoning_prefixed(self):
        result = SHOW.transform_completion(self._body(content="42", reasoning_content="because"))

        message = result["choices"][0]["message"]
        assert message == {"role": "assistant", "content": "<think>\nbecause\n</think>\n\n42"}
        assert result["usage"] == {"total_tokens": 10}
        assert result["choices"][0]["finish_reason"] == "stop"

    def test_reasoning_hidden(self):
        result = HIDE.transform_completion(self._body(content="42", reasoning_content="because"))
        assert result["choices"][0]["message"] == {"role": "assistant", "content": "42"}

    def test_empty_reasoning_no_block(self):
        result = SHOW.transform_completion(self._body(content="42", reasoning_content=""))
        assert result["choices"][0]["message"]["content"] == "42"

    def test_null_content_with_reasoning(self):
        result = SHOW.transform_completion(self._body(content=None, reasoning_content="r"))
        assert result["choices"][0]["message"]["content"] == "<think>\nr\n</think>\n\n"

    def test_choices_independent(self):
        body = {
            "choices": [
                {"index": 0, "message": {"content": "a", "reasoning_content": "ra"}},
                {"index": 1, "message": {"content": "b"}},
            ]
        }
        result = SHOW.transform_completion(body)
        assert result["choices"][0]["message"]["content"] == "<think>\nra\n</think>\n\na"
        assert result["choices"][1]["message"]["content"] == "b"

    @pytest.mark.parametrize("body", [{}, {"choices": []}, {"error": "bad"}, [], "text"])
    def test_no_choices(self, body):
        assert SHOW.transform_completion(body) == body

    def test_input_not_mutated(self):
        body = self._body(content="42", reasoning_content="because")
        SHOW.transform_completion(body)
        assert body["choices"][0]["message"]["reasoning_content"] == "because"
