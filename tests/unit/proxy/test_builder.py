"""
Tests unitaires pour la construction du body upstream.
"""
import pytest

from nim_proxy.core.models import ResolvedTarget
from nim_proxy.proxy.builder import build_upstream_request

MESSAGES = [{"role": "user", "content": "Bonjour"}]


def _build(settings, provider="nvidia", thinking=False, **kwargs):
    return build_upstream_request(
        settings.get_provider(provider),
        ResolvedTarget(provider_model_id="meta/llama-3.1-8b-instruct", thinking_requested=thinking),
        MESSAGES,
        **kwargs
    )


class TestDefaults:
    """Valeurs par défaut par provider."""

    @pytest.mark.parametrize("provider,expected", [("nvidia", 0.6), ("ehub", 0.7)])
    def test_default_temperature(self, settings, provider, expected):
        assert _build(settings, provider=provider).temperature == expected

    @pytest.mark.parametrize("value", [None, "0.2", True, [1]])
    def test_non_numeric_temperature_replaced(self, settings, value):
        assert _build(settings, temperature=value).temperature == 0.6

    def test_client_temperature_kept(self, settings):
        assert _build(settings, temperature=0).temperature == 0
        assert _build(settings, temperature=1.3).temperature == 1.3

    @pytest.mark.parametrize("value", [None, "512", False])
    def test_default_max_tokens(self, settings, value):
        assert _build(settings, max_tokens=value).max_tokens == 1024

    def test_client_max_tokens_kept(self, settings):
        assert _build(settings, max_tokens=64).max_tokens == 64

    @pytest.mark.parametrize("value,expected", [(None, False), (1, True), ("yes", True), (0, False)])
    def test_stream_coerced(self, settings, value, expected):
        assert _build(settings, stream=value).stream is expected


class TestThinkingDirective:
    """La directive est présente seulement si demandée."""

    def test_absent_when_not_requested(self, settings):
        payload = _build(settings).to_payload()
        assert "chat_template_kwargs" not in payload

    def test_present_when_requested(self, settings):
        payload = _build(settings, thinking=True).to_payload()
        assert payload["chat_template_kwargs"] == {"thinking": True}

    def test_forced_by_global_toggle(self, settings):
        payload = _build(settings, force_thinking=True).to_payload()
        assert payload["chat_template_kwargs"] == {"thinking": True}

    def test_directive_is_a_copy(self, settings):
        request = _build(settings, thinking=True)
        request.thinking["chat_template_kwargs"]["thinking"] = False
        assert _build(settings, thinking=True).thinking["chat_template_kwargs"]["thinking"] is True

    def test_payload_shape(self, settings):
        payload = _build(settings, provider="ehub", stream=True, thinking=True).to_payload()
        assert payload == {
            "model": "meta/llama-3.1-8b-instruct",
            "messages": MESSAGES,
            "temperature": 0.7,
            "max_tokens": 1024,
            "chat_template_kwargs": {"thinking": True},
            "stream": True,
        }
