from unittest.mock import patch

import pytest

from talentai.core.errors import AIUnavailable, MalformedAIOutput
from talentai.core.llm import AIGateway, GeminiProvider, build_gateway

from conftest import FakeProvider


def test_non_default_failure_falls_back_to_default_once():
    openai = FakeProvider("openai", error=AIUnavailable("429"))
    gemini = FakeProvider("gemini", replies=["from gemini"])
    gateway = AIGateway({"openai": openai, "gemini": gemini}, active="openai", default="gemini")
    assert gateway.generate("p", "s") == "from gemini"
    assert len(openai.calls) == 1
    assert len(gemini.calls) == 1


def test_default_failure_is_not_retried():
    gemini = FakeProvider("gemini", error=AIUnavailable("boom"))
    gateway = AIGateway({"gemini": gemini}, active="gemini", default="gemini")
    with pytest.raises(AIUnavailable):
        gateway.generate("p")
    assert len(gemini.calls) == 1


def test_fallback_failure_propagates():
    openai = FakeProvider("openai", error=AIUnavailable("down"))
    gemini = FakeProvider("gemini", error=AIUnavailable("also down"))
    gateway = AIGateway({"openai": openai, "gemini": gemini}, active="openai", default="gemini")
    with pytest.raises(AIUnavailable):
        gateway.generate("p")
    assert len(gemini.calls) == 1


def test_unexpected_provider_error_becomes_ai_unavailable():
    claude = FakeProvider("claude", error=RuntimeError("socket closed"))
    gemini = FakeProvider("gemini", replies=["ok"])
    gateway = AIGateway({"claude": claude, "gemini": gemini}, active="claude", default="gemini")
    assert gateway.generate("p") == "ok"


def test_unknown_provider_uses_default():
    gemini = FakeProvider("gemini", replies=["ok"])
    gateway = AIGateway({"gemini": gemini}, active="mistral", default="gemini")
    assert gateway.active == "gemini"
    assert gateway.generate("p") == "ok"


def test_missing_key_is_a_provider_failure():
    with patch("talentai.core.llm.get_gemini_api_key", return_value=""):
        with pytest.raises(AIUnavailable):
            GeminiProvider().generate("hello")


def test_empty_model_reply_is_malformed():
    provider = GeminiProvider()
    with patch.object(GeminiProvider, "chat_model") as chat:
        chat.return_value.invoke.return_value.content = "   "
        with pytest.raises(MalformedAIOutput):
            provider.generate("hello", "system")


def test_list_content_blocks_are_joined():
    provider = GeminiProvider()
    with patch.object(GeminiProvider, "chat_model") as chat:
        chat.return_value.invoke.return_value.content = [{"type": "text", "text": "a"}, "b"]
        assert provider.generate("hello") == "ab"


def test_build_gateway_with_factories():
    factories = {
        "gemini": lambda options: FakeProvider("gemini", replies=["g"]),
        "openai": lambda options: FakeProvider("openai", replies=["o"]),
    }
    gateway = build_gateway(active="openai", default="gemini", factories=factories)
    assert gateway.generate("p") == "o"
