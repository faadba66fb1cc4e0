# backend/talentai/core/llm.py
"""
AI gateway over interchangeable LangChain chat models.

- One TextProvider class per provider (gemini / openai / claude), registered by name
- Chat models are built lazily so importing this module never needs credentials
- AIGateway.generate(prompt, system_prompt) uses the configured provider and, if that
  provider is not the default one, retries exactly once against the default provider.
  A default-provider failure propagates as AIUnavailable.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Optional, Type

from langchain_anthropic import ChatAnthropic
from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.messages import HumanMessage, SystemMessage
from langchain_google_genai import ChatGoogleGenerativeAI
from langchain_openai import ChatOpenAI

from .config import (
    DEFAULT_OPTIONS,
    MODEL_NAMES,
    get_ai_provider,
    get_anthropic_api_key,
    get_default_ai_provider,
    get_gemini_api_key,
    get_openai_api_key,
)
from .errors import AIUnavailable, MalformedAIOutput

logger = logging.getLogger(__name__)


def _message_text(out: Any) -> str:
    """Flatten an AIMessage (str or list-of-blocks content) into plain text."""
    content = getattr(out, "content", out)
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for block in content:
            if isinstance(block, str):
                parts.append(block)
            elif isinstance(block, dict) and block.get("type") == "text":
                parts.append(block.get("text") or "")
        return "".join(parts)
    return str(content or "")


# --- Providers ---------------------------------------------------------------

class TextProvider:
    """A named text generator. Subclasses raise AIUnavailable on any failure."""

    name: str = ""

    def generate(self, prompt: str, system_prompt: str = "") -> str:
        raise NotImplementedError


class LangChainProvider(TextProvider):
    """Wraps a LangChain chat model built on first use."""

    def __init__(self, options: Optional[Dict[str, Any]] = None, model: Optional[str] = None) -> None:
        self.options = dict(DEFAULT_OPTIONS, **(options or {}))
        self.model = model or MODEL_NAMES.get(self.name, "")
        self._chat: Optional[BaseChatModel] = None

    def api_key(self) -> str:
        raise NotImplementedError

    def build(self, api_key: str) -> BaseChatModel:
        raise NotImplementedError

    def chat_model(self) -> BaseChatModel:
        if self._chat is None:
            key = self.api_key()
            if not key:
                raise AIUnavailable(f"{self.name} API key not configured")
            self._chat = self.build(key)
        return self._chat

    def generate(self, prompt: str, system_prompt: str = "") -> str:
        messages = []
        if system_prompt:
            messages.append(SystemMessage(content=system_prompt))
        messages.append(HumanMessage(content=prompt))
        try:
            out = self.chat_model().invoke(messages)
        except AIUnavailable:
            raise
        except Exception as e:
            raise AIUnavailable(f"{self.name} request failed: {e}") from e
        text = _message_text(out).strip()
        if not text:
            raise MalformedAIOutput(f"{self.name} returned an empty response")
        return text


class GeminiProvider(LangChainProvider):
    name = "gemini"

    def api_key(self) -> str:
        return get_gemini_api_key()

    def build(self, api_key: str) -> BaseChatModel:
        return ChatGoogleGenerativeAI(
            model=self.model,
            temperature=self.options["temperature"],
            max_output_tokens=self.options["max_output_tokens"],
            timeout=self.options["ai_timeout_seconds"],
            max_retries=0,
            api_key=api_key,
        )


class OpenAIProvider(LangChainProvider):
    name = "openai"

    def api_key(self) -> str:
        return get_openai_api_key()

    def build(self, api_key: str) -> BaseChatModel:
        return ChatOpenAI(
            model=self.model,
            temperature=self.options["temperature"],
            max_tokens=self.options["max_output_tokens"],
            timeout=self.options["ai_timeout_seconds"],
            max_retries=0,
            api_key=api_key,
        )


class ClaudeProvider(LangChainProvider):
    name = "claude"

    def api_key(self) -> str:
        return get_anthropic_api_key()

    def build(self, api_key: str) -> BaseChatModel:
        return ChatAnthropic(
            model=self.model,
            temperature=self.options["temperature"],
            max_tokens=self.options["max_output_tokens"],
            timeout=self.options["ai_timeout_seconds"],
            max_retries=0,
            api_key=api_key,
        )


PROVIDERS: Dict[str, Type[LangChainProvider]] = {
    "gemini": GeminiProvider,
    "openai": OpenAIProvider,
    "claude": ClaudeProvider,
}


def register_provider(name: str, factory: Type[LangChainProvider]) -> None:
    PROVIDERS[name.lower()] = factory


# --- Gateway -----------------------------------------------------------------

class AIGateway:
    def __init__(
        self,
        providers: Dict[str, TextProvider],
        active: str = "gemini",
        default: str = "gemini",
    ) -> None:
        if default not in providers:
            raise ValueError(f"default provider '{default}' is not registered")
        if active not in providers:
            logger.warning("Unknown AI provider '%s'; using default '%s'", active, default)
            active = default
        self.providers = providers
        self.active = active
        self.default = default

    def _call(self, name: str, prompt: str, system_prompt: str) -> str:
        try:
            return self.providers[name].generate(prompt, system_prompt)
        except AIUnavailable:
            raise
        except Exception as e:
            raise AIUnavailable(f"{name} failed: {e}") from e

    def generate(self, prompt: str, system_prompt: str = "") -> str:
        try:
            return self._call(self.active, prompt, system_prompt)
        except AIUnavailable as e:
            logger.error("AI error (%s): %s", self.active, e.message)
            if self.active == self.default:
                raise
        logger.warning("Falling back to %s...", self.default)
        try:
            return self._call(self.default, prompt, system_prompt)
        except AIUnavailable as e:
            logger.error("AI error (%s, fallback): %s", self.default, e.message)
            raise


def build_gateway(
    options: Optional[Dict[str, Any]] = None,
    active: Optional[str] = None,
    default: Optional[str] = None,
    factories: Optional[Dict[str, Callable[..., TextProvider]]] = None,
) -> AIGateway:
    """Instantiate every registered provider and pick active/default from env."""
    factories = factories or PROVIDERS
    providers = {name: factory(options) for name, factory in factories.items()}
    return AIGateway(
        providers,
        active=(active or get_ai_provider()),
        default=(default or get_default_ai_provider()),
    )


__all__ = [
    "TextProvider",
    "LangChainProvider",
    "GeminiProvider",
    "OpenAIProvider",
    "ClaudeProvider",
    "PROVIDERS",
    "register_provider",
    "AIGateway",
    "build_gateway",
]
