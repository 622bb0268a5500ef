"""
JetAI Backend - Conversational Model Providers
LangChain chat models behind one small interface. Each provider owns
its request shape and its client construction.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any

from langchain_anthropic import ChatAnthropic
from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage
from langchain_core.runnables import Runnable
from langchain_google_genai import ChatGoogleGenerativeAI
from langchain_openai import ChatOpenAI

from jetai.core.config import Settings, settings as default_settings
from jetai.domains.chat.services.prompts import GEMINI_ACKNOWLEDGEMENT
from jetai.domains.credentials import CredentialPoolManager, ServiceCategory

logger = logging.getLogger(__name__)


class ProviderUnavailableError(Exception):
    """Provider cannot be used (no credential, client build failed)."""


class EmptyResponseError(Exception):
    """Provider answered with no text."""


def message_text(content: Any) -> str:
    """Flatten LangChain message content (str or content blocks) to text."""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for block in content:
            if isinstance(block, str):
                parts.append(block)
            elif isinstance(block, dict) and block.get("type") == "text":
                parts.append(block.get("text", ""))
        return "".join(parts)
    return str(content or "")


# ============ Provider Interface ============


class ModelProvider(ABC):
    """A conversational model the fallback chain can call."""

    name: str = ""

    @abstractmethod
    async def complete(self, messages: list[BaseMessage]) -> str:
        """Return the raw reply text. Raises on any failure."""


class LangChainProvider(ModelProvider):
    """Provider backed by a lazily built LangChain chat model."""

    def __init__(self, settings: Settings | None = None):
        self.settings = settings or default_settings
        self._model: Runnable | None = None

    @abstractmethod
    def _build_model(self) -> Runnable | None:
        """Construct the chat model, or None if it cannot be configured."""

    def prepare_messages(self, messages: list[BaseMessage]) -> list[BaseMessage]:
        return messages

    def model(self) -> Runnable:
        if self._model is None:
            self._model = self._build_model()
        if self._model is None:
            raise ProviderUnavailableError(f"{self.name} is not configured")
        return self._model

    async def complete(self, messages: list[BaseMessage]) -> str:
        response = await self.model().ainvoke(self.prepare_messages(messages))
        text = message_text(getattr(response, "content", response)).strip()
        if not text:
            raise EmptyResponseError(f"{self.name} returned an empty reply")
        return text


# ============ Providers ============


class GeminiProvider(LangChainProvider):
    """Gemini via the credential pool (model_generation groups)."""

    name = "gemini"

    def __init__(self, credentials: CredentialPoolManager, settings: Settings | None = None):
        super().__init__(settings)
        self.credentials = credentials

    def _build_model(self) -> Runnable | None:
        return self.credentials.initialize_client(
            ServiceCategory.MODEL_GENERATION,
            self.name,
            lambda api_key: ChatGoogleGenerativeAI(
                model=self.settings.GEMINI_MODEL,
                google_api_key=api_key,
                temperature=self.settings.MODEL_TEMPERATURE,
                max_output_tokens=self.settings.MODEL_MAX_OUTPUT_TOKENS,
            ),
        )

    def prepare_messages(self, messages: list[BaseMessage]) -> list[BaseMessage]:
        # Persona goes in as the opening user turn, acknowledged by the model.
        prepared: list[BaseMessage] = []
        for message in messages:
            if isinstance(message, SystemMessage):
                prepared.append(HumanMessage(content=message.content))
                prepared.append(AIMessage(content=GEMINI_ACKNOWLEDGEMENT))
            else:
                prepared.append(message)
        return prepared


class AnthropicProvider(LangChainProvider):
    name = "anthropic"

    def _build_model(self) -> Runnable | None:
        if not self.settings.ANTHROPIC_API_KEY:
            return None
        return ChatAnthropic(
            model=self.settings.ANTHROPIC_MODEL,
            api_key=self.settings.ANTHROPIC_API_KEY,
            temperature=self.settings.MODEL_TEMPERATURE,
            max_tokens=self.settings.MODEL_MAX_OUTPUT_TOKENS,
        )


class OpenAIProvider(LangChainProvider):
    name = "openai"

    def _build_model(self) -> Runnable | None:
        if not self.settings.OPENAI_API_KEY:
            return None
        llm = ChatOpenAI(
            model=self.settings.OPENAI_MODEL,
            api_key=self.settings.OPENAI_API_KEY,
            temperature=self.settings.MODEL_TEMPERATURE,
            max_tokens=self.settings.MODEL_MAX_OUTPUT_TOKENS,
        )
        return llm.bind(response_format={"type": "json_object"})


def build_providers(
    credentials: CredentialPoolManager,
    settings: Settings | None = None,
) -> list[ModelProvider]:
    """Instantiate providers in MODEL_PROVIDER_ORDER, skipping unknown names."""
    settings = settings or default_settings
    factories = {
        "gemini": lambda: GeminiProvider(credentials, settings),
        "anthropic": lambda: AnthropicProvider(settings),
        "openai": lambda: OpenAIProvider(settings),
    }
    providers: list[ModelProvider] = []
    for name in settings.MODEL_PROVIDER_ORDER:
        factory = factories.get(name.lower())
        if factory is None:
            logger.warning(f"Unknown model provider {name!r} in MODEL_PROVIDER_ORDER")
            continue
        providers.append(factory())
    return providers
