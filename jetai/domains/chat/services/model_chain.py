"""
JetAI Backend - Conversational Model Fallback Chain
Tries each provider in order until one answers. The last provider gets
a few retries with linear backoff; if every provider fails the user gets
a fixed apology instead of an error.
"""

from __future__ import annotations

import asyncio
import logging
import re
from collections.abc import Awaitable, Callable, Sequence

from langchain_core.messages import BaseMessage
from pydantic import BaseModel, TypeAdapter, ValidationError

from jetai.core.config import Settings, settings as default_settings
from jetai.core.redact import redact_sensitive
from jetai.domains.chat.schemas import (
    ChatReply,
    Destination,
    HistoryMessage,
    Itinerary,
    PersonaConfig,
    TravelProfile,
)
from jetai.domains.chat.services.lenient_json import extract_json_object
from jetai.domains.chat.services.prompts import build_messages, itinerary_request
from jetai.domains.chat.services.providers import ModelProvider
from jetai.domains.chat.services.stage_machine import STAGE_SUGGESTIONS
from jetai.domains.enrichment.base import ToolErrorType, classify_error
from jetai.domains.monitoring import MetricCategory, MetricsRegistry, Outcome

logger = logging.getLogger(__name__)

SUGGESTION_COUNT = 3

GENERIC_SUGGESTIONS = (
    "Suggest a destination for me",
    "Help me plan a trip",
    "What can you do?",
)
CLARIFY_SUGGESTION = "Can you tell me more about what you're looking for?"

APOLOGY_MESSAGE = (
    "I'm sorry, I can't process your request at the moment. "
    "Please try again in a few minutes."
)
APOLOGY_SUGGESTIONS = (
    "Try again",
    "Suggest a popular destination",
    "Help me plan a trip",
)

ITINERARY_SUGGESTIONS = (
    "I love it. Save it",
    "Make some adjustments",
    "Show me other options",
)

_destinations_adapter = TypeAdapter(list[Destination])


# ============ Vague Queries ============

_VAGUE_PATTERNS = tuple(
    re.compile(p, re.IGNORECASE)
    for p in (
        r"\bwhere should i (?:go|travel)\b",
        r"\b(?:suggest|recommend)\s+(?:a|some|me a|me some)?\s*(?:trip|place|destination|somewhere)s?\b",
        r"\bany (?:ideas|suggestions|recommendations)\b",
        r"\b(?:plan|help me plan) (?:a|my) (?:trip|vacation|holiday)\b",
        r"\bi (?:want|need) (?:a|to take a) (?:vacation|holiday|break|trip)\b",
        r"\bsomewhere (?:nice|fun|warm|cheap)\b",
        r"\b(?:a dónde|adónde|donde) (?:debería|puedo) (?:ir|viajar)\b",
        r"\brecomiénda(?:me)?\b",
    )
)


def is_vague_query(message: str) -> bool:
    """Very short, or a generic "where should I go" style request."""
    words = message.split()
    if len(words) <= 3:
        return True
    return any(pattern.search(message) for pattern in _VAGUE_PATTERNS)


# ============ Reply Parsing ============


class ProviderError(BaseModel):
    """A provider attempt that produced no reply."""

    provider: str
    kind: str
    message: str
    attempts: int = 1


def normalize_suggestions(
    suggestions: Sequence[object] | None,
    defaults: Sequence[str] = GENERIC_SUGGESTIONS,
) -> list[str]:
    """Exactly three distinct, non-empty suggestions."""
    result: list[str] = []
    for item in list(suggestions or []) + list(defaults) + list(GENERIC_SUGGESTIONS):
        text = str(item).strip() if item is not None else ""
        if text and text not in result:
            result.append(text)
        if len(result) == SUGGESTION_COUNT:
            break
    return result


def parse_reply(
    text: str,
    provider: str,
    default_suggestions: Sequence[str] = GENERIC_SUGGESTIONS,
) -> ChatReply:
    """Decode a provider's reply; unparseable text becomes the message."""
    data = extract_json_object(text)
    message = data.get("message") if data else None
    if not isinstance(message, str) or not message.strip():
        logger.info(f"{provider} reply was not structured JSON, using raw text")
        return ChatReply(
            message=text.strip(),
            suggestions=normalize_suggestions([CLARIFY_SUGGESTION], default_suggestions),
            provider=provider,
        )

    suggestions = data.get("suggestions")
    if not isinstance(suggestions, list):
        suggestions = []

    destinations = None
    if data.get("destinations"):
        try:
            destinations = _destinations_adapter.validate_python(data["destinations"])
        except ValidationError as e:
            logger.warning(f"Dropping malformed destinations from {provider}: {e.error_count()} errors")

    itinerary = None
    if data.get("itinerary"):
        try:
            itinerary = Itinerary.model_validate(data["itinerary"])
        except ValidationError as e:
            logger.warning(f"Dropping malformed itinerary from {provider}: {e.error_count()} errors")

    return ChatReply(
        message=message.strip(),
        suggestions=normalize_suggestions(suggestions, default_suggestions),
        destinations=destinations or None,
        itinerary=itinerary if itinerary and itinerary.days else None,
        provider=provider,
    )


def apology_reply() -> ChatReply:
    return ChatReply(message=APOLOGY_MESSAGE, suggestions=list(APOLOGY_SUGGESTIONS))


# ============ Chain ============


class ModelFallbackChain:
    """Ordered provider fallback with bounded retry on the last provider."""

    def __init__(
        self,
        providers: Sequence[ModelProvider],
        metrics: MetricsRegistry,
        settings: Settings | None = None,
        last_provider_attempts: int | None = None,
        backoff_seconds: float | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        settings = settings or default_settings
        self.providers = list(providers)
        self.metrics = metrics
        self.last_provider_attempts = max(
            1,
            settings.LAST_PROVIDER_MAX_ATTEMPTS
            if last_provider_attempts is None
            else last_provider_attempts,
        )
        self.backoff_seconds = (
            settings.LAST_PROVIDER_BACKOFF_SECONDS if backoff_seconds is None else backoff_seconds
        )
        self._sleep = sleep

    async def _attempt(
        self,
        provider: ModelProvider,
        messages: list[BaseMessage],
        attempts: int,
    ) -> str | ProviderError:
        error = ProviderError(
            provider=provider.name,
            kind=ToolErrorType.UNKNOWN,
            message="no attempts made",
            attempts=0,
        )
        for attempt in range(1, attempts + 1):
            try:
                return await provider.complete(messages)
            except Exception as e:
                error = ProviderError(
                    provider=provider.name,
                    kind=classify_error(e),
                    message=redact_sensitive(str(e)) or type(e).__name__,
                    attempts=attempt,
                )
                logger.warning(
                    f"Model provider {provider.name} attempt {attempt}/{attempts} "
                    f"failed [{error.kind}]: {error.message}"
                )
            if attempt < attempts:
                await self._sleep(self.backoff_seconds * attempt)
        return error

    async def run(
        self,
        messages: list[BaseMessage],
        default_suggestions: Sequence[str] = GENERIC_SUGGESTIONS,
    ) -> ChatReply:
        """Walk the providers; never raises for provider failures."""
        errors: list[ProviderError] = []
        for index, provider in enumerate(self.providers):
            is_last = index == len(self.providers) - 1
            outcome = await self._attempt(
                provider,
                messages,
                self.last_provider_attempts if is_last else 1,
            )
            if isinstance(outcome, ProviderError):
                errors.append(outcome)
                continue

            self._record(Outcome.PRIMARY if index == 0 else Outcome.FALLBACK)
            if index > 0:
                logger.info(f"Reply served by fallback provider {provider.name}")
            try:
                return parse_reply(outcome, provider.name, default_suggestions)
            except Exception as e:
                logger.error(f"Could not parse reply from {provider.name}: {type(e).__name__}")
                return ChatReply(
                    message=outcome.strip(),
                    suggestions=normalize_suggestions([], default_suggestions),
                    provider=provider.name,
                )

        self._record(Outcome.ERROR)
        logger.error(
            "All model providers failed: "
            + "; ".join(f"{e.provider} ({e.kind})" for e in errors)
        )
        return apology_reply()

    async def generate_reply(
        self,
        message: str,
        history: list[HistoryMessage],
        persona: PersonaConfig,
    ) -> ChatReply:
        vague = is_vague_query(message)
        messages = build_messages(message, history, persona, vague=vague)
        stage = persona.next_stage or persona.stage
        return await self.run(messages, STAGE_SUGGESTIONS.get(stage, GENERIC_SUGGESTIONS))

    async def generate_itinerary(
        self,
        profile: TravelProfile,
        history: list[HistoryMessage],
        persona: PersonaConfig,
    ) -> ChatReply:
        """Ask the chain for a day-by-day itinerary for the profile."""
        messages = build_messages(itinerary_request(profile), history, persona)
        reply = await self.run(messages, ITINERARY_SUGGESTIONS)
        if reply.itinerary is not None:
            reply = reply.model_copy(update={"suggestions": list(ITINERARY_SUGGESTIONS)})
        return reply

    def _record(self, outcome: Outcome) -> None:
        self.metrics.record_outcome(MetricCategory.MODEL, outcome)
        self.metrics.check_alerts()
