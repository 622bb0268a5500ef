"""
JetAI Backend - Chat Turn Orchestrator
Runs one chat turn end to end:

1. Restore stage and profile (conversation store, else history replay)
2. Advance the stage machine with the new message
3. Fetch whatever enrichment the turn needs (weather, route, location)
4. Ask the model chain for a reply, or for an itinerary when the
   profile is complete enough and the user asked for one
5. Compose the response; metrics only for operator requests
"""

from __future__ import annotations

import asyncio
import logging
import re

import httpx

from jetai.core.config import Settings, settings as default_settings
from jetai.domains.chat.repository import ConversationStore, InMemoryConversationStore
from jetai.domains.chat.schemas import (
    ChatReply,
    ChatResponse,
    ChatTurnRequest,
    ConversationStage,
    ConversationState,
    Itinerary,
    PersonaConfig,
)
from jetai.domains.chat.services.extraction import mentions_itinerary
from jetai.domains.chat.services.model_chain import ModelFallbackChain
from jetai.domains.chat.services.providers import build_providers
from jetai.domains.chat.services.stage_machine import (
    EnrichmentPlan,
    StageTransition,
    advance,
    can_generate_itinerary,
    plan_enrichment,
    replay,
)
from jetai.domains.credentials import CredentialPoolManager
from jetai.domains.enrichment import (
    EnhancedData,
    EnrichmentService,
    EnrichmentUnavailable,
    GeocodeResult,
    RouteParams,
    RouteResult,
    TravelMode,
    WeatherResult,
)
from jetai.domains.enrichment.formatting import (
    FALLBACK_NOTE,
    format_location_info,
    format_route_info,
    format_weather_info,
)
from jetai.domains.monitoring import MetricsRegistry

logger = logging.getLogger(__name__)

_OPERATOR_RE = re.compile(
    r"\b(?:metrics|métricas|metricas|system status|estado del sistema|admin)\b",
    re.IGNORECASE,
)

SAVED_MESSAGE = "Your itinerary has been saved. You can find it in your trips."


def is_metrics_request(message: str) -> bool:
    """Operator asking for API health from inside the chat."""
    return bool(_OPERATOR_RE.search(message))


class ChatOrchestrator:
    """Glue between the stage machine, enrichment and the model chain."""

    def __init__(
        self,
        chain: ModelFallbackChain,
        enrichment: EnrichmentService,
        metrics: MetricsRegistry,
        credentials: CredentialPoolManager,
        store: ConversationStore | None = None,
        settings: Settings | None = None,
    ):
        self.chain = chain
        self.enrichment = enrichment
        self.metrics = metrics
        self.credentials = credentials
        self.store = store
        self.settings = settings or default_settings

    @classmethod
    def from_settings(
        cls,
        settings: Settings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> "ChatOrchestrator":
        """Wire the production object graph from settings."""
        settings = settings or default_settings
        credentials = CredentialPoolManager(settings=settings)
        metrics = MetricsRegistry(settings=settings)
        return cls(
            chain=ModelFallbackChain(build_providers(credentials, settings), metrics, settings),
            enrichment=EnrichmentService(credentials, metrics, settings, transport),
            metrics=metrics,
            credentials=credentials,
            store=InMemoryConversationStore(),
            settings=settings,
        )

    # ============ State ============

    async def _load_state(self, request: ChatTurnRequest) -> ConversationState:
        if request.conversation_id and self.store is not None:
            stored = await self.store.load_state(request.conversation_id)
            if stored is not None:
                return stored
        return replay(m.content for m in request.history if m.role == "user")

    async def _save_state(self, request: ChatTurnRequest, state: ConversationState) -> None:
        if request.conversation_id and self.store is not None:
            await self.store.save_state(request.conversation_id, state)

    # ============ Enrichment ============

    async def _weather(self, place: str) -> WeatherResult | None:
        try:
            return await self.enrichment.weather_for_place(place)
        except EnrichmentUnavailable as e:
            logger.warning(f"Omitting weather for {place!r}: {e}")
            return None

    async def _route(
        self, origin: str, destination: str, travel_mode: TravelMode
    ) -> RouteResult | None:
        try:
            return await self.enrichment.route(
                RouteParams(
                    origin=origin,
                    destination=destination,
                    travel_mode=travel_mode,
                    language=self.settings.ENRICHMENT_LANGUAGE,
                )
            )
        except EnrichmentUnavailable as e:
            logger.warning(f"Omitting route {origin!r} -> {destination!r}: {e}")
            return None

    async def _location(self, place: str) -> GeocodeResult | None:
        try:
            return await self.enrichment.geocode(place)
        except EnrichmentUnavailable as e:
            logger.warning(f"Omitting location for {place!r}: {e}")
            return None

    async def _noop(self) -> None:
        return None

    async def enrich(self, plan: EnrichmentPlan) -> EnhancedData:
        if plan.is_empty:
            return EnhancedData()
        weather, route, location = await asyncio.gather(
            self._weather(plan.weather_place) if plan.weather_place else self._noop(),
            self._route(*plan.route, plan.travel_mode) if plan.route else self._noop(),
            self._location(plan.location_place) if plan.location_place else self._noop(),
        )
        return EnhancedData(weather=weather, route=route, location=location)

    @staticmethod
    def summarize(enhanced: EnhancedData, plan: EnrichmentPlan) -> list[str]:
        sections = []
        if enhanced.weather:
            sections.append(format_weather_info(enhanced.weather, plan.weather_place))
        if enhanced.route and plan.route:
            sections.append(format_route_info(enhanced.route, *plan.route))
        if enhanced.location:
            sections.append(format_location_info(enhanced.location))
        return sections

    # ============ Turn ============

    @staticmethod
    def wants_itinerary(transition: StageTransition, message: str) -> bool:
        if transition.greeting or not can_generate_itinerary(transition.profile):
            return False
        confirmed = (
            transition.previous is ConversationStage.ITINERARY_REQUEST
            and transition.profile.itinerary_confirmation == "yes"
        )
        return confirmed or mentions_itinerary(message)

    async def _maybe_save(
        self,
        request: ChatTurnRequest,
        transition: StageTransition,
        itinerary: Itinerary | None,
    ) -> str | None:
        if (
            transition.previous is not ConversationStage.SAVE_ITINERARY
            or transition.profile.save_confirmation != "yes"
            or itinerary is None
            or self.store is None
        ):
            return None
        return await self.store.save_itinerary(request.user_id, itinerary, transition.profile)

    async def handle_turn(
        self,
        request: ChatTurnRequest,
        operator: bool = False,
    ) -> ChatResponse:
        """Process one user message and build the response."""
        state = await self._load_state(request)
        transition = advance(state.stage, request.message, state.profile)
        logger.info(
            f"Turn stage {transition.previous.value} -> {transition.next.value}"
            + (f" (captured {transition.field_written})" if transition.field_written else "")
        )

        plan = plan_enrichment(request.message, transition)
        enhanced = await self.enrich(plan)
        sections = self.summarize(enhanced, plan)

        persona = PersonaConfig(
            agent_name=self.settings.AGENT_NAME,
            stage=transition.previous,
            next_stage=transition.next,
            profile=transition.profile,
            extra_context=(
                "Live data already shown to the user below your reply:\n" + "\n\n".join(sections)
                if sections
                else None
            ),
        )

        itinerary = state.itinerary
        reply: ChatReply
        if self.wants_itinerary(transition, request.message):
            reply = await self.chain.generate_itinerary(transition.profile, request.history, persona)
            if reply.itinerary is not None:
                itinerary = reply.itinerary
        else:
            reply = await self.chain.generate_reply(request.message, request.history, persona)

        parts = [reply.message]
        saved_id = await self._maybe_save(request, transition, itinerary)
        if saved_id:
            parts.append(SAVED_MESSAGE)
        parts.extend(sections)
        if enhanced.used_fallback:
            parts.append(FALLBACK_NOTE)

        metrics = None
        if operator and is_metrics_request(request.message):
            metrics = {
                "apis": self.metrics.snapshot(),
                "alerts": [a.model_dump(mode="json") for a in self.metrics.check_alerts()],
                "services": self.credentials.assignment_summary(),
            }

        await self._save_state(
            request,
            ConversationState(
                stage=transition.next,
                profile=transition.profile,
                itinerary=itinerary,
            ),
        )

        return ChatResponse(
            message="\n\n".join(parts),
            suggestions=reply.suggestions,
            destinations=reply.destinations,
            itinerary=reply.itinerary,
            enhanced_data=None if enhanced.is_empty else enhanced,
            stage=transition.previous,
            next_stage=transition.next,
            profile=transition.profile,
            provider=reply.provider,
            metrics=metrics,
        )
