"""
JetAI Backend - Conversation Stage Machine
Deterministic onboarding pipeline: greeting, then destination, budget,
dates, travelers and interests, then itinerary request and save.

Transitions depend only on the current stage and the message. The
profile is never mutated in place; every step returns a new copy.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from types import MappingProxyType

from pydantic import BaseModel, Field

from jetai.domains.chat.schemas import (
    ConversationStage,
    ConversationState,
    TravelProfile,
)
from jetai.domains.chat.services.extraction import (
    clean_capture,
    detect_location_query,
    detect_route_query,
    detect_weather_query,
    extract_location,
    extract_route,
    is_greeting,
    parse_confirmation,
    split_interests,
)
from jetai.domains.enrichment.schemas import TravelMode

logger = logging.getLogger(__name__)

Stage = ConversationStage


SUCCESSORS = MappingProxyType(
    {
        Stage.GREETING: Stage.DESTINATION,
        Stage.DESTINATION: Stage.BUDGET,
        Stage.BUDGET: Stage.DATES,
        Stage.DATES: Stage.TRAVELERS,
        Stage.TRAVELERS: Stage.INTERESTS,
        Stage.INTERESTS: Stage.ITINERARY_REQUEST,
        Stage.ITINERARY_REQUEST: Stage.SAVE_ITINERARY,
        Stage.SAVE_ITINERARY: Stage.GENERAL,
        Stage.GENERAL: Stage.GENERAL,
    }
)

# Profile field written when a message is processed at each stage.
STAGE_FIELDS = MappingProxyType(
    {
        Stage.DESTINATION: "destination",
        Stage.BUDGET: "budget",
        Stage.DATES: "dates",
        Stage.TRAVELERS: "travelers",
        Stage.INTERESTS: "interests",
        Stage.ITINERARY_REQUEST: "itinerary_confirmation",
        Stage.SAVE_ITINERARY: "save_confirmation",
    }
)

STAGE_QUESTIONS = MappingProxyType(
    {
        Stage.GREETING: "Hi! I'm your travel assistant. Shall we plan a trip together?",
        Stage.DESTINATION: "Where would you like to travel?",
        Stage.BUDGET: "What budget do you have in mind for this trip?",
        Stage.DATES: "When are you planning to travel, and for how long?",
        Stage.TRAVELERS: "Who is coming along? Solo, as a couple, family or friends?",
        Stage.INTERESTS: "What do you enjoy most when travelling? Food, culture, nature, nightlife...",
        Stage.ITINERARY_REQUEST: "Would you like me to put together a day-by-day itinerary?",
        Stage.SAVE_ITINERARY: "Would you like me to save this itinerary to your profile?",
        Stage.GENERAL: "Is there anything else I can help you with?",
    }
)

STAGE_SUGGESTIONS = MappingProxyType(
    {
        Stage.GREETING: ("Plan a new trip", "Suggest a destination", "What can you do?"),
        Stage.DESTINATION: ("Paris", "Tokyo", "Somewhere with beaches"),
        Stage.BUDGET: ("Under $1,000", "$1,000 - $3,000", "Money is no object"),
        Stage.DATES: ("Next month", "A long weekend", "Two weeks in summer"),
        Stage.TRAVELERS: ("Just me", "With my partner", "Family with kids"),
        Stage.INTERESTS: ("Food and wine", "Museums and history", "Nature and hiking"),
        Stage.ITINERARY_REQUEST: ("Yes, create my itinerary", "Not yet", "Change my dates"),
        Stage.SAVE_ITINERARY: ("I love it. Save it", "Make some adjustments", "Show me other options"),
        Stage.GENERAL: ("Plan another trip", "What's the weather there?", "How do I get there?"),
    }
)


class StageTransition(BaseModel):
    """Outcome of feeding one message to the stage machine."""

    previous: ConversationStage
    next: ConversationStage
    profile: TravelProfile
    greeting: bool = False
    field_written: str | None = None


class EnrichmentPlan(BaseModel):
    """Which enrichment lookups a turn needs."""

    weather_place: str | None = None
    location_place: str | None = None
    route: tuple[str, str] | None = None
    travel_mode: TravelMode = TravelMode.DRIVING

    @property
    def is_empty(self) -> bool:
        return not (self.weather_place or self.location_place or self.route)


# ============ Transitions ============


def next_stage(stage: ConversationStage, message: str) -> ConversationStage:
    """Stage to move to after processing `message` at `stage`."""
    stage = ConversationStage(stage)
    if stage is not Stage.GREETING and is_greeting(message):
        return Stage.GREETING
    return SUCCESSORS[stage]


def update_profile(
    profile: TravelProfile,
    stage: ConversationStage,
    message: str,
) -> tuple[TravelProfile, str | None]:
    """Write the message into the stage's field. Returns (profile, field)."""
    field = STAGE_FIELDS.get(ConversationStage(stage))
    if field is None:
        return profile, None

    if field == "interests":
        value: object = split_interests(message)
    elif field in ("itinerary_confirmation", "save_confirmation"):
        value = parse_confirmation(message)
    else:
        value = clean_capture(message)

    if not value:
        return profile, None
    return profile.model_copy(update={field: value}), field


def advance(
    stage: ConversationStage,
    message: str,
    profile: TravelProfile | None = None,
) -> StageTransition:
    """Process one user message."""
    stage = ConversationStage(stage)
    profile = profile or TravelProfile()

    if stage is not Stage.GREETING and is_greeting(message):
        logger.debug(f"Greeting at {stage.value}, restarting pipeline")
        return StageTransition(
            previous=stage,
            next=Stage.GREETING,
            profile=profile,
            greeting=True,
        )

    updated, field = update_profile(profile, stage, message)
    return StageTransition(
        previous=stage,
        next=SUCCESSORS[stage],
        profile=updated,
        greeting=stage is Stage.GREETING and is_greeting(message),
        field_written=field,
    )


def replay(user_messages: Iterable[str]) -> ConversationState:
    """Rebuild stage and profile from prior user messages, oldest first."""
    state = ConversationState()
    for message in user_messages:
        transition = advance(state.stage, message, state.profile)
        state = ConversationState(stage=transition.next, profile=transition.profile)
    return state


def can_generate_itinerary(profile: TravelProfile) -> bool:
    """A destination plus at least one of budget, dates or interests."""
    return bool(profile.destination) and bool(
        profile.budget or profile.dates or profile.interests
    )


# ============ Enrichment Planning ============

_WALK_RE = re.compile(r"\b(?:walk|walking|on foot|a pie|caminando)\b", re.IGNORECASE)
_BIKE_RE = re.compile(r"\b(?:bike|bicycle|cycling|bicicleta)\b", re.IGNORECASE)
_TRANSIT_RE = re.compile(
    r"\b(?:transit|train|bus|metro|subway|tren|autobús|autobus)\b", re.IGNORECASE
)


def detect_travel_mode(message: str) -> TravelMode:
    if _WALK_RE.search(message):
        return TravelMode.WALKING
    if _BIKE_RE.search(message):
        return TravelMode.BICYCLING
    if _TRANSIT_RE.search(message):
        return TravelMode.TRANSIT
    return TravelMode.DRIVING


def plan_enrichment(message: str, transition: StageTransition) -> EnrichmentPlan:
    """Decide which lookups the turn needs. Greetings never enrich."""
    if transition.greeting:
        return EnrichmentPlan()

    profile = transition.profile
    plan = EnrichmentPlan()

    if detect_weather_query(message):
        plan.weather_place = extract_location(message) or profile.destination

    if detect_route_query(message):
        route = extract_route(message)
        if route:
            plan.route = route
            plan.travel_mode = detect_travel_mode(message)

    if detect_location_query(message):
        plan.location_place = extract_location(message) or profile.destination
    elif transition.field_written == "destination":
        plan.location_place = profile.destination

    return plan
