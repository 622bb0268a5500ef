"""
JetAI Backend - Chat Schemas
Request/response shapes for a chat turn, the travel profile the stage
machine fills in, and the structured reply the model chain produces.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from jetai.domains.enrichment.schemas import EnhancedData


# ============ Conversation Stage ============


class ConversationStage(str, Enum):
    """Linear onboarding pipeline stages."""

    GREETING = "greeting"
    DESTINATION = "destination"
    BUDGET = "budget"
    DATES = "dates"
    TRAVELERS = "travelers"
    INTERESTS = "interests"
    ITINERARY_REQUEST = "itinerary_request"
    SAVE_ITINERARY = "save_itinerary"
    GENERAL = "general"


Confirmation = Literal["yes", "no", "unknown"]


class TravelProfile(BaseModel):
    """What the user has told us about the trip so far."""

    destination: str | None = None
    budget: str | None = None
    dates: str | None = None
    travelers: str | None = None
    interests: list[str] | None = None
    itinerary_confirmation: Confirmation | None = None
    save_confirmation: Confirmation | None = None

    def summary(self) -> str:
        """One line per known field, for prompts and confirmations."""
        rows = [
            ("Destination", self.destination),
            ("Budget", self.budget),
            ("Dates", self.dates),
            ("Travelers", self.travelers),
            ("Interests", ", ".join(self.interests) if self.interests else None),
        ]
        return "\n".join(f"- {label}: {value}" for label, value in rows if value)


class ConversationState(BaseModel):
    """Persisted between turns when a conversation store is configured."""

    stage: ConversationStage = ConversationStage.GREETING
    profile: TravelProfile = Field(default_factory=TravelProfile)
    itinerary: Itinerary | None = None


# ============ Model Reply ============


class Destination(BaseModel):
    id: str | None = None
    name: str
    country: str | None = None
    description: str | None = None
    image_url: str | None = Field(default=None, alias="imageUrl")
    rating: float | None = None

    model_config = ConfigDict(populate_by_name=True)


class Activity(BaseModel):
    time: str | None = None
    title: str
    description: str | None = None
    location: str | None = None


class ItineraryDay(BaseModel):
    day: int
    activities: list[Activity] = Field(default_factory=list)


class Itinerary(BaseModel):
    days: list[ItineraryDay] = Field(default_factory=list)


class ChatReply(BaseModel):
    """Structured reply from the model chain. Always has three suggestions."""

    message: str
    suggestions: list[str] = Field(default_factory=list)
    destinations: list[Destination] | None = None
    itinerary: Itinerary | None = None
    provider: str | None = Field(None, description="Provider that answered, None if apology")


class PersonaConfig(BaseModel):
    """System persona and turn context handed to every provider."""

    agent_name: str = "JetAI"
    stage: ConversationStage = ConversationStage.GENERAL
    next_stage: ConversationStage | None = None
    profile: TravelProfile = Field(default_factory=TravelProfile)
    extra_context: str | None = None


# ============ API Schemas ============


class HistoryMessage(BaseModel):
    role: Literal["user", "assistant"]
    content: str


class ChatTurnRequest(BaseModel):
    """Chat turn request."""

    message: str = Field(..., description="User message", min_length=1, max_length=2000)
    history: list[HistoryMessage] = Field(
        default_factory=list,
        description="Prior turns, oldest first",
    )
    user_id: str | None = Field(None, description="Caller's user id, if signed in")
    conversation_id: str | None = Field(
        None,
        description="Conversation id; enables stored state instead of history replay",
    )

    @field_validator("message")
    @classmethod
    def _strip_message(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("message must not be blank")
        return value

    class Config:
        json_schema_extra = {
            "example": {
                "message": "Paris",
                "history": [
                    {"role": "user", "content": "Hi"},
                    {"role": "assistant", "content": "Where would you like to go?"},
                ],
                "user_id": None,
                "conversation_id": None,
            }
        }


class ChatResponse(BaseModel):
    """Chat turn response."""

    model_config = ConfigDict(populate_by_name=True)

    message: str
    suggestions: list[str] = Field(..., min_length=3, max_length=3)
    destinations: list[Destination] | None = None
    itinerary: Itinerary | None = None
    enhanced_data: EnhancedData | None = Field(None, serialization_alias="enhancedData")
    stage: ConversationStage
    next_stage: ConversationStage = Field(..., serialization_alias="nextStage")
    profile: TravelProfile
    provider: str | None = None
    metrics: dict[str, Any] | None = None


ConversationState.model_rebuild()
