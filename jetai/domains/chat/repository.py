"""Conversation state storage.

The orchestrator only depends on the ConversationStore protocol; a real
deployment plugs in its own storage. The in-memory store is the default
and is what the tests use.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Protocol, runtime_checkable

from jetai.domains.chat.schemas import ConversationState, Itinerary, TravelProfile

logger = logging.getLogger(__name__)


@runtime_checkable
class ConversationStore(Protocol):
    async def load_state(self, conversation_id: str) -> ConversationState | None: ...

    async def save_state(self, conversation_id: str, state: ConversationState) -> None: ...

    async def save_itinerary(
        self,
        user_id: str | None,
        itinerary: Itinerary,
        profile: TravelProfile,
    ) -> str: ...


class InMemoryConversationStore:
    """Process-local store; state is lost on restart."""

    def __init__(self) -> None:
        self._states: dict[str, ConversationState] = {}
        self._itineraries: dict[str, tuple[str | None, Itinerary, TravelProfile]] = {}
        self._lock = asyncio.Lock()

    async def load_state(self, conversation_id: str) -> ConversationState | None:
        state = self._states.get(conversation_id)
        return state.model_copy(deep=True) if state else None

    async def save_state(self, conversation_id: str, state: ConversationState) -> None:
        self._states[conversation_id] = state.model_copy(deep=True)

    async def save_itinerary(
        self,
        user_id: str | None,
        itinerary: Itinerary,
        profile: TravelProfile,
    ) -> str:
        async with self._lock:
            itinerary_id = f"itn-{len(self._itineraries) + 1}"
            self._itineraries[itinerary_id] = (user_id, itinerary, profile)
        logger.info(f"Saved itinerary {itinerary_id} for user {user_id or 'anonymous'}")
        return itinerary_id

    def get_itinerary(self, itinerary_id: str) -> Itinerary | None:
        entry = self._itineraries.get(itinerary_id)
        return entry[1] if entry else None
