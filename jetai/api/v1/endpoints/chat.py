"""
JetAI Backend - Chat API Endpoints
Conversational travel assistant: one turn per request.
"""

import logging

from fastapi import APIRouter

from jetai.core.deps import Operator, Orchestrator
from jetai.domains.chat.schemas import ChatResponse, ChatTurnRequest

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/chat",
    response_model=ChatResponse,
    response_model_exclude_none=True,
    summary="Send message to the travel assistant",
    description="""
    Send one message to the travel assistant.

    The conversation advances through a fixed pipeline (destination,
    budget, dates, travelers, interests, itinerary) and the reply may
    carry live weather, route or location data under `enhancedData`,
    each tagged with the `_source` that produced it.

    **State:**
    - Without `conversation_id` the stage and profile are rebuilt from
      `history` on every call.
    - With `conversation_id` they are kept server-side between calls.

    Provider outages never surface as errors: the reply degrades to a
    fallback provider or a fixed apology. `suggestions` always has three
    entries.
    """,
)
async def send_chat_message(
    request: ChatTurnRequest,
    orchestrator: Orchestrator,
    operator: Operator,
) -> ChatResponse:
    """Run one chat turn."""
    return await orchestrator.handle_turn(request, operator=operator)
