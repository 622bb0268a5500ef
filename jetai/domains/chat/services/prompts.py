"""Prompt templates for the conversational model chain."""

from langchain_core.messages import AIMessage, BaseMessage, HumanMessage
from langchain_core.prompts import ChatPromptTemplate, MessagesPlaceholder

from jetai.domains.chat.schemas import HistoryMessage, PersonaConfig, TravelProfile
from jetai.domains.chat.services.stage_machine import STAGE_QUESTIONS

# ============ Prompts ============

PERSONA_PROMPT = """You are {agent_name}, an expert travel assistant. You help users plan their perfect trips with personalized recommendations, custom itineraries and answers to travel questions.

Guidelines:
1. Be conversational, friendly and enthusiastic about travel.
2. Give specific recommendations based on the user's preferences.
3. When recommending destinations, include best times to visit, local transport and budget considerations.
4. For itineraries, structure them by day with times and locations.
5. Prefer authentic, local experiences over generic tourist activities.
6. If you don't know something specific, say so and give general guidance instead.
7. Answer in the user's language.
{clarify_instruction}
Conversation context:
{stage_context}
What we know about the trip:
{profile_summary}
{extra_context}
Respond ONLY with a JSON object of this shape:
{{
  "message": "Your conversational reply",
  "suggestions": ["Follow-up 1", "Follow-up 2", "Follow-up 3"],
  "destinations": [
    {{"id": "unique-id", "name": "Destination", "country": "Country", "description": "Short description", "imageUrl": "https://images.unsplash.com/...", "rating": 4.5}}
  ],
  "itinerary": {{"days": [{{"day": 1, "activities": [{{"time": "09:00", "title": "Title", "description": "Description", "location": "Place"}}]}}]}}
}}
Only include "destinations" or "itinerary" when they are relevant to the reply."""

CLARIFY_INSTRUCTION = (
    "8. The user's request is vague. Before recommending anything, ask ONE short "
    "clarifying question about budget, travel style, dates or interests."
)

ITINERARY_REQUEST_PROMPT = """Create a day-by-day itinerary for this trip:
{profile_summary}

Fill "itinerary.days" with realistic times, titles, descriptions and locations. Keep "message" to a short, enthusiastic introduction and end it by asking what the user thinks."""

GEMINI_ACKNOWLEDGEMENT = "Understood. I will reply as the travel assistant, in the requested JSON format."

_persona_template = ChatPromptTemplate.from_messages(
    [
        ("system", PERSONA_PROMPT),
        MessagesPlaceholder("history"),
        ("human", "{message}"),
    ]
)


def _stage_context(persona: PersonaConfig) -> str:
    lines = [f"- Current stage: {persona.stage.value}"]
    if persona.next_stage is not None:
        lines.append(f"- Next stage: {persona.next_stage.value}")
        lines.append(
            f"- After answering, steer towards: {STAGE_QUESTIONS[persona.next_stage]}"
        )
    return "\n".join(lines)


def history_messages(history: list[HistoryMessage]) -> list[BaseMessage]:
    return [
        HumanMessage(content=m.content) if m.role == "user" else AIMessage(content=m.content)
        for m in history
    ]


def build_messages(
    message: str,
    history: list[HistoryMessage],
    persona: PersonaConfig,
    vague: bool = False,
) -> list[BaseMessage]:
    """System persona, then prior turns, then the user's message."""
    return _persona_template.format_messages(
        agent_name=persona.agent_name,
        clarify_instruction=CLARIFY_INSTRUCTION if vague else "",
        stage_context=_stage_context(persona),
        profile_summary=persona.profile.summary() or "- Nothing yet",
        extra_context=persona.extra_context or "",
        history=history_messages(history),
        message=message,
    )


def itinerary_request(profile: TravelProfile) -> str:
    template = ChatPromptTemplate.from_template(ITINERARY_REQUEST_PROMPT)
    return template.format_messages(profile_summary=profile.summary())[0].content
