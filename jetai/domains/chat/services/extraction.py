"""
JetAI Backend - Message Extraction
Keyword detectors and phrase extraction over raw user messages
(English and Spanish). No model calls: everything here is deterministic.
"""

from __future__ import annotations

import re

# ============ Greetings ============

GREETING_PATTERNS = (
    "hello",
    "hi",
    "hey",
    "hiya",
    "greetings",
    "good morning",
    "good afternoon",
    "good evening",
    "how are you",
    "hola",
    "buenos días",
    "buenos dias",
    "buenas tardes",
    "buenas noches",
    "saludos",
    "qué tal",
    "que tal",
)

_GREETING_RE = re.compile(
    r"\b(?:" + "|".join(re.escape(p) for p in GREETING_PATTERNS) + r")\b",
    re.IGNORECASE,
)


def is_greeting(message: str) -> bool:
    """True if the message contains a greeting word or phrase."""
    return bool(_GREETING_RE.search(message))


# ============ Field Capture ============

# Conversational lead-ins dropped before a message is stored verbatim.
_LEAD_IN_RES = (
    re.compile(
        r"^(?:i'?m|i am|we'?re|we are)\s+(?:thinking|considering|planning|looking)"
        r"(?:\s+(?:about|of|on|at))?\s+(?:(?:a|an|the)\s+)?",
        re.IGNORECASE,
    ),
    re.compile(
        r"^(?:i|we)(?:\s+would|'d)?\s+(?:want|like|love|wish|plan|hope)\s+to\s+"
        r"(?:go|travel|visit|fly)(?:\s+to)?\s+",
        re.IGNORECASE,
    ),
    re.compile(
        r"^(?:quiero|queremos|me gustaría|nos gustaría)\s+(?:ir|viajar|visitar)(?:\s+a)?\s+",
        re.IGNORECASE,
    ),
    re.compile(r"^(?:estoy|estamos)\s+pensando\s+en\s+(?:(?:un|una)\s+)?", re.IGNORECASE),
)


def clean_capture(message: str) -> str:
    """Trim a message for storage in a profile field.

    Strips whitespace, one conversational lead-in and trailing sentence
    punctuation. Everything else is kept verbatim.
    """
    text = message.strip()
    for pattern in _LEAD_IN_RES:
        stripped = pattern.sub("", text, count=1)
        if stripped != text and stripped.strip():
            text = stripped
            break
    return text.strip().rstrip(".!").strip()


def split_interests(message: str) -> list[str]:
    """Split a comma list ("food, museums and art") into items."""
    text = clean_capture(message)
    parts = re.split(r",|;|\s+and\s+|\s+y\s+", text)
    return [p.strip() for p in parts if p.strip()]


_YES_RE = re.compile(
    r"\b(?:yes|yeah|yep|sure|ok|okay|please|go ahead|do it|sounds good|"
    r"love it|save it|sí|si|claro|vale|dale|perfecto)\b",
    re.IGNORECASE,
)
_NO_RE = re.compile(
    r"\b(?:no|nope|not now|not yet|don't|do not|cancel|nah|todavía no|ahora no)\b",
    re.IGNORECASE,
)
# Deferral only counts as a refusal when nothing affirmative was said.
_DEFER_RE = re.compile(r"\b(?:later|más tarde|luego)\b", re.IGNORECASE)


def parse_confirmation(message: str) -> str:
    """Return "yes", "no" or "unknown" for a confirmation prompt answer."""
    if _NO_RE.search(message):
        return "no"
    if _YES_RE.search(message):
        return "yes"
    if _DEFER_RE.search(message):
        return "no"
    return "unknown"


_ITINERARY_REQUEST_RE = re.compile(
    r"\b(?:itinerary|itinerario|plan my trip|plan the trip|create (?:a|my) plan|"
    r"day[- ]by[- ]day|planifica|arma(?:r)? (?:el|mi) viaje)\b",
    re.IGNORECASE,
)


def mentions_itinerary(message: str) -> bool:
    return bool(_ITINERARY_REQUEST_RE.search(message))


# ============ Enrichment Detectors ============

WEATHER_KEYWORDS = (
    "weather", "temperature", "forecast", "rain", "raining", "sunny", "cloudy",
    "humidity", "wind", "storm", "snow", "degrees", "hot", "cold",
    "clima", "tiempo", "temperatura", "lluvia", "llover", "soleado",
    "nublado", "pronóstico", "grados", "calor", "frío", "humedad", "viento",
    "tormenta",
)
ROUTE_KEYWORDS = (
    "route", "directions", "how to get", "how do i get", "drive from", "distance between",
    "how long does it take", "travel time", "get from",
    "ruta", "camino", "trayecto", "cómo llegar", "como llegar", "ir de", "ir desde",
    "distancia entre", "cuánto tarda", "tiempo de viaje",
)
LOCATION_KEYWORDS = (
    "where is", "location of", "coordinates", "address of", "what's in",
    "what is in", "places in", "near",
    "dónde está", "donde esta", "dónde queda", "ubicación de", "coordenadas",
    "cerca de", "lugares en", "qué hay en",
)


def _keyword_re(keywords: tuple[str, ...]) -> re.Pattern[str]:
    return re.compile(
        r"(?<!\w)(?:" + "|".join(re.escape(k) for k in keywords) + r")(?!\w)",
        re.IGNORECASE,
    )


_WEATHER_RE = _keyword_re(WEATHER_KEYWORDS)
_ROUTE_RE = _keyword_re(ROUTE_KEYWORDS)
_LOCATION_RE = _keyword_re(LOCATION_KEYWORDS)


def detect_weather_query(message: str) -> bool:
    return bool(_WEATHER_RE.search(message))


def detect_route_query(message: str) -> bool:
    return bool(_ROUTE_RE.search(message)) or extract_route(message) is not None


def detect_location_query(message: str) -> bool:
    return bool(_LOCATION_RE.search(message))


# ============ Place Extraction ============

# Most specific first: "the weather in X" beats "in X".
LOCATION_PREFIXES = (
    "how is the weather in",
    "the weather in",
    "weather in",
    "temperature in",
    "forecast for",
    "what to do in",
    "attractions in",
    "places in",
    "where is",
    "traveling to",
    "travelling to",
    "visit",
    "near",
    "in",
    "to",
    "at",
    "el clima en",
    "el tiempo en",
    "la temperatura en",
    "qué hacer en",
    "atracciones en",
    "dónde está",
    "viajar a",
    "visitar",
    "ir a",
    "cerca de",
    "en",
)

_END_MARKER_RE = re.compile(
    r"[.?,!;:]|\s(?:and|with|for|the|that|when|next|this|tomorrow|today|by|via|on|in|"
    r"y|para|con|por|que|mañana|hoy|en)\b",
    re.IGNORECASE,
)
_EXCLUSION_RE = re.compile(r"\b(?:like|for example|como|por ejemplo)\b", re.IGNORECASE)


def _cut_at_end_marker(text: str) -> str:
    match = _END_MARKER_RE.search(text)
    return (text[: match.start()] if match else text).strip()


def _plausible_place(text: str) -> bool:
    return 2 < len(text) < 50 and not _EXCLUSION_RE.search(text)


def extract_location(message: str) -> str | None:
    """Pull a place name out of a message, e.g. "weather in Rome?" -> "Rome"."""
    for prefix in LOCATION_PREFIXES:
        match = re.search(rf"(?<!\w){re.escape(prefix)}\s+", message, re.IGNORECASE)
        if not match:
            continue
        candidate = _cut_at_end_marker(message[match.end():])
        if _plausible_place(candidate):
            return candidate
    return None


_ROUTE_PATTERNS = (
    re.compile(r"\bfrom\s+(?P<origin>.+?)\s+to\s+(?P<destination>.+)", re.IGNORECASE),
    re.compile(r"\bbetween\s+(?P<origin>.+?)\s+and\s+(?P<destination>.+)", re.IGNORECASE),
    re.compile(r"\bdesde\s+(?P<origin>.+?)\s+(?:hasta|a)\s+(?P<destination>.+)", re.IGNORECASE),
    re.compile(r"\bentre\s+(?P<origin>.+?)\s+y\s+(?P<destination>.+)", re.IGNORECASE),
    re.compile(r"\b(?:ir|viajar|ruta|camino|trayecto)\s+de\s+(?P<origin>.+?)\s+a\s+(?P<destination>.+)", re.IGNORECASE),
)


def extract_route(message: str) -> tuple[str, str] | None:
    """Pull (origin, destination) out of "from X to Y" style phrasing."""
    for pattern in _ROUTE_PATTERNS:
        match = pattern.search(message)
        if not match:
            continue
        origin = _cut_at_end_marker(match.group("origin"))
        destination = _cut_at_end_marker(match.group("destination"))
        if _plausible_place(origin) and _plausible_place(destination):
            return origin, destination
    return None
