"""Enrichment domain - weather, geocoding and routing with provider fallback."""

from jetai.domains.enrichment.base import (
    EnrichmentUnavailable,
    GeocodeUnavailable,
    RouteUnavailable,
    ToolError,
    WeatherUnavailable,
)
from jetai.domains.enrichment.schemas import (
    EnhancedData,
    GeocodeResult,
    RouteParams,
    RouteResult,
    TravelMode,
    WeatherResult,
)
from jetai.domains.enrichment.service import EnrichmentService

__all__ = [
    "EnhancedData",
    "EnrichmentService",
    "EnrichmentUnavailable",
    "GeocodeResult",
    "GeocodeUnavailable",
    "RouteParams",
    "RouteResult",
    "RouteUnavailable",
    "ToolError",
    "TravelMode",
    "WeatherResult",
    "WeatherUnavailable",
]
