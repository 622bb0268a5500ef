"""Enrichment entry point: wires the three fallback pairs together."""

import logging

import httpx

from jetai.core.config import Settings, settings as default_settings
from jetai.domains.credentials import CredentialPoolManager
from jetai.domains.enrichment.base import (
    GeocodeUnavailable,
    RouteUnavailable,
    WeatherUnavailable,
)
from jetai.domains.enrichment.fallback import EnrichmentPair
from jetai.domains.enrichment.geocoding import GoogleGeocodingProvider, NominatimProvider
from jetai.domains.enrichment.routing import (
    GoogleRoutesProvider,
    OSRMProvider,
    parse_lat_lng,
)
from jetai.domains.enrichment.schemas import (
    GeocodeParams,
    GeocodeResult,
    RouteParams,
    RouteResult,
    WeatherParams,
    WeatherResult,
)
from jetai.domains.enrichment.weather import GoogleWeatherProvider, OpenMeteoProvider
from jetai.domains.monitoring import MetricCategory, MetricsRegistry

logger = logging.getLogger(__name__)


class EnrichmentService:
    """Weather, geocoding and routing lookups with provider fallback."""

    def __init__(
        self,
        credentials: CredentialPoolManager,
        metrics: MetricsRegistry,
        settings: Settings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        settings = settings or default_settings
        self.geocoding: EnrichmentPair[GeocodeParams, GeocodeResult] = EnrichmentPair(
            MetricCategory.GEOCODING,
            GoogleGeocodingProvider(credentials, settings, transport),
            NominatimProvider(settings, transport),
            GeocodeUnavailable,
            metrics,
        )
        self.weather: EnrichmentPair[WeatherParams, WeatherResult] = EnrichmentPair(
            MetricCategory.WEATHER,
            GoogleWeatherProvider(credentials, settings, transport),
            OpenMeteoProvider(settings, transport),
            WeatherUnavailable,
            metrics,
        )
        self.routes: EnrichmentPair[RouteParams, RouteResult] = EnrichmentPair(
            MetricCategory.ROUTES,
            GoogleRoutesProvider(credentials, settings, transport),
            OSRMProvider(self.geocoding, settings, transport),
            RouteUnavailable,
            metrics,
        )

    async def geocode(self, address: str) -> GeocodeResult:
        return await self.geocoding.fetch(GeocodeParams(address=address))

    async def current_weather(self, latitude: float, longitude: float) -> WeatherResult:
        return await self.weather.fetch(WeatherParams(latitude=latitude, longitude=longitude))

    async def weather_for_place(self, place: str) -> WeatherResult:
        """Current weather for an address or 'lat,lng'.

        Raises GeocodeUnavailable if the place cannot be located.
        """
        coordinate = parse_lat_lng(place)
        if coordinate is None:
            coordinate = (await self.geocode(place)).best.location
        return await self.current_weather(coordinate.lat, coordinate.lng)

    async def route(self, params: RouteParams) -> RouteResult:
        return await self.routes.fetch(params)
