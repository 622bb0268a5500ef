"""Weather-by-coordinate providers.

Primary: Google Weather API current conditions.
Fallback: Open-Meteo current forecast (no key required).
"""

import logging
from typing import Any

import httpx

from jetai.core.config import Settings, settings as default_settings
from jetai.domains.credentials import CredentialPoolManager, ServiceCategory
from jetai.domains.enrichment.base import (
    BaseAsyncAPIClient,
    EnrichmentProvider,
    ProviderDeniedError,
)
from jetai.domains.enrichment.schemas import Measurement, WeatherParams, WeatherResult

logger = logging.getLogger(__name__)

GOOGLE_WEATHER_SOURCE = "google_weather_api"
OPEN_METEO_SOURCE = "fallback_openmeteo"

OPEN_METEO_CURRENT_FIELDS = (
    "temperature_2m,relative_humidity_2m,precipitation,weather_code,wind_speed_10m"
)


def describe_weather_code(code: int | None) -> str | None:
    """Map a WMO weather code to a short condition."""
    if code is None:
        return None
    if code == 0:
        return "Clear sky"
    if code in (1, 2, 3):
        return "Partly cloudy"
    if code in (45, 48):
        return "Fog"
    if 51 <= code <= 57:
        return "Drizzle"
    if 61 <= code <= 67:
        return "Rain"
    if 71 <= code <= 77:
        return "Snow"
    if 80 <= code <= 82:
        return "Rain showers"
    if 85 <= code <= 86:
        return "Snow showers"
    if 95 <= code <= 99:
        return "Thunderstorm"
    return "Variable conditions"


# ============ API Clients ============


class GoogleWeatherClient(BaseAsyncAPIClient):
    """Async client for the Google Weather API."""

    def __init__(self, api_key: str, base_url: str, **kwargs: Any):
        self.api_key = api_key
        super().__init__(base_url, **kwargs)

    async def _get_headers(self) -> dict[str, str]:
        return {"Accept": "application/json"}

    async def current_conditions(self, latitude: float, longitude: float) -> dict:
        return await self.get(
            "/currentConditions:lookup",
            params={
                "key": self.api_key,
                "location.latitude": latitude,
                "location.longitude": longitude,
            },
        )


class OpenMeteoClient(BaseAsyncAPIClient):
    """Async client for the Open-Meteo forecast API."""

    async def _get_headers(self) -> dict[str, str]:
        return {"Accept": "application/json"}

    async def current(self, latitude: float, longitude: float) -> dict:
        return await self.get(
            "/forecast",
            params={
                "latitude": latitude,
                "longitude": longitude,
                "current": OPEN_METEO_CURRENT_FIELDS,
                "timezone": "auto",
            },
        )


# ============ Providers ============


class GoogleWeatherProvider(EnrichmentProvider[WeatherParams, WeatherResult]):
    source = GOOGLE_WEATHER_SOURCE

    def __init__(
        self,
        credentials: CredentialPoolManager,
        settings: Settings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.credentials = credentials
        self.settings = settings or default_settings
        self.transport = transport

    async def call(self, params: WeatherParams) -> dict:
        credential = self.credentials.resolve_credential(ServiceCategory.MAPPING)
        async with GoogleWeatherClient(
            credential.secret,
            self.settings.GOOGLE_WEATHER_BASE_URL,
            timeout=self.settings.ENRICHMENT_TIMEOUT,
            max_retries=self.settings.ENRICHMENT_MAX_RETRIES,
            transport=self.transport,
        ) as client:
            return await client.current_conditions(params.latitude, params.longitude)

    def normalize(self, raw: dict, params: WeatherParams) -> WeatherResult:
        temperature = raw.get("temperature") or {}
        if temperature.get("degrees") is None:
            raise ProviderDeniedError(
                "Weather response has no current conditions",
                tool_name=self.__class__.__name__,
            )

        unit = "°F" if temperature.get("unit") == "FAHRENHEIT" else "°C"
        wind = (raw.get("wind") or {}).get("speed") or {}
        precipitation = (raw.get("precipitation") or {}).get("qpf") or {}
        condition = (raw.get("weatherCondition") or {}).get("description") or {}

        return WeatherResult(
            source=self.source,
            latitude=params.latitude,
            longitude=params.longitude,
            temperature=Measurement(value=temperature["degrees"], unit=unit),
            humidity=Measurement(value=raw.get("relativeHumidity"), unit="%"),
            wind_speed=Measurement(
                value=wind.get("value"),
                unit="mph" if wind.get("unit") == "MILES_PER_HOUR" else "km/h",
            ),
            precipitation=Measurement(
                value=precipitation.get("quantity"),
                unit="in" if precipitation.get("unit") == "INCHES" else "mm",
            ),
            condition=condition.get("text"),
        )


class OpenMeteoProvider(EnrichmentProvider[WeatherParams, WeatherResult]):
    source = OPEN_METEO_SOURCE

    def __init__(
        self,
        settings: Settings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.settings = settings or default_settings
        self.transport = transport

    async def call(self, params: WeatherParams) -> dict:
        async with OpenMeteoClient(
            self.settings.OPEN_METEO_BASE_URL,
            timeout=self.settings.ENRICHMENT_TIMEOUT,
            max_retries=self.settings.ENRICHMENT_MAX_RETRIES,
            transport=self.transport,
        ) as client:
            return await client.current(params.latitude, params.longitude)

    def normalize(self, raw: dict, params: WeatherParams) -> WeatherResult:
        current = raw.get("current")
        if not current:
            raise ProviderDeniedError(
                "Open-Meteo response has no current block",
                tool_name=self.__class__.__name__,
            )
        units = raw.get("current_units") or {}
        code = current.get("weather_code")

        return WeatherResult(
            source=self.source,
            latitude=raw.get("latitude", params.latitude),
            longitude=raw.get("longitude", params.longitude),
            temperature=Measurement(
                value=current.get("temperature_2m"),
                unit=units.get("temperature_2m", "°C"),
            ),
            humidity=Measurement(
                value=current.get("relative_humidity_2m"),
                unit=units.get("relative_humidity_2m", "%"),
            ),
            wind_speed=Measurement(
                value=current.get("wind_speed_10m"),
                unit=units.get("wind_speed_10m", "km/h"),
            ),
            precipitation=Measurement(
                value=current.get("precipitation"),
                unit=units.get("precipitation", "mm"),
            ),
            condition=describe_weather_code(code),
            weather_code=code,
        )
