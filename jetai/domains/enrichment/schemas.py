"""Input parameters and normalized output shapes for enrichment lookups.

Primary and fallback providers of a category normalize into the same
model; the `_source` tag records which one produced it.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

SOURCE_ALIAS = "_source"


# ============ Input Schemas ============


class WeatherParams(BaseModel):
    """Current weather at a coordinate."""

    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)


class GeocodeParams(BaseModel):
    """Forward geocoding of a free-text address."""

    address: str = Field(..., min_length=1)


class TravelMode(str, Enum):
    DRIVING = "driving"
    WALKING = "walking"
    BICYCLING = "bicycling"
    TRANSIT = "transit"

    @property
    def google_value(self) -> str:
        return {
            TravelMode.DRIVING: "DRIVE",
            TravelMode.WALKING: "WALK",
            TravelMode.BICYCLING: "BICYCLE",
            TravelMode.TRANSIT: "TRANSIT",
        }[self]

    @property
    def osrm_profile(self) -> str:
        if self is TravelMode.WALKING:
            return "foot"
        if self is TravelMode.BICYCLING:
            return "bike"
        return "driving"


class RouteParams(BaseModel):
    """Point-to-point route, optionally through waypoints."""

    origin: str = Field(..., min_length=1, description="Address or 'lat,lng'")
    destination: str = Field(..., min_length=1, description="Address or 'lat,lng'")
    travel_mode: TravelMode = TravelMode.DRIVING
    waypoints: list[str] = Field(default_factory=list)
    alternatives: bool = False
    language: str = "en"


# ============ Output Schemas ============


class _Normalized(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    source: str = Field(..., serialization_alias=SOURCE_ALIAS)

    @property
    def is_fallback(self) -> bool:
        return self.source.startswith("fallback_")


class Measurement(BaseModel):
    value: float | None = None
    unit: str


class WeatherResult(_Normalized):
    """Current conditions at a coordinate."""

    kind: Literal["weather"] = "weather"
    latitude: float
    longitude: float
    temperature: Measurement
    humidity: Measurement
    wind_speed: Measurement
    precipitation: Measurement
    condition: str | None = None
    weather_code: int | None = None


class LatLng(BaseModel):
    lat: float
    lng: float


class BoundingBox(BaseModel):
    northeast: LatLng
    southwest: LatLng


class AddressComponent(BaseModel):
    long_name: str
    short_name: str
    types: list[str] = Field(default_factory=list)


class GeocodeMatch(BaseModel):
    place_id: str | None = None
    formatted_address: str
    location: LatLng
    location_type: str | None = None
    bounds: BoundingBox | None = None
    types: list[str] = Field(default_factory=list)
    address_components: list[AddressComponent] = Field(default_factory=list)

    def component(self, *types: str) -> str | None:
        for component in self.address_components:
            if any(t in component.types for t in types):
                return component.long_name
        return None

    @property
    def city(self) -> str | None:
        return self.component("locality", "postal_town")

    @property
    def country(self) -> str | None:
        return self.component("country")


class GeocodeResult(_Normalized):
    """Ordered geocoding matches, best first. Never empty."""

    kind: Literal["geocoding"] = "geocoding"
    status: str = "OK"
    results: list[GeocodeMatch] = Field(..., min_length=1)

    @property
    def best(self) -> GeocodeMatch:
        return self.results[0]


class RouteStep(BaseModel):
    instruction: str | None = None
    name: str | None = None
    distance_meters: float = 0
    duration_seconds: float = 0


class Route(BaseModel):
    distance_meters: float
    duration_seconds: float
    polyline: str | None = None
    steps: list[RouteStep] = Field(default_factory=list)


class RouteResult(_Normalized):
    """Computed routes, best first. Never empty."""

    kind: Literal["routes"] = "routes"
    source_info: dict[str, Any] | None = Field(default=None, serialization_alias="_source_info")
    routes: list[Route] = Field(..., min_length=1)

    @property
    def best(self) -> Route:
        return self.routes[0]


class EnhancedData(BaseModel):
    """Enrichment attached to one chat turn."""

    weather: WeatherResult | None = None
    route: RouteResult | None = None
    location: GeocodeResult | None = None

    @property
    def results(self) -> list[_Normalized]:
        return [r for r in (self.weather, self.route, self.location) if r is not None]

    @property
    def is_empty(self) -> bool:
        return not self.results

    @property
    def used_fallback(self) -> bool:
        return any(r.is_fallback for r in self.results)
