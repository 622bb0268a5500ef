"""Point-to-point routing providers.

Primary: Google Routes API computeRoutes.
Fallback: OSRM public router. OSRM only takes coordinates, so every
address is geocoded first; waypoints that fail to geocode are dropped.
"""

import logging
import re
from typing import Any

import httpx

from jetai.core.config import Settings, settings as default_settings
from jetai.domains.credentials import CredentialPoolManager, ServiceCategory
from jetai.domains.enrichment.base import (
    BaseAsyncAPIClient,
    EnrichmentProvider,
    ProviderDeniedError,
)
from jetai.domains.enrichment.fallback import EnrichmentPair
from jetai.domains.enrichment.schemas import (
    GeocodeParams,
    GeocodeResult,
    LatLng,
    Route,
    RouteParams,
    RouteResult,
    RouteStep,
    TravelMode,
)

logger = logging.getLogger(__name__)

GOOGLE_ROUTES_SOURCE = "google_routes_api"
OSRM_SOURCE = "fallback_osrm"
OSRM_PROVIDER_NAME = "OpenStreetMap Routing Machine"

ROUTES_FIELD_MASK = ",".join(
    [
        "routes.duration",
        "routes.distanceMeters",
        "routes.polyline.encodedPolyline",
        "routes.legs.steps.distanceMeters",
        "routes.legs.steps.staticDuration",
        "routes.legs.steps.navigationInstruction.instructions",
    ]
)

_LAT_LNG_RE = re.compile(r"^\s*(-?\d{1,2}(?:\.\d+)?)\s*,\s*(-?\d{1,3}(?:\.\d+)?)\s*$")


def parse_lat_lng(text: str) -> LatLng | None:
    """Parse 'lat,lng' text; None if it is not a coordinate pair."""
    match = _LAT_LNG_RE.match(text)
    if not match:
        return None
    lat, lng = float(match.group(1)), float(match.group(2))
    if not (-90 <= lat <= 90 and -180 <= lng <= 180):
        return None
    return LatLng(lat=lat, lng=lng)


def _parse_duration(value: Any) -> float:
    """Google durations are strings like '1234s'."""
    if value is None:
        return 0.0
    if isinstance(value, (int, float)):
        return float(value)
    return float(str(value).rstrip("s") or 0)


def _waypoint(text: str) -> dict:
    coordinate = parse_lat_lng(text)
    if coordinate:
        return {
            "location": {
                "latLng": {"latitude": coordinate.lat, "longitude": coordinate.lng}
            }
        }
    return {"address": text}


# ============ API Clients ============


class GoogleRoutesClient(BaseAsyncAPIClient):
    """Async client for the Google Routes API."""

    def __init__(self, api_key: str, base_url: str, **kwargs: Any):
        self.api_key = api_key
        super().__init__(base_url, **kwargs)

    async def _get_headers(self) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "X-Goog-Api-Key": self.api_key,
            "X-Goog-FieldMask": ROUTES_FIELD_MASK,
        }

    async def compute_routes(self, params: RouteParams) -> dict:
        body: dict[str, Any] = {
            "origin": _waypoint(params.origin),
            "destination": _waypoint(params.destination),
            "travelMode": params.travel_mode.google_value,
            "computeAlternativeRoutes": params.alternatives,
            "languageCode": params.language,
            "units": "METRIC",
        }
        # Traffic-aware routing is only accepted for driving
        if params.travel_mode is TravelMode.DRIVING:
            body["routingPreference"] = "TRAFFIC_AWARE"
        if params.waypoints:
            body["intermediates"] = [_waypoint(w) for w in params.waypoints]
        return await self.post("/directions/v2:computeRoutes", json_data=body)


class OSRMClient(BaseAsyncAPIClient):
    """Async client for the OSRM route service."""

    async def _get_headers(self) -> dict[str, str]:
        return {"Accept": "application/json"}

    async def route(self, profile: str, coordinates: list[LatLng]) -> dict:
        path = ";".join(f"{c.lng},{c.lat}" for c in coordinates)
        return await self.get(
            f"/route/v1/{profile}/{path}",
            params={"overview": "full", "geometries": "polyline", "steps": "true"},
        )


# ============ Providers ============


class GoogleRoutesProvider(EnrichmentProvider[RouteParams, RouteResult]):
    source = GOOGLE_ROUTES_SOURCE

    def __init__(
        self,
        credentials: CredentialPoolManager,
        settings: Settings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.credentials = credentials
        self.settings = settings or default_settings
        self.transport = transport

    async def call(self, params: RouteParams) -> dict:
        credential = self.credentials.resolve_credential(ServiceCategory.MAPPING)
        async with GoogleRoutesClient(
            credential.secret,
            self.settings.GOOGLE_ROUTES_BASE_URL,
            timeout=self.settings.ENRICHMENT_TIMEOUT,
            max_retries=self.settings.ENRICHMENT_MAX_RETRIES,
            transport=self.transport,
        ) as client:
            return await client.compute_routes(params)

    def normalize(self, raw: dict, params: RouteParams) -> RouteResult:
        if not raw.get("routes"):
            raise ProviderDeniedError(
                "Routes API returned no routes",
                tool_name=self.__class__.__name__,
            )

        routes = []
        for item in raw["routes"]:
            steps = [
                RouteStep(
                    instruction=(step.get("navigationInstruction") or {}).get("instructions"),
                    distance_meters=step.get("distanceMeters", 0),
                    duration_seconds=_parse_duration(step.get("staticDuration")),
                )
                for leg in item.get("legs", [])
                for step in leg.get("steps", [])
            ]
            routes.append(
                Route(
                    distance_meters=item.get("distanceMeters", 0),
                    duration_seconds=_parse_duration(item.get("duration")),
                    polyline=(item.get("polyline") or {}).get("encodedPolyline"),
                    steps=steps,
                )
            )
        return RouteResult(source=self.source, routes=routes)


class OSRMProvider(EnrichmentProvider[RouteParams, RouteResult]):
    source = OSRM_SOURCE

    def __init__(
        self,
        geocoder: EnrichmentPair[GeocodeParams, GeocodeResult],
        settings: Settings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.geocoder = geocoder
        self.settings = settings or default_settings
        self.transport = transport

    async def _locate(self, place: str) -> LatLng:
        coordinate = parse_lat_lng(place)
        if coordinate:
            return coordinate
        result = await self.geocoder.fetch(GeocodeParams(address=place))
        return result.best.location

    async def call(self, params: RouteParams) -> dict:
        try:
            origin = await self._locate(params.origin)
            destination = await self._locate(params.destination)
        except Exception as e:
            raise ProviderDeniedError(
                f"Could not resolve route endpoints: {e}",
                tool_name=self.__class__.__name__,
            ) from e

        stops: list[LatLng] = []
        for waypoint in params.waypoints:
            try:
                stops.append(await self._locate(waypoint))
            except Exception as e:
                logger.warning(f"Dropping waypoint {waypoint!r}: {e}")

        async with OSRMClient(
            self.settings.OSRM_BASE_URL,
            timeout=self.settings.ENRICHMENT_TIMEOUT,
            max_retries=self.settings.ENRICHMENT_MAX_RETRIES,
            transport=self.transport,
        ) as client:
            return await client.route(
                params.travel_mode.osrm_profile,
                [origin, *stops, destination],
            )

    def normalize(self, raw: dict, params: RouteParams) -> RouteResult:
        if raw.get("code") != "Ok" or not raw.get("routes"):
            raise ProviderDeniedError(
                f"OSRM returned {raw.get('code')}: {raw.get('message', 'no routes')}",
                tool_name=self.__class__.__name__,
            )

        routes = []
        for item in raw["routes"]:
            steps = [
                RouteStep(
                    instruction=" ".join(
                        part
                        for part in (
                            (step.get("maneuver") or {}).get("type"),
                            (step.get("maneuver") or {}).get("modifier"),
                        )
                        if part
                    )
                    or None,
                    name=step.get("name") or None,
                    distance_meters=step.get("distance", 0),
                    duration_seconds=step.get("duration", 0),
                )
                for leg in item.get("legs", [])
                for step in leg.get("steps", [])
            ]
            routes.append(
                Route(
                    distance_meters=item.get("distance", 0),
                    duration_seconds=item.get("duration", 0),
                    polyline=item.get("geometry"),
                    steps=steps,
                )
            )

        return RouteResult(
            source=self.source,
            source_info={
                "provider": OSRM_PROVIDER_NAME,
                "profile": params.travel_mode.osrm_profile,
            },
            routes=routes,
        )
