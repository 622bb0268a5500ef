"""Forward geocoding providers.

Primary: Google Geocoding API.
Fallback: OpenStreetMap Nominatim search (requires a User-Agent).
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
from jetai.domains.enrichment.schemas import (
    AddressComponent,
    BoundingBox,
    GeocodeMatch,
    GeocodeParams,
    GeocodeResult,
    LatLng,
)

logger = logging.getLogger(__name__)

GOOGLE_GEOCODING_SOURCE = "google_geocoding_api"
NOMINATIM_SOURCE = "fallback_nominatim"

# Nominatim address keys -> Google component types
_NOMINATIM_COMPONENT_TYPES = {
    "city": "locality",
    "town": "locality",
    "village": "locality",
    "suburb": "sublocality",
    "road": "route",
    "house_number": "street_number",
    "postcode": "postal_code",
    "county": "administrative_area_level_2",
    "state": "administrative_area_level_1",
    "country": "country",
}


# ============ API Clients ============


class GoogleGeocodingClient(BaseAsyncAPIClient):
    """Async client for the Google Geocoding API."""

    def __init__(self, api_key: str, base_url: str, **kwargs: Any):
        self.api_key = api_key
        super().__init__(base_url, **kwargs)

    async def _get_headers(self) -> dict[str, str]:
        return {"Accept": "application/json"}

    async def geocode(self, address: str, language: str = "en") -> dict:
        return await self.get(
            "/geocode/json",
            params={"address": address, "key": self.api_key, "language": language},
        )


class NominatimClient(BaseAsyncAPIClient):
    """Async client for Nominatim search."""

    def __init__(self, base_url: str, user_agent: str, **kwargs: Any):
        self.user_agent = user_agent
        super().__init__(base_url, **kwargs)

    async def _get_headers(self) -> dict[str, str]:
        return {"Accept": "application/json", "User-Agent": self.user_agent}

    async def search(self, query: str, limit: int = 5) -> list[dict]:
        return await self.get(
            "/search",
            params={"q": query, "format": "json", "addressdetails": 1, "limit": limit},
        )


# ============ Providers ============


class GoogleGeocodingProvider(EnrichmentProvider[GeocodeParams, GeocodeResult]):
    source = GOOGLE_GEOCODING_SOURCE

    def __init__(
        self,
        credentials: CredentialPoolManager,
        settings: Settings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.credentials = credentials
        self.settings = settings or default_settings
        self.transport = transport

    async def call(self, params: GeocodeParams) -> dict:
        credential = self.credentials.resolve_credential(ServiceCategory.MAPPING)
        async with GoogleGeocodingClient(
            credential.secret,
            self.settings.GOOGLE_GEOCODING_BASE_URL,
            timeout=self.settings.ENRICHMENT_TIMEOUT,
            max_retries=self.settings.ENRICHMENT_MAX_RETRIES,
            transport=self.transport,
        ) as client:
            return await client.geocode(params.address, self.settings.ENRICHMENT_LANGUAGE)

    def normalize(self, raw: dict, params: GeocodeParams) -> GeocodeResult:
        status = raw.get("status", "UNKNOWN_ERROR")
        if status != "OK" or not raw.get("results"):
            message = raw.get("error_message") or status
            raise ProviderDeniedError(
                f"Geocoding returned {status}: {message}",
                tool_name=self.__class__.__name__,
                details={"status": status},
            )

        matches = []
        for item in raw["results"]:
            geometry = item.get("geometry") or {}
            viewport = geometry.get("viewport")
            matches.append(
                GeocodeMatch(
                    place_id=item.get("place_id"),
                    formatted_address=item.get("formatted_address", params.address),
                    location=LatLng(**geometry["location"]),
                    location_type=geometry.get("location_type"),
                    bounds=BoundingBox(
                        northeast=LatLng(**viewport["northeast"]),
                        southwest=LatLng(**viewport["southwest"]),
                    )
                    if viewport
                    else None,
                    types=item.get("types", []),
                    address_components=[
                        AddressComponent(**component)
                        for component in item.get("address_components", [])
                    ],
                )
            )
        return GeocodeResult(source=self.source, results=matches)


class NominatimProvider(EnrichmentProvider[GeocodeParams, GeocodeResult]):
    source = NOMINATIM_SOURCE

    def __init__(
        self,
        settings: Settings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.settings = settings or default_settings
        self.transport = transport

    async def call(self, params: GeocodeParams) -> list[dict]:
        async with NominatimClient(
            self.settings.NOMINATIM_BASE_URL,
            self.settings.NOMINATIM_USER_AGENT,
            timeout=self.settings.ENRICHMENT_TIMEOUT,
            max_retries=self.settings.ENRICHMENT_MAX_RETRIES,
            transport=self.transport,
        ) as client:
            return await client.search(params.address)

    def normalize(self, raw: list[dict], params: GeocodeParams) -> GeocodeResult:
        if not raw:
            raise ProviderDeniedError(
                f"Nominatim returned no results for {params.address!r}",
                tool_name=self.__class__.__name__,
                details={"status": "ZERO_RESULTS"},
            )
        return GeocodeResult(
            source=self.source,
            results=[self._to_match(item) for item in raw],
        )

    @staticmethod
    def _to_match(item: dict) -> GeocodeMatch:
        bounds = None
        # boundingbox is [south, north, west, east] as strings
        bbox = item.get("boundingbox")
        if bbox and len(bbox) == 4:
            bounds = BoundingBox(
                northeast=LatLng(lat=float(bbox[1]), lng=float(bbox[3])),
                southwest=LatLng(lat=float(bbox[0]), lng=float(bbox[2])),
            )

        address = item.get("address") or {}
        components = []
        for key, value in address.items():
            if key == "country_code":
                continue
            short_name = value
            if key == "country" and address.get("country_code"):
                short_name = address["country_code"].upper()
            components.append(
                AddressComponent(
                    long_name=str(value),
                    short_name=str(short_name),
                    types=[_NOMINATIM_COMPONENT_TYPES.get(key, key)],
                )
            )

        return GeocodeMatch(
            place_id=str(item["place_id"]) if item.get("place_id") is not None else None,
            formatted_address=item.get("display_name", ""),
            location=LatLng(lat=float(item["lat"]), lng=float(item["lon"])),
            location_type="APPROXIMATE",
            bounds=bounds,
            types=[t for t in (item.get("class"), item.get("type")) if t],
            address_components=components,
        )
