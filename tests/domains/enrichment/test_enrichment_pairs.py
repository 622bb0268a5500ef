"""
Tests for the enrichment fallback pairs.

HTTP traffic goes through httpx.MockTransport; each test wires the hosts
it expects and anything else fails with a connection error.
"""

import json

import httpx
import pytest

from jetai.domains.credentials import CredentialPoolManager
from jetai.domains.enrichment import (
    EnrichmentService,
    GeocodeUnavailable,
    RouteParams,
    RouteUnavailable,
    TravelMode,
    WeatherUnavailable,
)
from jetai.domains.enrichment.routing import parse_lat_lng
from jetai.domains.monitoring import MetricCategory

GOOGLE_WEATHER = "weather.googleapis.com"
OPEN_METEO = "api.open-meteo.com"
GOOGLE_MAPS = "maps.googleapis.com"
NOMINATIM = "nominatim.openstreetmap.org"
GOOGLE_ROUTES = "routes.googleapis.com"
OSRM = "router.project-osrm.org"


GOOGLE_WEATHER_BODY = {
    "temperature": {"degrees": 21.5, "unit": "CELSIUS"},
    "relativeHumidity": 40,
    "wind": {"speed": {"value": 10, "unit": "KILOMETERS_PER_HOUR"}},
    "precipitation": {"qpf": {"quantity": 0, "unit": "MILLIMETERS"}},
    "weatherCondition": {"description": {"text": "Sunny"}},
}

OPEN_METEO_BODY = {
    "latitude": 48.86,
    "longitude": 2.35,
    "current_units": {
        "temperature_2m": "°C",
        "relative_humidity_2m": "%",
        "wind_speed_10m": "km/h",
        "precipitation": "mm",
    },
    "current": {
        "temperature_2m": 18.2,
        "relative_humidity_2m": 55,
        "wind_speed_10m": 7.3,
        "precipitation": 0.1,
        "weather_code": 61,
    },
}


def google_geocode_body(name: str, lat: float, lng: float) -> dict:
    return {
        "status": "OK",
        "results": [
            {
                "place_id": f"place-{name}",
                "formatted_address": f"{name}, Somewhere",
                "geometry": {
                    "location": {"lat": lat, "lng": lng},
                    "location_type": "APPROXIMATE",
                    "viewport": {
                        "northeast": {"lat": lat + 0.1, "lng": lng + 0.1},
                        "southwest": {"lat": lat - 0.1, "lng": lng - 0.1},
                    },
                },
                "types": ["locality", "political"],
                "address_components": [
                    {"long_name": name, "short_name": name, "types": ["locality"]},
                ],
            }
        ],
    }


NOMINATIM_PARIS = [
    {
        "place_id": 88066702,
        "lat": "48.8534951",
        "lon": "2.3483915",
        "display_name": "Paris, Île-de-France, France",
        "class": "boundary",
        "type": "administrative",
        "boundingbox": ["48.8155755", "48.9021560", "2.2241220", "2.4697602"],
        "address": {
            "city": "Paris",
            "state": "Île-de-France",
            "country": "France",
            "country_code": "fr",
        },
    }
]

OSRM_BODY = {
    "code": "Ok",
    "routes": [
        {
            "distance": 12500.0,
            "duration": 1500.0,
            "geometry": "abc~polyline",
            "legs": [
                {
                    "steps": [
                        {
                            "distance": 500.0,
                            "duration": 60.0,
                            "name": "Gran Via",
                            "maneuver": {"type": "turn", "modifier": "left"},
                        }
                    ]
                }
            ],
        }
    ],
}


@pytest.fixture
def service(credentials, metrics, test_settings, transport) -> EnrichmentService:
    return EnrichmentService(credentials, metrics, test_settings, transport=transport)


class TestWeatherPair:
    """Tests for Google Weather -> Open-Meteo."""

    @pytest.mark.asyncio
    async def test_primary_success(self, service, router, metrics):
        """Test that a healthy primary is used and counted."""
        router.on(GOOGLE_WEATHER, lambda r: httpx.Response(200, json=GOOGLE_WEATHER_BODY))

        result = await service.current_weather(48.86, 2.35)

        assert result.source == "google_weather_api"
        assert result.temperature.value == 21.5
        assert result.temperature.unit == "°C"
        assert result.condition == "Sunny"
        assert metrics.get(MetricCategory.WEATHER).primary == 1
        assert router.hosts() == [GOOGLE_WEATHER]

    @pytest.mark.asyncio
    async def test_primary_uses_mapping_credential(self, service, router):
        """Mapping prefers group 1, whose key goes in the query string."""
        router.on(GOOGLE_WEATHER, lambda r: httpx.Response(200, json=GOOGLE_WEATHER_BODY))

        await service.current_weather(48.86, 2.35)

        request = router.requests[0]
        assert request.url.params["key"] == "group1-key"
        assert request.url.params["location.latitude"] == "48.86"

    @pytest.mark.asyncio
    async def test_falls_back_to_open_meteo(self, service, router, metrics):
        """A non-OK primary is served by Open-Meteo and counted once."""
        router.on(GOOGLE_WEATHER, lambda r: httpx.Response(403, json={"error": "denied"}))
        router.on(OPEN_METEO, lambda r: httpx.Response(200, json=OPEN_METEO_BODY))

        result = await service.current_weather(48.86, 2.35)

        assert result.model_dump(by_alias=True)["_source"] == "fallback_openmeteo"
        assert result.is_fallback
        assert result.temperature.value == 18.2
        assert result.condition == "Rain"
        weather = metrics.get(MetricCategory.WEATHER)
        assert (weather.primary, weather.fallback, weather.errors) == (0, 1, 0)

    @pytest.mark.asyncio
    async def test_empty_primary_payload_is_a_failure(self, service, router, metrics):
        """A 200 without current conditions still triggers the fallback."""
        router.on(GOOGLE_WEATHER, lambda r: httpx.Response(200, json={}))
        router.on(OPEN_METEO, lambda r: httpx.Response(200, json=OPEN_METEO_BODY))

        result = await service.current_weather(48.86, 2.35)

        assert result.source == "fallback_openmeteo"
        assert metrics.get(MetricCategory.WEATHER).fallback == 1

    @pytest.mark.asyncio
    async def test_both_fail(self, service, router, metrics):
        """Both providers down raises WeatherUnavailable and counts one error."""
        router.on(GOOGLE_WEATHER, lambda r: httpx.Response(500))
        # Open-Meteo is not routed, so the transport raises ConnectError

        with pytest.raises(WeatherUnavailable) as exc_info:
            await service.current_weather(48.86, 2.35)

        assert "500" in exc_info.value.primary_error
        assert "ConnectError" in exc_info.value.fallback_error
        weather = metrics.get(MetricCategory.WEATHER)
        assert (weather.primary, weather.fallback, weather.errors) == (0, 0, 1)

    @pytest.mark.asyncio
    async def test_no_credential_goes_straight_to_fallback(
        self, metrics, test_settings, router, transport
    ):
        """Without any mapping key, the primary never hits the network."""
        empty = CredentialPoolManager(groups={1: "", 2: "", 3: "", 4: "", 5: ""})
        service = EnrichmentService(empty, metrics, test_settings, transport=transport)
        router.on(OPEN_METEO, lambda r: httpx.Response(200, json=OPEN_METEO_BODY))

        result = await service.current_weather(48.86, 2.35)

        assert result.source == "fallback_openmeteo"
        assert GOOGLE_WEATHER not in router.hosts()

    @pytest.mark.asyncio
    async def test_weather_for_coordinate_text_skips_geocoding(self, service, router):
        """Test that 'lat,lng' input is used directly."""
        router.on(GOOGLE_WEATHER, lambda r: httpx.Response(200, json=GOOGLE_WEATHER_BODY))

        result = await service.weather_for_place("41.38, 2.17")

        assert (result.latitude, result.longitude) == (41.38, 2.17)
        assert router.hosts() == [GOOGLE_WEATHER]


class TestGeocodingPair:
    """Tests for Google Geocoding -> Nominatim."""

    @pytest.mark.asyncio
    async def test_primary_success(self, service, router, metrics):
        router.on(
            GOOGLE_MAPS,
            lambda r: httpx.Response(200, json=google_geocode_body("Rome", 41.9, 12.5)),
        )

        result = await service.geocode("Rome")

        assert result.source == "google_geocoding_api"
        assert result.best.location.lat == 41.9
        assert result.best.city == "Rome"
        assert metrics.get(MetricCategory.GEOCODING).primary == 1

    @pytest.mark.asyncio
    async def test_request_denied_falls_back_to_nominatim(self, service, router, metrics):
        """REQUEST_DENIED is a failure; Nominatim's bbox maps onto the viewport."""
        router.on(
            GOOGLE_MAPS,
            lambda r: httpx.Response(
                200, json={"status": "REQUEST_DENIED", "error_message": "bad key", "results": []}
            ),
        )
        router.on(NOMINATIM, lambda r: httpx.Response(200, json=NOMINATIM_PARIS))

        result = await service.geocode("Paris")

        assert result.model_dump(by_alias=True)["_source"] == "fallback_nominatim"
        best = result.best
        assert best.location.lat == pytest.approx(48.8534951)
        assert best.location.lng == pytest.approx(2.3483915)
        assert best.bounds.northeast.lat == pytest.approx(48.9021560)
        assert best.bounds.northeast.lng == pytest.approx(2.4697602)
        assert best.bounds.southwest.lat == pytest.approx(48.8155755)
        assert best.bounds.southwest.lng == pytest.approx(2.2241220)
        assert best.city == "Paris"
        assert best.country == "France"
        assert metrics.get(MetricCategory.GEOCODING).fallback == 1

    @pytest.mark.asyncio
    async def test_nominatim_sends_user_agent(self, service, router, test_settings):
        router.on(GOOGLE_MAPS, lambda r: httpx.Response(500))
        router.on(NOMINATIM, lambda r: httpx.Response(200, json=NOMINATIM_PARIS))

        await service.geocode("Paris")

        nominatim_request = next(r for r in router.requests if r.url.host == NOMINATIM)
        assert nominatim_request.headers["user-agent"] == test_settings.NOMINATIM_USER_AGENT
        assert nominatim_request.url.params["format"] == "json"

    @pytest.mark.asyncio
    async def test_zero_results_everywhere(self, service, router, metrics):
        """Empty answers from both providers raise GeocodeUnavailable."""
        router.on(
            GOOGLE_MAPS, lambda r: httpx.Response(200, json={"status": "ZERO_RESULTS", "results": []})
        )
        router.on(NOMINATIM, lambda r: httpx.Response(200, json=[]))

        with pytest.raises(GeocodeUnavailable) as exc_info:
            await service.geocode("Atlantis")

        assert "ZERO_RESULTS" in exc_info.value.primary_error
        assert metrics.get(MetricCategory.GEOCODING).errors == 1

    @pytest.mark.asyncio
    async def test_key_never_appears_in_errors(self, service, router):
        """Test that errors carrying the request URL are redacted."""

        def explode(request):
            raise httpx.ConnectError(f"failed {request.url}", request=request)

        router.on(GOOGLE_MAPS, explode)
        router.on(NOMINATIM, lambda r: httpx.Response(200, json=[]))

        with pytest.raises(GeocodeUnavailable) as exc_info:
            await service.geocode("Paris")

        assert "group1-key" not in str(exc_info.value)


class TestRoutesPair:
    """Tests for Google Routes -> OSRM."""

    @pytest.mark.asyncio
    async def test_primary_request_shape(self, service, router, metrics):
        """Test headers, field mask and body of computeRoutes."""
        router.on(
            GOOGLE_ROUTES,
            lambda r: httpx.Response(
                200,
                json={
                    "routes": [
                        {
                            "distanceMeters": 620000,
                            "duration": "21600s",
                            "polyline": {"encodedPolyline": "xyz"},
                            "legs": [],
                        }
                    ]
                },
            ),
        )

        result = await service.route(
            RouteParams(origin="Madrid", destination="Barcelona", waypoints=["Zaragoza"])
        )

        request = router.requests[0]
        body = json.loads(request.content)
        assert request.method == "POST"
        assert request.url.path == "/directions/v2:computeRoutes"
        assert request.headers["x-goog-api-key"] == "group1-key"
        assert "routes.distanceMeters" in request.headers["x-goog-fieldmask"]
        assert body["origin"] == {"address": "Madrid"}
        assert body["travelMode"] == "DRIVE"
        assert body["routingPreference"] == "TRAFFIC_AWARE"
        assert body["intermediates"] == [{"address": "Zaragoza"}]
        assert result.best.duration_seconds == 21600
        assert result.source == "google_routes_api"
        assert metrics.get(MetricCategory.ROUTES).primary == 1

    @pytest.mark.asyncio
    async def test_walking_has_no_routing_preference(self, service, router):
        router.on(
            GOOGLE_ROUTES,
            lambda r: httpx.Response(
                200, json={"routes": [{"distanceMeters": 800, "duration": "600s"}]}
            ),
        )

        await service.route(
            RouteParams(origin="40.4,-3.7", destination="40.41,-3.69", travel_mode=TravelMode.WALKING)
        )

        body = json.loads(router.requests[0].content)
        assert body["travelMode"] == "WALK"
        assert "routingPreference" not in body
        assert body["origin"]["location"]["latLng"] == {"latitude": 40.4, "longitude": -3.7}

    @pytest.mark.asyncio
    async def test_osrm_fallback_drops_unresolvable_waypoint(self, service, router, metrics):
        """Endpoints are geocoded; a waypoint nobody can find is dropped."""
        places = {"Madrid": (40.4168, -3.7038), "Barcelona": (41.3874, 2.1686)}

        def google_geocode(request):
            address = request.url.params["address"]
            if address in places:
                return httpx.Response(200, json=google_geocode_body(address, *places[address]))
            return httpx.Response(200, json={"status": "ZERO_RESULTS", "results": []})

        router.on(GOOGLE_ROUTES, lambda r: httpx.Response(503))
        router.on(GOOGLE_MAPS, google_geocode)
        router.on(NOMINATIM, lambda r: httpx.Response(200, json=[]))
        router.on(OSRM, lambda r: httpx.Response(200, json=OSRM_BODY))

        result = await service.route(
            RouteParams(
                origin="Madrid",
                destination="Barcelona",
                waypoints=["Nowhereville"],
                travel_mode=TravelMode.WALKING,
            )
        )

        osrm_request = next(r for r in router.requests if r.url.host == OSRM)
        assert osrm_request.url.path == "/route/v1/foot/-3.7038,40.4168;2.1686,41.3874"
        assert osrm_request.url.params["steps"] == "true"
        dumped = result.model_dump(by_alias=True)
        assert dumped["_source"] == "fallback_osrm"
        assert dumped["_source_info"] == {
            "provider": "OpenStreetMap Routing Machine",
            "profile": "foot",
        }
        assert result.best.steps[0].instruction == "turn left"
        assert result.best.steps[0].name == "Gran Via"
        routes = metrics.get(MetricCategory.ROUTES)
        assert (routes.primary, routes.fallback, routes.errors) == (0, 1, 0)
        assert metrics.get(MetricCategory.GEOCODING).errors == 1

    @pytest.mark.asyncio
    async def test_unresolvable_origin_fails_the_pair(self, service, router, metrics):
        router.on(GOOGLE_ROUTES, lambda r: httpx.Response(500))
        router.on(
            GOOGLE_MAPS, lambda r: httpx.Response(200, json={"status": "ZERO_RESULTS", "results": []})
        )
        router.on(NOMINATIM, lambda r: httpx.Response(200, json=[]))

        with pytest.raises(RouteUnavailable) as exc_info:
            await service.route(RouteParams(origin="Atlantis", destination="Lemuria"))

        assert "Could not resolve route endpoints" in exc_info.value.fallback_error
        assert OSRM not in router.hosts()
        assert metrics.get(MetricCategory.ROUTES).errors == 1

    @pytest.mark.asyncio
    async def test_osrm_no_route(self, service, router):
        router.on(GOOGLE_ROUTES, lambda r: httpx.Response(500))
        router.on(OSRM, lambda r: httpx.Response(200, json={"code": "NoRoute", "routes": []}))

        with pytest.raises(RouteUnavailable):
            await service.route(RouteParams(origin="40.4,-3.7", destination="-33.9,151.2"))


class TestParseLatLng:
    """Tests for coordinate detection."""

    def test_parses_pair(self):
        coordinate = parse_lat_lng(" -33.86 , 151.2 ")
        assert (coordinate.lat, coordinate.lng) == (-33.86, 151.2)

    def test_rejects_out_of_range(self):
        assert parse_lat_lng("95.0, 10.0") is None

    def test_rejects_text(self):
        assert parse_lat_lng("Paris, France") is None
