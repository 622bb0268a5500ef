"""Short human-readable summaries of enrichment results for chat replies."""

from jetai.domains.enrichment.schemas import GeocodeResult, RouteResult, WeatherResult
from jetai.domains.enrichment.weather import describe_weather_code

FALLBACK_NOTE = (
    "_Some data was obtained through alternative services to ensure the best "
    "possible experience._"
)


def _fmt_number(value: float | None, digits: int = 1) -> str:
    if value is None:
        return "n/a"
    text = f"{value:.{digits}f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def format_duration(seconds: float) -> str:
    total_minutes = round(seconds / 60)
    hours, minutes = divmod(total_minutes, 60)
    if hours and minutes:
        return f"{hours} h {minutes} min"
    if hours:
        return f"{hours} h"
    return f"{minutes} min"


def format_weather_info(weather: WeatherResult, place: str | None = None) -> str:
    condition = weather.condition or describe_weather_code(weather.weather_code) or "Current conditions"
    heading = f"**Weather in {place}**" if place else "**Current weather**"
    return "\n".join(
        [
            heading,
            f"- Conditions: {condition}",
            f"- Temperature: {_fmt_number(weather.temperature.value)}{weather.temperature.unit}",
            f"- Humidity: {_fmt_number(weather.humidity.value, 0)}{weather.humidity.unit}",
            f"- Wind: {_fmt_number(weather.wind_speed.value)} {weather.wind_speed.unit}",
            f"- Precipitation: {_fmt_number(weather.precipitation.value)} {weather.precipitation.unit}",
        ]
    )


def format_route_info(route: RouteResult, origin: str | None = None, destination: str | None = None) -> str:
    best = route.best
    heading = (
        f"**Route from {origin} to {destination}**" if origin and destination else "**Route**"
    )
    lines = [
        heading,
        f"- Distance: {_fmt_number(best.distance_meters / 1000)} km",
        f"- Estimated time: {format_duration(best.duration_seconds)}",
    ]
    if len(route.routes) > 1:
        lines.append(f"- Alternatives: {len(route.routes) - 1}")
    return "\n".join(lines)


def format_location_info(location: GeocodeResult) -> str:
    match = location.best
    lines = [f"**{match.formatted_address}**"]
    if match.city:
        lines.append(f"- City: {match.city}")
    if match.country:
        lines.append(f"- Country: {match.country}")
    lines.append(f"- Coordinates: {match.location.lat:.4f}, {match.location.lng:.4f}")
    return "\n".join(lines)
