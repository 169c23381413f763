"""
Weather along a driving route.

Route lookup -> polyline decode -> fixed-count sampling -> per-point
weather -> LLM hazard summary. Route lookup failures propagate; a failed
weather point is dropped and a failed summary falls back to fixed text.
"""

from datetime import datetime, UTC
from typing import Optional, Protocol

from loguru import logger

from ..core.exceptions import InvoiceParserError, WeatherRouteFailed
from ..models.weather import LatLng, WeatherPoint, WeatherRouteResult
from .directions import GoogleDirectionsClient
from .prompts import WEATHER_SUMMARY_PROMPT
from .weather import OpenWeatherClient

DEFAULT_SAMPLE_COUNT = 10

FALLBACK_SUMMARY = (
    "Unable to generate weather summary at this time. "
    "Please check individual weather points for conditions."
)


class TextGenerator(Protocol):
    async def generate_text(self, prompt: str) -> str: ...


def sample_route_points(path: list[LatLng], sample_count: int = DEFAULT_SAMPLE_COUNT) -> list[LatLng]:
    """
    Pick sample_count evenly spaced points, always including the first and last.

    Paths that already have no more points than requested are returned as-is.
    """
    if len(path) <= sample_count:
        return list(path)
    if sample_count < 2:
        return path[:sample_count]

    interval = (len(path) - 1) / (sample_count - 1)
    return [path[round(i * interval)] for i in range(sample_count)]


def build_summary_prompt(
    origin: str,
    destination: str,
    weather_points: list[WeatherPoint],
    forecast_date: datetime,
) -> str:
    weather_data = "\n".join(
        f"Location: {point.location_name}, Temp: {point.temperature:.1f}°C, "
        f"Conditions: {point.description}, Precipitation: {point.precipitation}mm"
        for point in weather_points
    )
    return WEATHER_SUMMARY_PROMPT.format(
        origin=origin,
        destination=destination,
        date=forecast_date.strftime("%B %d, %Y"),
        weather_data=weather_data,
    )


class WeatherRouteService:
    def __init__(
        self,
        directions: GoogleDirectionsClient,
        weather: OpenWeatherClient,
        text_generator: TextGenerator,
        sample_count: int = DEFAULT_SAMPLE_COUNT,
    ):
        self.directions = directions
        self.weather = weather
        self.text_generator = text_generator
        self.sample_count = sample_count

    async def get_weather_route(
        self,
        origin: str,
        destination: str,
        start_date: Optional[datetime] = None,
    ) -> WeatherRouteResult:
        forecast_date = start_date or datetime.now(UTC)
        # Fail before the route call rather than dropping every point later
        self.weather.ensure_configured()

        try:
            route = await self.directions.get_route(origin, destination)
        except InvoiceParserError:
            raise
        except Exception as e:
            raise WeatherRouteFailed(f"Failed to get weather route: {e}") from e

        samples = sample_route_points(route.path, self.sample_count)
        logger.info(
            "Route resolved",
            origin=origin,
            destination=destination,
            distance=route.distance,
            path_points=len(route.path),
            samples=len(samples),
        )

        weather_points = []
        for point in samples:
            weather = await self._weather_at(point, forecast_date)
            if weather is not None:
                weather_points.append(weather)

        summary = await self._summarize(origin, destination, weather_points, forecast_date)
        return WeatherRouteResult(summary=summary, route=route, weather_points=weather_points)

    async def _weather_at(self, point: LatLng, forecast_date: datetime) -> Optional[WeatherPoint]:
        try:
            return await self.weather.get_weather(point.lat, point.lng, forecast_date)
        except Exception as e:
            # One bad point must not sink the whole route
            logger.warning(
                "Skipping weather point: {error}",
                error=str(e),
                lat=point.lat,
                lng=point.lng,
            )
            return None

    async def _summarize(
        self,
        origin: str,
        destination: str,
        weather_points: list[WeatherPoint],
        forecast_date: datetime,
    ) -> str:
        prompt = build_summary_prompt(origin, destination, weather_points, forecast_date)
        try:
            return await self.text_generator.generate_text(prompt)
        except Exception as e:
            logger.warning("Weather summary generation failed: {error}", error=str(e))
            return FALLBACK_SUMMARY
