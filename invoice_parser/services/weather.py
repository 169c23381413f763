"""OpenWeatherMap client: current conditions or the closest 5-day forecast entry."""

from datetime import datetime, UTC
from typing import Optional

import httpx

from ..core.exceptions import ProviderNotConfigured, UpstreamProviderError
from ..models.weather import LatLng, WeatherPoint
from .vendors import VendorClientConfig

FORECAST_HORIZON_DAYS = 5


def _bucket_rate(bucket: object) -> float:
    """mm/h from a {"1h": x} or {"3h": y} bucket, preferring the 1h value"""
    if not isinstance(bucket, dict):
        return 0.0
    if "1h" in bucket:
        return float(bucket["1h"])
    if "3h" in bucket:
        return float(bucket["3h"]) / 3
    return 0.0


def precipitation_mm(conditions: dict) -> float:
    """Rain plus snow, per hour"""
    return _bucket_rate(conditions.get("rain")) + _bucket_rate(conditions.get("snow"))


def closest_forecast(forecasts: list[dict], target_ts: int) -> dict:
    """The forecast entry whose "dt" is nearest the target time (first wins on ties)"""
    return min(forecasts, key=lambda entry: abs(int(entry["dt"]) - target_ts))


def _as_utc(value: datetime) -> datetime:
    return value.replace(tzinfo=UTC) if value.tzinfo is None else value.astimezone(UTC)


class OpenWeatherClient:
    provider = "openweather"

    def __init__(self, config: VendorClientConfig, http: httpx.AsyncClient):
        self.config = config
        self.http = http

    def ensure_configured(self) -> None:
        if not self.config.configured:
            raise ProviderNotConfigured(self.provider, "OPENWEATHER_API_KEY")

    async def _get(self, path: str, lat: float, lng: float) -> dict:
        try:
            response = await self.http.get(
                path,
                params={"lat": lat, "lon": lng, "appid": self.config.api_key, "units": "metric"},
            )
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as e:
            raise UpstreamProviderError(self.provider, e.response.text[:500], e.response.status_code, e) from e
        except (httpx.HTTPError, ValueError) as e:
            raise UpstreamProviderError(self.provider, str(e) or type(e).__name__, original_error=e) from e

    async def get_weather(
        self,
        lat: float,
        lng: float,
        forecast_date: datetime,
        now: Optional[datetime] = None,
    ) -> WeatherPoint:
        """
        Weather at a point for the target date.

        Today or earlier, and more than 5 days out, use current conditions
        (the latter as an approximation). Within 5 days, the forecast entry
        closest to the target time is used.
        """
        self.ensure_configured()
        target = _as_utc(forecast_date)
        days_ahead = (target.date() - _as_utc(now or datetime.now(UTC)).date()).days
        fallback_name = f"{lat:.2f},{lng:.2f}"

        if 0 < days_ahead <= FORECAST_HORIZON_DAYS:
            data = await self._get("/data/2.5/forecast", lat, lng)
            conditions = closest_forecast(data["list"], int(target.timestamp()))
            name = (data.get("city") or {}).get("name") or fallback_name
        else:
            conditions = await self._get("/data/2.5/weather", lat, lng)
            name = conditions.get("name") or fallback_name

        weather = conditions["weather"][0]
        return WeatherPoint(
            location=LatLng(lat=lat, lng=lng),
            location_name=name,
            temperature=float(conditions["main"]["temp"]),
            description=weather.get("description") or "",
            precipitation=precipitation_mm(conditions),
            icon=weather.get("icon") or "",
        )
