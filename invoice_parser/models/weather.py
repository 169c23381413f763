from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class WeatherModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class LatLng(WeatherModel):
    lat: float
    lng: float


class RouteInfo(WeatherModel):
    distance: str = ""
    duration: str = ""
    path: list[LatLng] = Field(default_factory=list)


class WeatherPoint(WeatherModel):
    location: LatLng
    location_name: str = ""
    temperature: float = 0.0
    description: str = ""
    precipitation: float = 0.0  # mm per hour, rain + snow
    icon: str = ""


class WeatherRouteRequest(WeatherModel):
    origin: str = ""
    destination: str = ""
    start_date: datetime | None = None


class WeatherRouteResult(WeatherModel):
    summary: str = ""
    route: RouteInfo = Field(default_factory=RouteInfo)
    weather_points: list[WeatherPoint] = Field(default_factory=list)
