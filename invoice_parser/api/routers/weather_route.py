from fastapi import APIRouter, Depends, HTTPException
from loguru import logger

from ..deps import get_weather_route
from ...core.exceptions import (
    InvoiceParserError,
    ProviderNotConfigured,
    RouteNotFound,
    UpstreamProviderError,
)
from ...models.weather import WeatherRouteRequest, WeatherRouteResult
from ...services.weather_route import WeatherRouteService

router = APIRouter(prefix="/weather-route", tags=["weather-route"])


@router.post("/forecast", response_model=WeatherRouteResult, response_model_by_alias=True)
async def weather_forecast(
    req: WeatherRouteRequest,
    service: WeatherRouteService = Depends(get_weather_route),
):
    """
    Weather conditions sampled along the driving route, with an LLM
    summary of travel hazards.

    Example request:
    {
        "origin": "Chicago, IL",
        "destination": "Indianapolis, IN",
        "startDate": "2025-01-15T08:00:00Z"
    }
    """
    if not req.origin.strip() or not req.destination.strip():
        raise HTTPException(status_code=400, detail="Origin and destination are required")

    try:
        return await service.get_weather_route(req.origin, req.destination, req.start_date)
    except RouteNotFound as e:
        raise HTTPException(status_code=404, detail=e.message)
    except ProviderNotConfigured as e:
        raise HTTPException(status_code=503, detail=e.message)
    except UpstreamProviderError as e:
        raise HTTPException(status_code=502, detail=e.message)
    except InvoiceParserError as e:
        logger.error(f"Weather route failed: {e.message}")
        raise HTTPException(status_code=500, detail=e.message)
