from fastapi import Request

from ..services.api_log_service import ApiResponseLogService
from ..services.invoice_parser import InvoiceParserService
from ..services.weather_route import WeatherRouteService


def get_api_logs(request: Request) -> ApiResponseLogService:
    return request.app.state.api_logs


def get_invoice_parser(request: Request) -> InvoiceParserService:
    return request.app.state.invoice_parser


def get_weather_route(request: Request) -> WeatherRouteService:
    return request.app.state.weather_route
