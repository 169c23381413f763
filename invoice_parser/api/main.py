from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from ..core.logging import setup_logging
from ..core.config import settings
from ..services.api_log_service import ApiResponseLogService
from ..services.directions import GoogleDirectionsClient
from ..services.form_recognizer import AzureFormsClient
from ..services.gemini_client import GeminiClient
from ..services.invoice_parser import InvoiceParserService
from ..services.openai_client import OpenAIClient
from ..services.storage import SQLiteApiLogStore
from ..services.vendors import build_http_client, vendor_configs
from ..services.weather import OpenWeatherClient
from ..services.weather_route import WeatherRouteService
from .routers import api_logs, health, invoice, weather_route

logger = setup_logging()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the audit store, vendor clients and services once per process"""
    configs = vendor_configs(settings)
    http_clients = {
        name: build_http_client(configs[name])
        for name in ("gemini", "openai", "google_maps", "openweather")
    }

    api_log_service = ApiResponseLogService(
        SQLiteApiLogStore(settings.api_log_db_path),
        max_workers=settings.api_log_workers,
    )
    gemini = GeminiClient(configs["gemini"], http_clients["gemini"], api_logs=api_log_service)

    app.state.api_logs = api_log_service
    app.state.invoice_parser = InvoiceParserService(
        clients={
            "azure": AzureFormsClient(configs["azure"]),
            "gemini": gemini,
            "openai": OpenAIClient(configs["openai"], http_clients["openai"]),
        },
        api_logs=api_log_service,
    )
    app.state.weather_route = WeatherRouteService(
        directions=GoogleDirectionsClient(configs["google_maps"], http_clients["google_maps"]),
        weather=OpenWeatherClient(configs["openweather"], http_clients["openweather"]),
        text_generator=gemini,
        sample_count=settings.route_sample_count,
    )
    logger.info("Application started", app_env=settings.app_env, api_log_db=settings.api_log_db_path)

    try:
        yield
    finally:
        # Drain audit writes before the clients go away
        api_log_service.close()
        for client in http_clients.values():
            await client.aclose()
        logger.info("Application stopped")


app = FastAPI(title="Invoice Parser API", lifespan=lifespan)


# Add custom exception handler for validation errors
@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.error(f"Validation error: {exc.errors()}")
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"detail": exc.errors()},
    )


# CORS_ORIGINS can be set in .env as comma-separated list
# Example: CORS_ORIGINS=http://localhost:4201,https://your-frontend.com
allowed_origins = [origin.strip() for origin in settings.cors_origins.split(",")]

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(invoice.router)
app.include_router(api_logs.router)
app.include_router(weather_route.router)
