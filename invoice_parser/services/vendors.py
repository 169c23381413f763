"""
Per-vendor client configuration and shared HTTP clients.

Each vendor gets one explicit config object and, for HTTP vendors, one
httpx.AsyncClient with its own base URL. They are built once at startup
(see api.main lifespan) and handed to the services that need them.
"""

from dataclasses import dataclass
from typing import Optional

import httpx

from ..core.config import Settings


@dataclass(frozen=True)
class VendorClientConfig:
    name: str
    base_url: str
    api_key: Optional[str] = None
    model: Optional[str] = None
    timeout_s: float = 60.0

    @property
    def configured(self) -> bool:
        return bool(self.base_url and self.api_key)


@dataclass(frozen=True)
class ProviderCall:
    """Raw result of one outbound provider call"""

    request_payload: Optional[str]
    response_text: str
    status_code: int = 200


def vendor_configs(settings: Settings) -> dict[str, VendorClientConfig]:
    timeout = settings.http_timeout_s
    return {
        "azure": VendorClientConfig(
            name="azure",
            base_url=settings.az_di_endpoint or "",
            api_key=settings.az_di_api_key,
            model="prebuilt-invoice",
            timeout_s=timeout,
        ),
        "gemini": VendorClientConfig(
            name="gemini",
            base_url=settings.gemini_base_url,
            api_key=settings.gemini_api_key,
            model=settings.gemini_model,
            timeout_s=timeout,
        ),
        "openai": VendorClientConfig(
            name="openai",
            base_url=settings.openai_base_url,
            api_key=settings.openai_api_key,
            model=settings.openai_model,
            timeout_s=timeout,
        ),
        "google_maps": VendorClientConfig(
            name="google_maps",
            base_url=settings.google_maps_base_url,
            api_key=settings.google_maps_api_key,
            timeout_s=timeout,
        ),
        "openweather": VendorClientConfig(
            name="openweather",
            base_url=settings.openweather_base_url,
            api_key=settings.openweather_api_key,
            timeout_s=timeout,
        ),
    }


def build_http_client(config: VendorClientConfig) -> httpx.AsyncClient:
    return httpx.AsyncClient(base_url=config.base_url, timeout=config.timeout_s)
