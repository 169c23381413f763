"""
Pytest configuration and shared fixtures.

This file registers custom pytest markers and command-line options, and
provides canned vendor responses plus an app client wired to a temporary
audit database.
"""

import json

import pytest
from fastapi.testclient import TestClient

from invoice_parser.api.main import app
from invoice_parser.core.config import settings
from invoice_parser.services.api_log_service import ApiResponseLogService
from invoice_parser.services.storage import InMemoryApiLogStore

# 1x1 PNG header is enough for MIME sniffing
PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 24

SAMPLE_INVOICE = {
    "service": "LTL",
    "freightBillNo": "FB-1001",
    "shipmentDate": "2024-03-01",
    "amountDue": {"currencySymbol": "$", "amount": "1,250.50"},
    "remitTo": {"name": "ACME Freight", "address": {"fullAddress": "1 Dock St, Chicago, IL"}},
    "billTo": {"name": "Contoso", "accountNumber": "C-77"},
    "items": [
        {"pieces": 2, "description": "Pallets", "weight": "850", "class": "70", "rate": 12.5,
         "charge": {"currencySymbol": "$", "amount": 1000}},
        {"pieces": "1", "description": "Fuel surcharge", "charge": {"amount": "250.50"}},
    ],
    "invoiceTotal": {"currencySymbol": "$", "amount": 1250.5},
}


def gemini_envelope(text: str, model_version: str = "gemini-2.5-flash-001") -> dict:
    return {
        "candidates": [{"content": {"parts": [{"text": text}], "role": "model"}}],
        "usageMetadata": {"promptTokenCount": 1200, "candidatesTokenCount": 300, "totalTokenCount": 1500},
        "modelVersion": model_version,
    }


def openai_envelope(content: str, model: str = "gpt-4o-2024-08-06") -> dict:
    return {
        "id": "chatcmpl-1",
        "model": model,
        "choices": [{"index": 0, "message": {"role": "assistant", "content": content}}],
        "usage": {"prompt_tokens": 900, "completion_tokens": 250, "total_tokens": 1150},
    }


def pytest_addoption(parser):
    """Add custom command-line options"""
    parser.addoption(
        "--run-integration",
        action="store_true",
        default=False,
        help="Run integration tests against real vendor APIs"
    )


def pytest_configure(config):
    """Register custom markers"""
    config.addinivalue_line(
        "markers",
        "integration: mark test as integration test requiring real vendor credentials"
    )


def pytest_collection_modifyitems(config, items):
    """Skip integration tests unless --run-integration is specified"""
    if config.getoption("--run-integration"):
        return

    skip_integration = pytest.mark.skip(reason="need --run-integration option to run")
    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip_integration)


@pytest.fixture
def sample_invoice_json():
    return json.dumps(SAMPLE_INVOICE)


@pytest.fixture
def png_bytes():
    return PNG_BYTES


@pytest.fixture
def make_gemini_response():
    return gemini_envelope


@pytest.fixture
def make_openai_response():
    return openai_envelope


@pytest.fixture
def api_logs():
    """Audit service over an in-memory store"""
    service = ApiResponseLogService(InMemoryApiLogStore())
    yield service
    service.close()


@pytest.fixture
def client(tmp_path, monkeypatch):
    """App client with test credentials and a throwaway audit database"""
    monkeypatch.setattr(settings, "api_log_db_path", str(tmp_path / "api_logs.db"))
    monkeypatch.setattr(settings, "gemini_api_key", "test-gemini-key")
    monkeypatch.setattr(settings, "openai_api_key", "test-openai-key")
    monkeypatch.setattr(settings, "google_maps_api_key", "test-maps-key")
    monkeypatch.setattr(settings, "openweather_api_key", "test-weather-key")
    monkeypatch.setattr(settings, "az_di_endpoint", None)
    monkeypatch.setattr(settings, "az_di_api_key", None)

    with TestClient(app) as test_client:
        yield test_client
