"""
Google Gemini generateContent client.

Used for invoice images (vision) and for free-text generation (the
weather-route summary). Only transport lives here; reading the response
envelope is the job of extractors.GeminiResponseExtractor.
"""

import base64
import json
from typing import Optional

import httpx
from loguru import logger

from ..core.exceptions import InvoiceParserError, ProviderNotConfigured, UpstreamProviderError
from ..models.api_log import ApiInteraction
from .api_log_service import ApiResponseLogService, CallClock
from .extractors import gemini_text, gemini_usage, load_envelope
from .prompts import INVOICE_PARSING_PROMPT
from .vendors import ProviderCall, VendorClientConfig


class GeminiClient:
    provider = "gemini"

    def __init__(
        self,
        config: VendorClientConfig,
        http: httpx.AsyncClient,
        api_logs: Optional[ApiResponseLogService] = None,
    ):
        self.config = config
        self.http = http
        self.api_logs = api_logs

    def ensure_configured(self) -> None:
        if not self.config.configured:
            raise ProviderNotConfigured(self.provider, "GEMINI_API_KEY")

    async def _generate(self, body: dict) -> ProviderCall:
        self.ensure_configured()
        payload = json.dumps(body)
        try:
            response = await self.http.post(
                f"/v1beta/models/{self.config.model}:generateContent",
                params={"key": self.config.api_key},
                content=payload,
                headers={"Content-Type": "application/json"},
            )
        except httpx.HTTPError as e:
            raise UpstreamProviderError(self.provider, str(e) or type(e).__name__, original_error=e) from e

        if response.is_error:
            logger.error(
                "Gemini API request failed",
                status_code=response.status_code,
                response=response.text[:1000],
            )
            raise UpstreamProviderError(self.provider, response.text[:500], response.status_code)

        return ProviderCall(request_payload=payload, response_text=response.text, status_code=response.status_code)

    async def analyze(self, image_bytes: bytes, mime_type: str) -> ProviderCall:
        body = {
            "contents": [{
                "role": "user",
                "parts": [
                    {"text": INVOICE_PARSING_PROMPT},
                    {"inlineData": {
                        "mimeType": mime_type,
                        "data": base64.b64encode(image_bytes).decode("ascii"),
                    }},
                ],
            }],
            "generationConfig": {"temperature": 0.1, "topP": 0.8, "topK": 40},
        }
        return await self._generate(body)

    async def generate_text(self, prompt: str) -> str:
        """Free-text completion. Every call is audit-logged, success or not."""
        body = {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": {"temperature": 0.1, "maxOutputTokens": 1000},
        }

        self.ensure_configured()
        clock = CallClock()
        call: Optional[ProviderCall] = None
        try:
            call = await self._generate(body)
            clock.stop()
            envelope = load_envelope(self.provider, call.response_text)
            text = gemini_text(envelope)
        except InvoiceParserError as e:
            clock.stop()
            self._record(clock, body, call, error=e)
            raise

        model_version = envelope.get("modelVersion")
        self._record(
            clock,
            body,
            call,
            model_version=model_version if isinstance(model_version, str) else self.config.model,
            usage=gemini_usage(envelope),
        )
        return text

    def _record(self, clock, body, call, error=None, model_version=None, usage=None) -> None:
        if self.api_logs is None:
            return
        self.api_logs.record(ApiInteraction(
            provider=self.provider,
            request_id=clock.request_id,
            started_at=clock.started_at,
            processing_time_ms=clock.elapsed_ms,
            success=error is None,
            response_content=call.response_text if call is not None else str(error),
            request_payload=call.request_payload if call is not None else json.dumps(body),
            error_message=str(error) if error is not None else None,
            model_version=model_version,
            usage_metadata=usage,
        ))
