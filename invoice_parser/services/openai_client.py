import base64
import json

import httpx
from loguru import logger

from ..core.exceptions import ProviderNotConfigured, UpstreamProviderError
from .prompts import INVOICE_PARSING_PROMPT
from .vendors import ProviderCall, VendorClientConfig


class OpenAIClient:
    """OpenAI chat completions with an image_url part (GPT-4o vision)"""

    provider = "openai"

    def __init__(self, config: VendorClientConfig, http: httpx.AsyncClient):
        self.config = config
        self.http = http

    def ensure_configured(self) -> None:
        if not self.config.configured:
            raise ProviderNotConfigured(self.provider, "OPENAI_API_KEY")

    async def analyze(self, image_bytes: bytes, mime_type: str) -> ProviderCall:
        self.ensure_configured()
        b64_image = base64.b64encode(image_bytes).decode("ascii")
        payload = json.dumps({
            "model": self.config.model,
            "messages": [{
                "role": "user",
                "content": [
                    {"type": "text", "text": INVOICE_PARSING_PROMPT},
                    {"type": "image_url", "image_url": {
                        "url": f"data:{mime_type};base64,{b64_image}",
                        "detail": "high",
                    }},
                ],
            }],
            "temperature": 0.1,
            "max_tokens": 4000,
        })

        try:
            response = await self.http.post(
                "/v1/chat/completions",
                content=payload,
                headers={
                    "Authorization": f"Bearer {self.config.api_key}",
                    "Content-Type": "application/json",
                },
            )
        except httpx.HTTPError as e:
            raise UpstreamProviderError(self.provider, str(e) or type(e).__name__, original_error=e) from e

        if response.is_error:
            logger.error(
                "OpenAI API request failed",
                status_code=response.status_code,
                response=response.text[:1000],
            )
            raise UpstreamProviderError(self.provider, response.text[:500], response.status_code)

        return ProviderCall(request_payload=payload, response_text=response.text, status_code=response.status_code)
