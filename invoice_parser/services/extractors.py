"""
Provider response extractors.

Each extractor takes the raw response body exactly as the vendor returned
it (the same text that is stored in the audit log) and produces the invoice
JSON text, then the canonical invoice. They are pure: no network, no I/O.
That is what lets the audit detail view re-run them over stored responses.

The extractor is selected by the provider tag the caller already knows,
never by sniffing the response shape.
"""

import json
from typing import Any, Optional, Protocol

from loguru import logger
from pydantic import ValidationError

from ..core.exceptions import NoContentFound, NoTextContent, UnknownProviderError
from ..models.invoice import ParsedInvoice, UsageMetadata
from .form_recognizer import read_invoice_fields
from .normalizer import normalize_invoice_json

FENCE_OPEN = "```json"
FENCE_CLOSE = "```"


def strip_markdown_fence(text: str) -> str:
    """Trim a leading ```json and a trailing ``` marker, then whitespace."""
    cleaned = text.strip()
    if cleaned.startswith(FENCE_OPEN):
        cleaned = cleaned[len(FENCE_OPEN):]
    if cleaned.endswith(FENCE_CLOSE):
        cleaned = cleaned[:-len(FENCE_CLOSE)]
    return cleaned.strip()


def extract_json_object(text: str) -> str:
    """
    Return the substring from the first '{' to the last '}' inclusive.

    This is not a balanced-brace scan: stray braces in the commentary
    around the JSON will be swept into the result.
    """
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end == -1 or end < start:
        raise NoContentFound("Could not find valid JSON in the model response")
    return text[start:end + 1]


def load_envelope(provider: str, raw_response: str) -> dict:
    try:
        envelope = json.loads(raw_response)
    except (TypeError, json.JSONDecodeError) as e:
        raise NoContentFound(f"{provider} response is not valid JSON: {e}") from e
    if not isinstance(envelope, dict):
        raise NoContentFound(f"{provider} response is not a JSON object")
    return envelope


def _first(value: Any) -> Optional[Any]:
    if isinstance(value, list) and value:
        return value[0]
    return None


def _get(value: Any, key: str) -> Optional[Any]:
    return value.get(key) if isinstance(value, dict) else None


def gemini_text(envelope: dict) -> str:
    """candidates[0].content.parts[0].text"""
    candidate = _first(envelope.get("candidates"))
    if candidate is None:
        raise NoTextContent("gemini", "candidates[0]")
    part = _first(_get(_get(candidate, "content"), "parts"))
    if part is None:
        raise NoTextContent("gemini", "candidates[0].content.parts[0]")
    text = _get(part, "text")
    if not isinstance(text, str) or not text:
        raise NoTextContent("gemini", "candidates[0].content.parts[0].text")
    return text


def openai_text(envelope: dict) -> str:
    """choices[0].message.content"""
    choice = _first(envelope.get("choices"))
    if choice is None:
        raise NoTextContent("openai", "choices[0]")
    content = _get(_get(choice, "message"), "content")
    if not isinstance(content, str) or not content:
        raise NoTextContent("openai", "choices[0].message.content")
    return content


def gemini_usage(envelope: dict) -> Optional[UsageMetadata]:
    usage = envelope.get("usageMetadata")
    if not isinstance(usage, dict):
        return None
    try:
        return UsageMetadata.model_validate(usage)
    except ValidationError:
        # Token accounting is informational; never fail a parse over it
        logger.warning("Ignoring unreadable Gemini usageMetadata")
        return None


def openai_usage(envelope: dict) -> Optional[UsageMetadata]:
    usage = envelope.get("usage")
    if not isinstance(usage, dict):
        return None
    try:
        return UsageMetadata(
            prompt_token_count=usage.get("prompt_tokens") or 0,
            candidates_token_count=usage.get("completion_tokens") or 0,
            total_token_count=usage.get("total_tokens") or 0,
        )
    except ValidationError:
        logger.warning("Ignoring unreadable OpenAI usage")
        return None


def _model_version(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


def _try_envelope(raw_response: str) -> Optional[dict]:
    try:
        envelope = json.loads(raw_response)
    except (TypeError, json.JSONDecodeError):
        return None
    return envelope if isinstance(envelope, dict) else None


class ResponseExtractor(Protocol):
    provider: str

    def extract(self, raw_response: str) -> str: ...

    def envelope_metadata(self, raw_response: str) -> tuple[Optional[UsageMetadata], Optional[str]]: ...

    def parse(self, raw_response: str) -> ParsedInvoice: ...


class GeminiResponseExtractor:
    """generateContent envelope: {"candidates": [...], "usageMetadata": {...}, "modelVersion": ...}"""

    provider = "gemini"

    def extract(self, raw_response: str) -> str:
        envelope = load_envelope(self.provider, raw_response)
        return extract_json_object(gemini_text(envelope))

    def envelope_metadata(self, raw_response: str) -> tuple[Optional[UsageMetadata], Optional[str]]:
        """Usage and model version, readable even when the invoice text is not"""
        envelope = _try_envelope(raw_response)
        if envelope is None:
            return None, None
        return gemini_usage(envelope), _model_version(envelope.get("modelVersion"))

    def parse(self, raw_response: str) -> ParsedInvoice:
        usage, model_version = self.envelope_metadata(raw_response)
        return normalize_invoice_json(self.extract(raw_response), usage_metadata=usage, model_version=model_version)


class OpenAIResponseExtractor:
    """chat.completions envelope: {"choices": [...], "usage": {...}, "model": ...}"""

    provider = "openai"

    def extract(self, raw_response: str) -> str:
        envelope = load_envelope(self.provider, raw_response)
        return extract_json_object(strip_markdown_fence(openai_text(envelope)))

    def envelope_metadata(self, raw_response: str) -> tuple[Optional[UsageMetadata], Optional[str]]:
        envelope = _try_envelope(raw_response)
        if envelope is None:
            return None, None
        return openai_usage(envelope), _model_version(envelope.get("model"))

    def parse(self, raw_response: str) -> ParsedInvoice:
        usage, model_version = self.envelope_metadata(raw_response)
        return normalize_invoice_json(self.extract(raw_response), usage_metadata=usage, model_version=model_version)


class AzureResponseExtractor:
    """prebuilt-invoice analyze result: {"documents": [{"fields": {...}}]}"""

    provider = "azure"

    def extract(self, raw_response: str) -> str:
        analyze_result = load_envelope(self.provider, raw_response)
        return json.dumps(read_invoice_fields(analyze_result))

    def envelope_metadata(self, raw_response: str) -> tuple[Optional[UsageMetadata], Optional[str]]:
        # No token usage or model version for the forms service
        return None, None

    def parse(self, raw_response: str) -> ParsedInvoice:
        return normalize_invoice_json(self.extract(raw_response))


EXTRACTORS: dict[str, ResponseExtractor] = {
    "azure": AzureResponseExtractor(),
    "gemini": GeminiResponseExtractor(),
    "openai": OpenAIResponseExtractor(),
}


def get_extractor(provider: str) -> ResponseExtractor:
    extractor = EXTRACTORS.get(provider)
    if extractor is None:
        raise UnknownProviderError(provider, sorted(EXTRACTORS))
    return extractor
