"""
Invoice parsing entry point.

Picks the vendor client and response extractor for the requested
provider tag, times the vendor call, normalizes the result and
audit-logs the attempt (one record per attempt, success or failure).
"""

from typing import Optional, Protocol

from loguru import logger

from ..core.exceptions import InvoiceParserError, UnknownProviderError, UpstreamProviderError
from ..models.api_log import ApiInteraction
from ..models.invoice import ParsedInvoice
from .api_log_service import ApiResponseLogService, CallClock
from .extractors import ResponseExtractor, get_extractor
from .image_types import detect_image_mime_type
from .vendors import ProviderCall


class VisionProvider(Protocol):
    provider: str

    def ensure_configured(self) -> None: ...

    async def analyze(self, image_bytes: bytes, mime_type: str) -> ProviderCall: ...


class InvoiceParserService:
    def __init__(self, clients: dict[str, VisionProvider], api_logs: ApiResponseLogService):
        self.clients = clients
        self.api_logs = api_logs

    @property
    def providers(self) -> list[str]:
        return sorted(self.clients)

    def _client(self, provider: str) -> VisionProvider:
        client = self.clients.get(provider)
        if client is None:
            raise UnknownProviderError(provider, self.providers)
        return client

    async def parse_invoice(
        self,
        provider: str,
        image_bytes: bytes,
        file_name: Optional[str] = None,
    ) -> ParsedInvoice:
        """
        Parse an invoice image with the selected provider.

        Args:
            provider: "azure", "gemini" or "openai" (case-insensitive)
            image_bytes: Uploaded image
            file_name: Original upload name, kept in the audit log

        Returns:
            The canonical invoice

        Raises:
            UnknownProviderError: provider is not supported
            ProviderNotConfigured: the provider has no credentials
            UpstreamProviderError: the vendor call failed
            ParsingFailed: the vendor answered but no invoice could be produced
        """
        tag = provider.lower()
        client = self._client(tag)
        extractor = get_extractor(tag)
        client.ensure_configured()

        mime_type = detect_image_mime_type(image_bytes)
        clock = CallClock()
        call: Optional[ProviderCall] = None

        logger.info(
            "Parsing invoice",
            provider=tag,
            request_id=clock.request_id,
            file_name=file_name,
            file_size=len(image_bytes),
            mime_type=mime_type,
        )

        try:
            call = await client.analyze(image_bytes, mime_type)
            clock.stop()
            invoice = extractor.parse(call.response_text)
        except InvoiceParserError as e:
            clock.stop()
            logger.warning(
                "Invoice parsing failed: {error}",
                error=str(e),
                provider=tag,
                request_id=clock.request_id,
                error_type=type(e).__name__,
            )
            self._record(extractor, clock, call, image_bytes, mime_type, file_name, error=e)
            raise
        except Exception as e:
            clock.stop()
            logger.opt(exception=e).error("Unexpected error calling {provider}", provider=tag)
            self._record(extractor, clock, call, image_bytes, mime_type, file_name, error=e)
            raise UpstreamProviderError(tag, str(e) or type(e).__name__, original_error=e) from e

        self._record(extractor, clock, call, image_bytes, mime_type, file_name)
        logger.info(
            "Invoice parsed",
            provider=tag,
            request_id=clock.request_id,
            items=len(invoice.items),
            processing_time_ms=clock.elapsed_ms,
        )
        return invoice

    def _record(
        self,
        extractor: ResponseExtractor,
        clock: CallClock,
        call: Optional[ProviderCall],
        image_bytes: bytes,
        mime_type: str,
        file_name: Optional[str],
        error: Optional[Exception] = None,
    ) -> None:
        # The raw body is kept whenever one was received, so a failed parse
        # can be inspected (and re-parsed) later
        usage_metadata, model_version = None, None
        if call is not None:
            response_content = call.response_text
            # Read from the envelope so failed parses still carry them
            usage_metadata, model_version = extractor.envelope_metadata(call.response_text)
        else:
            response_content = str(error) if error is not None else ""

        self.api_logs.record(ApiInteraction(
            provider=extractor.provider,
            request_id=clock.request_id,
            started_at=clock.started_at,
            processing_time_ms=clock.elapsed_ms,
            success=error is None,
            response_content=response_content,
            request_payload=call.request_payload if call is not None else None,
            error_message=str(error) if error is not None else None,
            model_version=model_version,
            usage_metadata=usage_metadata,
            file_name=file_name,
            image_data=bytes(image_bytes),
            image_mime_type=mime_type,
        ))
