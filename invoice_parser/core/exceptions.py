"""Exception hierarchy for invoice parsing and weather routing."""

from typing import Any, Optional


class InvoiceParserError(Exception):
    """Base exception for all errors raised by this service."""

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)


class ParsingFailed(InvoiceParserError):
    """An invoice could not be produced from a provider response."""


class NoContentFound(ParsingFailed):
    """No invoice-shaped content could be located in the provider response."""


class NoTextContent(NoContentFound):
    """The LLM envelope had no text at the expected path."""

    def __init__(self, provider: str, path: str) -> None:
        self.provider = provider
        self.path = path
        super().__init__(
            f"No text content found in {provider} response (missing {path})",
            details={"provider": provider, "path": path},
        )


class InvalidInvoiceJson(ParsingFailed):
    """Extracted text was not valid JSON or did not fit the invoice shape."""

    def __init__(self, text: str, reason: str) -> None:
        self.text = text
        self.reason = reason
        super().__init__(f"Invalid invoice JSON: {reason}", details={"reason": reason})


class UpstreamProviderError(InvoiceParserError):
    """Transport failure or non-success status from a vendor call."""

    def __init__(
        self,
        provider: str,
        message: str,
        status_code: Optional[int] = None,
        original_error: Optional[Exception] = None,
    ) -> None:
        self.provider = provider
        self.status_code = status_code
        self.original_error = original_error

        full_message = f"{provider} request failed: {message}"
        if status_code is not None:
            full_message += f" (HTTP {status_code})"

        super().__init__(full_message, details={"provider": provider, "status_code": status_code})


class ProviderNotConfigured(InvoiceParserError):
    """Credentials for the selected vendor are missing."""

    def __init__(self, provider: str, setting: str) -> None:
        self.provider = provider
        super().__init__(
            f"{provider} is not configured (set {setting})",
            details={"provider": provider, "setting": setting},
        )


class UnknownProviderError(InvoiceParserError):
    """The provider selector is not one of the supported tags."""

    def __init__(self, provider: str, supported: list[str]) -> None:
        self.provider = provider
        super().__init__(
            f"Invalid parser specified: {provider!r}. Use one of: {', '.join(supported)}",
            details={"provider": provider, "supported": supported},
        )


class WeatherRouteFailed(InvoiceParserError):
    """The weather-along-route pipeline could not produce a result."""


class RouteNotFound(WeatherRouteFailed):
    """The directions provider returned a non-OK status or no routes."""

    def __init__(self, origin: str, destination: str, status: Optional[str] = None) -> None:
        self.origin = origin
        self.destination = destination
        self.status = status
        super().__init__(
            f"Could not find route between {origin!r} and {destination!r}"
            + (f" (status {status})" if status else ""),
            details={"origin": origin, "destination": destination, "status": status},
        )
