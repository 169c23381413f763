"""
Turns extracted invoice JSON (or a forms field map) into a ParsedInvoice.

Failure here is whole-document: malformed or incompatible JSON raises
InvalidInvoiceJson rather than returning a half-empty invoice. Field-level
leniency lives in the models (numeric coercion) and in the forms reader.
"""

import json
from typing import Any, Optional

from loguru import logger
from pydantic import ValidationError

from ..core.exceptions import InvalidInvoiceJson
from ..models.invoice import ParsedInvoice, UsageMetadata


def normalize_invoice_json(
    invoice_json: str,
    usage_metadata: Optional[UsageMetadata] = None,
    model_version: Optional[str] = None,
) -> ParsedInvoice:
    """
    Decode invoice JSON text into the canonical invoice.

    Args:
        invoice_json: JSON object text extracted from a provider response
        usage_metadata: Token usage from the provider envelope, if any
        model_version: Model identifier from the provider envelope, if any

    Returns:
        ParsedInvoice with provider metadata attached

    Raises:
        InvalidInvoiceJson: If the text is not JSON or does not fit the invoice shape
    """
    try:
        data = json.loads(invoice_json)
    except json.JSONDecodeError as e:
        logger.warning("Extracted text is not valid JSON", error=str(e))
        raise InvalidInvoiceJson(invoice_json, str(e)) from e

    return normalize_field_map(data, usage_metadata, model_version, source_text=invoice_json)


def normalize_field_map(
    fields: Any,
    usage_metadata: Optional[UsageMetadata] = None,
    model_version: Optional[str] = None,
    source_text: Optional[str] = None,
) -> ParsedInvoice:
    """Validate an already-decoded invoice mapping into the canonical invoice."""
    if not isinstance(fields, dict):
        text = source_text if source_text is not None else repr(fields)
        raise InvalidInvoiceJson(text, f"expected a JSON object, got {type(fields).__name__}")

    try:
        invoice = ParsedInvoice.model_validate(fields)
    except ValidationError as e:
        text = source_text if source_text is not None else json.dumps(fields, default=str)
        logger.warning("Invoice JSON does not match the invoice shape", errors=e.error_count())
        raise InvalidInvoiceJson(text, str(e)) from e

    # Provider metadata comes from the envelope, never from model-authored JSON
    invoice.usage_metadata = usage_metadata
    invoice.model_version = model_version
    return invoice
