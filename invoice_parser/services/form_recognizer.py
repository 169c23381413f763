"""
Azure Document Intelligence (prebuilt-invoice) client and field reader.

The reader works on the analyze result in its wire format (the JSON the
service returns, or AnalyzeResult.as_dict()), so it can re-run over a raw
response stored in the audit log without the SDK objects.
"""

import asyncio
import json
from dataclasses import dataclass
from typing import Any, Callable, Optional

from azure.ai.documentintelligence import DocumentIntelligenceClient
from azure.core.credentials import AzureKeyCredential
from azure.core.exceptions import AzureError, HttpResponseError
from loguru import logger

from ..core.exceptions import NoContentFound, ProviderNotConfigured, UpstreamProviderError
from .vendors import ProviderCall, VendorClientConfig

# Vendor type tag -> key holding the typed value
_VALUE_KEYS = {
    "string": "valueString",
    "date": "valueDate",
    "number": "valueNumber",
    "integer": "valueInteger",
    "currency": "valueCurrency",
    "array": "valueArray",
    "object": "valueObject",
    # Addresses are consumed as their full text, not the structured valueAddress
    "address": "content",
}


def typed_value(field: Any, expected_type: str) -> Optional[Any]:
    """
    Return the field's value if its type tag matches, otherwise None.

    A mismatched or missing field is not an error: the invoice is simply
    left sparser.
    """
    if not isinstance(field, dict) or field.get("type") != expected_type:
        return None
    return field.get(_VALUE_KEYS[expected_type])


def _currency(value: Any) -> Optional[dict]:
    if not isinstance(value, dict):
        return None
    return {"currencySymbol": value.get("currencySymbol"), "amount": value.get("amount")}


def _currency_amount(value: Any) -> Optional[Any]:
    return value.get("amount") if isinstance(value, dict) else None


def _whole_number(value: Any) -> Optional[int]:
    # Quantities arrive as doubles; pieces are whole
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return int(value)


@dataclass(frozen=True)
class FieldMapping:
    vendor_field: str
    expected_type: str
    path: tuple[str, ...]
    convert: Optional[Callable[[Any], Any]] = None


INVOICE_FIELDS = (
    FieldMapping("InvoiceId", "string", ("freightBillNo",)),
    FieldMapping("InvoiceDate", "date", ("shipmentDate",)),
    FieldMapping("DueDate", "date", ("paymentDueDate",)),
    FieldMapping("VendorTaxId", "string", ("fedTaxId",)),
    FieldMapping("VendorName", "string", ("remitTo", "name")),
    FieldMapping("VendorAddress", "address", ("remitTo", "address", "fullAddress")),
    FieldMapping("CustomerName", "string", ("billTo", "name")),
    FieldMapping("CustomerAddress", "address", ("billTo", "address", "fullAddress")),
    FieldMapping("CustomerId", "string", ("billTo", "accountNumber")),
    FieldMapping("PurchaseOrder", "string", ("shipmentDetails", "poNumber")),
    FieldMapping("PaymentTerm", "string", ("shipmentDetails", "paymentTerms")),
    FieldMapping("SubTotal", "currency", ("subTotal",), _currency),
    FieldMapping("TotalTax", "currency", ("totalTax",), _currency),
    FieldMapping("InvoiceTotal", "currency", ("invoiceTotal",), _currency),
    FieldMapping("AmountDue", "currency", ("amountDue",), _currency),
)

ITEM_FIELDS = (
    FieldMapping("Description", "string", ("description",)),
    FieldMapping("Quantity", "number", ("pieces",), _whole_number),
    FieldMapping("UnitPrice", "currency", ("rate",), _currency_amount),
    FieldMapping("Amount", "currency", ("charge",), _currency),
)


def _set_path(target: dict, path: tuple[str, ...], value: Any) -> None:
    node = target
    for key in path[:-1]:
        node = node.setdefault(key, {})
    node[path[-1]] = value


def _apply_mappings(fields: dict, mappings: tuple[FieldMapping, ...]) -> dict:
    result: dict = {}
    for mapping in mappings:
        value = typed_value(fields.get(mapping.vendor_field), mapping.expected_type)
        if value is not None and mapping.convert is not None:
            value = mapping.convert(value)
        if value is not None:
            _set_path(result, mapping.path, value)
    return result


def read_invoice_fields(analyze_result: dict) -> dict:
    """
    Map the first analyzed document onto the canonical invoice shape.

    Args:
        analyze_result: Analyze result in wire format ({"documents": [{"fields": {...}}]})

    Returns:
        camelCase invoice mapping, ready for normalize_field_map

    Raises:
        NoContentFound: If the result contains no analyzed documents
    """
    documents = analyze_result.get("documents") if isinstance(analyze_result, dict) else None
    if not documents:
        raise NoContentFound("No invoice data found in the image")
    if not isinstance(documents, list) or not isinstance(documents[0], dict):
        raise NoContentFound("Analyze result documents are malformed")

    fields = documents[0].get("fields")
    if not isinstance(fields, dict):
        fields = {}
    invoice = _apply_mappings(fields, INVOICE_FIELDS)

    items = []
    for element in typed_value(fields.get("Items"), "array") or []:
        item_fields = typed_value(element, "object")
        if item_fields is None:
            continue
        items.append(_apply_mappings(item_fields, ITEM_FIELDS))
    invoice["items"] = items

    logger.debug(
        "Read Azure invoice fields",
        mapped=len(invoice) - 1,
        available=len(fields),
        items=len(items),
    )
    return invoice


class AzureFormsClient:
    """Runs the prebuilt-invoice model and returns the raw analyze result JSON"""

    provider = "azure"

    def __init__(self, config: VendorClientConfig, client: Optional[DocumentIntelligenceClient] = None):
        self.config = config
        self._client = client

    def _get_client(self) -> DocumentIntelligenceClient:
        if self._client is None:
            if not self.config.configured:
                raise ProviderNotConfigured(self.provider, "AZ_DI_ENDPOINT and AZ_DI_API_KEY")
            self._client = DocumentIntelligenceClient(
                endpoint=self.config.base_url,
                credential=AzureKeyCredential(self.config.api_key),
            )
        return self._client

    def ensure_configured(self) -> None:
        self._get_client()

    def _analyze(self, image_bytes: bytes) -> dict:
        poller = self._get_client().begin_analyze_document(
            self.config.model or "prebuilt-invoice",
            body=image_bytes,
            content_type="application/octet-stream",
        )
        return poller.result().as_dict()

    async def analyze(self, image_bytes: bytes, mime_type: str) -> ProviderCall:
        request_payload = json.dumps({
            "modelId": self.config.model or "prebuilt-invoice",
            "contentType": mime_type,
            "contentLength": len(image_bytes),
        })

        logger.info(f"Analyzing document of size {len(image_bytes)} bytes", provider=self.provider)
        try:
            # The SDK poller blocks; keep it off the event loop
            result = await asyncio.to_thread(self._analyze, image_bytes)
        except HttpResponseError as e:
            raise UpstreamProviderError(self.provider, e.message or str(e), e.status_code, e) from e
        except AzureError as e:
            raise UpstreamProviderError(self.provider, str(e), original_error=e) from e

        return ProviderCall(request_payload=request_payload, response_text=json.dumps(result))
