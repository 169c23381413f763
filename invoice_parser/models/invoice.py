"""
Canonical invoice record returned by every provider.

Field names are camelCase on the wire. Input keys are matched
case-insensitively because model-authored JSON does not reliably keep the
casing it was asked for ("InvoiceTotal", "invoicetotal", "invoiceTotal").
"""

from decimal import Decimal
from typing import Annotated, Any, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from .coercion import OptionalDecimal, OptionalInt, RequiredDecimal


class InvoiceModel(BaseModel):
    """Base for all invoice models: camelCase aliases, case-insensitive input keys"""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        # "freightBillNo": 123456 is still a bill number
        coerce_numbers_to_str=True,
    )

    @model_validator(mode="before")
    @classmethod
    def _match_keys_case_insensitively(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data

        lookup: dict[str, str] = {}
        for name, field in cls.model_fields.items():
            alias = field.alias or name
            lookup[alias.lower()] = alias
            lookup[name.lower()] = alias

        normalized: dict[str, Any] = {}
        for key, value in data.items():
            target = lookup.get(key.lower(), key) if isinstance(key, str) else key
            # First occurrence wins when a document repeats a key in two casings
            normalized.setdefault(target, value)
        return normalized


class CurrencyField(InvoiceModel):
    currency_symbol: Optional[str] = None
    amount: RequiredDecimal = Decimal(0)


class Address(InvoiceModel):
    """Either full_address or the component fields are populated, not both"""

    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None
    postal_code: Optional[str] = None
    full_address: Optional[str] = None


class CompanyContact(InvoiceModel):
    name: Optional[str] = None
    address: Optional[Address] = None
    phone: Optional[str] = None
    fax: Optional[str] = None
    email: Optional[str] = None
    website: Optional[str] = None
    account_number: Optional[str] = None


class ShippingInfo(InvoiceModel):
    account_number: Optional[str] = None
    name: Optional[str] = None
    address: Optional[Address] = None
    phone: Optional[str] = None


class ShipmentDetails(InvoiceModel):
    service: Optional[str] = None
    shipment_date: Optional[str] = None
    po_number: Optional[str] = None
    bill_of_lading: Optional[str] = None
    tariff: Optional[str] = None
    payment_terms: Optional[str] = None
    total_pieces: OptionalInt = None
    total_weight: OptionalDecimal = None


class ShipmentItem(InvoiceModel):
    pieces: OptionalInt = None
    description: Optional[str] = None
    weight: OptionalDecimal = None
    item_class: Optional[str] = Field(default=None, alias="class")
    rate: OptionalDecimal = None
    charge: Optional[CurrencyField] = None


class PromptTokenDetail(InvoiceModel):
    modality: Optional[str] = None
    token_count: int = 0


class UsageMetadata(InvoiceModel):
    """Token accounting reported by LLM providers"""

    prompt_token_count: int = 0
    candidates_token_count: int = 0
    total_token_count: int = 0
    thoughts_token_count: Optional[int] = None
    prompt_tokens_details: Optional[list[PromptTokenDetail]] = None


def _none_as_empty_list(value: Any) -> Any:
    return [] if value is None else value


class ParsedInvoice(InvoiceModel):
    # Invoice information
    service: Optional[str] = None
    freight_bill_no: Optional[str] = None
    shipment_date: Optional[str] = None
    amount_due: Optional[CurrencyField] = None
    payment_due_date: Optional[str] = None
    fed_tax_id: Optional[str] = None

    # Companies
    remit_to: Optional[CompanyContact] = None
    bill_to: Optional[CompanyContact] = None

    # Shipping
    shipper: Optional[ShippingInfo] = None
    consignee: Optional[ShippingInfo] = None
    shipment_details: Optional[ShipmentDetails] = None

    # Line items, in document order
    items: Annotated[list[ShipmentItem], BeforeValidator(_none_as_empty_list)] = Field(default_factory=list)

    # Totals
    sub_total: Optional[CurrencyField] = None
    total_tax: Optional[CurrencyField] = None
    invoice_total: Optional[CurrencyField] = None

    # Provider metadata, never read from the embedded JSON
    usage_metadata: Optional[UsageMetadata] = None
    model_version: Optional[str] = None
