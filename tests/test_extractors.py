"""
Tests for provider response extraction and normalization.
"""

import json
from decimal import Decimal

import pytest

from invoice_parser.core.exceptions import (
    InvalidInvoiceJson,
    NoContentFound,
    NoTextContent,
    ParsingFailed,
    UnknownProviderError,
)
from invoice_parser.services.extractors import (
    EXTRACTORS,
    extract_json_object,
    get_extractor,
    openai_usage,
    strip_markdown_fence,
)
from invoice_parser.services.normalizer import normalize_field_map, normalize_invoice_json


def test_strip_markdown_fence():
    assert strip_markdown_fence('```json\n{"a": 1}\n```') == '{"a": 1}'
    assert strip_markdown_fence('  {"a": 1}  ') == '{"a": 1}'
    # Only the ```json opener is recognised
    assert strip_markdown_fence('```\n{"a": 1}\n```') == '```\n{"a": 1}'


def test_extract_json_object_spans_first_to_last_brace():
    text = 'Here is the invoice: {"freightBillNo": "A1"} Hope this helps!'
    assert extract_json_object(text) == '{"freightBillNo": "A1"}'


def test_extract_json_object_includes_stray_braces():
    text = 'Note {x} then {"a": 1}'
    assert extract_json_object(text) == '{x} then {"a": 1}'


@pytest.mark.parametrize("text", ["no json here", "} backwards {", "{ unterminated"])
def test_extract_json_object_without_object_raises(text):
    with pytest.raises(NoContentFound):
        extract_json_object(text)


def test_normalize_invalid_json_raises():
    with pytest.raises(InvalidInvoiceJson) as exc_info:
        normalize_invoice_json('{"freightBillNo": "A1",}')
    assert exc_info.value.text == '{"freightBillNo": "A1",}'


def test_normalize_non_object_raises():
    with pytest.raises(InvalidInvoiceJson):
        normalize_invoice_json("[1, 2, 3]")


def test_normalize_keeps_item_order():
    invoice = normalize_invoice_json(json.dumps({
        "items": [{"description": d} for d in ["first", "second", "third"]],
    }))
    assert [item.description for item in invoice.items] == ["first", "second", "third"]


def test_normalize_ignores_metadata_inside_model_json():
    invoice = normalize_field_map({"modelVersion": "made-up", "freightBillNo": "A1"}, model_version="real")
    assert invoice.model_version == "real"
    assert invoice.usage_metadata is None


# --- Gemini --------------------------------------------------------------


def test_gemini_parse(make_gemini_response, sample_invoice_json):
    raw = json.dumps(make_gemini_response(f"Sure!\n{sample_invoice_json}\n"))

    invoice = EXTRACTORS["gemini"].parse(raw)

    assert invoice.freight_bill_no == "FB-1001"
    assert invoice.model_version == "gemini-2.5-flash-001"
    assert invoice.usage_metadata.prompt_token_count == 1200
    assert invoice.usage_metadata.candidates_token_count == 300
    assert invoice.usage_metadata.total_token_count == 1500


def test_gemini_extract_returns_json_text(make_gemini_response):
    raw = json.dumps(make_gemini_response('prefix {"service": "LTL"} suffix'))
    assert EXTRACTORS["gemini"].extract(raw) == '{"service": "LTL"}'


@pytest.mark.parametrize("envelope", [
    {},
    {"candidates": []},
    {"candidates": [{"content": {"parts": []}}]},
    {"candidates": [{"content": {"parts": [{"text": ""}]}}]},
])
def test_gemini_missing_text(envelope):
    with pytest.raises(NoTextContent):
        EXTRACTORS["gemini"].parse(json.dumps(envelope))


def test_gemini_invalid_model_json_is_parsing_failure(make_gemini_response):
    raw = json.dumps(make_gemini_response('{"freightBillNo": "A1", oops}'))
    with pytest.raises(InvalidInvoiceJson):
        EXTRACTORS["gemini"].parse(raw)


def test_gemini_bad_usage_does_not_fail_parse(make_gemini_response):
    envelope = make_gemini_response('{"service": "LTL"}')
    envelope["usageMetadata"] = {"promptTokenCount": "lots"}

    invoice = EXTRACTORS["gemini"].parse(json.dumps(envelope))

    assert invoice.service == "LTL"
    assert invoice.usage_metadata is None


def test_non_json_envelope_is_no_content():
    with pytest.raises(NoContentFound):
        EXTRACTORS["gemini"].parse("<html>bad gateway</html>")


# --- OpenAI --------------------------------------------------------------


def test_openai_parse_strips_fence(make_openai_response, sample_invoice_json):
    raw = json.dumps(make_openai_response(f"```json\n{sample_invoice_json}\n```"))

    invoice = EXTRACTORS["openai"].parse(raw)

    assert invoice.invoice_total.amount == Decimal("1250.5")
    assert invoice.model_version == "gpt-4o-2024-08-06"
    assert invoice.usage_metadata.prompt_token_count == 900
    assert invoice.usage_metadata.candidates_token_count == 250
    assert invoice.usage_metadata.total_token_count == 1150


def test_openai_extract_returns_json_text():
    raw = json.dumps({"choices": [{"message": {"content": '{"a":1}'}}]})
    assert EXTRACTORS["openai"].extract(raw) == '{"a":1}'


def test_openai_missing_content():
    raw = json.dumps({"choices": [{"message": {"role": "assistant", "content": None}}]})
    with pytest.raises(NoTextContent) as exc_info:
        EXTRACTORS["openai"].parse(raw)
    assert exc_info.value.path == "choices[0].message.content"


def test_openai_usage_absent():
    assert openai_usage({"choices": []}) is None


def test_openai_bad_usage_does_not_fail_parse(make_openai_response):
    envelope = make_openai_response('{"service": "LTL"}')
    envelope["usage"] = {"prompt_tokens": "lots", "completion_tokens": 1, "total_tokens": 2}

    assert openai_usage(envelope) is None
    invoice = EXTRACTORS["openai"].parse(json.dumps(envelope))
    assert invoice.service == "LTL"
    assert invoice.usage_metadata is None


def test_envelope_metadata_survives_unparseable_invoice(make_gemini_response, make_openai_response):
    gemini = json.dumps(make_gemini_response("no invoice here"))
    openai = json.dumps(make_openai_response("{broken"))

    usage, model_version = EXTRACTORS["gemini"].envelope_metadata(gemini)
    assert model_version == "gemini-2.5-flash-001"
    assert usage.prompt_token_count == 1200

    usage, model_version = EXTRACTORS["openai"].envelope_metadata(openai)
    assert model_version == "gpt-4o-2024-08-06"
    assert usage.total_token_count == 1150


@pytest.mark.parametrize("provider", ["azure", "gemini", "openai"])
def test_envelope_metadata_of_non_json_body(provider):
    assert EXTRACTORS[provider].envelope_metadata("<html>bad gateway</html>") == (None, None)


# --- Azure ---------------------------------------------------------------


def test_azure_parse_has_no_provider_metadata():
    raw = json.dumps({"documents": [{"fields": {
        "InvoiceId": {"type": "string", "valueString": "INV-7"},
    }}]})

    invoice = EXTRACTORS["azure"].parse(raw)

    assert invoice.freight_bill_no == "INV-7"
    assert invoice.usage_metadata is None
    assert invoice.model_version is None


def test_azure_no_documents_is_parsing_failure():
    with pytest.raises(ParsingFailed):
        EXTRACTORS["azure"].parse(json.dumps({"documents": []}))


def test_unknown_extractor():
    with pytest.raises(UnknownProviderError):
        get_extractor("claude")
