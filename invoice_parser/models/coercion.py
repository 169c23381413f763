"""
Tolerant numeric decoding for model-authored JSON.

LLM providers emit numbers as JSON numbers, quoted strings ("12.50",
" 3 ", "1,234.56") or null, and not always consistently within the same
document. These decoders never raise: anything that is not a usable
number becomes None (optional fields) or zero (required amounts).
"""

from decimal import Decimal, InvalidOperation
from typing import Annotated, Any, Optional

from pydantic import BeforeValidator, PlainSerializer


def coerce_decimal(value: Any) -> Optional[Decimal]:
    """Decode a JSON number, numeric string or null into a Decimal or None."""
    # bool is an int subclass but a JSON true/false is not a number
    if isinstance(value, bool):
        return None

    if isinstance(value, Decimal):
        return value if value.is_finite() else None

    if isinstance(value, int):
        return Decimal(value)

    if isinstance(value, float):
        # str() first so 12.5 stays 12.5 instead of its binary expansion
        result = Decimal(str(value))
        return result if result.is_finite() else None

    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        # Invariant-culture grouping separators
        text = text.replace(",", "")
        try:
            result = Decimal(text)
        except InvalidOperation:
            return None
        return result if result.is_finite() else None

    return None


def coerce_required_decimal(value: Any) -> Decimal:
    """Same as coerce_decimal, but missing/unusable values become zero."""
    result = coerce_decimal(value)
    return result if result is not None else Decimal(0)


def coerce_int(value: Any) -> Optional[int]:
    """Decode a JSON number, integer string or null into an int or None."""
    if isinstance(value, bool):
        return None

    if isinstance(value, int):
        return value

    if isinstance(value, (float, Decimal)):
        # 3.0 is an acceptable piece count, 2.5 is not
        if value != value or value in (float("inf"), float("-inf")):
            return None
        return int(value) if value == int(value) else None

    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            return int(text)
        except ValueError:
            return None

    return None


def _decimal_to_json(value: Optional[Decimal]) -> Optional[float]:
    return float(value) if value is not None else None


OptionalDecimal = Annotated[
    Optional[Decimal],
    BeforeValidator(coerce_decimal),
    PlainSerializer(_decimal_to_json, when_used="json"),
]

RequiredDecimal = Annotated[
    Decimal,
    BeforeValidator(coerce_required_decimal),
    PlainSerializer(_decimal_to_json, when_used="json"),
]

OptionalInt = Annotated[Optional[int], BeforeValidator(coerce_int)]
