"""Turn free-form model text into typed payloads.

Every decoder returns a ``Decoded`` tagged with one of three outcomes:

* ACCEPT   - the text parsed and passed validation
* FALLBACK - the text did not parse and the endpoint has a deterministic
             substitute (only name normalization has one)
* REJECT   - the text did not parse (InvalidAIResponseFormat) or parsed
             without the mandatory shape (InvalidResponseStructure)

Items failing field checks are dropped individually; a list that ends up
empty is rejected as a whole.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any

from .aggregator import round_money
from .errors import AssistantError, InvalidAIResponseFormat, InvalidResponseStructure
from .models import (
    DEFAULT_UNIT,
    UNCATEGORIZED,
    ListValidation,
    NormalizedName,
    ProcessedReceipt,
    ReceiptItem,
    SuggestedItem,
    ValidatedItem,
)

logger = logging.getLogger(__name__)

UNKNOWN_STORE = "Loja não identificada"


class Outcome(str, Enum):
    ACCEPT = "accept"
    FALLBACK = "fallback"
    REJECT = "reject"


@dataclass
class Decoded:
    outcome: Outcome
    value: Any = None
    error: AssistantError | None = None

    @property
    def ok(self) -> bool:
        return self.outcome is not Outcome.REJECT

    def unwrap(self) -> Any:
        """Return the value, raising the rejection error if there is one."""
        if self.error is not None:
            raise self.error
        return self.value


def _reject(error: AssistantError) -> Decoded:
    return Decoded(Outcome.REJECT, error=error)


def strip_fences(text: str) -> str:
    """Remove markdown code-fence markers anywhere in the text."""
    return text.replace("```json", "").replace("```", "").strip()


def parse_json(text: str) -> Any:
    """Parse fenced or bare JSON; floats become Decimal.

    Raises:
        InvalidAIResponseFormat: if the text is not JSON.
    """
    cleaned = strip_fences(text)
    try:
        return json.loads(cleaned, parse_float=Decimal)
    except ValueError as e:
        logger.warning("Failed to parse AI response: %.200s", cleaned)
        raise InvalidAIResponseFormat("Invalid AI response format") from e


def _is_number(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    return isinstance(value, Decimal) and value.is_finite()


def _text(value: Any) -> str | None:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _items_field(data: Any, field_name: str) -> list:
    if not isinstance(data, dict) or not isinstance(data.get(field_name), list):
        raise InvalidResponseStructure(
            f"Invalid response structure from AI: missing {field_name!r} array"
        )
    return data[field_name]


def _require_any(kept: list, field_name: str) -> None:
    if not kept:
        raise InvalidResponseStructure(
            f"Invalid response structure from AI: no valid entries in {field_name!r}"
        )


# -- suggestions ------------------------------------------------------------


def _suggested_item(raw: Any) -> SuggestedItem | None:
    if not isinstance(raw, dict):
        return None
    name = _text(raw.get("name"))
    quantity = raw.get("quantity")
    if name is None or not _is_number(quantity) or quantity <= 0:
        return None
    return SuggestedItem(
        name=name,
        quantity=Decimal(quantity),
        unit=_text(raw.get("unit")) or DEFAULT_UNIT,
        category=_text(raw.get("category")),
    )


def decode_suggestions(text: str, max_results: int) -> Decoded:
    """Decode ``{"items": [...]}`` into at most ``max_results`` SuggestedItems."""
    try:
        raw_items = _items_field(parse_json(text), "items")
        items = []
        for raw in raw_items:
            item = _suggested_item(raw)
            if item is None:
                logger.warning("Dropping invalid suggested item: %r", raw)
                continue
            items.append(item)
        _require_any(items, "items")
    except (InvalidAIResponseFormat, InvalidResponseStructure) as e:
        return _reject(e)
    return Decoded(Outcome.ACCEPT, items[:max_results])


# -- list validation --------------------------------------------------------


def _validated_item(raw: Any) -> ValidatedItem | None:
    if not isinstance(raw, dict):
        return None
    name = _text(raw.get("name"))
    quantity = raw.get("quantity")
    should_keep = raw.get("shouldKeep")
    if name is None or not _is_number(quantity) or not isinstance(should_keep, bool):
        return None
    if quantity <= 0:
        return None
    return ValidatedItem(
        name=name,
        quantity=Decimal(quantity),
        unit=_text(raw.get("unit")) or DEFAULT_UNIT,
        category=_text(raw.get("category")),
        should_keep=should_keep,
        reason=_text(raw.get("reason")),
    )


def _string_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [v for v in value if isinstance(v, str)]


def decode_validation(text: str) -> Decoded:
    """Decode a list-validation verdict.

    ``isValid`` defaults to "more than 80% of items kept" and ``confidence``
    is clamped to 0-100 when the model gets them wrong.
    """
    try:
        data = parse_json(text)
        raw_items = _items_field(data, "validatedItems")
        items = []
        for raw in raw_items:
            item = _validated_item(raw)
            if item is None:
                logger.warning("Dropping invalid validated item: %r", raw)
                continue
            items.append(item)
        _require_any(items, "validatedItems")
    except (InvalidAIResponseFormat, InvalidResponseStructure) as e:
        return _reject(e)

    is_valid = data.get("isValid")
    if not isinstance(is_valid, bool):
        kept = sum(1 for i in items if i.should_keep)
        is_valid = kept / len(items) > 0.8

    confidence = data.get("confidence")
    confidence = int(min(max(confidence, 0), 100)) if _is_number(confidence) else 0

    return Decoded(
        Outcome.ACCEPT,
        ListValidation(
            is_valid=is_valid,
            confidence=confidence,
            issues=_string_list(data.get("issues")),
            suggestions=_string_list(data.get("suggestions")),
            validated_items=items,
        ),
    )


# -- name normalization -----------------------------------------------------


def capitalize_words(name: str) -> str:
    """Lower-case the name, then upper-case the first letter of each word."""
    return " ".join(w[:1].upper() + w[1:] for w in name.lower().split(" "))


def normalization_fallback(sanitized_name: str) -> NormalizedName:
    return NormalizedName(
        normalized=capitalize_words(sanitized_name),
        category=UNCATEGORIZED,
        suggested_unit=DEFAULT_UNIT,
    )


def decode_normalization(text: str, sanitized_name: str) -> Decoded:
    """Decode a normalized name, falling back to capitalize-each-word."""
    try:
        data = parse_json(text)
    except InvalidAIResponseFormat:
        logger.warning("Using fallback normalization for %r", sanitized_name)
        return Decoded(Outcome.FALLBACK, normalization_fallback(sanitized_name))

    normalized = _text(data.get("normalized")) if isinstance(data, dict) else None
    if normalized is None:
        return _reject(
            InvalidResponseStructure(
                "Invalid response structure from AI: missing 'normalized'"
            )
        )
    return Decoded(
        Outcome.ACCEPT,
        NormalizedName(
            normalized=normalized,
            category=_text(data.get("category")),
            suggested_unit=_text(data.get("suggestedUnit")),
        ),
    )


# -- receipts ---------------------------------------------------------------


def _receipt_item(raw: Any) -> ReceiptItem | None:
    if not isinstance(raw, dict):
        return None
    name = _text(raw.get("name"))
    quantity = raw.get("quantity")
    unit_price = raw.get("unitPrice")
    if name is None or not _is_number(quantity) or not _is_number(unit_price):
        return None
    if quantity <= 0 or unit_price < 0:
        return None
    quantity = Decimal(quantity)
    unit_price = Decimal(unit_price)
    try:
        # The model's totalPrice is ignored
        total_price = round_money(quantity * unit_price)
    except InvalidOperation:
        # Too large to hold in cents
        return None
    return ReceiptItem(
        name=name,
        quantity=quantity,
        unit_price=unit_price,
        total_price=total_price,
        category=_text(raw.get("category")),
        unit=_text(raw.get("unit")) or DEFAULT_UNIT,
    )


def decode_receipt(text: str) -> Decoded:
    """Decode a structured receipt and recompute every total.

    Line totals are quantity × unit price rounded half-up to cents; the grand
    total is the sum of the line totals, whatever the model reported.
    """
    try:
        data = parse_json(text)
        raw_items = _items_field(data, "items")
        items = []
        for raw in raw_items:
            item = _receipt_item(raw)
            if item is None:
                logger.warning("Dropping invalid receipt item: %r", raw)
                continue
            items.append(item)
        _require_any(items, "items")
    except (InvalidAIResponseFormat, InvalidResponseStructure) as e:
        return _reject(e)

    total = sum((i.total_price for i in items), Decimal("0"))
    return Decoded(
        Outcome.ACCEPT,
        ProcessedReceipt(
            store=_text(data.get("store")) or UNKNOWN_STORE,
            date=_text(data.get("date")) or date.today().isoformat(),
            items=items,
            total=total,
        ),
    )
