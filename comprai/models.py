"""Data models for history records and typed model responses."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal

UNCATEGORIZED = "Outros"
DEFAULT_UNIT = "un"


@dataclass
class PurchaseRecord:
    """One row of purchase history."""

    item_name: str
    category: str | None
    quantity: Decimal
    unit: str
    purchased_at: datetime


@dataclass
class PriceRecord:
    """One row of price history. ``price`` is None when never recorded."""

    item_name: str
    price: Decimal | None
    store: str
    purchased_at: datetime


@dataclass
class ShoppingList:
    id: str
    name: str
    created_at: datetime
    updated_at: datetime


@dataclass
class ListItem:
    name: str
    quantity: Decimal
    unit: str
    category: str | None
    checked: bool = False
    deleted: bool = False


@dataclass
class AggregateSummary:
    """Per-request statistics derived from history, never persisted."""

    top_purchased_items: list[tuple[str, int]] = field(default_factory=list)
    category_spend: list[tuple[str, Decimal]] = field(default_factory=list)
    total_spent: Decimal = Decimal("0")
    total_purchase_count: int = 0


@dataclass
class ItemProfile:
    """A frequently purchased item with the category/unit it was first seen with."""

    name: str
    count: int
    category: str | None
    unit: str


@dataclass
class ChatTurn:
    role: str  # "user" | "assistant"
    content: str


@dataclass
class SuggestedItem:
    name: str
    quantity: Decimal
    unit: str
    category: str | None = None

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "quantity": self.quantity,
            "unit": self.unit,
            "category": self.category,
        }


@dataclass
class ValidatedItem:
    name: str
    quantity: Decimal
    unit: str
    category: str | None
    should_keep: bool
    reason: str | None = None

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "quantity": self.quantity,
            "unit": self.unit,
            "category": self.category,
            "shouldKeep": self.should_keep,
            "reason": self.reason,
        }


@dataclass
class ListValidation:
    is_valid: bool
    confidence: int
    issues: list[str]
    suggestions: list[str]
    validated_items: list[ValidatedItem]

    def to_dict(self) -> dict:
        return {
            "isValid": self.is_valid,
            "confidence": self.confidence,
            "issues": self.issues,
            "suggestions": self.suggestions,
            "validatedItems": [i.to_dict() for i in self.validated_items],
        }


@dataclass
class NormalizedName:
    normalized: str
    category: str | None = None
    suggested_unit: str | None = None

    def to_dict(self) -> dict:
        return {
            "normalized": self.normalized,
            "category": self.category,
            "suggestedUnit": self.suggested_unit,
        }


@dataclass
class ReceiptItem:
    """A receipt line. ``total_price`` is always recomputed, never trusted."""

    name: str
    quantity: Decimal
    unit_price: Decimal
    total_price: Decimal
    category: str | None = None
    unit: str = DEFAULT_UNIT

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "quantity": self.quantity,
            "unit": self.unit,
            "unitPrice": self.unit_price,
            "totalPrice": self.total_price,
            "category": self.category,
        }


@dataclass
class ProcessedReceipt:
    store: str
    date: str  # YYYY-MM-DD
    items: list[ReceiptItem]
    total: Decimal

    def to_dict(self) -> dict:
        return {
            "store": self.store,
            "date": self.date,
            "items": [i.to_dict() for i in self.items],
            "total": self.total,
        }
