"""Estimate the cost of a shopping list from price history."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal

from .aggregator import round_money
from .models import ListItem, PriceRecord

PRICE_SAMPLES = 5
# Most recent price weighs the most
_WEIGHTS = [Decimal("1.0"), Decimal("0.8"), Decimal("0.6"), Decimal("0.4"), Decimal("0.2")]
FALLBACK_UNIT_PRICE = Decimal("10.00")


@dataclass
class ItemEstimate:
    name: str
    quantity: Decimal
    unit: str
    estimated_unit_price: Decimal
    estimated_total: Decimal
    confidence: int  # 0-100
    historical_prices: list[Decimal] = field(default_factory=list)

    @property
    def has_history(self) -> bool:
        return bool(self.historical_prices)

    def to_dict(self) -> dict:
        return {
            "itemName": self.name,
            "quantity": self.quantity,
            "unit": self.unit,
            "estimatedUnitPrice": self.estimated_unit_price,
            "estimatedTotal": self.estimated_total,
            "confidence": self.confidence,
            "hasHistory": self.has_history,
            "historicalPrices": self.historical_prices or None,
        }


@dataclass
class ListEstimate:
    total_estimated: Decimal
    average_confidence: int
    breakdown: list[ItemEstimate]

    @property
    def items_with_history(self) -> int:
        return sum(1 for e in self.breakdown if e.has_history)

    @property
    def items_without_history(self) -> int:
        return len(self.breakdown) - self.items_with_history

    def to_dict(self) -> dict:
        return {
            "totalEstimated": self.total_estimated,
            "averageConfidence": self.average_confidence,
            "itemsWithHistory": self.items_with_history,
            "itemsWithoutHistory": self.items_without_history,
            "breakdown": [e.to_dict() for e in self.breakdown],
        }


def estimate_item(item: ListItem, prices: list[PriceRecord]) -> ItemEstimate:
    """Weighted average of up to five recent prices (newest first).

    Confidence grows 20 points per price sample. Without history the
    estimate falls back to a flat unit price with zero confidence.
    """
    samples = [p.price for p in prices if p.price is not None][:PRICE_SAMPLES]
    if samples:
        weights = _WEIGHTS[: len(samples)]
        weighted = sum((p * w for p, w in zip(samples, weights)), Decimal("0"))
        unit_price = round_money(weighted / sum(weights, Decimal("0")))
        confidence = min(len(samples) * 20, 100)
    else:
        unit_price = FALLBACK_UNIT_PRICE
        confidence = 0

    return ItemEstimate(
        name=item.name,
        quantity=item.quantity,
        unit=item.unit,
        estimated_unit_price=unit_price,
        estimated_total=round_money(unit_price * item.quantity),
        confidence=confidence,
        historical_prices=samples,
    )


def estimate_list(
    items: list[ListItem], prices_by_item: dict[str, list[PriceRecord]]
) -> ListEstimate:
    breakdown = [estimate_item(i, prices_by_item.get(i.name, [])) for i in items]
    total = sum((e.estimated_total for e in breakdown), Decimal("0"))
    avg = round(sum(e.confidence for e in breakdown) / len(breakdown)) if breakdown else 0
    return ListEstimate(
        total_estimated=total,
        average_confidence=avg,
        breakdown=breakdown,
    )
