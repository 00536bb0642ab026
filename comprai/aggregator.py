"""Fold raw purchase/price history into bounded summaries."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

from .models import (
    DEFAULT_UNIT,
    UNCATEGORIZED,
    AggregateSummary,
    ItemProfile,
    PriceRecord,
    PurchaseRecord,
)

CHAT_TOP_ITEMS = 5
SUGGEST_TOP_ITEMS = 10
TOP_CATEGORIES = 3

_CENTS = Decimal("0.01")


def round_money(value: Decimal) -> Decimal:
    """Round to cents, half-up."""
    return value.quantize(_CENTS, rounding=ROUND_HALF_UP)


def format_money(value: Decimal) -> str:
    return f"R$ {round_money(value)}"


def top_items(purchases: list[PurchaseRecord], k: int) -> list[tuple[str, int]]:
    """Most purchased item names, by count descending.

    Names are compared exactly as stored. Equal counts keep first-seen order
    (sorted() is stable and dicts preserve insertion order).
    """
    counts: dict[str, int] = {}
    for p in purchases:
        counts[p.item_name] = counts.get(p.item_name, 0) + 1
    ranked = sorted(counts.items(), key=lambda kv: kv[1], reverse=True)
    return ranked[:k]


def item_profiles(purchases: list[PurchaseRecord], k: int) -> list[ItemProfile]:
    """Top-k items together with the first category/unit seen for each."""
    profiles: dict[str, ItemProfile] = {}
    for p in purchases:
        prof = profiles.get(p.item_name)
        if prof is None:
            profiles[p.item_name] = ItemProfile(
                name=p.item_name,
                count=1,
                category=p.category,
                unit=p.unit or DEFAULT_UNIT,
            )
        else:
            prof.count += 1
            if prof.category is None:
                prof.category = p.category
    ranked = sorted(profiles.values(), key=lambda x: x.count, reverse=True)
    return ranked[:k]


def match_price(
    purchase: PurchaseRecord, prices: list[PriceRecord]
) -> PriceRecord | None:
    """Soft join: first price with the same item name on the same calendar day.

    Only the date part of the timestamps is compared. This is a matching
    heuristic, not a key relationship: a purchase may match a price record
    that belongs to another purchase of the same item that day.
    """
    day = purchase.purchased_at.date()
    for price in prices:
        if price.item_name == purchase.item_name and price.purchased_at.date() == day:
            return price
    return None


def category_spend(
    purchases: list[PurchaseRecord],
    prices: list[PriceRecord],
    k: int = TOP_CATEGORIES,
) -> list[tuple[str, Decimal]]:
    """Spend per purchase category, highest first.

    O(purchases × prices); both inputs are bounded by the store limits.
    """
    totals: dict[str, Decimal] = {}
    for purchase in purchases:
        category = purchase.category or UNCATEGORIZED
        match = match_price(purchase, prices)
        amount = match.price if match is not None and match.price is not None else Decimal("0")
        totals[category] = totals.get(category, Decimal("0")) + amount
    ranked = sorted(totals.items(), key=lambda kv: kv[1], reverse=True)
    return ranked[:k]


def total_spent(prices: list[PriceRecord]) -> Decimal:
    return sum(
        (p.price for p in prices if p.price is not None), Decimal("0")
    )


def summarize(
    purchases: list[PurchaseRecord],
    prices: list[PriceRecord],
    top_k: int = CHAT_TOP_ITEMS,
) -> AggregateSummary:
    """Build the per-request AggregateSummary."""
    return AggregateSummary(
        top_purchased_items=top_items(purchases, top_k),
        category_spend=category_spend(purchases, prices),
        total_spent=total_spent(prices),
        total_purchase_count=len(purchases),
    )
