"""Tests for list cost estimation."""

from datetime import datetime
from decimal import Decimal

from comprai.estimation import FALLBACK_UNIT_PRICE, estimate_item, estimate_list
from comprai.models import ListItem, PriceRecord


def _item(name, quantity="1", unit="un"):
    return ListItem(name=name, quantity=Decimal(quantity), unit=unit, category=None)


def _prices(*values):
    return [
        PriceRecord(
            item_name="x",
            price=None if v is None else Decimal(v),
            store="",
            purchased_at=datetime(2024, 1, 20 - i),
        )
        for i, v in enumerate(values)
    ]


class TestEstimateItem:
    def test_single_price(self):
        est = estimate_item(_item("Leite", "2"), _prices("6.00"))
        assert est.estimated_unit_price == Decimal("6.00")
        assert est.estimated_total == Decimal("12.00")
        assert est.confidence == 20
        assert est.has_history is True

    def test_weighted_average_favors_recent(self):
        # (10*1.0 + 5*0.8) / 1.8 = 7.777... -> 7.78
        est = estimate_item(_item("Café"), _prices("10", "5"))
        assert est.estimated_unit_price == Decimal("7.78")
        assert est.confidence == 40

    def test_uses_at_most_five_samples(self):
        est = estimate_item(_item("Pão"), _prices("1", "1", "1", "1", "1", "100"))
        assert est.estimated_unit_price == Decimal("1.00")
        assert est.confidence == 100
        assert len(est.historical_prices) == 5

    def test_no_history_falls_back(self):
        est = estimate_item(_item("Sabão", "3"), [])
        assert est.estimated_unit_price == FALLBACK_UNIT_PRICE
        assert est.estimated_total == Decimal("30.00")
        assert est.confidence == 0
        assert est.has_history is False

    def test_absent_prices_ignored(self):
        est = estimate_item(_item("Sal"), _prices(None, "2.50"))
        assert est.estimated_unit_price == Decimal("2.50")
        assert est.confidence == 20


class TestEstimateList:
    def test_totals_and_counts(self):
        items = [_item("Leite", "2"), _item("Sabão")]
        estimate = estimate_list(items, {"Leite": _prices("6.00")})

        assert estimate.total_estimated == Decimal("22.00")
        assert estimate.average_confidence == 10
        assert estimate.items_with_history == 1
        assert estimate.items_without_history == 1

        data = estimate.to_dict()
        assert data["breakdown"][0]["itemName"] == "Leite"
        assert data["breakdown"][1]["historicalPrices"] is None

    def test_empty_list(self):
        estimate = estimate_list([], {})
        assert estimate.total_estimated == Decimal("0")
        assert estimate.average_confidence == 0
