"""Tests for history aggregation."""

from datetime import datetime, timedelta
from decimal import Decimal

from hypothesis import given, settings
from hypothesis import strategies as st

from comprai.aggregator import (
    CHAT_TOP_ITEMS,
    SUGGEST_TOP_ITEMS,
    category_spend,
    format_money,
    item_profiles,
    match_price,
    round_money,
    summarize,
    top_items,
    total_spent,
)
from comprai.models import PriceRecord, PurchaseRecord

_BASE = datetime(2024, 1, 15, 8, 0)


def _purchase(name, category="Alimentos", at=_BASE, unit="un"):
    return PurchaseRecord(
        item_name=name,
        category=category,
        quantity=Decimal("1"),
        unit=unit,
        purchased_at=at,
    )


def _price(name, price, at=_BASE, store="Mercado"):
    return PriceRecord(
        item_name=name,
        price=None if price is None else Decimal(price),
        store=store,
        purchased_at=at,
    )


_names = st.sampled_from(["Arroz", "Feijão", "Leite", "leite", "Café", "Pão", "Ovos", "Banana"])
_prices = st.one_of(
    st.none(),
    st.decimals(min_value=0, max_value=1000, places=2, allow_nan=False, allow_infinity=False),
)


class TestTopItems:
    def test_counts_and_order(self):
        purchases = [_purchase(n) for n in ["Arroz", "Leite", "Arroz", "Café", "Leite", "Arroz"]]
        assert top_items(purchases, 5) == [("Arroz", 3), ("Leite", 2), ("Café", 1)]

    def test_ties_keep_first_seen_order(self):
        purchases = [_purchase(n) for n in ["Pão", "Café", "Leite", "Café", "Pão"]]
        assert top_items(purchases, 5) == [("Pão", 2), ("Café", 2), ("Leite", 1)]

    def test_case_sensitive_names(self):
        purchases = [_purchase("Leite"), _purchase("leite")]
        assert top_items(purchases, 5) == [("Leite", 1), ("leite", 1)]

    def test_truncates_to_k(self):
        purchases = [_purchase(f"Item {i}") for i in range(12)]
        assert len(top_items(purchases, CHAT_TOP_ITEMS)) == 5
        assert len(top_items(purchases, SUGGEST_TOP_ITEMS)) == 10

    def test_empty(self):
        assert top_items([], 5) == []

    @given(names=st.lists(_names, max_size=50), k=st.integers(min_value=1, max_value=10))
    @settings(max_examples=100, deadline=1000)
    def test_sorted_bounded_and_dominant(self, names, k):
        """Top-K is sorted, bounded by K, and beats every excluded name."""
        result = top_items([_purchase(n) for n in names], k)
        counts = [c for _, c in result]

        assert len(result) <= k
        assert counts == sorted(counts, reverse=True)
        included = {n for n, _ in result}
        for name in set(names) - included:
            assert names.count(name) <= min(counts)


class TestItemProfiles:
    def test_first_seen_category_and_unit(self):
        purchases = [
            _purchase("Banana", category=None, unit="kg"),
            _purchase("Banana", category="Hortifruti", unit="un"),
            _purchase("Leite", category="Laticínios", unit="L"),
        ]
        profiles = item_profiles(purchases, 10)
        assert profiles[0].name == "Banana"
        assert profiles[0].count == 2
        # Missing category is filled from later records; unit stays first-seen
        assert profiles[0].category == "Hortifruti"
        assert profiles[0].unit == "kg"
        assert profiles[1].name == "Leite"


class TestMatchPrice:
    def test_same_day_different_time_matches(self):
        purchase = _purchase("Arroz", at=datetime(2024, 1, 15, 8, 0))
        price = _price("Arroz", "25.90", at=datetime(2024, 1, 15, 20, 0))
        assert match_price(purchase, [price]) is price

    def test_next_day_does_not_match(self):
        purchase = _purchase("Arroz", at=datetime(2024, 1, 15, 8, 0))
        price = _price("Arroz", "25.90", at=datetime(2024, 1, 16, 0, 30))
        assert match_price(purchase, [price]) is None

    def test_name_must_match_exactly(self):
        purchase = _purchase("Arroz")
        assert match_price(purchase, [_price("arroz", "25.90")]) is None
        assert match_price(purchase, [_price("Arroz Integral", "25.90")]) is None

    def test_first_match_wins(self):
        purchase = _purchase("Leite")
        first = _price("Leite", "5.99", store="A")
        second = _price("Leite", "6.49", store="B")
        assert match_price(purchase, [first, second]) is first


class TestCategorySpend:
    def test_date_only_soft_join(self):
        purchases = [
            _purchase("Arroz", "Alimentos", at=datetime(2024, 1, 15, 8, 0)),
            _purchase("Leite", "Laticínios", at=datetime(2024, 1, 15, 9, 0)),
        ]
        prices = [
            _price("Arroz", "25.90", at=datetime(2024, 1, 15, 20, 0)),
            _price("Leite", "5.99", at=datetime(2024, 1, 16, 9, 0)),
        ]
        assert category_spend(purchases, prices) == [
            ("Alimentos", Decimal("25.90")),
            ("Laticínios", Decimal("0")),
        ]

    def test_absent_category_goes_to_default_bucket(self):
        purchases = [_purchase("Banana", category=None)]
        prices = [_price("Banana", "4.50")]
        assert category_spend(purchases, prices) == [("Outros", Decimal("4.50"))]

    def test_top_three_sorted(self):
        purchases = [
            _purchase("A", "Bebidas"),
            _purchase("B", "Limpeza"),
            _purchase("C", "Higiene"),
            _purchase("D", "Padaria"),
        ]
        prices = [
            _price("A", "10"),
            _price("B", "40"),
            _price("C", "5"),
            _price("D", "20"),
        ]
        assert category_spend(purchases, prices) == [
            ("Limpeza", Decimal("40")),
            ("Padaria", Decimal("20")),
            ("Bebidas", Decimal("10")),
        ]

    def test_absent_price_counts_zero(self):
        purchases = [_purchase("Sal", "Alimentos")]
        prices = [_price("Sal", None)]
        assert category_spend(purchases, prices) == [("Alimentos", Decimal("0"))]


class TestTotalSpent:
    def test_sum_with_absent_prices(self):
        prices = [_price("A", "1.10"), _price("B", None), _price("C", "2.20")]
        assert total_spent(prices) == Decimal("3.30")

    def test_empty(self):
        assert total_spent([]) == Decimal("0")

    @given(values=st.lists(_prices, max_size=50))
    @settings(max_examples=100, deadline=1000)
    def test_exact_sum(self, values):
        prices = [
            PriceRecord(item_name="X", price=v, store="", purchased_at=_BASE + timedelta(days=i))
            for i, v in enumerate(values)
        ]
        expected = sum((v for v in values if v is not None), Decimal("0"))
        assert total_spent(prices) == expected


class TestMoney:
    def test_round_half_up(self):
        assert round_money(Decimal("4.675")) == Decimal("4.68")
        assert round_money(Decimal("4.674")) == Decimal("4.67")

    def test_format(self):
        assert format_money(Decimal("25.9")) == "R$ 25.90"
        assert format_money(Decimal("0")) == "R$ 0.00"


class TestSummarize:
    def test_builds_summary(self):
        purchases = [_purchase("Arroz"), _purchase("Arroz"), _purchase("Leite", "Laticínios")]
        prices = [_price("Arroz", "25.90"), _price("Leite", "5.99")]
        summary = summarize(purchases, prices)

        assert summary.top_purchased_items == [("Arroz", 2), ("Leite", 1)]
        # Both Arroz purchases match the same price record on that day
        assert summary.category_spend == [
            ("Alimentos", Decimal("51.80")),
            ("Laticínios", Decimal("5.99")),
        ]
        assert summary.total_spent == Decimal("31.89")
        assert summary.total_purchase_count == 3
