"""Tests for prompt composition."""

from datetime import datetime
from decimal import Decimal

from comprai.models import AggregateSummary, ItemProfile, ListItem, ShoppingList
from comprai.prompts import (
    NORMALIZE_MAX_CHARS,
    PROMPT_MAX_CHARS,
    chat_system_instruction,
    normalization_prompt,
    receipt_prompt,
    render_summary,
    suggestion_prompt,
    truncate,
    validation_prompt,
)


def _summary():
    return AggregateSummary(
        top_purchased_items=[("Arroz", 3), ("Leite", 2)],
        category_spend=[("Alimentos", Decimal("51.8")), ("Laticínios", Decimal("5.99"))],
        total_spent=Decimal("57.79"),
        total_purchase_count=5,
    )


class TestTruncate:
    def test_strips_and_caps(self):
        assert truncate("  abc  ", 2) == "ab"
        assert len(truncate("x" * 500, NORMALIZE_MAX_CHARS)) == 200


class TestRenderSummary:
    def test_lines(self):
        text = "\n".join(render_summary(_summary()))
        assert "Total gasto (histórico): R$ 57.79" in text
        assert "Total de compras registradas: 5" in text
        assert "Arroz (3x), Leite (2x)" in text
        assert "Alimentos (R$ 51.80)" in text

    def test_empty_history(self):
        text = "\n".join(render_summary(AggregateSummary()))
        assert "Ainda não há histórico de compras" in text
        assert "Top categorias" not in text


class TestChatSystemInstruction:
    def test_includes_lists_and_current_list(self):
        now = datetime(2024, 1, 1)
        lists = [ShoppingList("l1", "Mercado", now, now)]
        items = [
            ListItem("Feijão", Decimal("1"), "kg", "Alimentos", checked=False),
            ListItem("Arroz", Decimal("2"), "kg", None, checked=True),
        ]
        text = chat_system_instruction(_summary(), lists, "Mercado", items)
        assert "Compr.AI" in text
        assert 'Listas recentes: "Mercado"' in text
        assert "=== LISTA ATUAL ===" in text
        assert "- Feijão (1 kg) - Alimentos" in text
        assert "- Arroz ✓" in text

    def test_without_current_list(self):
        text = chat_system_instruction(_summary(), [], None, None)
        assert "Total de listas: 0" in text
        assert "LISTA ATUAL" not in text


class TestStructuredPrompts:
    def test_suggestion_prompt_has_contract(self):
        profiles = [ItemProfile("Arroz", 3, "Alimentos", "kg")]
        text = suggestion_prompt(profiles, 7, list_type="churrasco", prompt="para 10 pessoas")
        assert "- Arroz (Alimentos, 3x)" in text
        assert "até 7 itens" in text
        assert "churrasco" in text
        assert '"items": [' in text
        assert "APENAS o JSON" in text

    def test_suggestion_prompt_caps_free_text(self):
        text = suggestion_prompt([], 5, prompt="z" * 2000)
        assert "z" * PROMPT_MAX_CHARS in text
        assert "z" * (PROMPT_MAX_CHARS + 1) not in text
        assert "sem histórico" in text

    def test_validation_prompt_lists_items(self):
        text = validation_prompt(
            "churrasco",
            [{"name": "Picanha", "quantity": 2, "unit": "kg"}],
        )
        assert "1. Picanha (2 kg, Sem categoria)" in text
        assert '"validatedItems": [' in text

    def test_normalization_prompt(self):
        text = normalization_prompt("pao frances")
        assert '"pao frances"' in text
        assert '"normalized"' in text

    def test_receipt_prompt(self):
        text = receipt_prompt("MERCADO X\nARROZ 25,90")
        assert "ARROZ 25,90" in text
        assert '"unitPrice"' in text
