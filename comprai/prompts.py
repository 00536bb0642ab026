"""Prompt templates for each endpoint kind.

Every structured prompt ends with a literal JSON example; the decoders in
``comprai.decoder`` expect the model to echo that shape.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from .aggregator import format_money

if TYPE_CHECKING:
    from .models import AggregateSummary, ItemProfile, ListItem, ShoppingList

NORMALIZE_MAX_CHARS = 200
PROMPT_MAX_CHARS = 500
OCR_MAX_CHARS = 8000

CATEGORIES = [
    "Alimentos", "Bebidas", "Laticínios", "Limpeza", "Higiene",
    "Padaria", "Hortifruti", "Açougue", "Congelados", "Outros",
]

_JSON_ONLY = (
    "Retorne APENAS o JSON, sem explicações, sem texto adicional "
    "e sem blocos de código markdown."
)


def truncate(text: str, limit: int) -> str:
    """Trim whitespace and hard-cap a user-supplied string."""
    return text.strip()[:limit]


def render_summary(summary: AggregateSummary) -> list[str]:
    """AggregateSummary as human-readable context lines."""
    lines = [
        f"Total gasto (histórico): {format_money(summary.total_spent)}",
        f"Total de compras registradas: {summary.total_purchase_count}",
    ]
    if summary.top_purchased_items:
        top = ", ".join(f"{name} ({count}x)" for name, count in summary.top_purchased_items)
        lines.append(f"Itens mais comprados: {top}")
    else:
        lines.append("Ainda não há histórico de compras")
    if summary.category_spend:
        cats = ", ".join(f"{cat} ({format_money(total)})" for cat, total in summary.category_spend)
        lines.append(f"Top categorias: {cats}")
    return lines


def chat_system_instruction(
    summary: AggregateSummary,
    lists: list[ShoppingList],
    current_list_name: str | None = None,
    current_items: list[ListItem] | None = None,
) -> str:
    ctx: list[str] = ["=== CONTEXTO DO USUÁRIO ===", ""]
    ctx.append(f"Total de listas: {len(lists)}")
    if lists:
        ctx.append("Listas recentes: " + ", ".join(f'"{l.name}"' for l in lists))
    ctx.append("")
    ctx.extend(render_summary(summary))

    if current_list_name and current_items is not None:
        pending = [i for i in current_items if not i.checked]
        done = [i for i in current_items if i.checked]
        ctx.append("")
        ctx.append("=== LISTA ATUAL ===")
        ctx.append(f'Nome: "{current_list_name}"')
        ctx.append(f"Itens pendentes: {len(pending)}")
        ctx.append(f"Itens comprados: {len(done)}")
        if pending:
            ctx.append("")
            ctx.append("Itens pendentes:")
            for item in pending:
                suffix = f" - {item.category}" if item.category else ""
                ctx.append(f"- {item.name} ({item.quantity} {item.unit}){suffix}")
        if done:
            ctx.append("")
            ctx.append("Itens já comprados:")
            for item in done:
                ctx.append(f"- {item.name} ✓")

    context = "\n".join(ctx)
    return f"""\
Você é um assistente inteligente de compras chamado Compr.AI.

Seu papel:
- Ajudar o usuário a gerenciar suas listas de compras
- Responder perguntas sobre histórico, gastos e preços
- Sugerir itens com base nos padrões de compra
- Dar dicas práticas de organização e economia

Tom:
- Amigável, conciso e direto (2 a 4 parágrafos no máximo)
- Evite listas longas (no máximo 5 itens)
- Valores sempre em reais (R$)

IMPORTANTE:
- Se a pergunta for sobre algo que NÃO está no contexto, diga que não há dados suficientes
- Não invente dados nem estatísticas
- Baseie-se APENAS no contexto abaixo

{context}"""


def suggestion_prompt(
    profiles: list[ItemProfile],
    max_results: int,
    list_type: str | None = None,
    prompt: str | None = None,
) -> str:
    if profiles:
        history = "\n".join(
            f"- {p.name} ({p.category or 'Sem categoria'}, {p.count}x)" for p in profiles
        )
    else:
        history = "- (sem histórico de compras)"

    extra: list[str] = []
    if list_type:
        extra.append(f"**Tipo de lista**: {truncate(list_type, PROMPT_MAX_CHARS)}")
    if prompt:
        extra.append(f"**Contexto adicional**: {truncate(prompt, PROMPT_MAX_CHARS)}")
    extra_text = "\n".join(extra)

    return f"""\
Você é um assistente de lista de compras para supermercados brasileiros.

**Histórico do usuário** (produtos mais comprados):
{history}

**Tarefa**: sugerir até {max_results} itens para uma lista de compras.
{extra_text}

**Instruções**:
1. Baseie as sugestões no histórico do usuário sempre que possível
2. Para tipos específicos de lista (ex: "churrasco", "café da manhã"), sugira itens apropriados
3. Use quantidades realistas (ex: 1 kg de arroz, não 10 kg); quantidades fracionadas são permitidas (ex: 0.5 kg)
4. Use unidades: un, kg, g, L, ml, pacote, caixa, dúzia
5. Categorias permitidas: {", ".join(CATEGORIES)}
6. Priorize itens que o usuário já comprou

**Formato de resposta**:
{{
  "items": [
    {{
      "name": "Arroz Integral",
      "quantity": 2,
      "unit": "kg",
      "category": "Alimentos"
    }}
  ]
}}

{_JSON_ONLY}"""


def validation_prompt(original_prompt: str, items: list[dict]) -> str:
    lines = []
    for i, item in enumerate(items, 1):
        lines.append(
            f"{i}. {item.get('name')} ({item.get('quantity')} {item.get('unit', '')}, "
            f"{item.get('category') or 'Sem categoria'})"
        )
    listing = "\n".join(lines) if lines else "(nenhum item)"

    return f"""\
Você é um validador de listas de compras. Analise se os itens sugeridos fazem sentido para a solicitação original.

**Solicitação original**: "{truncate(original_prompt, PROMPT_MAX_CHARS)}"

**Itens sugeridos**:
{listing}

**Tarefa**: avaliar CADA item. Considere:
1. O item é relevante para a solicitação?
2. A quantidade é adequada?
3. É realmente um produto de supermercado?
4. Há itens importantes faltando?
5. Há itens duplicados ou muito parecidos?

**Formato de resposta**:
{{
  "isValid": true,
  "confidence": 95,
  "issues": ["problemas encontrados"],
  "suggestions": ["melhorias sugeridas"],
  "validatedItems": [
    {{
      "name": "nome do item",
      "quantity": 2,
      "unit": "kg",
      "category": "Alimentos",
      "shouldKeep": true,
      "reason": "Item relevante e quantidade apropriada"
    }}
  ]
}}

Critérios:
- shouldKeep: true = item adequado; false = não faz sentido para a solicitação
- confidence: 0 a 100 (confiança na lista como um todo)
- isValid: true se mais de 80% dos itens forem válidos

{_JSON_ONLY}"""


def normalization_prompt(name: str) -> str:
    """``name`` must already be sanitized with truncate(..., NORMALIZE_MAX_CHARS)."""
    return f"""\
Normalize o nome do produto para uso em lista de compras.

**Produto original**: "{name}"

**Regras**:
1. Primeira letra de cada palavra em maiúscula
2. Remover caracteres especiais desnecessários
3. Padronizar abreviações comuns ("pct" → "pacote", "cx" → "caixa")
4. Manter unidades no formato correto (1L, 500ml, 2kg)
5. Remover marcas quando não forem essenciais
6. Manter descritores importantes (integral, desnatado, light)

**Exemplos**:
- "leite integral itambé" → "Leite Integral 1L"
- "ARROZ TIPO 1 5KG" → "Arroz Tipo 1 5kg"
- "pao frances" → "Pão Francês"
- "sabao em po omo" → "Sabão em Pó"

**Formato de resposta**:
{{
  "normalized": "Nome Normalizado",
  "category": "uma de: {", ".join(CATEGORIES)}",
  "suggestedUnit": "un, kg, g, L ou ml"
}}

{_JSON_ONLY}"""


def receipt_prompt(ocr_text: str) -> str:
    return f"""\
Analise o texto extraído de uma nota fiscal brasileira e estruture os dados em JSON.

TEXTO DA NOTA FISCAL:
---
{truncate(ocr_text, OCR_MAX_CHARS)}
---

INSTRUÇÕES:
1. Identifique o nome da loja (se não encontrar, use "Loja não identificada")
2. Extraia a data da compra no formato YYYY-MM-DD
3. Liste TODOS os produtos com nome normalizado (sem códigos internos),
   quantidade (padrão 1; pode ser fracionada para itens pesados, ex: 0.374),
   unidade, preço unitário em reais e categoria
4. Categorias permitidas: {", ".join(CATEGORIES)}

REGRAS:
- Ignore cabeçalho, rodapé, dados do estabelecimento e formas de pagamento
- Ignore códigos de barras, NCM e CFOP
- Se um item aparecer várias vezes, agrupe em um único registro
- Valores são números decimais (5.99, nunca "5,99" ou "R$ 5,99")

FORMATO DE RESPOSTA:
{{
  "store": "Nome do Mercado",
  "date": "2024-01-15",
  "items": [
    {{
      "name": "Leite Integral 1L",
      "quantity": 2,
      "unit": "un",
      "unitPrice": 5.99,
      "totalPrice": 11.98,
      "category": "Laticínios"
    }}
  ],
  "total": 11.98
}}

{_JSON_ONLY}"""
