"""Endpoint orchestrators: request → history → prompt → model → decoder → envelope."""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Awaitable, Callable

from . import prompts
from .aggregator import CHAT_TOP_ITEMS, SUGGEST_TOP_ITEMS, item_profiles, summarize
from .config import AssistantConfig
from .db import HistoryStore, SQLiteHistoryStore
from .decoder import (
    Outcome,
    decode_normalization,
    decode_receipt,
    decode_suggestions,
    decode_validation,
)
from .errors import (
    AssistantError,
    BackendCallFailure,
    ClientInputError,
    ConfigurationError,
    ErrorClass,
    InvalidAIResponseFormat,
)
from .estimation import PRICE_SAMPLES, estimate_list
from .llm import ModelGateway, create_gateway
from .models import ChatTurn

logger = logging.getLogger(__name__)

_ERROR_LABELS = {
    ErrorClass.SERVER_MISCONFIGURATION: "Server configuration error",
    ErrorClass.INTERNAL: "Internal server error",
}

_STATUS_CODES = {
    ErrorClass.BAD_REQUEST: 400,
    ErrorClass.SERVER_MISCONFIGURATION: 500,
    ErrorClass.INTERNAL: 500,
}


def _json_default(value: Any) -> Any:
    if isinstance(value, Decimal):
        return float(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


@dataclass
class EndpointResult:
    """Transport-agnostic outcome of one request."""

    payload: dict
    error_class: ErrorClass | None = None

    @property
    def ok(self) -> bool:
        return self.error_class is None

    @property
    def status_code(self) -> int:
        if self.error_class is None:
            return 200
        return _STATUS_CODES[self.error_class]

    def to_json(self, indent: int | None = None) -> str:
        return json.dumps(
            self.payload, ensure_ascii=False, indent=indent, default=_json_default
        )

    @classmethod
    def failure(cls, error: AssistantError) -> EndpointResult:
        label = _ERROR_LABELS.get(error.error_class)
        if label is None:
            # Client errors are surfaced verbatim
            return cls({"error": str(error)}, error.error_class)
        return cls({"error": label, "message": str(error)}, error.error_class)


# -- request field helpers --------------------------------------------------


def _require_str(request: dict, key: str) -> str:
    value = request.get(key)
    if not isinstance(value, str) or not value.strip():
        raise ClientInputError(f"{key} is required and must be a non-empty string")
    return value


def _optional_str(request: dict, key: str) -> str | None:
    value = request.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ClientInputError(f"{key} must be a string")
    return value or None


def _max_results(request: dict, default: int) -> int:
    value = request.get("maxResults")
    if value is None:
        return default
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ClientInputError("maxResults must be a positive integer")
    return value


def _chat_history(request: dict, window: int) -> list[ChatTurn]:
    raw = request.get("conversationHistory") or []
    if not isinstance(raw, list):
        raise ClientInputError("conversationHistory must be a list")
    turns: list[ChatTurn] = []
    for entry in raw:
        if (
            not isinstance(entry, dict)
            or entry.get("role") not in ("user", "assistant")
            or not isinstance(entry.get("content"), str)
        ):
            raise ClientInputError(
                "conversationHistory entries need a role (user/assistant) and content"
            )
        turns.append(ChatTurn(role=entry["role"], content=entry["content"]))

    # Keep the most recent turns only, starting on a user turn
    turns = turns[-window:] if window > 0 else []
    while turns and turns[0].role != "user":
        turns.pop(0)
    return turns


class Assistant:
    """Runs every endpoint of the shopping assistant.

    Each public coroutine accepts the request body as a dict (camelCase keys)
    and returns an EndpointResult; errors never escape.
    """

    def __init__(
        self,
        config: AssistantConfig,
        store: HistoryStore | None = None,
        gateway_factory: Callable[[AssistantConfig, str], ModelGateway] = create_gateway,
    ) -> None:
        self._config = config
        self._store = store
        self._gateway_factory = gateway_factory

    # -- plumbing -----------------------------------------------------------

    def _history(self) -> HistoryStore:
        if self._store is None:
            self._store = SQLiteHistoryStore(self._config.database.path)
        return self._store

    def _gateway(self, endpoint: str) -> ModelGateway:
        """Resolve the pinned gateway; fails closed without credentials."""
        if not self._config.llm.api_key:
            raise ConfigurationError(
                f"Missing API key for the {self._config.llm.backend!r} backend"
            )
        try:
            return self._gateway_factory(self._config, endpoint)
        except ValueError as e:
            raise ConfigurationError(str(e)) from e

    async def _read(self, fn: Callable[..., Any], *args: Any) -> Any:
        return await asyncio.to_thread(fn, *args)

    async def _invoke(self, gateway: ModelGateway, prompt: str, **kwargs: Any) -> str:
        logger.info("Calling model %s", gateway.model)
        try:
            return await gateway.invoke(prompt, **kwargs)
        except AssistantError:
            raise
        except Exception as e:
            raise BackendCallFailure(f"Backend call failed: {e}") from e

    async def _handle(
        self, name: str, fn: Callable[[dict], Awaitable[dict]], request: Any
    ) -> EndpointResult:
        try:
            if not isinstance(request, dict):
                raise ClientInputError("Request body must be an object")
            payload = await fn(request)
        except ClientInputError as e:
            logger.info("[%s] rejected request: %s", name, e)
            return EndpointResult.failure(e)
        except AssistantError as e:
            logger.error("[%s] %s: %s", name, type(e).__name__, e)
            return EndpointResult.failure(e)
        except Exception as e:
            logger.exception("[%s] unexpected failure", name)
            return EndpointResult.failure(AssistantError(str(e)))
        return EndpointResult(payload)

    # -- endpoints ----------------------------------------------------------

    async def chat(self, request: Any) -> EndpointResult:
        return await self._handle("chat", self._chat, request)

    async def suggest_items(self, request: Any) -> EndpointResult:
        return await self._handle("suggest", self._suggest_items, request)

    async def validate_list(self, request: Any) -> EndpointResult:
        return await self._handle("validate", self._validate_list, request)

    async def normalize_item(self, request: Any) -> EndpointResult:
        return await self._handle("normalize", self._normalize_item, request)

    async def process_receipt(self, request: Any) -> EndpointResult:
        return await self._handle("receipt", self._process_receipt, request)

    async def estimate_list(self, request: Any) -> EndpointResult:
        return await self._handle("estimate", self._estimate_list, request)

    async def summary(self, request: Any) -> EndpointResult:
        return await self._handle("summary", self._summary, request)

    # -- implementations ----------------------------------------------------

    async def _chat(self, request: dict) -> dict:
        user_id = _require_str(request, "userId")
        message = _require_str(request, "message")
        list_id = _optional_str(request, "listId")
        limits = self._config.limits
        history = _chat_history(request, limits.chat_history_turns)

        gateway = self._gateway("chat")
        logger.info(
            "Chat for user %s (list=%s, %d prior turns)",
            user_id, list_id or "-", len(history),
        )

        store = self._history()
        reads = [
            self._read(store.recent_lists, user_id, limits.recent_lists),
            self._read(store.purchase_history, user_id, limits.purchase_history),
            self._read(store.price_history, user_id, limits.price_history),
        ]
        if list_id:
            reads.append(self._read(store.list_name, list_id))
            reads.append(self._read(store.list_items, list_id))
        results = await asyncio.gather(*reads)
        lists, purchases, prices = results[:3]
        current_name, current_items = (results[3], results[4]) if list_id else (None, None)

        summary = summarize(purchases, prices, top_k=CHAT_TOP_ITEMS)
        system = prompts.chat_system_instruction(
            summary, lists, current_name, current_items
        )

        text = await self._invoke(gateway, message, system=system, history=history)
        if not text or not text.strip():
            raise InvalidAIResponseFormat("Empty AI response")

        return {
            "response": text.strip(),
            "contextUsed": {
                "listsCount": len(lists),
                "currentList": current_name,
                "totalSpent": summary.total_spent,
                "totalPurchases": summary.total_purchase_count,
            },
        }

    async def _suggest_items(self, request: dict) -> dict:
        user_id = _require_str(request, "userId")
        max_results = _max_results(request, self._config.limits.default_max_results)
        prompt = _optional_str(request, "prompt")
        list_type = _optional_str(request, "listType")

        gateway = self._gateway("suggest")
        purchases = await self._read(
            self._history().purchase_history,
            user_id,
            self._config.limits.purchase_history,
        )
        profiles = item_profiles(purchases, SUGGEST_TOP_ITEMS)
        text = await self._invoke(
            gateway,
            prompts.suggestion_prompt(profiles, max_results, list_type, prompt),
        )

        items = decode_suggestions(text, max_results).unwrap()
        logger.info("Suggested %d items for user %s", len(items), user_id)
        return {"items": [i.to_dict() for i in items]}

    async def _validate_list(self, request: dict) -> dict:
        original_prompt = _require_str(request, "originalPrompt")
        items = request.get("suggestedItems")
        if not isinstance(items, list) or not all(isinstance(i, dict) for i in items):
            raise ClientInputError("suggestedItems is required and must be a list of items")

        gateway = self._gateway("validate")
        logger.info("Validating %d items", len(items))
        text = await self._invoke(
            gateway, prompts.validation_prompt(original_prompt, items)
        )

        validation = decode_validation(text).unwrap()
        logger.info(
            "Validation: valid=%s confidence=%d issues=%d",
            validation.is_valid, validation.confidence, len(validation.issues),
        )
        return validation.to_dict()

    async def _normalize_item(self, request: dict) -> dict:
        raw_name = request.get("rawName")
        if not isinstance(raw_name, str):
            raise ClientInputError("rawName is required and must be a string")
        sanitized = prompts.truncate(raw_name, prompts.NORMALIZE_MAX_CHARS)
        if not sanitized:
            raise ClientInputError("rawName cannot be empty")

        gateway = self._gateway("normalize")
        text = await self._invoke(gateway, prompts.normalization_prompt(sanitized))

        decoded = decode_normalization(text, sanitized)
        if decoded.outcome is Outcome.FALLBACK:
            logger.warning("Normalization fell back for %r", sanitized)
        return decoded.unwrap().to_dict()

    async def _process_receipt(self, request: dict) -> dict:
        ocr_text = _require_str(request, "ocrText")
        user_id = _require_str(request, "userId")

        gateway = self._gateway("receipt")
        logger.info("Processing receipt for user %s (%d chars)", user_id, len(ocr_text))
        text = await self._invoke(gateway, prompts.receipt_prompt(ocr_text))

        receipt = decode_receipt(text).unwrap()
        logger.info(
            "Receipt from %s on %s: %d items, total %s",
            receipt.store, receipt.date, len(receipt.items), receipt.total,
        )
        if request.get("save"):
            await self._read(self._history().record_receipt, user_id, receipt)
        return receipt.to_dict()

    async def _estimate_list(self, request: dict) -> dict:
        user_id = _require_str(request, "userId")
        list_id = _require_str(request, "listId")

        store = self._history()
        items = await self._read(store.list_items, list_id)
        histories = await asyncio.gather(
            *(
                self._read(store.price_history, user_id, PRICE_SAMPLES, item.name)
                for item in items
            )
        )
        prices_by_item = {item.name: h for item, h in zip(items, histories)}

        estimate = estimate_list(items, prices_by_item)
        logger.info(
            "Estimated list %s at %s (%d%% confidence)",
            list_id, estimate.total_estimated, estimate.average_confidence,
        )
        return estimate.to_dict()

    async def _summary(self, request: dict) -> dict:
        user_id = _require_str(request, "userId")
        limits = self._config.limits

        store = self._history()
        purchases, prices = await asyncio.gather(
            self._read(store.purchase_history, user_id, limits.purchase_history),
            self._read(store.price_history, user_id, limits.price_history),
        )
        summary = summarize(purchases, prices, top_k=CHAT_TOP_ITEMS)
        return {
            "topPurchasedItems": [
                {"name": name, "count": count}
                for name, count in summary.top_purchased_items
            ],
            "categorySpend": [
                {"category": cat, "total": total}
                for cat, total in summary.category_spend
            ],
            "totalSpent": summary.total_spent,
            "totalPurchases": summary.total_purchase_count,
        }
