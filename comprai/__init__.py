"""Compr.AI shopping-list assistant: history-aware LLM endpoints."""

from .config import AssistantConfig, load_config
from .db import HistoryStore, SQLiteHistoryStore
from .decoder import Decoded, Outcome
from .endpoints import Assistant, EndpointResult
from .errors import (
    AssistantError,
    BackendCallFailure,
    ClientInputError,
    ConfigurationError,
    ErrorClass,
    InvalidAIResponseFormat,
    InvalidResponseStructure,
    StoreUnavailable,
)
from .llm import ModelGateway, create_gateway

__all__ = [
    "Assistant",
    "EndpointResult",
    "AssistantConfig",
    "load_config",
    "HistoryStore",
    "SQLiteHistoryStore",
    "ModelGateway",
    "create_gateway",
    "Decoded",
    "Outcome",
    "ErrorClass",
    "AssistantError",
    "ClientInputError",
    "ConfigurationError",
    "StoreUnavailable",
    "InvalidAIResponseFormat",
    "InvalidResponseStructure",
    "BackendCallFailure",
]
