"""TOML configuration loader for the assistant."""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field
from pathlib import Path

if sys.version_info >= (3, 11):
    import tomllib
else:
    try:
        import tomli as tomllib
    except ImportError:
        tomllib = None  # type: ignore[assignment]

ENDPOINTS = ("chat", "suggest", "validate", "normalize", "receipt")

DEFAULT_GEMINI_MODELS: dict[str, str] = {
    "chat": "gemini-2.5-flash-lite",
    "suggest": "gemini-2.0-flash-exp",
    "validate": "gemini-2.5-flash-lite",
    "normalize": "gemini-2.0-flash-exp",
    "receipt": "gemini-2.0-flash-lite",
}

DEFAULT_CLAUDE_MODEL = "claude-sonnet-4-5-20250929"

DEFAULT_DB_PATH = "~/.config/comprai/history.db"


@dataclass
class LLMConfig:
    backend: str = "gemini"
    gemini_api_key: str = ""
    anthropic_api_key: str = ""
    models: dict[str, str] = field(
        default_factory=lambda: dict(DEFAULT_GEMINI_MODELS)
    )

    @property
    def api_key(self) -> str:
        """Credential for the selected backend."""
        if self.backend == "claude":
            return self.anthropic_api_key
        return self.gemini_api_key

    def model_for(self, endpoint: str) -> str:
        if endpoint not in self.models:
            raise ValueError(f"No model configured for endpoint {endpoint!r}")
        return self.models[endpoint]


@dataclass
class DatabaseConfig:
    path: str = DEFAULT_DB_PATH


@dataclass
class LimitsConfig:
    recent_lists: int = 5
    purchase_history: int = 50
    price_history: int = 50
    chat_history_turns: int = 20
    default_max_results: int = 10


@dataclass
class AssistantConfig:
    llm: LLMConfig = field(default_factory=LLMConfig)
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    limits: LimitsConfig = field(default_factory=LimitsConfig)


def load_config(path: str | Path | None = None) -> AssistantConfig:
    """Load configuration from a TOML file.

    Falls back to defaults if no path is given or the file doesn't exist.
    API keys and the database path can be supplied via environment variables.
    """
    raw: dict = {}

    if path is not None:
        p = Path(path)
        if p.exists():
            if tomllib is None:
                raise ImportError(
                    "tomli is required on Python < 3.11: pip install tomli"
                )
            with open(p, "rb") as f:
                raw = tomllib.load(f)

    llm = raw.get("llm", {})
    db = raw.get("database", {})
    lim = raw.get("limits", {})

    # Resolve secrets: config file → environment variable
    gemini_api_key = llm.get("gemini_api_key", "") or os.environ.get(
        "GEMINI_API_KEY", ""
    )
    anthropic_api_key = llm.get("anthropic_api_key", "") or os.environ.get(
        "ANTHROPIC_API_KEY", ""
    )
    db_path = db.get("path", "") or os.environ.get(
        "COMPRAI_DB_PATH", DEFAULT_DB_PATH
    )

    backend = llm.get("backend", "gemini")

    # Claude has a single default model; Gemini pins one per endpoint
    if backend == "claude":
        default_models = {name: DEFAULT_CLAUDE_MODEL for name in ENDPOINTS}
    else:
        default_models = dict(DEFAULT_GEMINI_MODELS)
    models = {**default_models, **llm.get("models", {})}

    defaults = LimitsConfig()
    return AssistantConfig(
        llm=LLMConfig(
            backend=backend,
            gemini_api_key=gemini_api_key,
            anthropic_api_key=anthropic_api_key,
            models=models,
        ),
        database=DatabaseConfig(path=db_path),
        limits=LimitsConfig(
            recent_lists=lim.get("recent_lists", defaults.recent_lists),
            purchase_history=lim.get(
                "purchase_history", defaults.purchase_history
            ),
            price_history=lim.get("price_history", defaults.price_history),
            chat_history_turns=lim.get(
                "chat_history_turns", defaults.chat_history_turns
            ),
            default_max_results=lim.get(
                "default_max_results", defaults.default_max_results
            ),
        ),
    )
