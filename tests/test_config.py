"""Tests for assistant config loading."""

import os
import tempfile

import pytest

from comprai.config import (
    DEFAULT_CLAUDE_MODEL,
    DEFAULT_DB_PATH,
    AssistantConfig,
    load_config,
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for var in ("GEMINI_API_KEY", "ANTHROPIC_API_KEY", "COMPRAI_DB_PATH"):
        monkeypatch.delenv(var, raising=False)


def _write_toml(content: bytes) -> str:
    with tempfile.NamedTemporaryFile(suffix=".toml", delete=False) as f:
        f.write(content)
        f.flush()
        return f.name


def test_load_config_defaults():
    """Loading with no path returns all defaults."""
    config = load_config()
    assert isinstance(config, AssistantConfig)
    assert config.llm.backend == "gemini"
    assert config.llm.api_key == ""
    assert config.llm.models["chat"] == "gemini-2.5-flash-lite"
    assert config.llm.models["suggest"] == "gemini-2.0-flash-exp"
    assert config.llm.models["receipt"] == "gemini-2.0-flash-lite"
    assert config.database.path == DEFAULT_DB_PATH
    assert config.limits.recent_lists == 5
    assert config.limits.purchase_history == 50
    assert config.limits.price_history == 50
    assert config.limits.chat_history_turns == 20
    assert config.limits.default_max_results == 10


def test_load_config_nonexistent_file():
    """Loading a nonexistent file returns defaults."""
    config = load_config("/nonexistent/path.toml")
    assert config.llm.backend == "gemini"


def test_load_config_from_toml():
    """Loading a valid TOML file populates config."""
    path = _write_toml(b"""\
[llm]
backend = "gemini"
gemini_api_key = "test-key-123"

[llm.models]
chat = "gemini-pro"

[database]
path = "/var/comprai.db"

[limits]
chat_history_turns = 4
default_max_results = 7
""")
    config = load_config(path)
    os.unlink(path)

    assert config.llm.api_key == "test-key-123"
    assert config.llm.models["chat"] == "gemini-pro"
    # Endpoints not overridden keep their pinned defaults
    assert config.llm.models["normalize"] == "gemini-2.0-flash-exp"
    assert config.database.path == "/var/comprai.db"
    assert config.limits.chat_history_turns == 4
    assert config.limits.default_max_results == 7
    assert config.limits.purchase_history == 50


def test_load_config_env_override(monkeypatch):
    """Environment variables fill empty keys and the database path."""
    monkeypatch.setenv("GEMINI_API_KEY", "env-gemini-key")
    monkeypatch.setenv("ANTHROPIC_API_KEY", "env-anthropic-key")
    monkeypatch.setenv("COMPRAI_DB_PATH", "/tmp/env.db")

    config = load_config()
    assert config.llm.gemini_api_key == "env-gemini-key"
    assert config.llm.anthropic_api_key == "env-anthropic-key"
    assert config.database.path == "/tmp/env.db"


def test_load_config_file_key_takes_precedence(monkeypatch):
    """Config file API key takes precedence over env var."""
    monkeypatch.setenv("GEMINI_API_KEY", "env-key")
    path = _write_toml(b"""\
[llm]
gemini_api_key = "file-key"
""")
    config = load_config(path)
    os.unlink(path)
    assert config.llm.api_key == "file-key"


def test_claude_backend_uses_claude_models():
    path = _write_toml(b"""\
[llm]
backend = "claude"
anthropic_api_key = "sk-test"
""")
    config = load_config(path)
    os.unlink(path)

    assert config.llm.api_key == "sk-test"
    assert config.llm.model_for("chat") == DEFAULT_CLAUDE_MODEL
    assert config.llm.model_for("receipt") == DEFAULT_CLAUDE_MODEL


def test_model_for_unknown_endpoint():
    config = load_config()
    with pytest.raises(ValueError, match="No model configured"):
        config.llm.model_for("unknown")
