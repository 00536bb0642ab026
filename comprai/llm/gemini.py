"""Gemini API gateway."""

from __future__ import annotations

from typing import TYPE_CHECKING

from ..errors import ConfigurationError
from . import ModelGateway

if TYPE_CHECKING:
    from ..models import ChatTurn

# Gemini calls the assistant side of a conversation "model"
_ROLE_MAP = {"user": "user", "assistant": "model"}


def to_gemini_history(history: list[ChatTurn]) -> list[dict]:
    return [
        {"role": _ROLE_MAP.get(turn.role, "user"), "parts": [turn.content]}
        for turn in history
    ]


class GeminiGateway(ModelGateway):
    """Generate text with Google Gemini."""

    def __init__(self, api_key: str = "", model: str = "gemini-2.0-flash-lite") -> None:
        self._api_key = api_key
        self._model = model

    @property
    def model(self) -> str:
        return self._model

    async def invoke(
        self,
        prompt: str,
        *,
        system: str | None = None,
        history: list[ChatTurn] | None = None,
    ) -> str:
        if not self._api_key:
            raise ConfigurationError(
                "Gemini API key is not set. "
                "Check the config file or the GEMINI_API_KEY environment variable."
            )

        try:
            import google.generativeai as genai
        except ImportError:
            raise ImportError(
                "google-generativeai SDK is required: pip install google-generativeai"
            ) from None

        genai.configure(api_key=self._api_key)
        model = genai.GenerativeModel(self._model, system_instruction=system)

        if history is not None:
            chat = model.start_chat(history=to_gemini_history(history))
            response = await chat.send_message_async(prompt)
        else:
            response = await model.generate_content_async(prompt)
        return response.text
