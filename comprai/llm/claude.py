"""Claude API gateway."""

from __future__ import annotations

from typing import TYPE_CHECKING

from ..errors import ConfigurationError
from . import ModelGateway

if TYPE_CHECKING:
    from ..models import ChatTurn


class ClaudeGateway(ModelGateway):
    """Generate text with Anthropic's Claude."""

    def __init__(self, api_key: str = "", model: str = "claude-sonnet-4-5-20250929") -> None:
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
                "Anthropic API key is not set. "
                "Check the config file or the ANTHROPIC_API_KEY environment variable."
            )

        try:
            import anthropic
        except ImportError:
            raise ImportError(
                "anthropic SDK is required: pip install anthropic"
            ) from None

        messages: list[dict] = [
            {"role": turn.role, "content": turn.content} for turn in history or []
        ]
        messages.append({"role": "user", "content": prompt})

        kwargs: dict = {}
        if system:
            kwargs["system"] = system

        client = anthropic.AsyncAnthropic(api_key=self._api_key)
        response = await client.messages.create(
            model=self._model,
            max_tokens=4096,
            messages=messages,
            **kwargs,
        )
        return response.content[0].text
