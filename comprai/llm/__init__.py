"""Model gateway base class and factory."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..config import AssistantConfig
    from ..models import ChatTurn


class ModelGateway(ABC):
    """One synchronous request/response against a generative-text backend.

    No streaming and no retry. Backend exceptions propagate unchanged.
    """

    @property
    @abstractmethod
    def model(self) -> str:
        """Backend model identifier this gateway is pinned to."""
        ...

    @abstractmethod
    async def invoke(
        self,
        prompt: str,
        *,
        system: str | None = None,
        history: list[ChatTurn] | None = None,
    ) -> str:
        """Send ``prompt`` and return the raw response text.

        ``history`` is replayed ahead of the prompt as prior turns.
        """
        ...


def create_gateway(config: AssistantConfig, endpoint: str) -> ModelGateway:
    """Create a gateway for ``endpoint`` using its configured model."""
    backend_name = config.llm.backend
    model = config.llm.model_for(endpoint)

    match backend_name:
        case "gemini":
            from .gemini import GeminiGateway

            return GeminiGateway(api_key=config.llm.gemini_api_key, model=model)
        case "claude":
            from .claude import ClaudeGateway

            return ClaudeGateway(api_key=config.llm.anthropic_api_key, model=model)
        case _:
            raise ValueError(
                f"Unknown LLM backend: {backend_name!r} (choose gemini or claude)"
            )
