# src/llm/base_client.py — v2
"""Abstract vision LLM client interface used by receipt extraction."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from receiptscan.llm.models import ImageInput, LLMResponse, Message


class BaseLLMClient(ABC):
    """Unified interface for vision-capable LLM providers."""

    @abstractmethod
    async def complete_with_vision(
        self,
        messages: list[Message],
        images: list[ImageInput],
        system: str | None = None,
        max_tokens: int = 4096,
        temperature: float = 0.1,
        response_schema: dict[str, Any] | None = None,
    ) -> LLMResponse:
        """Vision completion (images + text).

        Args:
            messages: Prompt messages.
            images: Inline images to send with the prompt.
            system: Optional system instruction.
            max_tokens: Output token cap.
            temperature: Sampling temperature.
            response_schema: JSON schema to constrain the output to JSON.
        """

    @property
    @abstractmethod
    def supports_vision(self) -> bool:
        """Whether this provider/model supports image inputs."""

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Provider identifier (google, ...)."""
