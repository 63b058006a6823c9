# tests/integration/conftest.py — v8
"""Shared fixtures for integration tests.

No external services: sessions, images and records live under tmp_path,
and the vision model is replaced by a scripted client that answers per
image payload.
"""

from __future__ import annotations

from typing import Any

import pytest

from receiptscan.config.settings import Settings
from receiptscan.llm.base_client import BaseLLMClient
from receiptscan.llm.models import ImageInput, LLMResponse, Message


class ScriptedVisionLLM(BaseLLMClient):
    """Answers each image with the text registered for its bytes.

    Unknown images get an empty response, which the extractor rejects.
    """

    def __init__(self) -> None:
        self.responses: dict[bytes, str] = {}
        self.calls: list[bytes] = []

    async def complete_with_vision(
        self,
        messages: list[Message],
        images: list[ImageInput],
        system: str | None = None,
        max_tokens: int = 4096,
        temperature: float = 0.1,
        response_schema: dict[str, Any] | None = None,
    ) -> LLMResponse:
        data = images[0].data
        self.calls.append(data)
        return LLMResponse(
            content=self.responses.get(data, ""),
            model="scripted-vision",
            provider="scripted",
        )

    @property
    def supports_vision(self) -> bool:
        return True

    @property
    def provider_name(self) -> str:
        return "scripted"


@pytest.fixture
def scripted_llm() -> ScriptedVisionLLM:
    return ScriptedVisionLLM()


@pytest.fixture
def local_settings(tmp_path) -> Settings:
    """Settings with every backend on the local filesystem under tmp_path."""
    return Settings(
        _env_file=None,
        session_backend="json",
        session_root=tmp_path / "sessions",
        image_store="local",
        image_root=tmp_path / "images",
        record_store="json",
        record_root=tmp_path / "records",
        session_auto_clear_ms=0,
        extraction_retry_enabled=False,
    )
