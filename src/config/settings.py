# src/config/settings.py — v2
"""Typed configuration loaded from .env via pydantic-settings.

Single source of truth for all deployment-specific settings: extraction
model, session persistence, image and record stores, logging.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ConfigurationError(Exception):
    """Raised when configuration is internally inconsistent."""


class Settings(BaseSettings):
    """Application settings loaded from .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # === EXTRACTION ===
    extraction_provider: str = "google"
    extraction_model: str = "gemini-2.5-flash"
    extraction_temperature: float = 0.1
    extraction_max_tokens: int = 4096
    extraction_retry_enabled: bool = True
    google_api_key: str = ""

    # === SESSION ===
    session_backend: Literal["memory", "json", "sqlite", "redis"] = "json"
    session_root: Path = Path("~/.receiptscan/sessions")
    session_redis_url: str = ""
    session_ttl_ms: int = 1_800_000
    session_auto_clear_ms: int = 300_000

    # === IMAGE STORE ===
    image_store: Literal["local", "s3"] = "local"
    image_root: Path = Path("~/.receiptscan/images")
    image_s3_bucket: str = ""
    image_s3_prefix: str = "receipts/"
    image_s3_region: str = ""
    image_s3_endpoint_url: str = ""

    # === RECORD STORE ===
    record_store: Literal["json", "sqlite"] = "json"
    record_root: Path = Path("~/.receiptscan/records")

    # === Logging ===
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "text"] = "json"
    log_file: Path | None = None
    log_rotation: str = "10MB"
    log_retention: int = 30

    # --- Validators ---

    @field_validator("session_ttl_ms")
    @classmethod
    def validate_ttl(cls, v: int) -> int:  # noqa: N805
        if v <= 0:
            raise ValueError("session_ttl_ms must be > 0")
        return v

    @field_validator("session_auto_clear_ms")
    @classmethod
    def validate_auto_clear(cls, v: int) -> int:  # noqa: N805
        """0 disables auto-clear; negatives are rejected."""
        if v < 0:
            raise ValueError("session_auto_clear_ms must be >= 0")
        return v

    @model_validator(mode="after")
    def validate_config_consistency(self) -> Settings:
        """Validate cross-field consistency rules."""
        errors: list[str] = []

        if self.session_backend == "redis" and not self.session_redis_url:
            errors.append("SESSION_BACKEND=redis requires SESSION_REDIS_URL")

        if self.image_store == "s3" and not self.image_s3_bucket:
            errors.append("IMAGE_STORE=s3 requires IMAGE_S3_BUCKET")

        if errors:
            raise ConfigurationError("; ".join(errors))

        return self


def load_settings(**overrides: object) -> Settings:
    """Load settings from .env with optional overrides.

    Args:
        **overrides: Field-level overrides (for testing or per-run config).

    Returns:
        Validated Settings instance.

    Raises:
        ConfigurationError: If configuration is internally inconsistent.
    """
    return Settings(**overrides)  # type: ignore[arg-type]
