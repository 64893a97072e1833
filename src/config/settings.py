"""Application settings using Pydantic Settings.

Centralized configuration for the TaxPilot AI service.

Environment variables:
- APP_* : general service settings (see Settings)
- OPENROUTER_* : AI recommendation provider (see AISettings)
"""

import logging
from functools import lru_cache
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class AISettings(BaseSettings):
    """AI recommendation provider (OpenRouter, OpenAI-compatible API)."""

    model_config = SettingsConfigDict(
        env_prefix="OPENROUTER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    api_key: Optional[str] = Field(default=None, description="OpenRouter API key; AI is disabled when unset")
    base_url: str = Field(default="https://openrouter.ai/api/v1", description="OpenAI-compatible endpoint")
    model: str = Field(default="meta-llama/llama-3.1-8b-instruct:free", description="Model identifier")
    max_tokens: int = Field(default=500, description="Completion token budget")
    temperature: float = Field(default=0.7, description="Sampling temperature")

    # Resilience
    timeout_seconds: float = Field(default=20.0, description="Per-attempt timeout in seconds")
    max_retries: int = Field(default=2, description="Attempts for a failed completion call")

    # Sent as HTTP-Referer / X-Title for OpenRouter attribution
    app_url: str = Field(default="http://localhost:3000", description="Public URL of the app")
    app_title: str = Field(default="TaxPilot AI", description="Application title")

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application info
    name: str = Field(default="TaxPilot AI", description="Application name")
    version: str = Field(default="1.0.0", description="Application version")
    debug: bool = Field(default=False, description="Debug mode")
    environment: str = Field(default="development", description="Environment name")

    # Logging
    log_level: str = Field(default="INFO", description="Root log level")
    log_json: bool = Field(default=False, description="Emit JSON log lines")

    # CORS
    cors_origins: List[str] = Field(
        default=["http://localhost:3000", "http://localhost:8000"],
        description="Allowed CORS origins"
    )

    # Tax year configuration
    default_tax_year: int = Field(default=2025, description="Tax year of the canton rate table")

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {value}")
        return level

    # Nested settings (loaded separately)
    @property
    def ai(self) -> AISettings:
        return AISettings()

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment in ("production", "prod", "staging")

    def validate_production_settings(self) -> List[str]:
        """
        Check settings that should be set before serving real traffic.

        Returns:
            List of warnings (empty if nothing to report)
        """
        warnings = []

        if not self.is_production:
            return warnings

        if self.debug:
            warnings.append("APP_DEBUG: Should be False in production")
        if "*" in self.cors_origins:
            warnings.append("APP_CORS_ORIGINS: Wildcard origin allowed in production")
        if not self.ai.is_configured:
            warnings.append("OPENROUTER_API_KEY: Not set, AI recommendations use the static fallback")

        return warnings


@lru_cache
def get_settings() -> Settings:
    """
    Get cached application settings instance.

    Returns:
        Settings: Cached settings loaded from environment.
    """
    return Settings()
