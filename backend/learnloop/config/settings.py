"""
Application Configuration

This module provides type-safe configuration loading using Pydantic settings.
Environment variables are loaded from .env file and validated.

Usage:
    from learnloop.config import settings

    # Access settings
    db_url = settings.POSTGRES_URL
    chat_model = settings.CHAT_MODEL
"""

from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from pydantic import Field
from pydantic_settings import BaseSettings

from learnloop.enums.api import RateLimitType


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    APP_NAME: str = "LearnLoop"
    DEBUG: bool = False
    CORS_ORIGINS: list[str] = ["*"]

    # PostgreSQL
    POSTGRES_HOST: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_USER: str = "learnloop"
    POSTGRES_PASSWORD: str = ""
    POSTGRES_DB: str = "learnloop"

    @property
    def POSTGRES_URL(self) -> str:
        """Async PostgreSQL connection URL."""
        return f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"

    # LLM models (LiteLLM format: provider/model-name).
    # Calls are made with the user's own stored API key.
    CHAT_MODEL: str = "openai/gpt-3.5-turbo"
    TUTOR_MODEL: str = "openai/gpt-3.5-turbo"
    CURRICULUM_MODEL: str = "openai/gpt-3.5-turbo"
    CHAT_MAX_TOKENS: int = 500
    TUTOR_MAX_TOKENS: int = 600
    CURRICULUM_MAX_TOKENS: int = 3000
    LLM_TEMPERATURE: float = 0.7
    CURRICULUM_LLM_TEMPERATURE: float = 0.4

    # Dashboard assistant
    ASSISTANT_MAX_TITLE_LENGTH: int = 50
    ASSISTANT_DEFAULT_PAGE_LIMIT: int = 20

    # Learning paths
    LEARNING_PATH_DAYS: int = Field(7, ge=1, le=7)

    # AI tutor sessions
    TUTOR_CONTEXT_SESSIONS: int = 2  # Previous completed sessions in the prompt
    TUTOR_CONTEXT_MESSAGES: int = 4  # Trailing messages per previous session
    TUTOR_CONTEXT_SNIPPET_CHARS: int = 200
    TUTOR_AUTO_COMPLETION_SCORE: int = 85
    TUTOR_MANUAL_COMPLETION_SCORE: int = 100

    # Activity heatmap thresholds (ratio of the busiest day)
    ACTIVITY_LEVEL_HIGH: float = 0.75
    ACTIVITY_LEVEL_MEDIUM_HIGH: float = 0.5
    ACTIVITY_LEVEL_MEDIUM: float = 0.25
    ACTIVITY_HISTORY_MAX_DAYS: int = 365

    # Rate limiting (SlowAPI format)
    RATE_LIMITING_ENABLED: bool = True
    RATE_LIMIT_DEFAULT: str = "100/minute"
    RATE_LIMIT_LLM_HEAVY: str = "10/minute"
    RATE_LIMIT_AUTH: str = "5/minute"
    RATE_LIMIT_ANALYTICS: str = "30/minute"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"

    def get_rate_limit(self, rate_limit_type: RateLimitType) -> str:
        """Return the configured limit string for an endpoint category."""
        limits = {
            RateLimitType.DEFAULT: self.RATE_LIMIT_DEFAULT,
            RateLimitType.LLM_HEAVY: self.RATE_LIMIT_LLM_HEAVY,
            RateLimitType.AUTH: self.RATE_LIMIT_AUTH,
            RateLimitType.ANALYTICS: self.RATE_LIMIT_ANALYTICS,
        }
        return limits.get(rate_limit_type, self.RATE_LIMIT_DEFAULT)


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()


@lru_cache()
def load_yaml_config() -> dict[str, Any]:
    """Load application configuration from config/default.yaml."""
    config_path = Path(__file__).parent.parent.parent.parent / "config" / "default.yaml"

    if not config_path.exists():
        return {}

    with open(config_path) as f:
        return yaml.safe_load(f) or {}


yaml_config: dict[str, Any] = load_yaml_config()
