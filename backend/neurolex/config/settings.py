"""
Application Configuration

This module provides type-safe configuration loading using Pydantic settings.
Environment variables are loaded from .env file and validated.

Usage:
    from neurolex.config import settings

    # Access settings
    db_url = settings.DATABASE_URL
    batch = settings.STUDY_BATCH_SIZE
"""

from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    APP_NAME: str = "NeuroLex"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Database (async SQLite by default, any SQLAlchemy async URL works)
    DATABASE_URL: str = "sqlite+aiosqlite:///./neurolex.db"

    # LLM provider keys
    OPENAI_API_KEY: str = ""
    ANTHROPIC_API_KEY: str = ""
    GEMINI_API_KEY: str = ""
    MISTRAL_API_KEY: str = ""

    # Optional OpenAI-compatible base URL (self-hosted or proxy endpoints)
    LLM_API_BASE: str = ""

    # Models (model-agnostic via LiteLLM)
    # Format: provider/model-name
    TEXT_MODEL: str = "openai/gpt-4o"
    QUIZ_MODEL: str = ""  # Empty = TEXT_MODEL
    EVALUATION_MODEL: str = ""  # Empty = TEXT_MODEL

    QUIZ_TEMPERATURE: float = 0.8
    EVALUATION_TEMPERATURE: float = 0.6
    LLM_TIMEOUT_SECONDS: int = 30
    LLM_MAX_RETRIES: int = 3

    # Study sessions
    STUDY_BATCH_SIZE: int = 20
    DEFAULT_LANGUAGE: str = "en-US"

    # SM-2
    SM2_INITIAL_EFACTOR: float = 2.5

    # Gamification / dashboard
    XP_PER_LEVEL: int = 100
    MASTERED_MIN_REPETITION: int = 5  # repetition > this counts as mastered
    MASTERED_MIN_INTERVAL: int = 21  # or interval (days) > this

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


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
