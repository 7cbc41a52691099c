"""Typed settings configuration - single source of truth."""

from functools import lru_cache

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # LLM
    openai_api_key: SecretStr | None = None
    openai_model: str = "gpt-4o"
    budget_model: str = "gpt-4o"
    llm_timeout_seconds: float = 60.0

    # Budget window ratios (fraction of total budget)
    target_min_ratio: float = 0.8
    target_max_ratio: float = 1.0

    # Reconciliation retry caps
    trip_max_attempts: int = 2
    day_max_attempts: int = 2

    # Logging
    log_level: str = "INFO"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
