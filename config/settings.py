"""Application settings and configuration management."""
from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings loaded from environment variables or defaults."""

    PROMPT_CONFIG_PATH: str = Field(default="")
    SESSION_CAP_SEC: int = Field(default=1500, ge=60)

    LLM_ENABLED: bool = False
    LLM_MODE: str = "cloud"
    LLM_BASE_URL: str = "https://openrouter.ai/api/v1"
    LLM_ENDPOINT: str = "/chat/completions"
    LLM_MODEL: str = "openai/gpt-4o-mini"
    LLM_API_KEY_ENV: str = "OPENROUTER_API_KEY"
    LLM_TIMEOUT_S: float = 30.0
    LLM_MAX_TOKENS: int = 500
    LLM_TEMPERATURE: float = 0.7
    LLM_REFERER: str = "http://localhost:3000"
    LLM_TITLE: str = "AI Interview Coach"

    HUB_QUEUE_LIMIT: int = Field(default=20, ge=1)
    EXTRACTION_INTERVAL_MS: int = 2000

    model_config = SettingsConfigDict(env_file=".env", validate_assignment=True, extra="ignore")


settings = Settings()
