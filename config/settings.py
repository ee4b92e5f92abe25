"""Application settings and configuration management."""
from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings loaded from environment variables or defaults."""

    DB_PATH: str = Field(default="data/hiring.db")

    LLM_BASE_URL: str = "https://openrouter.ai/api/v1"
    LLM_ENDPOINT: str = "/chat/completions"
    LLM_TIMEOUT_S: float = Field(default=60.0, ge=0.1)
    DEFAULT_MODEL: str = "openai/gpt-4o"

    # Seed values for the AI settings record; the stored record wins once it exists.
    OPENROUTER_API_KEY: str = ""
    SITE_URL: str = "http://localhost:3000"
    SITE_NAME: str = "AI Hiring Platform"

    # Empty means the interview.yaml shipped beside the config package.
    INTERVIEW_POLICY_PATH: str = ""

    model_config = SettingsConfigDict(env_file=".env", validate_assignment=True, extra="ignore")


settings = Settings()
