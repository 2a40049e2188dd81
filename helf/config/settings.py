"""Application configuration settings."""
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    app_name: str = "Helf Training"
    debug: bool = False
    log_json: bool = True

    # Database
    # Production runs on postgresql+asyncpg; the default keeps local runs dependency-free
    database_url: str = "sqlite+aiosqlite:///./helf.db"
    database_echo: bool = False

    # OpenAI/LLM settings (assistant chat)
    openai_api_key: str = ""  # Set via environment variable OPENAI_API_KEY
    openai_base_url: str = "https://api.openai.com/v1"  # Can be changed for OpenRouter, etc.
    openai_model: str = "gpt-4o-mini"
    openai_timeout: float = 60.0  # seconds, transport level
    llm_temperature: float = 0.7

    # LLM Provider
    llm_provider: Literal["openai"] = "openai"

    # Hard deadline on one assistant generation; exceeding it is a failure, never retried
    assistant_timeout_seconds: float = Field(default=60.0, ge=20.0, le=60.0)

    # Default user settings (for MVP without auth)
    default_user_id: int = 1

    # JWT verification (tokens are issued by the external auth provider)
    secret_key: str = "change-me-in-production"
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 24

    # On-device session cache
    session_cache_path: Path = Path("./helf_session_cache.db")
    session_cache_prefix: str = "helf_"
    session_cache_staleness_seconds: float = 60.0
    autosave_delay_seconds: float = 3.0

    # Base URL the session client uses when talking to the API over HTTP
    api_base_url: str = "http://localhost:8000"
    api_timeout: float = 30.0

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
