from typing import Optional
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .ai.utils import normalize_model_id


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    database_url: str = "sqlite:///./paintmix.db"

    # Owner resolution
    default_workspace_slug: str = "local"

    log_level: str = "INFO"

    # Create tables on startup (no migration tool)
    auto_create_tables: bool = True

    # Rate limits (slowapi syntax)
    default_rate_limit: str = "100/minute"
    ai_rate_limit: str = "10/hour"

    # CORS
    cors_origins: list[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
        "http://localhost:5173",
        "http://127.0.0.1:5173",
    ]


class AISettings(BaseSettings):
    """Provider configuration.

    Not cached: the provider factory builds a fresh instance for every
    construction so that a cache reset picks up environment changes.
    """
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    ai_provider: str = "gemini"  # "gemini" | "llmstudio" | "openai"
    ai_api_key: Optional[str] = None
    ai_url: Optional[str] = None
    ai_model: Optional[str] = None

    @field_validator("ai_provider")
    @classmethod
    def _lower_provider(cls, v: str) -> str:
        return (v or "").strip().lower()

    @field_validator("ai_api_key", "ai_url", "ai_model")
    @classmethod
    def _blank_to_none(cls, v: Optional[str]) -> Optional[str]:
        if v is None or not v.strip():
            return None
        return v.strip()

    @field_validator("ai_model")
    @classmethod
    def _sanitize_model(cls, v: Optional[str]) -> Optional[str]:
        return normalize_model_id(v) if v else v


settings = Settings()
