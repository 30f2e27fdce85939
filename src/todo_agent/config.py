"""Configuration settings for the application."""

from functools import lru_cache
from typing import Literal

from pydantic import (
    Field,
    model_validator,
)
from pydantic_settings import (
    BaseSettings,
    SettingsConfigDict,
)

_BACKEND_KEYS = {
    "gemini": "GOOGLE_API_KEY",
    "openai": "OPENAI_API_KEY",
    "anthropic": "ANTHROPIC_API_KEY",
}


class Settings(BaseSettings):
    """Pydantic settings class for the application."""

    # Loaded from environment variables or a .env file
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    LOG_LEVEL: str = "info"  # Options: debug, info, warning, error, critical

    # Database
    DATABASE_URL: str
    DB_ECHO: bool = False

    # LLM Configuration
    COMPLETION_BACKEND: Literal["gemini", "openai", "anthropic"] = "gemini"
    GOOGLE_API_KEY: str | None = None
    OPENAI_API_KEY: str | None = None
    ANTHROPIC_API_KEY: str | None = None
    GEMINI_MODEL: str = "gemini-1.5-flash"
    GEMINI_ENDPOINT: str = "https://generativelanguage.googleapis.com/v1beta"
    OPENAI_MODEL: str = "gpt-4o-mini"
    ANTHROPIC_MODEL: str = "claude-3-5-haiku-latest"
    COMPLETION_TIMEOUT: float = Field(30.0, gt=0)
    COMPLETION_TEMPERATURE: float = 0.2

    # Agent loop
    MAX_TURN_STEPS: int = Field(10, ge=1)

    @model_validator(mode="after")
    def _require_backend_key(self) -> "Settings":
        key_name = _BACKEND_KEYS[self.COMPLETION_BACKEND]
        if not getattr(self, key_name):
            raise ValueError(
                f"{key_name} is required when COMPLETION_BACKEND={self.COMPLETION_BACKEND}"
            )
        return self


@lru_cache
def get_settings() -> Settings:
    """Load settings once; raises ``pydantic.ValidationError`` when required values are missing."""
    return Settings()  # type: ignore[call-arg]
