"""
Configuration Management

Uses Pydantic Settings for environment-based configuration.
Loads from .env file automatically.

Clients never read these values on their own: callers build a Settings
instance (or use get_settings()) and pass it to the client factories.
"""

from typing import Optional
from functools import lru_cache
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    # Haloscan (keyword research)
    HALOSCAN_API_KEY: Optional[str] = None
    HALOSCAN_API_URL: str = "https://api.haloscan.com/api"

    # OpenRouter (chat completion)
    OPENROUTER_API_KEY: Optional[str] = None
    OPENROUTER_API_URL: str = "https://openrouter.ai/api/v1/chat/completions"
    OPENROUTER_MODEL: str = "anthropic/claude-sonnet-4"
    OPENROUTER_SITE_URL: str = "http://localhost:3000"
    OPENROUTER_SITE_NAME: str = "Topical Map SaaS"

    # Application Settings
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    # Project store directory (defaults to ~/.topicalmap/projects)
    PROJECTS_PATH: Optional[str] = None

    # Transport timeout in seconds
    API_TIMEOUT: int = 60

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"
        case_sensitive = False


@lru_cache
def get_settings() -> Settings:
    """Get or create cached settings instance."""
    return Settings()
