"""
Centralized configuration management for the application.
Loads settings from environment variables with sensible defaults.
"""

from pathlib import Path
from typing import Optional
from functools import lru_cache
from urllib.parse import quote
from pydantic_settings import BaseSettings
from pydantic import Field, validator


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # ========================================================================
    # Application Configuration
    # ========================================================================
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    environment: str = Field(default="development", alias="ENVIRONMENT")

    # ========================================================================
    # Web Fetching Configuration
    # ========================================================================
    http_timeout: int = Field(default=30, alias="HTTP_TIMEOUT")
    user_agent: str = Field(
        default=(
            "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
            "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
        ),
        alias="USER_AGENT",
    )

    # ========================================================================
    # Discovery & Extraction Configuration
    # ========================================================================
    link_keywords: str = Field(
        default="privacy,terms,legal,policy,cookies,cookie-policy,terms-of-service,data",
        alias="LINK_KEYWORDS",
    )
    policy_container_ids: str = Field(
        default="privacy-policy,terms-of-service",
        alias="POLICY_CONTAINER_IDS",
    )
    live_min_chars: int = Field(default=500, alias="LIVE_MIN_CHARS")
    markup_min_chars: int = Field(default=100, alias="MARKUP_MIN_CHARS")

    @property
    def link_keywords_list(self) -> list[str]:
        """Link keywords as a list."""
        return [kw.strip() for kw in self.link_keywords.split(",") if kw.strip()]

    @property
    def policy_container_ids_list(self) -> list[str]:
        """Policy container element ids, in priority order."""
        return [cid.strip() for cid in self.policy_container_ids.split(",") if cid.strip()]

    # ========================================================================
    # Prompt & Reconciliation Configuration
    # ========================================================================
    max_prompt_chars: int = Field(default=8000, alias="MAX_PROMPT_CHARS")
    snippet_max_chars: int = Field(default=200, alias="SNIPPET_MAX_CHARS")
    reject_unexplained_points: bool = Field(default=False, alias="REJECT_UNEXPLAINED_POINTS")

    # ========================================================================
    # LLM Configuration
    # ========================================================================
    llm_provider: str = Field(default="ollama", alias="LLM_PROVIDER")
    ollama_host: str = Field(default="http://localhost:11434", alias="OLLAMA_HOST")
    ollama_model: str = Field(default="mistral", alias="OLLAMA_MODEL")
    openai_api_key: Optional[str] = Field(default=None, alias="OPENAI_API_KEY")
    openai_model: str = Field(default="gpt-4o-mini", alias="OPENAI_MODEL")
    llm_temperature: float = Field(default=0.3, alias="LLM_TEMPERATURE")
    llm_max_tokens: int = Field(default=2000, alias="LLM_MAX_TOKENS")
    llm_timeout: int = Field(default=60, alias="LLM_TIMEOUT")

    # ========================================================================
    # Database Configuration
    # ========================================================================
    database_url: Optional[str] = Field(default=None, alias="DATABASE_URL")
    postgres_user: str = Field(default="demystifier", alias="POSTGRES_USER")
    postgres_password: str = Field(default="secure_password", alias="POSTGRES_PASSWORD")
    postgres_host: str = Field(default="localhost", alias="POSTGRES_HOST")
    postgres_port: int = Field(default=5432, alias="POSTGRES_PORT")
    postgres_db: str = Field(default="demystifier", alias="POSTGRES_DB")

    @property
    def postgres_url(self) -> str:
        """PostgreSQL connection URL."""
        # URL encode password to handle special characters like @
        encoded_password = quote(self.postgres_password, safe='')
        return (
            f"postgresql://{self.postgres_user}:{encoded_password}@"
            f"{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )

    @property
    def sqlalchemy_url(self) -> str:
        """Connection URL for the analysis store."""
        return self.database_url or self.postgres_url

    class Config:
        """Pydantic settings config."""
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False
        populate_by_name = True

    @validator("log_level")
    def validate_log_level(cls, v):
        """Ensure log level is valid."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid_levels:
            raise ValueError(f"log_level must be one of {valid_levels}")
        return v.upper()

    @validator("environment")
    def validate_environment(cls, v):
        """Ensure environment is valid."""
        valid_envs = {"development", "production", "testing"}
        if v.lower() not in valid_envs:
            raise ValueError(f"environment must be one of {valid_envs}")
        return v.lower()

    @validator("llm_provider")
    def validate_llm_provider(cls, v):
        """Ensure the LLM provider is supported."""
        valid_providers = {"ollama", "openai"}
        if v.lower() not in valid_providers:
            raise ValueError(f"llm_provider must be one of {valid_providers}")
        return v.lower()


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Returns:
        Settings: Application configuration object
    """
    return Settings()


# Convenience access
settings = get_settings()


# ============================================================================
# Path Configuration
# ============================================================================

PROJECT_ROOT = Path(__file__).parent.parent
LOGS_DIR = PROJECT_ROOT / "logs"
