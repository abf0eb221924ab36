"""
CrossCare Application Settings

Production-grade configuration management using Pydantic Settings.
All sensitive values are loaded from environment variables.

SECURITY: Never log or expose settings containing secrets.
"""

from functools import lru_cache
from typing import Literal, Optional

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseSettings):
    """PostgreSQL database configuration."""

    model_config = SettingsConfigDict(env_prefix="CROSSCARE_DB_")

    url: Optional[str] = Field(
        default=None,
        description="Full async database URL; overrides the individual fields",
    )
    host: str = Field(default="localhost", description="Database host")
    port: int = Field(default=5432, description="Database port")
    name: str = Field(default="crosscare_db", description="Database name")
    user: str = Field(default="crosscare_user", description="Database user")
    password: SecretStr = Field(default=SecretStr("dev_password"), description="Database password")
    pool_size: int = Field(default=10, ge=1, le=100, description="Connection pool size")
    max_overflow: int = Field(default=20, ge=0, le=100, description="Max overflow connections")

    @property
    def async_url(self) -> str:
        """Generate async database URL for SQLAlchemy."""
        if self.url:
            return self.url
        password = self.password.get_secret_value()
        return f"postgresql+asyncpg://{self.user}:{password}@{self.host}:{self.port}/{self.name}"

    @property
    def sync_url(self) -> str:
        """Generate sync database URL for Alembic migrations."""
        password = self.password.get_secret_value()
        return f"postgresql://{self.user}:{password}@{self.host}:{self.port}/{self.name}"


class OpenAISettings(BaseSettings):
    """OpenAI API configuration."""

    model_config = SettingsConfigDict(env_prefix="CROSSCARE_OPENAI_")

    api_key: SecretStr = Field(default=SecretStr(""), description="OpenAI API key")
    model: str = Field(default="gpt-4", description="Model identifier")
    max_tokens: int = Field(default=2000, ge=100, le=8192)
    temperature: float = Field(default=0.3, ge=0.0, le=2.0)


class GeminiSettings(BaseSettings):
    """Google Gemini API configuration."""

    model_config = SettingsConfigDict(env_prefix="CROSSCARE_GEMINI_")

    api_key: SecretStr = Field(default=SecretStr(""), description="Gemini API key")
    model: str = Field(default="gemini-1.5-pro", description="Model identifier")


class QueueSettings(BaseSettings):
    """Counselor work-queue policy."""

    model_config = SettingsConfigDict(env_prefix="CROSSCARE_QUEUE_")

    lease_hours: float = Field(default=2.0, gt=0, le=48, description="Claim lease length")
    archive_cooldown_days: float = Field(default=7.0, ge=0, description="Answered → archived delay")
    sweep_interval_seconds: float = Field(default=60.0, gt=0, description="Maintenance loop period")
    list_limit: int = Field(default=100, ge=1, le=1000, description="Max items per listing")


class AnalysisSettings(BaseSettings):
    """Response-analysis pipeline configuration."""

    model_config = SettingsConfigDict(env_prefix="CROSSCARE_ANALYSIS_")

    enabled: bool = Field(default=True, description="Schedule analysis after human responses")
    timeout_seconds: float = Field(default=30.0, gt=0, description="Time limit for the whole task")
    provider_timeout_seconds: float = Field(default=20.0, gt=0, description="Time limit for the model call")
    history_window: int = Field(default=10, ge=0, le=50, description="Prior turns included in prompt")
    version: str = Field(default="1.0", description="Analysis prompt version")


class MonitoringSettings(BaseSettings):
    """Error tracking configuration."""

    model_config = SettingsConfigDict(env_prefix="CROSSCARE_SENTRY_")

    dsn: str = Field(default="", description="Sentry DSN (empty disables tracking)")
    traces_sample_rate: float = Field(default=0.1, ge=0.0, le=1.0)


class Settings(BaseSettings):
    """
    Main application settings.

    All configuration is loaded from environment variables with CROSSCARE_ prefix.
    Sensitive values use SecretStr to prevent accidental logging.

    Usage:
        settings = get_settings()
        db_url = settings.database.async_url
    """

    model_config = SettingsConfigDict(
        env_prefix="CROSSCARE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application
    env: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Application environment"
    )
    debug: bool = Field(default=False, description="Debug mode - NEVER enable in production")
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level"
    )
    api_version: str = Field(default="v1", description="API version prefix")
    cors_origins: list[str] = Field(
        default=["http://localhost:3000"],
        description="Allowed CORS origins"
    )

    # LLM Provider selection
    llm_primary_provider: Literal["openai", "gemini"] = Field(
        default="openai",
        description="Primary LLM provider (openai, gemini)"
    )

    # Nested settings
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    openai: OpenAISettings = Field(default_factory=OpenAISettings)
    gemini: GeminiSettings = Field(default_factory=GeminiSettings)
    queue: QueueSettings = Field(default_factory=QueueSettings)
    analysis: AnalysisSettings = Field(default_factory=AnalysisSettings)
    monitoring: MonitoringSettings = Field(default_factory=MonitoringSettings)

    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.env == "production"


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached application settings.

    Uses LRU cache to ensure settings are only loaded once.
    For testing, use dependency injection to override.

    Returns:
        Settings: Application settings instance
    """
    return Settings()
