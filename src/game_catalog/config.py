"""
Application configuration using Pydantic Settings.

Loads configuration from environment variables with validation,
type coercion, and sensible defaults.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# IGDB refuses pages larger than this
MAX_PAGE_SIZE = 500


class IGDBConfig(BaseSettings):
    """IGDB API and Twitch OAuth configuration."""

    model_config = SettingsConfigDict(env_prefix="IGDB_")

    client_id: str = Field(
        default="",
        description="Twitch application Client ID from https://dev.twitch.tv/console/apps",
    )
    client_secret: SecretStr = Field(
        default=SecretStr(""),
        description="Twitch application Client Secret",
    )
    base_url: str = Field(
        default="https://api.igdb.com/v4",
        description="Base URL for IGDB API v4 endpoints",
    )
    token_url: str = Field(
        default="https://id.twitch.tv/oauth2/token",
        description="Twitch OAuth token endpoint",
    )
    image_base_url: str = Field(
        default="https://images.igdb.com/igdb/image/upload",
        description="Base URL of the IGDB image CDN",
    )
    default_cover_size: str = Field(
        default="cover_big",
        description="Image size used for cover URLs (e.g. cover_small, cover_big)",
    )
    default_screenshot_size: str = Field(
        default="screenshot_big",
        description="Image size used for screenshot URLs (e.g. screenshot_med, screenshot_huge)",
    )
    token_cache_key: str = Field(
        default="igdb_access_token",
        description="Key under which the access token is cached",
    )
    token_cache_ttl_seconds: int = Field(
        default=86400 * 30,
        ge=60,
        description="How long a cached access token is trusted",
    )
    token_cache_path: Path = Field(
        default=Path("data/cache/token_cache.json"),
        description="File backing the persistent token cache",
    )
    requests_per_second: float = Field(
        default=4.0,
        gt=0,
        le=50,
        description="Maximum outbound requests per second (IGDB allows 4)",
    )
    timeout_seconds: int = Field(
        default=30,
        ge=1,
        le=120,
        description="HTTP request timeout in seconds",
    )

    @field_validator("base_url", "token_url", "image_base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Normalize URLs so paths can be appended safely."""
        return v.rstrip("/")

    @property
    def has_credentials(self) -> bool:
        """Check whether both client id and secret are configured."""
        return bool(self.client_id) and bool(self.client_secret.get_secret_value())


class DatabaseConfig(BaseSettings):
    """Catalog store configuration."""

    model_config = SettingsConfigDict(env_prefix="DATABASE_")

    url: str = Field(
        default="sqlite+aiosqlite:///data/catalog.db",
        description="SQLAlchemy async database URL",
    )
    echo: bool = Field(
        default=False,
        description="Log emitted SQL statements",
    )


class ImportConfig(BaseSettings):
    """Defaults for an import run."""

    model_config = SettingsConfigDict(env_prefix="IMPORT_")

    count: int = Field(
        default=100,
        ge=1,
        description="Number of games to import",
    )
    offset: int = Field(
        default=0,
        ge=0,
        description="Starting offset into the IGDB result set",
    )
    min_rating: int = Field(
        default=60,
        ge=0,
        le=100,
        description="Minimum total_rating of imported games",
    )
    batch_size: int = Field(
        default=50,
        ge=1,
        le=MAX_PAGE_SIZE,
        description="Games per API request",
    )


class RetryConfig(BaseSettings):
    """Retry behavior for transport failures during credential exchange."""

    model_config = SettingsConfigDict(env_prefix="RETRY_")

    max_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Maximum number of retry attempts",
    )
    base_delay_seconds: float = Field(
        default=1.0,
        ge=0.0,
        le=30.0,
        description="Base delay between retries (exponential backoff)",
    )
    max_delay_seconds: float = Field(
        default=60.0,
        ge=1.0,
        le=300.0,
        description="Maximum delay between retries",
    )
    exponential_base: float = Field(
        default=2.0,
        ge=1.5,
        le=4.0,
        description="Base for exponential backoff calculation",
    )


class LoggingConfig(BaseSettings):
    """Logging configuration."""

    model_config = SettingsConfigDict(env_prefix="LOG_")

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )
    format: Literal["json", "console"] = Field(
        default="console",
        description="Log output format",
    )
    include_timestamp: bool = Field(
        default=True,
        description="Include timestamp in log entries",
    )


class Settings(BaseSettings):
    """
    Main application settings.

    Aggregates all configuration sections and provides
    a single entry point for configuration access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    environment: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Deployment environment",
    )

    igdb: IGDBConfig = Field(default_factory=IGDBConfig)
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    importer: ImportConfig = Field(default_factory=ImportConfig)
    retry: RetryConfig = Field(default_factory=RetryConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"


@lru_cache
def get_settings() -> Settings:
    """
    Get cached application settings.

    Returns:
        Settings: Application configuration instance
    """
    return Settings()


def resolve_page_size(batch_size: int) -> int:
    """Clamp a requested batch size into the range IGDB accepts."""
    if batch_size <= 0:
        return MAX_PAGE_SIZE
    return min(batch_size, MAX_PAGE_SIZE)
