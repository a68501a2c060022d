"""Configuration management for StudyBuddy.

This module uses Pydantic Settings to load and validate configuration from
environment variables and .env files. Configuration is loaded at application
startup and is immutable during runtime.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

MEGABYTE = 1024 * 1024


class Settings(BaseSettings):
    """Application configuration settings.

    Settings are loaded from environment variables and .env files.
    All configuration values are validated at startup.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="STUDYBUDDY_",
        case_sensitive=False,
        extra="ignore",
    )

    # Application Settings
    app_name: str = "StudyBuddy"
    app_version: str = "0.1.0"
    environment: Literal["development", "production", "testing"] = "development"
    debug: bool = False
    api_prefix: str = "/api/v1"

    # Server Settings
    host: str = "0.0.0.0"
    port: int = 8000
    workers: int = 1

    # Database Settings
    database_url: str = "sqlite+aiosqlite:///./sb_data/studybuddy.db"
    db_pool_size: int = 5
    db_max_overflow: int = 10
    db_pool_timeout: int = 30
    db_pool_recycle: int = 3600
    db_echo: bool = False

    # External auth provider (tokens are issued elsewhere, only verified here)
    jwt_secret: str = Field(
        default="change-me-in-production-use-the-auth-provider-secret",
        description="Shared secret used by the external auth provider to sign access tokens",
    )
    jwt_algorithm: str = "HS256"
    jwt_audience: str | None = "authenticated"
    jwt_issuer: str | None = None

    # Identity mapping: "mapping" uses the identities table, "hex_prefix"
    # parses the first 8 hex characters of the subject (legacy data only).
    identity_strategy: Literal["mapping", "hex_prefix"] = "mapping"

    # CORS Settings
    cors_origins: list[str] = Field(default=["http://localhost:3000", "http://localhost:8000"])
    cors_allow_credentials: bool = True
    cors_allow_methods: list[str] = Field(default=["*"])
    cors_allow_headers: list[str] = Field(default=["*"])

    # Logging Settings
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    log_format: Literal["json", "console"] = "json"

    # Message board
    message_page_size: int = Field(default=20, gt=0)
    max_page_size: int = Field(default=200, gt=0)

    # File Storage Settings
    storage_provider: Literal["local", "s3"] = "local"
    storage_path: str = "./sb_data/files"
    storage_public_base_url: str = "http://localhost:8000/files"
    s3_bucket_name: str | None = None
    s3_region: str = "us-east-1"
    s3_endpoint_url: str | None = None
    s3_object_prefix: str = ""
    s3_public_base_url: str | None = None
    max_attachment_size: int = 10 * MEGABYTE
    max_image_size: int = 5 * MEGABYTE
    allowed_mime_types: list[str] = Field(
        default=[
            "image/jpeg",
            "image/png",
            "image/gif",
            "image/webp",
            "application/pdf",
            "text/plain",
            "text/markdown",
            "application/msword",
            "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
            "application/vnd.openxmlformats-officedocument.presentationml.presentation",
        ]
    )

    # AI proxy
    ai_max_text_length: int = 15000
    ai_max_pdf_size: int = 10 * MEGABYTE
    ai_rate_limit_per_minute: int = 10
    ai_request_timeout: float = 60.0
    openai_base_url: str = "https://api.openai.com/v1"
    openai_model: str = "gpt-3.5-turbo"
    gemini_base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    gemini_model: str = "gemini-pro"

    # Realtime
    realtime_heartbeat_seconds: float = 30.0
    realtime_idle_timeout_seconds: float = 90.0
    realtime_max_subscriptions: int = 50

    @field_validator("cors_origins", mode="before")
    @classmethod
    def parse_cors_origins(cls, v: str | list[str]) -> list[str]:
        """Parse CORS origins from comma-separated string or list."""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",")]
        return v

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == "development"

    @property
    def is_testing(self) -> bool:
        """Check if running in testing environment."""
        return self.environment == "testing"

    @model_validator(mode="after")
    def validate_sqlite_workers(self) -> "Settings":
        """Validate that SQLite is not used with multiple workers."""
        if self.workers > 1 and self.database_url.startswith("sqlite"):
            raise ValueError(
                "SQLite does not support multiple worker processes. "
                f"Requested {self.workers} workers, but SQLite requires workers=1. "
                "Either use --workers 1 or switch to PostgreSQL."
            )
        return self

    @model_validator(mode="after")
    def validate_page_sizes(self) -> "Settings":
        """The default page size must fit inside the maximum page size."""
        if self.message_page_size > self.max_page_size:
            raise ValueError("message_page_size cannot exceed max_page_size")
        return self


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    This function caches the settings instance to avoid reloading
    configuration on every call. Settings are loaded once at startup.

    Returns:
        Settings: Cached application settings instance.
    """
    return Settings()
