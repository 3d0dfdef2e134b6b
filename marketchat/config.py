"""
Application configuration using Pydantic Settings.
Loads configuration from environment variables with validation.
"""
from typing import List
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Environment
    environment: str = Field(default="development", description="Environment: development, staging, production")
    debug: bool = Field(default=False, description="Debug mode")

    # Database
    database_url: str = Field(..., description="Async database connection URL")

    # Redis (display name cache, optional)
    redis_url: str = Field(default="", description="Redis connection URL (empty disables the cache)")
    redis_password: str = Field(default="", description="Redis password")

    # Security
    jwt_secret: str = Field(..., min_length=32, description="JWT secret key (min 32 chars)")
    jwt_algorithm: str = Field(default="HS256", description="JWT algorithm")
    jwt_expiration_hours: int = Field(default=24, description="JWT expiration time in hours")

    # CORS
    allowed_origins: str = Field(
        default="http://localhost:3000",
        description="Comma-separated list of allowed CORS origins"
    )

    # Transport-level throttle applied per client address
    api_rate_limit: str = Field(default="120/minute", description="slowapi limit string for API routes")

    # Messaging rules
    message_max_length: int = Field(default=2000, description="Maximum message body length after trimming")
    message_edit_window_seconds: int = Field(default=600, description="How long a sender may edit a message")
    message_rate_limit_count: int = Field(default=10, description="Messages allowed per sender per conversation per window")
    message_rate_limit_window_seconds: int = Field(default=60, description="Sliding rate-limit window in seconds")
    conversation_create_max_attempts: int = Field(default=3, description="Insert attempts before giving up on a contended conversation key")

    # Presentation fallbacks
    default_display_name: str = Field(default="User", description="Name shown when a user has no display name")
    deleted_message_placeholder: str = Field(default="Message deleted", description="Body rendered for soft-deleted messages")

    # Cache TTL (in seconds)
    cache_display_name_ttl: int = Field(default=600, description="Display name cache TTL in seconds")

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(default="json", description="Log format: json or text")

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        """Only json and text formats are supported."""
        v = v.lower()
        if v not in ("json", "text"):
            raise ValueError("log_format must be 'json' or 'text'")
        return v

    def get_allowed_origins_list(self) -> List[str]:
        """Parse comma-separated CORS origins into a list."""
        return [origin.strip() for origin in self.allowed_origins.split(",") if origin.strip()]


# Global settings instance
settings = Settings()

