"""
Configuration and settings for the portfolio backend.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-backed settings for the FastAPI service."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    api_prefix: str = Field(default="/make-server")
    api_token: Optional[str] = Field(default=None)
    log_level: str = Field(default="INFO")

    # Development toggles
    use_in_memory_backends: bool = Field(default=False)

    # Key-value store (Redis first, then any SQLAlchemy URL)
    redis_url: Optional[str] = Field(default=None)
    redis_key_namespace: str = Field(default="portfolio")
    database_url: Optional[str] = Field(default=None)

    # S3-compatible object storage
    s3_endpoint: Optional[str] = Field(default=None)
    s3_region: Optional[str] = Field(default=None)
    s3_addressing_style: str = Field(default="auto")
    aws_access_key_id: Optional[str] = Field(default=None)
    aws_secret_access_key: Optional[str] = Field(default=None)

    certificates_bucket: str = Field(default="portfolio-certificates")
    project_media_bucket: str = Field(default="portfolio-projects")

    # Signed URL lifetimes, in seconds
    upload_signed_url_expiry: int = Field(default=365 * 24 * 60 * 60)
    fetch_signed_url_expiry: int = Field(default=60 * 60)

    # New-message notifications
    notification_email: Optional[str] = Field(default=None)
    notification_webhook_url: Optional[str] = Field(default=None)
    notification_timeout: float = Field(default=10.0)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
