"""Application configuration using Pydantic Settings.

Reads configuration from environment variables (prefixed ``CATALOG_``)
with sensible defaults. The store auth token should be provided via the
environment, never committed.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="CATALOG_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # =========================================================================
    # Application
    # =========================================================================
    environment: Literal["prod", "staging", "dev"] = Field(
        default="dev",
        description="Environment name",
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode",
    )

    # =========================================================================
    # Record store
    # =========================================================================
    store_url: str = Field(
        default="http://127.0.0.1:8090",
        description="Record store base URL",
    )
    store_auth_token: str | None = Field(
        default=None,
        description="Auth token for the record store (anonymous when unset)",
    )
    store_timeout: float | None = Field(
        default=None,
        description="Request timeout in seconds (None disables the timeout)",
    )
    products_collection: str = Field(default="products")
    brands_collection: str = Field(default="brands")
    categories_collection: str = Field(default="categories")
    subcategories_collection: str = Field(default="subcategories")

    # =========================================================================
    # Editing
    # =========================================================================
    inline_edit_grace_seconds: float = Field(
        default=0.15,
        ge=0.0,
        description="Delay before a blur commits an inline edit",
    )
    max_upload_bytes: int = Field(
        default=5 * 1024 * 1024,
        gt=0,
        description="Largest accepted photo upload in bytes",
    )
    preview_max_size: int = Field(
        default=256,
        gt=0,
        description="Longest edge in pixels of upload previews",
    )

    # =========================================================================
    # Preferences
    # =========================================================================
    preferences_path: str = Field(
        default="./.catalog_preferences.yaml",
        description="YAML file holding the persisted view mode",
    )

    # =========================================================================
    # Logging
    # =========================================================================
    log_level: str = Field(
        default="INFO",
        description="Log level (DEBUG, INFO, WARNING, ERROR)",
    )
    log_json: bool = Field(
        default=True,
        description="Output logs as JSON",
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Singleton instance for convenience
settings = get_settings()
