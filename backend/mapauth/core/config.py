"""
Application configuration using Pydantic Settings.
All configuration is loaded from environment variables with sensible defaults.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, RedisDsn
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Template and signature storage share a single Redis deployment; the
    logical database of each store can be overridden independently.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ==========================================================================
    # Core Application Settings
    # ==========================================================================
    environment: Literal["development", "staging", "production"] = "development"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # API Configuration
    api_v1_prefix: str = "/api/v1"
    project_name: str = "Map Template Authorization"
    version: str = "0.1.0"

    # ==========================================================================
    # Redis Configuration
    # ==========================================================================
    redis_url: RedisDsn = Field(default=RedisDsn("redis://localhost:6379/0"))
    redis_max_connections: int = Field(default=50, ge=1, le=10000)
    redis_signatures_db: int = Field(
        default=0,
        ge=0,
        description="Logical database holding certificates and signatures",
    )
    redis_templates_db: int = Field(
        default=0,
        ge=0,
        description="Logical database holding templates and template locks",
    )

    # ==========================================================================
    # Certificate Configuration
    # ==========================================================================
    certificate_canonicalization: Literal["json-stringify", "rfc8785"] = Field(
        default="json-stringify",
        description=(
            "Serialization used to derive certificate ids. json-stringify keeps "
            "ids compatible with certificates already stored in Redis."
        ),
    )


@lru_cache
def get_settings() -> Settings:
    """
    Get cached application settings.

    Uses LRU cache to avoid re-reading environment variables on every call.
    """
    return Settings()
