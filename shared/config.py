"""
Shared configuration management for the Recipes API.
"""

from typing import Optional

from pydantic import Field, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_prefix="RECIPES_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )

    # Environment
    env: str = Field(default="local")
    log_level: str = Field(default="info")

    # Backends
    store_backend: str = Field(default="postgres", description="postgres | memory")
    cache_backend: str = Field(default="redis", description="redis | memory")

    # External services
    postgres_dsn: str = Field(default="postgresql://localhost:5432/recipes")
    redis_url: str = Field(default="redis://localhost:6379/0")
    db_namespace: str = Field(default="demo", description="Postgres schema holding the collections")
    listing_cache_key: str = Field(default="recipes")

    # Security
    jwt_secret: Optional[SecretStr] = Field(default=None)
    issue_ttl_seconds: int = Field(default=600)
    refresh_ttl_seconds: int = Field(default=300)
    refresh_window_seconds: int = Field(default=30)

    @model_validator(mode="after")
    def _check_token_lifetimes(self):
        if min(self.issue_ttl_seconds, self.refresh_ttl_seconds, self.refresh_window_seconds) <= 0:
            raise ValueError("token lifetimes must be positive")
        # A refreshed token must outlive the one it replaces.
        if self.refresh_ttl_seconds <= self.refresh_window_seconds:
            raise ValueError("refresh_ttl_seconds must exceed refresh_window_seconds")
        if self.store_backend not in ("postgres", "memory"):
            raise ValueError(f"unknown store backend: {self.store_backend}")
        if self.cache_backend not in ("redis", "memory"):
            raise ValueError(f"unknown cache backend: {self.cache_backend}")
        return self


class ServiceConfig(BaseConfig):
    """Service-specific configuration."""

    service_name: str
    port: int
    host: str = "0.0.0.0"

    def __init__(self, service_name: str, port: int, **kwargs):
        super().__init__(service_name=service_name, port=port, **kwargs)


def get_config(service_name: str, port: int, **overrides) -> ServiceConfig:
    """Get configuration for a specific service."""
    return ServiceConfig(service_name=service_name, port=port, **overrides)
