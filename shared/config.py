"""
Shared configuration management for the module bundler gateway.
"""

from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_prefix="BUNDLER_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )

    # Environment
    env: str = "local"
    log_level: str = "info"

    # Namespaces and their backend stores
    root_uri: Optional[str] = None
    root_path: str = "root"
    library_uri: Optional[str] = None
    library_path: str = "library"

    # Absolute redirect locations are opt-in
    base_uri: Optional[str] = None

    # Bundle associations
    manifest_uri: Optional[str] = None

    # Backend fetches
    request_timeout: float = 10.0
    user_agent: str = "module-bundler"


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
