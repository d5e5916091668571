"""
Base configuration settings.

Shared .env handling and the top-level APP settings (environment, debug,
log level) every config class inherits.

Dependencies: pydantic_settings
System role: Foundation for all configuration classes
"""

from pydantic import Field
from pydantic_settings import BaseSettings as PydanticBaseSettings, SettingsConfigDict


class BaseSettings(PydanticBaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    service_name: str = Field(
        default="dataset-pipeline",
        description="Name used for the Celery app and startup logs",
    )
    environment: str = Field(
        default="development",
        description="Deployment environment (development, staging, production)",
    )
    debug: bool = Field(
        default=False,
        description="Expose unexpected error messages in API responses",
    )
    log_level: str = Field(
        default="INFO",
        description="Root log level for the API and workers",
    )
