"""
Authentication configuration settings.

Bearer tokens are issued by the identity service; this API only verifies
them with the shared secret.

Dependencies: pydantic, pydantic_settings
System role: Token verification configuration
"""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class AuthSettings(BaseSettings):
    """JWT verification settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="AUTH_",
        case_sensitive=False,
        extra="ignore",
    )

    jwt_secret: str = Field(
        default="dev-only-secret-change-me-0123456789abcdef",
        description="Shared HMAC secret for bearer token verification",
    )
    jwt_algorithm: str = Field(default="HS256", description="JWT signing algorithm")

    @field_validator("jwt_secret")
    @classmethod
    def validate_secret_length(cls, value: str) -> str:
        """Reject secrets too short to be safe for HMAC signing."""
        if len(value) < 32:
            raise ValueError("jwt_secret must be at least 32 characters")
        return value
