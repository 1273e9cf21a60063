"""Configuration management for the application."""

from functools import lru_cache

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Server
    port: int = Field(default=5000)

    # Database
    mongodb_uri: str = Field(default="mongodb://localhost:27017")
    mongodb_database: str = Field(default="giftshop")

    # JWT
    jwt_secret: str = Field(default="change-me-in-production")
    jwt_algorithm: str = Field(default="HS256")
    jwt_expiration_minutes: int = Field(default=60)

    # Pagination
    req_limit: int = Field(default=50, ge=1)

    # API
    environment: str = Field(default="development")
    cors_origins: str = Field(default="*")

    @model_validator(mode="after")
    def validate_production_settings(self) -> "Settings":
        """Validate that production has secure settings."""
        if self.environment == "production":
            if self.jwt_secret == "change-me-in-production":  # noqa: S105
                raise ValueError("JWT_SECRET must be changed in production")
            if "localhost" in self.mongodb_uri:
                raise ValueError("MONGODB_URI should not use localhost in production")
        return self

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse the comma-separated CORS origins."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == "development"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
