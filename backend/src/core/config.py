"""Application configuration using pydantic-settings."""
from functools import lru_cache
from typing import Annotated, Literal

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

DEFAULT_JWT_SECRET = "dev-secret-change-me-before-deploying"  # noqa: S105


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Database
    database_url: str

    # Runtime
    environment: Literal["development", "production", "test"] = "development"
    log_level: str = "INFO"

    # CORS - comma-separated string or list
    cors_origins: Annotated[list[str], NoDecode] = ["http://localhost:5173"]

    # Auth
    jwt_secret_key: str = DEFAULT_JWT_SECRET
    jwt_algorithm: str = "HS256"
    jwt_expire_minutes: int = 60 * 24 * 7

    # Redis (upload quota counters)
    redis_url: str = "redis://localhost:6379"
    redis_enabled: bool = True
    upload_quota_per_hour: int = 20
    upload_quota_per_day: int = 100

    # Image hosting
    cloudinary_cloud_name: str = ""
    cloudinary_api_key: str = ""
    cloudinary_api_secret: str = ""
    cloudinary_folder: str = "blog"
    max_upload_bytes: int = 5 * 1024 * 1024

    @field_validator("cors_origins", mode="before")
    @classmethod
    def parse_cors_origins(cls, v: str | list[str]) -> list[str]:
        """Accept a comma-separated string or a list of origins."""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    @model_validator(mode="after")
    def check_production_secret(self) -> "Settings":
        """Refuse to run production with the development JWT secret."""
        if self.environment == "production" and self.jwt_secret_key == DEFAULT_JWT_SECRET:
            raise ValueError("JWT_SECRET_KEY must be set in production")
        return self

    @property
    def is_development(self) -> bool:
        """True when error details may be exposed to clients."""
        return self.environment == "development"

    @property
    def cloudinary_upload_url(self) -> str:
        """Cloudinary image upload endpoint for the configured cloud."""
        return f"https://api.cloudinary.com/v1_1/{self.cloudinary_cloud_name}/image/upload"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
