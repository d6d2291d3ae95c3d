"""Tests for application configuration."""
import pytest
from pydantic import ValidationError

from core.config import DEFAULT_JWT_SECRET, Settings


class TestCorsOriginsParsing:
    """Tests for CORS origins parsing from environment variables."""

    def test_parse_single_origin_string(self) -> None:
        """Single origin string is parsed correctly."""
        settings = Settings(
            database_url="postgresql://test",
            cors_origins="http://localhost:5173",
        )
        assert settings.cors_origins == ["http://localhost:5173"]

    def test_parse_multiple_origins_comma_separated(self) -> None:
        """Multiple comma-separated origins are parsed correctly."""
        settings = Settings(
            database_url="postgresql://test",
            cors_origins="http://localhost:5173,https://example.com",
        )
        assert settings.cors_origins == [
            "http://localhost:5173",
            "https://example.com",
        ]

    def test_parse_origins_with_whitespace(self) -> None:
        """Whitespace around origins is stripped."""
        settings = Settings(
            database_url="postgresql://test",
            cors_origins="  http://localhost:5173 , https://example.com  ",
        )
        assert settings.cors_origins == [
            "http://localhost:5173",
            "https://example.com",
        ]

    def test_parse_origins_list_passthrough(self) -> None:
        """List of origins is passed through unchanged."""
        origins = ["http://localhost:5173", "https://example.com"]
        settings = Settings(
            database_url="postgresql://test",
            cors_origins=origins,
        )
        assert settings.cors_origins == origins

    def test_parse_empty_string(self) -> None:
        """Empty string results in empty list."""
        settings = Settings(
            database_url="postgresql://test",
            cors_origins="",
        )
        assert settings.cors_origins == []

    def test_parse_trailing_comma(self) -> None:
        """Trailing comma is handled (empty entries filtered)."""
        settings = Settings(
            database_url="postgresql://test",
            cors_origins="http://localhost:5173,",
        )
        assert settings.cors_origins == ["http://localhost:5173"]

    def test_default_cors_origins(self) -> None:
        """Default CORS origins is localhost:5173."""
        settings = Settings(database_url="postgresql://test")
        assert settings.cors_origins == ["http://localhost:5173"]


class TestSecuritySettings:
    """Tests for JWT and environment settings."""

    def test_default_secret_allowed_outside_production(self) -> None:
        """The development secret is accepted in development and test."""
        settings = Settings(
            _env_file=None,
            database_url="postgresql://test",
            environment="development",
        )
        assert settings.jwt_secret_key == DEFAULT_JWT_SECRET
        assert settings.is_development is True

    def test_default_secret_rejected_in_production(self) -> None:
        """Production refuses to start with the development secret."""
        with pytest.raises(ValidationError, match="JWT_SECRET_KEY must be set in production"):
            Settings(_env_file=None, database_url="postgresql://test", environment="production")

    def test_production_with_custom_secret(self) -> None:
        """A real secret makes production settings valid."""
        settings = Settings(
            _env_file=None,
            database_url="postgresql://test",
            environment="production",
            jwt_secret_key="a-long-random-secret",
        )
        assert settings.is_development is False

    def test_unknown_environment_rejected(self) -> None:
        """Only development, production and test are valid environments."""
        with pytest.raises(ValidationError):
            Settings(_env_file=None, database_url="postgresql://test", environment="staging")


class TestUploadSettings:
    """Tests for image upload configuration."""

    def test_upload_defaults(self) -> None:
        """Uploads default to 5 MB into the `blog` folder."""
        settings = Settings(_env_file=None, database_url="postgresql://test")
        assert settings.max_upload_bytes == 5 * 1024 * 1024
        assert settings.cloudinary_folder == "blog"

    def test_cloudinary_upload_url_property(self) -> None:
        """The upload URL is derived from the cloud name."""
        settings = Settings(
            _env_file=None,
            database_url="postgresql://test",
            cloudinary_cloud_name="demo",
        )
        assert settings.cloudinary_upload_url == (
            "https://api.cloudinary.com/v1_1/demo/image/upload"
        )
