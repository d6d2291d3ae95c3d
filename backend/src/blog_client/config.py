"""Client configuration, read from `BLOG_*` environment variables."""
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def _default_session_file() -> Path:
    return Path.home() / ".blog_client" / "session.json"


class ClientConfig(BaseSettings):
    """
    Settings for BlogClient.

    Example:
        BLOG_BASE_URL=https://blog.example.com BLOG_TIMEOUT=5 python app.py
    """

    model_config = SettingsConfigDict(
        env_prefix="BLOG_",
        env_file=".env",
        extra="ignore",
    )

    base_url: str = "http://localhost:8000"
    timeout: float = 10.0
    session_file: Path = Field(default_factory=_default_session_file)
