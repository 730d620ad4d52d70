"""Configuration models for the routing service."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

_BROWSER_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36"
)


class RoutingConfig(BaseModel):
    """Configures request validation and decision defaults."""

    default_media_prompt: str = Field(default="Process this", min_length=1)


class MediaConfig(BaseModel):
    """Configures media download, temp storage and anonymous upload."""

    timeout_seconds: float = Field(default=60.0, gt=0.0)
    user_agent: str = _BROWSER_USER_AGENT
    temp_dir: Path = Path("temp")
    upload_url: str = "https://uguu.se/upload.php"


class Settings(BaseSettings):
    """Process settings read from the environment or a `.env` file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    openai_api_key: str | None = None
    openai_model: str = "gpt-4o-mini"
    oracle_model: str | None = Field(
        default=None, description="Classifier model; falls back to `openai_model`."
    )
    think_model: str | None = Field(
        default=None, description="Reasoning model for `thinkgen`; unset disables it."
    )

    gemini_api_key: str | None = None
    gemini_model: str = "gemini-2.0-flash"
    gemini_image_model: str = "gemini-2.0-flash-preview-image-generation"

    telegram_bot_token: str | None = None
    telegram_command: str = "gemini"

    data_dir: Path = Path("data")
    temp_dir: Path = Path("temp")
    upload_url: str = "https://uguu.se/upload.php"
    http_timeout_seconds: float = Field(default=60.0, gt=0.0)

    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 3000

    def media_config(self) -> MediaConfig:
        return MediaConfig(
            timeout_seconds=self.http_timeout_seconds,
            temp_dir=self.temp_dir,
            upload_url=self.upload_url,
        )
