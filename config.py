"""Studio configuration from environment variables and the local ``.env``."""

from __future__ import annotations

from pathlib import Path

from dotenv import load_dotenv
from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

BASE_DIR = Path(__file__).parent
ENV_PATH = BASE_DIR / ".env"
TEMPLATES_DIR = BASE_DIR / "templates"

load_dotenv(ENV_PATH)


class Settings(BaseSettings):
    gemini_api_key: str = Field(
        "",
        validation_alias=AliasChoices("GEMINI_API_KEY", "GOOGLE_AI_STUDIO_API"),
    )

    text_model: str = "gemini-2.5-flash"
    image_model: str = "imagen-4.0-generate-001"
    edit_model: str = "gemini-2.5-flash-image-preview"

    # Milliseconds; 0 disables the client timeout.
    request_timeout_ms: int = Field(0, ge=0)
    history_capacity: int = Field(8, ge=1)
    log_level: str = "info"

    model_config = SettingsConfigDict(
        env_prefix="STUDIO_",
        env_ignore_empty=True,
        str_strip_whitespace=True,
        extra="ignore",
    )


def get_settings() -> Settings:
    """Read the environment afresh, so a key saved at runtime is picked up."""
    return Settings()
