"""Runtime settings loaded from EVENTCHAT_* environment variables and .env."""

from pathlib import Path
from typing import Annotated

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

BASE_DIR = Path(__file__).resolve().parent

DEFAULT_SYSTEM_PROMPT = "You are a helpful AI assistant."


class Settings(BaseSettings):
    db_path: str = "eventchat.db"
    provider: str | None = None  # "openai" | "anthropic"; None = first with a key
    model: str | None = None  # None = provider default
    system_prompt: str = DEFAULT_SYSTEM_PROMPT
    max_tokens: int = 2048
    log_level: str = "INFO"
    # Comma-separated in the environment
    cors_origins: Annotated[list[str], NoDecode] = ["http://localhost:3000"]

    # Provider keys keep their SDK names, without the EVENTCHAT_ prefix
    openai_api_key: str | None = Field(default=None, validation_alias="OPENAI_API_KEY")
    anthropic_api_key: str | None = Field(default=None, validation_alias="ANTHROPIC_API_KEY")

    model_config = SettingsConfigDict(
        env_prefix="EVENTCHAT_",
        env_file=str(BASE_DIR.parent / ".env"),
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        extra="ignore",
    )

    @field_validator("provider")
    @classmethod
    def _lower_provider(cls, v: str | None) -> str | None:
        return v.lower() if v else v

    @field_validator("log_level")
    @classmethod
    def _upper_log_level(cls, v: str) -> str:
        return v.upper()

    @field_validator("cors_origins", mode="before")
    @classmethod
    def _split_origins(cls, v: object) -> object:
        if isinstance(v, str):
            return [o.strip() for o in v.split(",") if o.strip()]
        return v
