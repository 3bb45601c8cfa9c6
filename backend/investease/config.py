import os
from functools import lru_cache
from typing import Optional
from urllib.parse import urlparse

from pydantic import AliasChoices, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings

DEFAULT_APP_URL = "http://localhost:3000"


def normalize_app_url(raw: Optional[str]) -> str:
    """Strip trailing slashes and fall back to the local dev URL when unusable."""
    normalized = (raw or "").strip().rstrip("/")
    if not normalized:
        return DEFAULT_APP_URL
    parsed = urlparse(normalized)
    if parsed.scheme not in {"http", "https"} or not parsed.netloc:
        return DEFAULT_APP_URL
    return normalized


class Settings(BaseSettings):
    openai_api_key: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("OPEN_AI_API_KEY", "OPENAI_API_KEY"),
    )
    app_url: str = Field(DEFAULT_APP_URL, alias="INVESTEASE_APP_URL")
    coach_model: str = Field("gpt-4o-mini", alias="INVESTEASE_COACH_MODEL")
    coach_temperature: float = Field(0.3, ge=0.0, le=2.0, alias="INVESTEASE_COACH_TEMPERATURE")
    coach_lesson_limit: int = Field(4, ge=1, alias="INVESTEASE_COACH_LESSON_LIMIT")

    class Config:
        env_file = os.getenv("ENV_FILE", ".env")
        env_file_encoding = "utf-8"
        case_sensitive = True
        extra = "ignore"
        populate_by_name = True

    @field_validator("openai_api_key", mode="before")
    @classmethod
    def _blank_key_is_missing(cls, value: Optional[str]) -> Optional[str]:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("app_url", mode="before")
    @classmethod
    def _normalize_app_url(cls, value: Optional[str]) -> str:
        return normalize_app_url(value)

    @property
    def coaching_enabled(self) -> bool:
        return bool(self.openai_api_key)


@lru_cache
def get_settings() -> Settings:
    try:
        settings = Settings()  # type: ignore[call-arg]
        if settings.openai_api_key and not os.getenv("OPENAI_API_KEY"):
            os.environ["OPENAI_API_KEY"] = settings.openai_api_key
        return settings
    except ValidationError as exc:
        raise RuntimeError(f"Invalid backend configuration: {exc}") from exc
