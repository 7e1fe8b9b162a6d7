"""Application settings management leveraging pydantic v2."""

from __future__ import annotations

import os
from functools import lru_cache

from dotenv import load_dotenv
from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

if os.getenv("ENV", "development") in {"development", "dev", "local"}:
    load_dotenv(override=False)


class AppSettings(BaseSettings):
    """Typed configuration sourced from environment variables."""

    app_name: str = Field(
        default="Path to Authenticity",
        validation_alias=AliasChoices("APP_NAME", "AUTHENTIC_APP_NAME"),
    )
    environment: str = Field(
        default="development",
        validation_alias=AliasChoices("ENVIRONMENT", "AUTHENTIC_ENVIRONMENT"),
    )
    supabase_url: str = Field(
        default="http://localhost:54321",
        validation_alias=AliasChoices("SUPABASE_URL", "AUTHENTIC_SUPABASE_URL"),
    )
    supabase_service_key: str = Field(
        default="changeme",
        validation_alias=AliasChoices(
            "SUPABASE_SERVICE_KEY", "SUPABASE_SERVICE_ROLE_KEY", "AUTHENTIC_SUPABASE_SERVICE_KEY"
        ),
    )
    openrouter_api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("OPENROUTER_API_KEY", "AUTHENTIC_OPENROUTER_API_KEY"),
    )
    openrouter_base_url: str = Field(
        default="https://openrouter.ai/api/v1",
        validation_alias=AliasChoices("OPENROUTER_BASE_URL", "AUTHENTIC_OPENROUTER_BASE_URL"),
    )
    model_chat: str = Field(
        default="meta-llama/llama-4-maverick:free",
        validation_alias=AliasChoices("MODEL_CHAT", "AUTHENTIC_MODEL_CHAT"),
    )
    app_url: str = Field(
        default="http://localhost:8081",
        validation_alias=AliasChoices("APP_URL", "AUTHENTIC_APP_URL"),
    )
    llm_timeout: float = Field(
        default=60.0,
        validation_alias=AliasChoices("LLM_TIMEOUT", "AUTHENTIC_LLM_TIMEOUT"),
    )
    llm_max_retries: int = Field(
        default=1,
        ge=0,
        validation_alias=AliasChoices("LLM_MAX_RETRIES", "AUTHENTIC_LLM_MAX_RETRIES"),
    )
    llm_retry_backoff: float = Field(
        default=0.5,
        ge=0.0,
        validation_alias=AliasChoices("LLM_RETRY_BACKOFF", "AUTHENTIC_LLM_RETRY_BACKOFF"),
    )
    # Prior chat messages replayed to the model alongside the journal context.
    chat_history_window: int = Field(
        default=10,
        ge=0,
        validation_alias=AliasChoices("CHAT_HISTORY_WINDOW", "AUTHENTIC_CHAT_HISTORY_WINDOW"),
    )
    entry_summary_chars: int = Field(
        default=200,
        gt=0,
        validation_alias=AliasChoices("ENTRY_SUMMARY_CHARS", "AUTHENTIC_ENTRY_SUMMARY_CHARS"),
    )
    # Users whose in-memory reflection and chat state is kept; least recently used are evicted.
    registry_max_users: int = Field(
        default=1024,
        ge=1,
        validation_alias=AliasChoices("REGISTRY_MAX_USERS", "AUTHENTIC_REGISTRY_MAX_USERS"),
    )
    demo_mode: bool = Field(
        default=False,
        validation_alias=AliasChoices("DEMO_MODE", "AUTHENTIC_DEMO_MODE"),
    )
    demo_user_id: str | None = Field(
        default=None,
        validation_alias=AliasChoices("DEMO_USER_ID", "AUTHENTIC_DEMO_USER_ID"),
    )

    model_config = SettingsConfigDict(
        env_file=(".env", "authentic/.env"),
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )


@lru_cache(maxsize=1)
def get_settings() -> AppSettings:
    """Load environment variables and return a cached settings instance."""

    return AppSettings()


__all__ = ["AppSettings", "get_settings"]
