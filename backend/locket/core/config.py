from __future__ import annotations

from functools import lru_cache
from typing import Any, List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    app_env: str = Field(default="dev", alias="APP_ENV")
    app_host: str = Field(default="0.0.0.0", alias="APP_HOST")
    app_port: int = Field(default=8000, alias="APP_PORT")
    # NOTE: Keep as string to avoid pydantic-settings JSON-decoding complex types from .env.
    cors_origins: str = Field(
        default="http://127.0.0.1:3000,http://localhost:3000",
        alias="CORS_ORIGINS",
    )
    db_url: str = Field(default="sqlite+aiosqlite:///./locket.db", alias="DB_URL")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    app_secret_key: str = Field(default="", alias="APP_SECRET_KEY")
    session_cookie_name: str = Field(default="locket-session", alias="SESSION_COOKIE_NAME")
    session_ttl_sec: int = Field(default=7 * 24 * 60 * 60, alias="SESSION_TTL_SEC")
    identity_provider_url: str = Field(default="", alias="IDENTITY_PROVIDER_URL")
    identity_provider_api_key: str = Field(default="", alias="IDENTITY_PROVIDER_API_KEY")
    identity_timeout_sec: float = Field(default=5.0, alias="IDENTITY_TIMEOUT_SEC")
    store_timeout_sec: float = Field(default=5.0, alias="STORE_TIMEOUT_SEC")
    google_maps_api_key: str = Field(default="", alias="GOOGLE_MAPS_API_KEY")
    geocode_base_url: str = Field(
        default="https://maps.googleapis.com", alias="GEOCODE_BASE_URL"
    )
    geocode_timeout_sec: float = Field(default=5.0, alias="GEOCODE_TIMEOUT_SEC")

    model_config = SettingsConfigDict(env_file=(".env", "backend/.env"), extra="ignore")

    def parsed_cors_origins(self) -> List[str]:
        """Return CORS origins parsed from env var.

        Supports comma-delimited strings (recommended) and JSON list strings.
        """

        raw = (self.cors_origins or "").strip()
        if not raw:
            return []
        if raw.startswith("["):
            try:
                import json

                value: Any = json.loads(raw)
                if isinstance(value, list):
                    items = [str(item).strip() for item in value]
                    return [item for item in items if item]
            except ValueError:
                pass
        return [item.strip() for item in raw.split(",") if item.strip()]

    @property
    def secure_cookies(self) -> bool:
        """Only mark cookies Secure outside local development."""

        return self.app_env.lower() in {"prod", "production"}


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached application settings."""

    return Settings()
