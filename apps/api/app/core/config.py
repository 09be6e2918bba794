"""Application configuration for the broadcast signaling relay."""
from __future__ import annotations

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    app_env: str = Field(default="development")
    cors_allow_origins: list[str] = Field(default_factory=lambda: ["*"])
    log_level: str = Field(default="INFO")

    database_url: str = Field(default="sqlite+aiosqlite:///./broadcast.db")
    database_ssl_required: bool = Field(default=False)

    # Overrides the request host when building share links, e.g. behind a proxy.
    public_base_url: str = Field(default="")
    ice_servers: list[str] = Field(default_factory=lambda: ["stun:stun.l.google.com:19302"])

    @field_validator("cors_allow_origins", "ice_servers", mode="before")
    @classmethod
    def _split_csv(cls, value: object) -> object:
        """Allow comma-separated env values for list settings."""

        if isinstance(value, str):
            parts = [item.strip() for item in value.split(",") if item.strip()]
            return parts
        return value

    @property
    def database_async_url(self) -> str:
        """Return the database URL with an async driver selected."""

        url = self.database_url
        if url.startswith("postgres://"):
            return "postgresql+asyncpg://" + url[len("postgres://"):]
        if url.startswith("postgresql://"):
            return "postgresql+asyncpg://" + url[len("postgresql://"):]
        return url


@lru_cache
def get_settings() -> Settings:
    """Return cached settings instance."""

    return Settings()


settings = get_settings()
