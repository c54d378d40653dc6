from __future__ import annotations

from typing import Any

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def split_csv(raw: Any) -> list[str]:
    """Normalize a comma-separated env value (or an already-parsed list)."""
    if isinstance(raw, str):
        return [item.strip() for item in raw.split(",") if item.strip()]
    if isinstance(raw, (list, tuple, set, frozenset)):
        return [str(item).strip() for item in raw if str(item).strip()]
    return []


class Settings(BaseSettings):
    """
    Service wiring configuration.

    - Values loaded from `.env`
    - Comma-separated lists for multi-value settings like CORS_ORIGINS

    The access-control core never reads these; they only configure the
    FastAPI layer that feeds it.
    """

    # ----------------------------
    # Service
    # ----------------------------
    SERVICE_NAME: str = "herd-access"
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    # ----------------------------
    # CORS
    # ----------------------------
    # store as raw string list from env; we will normalize in code
    CORS_ORIGINS: Any = Field(default_factory=list)

    # ----------------------------
    # JWT
    # ----------------------------
    jwt_alg: str = "HS256"
    jwt_secret: str = "change-me"
    jwt_audience: str | None = None
    jwt_issuer: str | None = None

    # ----------------------------
    # Data scope
    # ----------------------------
    scope_field: str = "base_id"
    # resources visible across all bases, e.g. "news,suppliers"
    global_resources: Any = Field(default_factory=list)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @property
    def cors_origins(self) -> list[str]:
        return split_csv(self.CORS_ORIGINS)

    @property
    def global_resource_names(self) -> frozenset[str]:
        return frozenset(split_csv(self.global_resources))


_settings: Settings | None = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
