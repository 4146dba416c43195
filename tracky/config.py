"""Configuration helpers for the tracker sync proxy."""

from functools import lru_cache
from pathlib import Path
from typing import Any

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Central application settings loaded from environment or .env file."""

    max_sources: int = Field(default=20, ge=1, le=20)
    aggregate_timeout_ms: int = Field(default=4000, gt=0)
    proxy_timeout_ms: int = Field(default=5000, gt=0)
    max_size_bytes: int = Field(default=512 * 1024, gt=0)
    content_sample_chars: int = Field(default=1000, ge=500, le=1000)
    sync_user_agent: str = "Tracky-Sync/1.0"
    proxy_user_agent: str = "Tracky-App/1.0 (Mozilla/5.0 Compatible)"
    source_cache_ttl_seconds: int = Field(default=3600, ge=0)
    response_max_age_seconds: int = Field(default=3600, ge=0)
    download_filename: str = "trackers_sync.txt"
    log_level: str = "INFO"
    uvicorn_host: str = "0.0.0.0"
    uvicorn_port: int = 8080

    model_config = SettingsConfigDict(
        env_prefix="TRACKY_",
        env_file=str(Path(__file__).resolve().parents[1] / ".env"),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def aggregate_timeout(self) -> float:
        return self.aggregate_timeout_ms / 1000

    @property
    def proxy_timeout(self) -> float:
        return self.proxy_timeout_ms / 1000


@lru_cache()
def get_settings(**overrides: Any) -> Settings:
    """Memoized settings accessor to avoid re-parsing env on every import."""
    return Settings(**overrides)
