from __future__ import annotations
from functools import lru_cache
from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from camsync.endpoints import DEFAULT_ENDPOINTS
from camsync.schemas import Endpoint


class Settings(BaseSettings):
    """Runtime configuration, read from CAMSYNC_* environment variables."""

    model_config = SettingsConfigDict(env_prefix="CAMSYNC_", env_file=".env", extra="ignore")

    feed_url: str = "https://trafficnz.info/service/traffic/rest/4/cameras/all"
    base_url: str = "https://trafficnz.info"
    image_path_prefix: str = "/camera/images/"
    default_image_path: str = "/camera/images/"

    timeout_seconds: float = Field(default=10.0, gt=0)
    refresh_interval_seconds: float = Field(default=60.0, ge=0)  # 0 disables the scheduler
    cache_ttl_seconds: float = Field(default=60.0, ge=0)
    cache_max_entries: int = Field(default=8, ge=1)

    user_agent: str = "camsync/1.0"
    log_level: str = "INFO"

    endpoints: List[Endpoint] = Field(default_factory=lambda: list(DEFAULT_ENDPOINTS))

    @field_validator("base_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @field_validator("log_level")
    @classmethod
    def _upper_level(cls, value: str) -> str:
        return value.strip().upper()


@lru_cache
def get_settings() -> Settings:
    return Settings()
