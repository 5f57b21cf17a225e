from __future__ import annotations

"""Environment-driven settings for the catalog admin."""

import os
from functools import lru_cache
from pathlib import Path
from typing import List, Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    ENV_STATE: Literal["dev", "test", "prod"] = "dev"

    # Tag carried by every notification this context emits.
    CONTEXT_SOURCE: str = "admin-panel"

    STORAGE_BACKEND: Literal["memory", "file"] = "file"
    STORAGE_DIR: Path = Path("data/storage")
    STORAGE_QUOTA_BYTES: int | None = Field(default=5 * 1024 * 1024, ge=1)

    PRODUCTS_KEY: str = "products"
    LEGACY_PRODUCT_KEYS: List[str] = Field(default_factory=lambda: ["siteProducts"])
    MIRROR_LEGACY_KEYS: bool = False

    BROADCAST_DELAY_SECONDS: float = Field(default=0.05, ge=0)
    EMBEDDED_PARENT: Literal["none", "same-origin", "isolated"] = "none"

    DEFAULT_CATEGORY: str = "camisas"
    DEFAULT_RATING: float = Field(default=4.5, ge=0, le=5)

    LOG_LEVEL: str = "INFO"
    LOG_DIR: Path = Path("logs")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


class TestingSettings(Settings):
    ENV_STATE: Literal["dev", "test", "prod"] = "test"
    STORAGE_BACKEND: Literal["memory", "file"] = "memory"
    BROADCAST_DELAY_SECONDS: float = 0.0


@lru_cache
def get_settings() -> Settings:
    env_state = os.getenv("ENV_STATE", "dev").lower()
    if env_state == "test":
        return TestingSettings()
    return Settings()
