"""Configuration utilities for the analytics scheduler."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .models import Configuration

load_dotenv()


class Settings(BaseSettings):
    """Environment-backed settings, read with the ``OPINFO_`` prefix."""

    sampling_rate_with_exposure: float = Field(default=0.2, ge=0.0, lt=1.0)
    sampling_rate_without_exposure: float = Field(default=0.2, ge=0.0, lt=1.0)
    dummy_mean_delay: float = Field(default=30 * 86_400.0, gt=0.0)

    backend_base_url: str = Field(default="http://localhost:8000")
    request_timeout: float = Field(default=10.0, gt=0.0)

    state_path: Optional[Path] = Field(default=None)
    state_key: Optional[str] = Field(default=None)

    device_token_bytes: int = Field(default=32, gt=0)

    model_config = SettingsConfigDict(
        env_prefix="OPINFO_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @field_validator("state_path", mode="before")
    @classmethod
    def _optional_path(cls, value):
        if value in (None, ""):
            return None
        if isinstance(value, str):
            return Path(value).expanduser()
        if isinstance(value, Path):
            return value.expanduser()
        raise ValueError("state_path must be a filesystem path")

    @field_validator("backend_base_url")
    @classmethod
    def _strip_slash(cls, value: str) -> str:
        return value.rstrip("/")

    def configuration(self) -> Configuration:
        return Configuration(
            sampling_rate_with_exposure=self.sampling_rate_with_exposure,
            sampling_rate_without_exposure=self.sampling_rate_without_exposure,
            dummy_mean_delay=self.dummy_mean_delay,
        )


@lru_cache()
def get_settings() -> Settings:
    return Settings()


__all__ = ["Settings", "get_settings"]
