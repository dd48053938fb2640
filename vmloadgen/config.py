"""
Configuration settings for the VictoriaMetrics load generator.

Uses Pydantic Settings to load environment variables for the backend endpoint,
load shape, and logging. Defaults reproduce the fixed behavior of the harness,
so running without any environment yields the stock four-tier load against
a local VictoriaMetrics.
"""
from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Backend
    vm_base_url: str = Field("http://localhost:8428", alias="VM_BASE_URL")
    vm_write_path: str = Field("/influx/api/v2/write", alias="VM_WRITE_PATH")
    vm_request_timeout_seconds: float = Field(30.0, alias="VM_REQUEST_TIMEOUT_SECONDS")

    # Load shape
    measurement: str = Field("Performance", alias="LOADGEN_MEASUREMENT")
    pool_size: int = Field(10_000, alias="LOADGEN_POOL_SIZE")
    chunk_size: int = Field(1000, alias="LOADGEN_CHUNK_SIZE")
    seed: Optional[int] = Field(None, alias="LOADGEN_SEED")
    timing_tier: str = Field("fast", alias="LOADGEN_TIMING_TIER")

    # Application
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    log_json: bool = Field(False, alias="LOG_JSON")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Retrieve a cached instance of Settings to avoid repeated env parsing.
    """
    return Settings()


__all__ = ["Settings", "get_settings"]
