"""
Configuration settings for RawBencher.

Uses Pydantic Settings to load environment variables for database connections,
logging, and benchmark defaults.
"""
from __future__ import annotations

from functools import lru_cache
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Database
    db_host: str = Field("localhost", alias="DB_HOST")
    db_port: int = Field(5432, alias="DB_PORT")
    db_user: str = Field("postgres", alias="DB_USER")
    db_password: str = Field("postgres", alias="DB_PASSWORD")
    db_name: str = Field("adventureworks", alias="DB_NAME")
    db_connect_timeout: int = Field(10, alias="DB_CONNECT_TIMEOUT")

    # Application
    app_env: str = Field("development", alias="APP_ENV")
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    log_json: bool = Field(False, alias="LOG_JSON")

    # Benchmark defaults
    benchmark_individual_keys: int = Field(100, alias="BENCHMARK_INDIVIDUAL_KEYS")
    benchmark_loops: int = Field(10, alias="BENCHMARK_LOOPS")
    benchmark_warmup: bool = Field(True, alias="BENCHMARK_WARMUP")
    benchmark_pool_min_size: int = Field(1, alias="BENCHMARK_POOL_MIN_SIZE")
    benchmark_pool_max_size: int = Field(4, alias="BENCHMARK_POOL_MAX_SIZE")
    results_dir: str = Field("results", alias="RESULTS_DIR")

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
