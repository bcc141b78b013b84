"""Runtime settings."""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import AliasChoices, Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    model_config = SettingsConfigDict(
        env_prefix="CATALOGSYNC_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    github_token: SecretStr | None = Field(
        default=None,
        validation_alias=AliasChoices("github_token", "CATALOGSYNC_GITHUB_TOKEN", "GITHUB_TOKEN"),
    )
    github_api_url: str = "https://api.github.com"
    request_timeout: float = Field(default=30.0, ge=1, le=120)
    rate_limit_per_second: float = Field(default=10.0, gt=0)
    max_connections: int = Field(default=20, ge=1, le=200)

    quality_threshold: int = Field(default=5, ge=0)

    search_per_page: int = Field(default=100, ge=1, le=100)
    search_max_pages: int = Field(default=10, ge=1, le=10)

    stars_concurrency: int = Field(default=10, ge=1, le=100)
    stars_batch_delay: float = Field(default=1.0, ge=0.0, le=60.0)
    stars_max_retries: int = Field(default=2, ge=0, le=10)
    stars_retry_base_delay: float = Field(default=10.0, ge=0.0, le=300.0)
    stars_retry_max_delay: float = Field(default=30.0, ge=0.0, le=600.0)

    content_max_retries: int = Field(default=2, ge=0, le=10)
    content_retry_base_delay: float = Field(default=2.0, ge=0.0, le=300.0)
    content_retry_max_delay: float = Field(default=30.0, ge=0.0, le=600.0)

    error_sample_size: int = Field(default=10, ge=0, le=1000)

    store_backend: Literal["local", "r2"] = "local"
    data_dir: Path = Path("./data")

    r2_endpoint_url: str | None = None
    r2_access_key_id: SecretStr | None = None
    r2_secret_access_key: SecretStr | None = None
    r2_bucket_name: str = "catalogsync-data"
    r2_prefix: str = ""
