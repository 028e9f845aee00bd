"""Runtime configuration for the Catalog API."""
from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .utils.paths import default_database_url


class CatalogSettings(BaseSettings):
    """Environment-aware settings for the Catalog API service."""

    database_url: str = Field(
        default_factory=default_database_url,
        description="Connection URL for the catalog SQLite database.",
    )
    database_echo: bool = Field(
        default=False, description="Enable SQL echo for debugging queries."
    )
    database_timeout: float = Field(
        default=5.0,
        gt=0,
        description="Seconds a store operation may wait on a locked database before failing.",
    )
    lock_timeout: float = Field(
        default=10.0,
        gt=0,
        description="Seconds a structural mutation may wait for its collection lock.",
    )
    conflict_retries: int = Field(
        default=3,
        ge=0,
        description="Retries applied to membership writes that lost a version race.",
    )
    log_level: str = Field(default="INFO", description="Root log level for the service.")

    model_config = SettingsConfigDict(
        env_prefix="CATALOG_",
        env_file=".env",
        env_file_encoding="utf-8",
    )
