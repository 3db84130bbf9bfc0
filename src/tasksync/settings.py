"""
Runtime configuration.

Values are read from the environment (prefix ``TASKSYNC_``) or a ``.env``
file in the working directory.

Environment Variables:
    TASKSYNC_DATABASE_PATH: SQLite file holding the local store
    TASKSYNC_REMOTE_CLIENT: "module:factory" path of the remote calendar client
    TASKSYNC_AUTO_SYNC: Enable the periodic sync timer
    TASKSYNC_SYNC_INTERVAL_MINUTES: Minutes between automatic syncs
    TASKSYNC_CONNECTIVITY_PROBE_HOST / _PORT / _INTERVAL: TCP reachability probe
    TASKSYNC_LOG_LEVEL: Root log level for the server
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from tasksync.constants import DEFAULT_PROBE_INTERVAL_SECONDS, DEFAULT_SYNC_INTERVAL_MINUTES


class Settings(BaseSettings):
    """tasksync settings."""

    model_config = SettingsConfigDict(
        env_prefix="TASKSYNC_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    database_path: Path = Field(
        default=Path.home() / ".local" / "share" / "tasksync" / "tasksync.db",
        description="SQLite database file for the local store",
    )
    remote_client: str | None = Field(
        default=None,
        description="Import path of the remote calendar client factory, e.g. 'mypkg.caldav:create_client'",
    )
    auto_sync: bool = Field(default=True, description="Run full syncs on a timer")
    sync_interval_minutes: int = Field(
        default=DEFAULT_SYNC_INTERVAL_MINUTES,
        ge=0,
        description="Minutes between automatic syncs (0 disables the timer)",
    )
    connectivity_probe_host: str | None = Field(
        default=None,
        description="Host used to detect connectivity; unset means always online",
    )
    connectivity_probe_port: int = Field(default=443, ge=1, le=65535)
    connectivity_probe_interval: float = Field(default=DEFAULT_PROBE_INTERVAL_SECONDS, gt=0)
    log_level: str = Field(default="INFO")


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
