"""
Application configuration loaded from environment variables.
"""

from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Planning server configuration."""

    model_config = SettingsConfigDict(env_prefix="PLANNING_", env_file=".env", extra="ignore")

    # Store location: <project_path>/<planning_dir>/<database_name>
    project_path: str = "."
    planning_dir: str = ".planning"
    database_name: str = "database.db"

    # Used when a caller does not name a branch (no git detection here)
    default_branch: str = "main"

    # Logging
    log_level: str = "info"
    log_format: Literal["json", "text"] = "json"

    # Server
    host: str = "127.0.0.1"
    port: int = 8765
    debug: bool = False


@lru_cache
def get_settings() -> Settings:
    return Settings()
