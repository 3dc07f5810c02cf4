"""Note store configuration loaded from environment variables."""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from .env file."""

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "env_prefix": "NOTES_",
        "extra": "ignore",
    }

    # Storage
    storage_backend: Literal["file", "memory", "redis"] = "file"
    data_dir: Path = Path("data")
    store_key: str = "NOTES_KEY"

    # Redis
    redis_url: str = "redis://localhost:6379"

    # Note defaults
    default_color: str = "#ffffff"
    copy_suffix: str = " (copy)"
    duplicate_keeps_pinned: bool = True

    # MCP server
    server_host: str = "0.0.0.0"
    server_port: int = 8001
    log_level: str = "INFO"


settings = Settings()
