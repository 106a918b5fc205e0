"""
Configuration for the reliability diagram backend.

Settings come from environment variables (or a `.env` file), with defaults
suitable for a single local user:

- RELIABILITY_DATA_DIR: where the file store keeps its JSON files
- RELIABILITY_STORE: "file" (default) or "memory"
- RELIABILITY_LOG_LEVEL: logging level name (default INFO)
- RELIABILITY_HOST / RELIABILITY_PORT: bind address for `serve`
"""

import logging
from enum import Enum
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .store import JsonFileStore, KeyedStore, MemoryStore

DEFAULT_DATA_DIR = Path.home() / ".reliability-diagrams"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class StoreKind(str, Enum):
    """Backing store implementations."""
    FILE = "file"
    MEMORY = "memory"


class Settings(BaseSettings):
    """Backend settings loaded from RELIABILITY_* environment variables."""

    model_config = SettingsConfigDict(env_prefix="RELIABILITY_", env_file=".env", case_sensitive=False, extra="ignore")

    data_dir: Path = DEFAULT_DATA_DIR
    store: StoreKind = StoreKind.FILE
    log_level: str = "INFO"
    host: str = "127.0.0.1"
    port: int = Field(default=8765, ge=1, le=65535)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level: {v}")
        return level

    def create_store(self) -> KeyedStore:
        """Instantiate the configured KeyedStore."""
        if self.store == StoreKind.MEMORY:
            return MemoryStore()
        return JsonFileStore(self.data_dir)


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging for the CLI and the HTTP server."""
    logging.basicConfig(level=level, format=LOG_FORMAT)
