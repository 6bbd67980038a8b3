"""Settings and logging configuration."""
import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import ConfigDict, Field
from pydantic_settings import BaseSettings


def _default_database_path() -> str:
    # /app/data is the mounted volume in Docker/Railway, local file otherwise
    data_dir = Path("/app/data")
    if data_dir.exists():
        return str(data_dir / "steps.db")
    return "steps.db"


class Settings(BaseSettings):
    """Application settings, read from the environment (and .env outside tests)."""

    model_config = ConfigDict(
        env_file=".env" if os.getenv("ENVIRONMENT") != "test" else None,
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    database_path: str = Field(default_factory=_default_database_path)
    database_url: Optional[str] = None

    # Shared secret for mutating endpoints, disabled when unset
    pedometer_secret: Optional[str] = None

    purge_on_startup: bool = True
    log_level: str = "INFO"
    port: int = 3003

    @property
    def resolved_database_url(self) -> str:
        if self.database_url:
            return self.database_url
        return f"sqlite+aiosqlite:///{self.database_path}"


@lru_cache()
def get_settings() -> Settings:
    return Settings()


def configure_logging(level: str = "INFO") -> None:
    """Configure the root logger once; later calls only adjust the level."""
    root = logging.getLogger()
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)-8s %(name)s: %(message)s")
        )
        root.addHandler(handler)
    root.setLevel(level.upper())
