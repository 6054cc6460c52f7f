"""Centralized application configuration using Pydantic Settings (v2).

This module exposes a single, cached `settings` instance that reads from:
- Real environment variables (highest precedence)
- `.env` files at the repository root: .env, .env.local, .env.dev/.env.test/.env.prod
"""

from __future__ import annotations

import logging
import os
from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

EnvName = Literal["dev", "test", "prod"]
LogLevelName = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

#: Month/day/year pattern used when neither the config nor the env sets one.
DEFAULT_DATE_FORMAT = "MM/DD/YYYY"


class Settings(BaseSettings):
    """Typed application configuration loaded from env and `.env` files.

    Attributes
    ----------
    environment : EnvName
        Runtime environment flag; maps from `TIMELINE_ENV`.
    log_level : LogLevelName
        Global log level string; maps from `LOG_LEVEL`.
    date_format : str
        Fallback display pattern for event dates; maps from `TIMELINE_DATE_FORMAT`.
    date_utc : bool
        Interpret event dates as UTC (default) or local time; maps from `TIMELINE_DATE_UTC`.
    registry_path : str
        Location of the application registry file; maps from `TIMELINE_REGISTRY`.
    app_id : Optional[str]
        Application id to pick from the registry; maps from `TIMELINE_APP`.
    """

    environment: EnvName = Field(default="dev", alias="TIMELINE_ENV")
    log_level: LogLevelName = Field(default="INFO", alias="LOG_LEVEL")
    date_format: str = Field(default=DEFAULT_DATE_FORMAT, alias="TIMELINE_DATE_FORMAT")
    date_utc: bool = Field(default=True, alias="TIMELINE_DATE_UTC")
    registry_path: str = Field(default="config/registry.yml", alias="TIMELINE_REGISTRY")
    app_id: str | None = Field(default=None, alias="TIMELINE_APP")

    model_config = SettingsConfigDict(
        env_file=(".env", ".env.local", ".env.dev", ".env.test", ".env.prod"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @property
    def is_dev(self) -> bool:
        """Return True if running in the development environment."""
        return self.environment == "dev"

    @property
    def is_test(self) -> bool:
        """Return True if running in the test environment."""
        return self.environment == "test"

    @property
    def is_prod(self) -> bool:
        """Return True if running in the production environment."""
        return self.environment == "prod"

    def log_level_numeric(self) -> int:
        """Return the numeric logging level corresponding to `self.log_level`."""
        return getattr(logging, self.log_level, logging.INFO)


@lru_cache(maxsize=1)
def load_settings() -> Settings:
    """Create and cache a `Settings` instance.

    Tests force a rebuild via `load_settings.cache_clear()` after mutating
    `os.environ`.
    """
    os.environ.setdefault("TIMELINE_ENV", "dev")
    return Settings()


# Ready-to-use singleton (import-time read of env / .env files).
settings: Settings = load_settings()


def get_logger(name: str = "timelinemapper") -> logging.Logger:
    """Return a process-global logger configured to the current `LOG_LEVEL`."""
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(
            logging.Formatter("%(asctime)s | %(levelname)s | %(name)s | %(message)s")
        )
        logger.addHandler(handler)
    logger.setLevel(load_settings().log_level_numeric())
    logger.propagate = False
    return logger
