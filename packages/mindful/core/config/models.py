"""Application configuration models."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from mindful.core.overrides.models import OverrideRange
from mindful.core.storage.models import StorageConfig

DEFAULT_STORAGE_DIR = Path("~/.mindful/storage")


class ConfigError(ValueError):
    """Raised when a configuration file cannot be read or validated."""


class LoggingConfig(BaseModel):
    """Logging configuration."""

    model_config = ConfigDict(extra="forbid")

    level: str = Field(default="INFO", pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$")
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    structured: bool = False
    filename: Path | None = None


class AppConfig(BaseModel):
    """Application-level configuration."""

    model_config = ConfigDict(extra="ignore")

    storage: StorageConfig = StorageConfig(backend="file", path=DEFAULT_STORAGE_DIR)
    overrides: OverrideRange = OverrideRange()
    logging: LoggingConfig = LoggingConfig()
    backups_to_keep: int = Field(default=3, ge=0)

    @classmethod
    def default_path(cls) -> Path:
        """Default path for application config."""
        return Path("mindful.yaml")
