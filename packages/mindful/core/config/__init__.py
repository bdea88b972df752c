"""Application configuration."""

from mindful.core.config.loader import (
    LOG_LEVEL_ENV,
    STORAGE_DIR_ENV,
    detect_format,
    load_app_config,
    load_config,
    reset_app_config_cache,
    setup_logging,
)
from mindful.core.config.models import AppConfig, ConfigError, LoggingConfig

__all__ = [
    "LOG_LEVEL_ENV",
    "STORAGE_DIR_ENV",
    "AppConfig",
    "ConfigError",
    "LoggingConfig",
    "detect_format",
    "load_app_config",
    "load_config",
    "reset_app_config_cache",
    "setup_logging",
]
