"""Configuration loading utilities with JSON and YAML support."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

from pydantic import ValidationError
import yaml

from mindful.core.config.models import AppConfig, ConfigError
from mindful.core.utils.json import read_json
from mindful.core.utils.logging import configure_logging

logger = logging.getLogger(__name__)

STORAGE_DIR_ENV = "MINDFUL_STORAGE_DIR"
LOG_LEVEL_ENV = "MINDFUL_LOG_LEVEL"

_DEFAULT_APP_CONFIG_PATH = AppConfig.default_path()
_app_config_cache: AppConfig | None = None


def detect_format(file_path: Path | str) -> str:
    """Detect config file format from extension.

    Raises:
        ConfigError: If format cannot be determined

    Example:
        >>> detect_format("mindful.yml")
        'yaml'
    """
    suffix = Path(file_path).suffix.lower()
    if suffix == ".json":
        return "json"
    if suffix in (".yaml", ".yml"):
        return "yaml"
    raise ConfigError(f"Unsupported config format: {suffix}")


def load_config(path: str | Path) -> dict[str, Any]:
    """Load and return the raw configuration dictionary.

    Args:
        path: Path to config file (.json, .yaml, or .yml)

    Raises:
        FileNotFoundError: If config file does not exist
        ConfigError: If format is not supported or file content is invalid
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file does not exist: {path}")

    if detect_format(path) == "json":
        try:
            return read_json(path)
        except ValueError as e:
            raise ConfigError(f"Invalid JSON in {path}: {e}") from e

    try:
        with path.open("r", encoding="utf-8") as f:
            content = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e
    # safe_load returns None for empty files
    if content is None:
        return {}
    if not isinstance(content, dict):
        raise ConfigError(f"Expected a mapping at the top of {path}")
    return content


def load_app_config(path: str | Path | None = None) -> AppConfig:
    """Load and validate application configuration.

    A missing file yields the defaults. ``MINDFUL_STORAGE_DIR`` and
    ``MINDFUL_LOG_LEVEL`` override the file. Results for the default path
    are cached until :func:`reset_app_config_cache`.

    Raises:
        ConfigError: If the file is invalid
    """
    global _app_config_cache

    if path is None:
        path = _DEFAULT_APP_CONFIG_PATH
    path = Path(path)
    is_default = path == _DEFAULT_APP_CONFIG_PATH

    if _app_config_cache is not None and is_default:
        return _app_config_cache

    raw_config = load_config(path) if path.exists() else {}
    try:
        config = AppConfig.model_validate(raw_config)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration in {path}: {e}") from e

    config = _apply_env_overrides(config)

    if is_default:
        _app_config_cache = config
    return config


def reset_app_config_cache() -> None:
    global _app_config_cache
    _app_config_cache = None


def setup_logging(config: AppConfig | None = None) -> None:
    """Configure Python logging from app config."""
    if config is None:
        config = load_app_config()
    configure_logging(
        level=config.logging.level,
        format_string=config.logging.format,
        filename=str(config.logging.filename) if config.logging.filename else None,
        structured=config.logging.structured,
    )


def _apply_env_overrides(config: AppConfig) -> AppConfig:
    updates: dict[str, Any] = {}

    storage_dir = os.getenv(STORAGE_DIR_ENV)
    if storage_dir:
        logger.debug("Using %s from environment", STORAGE_DIR_ENV)
        backend = config.storage.backend if config.storage.backend in ("file", "sqlite") else "file"
        updates["storage"] = config.storage.model_copy(
            update={"backend": backend, "path": Path(storage_dir)}
        )

    level = os.getenv(LOG_LEVEL_ENV)
    if level:
        level = level.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ConfigError(f"Invalid {LOG_LEVEL_ENV}: {level}")
        updates["logging"] = config.logging.model_copy(update={"level": level})

    return config.model_copy(update=updates) if updates else config
