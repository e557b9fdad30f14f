"""Configuration file manager for loading, saving, and managing fileops settings."""

import json
import os
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from .constants import DEFAULT_CONFIG_PATH
from .schema import FileOpsSettings


class ConfigurationError(Exception):
    """Raised when configuration operations fail."""

    pass


def get_config_path() -> Path:
    """Get the path to the configuration file.

    The FILEOPS_CONFIG environment variable overrides the default location.

    Returns:
        Path to ~/.fileops/settings.json (or FILEOPS_CONFIG)
    """
    if env_path := os.getenv("FILEOPS_CONFIG"):
        return Path(env_path).expanduser()
    return DEFAULT_CONFIG_PATH


def load_config(config_path: Path | None = None) -> FileOpsSettings:
    """Load configuration from JSON file and apply environment overrides.

    Args:
        config_path: Optional path to config file. Defaults to ~/.fileops/settings.json

    Returns:
        FileOpsSettings loaded from file, or default settings if file doesn't exist

    Raises:
        ConfigurationError: If file exists but is invalid JSON or fails validation

    Example:
        >>> settings = load_config()
        >>> settings.parser.loose_fallback
        True
    """
    if config_path is None:
        config_path = get_config_path()

    data: dict[str, Any] = {}
    if config_path.exists():
        try:
            with open(config_path) as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigurationError(
                f"Invalid JSON in configuration file {config_path}: {e}"
            ) from e
        except OSError as e:
            raise ConfigurationError(f"Failed to read configuration from {config_path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigurationError(f"Configuration file {config_path} must contain a JSON object")

    overrides = merge_with_env()
    for section, values in overrides.items():
        if isinstance(values, dict):
            existing = data.get(section)
            data[section] = {**(existing if isinstance(existing, dict) else {}), **values}
        else:
            data[section] = values

    try:
        return FileOpsSettings(**data)
    except ValidationError as e:
        raise ConfigurationError(f"Configuration validation failed for {config_path}:\n{e}") from e


def save_config(settings: FileOpsSettings, config_path: Path | None = None) -> None:
    """Save configuration to JSON file.

    Args:
        settings: FileOpsSettings instance to save
        config_path: Optional path to config file. Defaults to ~/.fileops/settings.json

    Raises:
        ConfigurationError: If save operation fails
    """
    if config_path is None:
        config_path = get_config_path()

    try:
        config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(config_path, "w") as f:
            f.write(settings.model_dump_json_pretty())
    except Exception as e:
        raise ConfigurationError(f"Failed to save configuration to {config_path}: {e}") from e


def merge_with_env() -> dict[str, Any]:
    """Collect configuration overrides from environment variables.

    Environment variables take precedence over file settings.

    Returns:
        Dictionary of overrides keyed by settings section

    Example:
        >>> os.environ["FILEOPS_LOOSE_FALLBACK"] = "false"
        >>> merge_with_env()
        {'parser': {'loose_fallback': False}}
    """
    env_overrides: dict[str, Any] = {}

    if os.getenv("FILEOPS_LOG_LEVEL"):
        env_overrides["log_level"] = os.getenv("FILEOPS_LOG_LEVEL")

    if os.getenv("FILEOPS_LOOSE_FALLBACK"):
        env_overrides.setdefault("parser", {})["loose_fallback"] = (
            os.getenv("FILEOPS_LOOSE_FALLBACK", "true").lower() == "true"
        )

    if os.getenv("FILEOPS_DATA_DIR"):
        env_overrides.setdefault("session", {})["data_dir"] = os.getenv("FILEOPS_DATA_DIR")

    return env_overrides
