"""Configuration package for fileops."""

from .manager import (
    ConfigurationError,
    get_config_path,
    load_config,
    merge_with_env,
    save_config,
)
from .schema import (
    ContextConfig,
    ExecutionConfig,
    FileOpsSettings,
    ParserConfig,
    SessionConfig,
)

__all__ = [
    # Schema
    "FileOpsSettings",
    "ParserConfig",
    "ExecutionConfig",
    "ContextConfig",
    "SessionConfig",
    # Manager
    "ConfigurationError",
    "get_config_path",
    "load_config",
    "save_config",
    "merge_with_env",
]
