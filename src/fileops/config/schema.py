"""Pydantic models for fileops configuration schema."""

from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator

from fileops.config.constants import (
    DEFAULT_BLOCK_WINDOW,
    DEFAULT_DATA_DIR,
    DEFAULT_EXTENSIONS,
    DEFAULT_LOOSE_FALLBACK_WINDOW,
    DEFAULT_MAX_CONTENT_BYTES,
    DEFAULT_MAX_CONTEXT_TOKENS,
    DEFAULT_MAX_FILES,
    DEFAULT_MAX_TOKENS_PER_FILE,
    DEFAULT_SESSION_MAX_AGE_DAYS,
)

VALID_LOG_LEVELS = {"debug", "info", "warning", "error", "critical"}


class ParserConfig(BaseModel):
    """Response parser configuration."""

    model_config = {"frozen": True}

    extensions: tuple[str, ...] = Field(
        default=DEFAULT_EXTENSIONS,
        description="File extensions recognized by every strategy except schema and canonical",
    )
    loose_fallback: bool = Field(
        default=True,
        description="Run the loose creation-verb fallback when every other strategy finds nothing",
    )
    block_window: int = Field(
        default=DEFAULT_BLOCK_WINDOW,
        ge=0,
        description="Max characters between a path mention and the fenced block it introduces",
    )
    loose_fallback_window: int = Field(
        default=DEFAULT_LOOSE_FALLBACK_WINDOW,
        ge=0,
        description="Max characters between a loose creation line and its fenced block",
    )

    @field_validator("extensions", mode="before")
    @classmethod
    def normalize_extensions(cls, v: Any) -> tuple[str, ...]:
        """Lowercase extensions and strip leading dots."""
        if isinstance(v, str):
            v = [v]
        normalized = tuple(str(ext).strip().lstrip(".").lower() for ext in v)
        if not all(normalized):
            raise ValueError("Extensions must be non-empty strings")
        return normalized


class ExecutionConfig(BaseModel):
    """Batch execution configuration."""

    max_content_bytes: int = Field(
        default=DEFAULT_MAX_CONTENT_BYTES,
        gt=0,
        description="Maximum UTF-8 size of create/edit content accepted by the validator",
    )


class ContextConfig(BaseModel):
    """Context selection limits applied to workspace files."""

    max_context_tokens: int = Field(default=DEFAULT_MAX_CONTEXT_TOKENS, gt=0)
    max_files: int = Field(default=DEFAULT_MAX_FILES, gt=0)
    max_tokens_per_file: int = Field(default=DEFAULT_MAX_TOKENS_PER_FILE, gt=0)


class SessionConfig(BaseModel):
    """Workspace session and backup persistence configuration."""

    data_dir: str = str(DEFAULT_DATA_DIR)
    max_age_days: int = Field(default=DEFAULT_SESSION_MAX_AGE_DAYS, gt=0)

    @field_validator("data_dir")
    @classmethod
    def expand_data_dir(cls, v: str) -> str:
        """Expand user home directory in data_dir."""
        return str(Path(v).expanduser())


class FileOpsSettings(BaseModel):
    """Root configuration model for fileops settings."""

    version: str = "1.0"
    log_level: str = "info"
    parser: ParserConfig = Field(default_factory=ParserConfig)
    execution: ExecutionConfig = Field(default_factory=ExecutionConfig)
    context: ContextConfig = Field(default_factory=ContextConfig)
    session: SessionConfig = Field(default_factory=SessionConfig)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level name."""
        level = v.lower()
        if level not in VALID_LOG_LEVELS:
            raise ValueError(f"Invalid log level: {v}. Valid levels: {VALID_LOG_LEVELS}")
        return level

    def model_dump_json_pretty(self, **kwargs: Any) -> str:
        """Dump model to pretty-printed JSON string."""
        return self.model_dump_json(indent=2, exclude_none=False, **kwargs)
