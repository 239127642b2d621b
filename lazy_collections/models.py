"""Models for lazy collection settings and introspection snapshots."""

import os
from typing import Mapping, Optional
from pydantic import BaseModel, Field, field_validator


LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

ENV_LOG_LEVEL = "LAZY_COLLECTIONS_LOG_LEVEL"
ENV_LOG_PULLS = "LAZY_COLLECTIONS_LOG_PULLS"


class LazySettings(BaseModel):
    """Runtime settings, normally read from the environment."""
    log_level: str = Field(
        default="WARNING",
        description="Level applied to the lazy_collections logger"
    )
    log_pulls: bool = Field(
        default=False,
        description="Log every successful pull from a raw source at DEBUG"
    )

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v):
        """Normalize and check the level name."""
        level = v.strip().upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"Unknown log level: {v}")
        return level

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "LazySettings":
        """Build settings from environment variables, keeping defaults for unset ones."""
        environ = os.environ if environ is None else environ
        values = {}
        if ENV_LOG_LEVEL in environ:
            values["log_level"] = environ[ENV_LOG_LEVEL]
        if ENV_LOG_PULLS in environ:
            values["log_pulls"] = environ[ENV_LOG_PULLS]
        return cls(**values)


class CollectionStats(BaseModel):
    """Non-forcing snapshot of a lazy collection's pull progress."""
    shape: str = Field(..., description="Presentation shape: list, set or dict")
    cached_count: int = Field(..., ge=0, description="Items held by the backing store")
    exhausted: bool = Field(..., description="Whether the raw source reported its end")
    pulls: int = Field(..., ge=0, description="Successful productions of the raw source")
    failures: int = Field(0, ge=0, description="Pulls that raised from the raw source")
    cursors: int = Field(0, ge=0, description="Replay cursors handed out so far")


class OperationMetrics(BaseModel):
    """Cost of a single operation against a lazy collection."""
    operation: str = Field(..., description="Name of the measured operation")
    success: bool = Field(..., description="Whether the operation returned normally")
    execution_time_ms: float = Field(..., ge=0, description="Wall-clock time in milliseconds")
    memory_usage_mb: float = Field(..., ge=0, description="Peak traced memory in megabytes")
    pulls: int = Field(..., ge=0, description="Raw source pulls triggered by the operation")
    error: Optional[str] = Field(None, description="Error message when the operation raised")
