"""Root configuration model for a timeline sync run."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from .http import BackoffConfig, HTTPClientConfig
from .timeline import LoggingConfig, PathsConfig, TimelineConfig


class TimelineSyncConfig(BaseModel):
    """Fully merged and validated configuration."""

    model_config = ConfigDict(extra="forbid")

    version: int = Field(default=1, description="Configuration schema version.")
    http: HTTPClientConfig = Field(default_factory=HTTPClientConfig)
    backoff: BackoffConfig = Field(default_factory=BackoffConfig)
    timeline: TimelineConfig = Field(default_factory=TimelineConfig)
    paths: PathsConfig = Field(default_factory=PathsConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
