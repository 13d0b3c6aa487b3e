"""Pydantic models describing the tlsync configuration tree."""

from __future__ import annotations

from .base import TimelineSyncConfig
from .http import BackoffConfig, HTTPClientConfig
from .timeline import MAX_CURSOR_ID, LoggingConfig, PathsConfig, TimelineConfig

__all__ = [
    "BackoffConfig",
    "HTTPClientConfig",
    "LoggingConfig",
    "MAX_CURSOR_ID",
    "PathsConfig",
    "TimelineConfig",
    "TimelineSyncConfig",
]
