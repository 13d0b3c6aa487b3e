"""Structured logging primitives for the tlsync core package."""

from tlsync.core.logger import (
    MANDATORY_FIELDS,
    REDACTED,
    LogConfig,
    LogFormat,
    UnifiedLogger,
)

from .log_events import LogEvents

__all__ = [
    "LogConfig",
    "LogEvents",
    "LogFormat",
    "MANDATORY_FIELDS",
    "REDACTED",
    "UnifiedLogger",
]
