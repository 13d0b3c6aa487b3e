"""Public interface for tlsync configuration and the timeline fetch run."""

from __future__ import annotations

from tlsync.config import TimelineSyncConfig, load_config

__all__ = ["TimelineSyncConfig", "load_config", "__version__"]

__version__ = "0.3.0"
