"""Configuration utilities for tlsync runs."""

from __future__ import annotations

from .environment import EnvironmentSettings, load_environment_settings
from .loader import DEFAULT_CONFIG_PATH, load_config, parse_set_overrides
from .models import TimelineSyncConfig

__all__ = [
    "DEFAULT_CONFIG_PATH",
    "EnvironmentSettings",
    "TimelineSyncConfig",
    "load_config",
    "load_environment_settings",
    "parse_set_overrides",
]
