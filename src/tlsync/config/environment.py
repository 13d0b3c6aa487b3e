"""Environment-driven configuration helpers for tlsync.

Responsibilities:

- reading ``.env`` and the process environment through ``EnvironmentSettings``;
- translating the short ``TLSYNC_*`` variables into nested overrides that
  the loader merges below the fully qualified ``TLSYNC__SECTION__KEY`` form.
"""

from __future__ import annotations

from collections.abc import MutableMapping
from pathlib import Path
from typing import Any, Iterable

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class _EnvOverrideSpec:
    """Internal spec describing mapping between short env vars and config paths."""

    __slots__ = ("attr", "config_path")

    def __init__(self, attr: str, config_path: Iterable[str]) -> None:
        self.attr = attr
        self.config_path = tuple(config_path)


_ENV_OVERRIDE_SPECS: tuple[_EnvOverrideSpec, ...] = (
    _EnvOverrideSpec("credentials", ("paths", "credentials_file")),
    _EnvOverrideSpec("cursor_file", ("paths", "cursor_file")),
    _EnvOverrideSpec("log_level", ("logging", "level")),
    _EnvOverrideSpec("log_format", ("logging", "format")),
)


class EnvironmentSettings(BaseSettings):
    """Typed view of tlsync environment variables."""

    model_config = SettingsConfigDict(
        env_file=(".env",),
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    credentials: Path | None = Field(default=None, alias="TLSYNC_CREDENTIALS")
    cursor_file: Path | None = Field(default=None, alias="TLSYNC_CURSOR_FILE")
    log_level: str | None = Field(default=None, alias="TLSYNC_LOG_LEVEL")
    log_format: str | None = Field(default=None, alias="TLSYNC_LOG_FORMAT")

    @field_validator("credentials", "cursor_file")
    @classmethod
    def _expand_path(cls, value: Path | None) -> Path | None:
        """Expand ``~`` in configured paths."""
        if value is None:
            return None
        return value.expanduser()

    @field_validator("log_level", "log_format")
    @classmethod
    def _normalize_token(cls, value: str | None) -> str | None:
        """Trim values and treat empty strings as None."""
        if value is None:
            return None
        normalized = value.strip()
        return normalized or None


def load_environment_settings(*, env_file: Path | None = None) -> EnvironmentSettings:
    """Load and validate tlsync environment settings.

    Parameters
    ----------
    env_file:
        Optional path to a ``.env`` file. When omitted, the default search order
        from :class:`EnvironmentSettings` is used.
    """

    init_kwargs: dict[str, Any] = {}
    if env_file is not None:
        init_kwargs["_env_file"] = env_file
    return EnvironmentSettings(**init_kwargs)


def build_env_override_mapping(settings: EnvironmentSettings) -> dict[str, Any]:
    """Return nested overrides derived from short environment variables."""

    overrides: dict[str, Any] = {}

    for spec in _ENV_OVERRIDE_SPECS:
        value = getattr(settings, spec.attr)
        if value is None:
            continue
        _assign_nested_override(overrides, spec.config_path, str(value))

    return overrides


def _assign_nested_override(
    target: MutableMapping[str, Any],
    path: Iterable[str],
    value: str,
) -> None:
    """Assign a value to a nested dictionary without mutating siblings."""
    current: MutableMapping[str, Any] = target
    parts = tuple(path)
    for part in parts[:-1]:
        existing = current.get(part)
        if not isinstance(existing, MutableMapping):
            next_level: dict[str, Any] = {}
            current[part] = next_level
            current = next_level
            continue
        current = existing
    current[parts[-1]] = value


__all__ = [
    "EnvironmentSettings",
    "build_env_override_mapping",
    "load_environment_settings",
]
