"""Configuration loading utilities.

Layers are merged in order, later layers winning:

1. model defaults;
2. the YAML file (``configs/tlsync.yaml`` when present, or ``--config``);
3. short ``TLSYNC_*`` variables from ``.env`` / the process environment;
4. fully qualified ``TLSYNC__SECTION__KEY`` environment variables;
5. ``--set section.key=value`` overrides;
6. explicit command line flags.
"""

from __future__ import annotations

import os
from collections.abc import Iterable, Mapping, MutableMapping, Sequence
from pathlib import Path
from typing import Any, cast

import yaml
from pydantic import ValidationError

from tlsync.core.exceptions import ConfigError

from .environment import (
    EnvironmentSettings,
    build_env_override_mapping,
    load_environment_settings,
)
from .models import TimelineSyncConfig

DEFAULT_CONFIG_PATH = Path("configs/tlsync.yaml")

__all__ = [
    "DEFAULT_CONFIG_PATH",
    "load_config",
    "load_raw_config",
    "parse_set_overrides",
]


def load_raw_config(path: Path) -> dict[str, Any]:
    """Load a YAML configuration file into a plain mapping."""

    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Cannot read configuration file: {exc}", source=str(path)) from exc
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML: {exc}", source=str(path)) from exc
    if data is None:
        return {}
    if not isinstance(data, Mapping):
        raise ConfigError("Configuration root must be a mapping", source=str(path))
    return dict(cast(Mapping[str, Any], data))


def parse_set_overrides(pairs: Iterable[str]) -> dict[str, str]:
    """Split repeated ``KEY=VALUE`` strings into a dotted-key mapping."""

    overrides: dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        key = key.strip()
        if not sep or not key:
            raise ConfigError(f"Override must look like KEY=VALUE, got {pair!r}", source="--set")
        overrides[key] = value
    return overrides


def load_config(
    config_path: str | Path | None = None,
    *,
    cli_overrides: Mapping[str, Any] | None = None,
    flag_overrides: Mapping[str, Any] | None = None,
    env: Mapping[str, str] | None = None,
    env_prefixes: Sequence[str] = ("TLSYNC__",),
    environment_settings: EnvironmentSettings | None = None,
) -> TimelineSyncConfig:
    """Load, merge, and validate the run configuration.

    ``cli_overrides`` holds raw ``--set`` strings keyed by dotted path and is
    coerced through YAML scalars; ``flag_overrides`` holds already typed
    values from explicit command line options and is applied verbatim.
    """

    merged: dict[str, Any] = {}
    if config_path is not None:
        path = Path(config_path).expanduser()
        if not path.is_file():
            raise ConfigError("Configuration file not found", source=str(path))
        merged = load_raw_config(path)
    elif DEFAULT_CONFIG_PATH.is_file():
        merged = load_raw_config(DEFAULT_CONFIG_PATH)

    try:
        env_settings = environment_settings or load_environment_settings()
    except ValidationError as exc:
        raise ConfigError(f"Invalid environment settings: {exc}", source="environment") from exc
    merged = _deep_merge(merged, build_env_override_mapping(env_settings))

    env_mapping: Mapping[str, str] = env if env is not None else os.environ
    env_overrides = _collect_env_overrides(env_mapping, prefixes=env_prefixes)
    if env_overrides:
        merged = _deep_merge(merged, env_overrides)

    if cli_overrides:
        pairs = [
            (tuple(key.split(".")), _coerce_value(value)) for key, value in cli_overrides.items()
        ]
        merged = _deep_merge(merged, _build_tree(pairs))

    if flag_overrides:
        pairs = [
            (tuple(key.split(".")), value)
            for key, value in flag_overrides.items()
            if value is not None
        ]
        merged = _deep_merge(merged, _build_tree(pairs))

    try:
        return TimelineSyncConfig.model_validate(merged)
    except ValidationError as exc:
        source = str(config_path) if config_path is not None else None
        raise ConfigError(_format_validation_error(exc), source=source) from exc


def _format_validation_error(exc: ValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(item) for item in error.get("loc", ()))
        parts.append(f"{location}: {error.get('msg')}")
    return "Invalid configuration: " + "; ".join(parts)


def _deep_merge(
    base: Mapping[str, Any],
    override: Mapping[str, Any],
) -> dict[str, Any]:
    """Recursively merge two mapping-like objects."""
    merged: dict[str, Any] = dict(base)
    for key, value in override.items():
        if key in merged and isinstance(merged[key], Mapping) and isinstance(value, Mapping):
            merged[key] = _deep_merge(
                cast(Mapping[str, Any], merged[key]),
                cast(Mapping[str, Any], value),
            )
        else:
            merged[key] = value
    return merged


def _build_tree(pairs: Iterable[tuple[Sequence[str], Any]]) -> dict[str, Any]:
    """Construct a nested mapping from ``pairs`` of path segments and values."""

    tree: dict[str, Any] = {}
    for raw_parts, value in pairs:
        parts = tuple(str(part) for part in raw_parts if str(part))
        if not parts:
            continue
        current: MutableMapping[str, Any] = tree
        for part in parts[:-1]:
            existing = current.get(part)
            if isinstance(existing, MutableMapping):
                current = existing
            else:
                next_level: dict[str, Any] = {}
                current[part] = next_level
                current = next_level
        current[parts[-1]] = value
    return tree


def _coerce_value(value: Any) -> Any:
    """Best-effort conversion of CLI/environment override values."""
    if isinstance(value, str):
        try:
            return yaml.safe_load(value)
        except yaml.YAMLError:
            return value
    return value


def _collect_env_overrides(env: Mapping[str, str], *, prefixes: Sequence[str]) -> dict[str, Any]:
    """Collect prefixed environment variables and build a nested override tree."""
    overrides: dict[str, Any] = {}
    for prefix in prefixes:
        if not prefix:
            continue
        scoped_pairs: list[tuple[Sequence[str], Any]] = []
        for key, raw_value in env.items():
            if not key.startswith(prefix) or not key[len(prefix) :]:
                continue
            parts = [
                segment.strip().lower()
                for segment in key[len(prefix) :].split("__")
                if segment.strip()
            ]
            if not parts:
                continue
            scoped_pairs.append((tuple(parts), _coerce_value(raw_value)))
        scoped_tree = _build_tree(scoped_pairs)
        if scoped_tree:
            overrides = _deep_merge(overrides, scoped_tree)
    return overrides
