"""
sandbox-bootstrap — runtime config loader.

File: src/sandbox_bootstrap/config/loader.py
Last updated: 2026-10-18

Purpose
- Load effective runtime config from defaults, a TOML file, and programmatic overrides.

Functional requirements
- Precedence: overrides > file > defaults.
- TOML loading via ``tomllib``.
- Relative paths resolve against the config file's directory (or ``base_dir``).
- Dotted override keys (``"paths.prefix"``) address nested fields.
"""

from __future__ import annotations

import os
import tomllib
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Final

from sandbox_bootstrap.config.schema import (
    PATH_FIELDS,
    BootstrapConfig,
    build_config,
    default_config,
    merge_config,
)

DEFAULT_CONFIG_FILE: Final[str] = "bootstrap.toml"


class ConfigLoadError(ValueError):
    """Raised when config cannot be read or overrides are malformed."""


def load_config(
    config_path: str | Path | None = None,
    *,
    overrides: Mapping[str, object] | None = None,
    base_dir: str | Path | None = None,
) -> BootstrapConfig:
    """Load and validate the effective config."""

    explicit_path = config_path is not None
    resolved_path = _resolve_config_path(config_path)
    file_payload = _load_toml_file(resolved_path, required=explicit_path)

    merged = merge_config(default_config(), file_payload)
    merged = merge_config(merged, _materialize_overrides(overrides or {}))

    root = Path(base_dir).expanduser().resolve() if base_dir is not None else resolved_path.parent
    return build_config(normalize_paths(merged, base_dir=root))


def normalize_paths(config: Mapping[str, object], *, base_dir: Path) -> dict[str, Any]:
    """Normalize configured path fields relative to ``base_dir``."""

    materialized = merge_config({}, config)
    for field_path in PATH_FIELDS:
        value = _get_nested(materialized, field_path)
        if isinstance(value, (str, Path)) and str(value).strip():
            _set_nested(materialized, field_path, _normalize_one_path(str(value), base_dir))

    storage = materialized.get("storage")
    if isinstance(storage, dict):
        volumes = storage.get("external_volumes")
        if isinstance(volumes, list):
            storage["external_volumes"] = [
                _normalize_one_path(item, base_dir)
                if isinstance(item, str) and item.strip()
                else item
                for item in volumes
            ]
    return materialized


def _resolve_config_path(config_path: str | Path | None) -> Path:
    if config_path is None:
        return (Path.cwd() / DEFAULT_CONFIG_FILE).resolve()
    return Path(config_path).expanduser().resolve()


def _load_toml_file(path: Path, *, required: bool) -> dict[str, Any]:
    if not path.exists():
        if required:
            raise ConfigLoadError(f"config file not found: {path}")
        return {}

    try:
        with path.open("rb") as handle:
            parsed = tomllib.load(handle)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigLoadError(f"invalid TOML in {path}: {exc}") from exc
    except OSError as exc:
        raise ConfigLoadError(f"unable to read config file {path}: {exc}") from exc

    return parsed


def _materialize_overrides(overrides: Mapping[str, object]) -> dict[str, Any]:
    payload: dict[str, Any] = {}
    for key in sorted(overrides):
        value = overrides[key]
        path = tuple(part for part in key.split(".") if part)
        if not path:
            raise ConfigLoadError(f"invalid override key {key!r}")
        if isinstance(value, Path):
            value = str(value)
        elif isinstance(value, tuple):
            value = [str(item) if isinstance(item, Path) else item for item in value]
        _set_nested(payload, path, value)
    return payload


def _set_nested(target: dict[str, Any], path: tuple[str, ...], value: object) -> None:
    cursor = target
    for part in path[:-1]:
        next_node = cursor.get(part)
        if not isinstance(next_node, dict):
            next_node = {}
            cursor[part] = next_node
        cursor = next_node
    cursor[path[-1]] = value


def _get_nested(payload: Mapping[str, object], path: tuple[str, ...]) -> object | None:
    cursor: object = payload
    for part in path:
        if not isinstance(cursor, Mapping) or part not in cursor:
            return None
        cursor = cursor[part]
    return cursor


def _normalize_one_path(raw: str, base_dir: Path) -> str:
    expanded = os.path.expandvars(raw)
    candidate = Path(expanded).expanduser()
    if not candidate.is_absolute():
        candidate = base_dir / candidate
    return Path(os.path.normpath(str(candidate))).as_posix()


__all__ = [
    "DEFAULT_CONFIG_FILE",
    "ConfigLoadError",
    "load_config",
    "normalize_paths",
]
