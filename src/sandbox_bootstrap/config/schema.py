"""
sandbox-bootstrap — config schema.

File: src/sandbox_bootstrap/config/schema.py
Last updated: 2026-10-18

Purpose
- Define the typed runtime config and validate raw TOML-shaped payloads into it.

Functional requirements
- Collect every validation issue with a dotted path before failing.
- Reject unknown sections and fields.
- Derive the staging path from the prefix; it is never configured on its own.
"""

from __future__ import annotations

import copy
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Final

from sandbox_bootstrap.constants import (
    DEFAULT_EXECUTABLE_PREFIXES,
    STAGING_SUFFIX,
    STORAGE_DIR_NAME,
)

PATH_FIELDS: Final[tuple[tuple[str, ...], ...]] = (
    ("paths", "prefix"),
    ("paths", "home"),
    ("archive", "path"),
    ("storage", "shared_root"),
    ("logging", "log_dir"),
)

_LOG_LEVELS: Final[tuple[str, ...]] = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")

DEFAULT_CONFIG: Final[dict[str, Any]] = {
    "paths": {
        "prefix": "usr",
        "home": "home",
    },
    "archive": {},
    "install": {
        "executable_prefixes": list(DEFAULT_EXECUTABLE_PREFIXES),
        "strict_done_outcome": False,
    },
    "storage": {
        "external_volumes": [],
    },
    "logging": {
        "level": "INFO",
        "log_to_stderr": True,
    },
}


@dataclass(frozen=True, slots=True)
class PathsConfig:
    """Install root and sandbox home. Staging sits next to the prefix."""

    prefix: Path
    home: Path

    @property
    def staging(self) -> Path:
        return self.prefix.with_name(self.prefix.name + STAGING_SUFFIX)

    @property
    def storage(self) -> Path:
        return self.home / STORAGE_DIR_NAME


@dataclass(frozen=True, slots=True)
class ArchiveConfig:
    path: Path | None = None


@dataclass(frozen=True, slots=True)
class InstallConfig:
    executable_prefixes: tuple[str, ...] = DEFAULT_EXECUTABLE_PREFIXES
    # When set, DONE is published once with the real outcome instead of a trailing True.
    strict_done_outcome: bool = False


@dataclass(frozen=True, slots=True)
class StorageConfig:
    shared_root: Path | None = None
    # Host volume list, primary first. ``None`` marks an unavailable volume.
    external_volumes: tuple[Path | None, ...] = ()


@dataclass(frozen=True, slots=True)
class LoggingSettings:
    level: str = "INFO"
    log_dir: Path | None = None
    log_to_stderr: bool = True


@dataclass(frozen=True, slots=True)
class BootstrapConfig:
    """Validated, immutable runtime configuration."""

    paths: PathsConfig
    archive: ArchiveConfig = field(default_factory=ArchiveConfig)
    install: InstallConfig = field(default_factory=InstallConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    logging: LoggingSettings = field(default_factory=LoggingSettings)

    @classmethod
    def for_root(cls, root: Path | str, **sections: Any) -> BootstrapConfig:
        """Config with ``prefix`` and ``home`` laid out under ``root``."""
        base = Path(root)
        return cls(paths=PathsConfig(prefix=base / "usr", home=base / "home"), **sections)


@dataclass(frozen=True, slots=True)
class ConfigValidationIssue:
    """Single structured validation failure."""

    path: str
    message: str


class ConfigValidationError(ValueError):
    """Raised when config validation fails."""

    def __init__(self, issues: Sequence[ConfigValidationIssue]) -> None:
        self.issues = tuple(issues)
        if not self.issues:
            rendered = "unknown validation failure"
        else:
            rendered = "\n".join(f"- {item.path}: {item.message}" for item in self.issues)
        super().__init__(f"invalid config:\n{rendered}")


class _IssueCollector:
    __slots__ = ("_items",)

    def __init__(self) -> None:
        self._items: list[ConfigValidationIssue] = []

    def add(self, path: str, message: str) -> None:
        self._items.append(ConfigValidationIssue(path=path, message=message))

    def items(self) -> tuple[ConfigValidationIssue, ...]:
        return tuple(self._items)

    @property
    def has_issues(self) -> bool:
        return bool(self._items)


def default_config() -> dict[str, Any]:
    """Return a deep copy of the built-in defaults."""

    return copy.deepcopy(DEFAULT_CONFIG)


def merge_config(base: Mapping[str, object], overlay: Mapping[str, object]) -> dict[str, Any]:
    """Deep-merge ``overlay`` onto ``base`` without mutating either."""

    merged = copy.deepcopy(dict(base))
    _merge_into(merged, overlay)
    return merged


def build_config(payload: Mapping[str, object]) -> BootstrapConfig:
    """Validate a raw payload and build ``BootstrapConfig`` or raise ``ConfigValidationError``."""

    issues = _IssueCollector()
    _reject_unknown_keys(payload, set(DEFAULT_CONFIG), "", issues)

    paths = _section(payload, "paths", issues)
    archive = _section(payload, "archive", issues)
    install = _section(payload, "install", issues)
    storage = _section(payload, "storage", issues)
    logging_section = _section(payload, "logging", issues)

    _reject_unknown_keys(paths, {"prefix", "home"}, "paths", issues)
    _reject_unknown_keys(archive, {"path"}, "archive", issues)
    _reject_unknown_keys(install, {"executable_prefixes", "strict_done_outcome"}, "install", issues)
    _reject_unknown_keys(storage, {"shared_root", "external_volumes"}, "storage", issues)
    _reject_unknown_keys(logging_section, {"level", "log_dir", "log_to_stderr"}, "logging", issues)

    prefix = _as_path(paths.get("prefix"), "paths.prefix", issues)
    home = _as_path(paths.get("home"), "paths.home", issues)
    archive_path = _optional_path(archive.get("path"), "archive.path", issues)

    executable_prefixes = _as_str_tuple(
        install.get("executable_prefixes", list(DEFAULT_EXECUTABLE_PREFIXES)),
        "install.executable_prefixes",
        issues,
    )
    strict_done = _as_bool(
        install.get("strict_done_outcome", False), "install.strict_done_outcome", issues
    )

    shared_root = _optional_path(storage.get("shared_root"), "storage.shared_root", issues)
    volumes = _as_volume_list(
        storage.get("external_volumes", []), "storage.external_volumes", issues
    )

    level = _as_log_level(logging_section.get("level", "INFO"), "logging.level", issues)
    log_dir = _optional_path(logging_section.get("log_dir"), "logging.log_dir", issues)
    log_to_stderr = _as_bool(
        logging_section.get("log_to_stderr", True), "logging.log_to_stderr", issues
    )

    if prefix is not None and prefix.name in {"", ".", ".."}:
        issues.add("paths.prefix", "must name a directory")

    if issues.has_issues or prefix is None or home is None:
        raise ConfigValidationError(issues.items())

    return BootstrapConfig(
        paths=PathsConfig(prefix=prefix, home=home),
        archive=ArchiveConfig(path=archive_path),
        install=InstallConfig(
            executable_prefixes=executable_prefixes or (),
            strict_done_outcome=bool(strict_done),
        ),
        storage=StorageConfig(shared_root=shared_root, external_volumes=volumes or ()),
        logging=LoggingSettings(
            level=level or "INFO",
            log_dir=log_dir,
            log_to_stderr=bool(log_to_stderr),
        ),
    )


def _section(
    payload: Mapping[str, object], name: str, issues: _IssueCollector
) -> Mapping[str, object]:
    value = payload.get(name, {})
    if not isinstance(value, Mapping):
        issues.add(name, f"expected table, got {type(value).__name__}")
        return {}
    return value


def _reject_unknown_keys(
    payload: Mapping[str, object],
    allowed: set[str],
    path: str,
    issues: _IssueCollector,
) -> None:
    for key in sorted(payload):
        if key not in allowed:
            issues.add(_join(path, key), "unknown field")


def _as_str(value: object, path: str, issues: _IssueCollector) -> str | None:
    if not isinstance(value, str):
        issues.add(path, f"expected string, got {type(value).__name__}")
        return None
    parsed = value.strip()
    if not parsed:
        issues.add(path, "must not be empty")
        return None
    return parsed


def _as_path(value: object, path: str, issues: _IssueCollector) -> Path | None:
    if value is None:
        issues.add(path, "missing required field")
        return None
    if isinstance(value, Path):
        return value
    parsed = _as_str(value, path, issues)
    if parsed is None:
        return None
    if "\x00" in parsed:
        issues.add(path, "must not contain NUL bytes")
        return None
    return Path(parsed)


def _optional_path(value: object, path: str, issues: _IssueCollector) -> Path | None:
    if value is None:
        return None
    return _as_path(value, path, issues)


def _as_bool(value: object, path: str, issues: _IssueCollector) -> bool | None:
    if isinstance(value, bool):
        return value
    issues.add(path, f"expected boolean, got {type(value).__name__}")
    return None


def _as_str_tuple(value: object, path: str, issues: _IssueCollector) -> tuple[str, ...] | None:
    if isinstance(value, str) or not isinstance(value, Sequence):
        issues.add(path, f"expected array of strings, got {type(value).__name__}")
        return None
    items: list[str] = []
    for index, item in enumerate(value):
        parsed = _as_str(item, f"{path}[{index}]", issues)
        if parsed is not None:
            items.append(parsed)
    return tuple(items)


def _as_volume_list(
    value: object, path: str, issues: _IssueCollector
) -> tuple[Path | None, ...] | None:
    if isinstance(value, str) or not isinstance(value, Sequence):
        issues.add(path, f"expected array of strings, got {type(value).__name__}")
        return None
    volumes: list[Path | None] = []
    for index, item in enumerate(value):
        # TOML has no null; an empty string marks an unavailable volume.
        if item is None or (isinstance(item, str) and not item.strip()):
            volumes.append(None)
            continue
        volumes.append(_as_path(item, f"{path}[{index}]", issues))
    return tuple(volumes)


def _as_log_level(value: object, path: str, issues: _IssueCollector) -> str | None:
    parsed = _as_str(value, path, issues)
    if parsed is None:
        return None
    normalized = parsed.upper()
    if normalized not in _LOG_LEVELS:
        expected = ", ".join(_LOG_LEVELS)
        issues.add(path, f"invalid value {parsed!r}; expected one of: {expected}")
        return None
    return normalized


def _join(path: str, key: str) -> str:
    if not path:
        return key
    return f"{path}.{key}"


def _merge_into(target: dict[str, Any], overlay: Mapping[str, object]) -> None:
    for key in sorted(overlay):
        value = overlay[key]
        if isinstance(value, Mapping):
            existing = target.get(key)
            if not isinstance(existing, dict):
                existing = {}
                target[key] = existing
            _merge_into(existing, value)
        else:
            target[key] = copy.deepcopy(value)


__all__ = [
    "DEFAULT_CONFIG",
    "PATH_FIELDS",
    "ArchiveConfig",
    "BootstrapConfig",
    "ConfigValidationError",
    "ConfigValidationIssue",
    "InstallConfig",
    "LoggingSettings",
    "PathsConfig",
    "StorageConfig",
    "build_config",
    "default_config",
    "merge_config",
]
