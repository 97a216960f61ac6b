"""
sandbox-bootstrap config package public API.

File: src/sandbox_bootstrap/config/__init__.py
Last updated: 2026-10-18

Purpose
- Export config loading/validation entrypoints and public error types.
- No filesystem side effects beyond reading the requested TOML file.
"""

from sandbox_bootstrap.config.loader import (
    DEFAULT_CONFIG_FILE,
    ConfigLoadError,
    load_config,
    normalize_paths,
)
from sandbox_bootstrap.config.schema import (
    DEFAULT_CONFIG,
    PATH_FIELDS,
    ArchiveConfig,
    BootstrapConfig,
    ConfigValidationError,
    ConfigValidationIssue,
    InstallConfig,
    LoggingSettings,
    PathsConfig,
    StorageConfig,
    build_config,
    default_config,
    merge_config,
)

__all__ = [
    "DEFAULT_CONFIG",
    "DEFAULT_CONFIG_FILE",
    "PATH_FIELDS",
    "ArchiveConfig",
    "BootstrapConfig",
    "ConfigLoadError",
    "ConfigValidationError",
    "ConfigValidationIssue",
    "InstallConfig",
    "LoggingSettings",
    "PathsConfig",
    "StorageConfig",
    "build_config",
    "default_config",
    "load_config",
    "merge_config",
    "normalize_paths",
]
