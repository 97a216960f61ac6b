"""
sandbox-bootstrap

Provision a self-contained runtime prefix for a sandboxed Unix-like
environment: extract the bundled archive into a staging directory, rebuild
the symlinks listed in its manifest, and rename staging onto the prefix in one
step. A separate routine links host storage into the sandbox home.

Import boundary: importing the package has no side effects (no config
loading, no logging setup, no filesystem access).
"""

from sandbox_bootstrap.config import BootstrapConfig, load_config
from sandbox_bootstrap.domain import InstallStep, ProgressState, SymlinkEntry
from sandbox_bootstrap.errors import BootstrapError
from sandbox_bootstrap.install import (
    ArchiveExtractor,
    BootstrapInstaller,
    FileArchiveProvider,
    StaticArchiveProvider,
)
from sandbox_bootstrap.observability import ProgressChannel
from sandbox_bootstrap.runtime import BootstrapRuntime
from sandbox_bootstrap.storage import ConfiguredHostStorage, StorageLinker

__version__ = "0.1.0"

__all__ = [
    "ArchiveExtractor",
    "BootstrapConfig",
    "BootstrapError",
    "BootstrapInstaller",
    "BootstrapRuntime",
    "ConfiguredHostStorage",
    "FileArchiveProvider",
    "InstallStep",
    "ProgressChannel",
    "ProgressState",
    "StaticArchiveProvider",
    "StorageLinker",
    "SymlinkEntry",
    "__version__",
    "load_config",
]
