"""Prefix installation: archive providers, extraction, and the staged installer."""

from sandbox_bootstrap.install.archive import (
    ArchiveExtractor,
    iter_archive_entries,
    parse_symlink_manifest,
)
from sandbox_bootstrap.install.installer import BootstrapInstaller
from sandbox_bootstrap.install.providers import (
    ArchiveProvider,
    FileArchiveProvider,
    StaticArchiveProvider,
)

__all__ = [
    "ArchiveExtractor",
    "ArchiveProvider",
    "BootstrapInstaller",
    "FileArchiveProvider",
    "StaticArchiveProvider",
    "iter_archive_entries",
    "parse_symlink_manifest",
]
