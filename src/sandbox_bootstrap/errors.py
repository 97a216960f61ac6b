"""Typed failures raised while provisioning the prefix or linking storage."""

from __future__ import annotations

import os
from pathlib import Path

PathLike = str | os.PathLike[str]


class BootstrapError(RuntimeError):
    """Base error for bootstrap failures. ``path`` names the filesystem object involved."""

    def __init__(self, message: str, *, path: PathLike | None = None) -> None:
        self.path = Path(path) if path is not None else None
        super().__init__(message)


class ManifestCorruptionError(BootstrapError):
    """Raised when ``SYMLINKS.txt`` is malformed or absent."""

    def __init__(self, message: str, *, line: str | None = None) -> None:
        self.line = line
        super().__init__(message)


class UnsafeArchiveEntryError(ManifestCorruptionError):
    """Raised when an entry name or link path escapes the extraction root."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"refusing archive path outside extraction root: {name!r}")


class ArchiveUnavailableError(BootstrapError):
    """Raised when the archive provider cannot produce the archive bytes."""


class ArchiveFormatError(BootstrapError):
    """Raised when the archive bytes are not a readable zip archive."""


class DirectoryCreationError(BootstrapError):
    """Raised when a required directory is missing and cannot be created."""

    def __init__(self, path: PathLike) -> None:
        super().__init__(f"unable to create directory: {Path(path)!s}", path=path)


class FileWriteError(BootstrapError):
    """Raised when an archive file entry cannot be written or chmod-ed."""


class SymlinkCreationError(BootstrapError):
    """Raised when ``os.symlink`` fails for a manifest entry."""

    def __init__(self, target: str, link_path: PathLike) -> None:
        self.target = target
        super().__init__(
            f"unable to create symlink {Path(link_path)!s} -> {target}",
            path=link_path,
        )


class RenameError(BootstrapError):
    """Raised when the staging directory cannot be renamed onto the prefix."""


class DeletionError(BootstrapError):
    """Raised when any file or directory of a recursive delete cannot be removed."""


__all__ = [
    "ArchiveFormatError",
    "ArchiveUnavailableError",
    "BootstrapError",
    "DeletionError",
    "DirectoryCreationError",
    "FileWriteError",
    "ManifestCorruptionError",
    "PathLike",
    "RenameError",
    "SymlinkCreationError",
    "UnsafeArchiveEntryError",
]
